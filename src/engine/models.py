"""Data models for the scenario engine."""
from dataclasses import dataclass


@dataclass
class OperationResult:
    """Result of a guarded queue operation.

    Rejections are not errors: nothing was changed and ``reason`` says why.
    """

    accepted: bool
    reason: str | None = None
    affected: int = 0

    @classmethod
    def rejected(cls, reason: str) -> "OperationResult":
        return cls(accepted=False, reason=reason)
