"""Data models for cost estimation and admission control."""
from dataclasses import dataclass, field
from decimal import Decimal


@dataclass
class EstimateQuote:
    """Price quoted by the estimator for one scenario."""

    cost: Decimal


@dataclass
class AdmissionReport:
    """Outcome of one admission pipeline run.

    Attributes:
        admitted: Ids of scenarios moved to READY, in processing order.
        rejected: Ids of scenarios moved to FAIL.
        untouched: Ids of targeted scenarios never processed because the run aborted.
        remaining_balances: Shadow ledger balances when the run finished.
        aborted: Whether the run stopped early on a rejection.
        refused_reason: Why the run did not start at all (if refused).
    """

    admitted: list[int] = field(default_factory=list)
    rejected: list[int] = field(default_factory=list)
    untouched: list[int] = field(default_factory=list)
    remaining_balances: dict[str, Decimal] = field(default_factory=dict)
    aborted: bool = False
    refused_reason: str | None = None

    @property
    def total_processed(self) -> int:
        return len(self.admitted) + len(self.rejected)
