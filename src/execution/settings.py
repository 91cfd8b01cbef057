"""Settings for batch execution."""
from pydantic import BaseModel, Field


class ExecutionSettings(BaseModel):
    """Configuration for batch execution and progress consumption.

    Attributes:
        auto_execute: Submit admitted scenarios right after estimation (entry point only).
        archive_results: Hand successful results to the results archive.
        channel_maxsize: Bound on queued progress events, 0 for unbounded.
        default_fail_reason: Reason recorded when a failure event carries none.
    """

    auto_execute: bool = False
    archive_results: bool = True
    channel_maxsize: int = Field(default=0, ge=0)
    default_fail_reason: str = "Execution failed"
