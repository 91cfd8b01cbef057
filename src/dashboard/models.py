"""Data models for the operator-facing queue view."""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum


class NoticeLevel(Enum):
    """Severity of an operator notice."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Notice:
    """A message the console should surface to the operator."""

    timestamp: datetime
    level: NoticeLevel
    title: str
    message: str
    scenario_id: int | None = None
    read: bool = field(default=False)


@dataclass
class QueueSummary:
    """Read-only counts and totals derived from the scenario queue.

    Attributes:
        total: Number of scenarios in the queue.
        by_status: Scenario count per status value.
        reserved_cost: Sum of quoted costs of READY scenarios.
        settled_cost: Sum of costs of COMPLETE scenarios.
        failed_cost: Sum of costs of FAIL scenarios.
        estimating: Scenarios still PENDING or CALCULATING.
        is_execution_running: Whether a batch is in flight.
        can_execute: Whether ``execute`` would submit anything.
        can_clear: Whether ``clear_all`` would be accepted.
    """

    total: int
    by_status: dict[str, int]
    reserved_cost: Decimal
    settled_cost: Decimal
    failed_cost: Decimal
    estimating: int
    is_execution_running: bool
    can_execute: bool
    can_clear: bool

    def count(self, status: str) -> int:
        return self.by_status.get(status, 0)
