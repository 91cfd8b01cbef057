"""Derived queue counts and totals for collaborators such as the UI."""
from collections import Counter
from decimal import Decimal

from src.dashboard.models import QueueSummary
from src.scenario.models import Scenario, ScenarioStatus


def summarize_queue(
    scenarios: list[Scenario],
    is_execution_running: bool = False,
) -> QueueSummary:
    """Summarize a scenario queue without mutating it."""
    counts = Counter(s.status.value for s in scenarios)
    estimating = sum(1 for s in scenarios if s.status.is_estimating)

    def total_cost(status: ScenarioStatus) -> Decimal:
        return sum((s.cost for s in scenarios if s.status == status), Decimal("0"))

    return QueueSummary(
        total=len(scenarios),
        by_status={status.value: counts.get(status.value, 0) for status in ScenarioStatus},
        reserved_cost=total_cost(ScenarioStatus.READY),
        settled_cost=total_cost(ScenarioStatus.COMPLETE),
        failed_cost=total_cost(ScenarioStatus.FAIL),
        estimating=estimating,
        is_execution_running=is_execution_running,
        can_execute=not is_execution_running and estimating == 0 and counts[ScenarioStatus.READY.value] > 0,
        can_clear=not is_execution_running and estimating == 0,
    )
