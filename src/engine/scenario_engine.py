"""Scenario engine coordinating generation, admission and execution."""
import logging
from decimal import Decimal
from typing import Any, Mapping

from src.accounts.account_book import AccountBook
from src.dashboard.models import NoticeLevel, QueueSummary
from src.dashboard.queue_summary import summarize_queue
from src.dashboard.state import NoticeBoard
from src.engine.models import OperationResult
from src.estimation.admission import AdmissionPipeline
from src.estimation.models import AdmissionReport
from src.execution.events import (
    BatchCompleteEvent,
    CompleteEvent,
    FailEvent,
    ProgressEvent,
    parse_progress_message,
)
from src.execution.models import EventOutcome, SubmissionResult
from src.execution.progress import ProgressChannel
from src.execution.runner import RunnerError
from src.execution.state_machine import ExecutionStateMachine
from src.scenario.generator import ScenarioGenerator
from src.scenario.models import Scenario, ScenarioStatus, SweepRequest


logger = logging.getLogger(__name__)

RUNNING_REJECTION = "Scenarios cannot be removed while an execution is running"
ESTIMATING_REJECTION = "Scenarios cannot be removed while cost estimation is in progress"
ESTIMATION_REFUSAL = "Cost estimation is not available while an execution is running"


class ScenarioEngine:
    """Owns one scenario queue and exposes the operator operations.

    All mutations run on the event loop thread and complete between awaits,
    so each one is applied to the queue as a single step. Estimation and
    execution are mutually exclusive phases: estimation is refused while a
    batch runs and execution is refused while estimation is in flight.
    """

    def __init__(
        self,
        generator: ScenarioGenerator,
        pipeline: AdmissionPipeline,
        state_machine: ExecutionStateMachine,
        account_book: AccountBook,
        notice_board: NoticeBoard | None = None,
    ):
        self._generator = generator
        self._pipeline = pipeline
        self._state_machine = state_machine
        self._accounts = account_book
        self._notices = notice_board or NoticeBoard()

        self._scenarios: list[Scenario] = []
        self._is_generating = False

    @property
    def scenarios(self) -> list[Scenario]:
        """Scenarios in queue order."""
        return list(self._scenarios)

    @property
    def is_generating(self) -> bool:
        return self._is_generating

    @property
    def is_estimating(self) -> bool:
        return self._pipeline.is_running

    @property
    def is_execution_running(self) -> bool:
        return self._state_machine.is_running

    @property
    def execution_id(self) -> str | None:
        return self._state_machine.execution_id

    @property
    def notices(self) -> NoticeBoard:
        return self._notices

    def acknowledge_notices(self) -> int:
        """Mark all operator notices read; returns how many were unread."""
        return self._notices.mark_all_read()

    @property
    def summary(self) -> QueueSummary:
        return summarize_queue(self._scenarios, self.is_execution_running)

    def get(self, scenario_id: int) -> Scenario | None:
        for scenario in self._scenarios:
            if scenario.id == scenario_id:
                return scenario
        return None

    def generate(self, request: SweepRequest) -> list[Scenario]:
        """Replace the queue with freshly generated PENDING scenarios.

        Raises:
            RuntimeError: If a batch is running or estimation is in flight.
        """
        if self.is_execution_running:
            raise RuntimeError("Cannot generate scenarios while an execution is running")
        if self.is_estimating:
            raise RuntimeError("Cannot generate scenarios while cost estimation is in progress")

        self._is_generating = True
        try:
            scenarios = self._generator.generate(request)
        finally:
            self._is_generating = False

        self._scenarios[:] = scenarios
        self._notices.add(
            NoticeLevel.INFO,
            "Scenarios generated",
            f"{len(scenarios)} scenarios generated.",
        )
        return self.scenarios

    async def generate_and_estimate(
        self,
        request: SweepRequest,
        balances: Mapping[str, Any] | None = None,
    ) -> AdmissionReport:
        """Generate a new queue and immediately run cost estimation on it."""
        self.generate(request)
        return await self.recalculate(balances)

    async def recalculate(self, balances: Mapping[str, Any] | None = None) -> AdmissionReport:
        """Run the admission pipeline over PENDING and FAIL scenarios.

        Args:
            balances: ``{user_id: balance}`` snapshot; defaults to the account book.

        Returns:
            AdmissionReport; refused without changes while a batch is running.
        """
        reason = self._estimation_refusal()
        if reason:
            logger.warning(reason)
            self._notices.add(NoticeLevel.WARNING, "Operation not allowed", reason)
            return AdmissionReport(refused_reason=reason)

        snapshot = self._accounts.snapshot() if balances is None else balances
        # A batch may have started while this run waited for the pipeline
        report = await self._pipeline.run(self._scenarios, snapshot, refusal=self._estimation_refusal)
        if report.refused_reason:
            self._notices.add(NoticeLevel.WARNING, "Operation not allowed", report.refused_reason)
            return report

        if report.rejected:
            scenario = self.get(report.rejected[0])
            reason = scenario.fail_reason if scenario else "rejected"
            self._notices.add(
                NoticeLevel.ERROR,
                "Estimation aborted" if report.aborted else "Estimation rejected",
                f"Scenario #{report.rejected[0]}: {reason}",
                scenario_id=report.rejected[0],
            )
        return report

    def _estimation_refusal(self) -> str | None:
        if self.is_execution_running:
            return ESTIMATION_REFUSAL
        return None

    async def execute(self) -> SubmissionResult:
        """Submit all READY scenarios as one batch.

        Raises:
            RunnerError: If submission fails; the running flag is cleared.
        """
        if self.is_estimating:
            return SubmissionResult(accepted=False, reason="Cost estimation in progress")

        try:
            result = await self._state_machine.submit(self._scenarios)
        except RunnerError:
            self._notices.add(
                NoticeLevel.ERROR,
                "Execution error",
                "Failed to start scenario execution.",
            )
            raise

        if result.accepted:
            self._notices.add(
                NoticeLevel.INFO,
                "Execution started",
                f"Submitted {len(result.scenario_ids)} scenarios ({result.execution_id}).",
            )
        else:
            logger.warning(f"Execution refused: {result.reason}")
        return result

    def reprocess(self, scenario_id: int) -> OperationResult:
        """Send a FAIL scenario back to PENDING for another estimation."""
        scenario = self.get(scenario_id)
        if scenario is None:
            return OperationResult.rejected(f"Scenario #{scenario_id} not found")
        if scenario.status != ScenarioStatus.FAIL:
            return OperationResult.rejected(
                f"Only failed scenarios can be reprocessed (#{scenario_id} is {scenario.status.value})"
            )

        scenario.status = ScenarioStatus.PENDING
        scenario.fail_reason = None
        scenario.cost = Decimal("0")
        return OperationResult(accepted=True, affected=1)

    def _guard(self, affected: list[Scenario]) -> OperationResult | None:
        """Return a rejection if removing ``affected`` is not allowed now."""
        if self.is_execution_running:
            reason = RUNNING_REJECTION
        elif any(s.status.is_estimating for s in affected):
            reason = ESTIMATING_REJECTION
        else:
            return None

        logger.warning(reason)
        self._notices.add(NoticeLevel.WARNING, "Operation not allowed", reason)
        return OperationResult.rejected(reason)

    def remove(self, scenario_id: int) -> OperationResult:
        """Remove one scenario unless execution or its estimation is active."""
        scenario = self.get(scenario_id)
        if scenario is None:
            return OperationResult.rejected(f"Scenario #{scenario_id} not found")

        rejection = self._guard([scenario])
        if rejection:
            return rejection

        self._scenarios[:] = [s for s in self._scenarios if s is not scenario]
        return OperationResult(accepted=True, affected=1)

    def clear_all(self) -> OperationResult:
        """Empty the queue unless execution or any estimation is active."""
        rejection = self._guard(self._scenarios)
        if rejection:
            return rejection

        removed = len(self._scenarios)
        self._scenarios[:] = []
        self._notices.add(NoticeLevel.INFO, "Queue cleared", "All scenarios were removed.")
        return OperationResult(accepted=True, affected=removed)

    async def on_progress(self, event: ProgressEvent | dict[str, Any]) -> EventOutcome:
        """Apply one progress event, typed or raw."""
        if isinstance(event, dict):
            parsed = parse_progress_message(event)
            if parsed is None:
                return EventOutcome(applied=False, ignored_reason="malformed message")
            event = parsed

        outcome = await self._state_machine.handle(event, self._scenarios)
        if outcome.applied:
            self._notify(event, outcome)
        return outcome

    async def consume(self, channel: ProgressChannel) -> int:
        """Apply events from ``channel`` until the running batch completes.

        Returns:
            Number of events that changed state.
        """
        applied = 0
        async for event in channel:
            outcome = await self.on_progress(event)
            if outcome.applied:
                applied += 1
            if outcome.batch_complete:
                break
        return applied

    def _notify(self, event: ProgressEvent, outcome: EventOutcome) -> None:
        if isinstance(event, BatchCompleteEvent):
            self._notices.add(NoticeLevel.INFO, "Execution finished", "All scenarios in the batch have finished.")
            return

        if not outcome.terminal or outcome.scenario is None:
            return

        scenario = outcome.scenario
        succeeded = isinstance(event, CompleteEvent)
        label = "result" if succeeded else "error"
        title = f"Scenario #{scenario.id} {label} ({scenario.unique_id[:8]}...)"

        details = event.details if isinstance(event, (CompleteEvent, FailEvent)) else None
        if details is not None:
            message = (
                f"Account: {details.user_name or 'Unknown User'} | "
                f"Cost: {details.actual_cost:.2f} TKN (Refund: {details.refund:.2f} TKN) | "
                f"Balance: {details.current_balance:.2f} TKN"
            )
        elif succeeded:
            message = f"Scenario #{scenario.id} completed."
        else:
            message = f"Scenario #{scenario.id} failed: {scenario.fail_reason}"

        self._notices.add(
            NoticeLevel.SUCCESS if succeeded else NoticeLevel.ERROR,
            title,
            message,
            scenario_id=scenario.id,
        )
