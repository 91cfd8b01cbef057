"""Execution state machine driving submitted batches through progress events."""
import logging
from datetime import datetime

from src.accounts.account_book import AccountBook
from src.archive.models import ExperimentResult, ResultStatus
from src.archive.results_archive import ResultsArchive
from src.execution.events import (
    BatchCompleteEvent,
    CompleteEvent,
    ExecutionResultDetails,
    FailEvent,
    ProgressEvent,
    RunningEvent,
    ScenarioRef,
)
from src.execution.models import EventOutcome, SubmissionResult
from src.execution.runner import BaseRunner, RunnerError
from src.execution.settings import ExecutionSettings
from src.scenario.models import Scenario, ScenarioStatus


logger = logging.getLogger(__name__)

_SETTLEABLE = (ScenarioStatus.READY, ScenarioStatus.RUNNING)


def build_result(scenario: Scenario) -> ExperimentResult:
    """Build an archive record for a scenario whose event carried none."""
    total_tx = (scenario.data_size_mb * 1024) // scenario.chunk_size_kb if scenario.chunk_size_kb else 0
    return ExperimentResult(
        id=f"res-{scenario.unique_id}",
        scenario_name=f"Batch Execution #{scenario.id}",
        executed_at=datetime.now(),
        status=ResultStatus.SUCCESS,
        data_size_mb=scenario.data_size_mb,
        chunk_size_kb=scenario.chunk_size_kb,
        total_tx_count=total_tx,
        allocator=scenario.allocator_strategy.value,
        transmitter=scenario.transmitter_strategy.value,
        target_chain_count=scenario.chain_count,
        used_chains=list(scenario.target_chain_ids),
        upload_time_ms=0.0,
        download_time_ms=0.0,
        throughput_bps=0.0,
        actual_fee=float(scenario.cost),
        logs=list(scenario.logs),
    )


class ExecutionStateMachine:
    """Tracks one running batch and applies its progress events.

    Transitions handled here: READY -> RUNNING -> COMPLETE | FAIL. Terminal
    events reconcile first (server-reported balance, actual cost) and then
    apply the final status. Events for other executions, for scenarios outside
    the batch, or for scenarios already settled are ignored.

    Attributes:
        _runner: Submits batches.
        _accounts: Receives server-reported balances.
        _archive: Receives successful result records.
        _batch: Unique ids of the scenarios in the running batch.
    """

    def __init__(
        self,
        runner: BaseRunner,
        account_book: AccountBook,
        archive: ResultsArchive | None = None,
        settings: ExecutionSettings | None = None,
    ):
        """Initialize the state machine.

        Args:
            runner: Batch runner.
            account_book: Live user balances updated on settlement.
            archive: Results archive; results are not persisted when None.
            settings: Execution configuration.
        """
        self._runner = runner
        self._accounts = account_book
        self._archive = archive
        self._settings = settings or ExecutionSettings()

        self._running = False
        self._execution_id: str | None = None
        self._batch: set[str] = set()

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def execution_id(self) -> str | None:
        return self._execution_id

    @property
    def batch(self) -> frozenset[str]:
        return frozenset(self._batch)

    async def submit(self, queue: list[Scenario]) -> SubmissionResult:
        """Submit every READY scenario as one batch.

        Scenarios that are not READY stay in the queue for a later batch.

        Args:
            queue: The current scenario queue.

        Returns:
            SubmissionResult; refused if a batch is running or nothing is READY.

        Raises:
            RunnerError: If the runner rejects the submission. The running
                flag is cleared and scenarios stay READY.
        """
        if self._running:
            return SubmissionResult(accepted=False, reason="An execution is already running")

        ready = [s for s in queue if s.status == ScenarioStatus.READY]
        if not ready:
            return SubmissionResult(accepted=False, reason="No READY scenarios to execute")

        self._running = True
        self._execution_id = None
        logger.info(f"Submitting batch of {len(ready)} scenarios")

        try:
            execution_id = await self._runner.run(ready)
        except Exception as e:
            self._running = False
            self._execution_id = None
            logger.error(f"Batch submission failed: {e}")
            if isinstance(e, RunnerError):
                raise
            raise RunnerError(f"Batch submission failed: {e}") from e

        self._execution_id = execution_id
        self._batch = {s.unique_id for s in ready}
        logger.info(f"Batch {execution_id} accepted by runner")

        return SubmissionResult(
            accepted=True,
            execution_id=execution_id,
            scenario_ids=[s.id for s in ready],
        )

    def _find(self, queue: list[Scenario], ref: ScenarioRef) -> Scenario | None:
        for scenario in queue:
            if scenario.unique_id in self._batch and ref.matches(scenario):
                return scenario
        return None

    async def handle(self, event: ProgressEvent, queue: list[Scenario]) -> EventOutcome:
        """Apply one progress event to the queue.

        Args:
            event: Typed progress event.
            queue: The current scenario queue, mutated in place.

        Returns:
            EventOutcome describing the change, or why nothing changed.
        """
        if not self._running or event.execution_id != self._execution_id:
            logger.debug(f"Ignoring event for execution {event.execution_id}")
            return EventOutcome(applied=False, ignored_reason="foreign execution")

        if isinstance(event, BatchCompleteEvent):
            logger.info(f"Batch {self._execution_id} complete")
            self._running = False
            self._execution_id = None
            self._batch = set()
            return EventOutcome(applied=True, batch_complete=True)

        scenario = self._find(queue, event.ref)
        if scenario is None:
            logger.debug(f"Ignoring event for unknown scenario {event.ref}")
            return EventOutcome(applied=False, ignored_reason="unknown scenario")

        if isinstance(event, RunningEvent):
            return self._apply_running(scenario, event)

        if isinstance(event, (CompleteEvent, FailEvent)):
            outcome = self._apply_terminal(scenario, event)
            if outcome.result is not None and self._archive is not None:
                await self._archive_result(outcome.result)
            return outcome

        raise TypeError(f"Unsupported progress event: {event!r}")

    async def _archive_result(self, result: ExperimentResult) -> None:
        """Hand a result to the archive; the scenario is already settled."""
        try:
            await self._archive.register(result)
        except OSError as e:
            logger.error(f"Failed to archive result {result.id}: {e}")

    def _apply_running(self, scenario: Scenario, event: RunningEvent) -> EventOutcome:
        if event.log:
            scenario.logs.append(event.log)
        if event.started and scenario.status == ScenarioStatus.READY:
            scenario.status = ScenarioStatus.RUNNING
        return EventOutcome(applied=True, scenario=scenario)

    def _apply_terminal(
        self, scenario: Scenario, event: CompleteEvent | FailEvent
    ) -> EventOutcome:
        if scenario.status not in _SETTLEABLE:
            logger.debug(f"Scenario #{scenario.id} already settled as {scenario.status.value}")
            return EventOutcome(applied=False, scenario=scenario, ignored_reason="already settled")

        if event.details is not None:
            self._reconcile(scenario, event.details)

        if event.log:
            scenario.logs.append(event.log)

        result = None
        if isinstance(event, CompleteEvent):
            scenario.status = ScenarioStatus.COMPLETE
            scenario.fail_reason = None
            if self._settings.archive_results:
                result = event.details.result if event.details and event.details.result else build_result(scenario)
            logger.info(f"Scenario #{scenario.id} complete (cost {scenario.cost:.2f})")
        else:
            scenario.status = ScenarioStatus.FAIL
            scenario.fail_reason = event.reason or self._settings.default_fail_reason
            logger.info(f"Scenario #{scenario.id} failed: {scenario.fail_reason}")

        return EventOutcome(applied=True, scenario=scenario, terminal=True, result=result)

    def _reconcile(self, scenario: Scenario, details: ExecutionResultDetails) -> None:
        """Apply the server-reported settlement to the account and scenario."""
        self._accounts.apply_settlement(details.user_id, details.current_balance)
        scenario.cost = details.actual_cost
