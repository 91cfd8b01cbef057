"""Tests for ScenarioEngine."""
import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock, Mock

import pytest

from src.accounts.account_book import AccountBook
from src.accounts.models import UserAccount
from src.dashboard.models import NoticeLevel
from src.engine.scenario_engine import (
    ESTIMATING_REJECTION,
    ESTIMATION_REFUSAL,
    RUNNING_REJECTION,
    ScenarioEngine,
)
from src.estimation.admission import AdmissionPipeline
from src.estimation.estimator import BaseEstimator, EstimatorError
from src.estimation.models import EstimateQuote
from src.execution.events import BatchCompleteEvent, RunningEvent, ScenarioRef
from src.execution.progress import ProgressChannel
from src.execution.runner import BaseRunner, RunnerError
from src.execution.state_machine import ExecutionStateMachine
from src.scenario.generator import ScenarioGenerator
from src.scenario.models import ScenarioStatus, SweepRequest


def make_request(**overrides) -> SweepRequest:
    """Create a SweepRequest with sensible defaults."""
    data = dict(
        project_name="demo",
        user_id="u1",
        data_size={"mode": "fixed", "fixed": 100},
        chunk_size={"mode": "fixed", "fixed": 64},
        allocators=["RoundRobin"],
        transmitters=["OneByOne"],
        selected_chains=["datachain-0", "datachain-1", "datachain-2"],
    )
    data.update(overrides)
    return SweepRequest(**data)


def make_estimator(*costs) -> Mock:
    """Estimator returning ``costs`` in call order."""
    estimator = Mock(spec=BaseEstimator)
    estimator.estimate = AsyncMock(side_effect=[EstimateQuote(cost=Decimal(str(c))) for c in costs])
    return estimator


@pytest.fixture
def account_book():
    return AccountBook([UserAccount(id="u1", address="a", balance=Decimal("100"), name="Alice")])


@pytest.fixture
def mock_runner():
    runner = Mock(spec=BaseRunner)
    runner.run = AsyncMock(return_value="exec-1")
    return runner


def make_engine(estimator, runner, account_book) -> ScenarioEngine:
    return ScenarioEngine(
        generator=ScenarioGenerator(clock=lambda: 1700000000000),
        pipeline=AdmissionPipeline(estimator),
        state_machine=ExecutionStateMachine(runner, account_book),
        account_book=account_book,
    )


class TestGenerate:
    def test_replaces_queue(self, mock_runner, account_book):
        engine = make_engine(make_estimator(), mock_runner, account_book)

        engine.generate(make_request(allocators=["Static", "Hash"]))
        scenarios = engine.generate(make_request())

        assert len(scenarios) == 1
        assert [s.id for s in engine.scenarios] == [1]
        assert engine.is_generating is False
        assert engine.notices.notices[0].title == "Scenarios generated"

    @pytest.mark.asyncio
    async def test_refused_while_running(self, mock_runner, account_book):
        engine = make_engine(make_estimator(10), mock_runner, account_book)
        await engine.generate_and_estimate(make_request())
        await engine.execute()

        with pytest.raises(RuntimeError):
            engine.generate(make_request())


class TestRecalculate:
    @pytest.mark.asyncio
    async def test_uses_account_book_balances(self, mock_runner, account_book):
        engine = make_engine(make_estimator(40, 80, 10), mock_runner, account_book)
        engine.generate(make_request(allocators=["Static", "Random", "Hash"]))

        report = await engine.recalculate()

        assert [s.status for s in engine.scenarios] == [
            ScenarioStatus.READY,
            ScenarioStatus.FAIL,
            ScenarioStatus.PENDING,
        ]
        assert report.aborted
        assert account_book.get("u1").balance == Decimal("100")
        assert engine.notices.notices[0].level == NoticeLevel.ERROR

    @pytest.mark.asyncio
    async def test_explicit_balances_override_book(self, mock_runner, account_book):
        engine = make_engine(make_estimator(150), mock_runner, account_book)
        engine.generate(make_request())

        report = await engine.recalculate({"u1": Decimal("200")})

        assert report.admitted == [1]

    @pytest.mark.asyncio
    async def test_refused_while_running(self, mock_runner, account_book):
        estimator = make_estimator(10)
        engine = make_engine(estimator, mock_runner, account_book)
        await engine.generate_and_estimate(make_request())
        await engine.execute()

        report = await engine.recalculate()

        assert report.refused_reason is not None
        assert estimator.estimate.await_count == 1


class TestExecute:
    @pytest.mark.asyncio
    async def test_refused_while_estimating(self, mock_runner, account_book):
        gate = asyncio.Event()
        estimator = Mock(spec=BaseEstimator)

        async def estimate(scenario):
            await gate.wait()
            return EstimateQuote(cost=Decimal("1"))

        estimator.estimate = AsyncMock(side_effect=estimate)
        engine = make_engine(estimator, mock_runner, account_book)
        engine.generate(make_request())

        task = asyncio.create_task(engine.recalculate())
        await asyncio.sleep(0)
        result = await engine.execute()
        gate.set()
        await task

        assert result.accepted is False
        mock_runner.run.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_runner_failure_surfaces_and_notifies(self, mock_runner, account_book):
        mock_runner.run.side_effect = RunnerError("down")
        engine = make_engine(make_estimator(10), mock_runner, account_book)
        await engine.generate_and_estimate(make_request())

        with pytest.raises(RunnerError):
            await engine.execute()

        assert engine.is_execution_running is False
        assert engine.scenarios[0].status == ScenarioStatus.READY
        assert engine.notices.notices[0].title == "Execution error"


class TestReprocess:
    @pytest.mark.asyncio
    async def test_failed_scenario_returns_to_pending(self, mock_runner, account_book):
        engine = make_engine(make_estimator(500), mock_runner, account_book)
        await engine.generate_and_estimate(make_request())

        result = engine.reprocess(1)

        scenario = engine.get(1)
        assert result.accepted
        assert scenario.status == ScenarioStatus.PENDING
        assert scenario.cost == Decimal("0")
        assert scenario.fail_reason is None

    @pytest.mark.asyncio
    async def test_only_failed_scenarios(self, mock_runner, account_book):
        engine = make_engine(make_estimator(10), mock_runner, account_book)
        await engine.generate_and_estimate(make_request())

        result = engine.reprocess(1)

        assert not result.accepted
        assert engine.get(1).status == ScenarioStatus.READY

    def test_unknown_scenario(self, mock_runner, account_book):
        engine = make_engine(make_estimator(), mock_runner, account_book)

        assert not engine.reprocess(42).accepted


class TestGuards:
    @pytest.mark.asyncio
    async def test_remove_ready_scenario(self, mock_runner, account_book):
        engine = make_engine(make_estimator(10, 10), mock_runner, account_book)
        await engine.generate_and_estimate(make_request(allocators=["Static", "Hash"]))

        result = engine.remove(1)

        assert result.accepted
        assert [s.id for s in engine.scenarios] == [2]

    def test_remove_pending_scenario_refused(self, mock_runner, account_book):
        engine = make_engine(make_estimator(), mock_runner, account_book)
        engine.generate(make_request())

        result = engine.remove(1)

        assert not result.accepted
        assert result.reason == ESTIMATING_REJECTION
        assert len(engine.scenarios) == 1

    def test_remove_calculating_scenario_refused(self, mock_runner, account_book):
        engine = make_engine(make_estimator(), mock_runner, account_book)
        engine.generate(make_request())
        engine.get(1).status = ScenarioStatus.CALCULATING

        result = engine.remove(1)

        assert not result.accepted
        assert len(engine.scenarios) == 1
        assert engine.notices.notices[0].level == NoticeLevel.WARNING

    @pytest.mark.asyncio
    async def test_clear_all_refused_while_running(self, mock_runner, account_book):
        engine = make_engine(make_estimator(10), mock_runner, account_book)
        await engine.generate_and_estimate(make_request())
        await engine.execute()

        result = engine.clear_all()

        assert not result.accepted
        assert result.reason == RUNNING_REJECTION
        assert len(engine.scenarios) == 1

    @pytest.mark.asyncio
    async def test_remove_refused_while_running(self, mock_runner, account_book):
        engine = make_engine(make_estimator(500, 10), mock_runner, account_book)
        engine.generate(make_request(allocators=["Static", "Hash"]))
        await engine.recalculate({"u1": Decimal("1000")})
        await engine.execute()

        assert engine.remove(2).reason == RUNNING_REJECTION

    @pytest.mark.asyncio
    async def test_clear_all_after_settlement(self, mock_runner, account_book):
        engine = make_engine(make_estimator(10), mock_runner, account_book)
        await engine.generate_and_estimate(make_request())
        await engine.execute()
        await engine.on_progress(BatchCompleteEvent("exec-1"))

        result = engine.clear_all()

        assert result.accepted
        assert result.affected == 1
        assert engine.scenarios == []

    def test_remove_unknown_scenario(self, mock_runner, account_book):
        engine = make_engine(make_estimator(), mock_runner, account_book)

        assert not engine.remove(7).accepted


class TestProgress:
    @pytest.mark.asyncio
    async def test_end_to_end_settlement(self, mock_runner, account_book):
        engine = make_engine(make_estimator(50), mock_runner, account_book)
        await engine.generate_and_estimate(make_request())
        scenario = engine.get(1)
        assert scenario.status == ScenarioStatus.READY
        assert scenario.target_chain_ids == ["datachain-0", "datachain-1", "datachain-2"]

        submission = await engine.execute()
        await engine.on_progress(
            {"executionId": submission.execution_id, "uniqueId": scenario.unique_id, "status": "RUNNING"}
        )
        assert scenario.status == ScenarioStatus.RUNNING

        await engine.on_progress(
            {
                "executionId": "exec-1",
                "uniqueId": scenario.unique_id,
                "status": "COMPLETE",
                "log": "done",
                "resultDetails": {
                    "userId": "u1",
                    "userName": "Alice",
                    "actualCost": 45,
                    "refund": 5,
                    "currentBalance": 105,
                },
            }
        )

        assert scenario.status == ScenarioStatus.COMPLETE
        assert scenario.cost == Decimal("45")
        assert scenario.logs == ["done"]
        assert account_book.get("u1").balance == Decimal("105")
        notice = engine.notices.notices[0]
        assert notice.level == NoticeLevel.SUCCESS
        assert notice.message == "Account: Alice | Cost: 45.00 TKN (Refund: 5.00 TKN) | Balance: 105.00 TKN"

    @pytest.mark.asyncio
    async def test_malformed_message_ignored(self, mock_runner, account_book):
        engine = make_engine(make_estimator(), mock_runner, account_book)

        outcome = await engine.on_progress({"status": "COMPLETE"})

        assert not outcome.applied
        assert outcome.ignored_reason == "malformed message"

    @pytest.mark.asyncio
    async def test_consume_stops_at_batch_complete(self, mock_runner, account_book):
        engine = make_engine(make_estimator(10), mock_runner, account_book)
        await engine.generate_and_estimate(make_request())
        await engine.execute()
        unique_id = engine.get(1).unique_id

        channel = ProgressChannel()
        await channel.publish(RunningEvent("exec-1", ScenarioRef(unique_id=unique_id), started=True))
        await channel.publish({"executionId": "exec-1", "uniqueId": unique_id, "status": "FAIL", "log": "halted"})
        await channel.publish({"executionId": "exec-1", "type": "ALL_COMPLETE"})
        await channel.publish({"executionId": "exec-1", "uniqueId": unique_id, "log": "late"})

        applied = await engine.consume(channel)

        assert applied == 3
        assert engine.get(1).status == ScenarioStatus.FAIL
        assert engine.get(1).fail_reason == "halted"
        assert engine.is_execution_running is False
        assert engine.summary.count("FAIL") == 1


class TestEstimationDuringExecution:
    @pytest.mark.asyncio
    async def test_queued_recalculate_refused_once_batch_started(self, mock_runner, account_book):
        gate = asyncio.Event()
        estimator = Mock(spec=BaseEstimator)

        async def estimate(scenario):
            if scenario.id == 2:
                await gate.wait()
                raise EstimatorError("timeout")
            return EstimateQuote(cost=Decimal("10"))

        estimator.estimate = AsyncMock(side_effect=estimate)
        machine = ExecutionStateMachine(mock_runner, account_book)
        engine = ScenarioEngine(
            generator=ScenarioGenerator(),
            pipeline=AdmissionPipeline(estimator),
            state_machine=machine,
            account_book=account_book,
        )
        engine.generate(make_request(allocators=["Static", "Hash"]))

        first = asyncio.create_task(engine.recalculate())
        await asyncio.sleep(0)
        second = asyncio.create_task(engine.recalculate())
        await asyncio.sleep(0)

        # Batch submitted between the two runs
        await machine.submit(engine.scenarios)
        gate.set()
        first_report, second_report = await asyncio.gather(first, second)

        assert first_report.admitted == [1]
        assert first_report.rejected == [2]
        assert second_report.refused_reason == ESTIMATION_REFUSAL
        assert engine.get(2).status == ScenarioStatus.FAIL
        assert estimator.estimate.await_count == 2
        assert engine.is_execution_running is True


class TestNotices:
    def test_acknowledge_notices(self, mock_runner, account_book):
        engine = make_engine(make_estimator(), mock_runner, account_book)
        engine.generate(make_request())

        assert engine.acknowledge_notices() == 1
        assert engine.notices.unread_count == 0
