"""Typed progress events and parsing of raw progress messages."""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from src.archive.models import ExperimentResult
from src.scenario.models import Scenario, ScenarioStatus


logger = logging.getLogger(__name__)

ALL_COMPLETE = "ALL_COMPLETE"


@dataclass(frozen=True)
class ScenarioRef:
    """Identifies the scenario an event is about.

    ``unique_id`` is preferred because numeric ids restart at 1 on every
    generation.
    """

    scenario_id: int | None = None
    unique_id: str | None = None

    def matches(self, scenario: Scenario) -> bool:
        if self.unique_id is not None:
            return scenario.unique_id == self.unique_id
        return self.scenario_id is not None and scenario.id == self.scenario_id

    def __str__(self) -> str:
        return self.unique_id or f"#{self.scenario_id}"


@dataclass(frozen=True)
class ExecutionResultDetails:
    """Settlement data carried by terminal events.

    Attributes:
        user_id: Account that paid for the scenario.
        actual_cost: Fee actually charged.
        refund: Reserved cost minus actual cost.
        current_balance: User balance after settlement.
        user_name: Display name of the account.
        result: Archived result record, only on success.
    """

    user_id: str
    actual_cost: Decimal
    refund: Decimal
    current_balance: Decimal
    user_name: str | None = None
    result: ExperimentResult | None = None


@dataclass(frozen=True)
class RunningEvent:
    """Scenario started (``started``) or emitted a log line."""

    execution_id: str
    ref: ScenarioRef
    log: str | None = None
    started: bool = False


@dataclass(frozen=True)
class CompleteEvent:
    """Scenario finished successfully."""

    execution_id: str
    ref: ScenarioRef
    details: ExecutionResultDetails | None = None
    log: str | None = None


@dataclass(frozen=True)
class FailEvent:
    """Scenario failed during execution."""

    execution_id: str
    ref: ScenarioRef
    reason: str
    details: ExecutionResultDetails | None = None
    log: str | None = None


@dataclass(frozen=True)
class BatchCompleteEvent:
    """Every scenario of the batch has reached a terminal state."""

    execution_id: str


ProgressEvent = Union[RunningEvent, CompleteEvent, FailEvent, BatchCompleteEvent]


class ResultDetailsPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: str = Field(alias="userId")
    user_name: str | None = Field(default=None, alias="userName")
    actual_cost: Decimal = Field(alias="actualCost")
    refund: Decimal = Decimal("0")
    current_balance: Decimal = Field(alias="currentBalance")
    result: dict[str, Any] | None = None


class ProgressMessage(BaseModel):
    """Raw progress message as delivered by the backend."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    execution_id: str = Field(alias="executionId")
    scenario_id: int | None = Field(default=None, alias="scenarioId")
    unique_id: str | None = Field(default=None, alias="uniqueId")
    status: ScenarioStatus | None = None
    log: str | None = None
    type: str | None = None
    result_details: ResultDetailsPayload | None = Field(default=None, alias="resultDetails")


def _details(payload: ResultDetailsPayload | None) -> ExecutionResultDetails | None:
    if payload is None:
        return None
    return ExecutionResultDetails(
        user_id=payload.user_id,
        user_name=payload.user_name,
        actual_cost=payload.actual_cost,
        refund=payload.refund,
        current_balance=payload.current_balance,
        result=ExperimentResult.from_payload(payload.result) if payload.result else None,
    )


def parse_progress_message(raw: dict[str, Any]) -> ProgressEvent | None:
    """Convert a raw progress message into a typed event.

    Returns None for messages that are malformed or carry nothing to apply.
    """
    try:
        message = ProgressMessage.model_validate(raw)
        details = _details(message.result_details)
    except (ValidationError, KeyError, ValueError, TypeError, AttributeError) as e:
        logger.warning(f"Dropping malformed progress message: {e}")
        return None

    if message.type == ALL_COMPLETE:
        return BatchCompleteEvent(execution_id=message.execution_id)

    if message.scenario_id is None and message.unique_id is None:
        logger.debug(f"Progress message without scenario reference dropped: {raw!r}")
        return None

    ref = ScenarioRef(scenario_id=message.scenario_id, unique_id=message.unique_id)

    if message.status == ScenarioStatus.COMPLETE:
        return CompleteEvent(message.execution_id, ref, details=details, log=message.log)

    if message.status == ScenarioStatus.FAIL:
        return FailEvent(
            message.execution_id,
            ref,
            reason=message.log or "",
            details=details,
            log=message.log,
        )

    if message.status == ScenarioStatus.RUNNING:
        return RunningEvent(message.execution_id, ref, log=message.log, started=True)

    if message.status is None and message.log:
        return RunningEvent(message.execution_id, ref, log=message.log)

    logger.debug(f"Progress message with nothing to apply dropped: {raw!r}")
    return None
