"""Data models for batch execution."""
from dataclasses import dataclass, field
from datetime import datetime

from src.archive.models import ExperimentResult
from src.scenario.models import Scenario


@dataclass
class SubmissionResult:
    """Result of a batch submission attempt.

    Attributes:
        accepted: Whether a batch was handed to the runner.
        execution_id: Id returned by the runner (if accepted).
        scenario_ids: Ids of the scenarios in the batch.
        reason: Why the submission was refused (if not accepted).
        timestamp: When submission was attempted.
    """

    accepted: bool
    execution_id: str | None = None
    scenario_ids: list[int] = field(default_factory=list)
    reason: str | None = None
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class EventOutcome:
    """What applying one progress event did to the queue.

    Attributes:
        applied: Whether the event changed any state.
        scenario: The scenario the event was applied to.
        terminal: Whether the event settled the scenario.
        result: Result record handed to the archive, if any.
        batch_complete: Whether the event ended the running batch.
        ignored_reason: Why the event was ignored (if not applied).
    """

    applied: bool
    scenario: Scenario | None = None
    terminal: bool = False
    result: ExperimentResult | None = None
    batch_complete: bool = False
    ignored_reason: str | None = None
