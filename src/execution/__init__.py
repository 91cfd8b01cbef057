"""Batch execution and progress tracking."""

from .events import (
    ALL_COMPLETE,
    BatchCompleteEvent,
    CompleteEvent,
    ExecutionResultDetails,
    FailEvent,
    ProgressEvent,
    RunningEvent,
    ScenarioRef,
    parse_progress_message,
)
from .models import EventOutcome, SubmissionResult
from .progress import HttpProgressSource, ProgressChannel
from .runner import BaseRunner, HttpRunner, RunnerError
from .settings import ExecutionSettings
from .state_machine import ExecutionStateMachine, build_result

__all__ = [
    "ALL_COMPLETE",
    "BaseRunner",
    "BatchCompleteEvent",
    "CompleteEvent",
    "EventOutcome",
    "ExecutionResultDetails",
    "ExecutionSettings",
    "ExecutionStateMachine",
    "FailEvent",
    "HttpProgressSource",
    "HttpRunner",
    "ProgressChannel",
    "ProgressEvent",
    "RunnerError",
    "RunningEvent",
    "ScenarioRef",
    "SubmissionResult",
    "build_result",
    "parse_progress_message",
]
