"""Scenario engine exposing the operator operations."""

from .models import OperationResult
from .scenario_engine import (
    ESTIMATING_REJECTION,
    ESTIMATION_REFUSAL,
    RUNNING_REJECTION,
    ScenarioEngine,
)

__all__ = [
    "ESTIMATING_REJECTION",
    "ESTIMATION_REFUSAL",
    "OperationResult",
    "RUNNING_REJECTION",
    "ScenarioEngine",
]
