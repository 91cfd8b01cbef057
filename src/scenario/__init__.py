"""Sweep parameter model and scenario generation."""

from .generator import ScenarioGenerator, chain_counts, natural_sort_key, sort_chains
from .models import (
    AllocatorStrategy,
    ChainRange,
    Scenario,
    ScenarioStatus,
    SweepRequest,
    TransmitterStrategy,
    ValueRange,
)
from .settings import GeneratorSettings

__all__ = [
    "AllocatorStrategy",
    "ChainRange",
    "GeneratorSettings",
    "Scenario",
    "ScenarioGenerator",
    "ScenarioStatus",
    "SweepRequest",
    "TransmitterStrategy",
    "ValueRange",
    "chain_counts",
    "natural_sort_key",
    "sort_chains",
]
