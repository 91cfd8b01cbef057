"""Scenario generator that expands a sweep into concrete scenarios."""
import itertools
import logging
import re
import time
from typing import Callable

from src.scenario.models import Scenario, SweepRequest
from src.scenario.settings import GeneratorSettings


logger = logging.getLogger(__name__)

_UNSAFE_NAME_CHARS = re.compile(r"[^a-zA-Z0-9_]")
_DIGIT_RUNS = re.compile(r"(\d+)")


def natural_sort_key(value: str) -> tuple:
    """Sort key that orders embedded numbers numerically (chain-2 < chain-10)."""
    parts = _DIGIT_RUNS.split(value)
    return tuple(
        (0, int(part), "") if part.isdigit() else (1, 0, part.casefold())
        for part in parts
        if part
    )


def sort_chains(chain_ids: list[str]) -> list[str]:
    return sorted(chain_ids, key=natural_sort_key)


def chain_counts(request: SweepRequest, available: int) -> list[int]:
    """Compute the chain counts a sweep iterates over.

    Fixed mode uses every selected chain. Range mode keeps counts within
    ``1..available`` and falls back to ``[1]`` when nothing qualifies.
    """
    if request.chain_mode != "range":
        return [available]

    rng = request.chain_range
    counts = []
    if rng.step > 0:
        counts = [
            i for i in range(rng.start, rng.end + 1, rng.step)
            if 0 < i <= available
        ]
    return counts or [1]


class ScenarioGenerator:
    """Expands sweep requests via a deterministic cartesian product.

    Iteration order is data size, chunk size, chain count, allocator,
    transmitter. A chain count ``n`` always targets the first ``n`` sorted
    chains, so different counts produce nested prefixes.
    """

    def __init__(
        self,
        settings: GeneratorSettings | None = None,
        clock: Callable[[], int] | None = None,
    ):
        """Initialize the generator.

        Args:
            settings: Generator configuration.
            clock: Returns the current time in epoch milliseconds.
        """
        self._settings = settings or GeneratorSettings()
        self._clock = clock or (lambda: time.time_ns() // 1_000_000)
        self._sequence = itertools.count(1)

    def clean_project_name(self, project_name: str) -> str:
        return _UNSAFE_NAME_CHARS.sub("", project_name) or self._settings.fallback_project_name

    def generate(self, request: SweepRequest) -> list[Scenario]:
        """Generate PENDING scenarios for every sweep combination.

        Args:
            request: Validated sweep request.

        Returns:
            Scenarios with sequential ids starting at 1.
        """
        data_sizes = request.data_size.expand()
        chunk_sizes = request.chunk_size.expand()
        sorted_chains = sort_chains(request.selected_chains)
        counts = chain_counts(request, len(sorted_chains))

        clean_name = self.clean_project_name(request.project_name)
        stamp = self._clock()

        scenarios: list[Scenario] = []
        for data_size, chunk_size, count, allocator, transmitter in itertools.product(
            data_sizes, chunk_sizes, counts, request.allocators, request.transmitters
        ):
            targets = sorted_chains[:count]
            if not targets:
                continue

            scenarios.append(
                Scenario(
                    id=len(scenarios) + 1,
                    unique_id=f"{clean_name}_{stamp}_{next(self._sequence)}",
                    user_id=request.user_id,
                    data_size_mb=data_size,
                    chunk_size_kb=chunk_size,
                    allocator_strategy=allocator,
                    transmitter_strategy=transmitter,
                    target_chain_ids=targets,
                    budget_limit=self._settings.budget_limit,
                )
            )

        logger.info(
            f"Generated {len(scenarios)} scenarios for '{request.project_name}' "
            f"({len(data_sizes)} data sizes x {len(chunk_sizes)} chunk sizes x "
            f"{len(counts)} chain counts x {len(request.allocators)} allocators x "
            f"{len(request.transmitters)} transmitters)"
        )
        return scenarios
