"""Data models for sweep parameters and generated scenarios."""
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator


class AllocatorStrategy(str, Enum):
    """How chunks are allocated across target chains."""

    STATIC = "Static"
    ROUND_ROBIN = "RoundRobin"
    RANDOM = "Random"
    AVAILABLE = "Available"
    HASH = "Hash"


class TransmitterStrategy(str, Enum):
    """How chunks are transmitted to a chain."""

    ONE_BY_ONE = "OneByOne"
    MULTI_BURST = "MultiBurst"


class ScenarioStatus(str, Enum):
    """Lifecycle status of a scenario."""

    PENDING = "PENDING"
    CALCULATING = "CALCULATING"
    READY = "READY"
    RUNNING = "RUNNING"
    COMPLETE = "COMPLETE"
    FAIL = "FAIL"

    @property
    def is_terminal(self) -> bool:
        return self in (ScenarioStatus.COMPLETE, ScenarioStatus.FAIL)

    @property
    def is_estimating(self) -> bool:
        """PENDING and CALCULATING both mean estimation is not settled yet."""
        return self in (ScenarioStatus.PENDING, ScenarioStatus.CALCULATING)


class ValueRange(BaseModel):
    """A sweep parameter: a single fixed value or a stepped range."""

    mode: Literal["fixed", "range"] = "fixed"
    fixed: int = 0
    start: int = 0
    end: int = 0
    step: int = 1

    def expand(self) -> list[int]:
        """Expand to the list of values this parameter sweeps over.

        A non-positive step or an inverted range yields just ``start``.
        """
        if self.mode == "fixed":
            return [self.fixed]

        if self.step <= 0 or self.start > self.end:
            return [self.start]

        return list(range(self.start, self.end + 1, self.step))


class ChainRange(BaseModel):
    """Range over the number of chains a scenario targets."""

    start: int = 1
    end: int = 1
    step: int = 1


class SweepRequest(BaseModel):
    """Operator input that the generator expands into scenarios."""

    project_name: str
    user_id: str
    data_size: ValueRange
    chunk_size: ValueRange
    allocators: list[AllocatorStrategy] = Field(min_length=1)
    transmitters: list[TransmitterStrategy] = Field(min_length=1)
    chain_mode: Literal["fixed", "range"] = "fixed"
    chain_range: ChainRange = Field(default_factory=ChainRange)
    selected_chains: list[str] = Field(default_factory=list)

    @field_validator("allocators", "transmitters")
    @classmethod
    def dedupe_strategies(cls, v: list) -> list:
        """Selections behave as sets; keep first-seen order."""
        return list(dict.fromkeys(v))

    @field_validator("selected_chains")
    @classmethod
    def dedupe_chains(cls, v: list[str]) -> list[str]:
        return list(dict.fromkeys(v))

    @model_validator(mode="after")
    def check_sizes(self) -> "SweepRequest":
        for name, param in (("data_size", self.data_size), ("chunk_size", self.chunk_size)):
            if min(param.expand()) < 0:
                raise ValueError(f"{name} values must not be negative")
        return self


@dataclass
class Scenario:
    """One concrete, priced, executable unit of a sweep.

    Attributes:
        id: Sequential id within the generation batch, starting at 1.
        unique_id: Session-unique key used by progress events.
        user_id: Account charged for this scenario.
        data_size_mb: Data size in megabytes.
        chunk_size_kb: Chunk size in kilobytes.
        allocator_strategy: Chunk allocation strategy.
        transmitter_strategy: Chunk transmission strategy.
        target_chain_ids: Prefix of the sorted selected chain list.
        cost: Zero until admitted, then quoted price, then settled fee.
        status: Current lifecycle status.
        fail_reason: Human-readable reason, only set when status is FAIL.
        logs: Append-only execution log lines.
        budget_limit: Per-scenario budget ceiling carried to the runner.
    """

    id: int
    unique_id: str
    user_id: str
    data_size_mb: int
    chunk_size_kb: int
    allocator_strategy: AllocatorStrategy
    transmitter_strategy: TransmitterStrategy
    target_chain_ids: list[str]
    cost: Decimal = Decimal("0")
    status: ScenarioStatus = ScenarioStatus.PENDING
    fail_reason: str | None = None
    logs: list[str] = field(default_factory=list)
    budget_limit: int = 1000

    @property
    def chain_count(self) -> int:
        return len(self.target_chain_ids)

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the camelCase shape the backend endpoints accept."""
        return {
            "id": self.id,
            "uniqueId": self.unique_id,
            "userId": self.user_id,
            "dataSize": self.data_size_mb,
            "chunkSize": self.chunk_size_kb,
            "allocator": self.allocator_strategy.value,
            "transmitter": self.transmitter_strategy.value,
            "chains": self.chain_count,
            "targetChains": list(self.target_chain_ids),
            "budgetLimit": self.budget_limit,
            "cost": float(self.cost),
            "status": self.status.value,
            "failReason": self.fail_reason,
            "logs": list(self.logs),
        }
