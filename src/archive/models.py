"""Data models for archived experiment results."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class ResultStatus(str, Enum):
    """Outcome recorded in the results library."""

    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    ABORTED = "ABORTED"


@dataclass
class ExperimentResult:
    """A completed scenario run as stored in the results library.

    Attributes:
        id: Result id, ``res-{unique_id}`` for engine-produced results.
        scenario_name: Display name of the run.
        executed_at: When the run finished.
        status: Outcome.
        data_size_mb: Uploaded data size.
        chunk_size_kb: Chunk size used.
        total_tx_count: Number of chunk transactions.
        allocator: Allocator strategy name.
        transmitter: Transmitter strategy name.
        target_chain_count: Number of chains used.
        used_chains: Chain ids used.
        upload_time_ms: Upload duration.
        download_time_ms: Download duration.
        throughput_bps: Measured throughput.
        gas_used: Gas consumed, when reported.
        base_fee: Base fee at execution, when reported.
        actual_fee: Settled fee, when reported.
        logs: Execution log lines.
    """

    id: str
    scenario_name: str
    executed_at: datetime
    status: ResultStatus
    data_size_mb: int
    chunk_size_kb: int
    total_tx_count: int
    allocator: str
    transmitter: str
    target_chain_count: int
    used_chains: list[str]
    upload_time_ms: float
    download_time_ms: float
    throughput_bps: float
    gas_used: float | None = None
    base_fee: float | None = None
    actual_fee: float | None = None
    logs: list[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "ExperimentResult":
        """Build a result from the backend's camelCase record."""
        executed_at = data.get("executedAt")
        return cls(
            id=data["id"],
            scenario_name=data.get("scenarioName", ""),
            executed_at=datetime.fromisoformat(executed_at.replace("Z", "+00:00"))
            if executed_at
            else datetime.now(),
            status=ResultStatus(data.get("status", ResultStatus.SUCCESS.value)),
            data_size_mb=int(data.get("dataSizeMB", 0)),
            chunk_size_kb=int(data.get("chunkSizeKB", 0)),
            total_tx_count=int(data.get("totalTxCount", 0)),
            allocator=data.get("allocator", ""),
            transmitter=data.get("transmitter", ""),
            target_chain_count=int(data.get("targetChainCount", 0)),
            used_chains=list(data.get("usedChains", [])),
            upload_time_ms=float(data.get("uploadTimeMs", 0.0)),
            download_time_ms=float(data.get("downloadTimeMs", 0.0)),
            throughput_bps=float(data.get("throughputBps", 0.0)),
            gas_used=data.get("gasUsed"),
            base_fee=data.get("baseFee"),
            actual_fee=data.get("actualFee"),
            logs=list(data.get("logs") or []),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase record used for storage."""
        return {
            "id": self.id,
            "scenarioName": self.scenario_name,
            "executedAt": self.executed_at.isoformat(),
            "status": self.status.value,
            "dataSizeMB": self.data_size_mb,
            "chunkSizeKB": self.chunk_size_kb,
            "totalTxCount": self.total_tx_count,
            "allocator": self.allocator,
            "transmitter": self.transmitter,
            "targetChainCount": self.target_chain_count,
            "usedChains": self.used_chains,
            "uploadTimeMs": self.upload_time_ms,
            "downloadTimeMs": self.download_time_ms,
            "throughputBps": self.throughput_bps,
            "gasUsed": self.gas_used,
            "baseFee": self.base_fee,
            "actualFee": self.actual_fee,
            "logs": self.logs,
        }
