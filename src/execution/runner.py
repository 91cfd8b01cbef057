"""Batch runner interface and its HTTP implementation."""
from abc import ABC, abstractmethod

import httpx

from src.config.backend import BackendConfig
from src.scenario.models import Scenario


class RunnerError(RuntimeError):
    """Raised when a batch cannot be submitted."""


class BaseRunner(ABC):
    """Submits admitted scenarios for execution on the test network."""

    @abstractmethod
    async def run(self, scenarios: list[Scenario]) -> str:
        """Submit a batch and return its execution id.

        Raises:
            RunnerError: On transport or validation failures.
        """
        pass


class HttpRunner(BaseRunner):
    """Runner backed by ``POST /api/experiment/run``."""

    def __init__(self, config: BackendConfig, client: httpx.AsyncClient | None = None):
        self._config = config
        self._client = client

    async def run(self, scenarios: list[Scenario]) -> str:
        try:
            async with self._config.client(self._client) as client:
                response = await client.post(
                    "/api/experiment/run",
                    json={"scenarios": [s.to_payload() for s in scenarios]},
                )
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise RunnerError(f"Run request failed: {e}") from e

        execution_id = data.get("executionId") if isinstance(data, dict) else None
        if not execution_id:
            raise RunnerError(f"Run response has no executionId: {data!r}")
        return str(execution_id)
