"""Cost estimator interface and its HTTP implementation."""
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation

import httpx

from src.config.backend import BackendConfig
from src.estimation.models import EstimateQuote
from src.scenario.models import Scenario


class EstimatorError(RuntimeError):
    """Raised when a price cannot be obtained for a scenario."""


class BaseEstimator(ABC):
    """Prices scenarios. Must be side-effect free from the engine's view."""

    @abstractmethod
    async def estimate(self, scenario: Scenario) -> EstimateQuote:
        """Quote the cost of running a scenario.

        Raises:
            EstimatorError: On transport or validation failures.
        """
        pass


class HttpEstimator(BaseEstimator):
    """Estimator backed by ``POST /api/experiment/estimate``."""

    def __init__(self, config: BackendConfig, client: httpx.AsyncClient | None = None):
        self._config = config
        self._client = client

    async def estimate(self, scenario: Scenario) -> EstimateQuote:
        try:
            async with self._config.client(self._client) as client:
                response = await client.post(
                    "/api/experiment/estimate",
                    json=scenario.to_payload(),
                )
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise EstimatorError(f"Estimate request failed: {e}") from e

        try:
            cost = Decimal(str(data["cost"]))
        except (KeyError, TypeError, InvalidOperation) as e:
            raise EstimatorError(f"Malformed estimate response: {data!r}") from e

        if cost < 0:
            raise EstimatorError(f"Negative estimate: {cost}")

        return EstimateQuote(cost=cost)
