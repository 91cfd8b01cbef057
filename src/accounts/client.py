"""HTTP client for the backend economy endpoints."""
import httpx

from src.accounts.models import UserAccount
from src.config.backend import BackendConfig


class HttpAccountClient:
    """Fetches user accounts from ``/api/economy/users``."""

    def __init__(self, config: BackendConfig, client: httpx.AsyncClient | None = None):
        self._config = config
        self._client = client

    async def fetch_users(self) -> list[UserAccount]:
        """Fetch all client accounts.

        Raises:
            httpx.HTTPError: If the request fails or returns an error status.
        """
        async with self._config.client(self._client) as client:
            response = await client.get("/api/economy/users")
            response.raise_for_status()
            data = response.json()

        users = data.get("users", []) if isinstance(data, dict) else data
        return [UserAccount.from_payload(u) for u in users]
