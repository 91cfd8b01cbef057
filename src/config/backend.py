"""Connection settings for the RaidChain backend."""
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from pydantic_settings import BaseSettings, SettingsConfigDict


class BackendConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="RAIDCHAIN_")

    base_url: str = "http://localhost:8080"
    timeout_seconds: float = 30.0
    progress_timeout_seconds: float | None = None

    @asynccontextmanager
    async def client(
        self, existing: httpx.AsyncClient | None = None
    ) -> AsyncIterator[httpx.AsyncClient]:
        """Yield ``existing`` untouched, or a short-lived client for this backend."""
        if existing is not None:
            yield existing
            return

        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout_seconds,
        ) as client:
            yield client
