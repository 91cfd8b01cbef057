"""Results archive persisting experiment results to a JSON file."""
import json
import logging
from pathlib import Path

import aiofiles

from src.archive.models import ExperimentResult
from src.archive.settings import ArchiveSettings


logger = logging.getLogger(__name__)


class ResultsArchive:
    """Library of finished experiment results, newest first.

    Results are stored in ``{data_dir}/results.json``. The file is loaded
    lazily on first access and rewritten after every change.
    """

    FILE_NAME = "results.json"

    def __init__(self, settings: ArchiveSettings | None = None) -> None:
        """Initialize the archive.

        Args:
            settings: Archive configuration.
        """
        self._settings = settings or ArchiveSettings()
        self._data_dir = Path(self._settings.data_dir)
        self._results: list[ExperimentResult] | None = None
        if self._settings.enabled:
            self._data_dir.mkdir(parents=True, exist_ok=True)

    @property
    def file_path(self) -> Path:
        return self._data_dir / self.FILE_NAME

    async def _load(self) -> list[ExperimentResult]:
        """Read results from disk once and cache them."""
        if self._results is not None:
            return self._results

        self._results = []
        if self._settings.enabled and self.file_path.exists():
            async with aiofiles.open(self.file_path, "r") as f:
                content = await f.read()
            self._results = [ExperimentResult.from_payload(r) for r in json.loads(content or "[]")]

        return self._results

    async def _save(self) -> None:
        if not self._settings.enabled or self._results is None:
            return

        async with aiofiles.open(self.file_path, "w") as f:
            await f.write(json.dumps([r.to_dict() for r in self._results], indent=2, default=str))

    async def register(self, result: ExperimentResult) -> bool:
        """Add a result to the front of the library.

        Returns:
            False if a result with the same id is already archived.
        """
        results = await self._load()
        if any(r.id == result.id for r in results):
            logger.debug(f"Result {result.id} already archived")
            return False

        results.insert(0, result)
        del results[self._settings.max_results:]
        await self._save()
        logger.info(f"Archived result {result.id}")
        return True

    async def list_results(self) -> list[ExperimentResult]:
        return list(await self._load())

    async def get(self, result_id: str) -> ExperimentResult | None:
        for result in await self._load():
            if result.id == result_id:
                return result
        return None

    async def delete(self, result_id: str) -> bool:
        """Remove a result by id. Returns True if something was removed."""
        results = await self._load()
        remaining = [r for r in results if r.id != result_id]
        if len(remaining) == len(results):
            return False

        self._results = remaining
        await self._save()
        return True
