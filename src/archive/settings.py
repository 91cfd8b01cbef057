"""Settings for the results archive."""
from pydantic import BaseModel, Field


class ArchiveSettings(BaseModel):
    """Configuration for the results archive.

    Attributes:
        enabled: Persist results to disk. When disabled results live in memory only.
        data_dir: Directory holding ``results.json``.
        max_results: Oldest results beyond this count are dropped.
    """

    enabled: bool = True
    data_dir: str = "data/results"
    max_results: int = Field(default=1000, ge=1)
