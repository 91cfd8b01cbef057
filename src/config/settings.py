# src/config/settings.py
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from src.archive.settings import ArchiveSettings
from src.config.backend import BackendConfig
from src.dashboard.settings import DashboardSettings
from src.estimation.settings import EstimationSettings
from src.execution.settings import ExecutionSettings
from src.scenario.models import SweepRequest
from src.scenario.settings import GeneratorSettings


class SystemConfig(BaseModel):
    name: str = "RaidChain Scenario Console"
    version: str = "1.0.0"
    log_level: str = "INFO"


class Settings(BaseModel):
    system: SystemConfig = Field(default_factory=SystemConfig)
    generator: GeneratorSettings = Field(default_factory=GeneratorSettings)
    estimation: EstimationSettings = Field(default_factory=EstimationSettings)
    execution: ExecutionSettings = Field(default_factory=ExecutionSettings)
    archive: ArchiveSettings = Field(default_factory=ArchiveSettings)
    dashboard: DashboardSettings = Field(default_factory=DashboardSettings)
    sweep: SweepRequest | None = None
    backend: BackendConfig = Field(default_factory=BackendConfig)

    @classmethod
    def from_yaml(cls, path: Path) -> "Settings":
        """Load settings from YAML file with env var overrides."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        data.pop("backend", None)
        backend = BackendConfig()

        return cls(
            **data,
            backend=backend,
        )
