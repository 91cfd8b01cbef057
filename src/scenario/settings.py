"""Settings for the scenario generator."""
from pydantic import BaseModel, Field


class GeneratorSettings(BaseModel):
    """Configuration for scenario generation."""

    fallback_project_name: str = Field(default="Exp", min_length=1)
    budget_limit: int = Field(default=1000, gt=0)
