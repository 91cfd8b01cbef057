"""Settings for the operator queue view."""
from pydantic import BaseModel, Field


class DashboardSettings(BaseModel):
    """Configuration for operator notices."""

    max_notices: int = Field(default=50, gt=0)
