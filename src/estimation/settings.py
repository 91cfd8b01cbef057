"""Settings for cost estimation and admission control."""
from pydantic import BaseModel


class EstimationSettings(BaseModel):
    """Configuration for the admission pipeline.

    Attributes:
        stop_on_rejection: Abort the rest of a run at the first rejected
            scenario, leaving later scenarios untouched.
    """

    stop_on_rejection: bool = True
