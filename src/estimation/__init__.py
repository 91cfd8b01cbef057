"""Cost estimation and admission control."""

from .admission import AdmissionPipeline, ESTIMATION_FAILED_REASON, insufficient_funds_reason
from .estimator import BaseEstimator, EstimatorError, HttpEstimator
from .ledger import ShadowLedger
from .models import AdmissionReport, EstimateQuote
from .settings import EstimationSettings

__all__ = [
    "AdmissionPipeline",
    "AdmissionReport",
    "BaseEstimator",
    "ESTIMATION_FAILED_REASON",
    "EstimateQuote",
    "EstimationSettings",
    "EstimatorError",
    "HttpEstimator",
    "ShadowLedger",
    "insufficient_funds_reason",
]
