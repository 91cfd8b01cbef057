"""Results archive for finished experiments."""

from .models import ExperimentResult, ResultStatus
from .results_archive import ResultsArchive
from .settings import ArchiveSettings

__all__ = ["ArchiveSettings", "ExperimentResult", "ResultStatus", "ResultsArchive"]
