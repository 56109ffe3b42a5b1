"""Domain models for the supplier price-list importer."""

from .error_record import ErrorRecord
from .excel_file import FileStatus, SupplierFile
from .processing_result import FileStat, ProcessingResult
from .roles import ESSENTIAL_ROLES, EXTRA_ROLES, CanonicalRole
from .table import AnalysisMetrics, NormalizedTable

__all__ = [
    # Roles
    "CanonicalRole",
    "ESSENTIAL_ROLES",
    "EXTRA_ROLES",
    # Tables
    "NormalizedTable",
    "AnalysisMetrics",
    # Processing models
    "ErrorRecord",
    "FileStatus",
    "SupplierFile",
    "FileStat",
    "ProcessingResult",
]
