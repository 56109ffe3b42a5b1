from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..excel.analyzer import AnalysisResult

"""SupplierFile model: processing context of one imported file.

State transitions: pending -> processing -> (success | failed)
"""


class FileStatus(Enum):
    """Lifecycle of a supplier file within a run."""
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class SupplierFile:
    """Outcome of importing a single supplier file."""
    path: Path
    name: str
    status: FileStatus = FileStatus.PENDING
    result: AnalysisResult | None = None  # set on success
    start_time: datetime | None = None
    end_time: datetime | None = None
    error: str | None = None  # failure reason summary
    error_type: str | None = None  # UPPER_SNAKE classification of the failure

    @property
    def elapsed_seconds(self) -> float:
        if self.start_time is None or self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()
