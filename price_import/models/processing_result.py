from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

"""Processing result models for batch imports.

``FileStat`` describes one supplier file, ``ProcessingResult`` aggregates a
whole run and feeds the SUMMARY line.
"""


@dataclass(frozen=True)
class FileStat:
    """Per-file import statistics."""
    file_name: str
    status: str  # success/failed
    data_rows: int  # rows kept after summary filtering
    elapsed_seconds: float
    confidence: float = 0.0
    issues: int = 0  # diagnostic issues reported by the scorer
    dropped_summary_rows: int = 0


@dataclass(frozen=True)
class ProcessingResult:
    """Aggregated results of one run over many files."""
    success_files: int
    failed_files: int
    total_rows: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    file_stats: list[FileStat] | None = None
    error_log_path: str | None = None
    total_files: int = 0  # files selected for the run, including ones never reached

    @property
    def average_confidence(self) -> float:
        scores = [s.confidence for s in (self.file_stats or []) if s.status == "success"]
        if not scores:
            return 0.0
        return sum(scores) / len(scores)
