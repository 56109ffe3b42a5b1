from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from price_import.models import FileStat, FileStatus, ProcessingResult, SupplierFile


def _result(stats):
    now = datetime.now(UTC)
    return ProcessingResult(
        success_files=2,
        failed_files=1,
        total_rows=30,
        start_time=now,
        end_time=now,
        elapsed_seconds=0.0,
        file_stats=stats,
    )


def test_average_confidence_ignores_failed_files():
    stats = [
        FileStat("a.xlsx", "success", 10, 0.1, confidence=0.9),
        FileStat("b.xlsx", "success", 20, 0.1, confidence=0.5),
        FileStat("c.xlsx", "failed", 0, 0.1),
    ]
    assert _result(stats).average_confidence == pytest.approx(0.7)


def test_average_confidence_without_files():
    assert _result(None).average_confidence == 0.0


def test_supplier_file_elapsed_seconds():
    start = datetime(2024, 1, 1, tzinfo=UTC)
    f = SupplierFile(
        path=Path("a.xlsx"),
        name="a.xlsx",
        status=FileStatus.SUCCESS,
        start_time=start,
        end_time=start + timedelta(seconds=2),
    )
    assert f.elapsed_seconds == 2.0
    assert SupplierFile(path=Path("b.xlsx"), name="b.xlsx").elapsed_seconds == 0.0
    assert SupplierFile(path=Path("b.xlsx"), name="b.xlsx").status is FileStatus.PENDING
