from __future__ import annotations
import json
from pathlib import Path
from price_import.logging.error_log import ErrorLogBuffer, ErrorRecord
from price_import.models.error_record import STAGE_MERGE, STAGE_READ


def test_error_record_creation_and_json_line():
    rec = ErrorRecord.create(
        file="listino.xlsx",
        stage=STAGE_READ,
        error_type="INVALID_FORMAT",
        message="invalid format: empty file",
    )
    data = json.loads(rec.to_json_line())
    assert data["file"] == "listino.xlsx"
    assert data["stage"] == "read"
    assert data["error_type"] == "INVALID_FORMAT"
    assert data["timestamp"].endswith("Z")
    assert set(data.keys()) == {"timestamp", "file", "stage", "error_type", "message"}


def test_error_record_keeps_non_ascii():
    rec = ErrorRecord.create("价格.xlsx", STAGE_READ, "INVALID_FORMAT", "è rotto")
    assert "价格.xlsx" in rec.to_json_line()


def test_empty_buffer_writes_nothing(temp_workdir: Path):
    buf = ErrorLogBuffer()
    assert buf.flush() is None
    assert list((temp_workdir / "logs").iterdir()) == []


def test_error_log_buffer_flush(temp_workdir: Path):
    buf = ErrorLogBuffer()
    buf.append(ErrorRecord.create("a.xlsx", STAGE_READ, "INVALID_FORMAT", "bad"))
    buf.append(ErrorRecord.create("b.xlsx", STAGE_MERGE, "INCOMPATIBLE_HEADER", "differs"))
    path = buf.flush()
    assert path is not None and path.exists()
    assert path.parent == Path("./logs")
    assert path.name.startswith("errors-") and path.suffix == ".log"
    lines = path.read_text(encoding="utf-8").strip().splitlines()
    assert [json.loads(line)["file"] for line in lines] == ["a.xlsx", "b.xlsx"]
    assert len(buf) == 0


def test_flush_creates_logs_dir(tmp_path: Path):
    buf = ErrorLogBuffer(logs_dir=tmp_path / "nested" / "logs")
    buf.append(ErrorRecord.create("a.xlsx", STAGE_READ, "INVALID_FORMAT", "bad"))
    path = buf.flush()
    assert path is not None and path.parent == tmp_path / "nested" / "logs"


def test_multiple_flushes_append_to_same_file(temp_workdir: Path):
    buf = ErrorLogBuffer()
    buf.append(ErrorRecord.create("a.xlsx", STAGE_READ, "INVALID_FORMAT", "one"))
    path = buf.flush()
    buf.append(ErrorRecord.create("a.xlsx", STAGE_READ, "INVALID_FORMAT", "two"))
    assert buf.flush() == path
    assert len(path.read_text(encoding="utf-8").splitlines()) == 2
