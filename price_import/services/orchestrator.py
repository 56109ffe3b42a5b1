from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path

from ..config.loader import ImportConfig
from ..excel.analyzer import AnalysisResult, analyze_rows
from ..excel.errors import ExcelLoadError, IncompatibleHeaderError, InvalidFormatError
from ..excel.reader import DEFAULT_MAX_FILE_BYTES, DEFAULT_MAX_ROWS, read_raw_rows
from ..logging.error_log import ErrorLogBuffer
from ..models.error_record import STAGE_ANALYZE, STAGE_MERGE, STAGE_READ, ErrorRecord
from ..models.excel_file import FileStatus, SupplierFile
from ..models.processing_result import FileStat, ProcessingResult
from ..models.table import NormalizedTable
from .progress import ProgressTracker

"""Service orchestration for the price-list importer.

Coordinates a run: scanning the source directory, analyzing each supplier
file, recording failures in the error log, and aggregating metrics into a
``ProcessingResult``. A failing file never stops the batch; merge mode is
the exception and stops at the first file that cannot join the merge.
"""

__all__ = [
    "ProcessingError",
    "scan_supplier_files",
    "load_file",
    "load_and_merge",
    "merge_results",
    "process_all",
    "merge_all",
]

logger = logging.getLogger(__name__)


class ProcessingError(Exception):
    """Fatal error that prevents a run from starting."""
    pass


def scan_supplier_files(directory: Path, extensions: Sequence[str]) -> list[Path]:
    """List supported files in ``directory`` (non-recursive, sorted by name).

    Raises:
        ProcessingError: directory missing, not a directory, or unreadable
    """
    if not directory.exists():
        raise ProcessingError(f"Directory not found: {directory}")

    if not directory.is_dir():
        raise ProcessingError(f"Path is not a directory: {directory}")

    wanted = {e.lower().lstrip(".") for e in extensions}
    try:
        found = [
            p for p in directory.iterdir()
            if p.is_file() and p.suffix.lower().lstrip(".") in wanted and not p.name.startswith("~$")
        ]
    except OSError as e:
        raise ProcessingError(f"Error reading directory {directory}: {e}") from e
    return sorted(found, key=lambda p: p.name)


def _limits(config: ImportConfig | None) -> tuple[int, int]:
    if config is None:
        return DEFAULT_MAX_ROWS, DEFAULT_MAX_FILE_BYTES
    return config.max_rows, config.max_file_bytes


def load_file(path: Path, config: ImportConfig | None = None) -> AnalysisResult:
    """Read and analyze a single supplier file."""
    max_rows, max_file_bytes = _limits(config)
    raw = read_raw_rows(path, max_rows=max_rows, max_file_bytes=max_file_bytes)
    return analyze_rows(raw, source=path.name)


def merge_results(results: Sequence[AnalysisResult]) -> AnalysisResult:
    """Concatenate analyzed tables whose normalized headers are identical.

    The first result is the golden header. A column counts as synthetic in
    the merge only when no source provided it.

    Raises:
        IncompatibleHeaderError: a later header differs from the first one
        InvalidFormatError: ``results`` is empty
    """
    if not results:
        raise InvalidFormatError("no files to merge")
    golden = results[0]
    rows: list[tuple[str, ...]] = []
    synthetic = set(golden.table.synthetic_columns)
    for result in results:
        if result.table.header != golden.table.header:
            raise IncompatibleHeaderError(
                result.source or "<unknown>", golden.table.header, result.table.header
            )
        rows.extend(result.table.rows)
        synthetic &= result.table.synthetic_columns

    table = NormalizedTable(
        original_header=golden.table.original_header,
        header=golden.table.header,
        rows=tuple(rows),
        synthetic_columns=frozenset(synthetic),
    )
    return replace(
        golden,
        table=table,
        dropped_summary_rows=sum(r.dropped_summary_rows for r in results),
        header_map=table.header_map(),
    )


def load_and_merge(paths: Sequence[Path], config: ImportConfig | None = None) -> AnalysisResult:
    """Analyze ``paths`` in order and merge them into one table.

    Files are processed sequentially and the first incompatible header
    aborts the merge; no partial result is returned.
    """
    results: list[AnalysisResult] = []
    for path in paths:
        result = load_file(path, config)
        if results and result.table.header != results[0].table.header:
            raise IncompatibleHeaderError(path.name, results[0].table.header, result.table.header)
        results.append(result)
    merged = merge_results(results)
    logger.debug("merged files=%d rows=%d", len(results), len(merged.table.rows))
    return merged


def _error_type_of(exc: Exception) -> str:
    if isinstance(exc, ExcelLoadError):
        return exc.error_type
    if isinstance(exc, OSError):
        return "FILE_ACCESS_ERROR"
    return "PROCESSING_ERROR"


def _process_single_file(
    file_path: Path,
    config: ImportConfig,
    error_log: ErrorLogBuffer,
) -> SupplierFile:
    """Read and analyze one file; failures are recorded, never raised."""
    start_time = datetime.now(UTC)
    stage = STAGE_READ
    try:
        max_rows, max_file_bytes = _limits(config)
        raw = read_raw_rows(file_path, max_rows=max_rows, max_file_bytes=max_file_bytes)
        stage = STAGE_ANALYZE
        result = analyze_rows(raw, source=file_path.name)
    except Exception as e:
        error_type = _error_type_of(e)
        error_log.append(
            ErrorRecord.create(file=file_path.name, stage=stage, error_type=error_type, message=str(e))
        )
        logger.error("file=%s stage=%s error_type=%s message=%s", file_path.name, stage, error_type, e)
        return SupplierFile(
            path=file_path,
            name=file_path.name,
            status=FileStatus.FAILED,
            start_time=start_time,
            end_time=datetime.now(UTC),
            error=str(e),
            error_type=error_type,
        )

    return SupplierFile(
        path=file_path,
        name=file_path.name,
        status=FileStatus.SUCCESS,
        result=result,
        start_time=start_time,
        end_time=datetime.now(UTC),
    )


def _report_analysis(name: str, result: AnalysisResult, config: ImportConfig) -> None:
    metrics = result.metrics
    logger.info(
        "file=%s rows=%d columns=%d confidence=%.2f dropped_summary=%d",
        name,
        len(result.table.rows),
        result.table.width,
        metrics.confidence_score,
        result.dropped_summary_rows,
    )
    for issue in metrics.issues:
        logger.warning("file=%s issue=%s", name, issue)
    if metrics.confidence_score < config.low_confidence_threshold:
        logger.warning(
            "file=%s low confidence %.2f < %.2f, check the column roles",
            name,
            metrics.confidence_score,
            config.low_confidence_threshold,
        )


def _file_stat(file: SupplierFile) -> FileStat:
    result = file.result
    if result is None:
        return FileStat(
            file_name=file.name,
            status=file.status.value,
            data_rows=0,
            elapsed_seconds=file.elapsed_seconds,
        )
    return FileStat(
        file_name=file.name,
        status=file.status.value,
        data_rows=len(result.table.rows),
        elapsed_seconds=file.elapsed_seconds,
        confidence=result.metrics.confidence_score,
        issues=len(result.metrics.issues),
        dropped_summary_rows=result.dropped_summary_rows,
    )


def _resolve_paths(config: ImportConfig, paths: Sequence[Path] | None) -> list[Path]:
    if paths:
        return list(paths)
    return scan_supplier_files(Path(config.source_directory), config.file_extensions)


def _finish(
    start_time: datetime,
    total_files: int,
    file_stats: list[FileStat],
    error_log: ErrorLogBuffer,
) -> ProcessingResult:
    # A failing flush must not hide the import results.
    try:
        log_path = error_log.flush()
    except OSError as e:
        logger.error("error log flush failed: %s", e)
        log_path = None
    end_time = datetime.now(UTC)
    return ProcessingResult(
        success_files=sum(1 for s in file_stats if s.status == FileStatus.SUCCESS.value),
        failed_files=sum(1 for s in file_stats if s.status == FileStatus.FAILED.value),
        total_rows=sum(s.data_rows for s in file_stats if s.status == FileStatus.SUCCESS.value),
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        file_stats=file_stats,
        error_log_path=str(log_path) if log_path is not None else None,
        total_files=total_files,
    )


def process_all(
    config: ImportConfig,
    paths: Sequence[Path] | None = None,
    *,
    error_log: ErrorLogBuffer | None = None,
) -> ProcessingResult:
    """Analyze every supplier file of a run.

    Args:
        config: import configuration
        paths: explicit files; when empty the configured directory is scanned
        error_log: buffer for failure records (a fresh one by default)

    Raises:
        ProcessingError: the source directory cannot be scanned
    """
    start_time = datetime.now(UTC)
    error_log = error_log if error_log is not None else ErrorLogBuffer()
    file_paths = _resolve_paths(config, paths)

    file_stats: list[FileStat] = []
    if not file_paths:
        logger.info("no supplier files found")
        return _finish(start_time, len(file_paths), file_stats, error_log)

    success_count = failed_count = total_rows = 0
    with ProgressTracker(len(file_paths), description="Analyzing files") as progress:
        for file_path in file_paths:
            progress.start_file(file_path)
            file = _process_single_file(file_path, config, error_log)
            if file.status is FileStatus.SUCCESS and file.result is not None:
                success_count += 1
                total_rows += len(file.result.table.rows)
                _report_analysis(file.name, file.result, config)
            else:
                failed_count += 1
            progress.set_postfix(success=success_count, failed=failed_count, rows=total_rows)
            progress.finish_file(success=file.status is FileStatus.SUCCESS)
            file_stats.append(_file_stat(file))

    return _finish(start_time, len(file_paths), file_stats, error_log)


def merge_all(
    config: ImportConfig,
    paths: Sequence[Path] | None = None,
    *,
    error_log: ErrorLogBuffer | None = None,
) -> tuple[ProcessingResult, AnalysisResult | None]:
    """Merge run: like ``load_and_merge`` but records the failure instead of raising.

    Stops at the first failing file; files after it are not read. Returns the
    run result and the merged analysis (``None`` when the merge failed).
    """
    start_time = datetime.now(UTC)
    error_log = error_log if error_log is not None else ErrorLogBuffer()
    file_paths = _resolve_paths(config, paths)

    file_stats: list[FileStat] = []
    loaded: list[AnalysisResult] = []
    with ProgressTracker(len(file_paths), description="Merging files") as progress:
        for file_path in file_paths:
            progress.start_file(file_path)
            file = _process_single_file(file_path, config, error_log)
            if file.status is FileStatus.FAILED or file.result is None:
                file_stats.append(_file_stat(file))
                progress.finish_file(success=False)
                break
            result = file.result
            if loaded and result.table.header != loaded[0].table.header:
                err = IncompatibleHeaderError(file.name, loaded[0].table.header, result.table.header)
                error_log.append(
                    ErrorRecord.create(file=file.name, stage=STAGE_MERGE, error_type=err.error_type, message=str(err))
                )
                logger.error("file=%s stage=%s error_type=%s message=%s", file.name, STAGE_MERGE, err.error_type, err)
                file_stats.append(replace(_file_stat(file), status=FileStatus.FAILED.value))
                progress.finish_file(success=False)
                break
            loaded.append(result)
            _report_analysis(file.name, result, config)
            file_stats.append(_file_stat(file))
            progress.finish_file(success=True)

    merged: AnalysisResult | None = None
    if loaded and len(loaded) == len(file_paths):
        merged = merge_results(loaded)
        logger.info("merged files=%d rows=%d", len(loaded), len(merged.table.rows))
    return _finish(start_time, len(file_paths), file_stats, error_log), merged
