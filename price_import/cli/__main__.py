from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from price_import.config.loader import ConfigError, ImportConfig, load_config
from price_import.excel.analyzer import AnalysisResult
from price_import.excel.errors import ExcelLoadError
from price_import.logging.init import log_summary, setup_logging
from price_import.services.orchestrator import (
    ProcessingError,
    load_file,
    merge_all,
    process_all,
    scan_supplier_files,
)
from price_import.services.session import ImportSession
from price_import.services.summary import render_summary_line

"""CLI entrypoint.

Flow:
- load ``.env`` (``PRICE_IMPORT_CONFIG`` may point to the config file)
- load and validate the YAML config
- analyze the given files, or every supported file in ``source_directory``
- print one ``SUMMARY`` line and exit with the contract code

Exit codes: 0 every file analyzed, 2 some file failed (or the merge was
rejected), 1 fatal error before any file was processed.
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

DEFAULT_CONFIG_PATH = Path("config/import.yml")
CONFIG_ENV_VAR = "PRICE_IMPORT_CONFIG"


def _load_env_file(path: Path) -> None:
    """Load ``.env`` with python-dotenv; existing variables win."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=False)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="price-import",
        description="Analyze supplier price lists (.xlsx, .xls, HTML tables)",
    )
    p.add_argument("files", nargs="*", type=Path, help="Files to analyze (default: scan source_directory)")
    p.add_argument("--config", type=Path, default=None, help="YAML config path")
    p.add_argument("--merge", action="store_true", help="Merge all files into one table (headers must match)")
    p.add_argument("--inspect-data", action="store_true", help="Print detected columns & first rows then exit")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _config_path(args: argparse.Namespace) -> Path:
    if args.config is not None:
        return args.config
    env_value = os.getenv(CONFIG_ENV_VAR)
    if env_value:
        return Path(env_value)
    return DEFAULT_CONFIG_PATH


def _print_analysis(name: str, result: AnalysisResult, preview_rows: int) -> None:
    session = ImportSession.start(result.table)
    metrics = session.metrics
    print(f"FILE: {name}")
    print(f"  original_header={list(result.table.original_header)}")
    print(f"  header={list(session.header)}")
    roles = {role.value: index for role, index in session.header_map().items()}
    print(f"  roles={roles}")
    print(
        f"  rows={len(result.table.rows)} confidence={metrics.confidence_score:.2f} "
        f"dropped_summary={result.dropped_summary_rows}"
    )
    for issue in metrics.issues:
        print(f"  issue: {issue}")
    for row in session.preview_rows(preview_rows):
        print(f"    {row}")


def _inspect_data(cfg: ImportConfig, files: list[Path]) -> int:
    if not files:
        try:
            files = scan_supplier_files(Path(cfg.source_directory), cfg.file_extensions)
        except ProcessingError as e:
            print(f"inspect: {e}")
            return EXIT_FATAL
    if not files:
        print("inspect: no supplier files")
        return EXIT_SUCCESS_ALL
    failed = 0
    for f in files:
        try:
            result = load_file(f, cfg)
        except (ExcelLoadError, OSError) as e:
            print(f"FILE: {f.name}")
            print(f"  read_error: {e}")
            failed += 1
            continue
        _print_analysis(f.name, result, cfg.preview_rows)
    return EXIT_PARTIAL_FAILURE if failed else EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # Only read sys.argv when no list was given, so main([]) in tests does
    # not pick up pytest's own arguments.
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"))

    if args.debug:
        for h in logger.handlers:
            h.setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
        logger.debug("debug mode enabled")

    config_path = _config_path(args)
    try:
        cfg = load_config(config_path)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    files: list[Path] = list(args.files)
    missing = [f for f in files if not f.is_file()]
    if missing:
        logger.error(f"file not found: {', '.join(str(f) for f in missing)}")
        return EXIT_FATAL

    if not files:
        directory = Path(cfg.source_directory)
        if not directory.exists():
            logger.error(f"directory not found: {directory}")
            return EXIT_FATAL
        logger.info(f"Processing files from: {directory}")

    if args.inspect_data:
        return _inspect_data(cfg, files)

    try:
        if args.merge:
            result, merged = merge_all(cfg, files)
        else:
            result, merged = process_all(cfg, files), None
    except ProcessingError as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL

    if merged is not None:
        logger.info(
            f"merged header={list(merged.table.header)} rows={len(merged.table.rows)} "
            f"confidence={merged.metrics.confidence_score:.2f}"
        )
    if result.error_log_path:
        logger.info(f"error log: {result.error_log_path}")

    summary_line = render_summary_line(result.total_files, result)
    # log_summary adds the "SUMMARY " label itself
    log_summary(summary_line[len("SUMMARY "):])

    if result.failed_files > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
