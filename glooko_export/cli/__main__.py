from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, ExportConfig, default_config, load_config
from ..csvdata.metadata import format_metadata_for_display
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..logging.init import log_summary, setup_logging
from ..models.archive import ZipMetadata
from ..services.archive import extract_zip_metadata
from ..services.exporter import ExportError, convert_zip_to_xlsx, save_workbook
from ..services.summary import render_summary_body

"""CLI entrypoint: python -m glooko_export.cli ARCHIVE [options]

Flow:
- Load .env, then config (--config > $GLOOKO_EXPORT_CONFIG > config/export.yml > defaults)
- Validate the archive (extract_zip_metadata)
- --inspect-data: print datasets and exit
- Export to <output-dir>/<name>.xlsx and print the SUMMARY line

Exit codes:
- 0: workbook written, every dataset exported
- 2: workbook written, some datasets skipped
- 1: fatal (config, archive missing/invalid, export failure)
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

CONFIG_ENV_VAR = "GLOOKO_EXPORT_CONFIG"


def _load_env_file(path: Path, override: bool = False) -> None:
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="glooko-export",
        description="Convert a Glooko export ZIP into a multi-sheet XLSX workbook",
    )
    p.add_argument("archive", type=Path, help="Glooko export ZIP archive")
    p.add_argument("--output-dir", type=Path, default=None, help="Directory for the .xlsx file")
    p.add_argument("--name", default=None, help="Output base file name (without .xlsx)")
    p.add_argument("--config", type=Path, default=None, help="YAML config file")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print datasets of the archive and exit")
    return p.parse_args(argv)


def _resolve_config(explicit: Path | None) -> ExportConfig:
    env_path = os.getenv(CONFIG_ENV_VAR)
    if explicit is not None:
        return load_config(explicit)
    if env_path:
        return load_config(Path(env_path))
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    return default_config()


def _inspect_data(archive: Path, metadata: ZipMetadata) -> int:
    print(f"ARCHIVE: {archive.name}")
    if metadata.parsed_metadata is not None:
        print(f"  metadata: {format_metadata_for_display(metadata.parsed_metadata)}")
    for ds in metadata.csv_files:
        unit = ds.glucose_unit or "-"
        print(f"  DATASET: {ds.name} rows={ds.row_count} files={ds.file_count} unit={unit}")
        print(f"    cols={ds.column_names}")
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    if args.debug:
        logger.debug("debug mode enabled")

    _load_env_file(Path(".env"))
    try:
        cfg = _resolve_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    archive: Path = args.archive
    if not archive.is_file():
        logger.error(f"archive not found: {archive}")
        return EXIT_FATAL

    metadata = extract_zip_metadata(archive)
    if not metadata.is_valid:
        logger.error(f"invalid archive: {metadata.error}")
        return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(archive, metadata)

    logger.info(f"Exporting {len(metadata.csv_files)} datasets from: {archive}")
    error_log = ErrorLogBuffer(Path(cfg.logs_directory))
    output_dir = args.output_dir if args.output_dir is not None else Path(cfg.output_directory)
    base_name = args.name or cfg.output_basename
    try:
        result = convert_zip_to_xlsx(archive, metadata, cfg, archive_name=archive.name, error_log=error_log)
        output_path = save_workbook(result, output_dir, base_name)
    except ExportError as e:
        logger.error(f"export: {e}")
        error_log.append(ErrorRecord.create(archive.name, "", "", "EXPORT_FAILED", str(e)))
        error_log.flush()
        return EXIT_FATAL

    log_path = error_log.flush()
    if log_path is not None:
        logger.info(f"error log written: {log_path}")
    logger.info(f"workbook written: {output_path}")

    log_summary(render_summary_body(result, output_path))

    if result.has_skipped:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
