from __future__ import annotations

import argparse
import csv
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional, Sequence

from content_renamer.config import AppConfig
from content_renamer.dates import extract_date_from_content, extract_date_from_filename
from content_renamer.errors import ConfigError
from content_renamer.extract.document_text import can_extract, get_document_text
from content_renamer.locator import resolve_config_path
from content_renamer.logging_utils import get_logger
from content_renamer.models import FileOperation
from content_renamer.naming import plan_filename, rename_unique, unique_target_path
from content_renamer.organize import organize_into_date_folders
from content_renamer.scanner import check_file_size, list_candidate_files, should_skip_already_named, validate_scan_settings
from content_renamer.settings_store import load_config, persist_last_used_path
from content_renamer.storage import LocalStorage, StorageGateway

logger = logging.getLogger(__name__)

REPORT_FIELDS = ["source", "destination", "status", "rule", "date", "notes"]


def process_file(path: Path, config: AppConfig, dry_run: bool = False) -> FileOperation:
    base_path = Path(config.base_path)
    started = time.perf_counter()
    try:
        logger.info("Processing file: %s", path.name)
        check_file_size(path)

        if should_skip_already_named(path, config):
            logger.info("File already follows naming convention, organizing: %s", path.name)
            date_str = extract_date_from_filename(path.stem)
            destination = organize_into_date_folders(path, date_str, base_path, dry_run)
            return FileOperation(str(path), str(destination), "already_named", date=date_str or None)

        if not can_extract(path):
            logger.warning("No processor available for file type: %s", path.name)
            return FileOperation(str(path), str(path), "unsupported")

        text, notes = get_document_text(path, config)
        if not text.strip():
            logger.warning("No content extracted from file: %s", path.name)
            return FileOperation(str(path), str(path), "no_content", notes=notes)

        plan = plan_filename(config.naming_rules, text, path, extract_date_from_content(text))
        rule_name = plan.rule.name if plan.rule is not None else None

        if plan.filename.lower() == path.name.lower():
            logger.info("File already has an appropriate name: %s", path.name)
            destination = organize_into_date_folders(path, plan.date, base_path, dry_run)
            return FileOperation(str(path), str(destination), "unchanged", rule_name, plan.date, notes)

        if dry_run:
            renamed = unique_target_path(path.parent, plan.filename)
        else:
            renamed = rename_unique(path, plan.filename)
            logger.info("Renaming: %s -> %s", path.name, renamed.name)
        destination = organize_into_date_folders(renamed, plan.date, base_path, dry_run)
        return FileOperation(str(path), str(destination), "renamed", rule_name, plan.date, notes)
    except Exception as exc:
        logger.exception("Error processing file: %s", path.name)
        return FileOperation(str(path), str(path), "error", notes=[f"processing_error:{type(exc).__name__}"])
    finally:
        logger.debug("Completed %s in %.0fms", path.name, (time.perf_counter() - started) * 1000)


def process_directory(config: AppConfig, dry_run: bool = False) -> List[FileOperation]:
    if not validate_scan_settings(config):
        return []

    files = list_candidate_files(config)
    logger.info(
        "Starting to process %d files in %s with parallelism degree: %d",
        len(files),
        config.base_path,
        config.max_parallelism,
    )
    started = time.perf_counter()
    with ThreadPoolExecutor(max_workers=max(1, config.max_parallelism)) as pool:
        operations = list(pool.map(lambda p: process_file(p, config, dry_run), files))
    elapsed = time.perf_counter() - started
    logger.info("Finished processing %d files in %.2f seconds", len(files), elapsed)
    return operations


def choose_base_path(config: AppConfig, requested: Optional[str]) -> tuple[str, bool]:
    """Pick the directory to scan and whether it should be remembered.

    A requested directory that exists wins and is remembered. Otherwise the
    last used directory is reused when it still exists, else ``BasePath``.
    """
    if requested:
        if Path(requested).is_dir():
            logger.debug("Using directory path from command line: %s", requested)
            return requested, True
        logger.error("Directory not found: %s", requested)
    if config.last_used_path and Path(config.last_used_path).is_dir():
        logger.info("Using last used directory path: %s", config.last_used_path)
        return config.last_used_path, False
    logger.debug("Using default directory path: %s", config.base_path)
    return config.base_path, False


def write_report(operations: Sequence[FileOperation], report_path: Path) -> None:
    with report_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=REPORT_FIELDS)
        writer.writeheader()
        for op in operations:
            row = asdict(op)
            row["notes"] = ";".join(row["notes"])
            writer.writerow(row)


def default_log_dir(storage: StorageGateway) -> Path:
    """``logs`` beside the configuration file, or under the working directory."""
    config_path, _ = resolve_config_path(storage)
    if config_path is not None:
        return Path(config_path).parent / "logs"
    return Path.cwd() / "logs"


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Rename scanned receipts and invoices from their content")
    p.add_argument("path", nargs="?", help="Directory to scan (defaults to LastUsedPath, then BasePath)")
    p.add_argument("--no-subdirs", action="store_true", help="Only scan the top-level directory")
    p.add_argument("--force", action="store_true", help="Reprocess files that already follow the naming pattern")
    p.add_argument("--dry-run", action="store_true", help="Preview renames and moves without touching files")
    p.add_argument("--report", help="Write a CSV of every file operation to this path")
    p.add_argument("--log-dir", help="Directory for the rotating log file (default: logs/ beside appsettings.json)")
    p.add_argument("--verbose", action="store_true")
    return p.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None, storage: Optional[StorageGateway] = None) -> int:
    args = parse_args(argv)
    storage = storage or LocalStorage()
    get_logger(Path(args.log_dir) if args.log_dir else default_log_dir(storage), verbose=args.verbose)
    logger.info("File content renamer starting up")

    try:
        config = load_config(storage=storage)
    except ConfigError as exc:
        logger.error("%s", exc)
        return 2

    logger.info("Using Tesseract data path: %s", config.tesseract_data_path)
    logger.info("Using Tesseract language: %s", config.tesseract_language)

    base_path, remember = choose_base_path(config, args.path)
    if not Path(base_path).is_dir():
        logger.error("Directory not found: %s", base_path)
        return 1
    config.base_path = base_path
    if remember:
        persist_last_used_path(config, base_path, storage)

    if args.no_subdirs:
        config.include_subdirectories = False
    if args.force:
        config.force_reprocess_already_named = True

    operations = process_directory(config, dry_run=args.dry_run)
    if args.report:
        write_report(operations, Path(args.report))

    errors = sum(1 for op in operations if op.status == "error")
    logger.info("Processing completed: %d files, %d errors", len(operations), errors)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
