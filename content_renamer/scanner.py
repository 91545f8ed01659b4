from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List

from content_renamer.config import LARGE_FILE_BYTES, AppConfig
from content_renamer.naming import is_already_named

logger = logging.getLogger(__name__)


def validate_scan_settings(config: AppConfig) -> bool:
    if not config.base_path:
        logger.error("Configuration error: BasePath is not set")
        return False
    if not Path(config.base_path).is_dir():
        logger.error("Configuration error: BasePath does not exist: %s", config.base_path)
        return False
    if not config.file_extensions:
        logger.error("Configuration error: No file extensions configured")
        return False
    return True


def iter_candidate_files(config: AppConfig) -> Iterable[Path]:
    root = Path(config.base_path)
    extensions = config.normalized_extensions()
    walker = root.rglob("*") if config.include_subdirectories else root.glob("*")
    for path in walker:
        if path.is_file() and path.suffix.lower() in extensions:
            yield path


def list_candidate_files(config: AppConfig) -> List[Path]:
    return sorted(iter_candidate_files(config))


def should_skip_already_named(path: Path, config: AppConfig) -> bool:
    if config.force_reprocess_already_named:
        return False
    return is_already_named(path.stem)


def check_file_size(path: Path) -> None:
    try:
        size = path.stat().st_size
    except OSError as exc:
        logger.warning("Could not check file size for %s: %s", path.name, exc)
        return
    if size > LARGE_FILE_BYTES:
        logger.warning("Large file detected: %s (%d MB)", path.name, size // (1024 * 1024))
    elif size == 0:
        logger.warning("Empty file detected: %s", path.name)
