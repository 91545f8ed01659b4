from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from content_renamer.config import APP_SETTINGS_FILE_NAME, PROJECT_MARKER_DIRS, PROJECT_MARKER_FILE
from content_renamer.storage import StorageGateway

logger = logging.getLogger(__name__)


def _is_project_root(directory: Path, storage: StorageGateway) -> bool:
    if storage.file_exists(directory / PROJECT_MARKER_FILE):
        return True
    return all(storage.directory_exists(directory / name) for name in PROJECT_MARKER_DIRS)


def find_project_root(start_dir: Path, storage: StorageGateway) -> Path:
    current: Optional[Path] = Path(start_dir)
    while current is not None:
        if _is_project_root(current, storage):
            return current
        parent = storage.get_parent_directory(current)
        if parent is None or parent == current:
            break
        current = parent
    logger.debug("No project markers above %s, using it as project root", start_dir)
    return Path(start_dir)


def config_candidates(base_dir: Path, root_dir: Path, storage: StorageGateway) -> list[Path]:
    base_dir = Path(base_dir)
    parent = storage.get_parent_directory(base_dir) or base_dir
    return [
        base_dir / APP_SETTINGS_FILE_NAME,
        Path(parent) / APP_SETTINGS_FILE_NAME,
        Path(root_dir) / APP_SETTINGS_FILE_NAME,
    ]


def find_config_file(base_dir: Path, root_dir: Path, storage: StorageGateway) -> Optional[Path]:
    # A directory-local file always wins over the inherited project-root file.
    for candidate in config_candidates(base_dir, root_dir, storage):
        if storage.file_exists(candidate):
            return candidate
    return None


def resolve_config_path(storage: StorageGateway) -> tuple[Optional[Path], Path]:
    base_dir = Path(storage.get_base_directory())
    root_dir = find_project_root(base_dir, storage)
    return find_config_file(base_dir, root_dir, storage), root_dir
