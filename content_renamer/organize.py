from __future__ import annotations

import logging
import shutil
import threading
from datetime import date
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

MONTH_NAMES = {
    1: "enero",
    2: "febrero",
    3: "marzo",
    4: "abril",
    5: "mayo",
    6: "junio",
    7: "julio",
    8: "agosto",
    9: "septiembre",
    10: "octubre",
    11: "noviembre",
    12: "diciembre",
}

_move_lock = threading.Lock()


def month_folder_name(month: int) -> str:
    return f"{month:02d}_{MONTH_NAMES.get(month, 'unknown')}"


def parse_iso_date(value: str) -> Optional[date]:
    try:
        return date.fromisoformat(value.strip())
    except (AttributeError, ValueError):
        return None


def _deduplicate(destination: Path) -> Path:
    if not destination.exists():
        return destination
    i = 2
    while True:
        candidate = destination.with_name(f"{destination.stem}_{i}{destination.suffix}")
        if not candidate.exists():
            return candidate
        i += 1


def target_directory(base_path: Path, file_date: date) -> Path:
    return base_path / str(file_date.year) / month_folder_name(file_date.month)


def organize_into_date_folders(file_path: Path, date_str: str, base_path: Path, dry_run: bool = False) -> Path:
    file_date = parse_iso_date(date_str) if date_str else None
    if file_date is None:
        return file_path

    destination_dir = target_directory(base_path, file_date)
    if file_path.parent.resolve() == destination_dir.resolve():
        return file_path

    if dry_run:
        return destination_dir / file_path.name

    with _move_lock:
        if not destination_dir.exists():
            logger.info("Creating target folder: %s", destination_dir)
            destination_dir.mkdir(parents=True, exist_ok=True)
        destination = _deduplicate(destination_dir / file_path.name)
        logger.info("Moving file to organized structure: %s -> %s", file_path.name, destination)
        shutil.move(str(file_path), str(destination))
    return destination
