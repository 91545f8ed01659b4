from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List, Optional, Set


def _key(path) -> Path:
    return Path(os.path.normpath(str(path)))


class MemoryStorage:
    """In-memory storage gateway for configuration tests."""

    def __init__(self, base_directory: str = "/mock/app"):
        self.base_directory = _key(base_directory)
        self.files: Dict[Path, str] = {}
        self.directories: Set[Path] = {self.base_directory}
        self.fail_reads: Set[Path] = set()
        self.fail_writes: Set[Path] = set()
        self.stale_writes: Set[Path] = set()
        self.writes: List[Path] = []

    def add_file(self, path, content: str) -> Path:
        key = _key(path)
        self.files[key] = content
        parent = key.parent
        while parent != parent.parent:
            self.directories.add(parent)
            parent = parent.parent
        return key

    def add_directory(self, path) -> None:
        self.directories.add(_key(path))

    def content(self, path) -> Optional[str]:
        return self.files.get(_key(path))

    def file_exists(self, path) -> bool:
        return _key(path) in self.files

    def directory_exists(self, path) -> bool:
        return _key(path) in self.directories

    def read_all_text(self, path) -> str:
        key = _key(path)
        if key in self.fail_reads:
            raise PermissionError(f"Permission denied: {key}")
        if key not in self.files:
            raise FileNotFoundError(f"File not found: {key}")
        return self.files[key]

    def write_all_bytes(self, path, data: bytes) -> None:
        key = _key(path)
        if key in self.fail_writes:
            raise PermissionError(f"Permission denied: {key}")
        self.writes.append(key)
        if key not in self.stale_writes:
            self.files[key] = data.decode("utf-8")

    def get_base_directory(self) -> Path:
        return self.base_directory

    def get_parent_directory(self, path) -> Optional[Path]:
        key = _key(path)
        return None if key.parent == key else key.parent

    def get_full_path(self, path) -> Path:
        path = Path(path)
        if not path.is_absolute():
            path = self.base_directory / path
        return _key(path)
