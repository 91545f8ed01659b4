from __future__ import annotations

from pathlib import Path
from typing import Optional, Protocol


PACKAGE_DIR = Path(__file__).resolve().parent


class StorageGateway(Protocol):
    """File operations the configuration layer is allowed to perform.

    ``read_all_text`` returns the stored text, including a leading byte-order
    mark, and raises ``UnicodeDecodeError`` for bytes that are not UTF-8.
    ``read_all_text`` and ``write_all_bytes`` raise ``OSError`` on failure.
    ``get_parent_directory`` returns ``None`` at the filesystem root.
    """

    def file_exists(self, path: Path) -> bool: ...

    def directory_exists(self, path: Path) -> bool: ...

    def read_all_text(self, path: Path) -> str: ...

    def write_all_bytes(self, path: Path, data: bytes) -> None: ...

    def get_base_directory(self) -> Path: ...

    def get_parent_directory(self, path: Path) -> Optional[Path]: ...

    def get_full_path(self, path: Path) -> Path: ...


class LocalStorage:
    def __init__(self, base_directory: Optional[Path] = None):
        self._base_directory = Path(base_directory) if base_directory else PACKAGE_DIR

    def file_exists(self, path: Path) -> bool:
        return Path(path).is_file()

    def directory_exists(self, path: Path) -> bool:
        return Path(path).is_dir()

    def read_all_text(self, path: Path) -> str:
        return Path(path).read_text(encoding="utf-8")

    def write_all_bytes(self, path: Path, data: bytes) -> None:
        Path(path).write_bytes(data)

    def get_base_directory(self) -> Path:
        return self._base_directory

    def get_parent_directory(self, path: Path) -> Optional[Path]:
        path = Path(path)
        return None if path.parent == path else path.parent

    def get_full_path(self, path: Path) -> Path:
        return Path(path).expanduser().resolve()
