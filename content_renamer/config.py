from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Optional

from content_renamer.models import NamingRules


APP_SETTINGS_FILE_NAME = "appsettings.json"
SETTINGS_SECTION = "AppConfig"

PROJECT_MARKER_FILE = "pyproject.toml"
PROJECT_MARKER_DIRS = ("content_renamer", "tessdata")

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".tif", ".tiff"}
TEXT_EXTENSIONS = {".txt"}
PDF_EXTENSIONS = {".pdf"}

PDF_MAX_PAGES = 3
MIN_TEXT_LENGTH_FOR_OCR_SKIP = 100
TEXT_FILE_MAX_CHARS = 1000
LARGE_FILE_BYTES = 50 * 1024 * 1024


def default_parallelism() -> int:
    return os.cpu_count() or 1


@dataclass
class AppConfig:
    base_path: str = ""
    last_used_path: Optional[str] = None
    file_extensions: List[str] = field(default_factory=list)
    include_subdirectories: bool = True
    tesseract_data_path: str = ""
    tesseract_language: str = ""
    force_reprocess_already_named: bool = False
    max_parallelism: int = field(default_factory=default_parallelism)
    naming_rules: NamingRules = field(default_factory=NamingRules)

    def normalized_extensions(self) -> set[str]:
        out = set()
        for ext in self.file_extensions:
            ext = ext.strip().lower()
            if ext and not ext.startswith("."):
                ext = "." + ext
            if ext:
                out.add(ext)
        return out
