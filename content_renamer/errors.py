from __future__ import annotations

from pathlib import Path
from typing import Optional


class ConfigError(Exception):
    """Base class for configuration failures that stop a run."""


class ConfigNotFoundError(ConfigError, FileNotFoundError):
    def __init__(self, searched: Optional[list[Path]] = None):
        self.searched = list(searched or [])
        locations = ", ".join(str(p) for p in self.searched) or "no locations"
        super().__init__(f"Configuration file appsettings.json not found (searched: {locations})")


class ConfigReadError(ConfigError):
    def __init__(self, path: Path, reason: str):
        self.path = path
        super().__init__(f"Failed to read configuration from {path}: {reason}")


class ConfigParseError(ConfigError, ValueError):
    def __init__(self, path: Path, detail: str):
        self.path = path
        self.detail = detail
        super().__init__(f"Configuration file {path} is not valid JSON: {detail}")


class ConfigValidationError(ConfigError):
    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message or f"{field} is missing or empty in configuration file")
