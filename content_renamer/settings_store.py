from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from content_renamer.config import APP_SETTINGS_FILE_NAME, SETTINGS_SECTION, AppConfig, default_parallelism
from content_renamer.errors import ConfigNotFoundError, ConfigParseError, ConfigReadError, ConfigValidationError
from content_renamer.json_splice import set_string_member
from content_renamer.locator import config_candidates, resolve_config_path
from content_renamer.models import NamingRule, NamingRules
from content_renamer.storage import LocalStorage, StorageGateway

logger = logging.getLogger(__name__)

LAST_USED_PATH_KEY = "LastUsedPath"
UTF8_BOM = "\ufeff"


def _split_bom(text: str) -> tuple[str, str]:
    if text.startswith(UTF8_BOM):
        return UTF8_BOM, text[len(UTF8_BOM) :]
    return "", text


def _as_str(value: Any, field: str) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise ConfigValidationError(field, f"{field} must be a string")


def _as_bool(value: Any, field: str, default: bool) -> bool:
    if value is None:
        logger.debug("%s not set, using default: %s", field, default)
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
        return value.strip().lower() == "true"
    raise ConfigValidationError(field, f"{field} must be true or false")


def _as_int(value: Any, field: str, default: int) -> int:
    if value is None:
        logger.debug("%s not set, using default: %s", field, default)
        return default
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    raise ConfigValidationError(field, f"{field} must be an integer")


def _as_str_list(value: Any, field: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigValidationError(field, f"{field} must be a list")
    items = [_as_str(item, field) for item in value]
    return [item for item in items if item is not None]


def _as_section(value: Any, field: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigValidationError(field, f"{field} must be an object")
    return value


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def bind_naming_rule(raw: Any, index: int) -> NamingRule:
    field = f"NamingRules.Rules[{index}]"
    section = _as_section(raw, field)
    rule = NamingRule(
        name=_as_str(section.get("Name"), f"{field}.Name") or "",
        keywords=_as_str_list(section.get("Keywords"), f"{field}.Keywords"),
        service_name=_as_str(section.get("ServiceName"), f"{field}.ServiceName") or "",
        payment_method=_as_str(section.get("PaymentMethod"), f"{field}.PaymentMethod") or "",
        date_override=_as_str(section.get("DateOverride"), f"{field}.DateOverride") or None,
    )
    if not rule.is_valid():
        logger.warning("Naming rule #%d has no Name", index)
    if not rule.keywords:
        logger.debug("Naming rule '%s' has no keywords and will never match", rule.name)
    return rule


def bind_naming_rules(raw: Any) -> NamingRules:
    section = _as_section(raw, "NamingRules")
    rules_raw = section.get("Rules")
    if rules_raw is not None and not isinstance(rules_raw, list):
        raise ConfigValidationError("NamingRules.Rules", "NamingRules.Rules must be a list")
    return NamingRules(
        rules=[bind_naming_rule(item, i) for i, item in enumerate(rules_raw or [])],
        default_service_name=_as_str(section.get("DefaultServiceName"), "NamingRules.DefaultServiceName") or "",
        default_payment_method=_as_str(section.get("DefaultPaymentMethod"), "NamingRules.DefaultPaymentMethod") or "",
    )


def bind_app_config(raw: Any) -> AppConfig:
    section = _as_section(raw, SETTINGS_SECTION)
    return AppConfig(
        base_path=_as_str(section.get("BasePath"), "BasePath") or "",
        last_used_path=_as_str(section.get(LAST_USED_PATH_KEY), LAST_USED_PATH_KEY) or None,
        file_extensions=[e for e in _as_str_list(section.get("FileExtensions"), "FileExtensions") if e.strip()],
        include_subdirectories=_as_bool(section.get("IncludeSubdirectories"), "IncludeSubdirectories", True),
        tesseract_data_path=_as_str(section.get("TesseractDataPath"), "TesseractDataPath") or "",
        tesseract_language=_as_str(section.get("TesseractLanguage"), "TesseractLanguage") or "",
        force_reprocess_already_named=_as_bool(
            section.get("ForceReprocessAlreadyNamed"), "ForceReprocessAlreadyNamed", False
        ),
        max_parallelism=_as_int(section.get("MaxDegreeOfParallelism"), "MaxDegreeOfParallelism", default_parallelism()),
        naming_rules=bind_naming_rules(section.get("NamingRules")),
    )


def validate_app_config(config: AppConfig) -> None:
    if _blank(config.base_path):
        raise ConfigValidationError("BasePath")
    if not config.file_extensions:
        raise ConfigValidationError("FileExtensions", "FileExtensions is missing or empty in configuration file")
    if _blank(config.tesseract_data_path):
        raise ConfigValidationError("TesseractDataPath")
    if _blank(config.tesseract_language):
        raise ConfigValidationError("TesseractLanguage")
    if _blank(config.naming_rules.default_service_name):
        raise ConfigValidationError("NamingRules.DefaultServiceName")
    if _blank(config.naming_rules.default_payment_method):
        raise ConfigValidationError("NamingRules.DefaultPaymentMethod")
    if config.max_parallelism < 1:
        logger.warning(
            "MaxDegreeOfParallelism must be positive (got %d), using %d",
            config.max_parallelism,
            default_parallelism(),
        )
        config.max_parallelism = default_parallelism()


def _absolute_from(config_path: Path, value: str, storage: StorageGateway) -> Path:
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = Path(config_path).parent / path
    return storage.get_full_path(path)


def load_config(explicit_base_path: Optional[str] = None, storage: Optional[StorageGateway] = None) -> AppConfig:
    storage = storage or LocalStorage()
    config_path, root_dir = resolve_config_path(storage)
    if config_path is None:
        base_dir = Path(storage.get_base_directory())
        raise ConfigNotFoundError(config_candidates(base_dir, root_dir, storage))
    logger.debug("Found configuration file at: %s", config_path)

    try:
        raw = storage.read_all_text(config_path)
    except UnicodeDecodeError as exc:
        raise ConfigParseError(config_path, str(exc)) from exc
    except OSError as exc:
        raise ConfigReadError(config_path, str(exc)) from exc

    try:
        document = json.loads(_split_bom(raw)[1])
    except json.JSONDecodeError as exc:
        raise ConfigParseError(config_path, str(exc)) from exc
    if not isinstance(document, dict):
        raise ConfigParseError(config_path, "top-level value must be an object")

    config = bind_app_config(document.get(SETTINGS_SECTION))
    validate_app_config(config)

    if config.last_used_path:
        if storage.directory_exists(Path(config.last_used_path)):
            logger.info("Found valid LastUsedPath in configuration: %s", config.last_used_path)
        else:
            logger.warning("LastUsedPath from configuration does not exist: %s", config.last_used_path)
    else:
        logger.debug("No LastUsedPath found in configuration")

    config.tesseract_data_path = str(_absolute_from(config_path, config.tesseract_data_path, storage))
    logger.debug(
        "Loaded NamingRules with %d rules, DefaultServiceName=%s, DefaultPaymentMethod=%s",
        len(config.naming_rules.rules),
        config.naming_rules.default_service_name,
        config.naming_rules.default_payment_method,
    )

    if explicit_base_path:
        config.base_path = explicit_base_path
    return config


def _mirror_to_root(config_path: Path, root_dir: Path, data: bytes, storage: StorageGateway) -> None:
    root_config = Path(root_dir) / APP_SETTINGS_FILE_NAME
    if not storage.file_exists(root_config):
        return
    if storage.get_full_path(root_config) == storage.get_full_path(config_path):
        return
    try:
        storage.write_all_bytes(root_config, data)
        logger.info("LastUsedPath also saved to root configuration file: %s", root_config)
    except OSError as exc:
        logger.warning("Could not save LastUsedPath to root configuration file %s: %s", root_config, exc)


def _verify_written(config_path: Path, path: str, storage: StorageGateway) -> bool:
    try:
        document = json.loads(_split_bom(storage.read_all_text(config_path))[1])
        return document[SETTINGS_SECTION][LAST_USED_PATH_KEY] == path
    except (OSError, ValueError, KeyError, TypeError) as exc:
        logger.warning("Error while verifying LastUsedPath was saved: %s", exc)
        return False


def persist_last_used_path(config: AppConfig, path: Optional[str], storage: Optional[StorageGateway] = None) -> None:
    """Record ``path`` as ``AppConfig.LastUsedPath`` in the configuration file.

    Only that one value is rewritten in place; all other content of the file,
    including keys this package does not know about, keeps its exact bytes.
    Failures are logged and never raised.
    """
    if not path:
        return
    storage = storage or LocalStorage()
    config.last_used_path = path

    try:
        config_path, root_dir = resolve_config_path(storage)
        if config_path is None:
            logger.error("Could not find %s in expected locations. Cannot save LastUsedPath.", APP_SETTINGS_FILE_NAME)
            return
        logger.debug("Using configuration file at %s to save LastUsedPath", config_path)

        bom, body = _split_bom(storage.read_all_text(config_path))
        updated = set_string_member(body, SETTINGS_SECTION, LAST_USED_PATH_KEY, path)
        data = (bom + updated).encode("utf-8")
        storage.write_all_bytes(config_path, data)
        logger.info("LastUsedPath '%s' saved to configuration file: %s", path, config_path)

        _mirror_to_root(config_path, root_dir, data, storage)

        if _verify_written(config_path, path, storage):
            logger.debug("Verified LastUsedPath was written to %s", config_path)
        else:
            logger.warning("LastUsedPath might not have been saved correctly to %s", config_path)
    except (OSError, ValueError) as exc:
        logger.error("Failed to save LastUsedPath configuration: %s", exc)
