from __future__ import annotations

import glob
import logging
import re
import threading
from datetime import date as date_cls
from pathlib import Path
from typing import Iterable, NamedTuple, Optional

from content_renamer.models import NamingRule, NamingRules

logger = logging.getLogger(__name__)

ALREADY_NAMED_RE = re.compile(r"^[a-zA-Z0-9_]+_\d{4}-\d{2}-\d{2}_[a-zA-Z0-9_]+$")
INVALID_FILENAME_CHARS = set('<>:"/\\|?*') | {chr(c) for c in range(32)}

_target_lock = threading.Lock()


def matches(rule: NamingRule, content: str) -> bool:
    if not content or not content.strip():
        logger.debug("Rule '%s' not checked - content is empty", rule.name)
        return False
    if not rule.keywords:
        logger.debug("Rule '%s' not checked - no keywords defined", rule.name)
        return False

    haystack = content.casefold()
    missing = [kw for kw in rule.keywords if kw.casefold() not in haystack]
    if not missing:
        logger.debug("Rule '%s' matched content with keywords: %s", rule.name, ", ".join(rule.keywords))
        return True
    if len(missing) < len(rule.keywords):
        logger.debug("Rule '%s' partially matched. Missing keywords: %s", rule.name, ", ".join(missing))
    return False


def find_matching_rule(rules: Iterable[NamingRule], content: str) -> Optional[NamingRule]:
    if not content or not content.strip():
        logger.warning("Cannot find matching rule - content is empty")
        return None
    for rule in rules:
        if matches(rule, content):
            logger.debug("Found matching rule: '%s'", rule.name)
            return rule
    logger.debug("No matching rule found for content")
    return None


def _resolve(naming_rules: NamingRules, rule: Optional[NamingRule]) -> tuple[str, str]:
    service_name = rule.service_name if rule is not None else naming_rules.default_service_name
    # A matched rule with a blank payment method falls back to the global default.
    payment_method = rule.payment_method if rule is not None and rule.payment_method else naming_rules.default_payment_method
    if rule is not None:
        logger.info("Using rule '%s' for naming. Service: %s, Payment: %s", rule.name, service_name, payment_method)
    else:
        logger.warning("No matching rule found, using defaults. Service: %s, Payment: %s", service_name, payment_method)
    return service_name, payment_method


def generate_filename(naming_rules: NamingRules, content: str, date: str) -> str:
    rule = find_matching_rule(naming_rules.rules, content)
    service_name, payment_method = _resolve(naming_rules, rule)
    return f"{service_name}_{date}_{payment_method}"


def cleanup_filename(stem: str) -> str:
    if not stem:
        return "unknown_file"
    cleaned = "".join("_" if ch in INVALID_FILENAME_CHARS else ch for ch in stem)
    cleaned = re.sub(r"_{2,}", "_", cleaned).strip("_")
    return cleaned or "cleaned_file"


def is_already_named(stem: str) -> bool:
    return bool(ALREADY_NAMED_RE.match(stem))


class FilenamePlan(NamedTuple):
    filename: str
    rule: Optional[NamingRule]
    date: str


def plan_filename(naming_rules: NamingRules, content: str, source_path: Path, date: Optional[str] = None) -> FilenamePlan:
    """Target file name (stem plus the source extension) for ``content``.

    The date comes from the matched rule's ``date_override`` when set, then
    from ``date``, then today.
    """
    rule = find_matching_rule(naming_rules.rules, content)
    if rule is not None and rule.date_override:
        date = rule.date_override
    if not date:
        logger.warning("Could not extract date from content for file: %s", source_path.name)
        date = date_cls.today().isoformat()
    service_name, payment_method = _resolve(naming_rules, rule)
    stem = cleanup_filename(f"{service_name}_{date}_{payment_method}")
    return FilenamePlan(f"{stem}{source_path.suffix}", rule, date)


def unique_target_path(directory: Path, filename: str) -> Path:
    target = directory / filename
    if not target.exists():
        return target

    stem, suffix = Path(filename).stem, Path(filename).suffix
    numbered = re.compile(r"^" + re.escape(stem) + r"_(\d+)$")
    highest = 1
    for sibling in directory.glob(f"{glob.escape(stem)}*{glob.escape(suffix)}"):
        m = numbered.match(sibling.stem)
        if m:
            highest = max(highest, int(m.group(1)))
    return directory / f"{stem}_{highest + 1}{suffix}"


def rename_unique(source: Path, filename: str) -> Path:
    # Target selection and the rename share one lock.
    with _target_lock:
        target = unique_target_path(source.parent, filename)
        source.rename(target)
    return target
