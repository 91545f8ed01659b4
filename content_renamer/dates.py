from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

SPANISH_MONTHS = {
    "enero": 1,
    "febrero": 2,
    "marzo": 3,
    "abril": 4,
    "mayo": 5,
    "junio": 6,
    "julio": 7,
    "agosto": 8,
    "septiembre": 9,
    "setiembre": 9,
    "octubre": 10,
    "noviembre": 11,
    "diciembre": 12,
}

SPANISH_LONG_DATE = re.compile(r"(\d{1,2})\s+de\s+(\w+)\s+de\s+(\d{4})", re.IGNORECASE)
EMISSION_PATTERNS = [
    r"EMISIÓN:\s*(\d{1,2}/\d{1,2}/\d{4})",
    r"Fecha\s+(\d{1,2}/\d{1,2}/\d{4})",
    r"FECHA:\s*(\d{1,2}/\d{1,2}/\d{4})",
    r"emisión\s*(\d{1,2}/\d{1,2}/\d{4})",
]
DUE_PATTERNS = [
    r"vencimiento:?\s+(\d{1,2}/\d{1,2}/\d{4})",
    r"Vto\.?\s*:?\s*(\d{1,2}/\d{1,2}/\d{4})",
]
GENERIC_PATTERNS = [
    r"\b(\d{1,2}/\d{1,2}/\d{4})\b",
    r"\b(\d{1,2}-\d{1,2}-\d{4})\b",
    r"\b(\d{4}-\d{1,2}-\d{1,2})\b",
]
FILENAME_DATE = re.compile(r"(\d{4}-\d{2}-\d{2})")


def standardize_date(raw: str) -> str:
    """Convert ``dd/mm/yyyy``, ``dd-mm-yyyy`` or ``yyyy-mm-dd`` to ``yyyy-mm-dd``."""
    if not raw:
        return ""
    parts = re.split(r"[/-]", raw)
    if len(parts) != 3:
        return raw
    if len(parts[0]) == 4:
        year, month, day = parts
    else:
        day, month, year = parts
    return f"{year}-{month.zfill(2)}-{day.zfill(2)}"


def _spanish_date(day: str, month_name: str, year: str) -> str:
    month = SPANISH_MONTHS.get(month_name.lower())
    if month is None:
        logger.warning("Unknown Spanish month name: %s", month_name)
        return ""
    return f"{year}-{month:02d}-{day.zfill(2)}"


def _first_match(patterns: list[str], text: str, flags: int, label: str) -> str:
    for pattern in patterns:
        m = re.search(pattern, text, flags)
        if m:
            found = standardize_date(m.group(1))
            logger.info("Using %s date from content: %s (found: '%s')", label, found, m.group(0))
            return found
    return ""


def extract_date_from_content(text: str) -> str:
    if not text:
        return ""

    m = SPANISH_LONG_DATE.search(text)
    if m:
        found = _spanish_date(m.group(1), m.group(2), m.group(3))
        if found:
            logger.info("Using Spanish date from content: %s (found: '%s')", found, m.group(0))
            return found

    # Emission dates win over due dates.
    return (
        _first_match(EMISSION_PATTERNS, text, re.IGNORECASE, "emission")
        or _first_match(DUE_PATTERNS, text, re.IGNORECASE, "due")
        or _first_match(GENERIC_PATTERNS, text, 0, "generic")
    )


def extract_date_from_filename(stem: str) -> str:
    m = FILENAME_DATE.search(stem)
    return m.group(1) if m else ""
