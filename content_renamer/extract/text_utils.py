from __future__ import annotations

import re


def normalize_extracted_text(text: str) -> str:
    """Normalize noisy OCR/PDF text before keyword and date matching."""
    if not text:
        return ""
    normalized = text.replace("\u2013", "-").replace("\u2014", "-").replace("\u2212", "-")
    normalized = normalized.replace("\u00a0", " ").replace("\x0c", "\n")
    # OCR often reads zeros inside dates as letter O.
    normalized = re.sub(r"(?<=\d)[Oo](?=\d)", "0", normalized)
    normalized = re.sub(r"(?<=\d)[lI](?=\d)", "1", normalized)
    normalized = re.sub(r"[ \t]+", " ", normalized)
    normalized = re.sub(r"\n{3,}", "\n\n", normalized)
    return normalized.strip()


def primary_language(language: str) -> str:
    return language.split("+")[0].strip() or "eng"
