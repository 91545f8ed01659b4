from __future__ import annotations

import json
from dataclasses import dataclass, field
from json.decoder import JSONDecodeError, scanstring
from typing import List

_WHITESPACE = " \t\n\r"
_DECODER = json.JSONDecoder()


class SpliceError(ValueError):
    pass


@dataclass(frozen=True)
class Member:
    key: str
    key_start: int
    value_start: int
    value_end: int


@dataclass(frozen=True)
class ObjectSpan:
    start: int
    end: int
    members: List[Member] = field(default_factory=list)

    def last(self, key: str) -> Member | None:
        found = [m for m in self.members if m.key == key]
        return found[-1] if found else None


def _skip_ws(text: str, idx: int) -> int:
    while idx < len(text) and text[idx] in _WHITESPACE:
        idx += 1
    return idx


def scan_object(text: str, start: int = 0) -> ObjectSpan:
    """Locate every member of the JSON object starting at ``start``.

    Only offsets are recorded; values are validated with the stdlib decoder
    but never re-serialized, so untouched members keep their exact bytes.
    """
    idx = _skip_ws(text, start)
    if idx >= len(text) or text[idx] != "{":
        raise JSONDecodeError("Expecting object", text, idx)
    open_idx = idx
    members: List[Member] = []
    idx = _skip_ws(text, idx + 1)
    if idx < len(text) and text[idx] == "}":
        return ObjectSpan(open_idx, idx + 1, members)

    while True:
        if idx >= len(text) or text[idx] != '"':
            raise JSONDecodeError("Expecting property name enclosed in double quotes", text, idx)
        key_start = idx
        key, idx = scanstring(text, idx + 1)
        idx = _skip_ws(text, idx)
        if idx >= len(text) or text[idx] != ":":
            raise JSONDecodeError("Expecting ':' delimiter", text, idx)
        value_start = _skip_ws(text, idx + 1)
        _, value_end = _DECODER.raw_decode(text, value_start)
        members.append(Member(key, key_start, value_start, value_end))

        idx = _skip_ws(text, value_end)
        if idx < len(text) and text[idx] == ",":
            idx = _skip_ws(text, idx + 1)
            continue
        if idx < len(text) and text[idx] == "}":
            return ObjectSpan(open_idx, idx + 1, members)
        raise JSONDecodeError("Expecting ',' delimiter", text, idx)


def scan_document(text: str) -> ObjectSpan:
    root = scan_object(text, 0)
    tail = _skip_ws(text, root.end)
    if tail != len(text):
        raise JSONDecodeError("Extra data", text, tail)
    return root


def _newline(text: str) -> str:
    return "\r\n" if "\r\n" in text else "\n"


def _line_prefix(text: str, idx: int) -> str:
    line_start = text.rfind("\n", 0, idx) + 1
    return text[line_start:idx]


def set_string_member(text: str, section: str, key: str, value: str) -> str:
    """Return ``text`` with ``section.key`` set to ``value``.

    Existing occurrences of the key have only their value replaced. A missing
    key is appended after the section's last member using that member's
    indentation. Every other byte of ``text`` is kept.
    """
    root = scan_document(text)
    section_member = root.last(section)
    if section_member is None:
        raise SpliceError(f"section {section!r} not found")
    try:
        obj = scan_object(text, section_member.value_start)
    except JSONDecodeError as exc:
        raise SpliceError(f"section {section!r} is not an object") from exc

    encoded = json.dumps(value, ensure_ascii=False)
    existing = [m for m in obj.members if m.key == key]
    if existing:
        for member in reversed(existing):
            text = text[: member.value_start] + encoded + text[member.value_end :]
        return text

    entry = f"{json.dumps(key, ensure_ascii=False)}: {encoded}"
    nl = _newline(text)
    if obj.members:
        last = obj.members[-1]
        prefix = _line_prefix(text, last.key_start)
        separator = nl + prefix if not prefix.strip() else " "
        return text[: last.value_end] + "," + separator + entry + text[last.value_end :]

    prefix = _line_prefix(text, obj.start)
    outer = prefix[: len(prefix) - len(prefix.lstrip())]
    body = f"{nl}{outer}  {entry}{nl}{outer}"
    return text[: obj.start + 1] + body + text[obj.end - 1 :]
