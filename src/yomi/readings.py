from __future__ import annotations

import json
import re
import unicodedata
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping

from .script import is_kanji

__all__ = [
    "ReadingContext",
    "ReadingLookup",
    "mapping_lookup",
    "chain_lookups",
    "load_reading_table",
    "clean_reading",
    "hiragana_to_katakana",
    "katakana_to_hiragana",
    "align_okurigana",
]


@dataclass(frozen=True, slots=True)
class ReadingContext:
    """Where a kanji run sits: the whole word and the run's offset inside it."""

    word: str
    start: int = 0


ReadingLookup = Callable[[str, ReadingContext], "str | None"]


def hiragana_to_katakana(text: str) -> str:
    result = []
    for ch in text:
        code = ord(ch)
        if 0x3041 <= code <= 0x3096:
            result.append(chr(code + 0x60))
        elif ch == "ゝ":
            result.append("ヽ")
        elif ch == "ゞ":
            result.append("ヾ")
        else:
            result.append(ch)
    return "".join(result)


def katakana_to_hiragana(text: str) -> str:
    result = []
    for ch in text:
        code = ord(ch)
        if 0x30A1 <= code <= 0x30F6:
            result.append(chr(code - 0x60))
        elif ch == "ヽ":
            result.append("ゝ")
        elif ch == "ヾ":
            result.append("ゞ")
        else:
            result.append(ch)
    return "".join(result)


def clean_reading(value: object) -> str | None:
    """Normalize a reading from a lookup; None when it cannot go into an <rt>."""
    if not isinstance(value, str):
        return None
    reading = unicodedata.normalize("NFC", value).strip()
    if not reading or "<" in reading or ">" in reading:
        return None
    return reading


def mapping_lookup(mapping: Mapping[str, str]) -> ReadingLookup:
    table = dict(mapping)

    def _lookup(surface: str, context: ReadingContext) -> str | None:
        return table.get(surface)

    return _lookup


def chain_lookups(*lookups: ReadingLookup | None) -> ReadingLookup:
    """Ask each lookup in turn; the first usable reading wins."""
    active = [lookup for lookup in lookups if lookup is not None]

    def _lookup(surface: str, context: ReadingContext) -> str | None:
        for lookup in active:
            try:
                reading = clean_reading(lookup(surface, context))
            except LookupError:
                reading = None
            if reading:
                return reading
        return None

    return _lookup


def load_reading_table(path: Path) -> dict[str, str]:
    """
    Load a surface→reading table from JSON.

    Accepts either ``{"readings": [{"surface": ..., "reading": ...}, ...]}``
    or a flat ``{"surface": "reading"}`` object. Entries that are not strings
    are skipped.
    """
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ValueError(f"Failed to parse readings file: {path}") from exc
    if not isinstance(raw, dict):
        raise ValueError(f"{path.name} must contain a JSON object.")
    table: dict[str, str] = {}
    entries = raw.get("readings")
    if entries is None:
        for surface, reading in raw.items():
            cleaned = clean_reading(reading)
            if isinstance(surface, str) and surface and cleaned:
                table[surface] = cleaned
        return table
    if not isinstance(entries, list):
        raise ValueError(f"{path.name} must contain a 'readings' array.")
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        surface = entry.get("surface")
        reading = clean_reading(entry.get("reading"))
        if not isinstance(surface, str) or not surface or not reading:
            continue
        table[surface] = reading
    return table


def align_okurigana(word: str, reading: str) -> list[tuple[str, str | None]] | None:
    """
    Split a whole-word reading across the word's kanji runs.

    Kana in the word anchor the match, e.g. 住んでいます + すんでいます gives
    [("住", "す"), ("んでいます", None)]. Returns None when the reading does
    not fit the word's shape.
    """
    if not word:
        return None
    parts: list[tuple[str, bool]] = []
    for ch in word:
        kanji = is_kanji(ch)
        if parts and parts[-1][1] == kanji:
            parts[-1] = (parts[-1][0] + ch, kanji)
        else:
            parts.append((ch, kanji))
    pattern_parts = []
    for text, kanji in parts:
        if kanji:
            pattern_parts.append("(.+?)")
        else:
            pattern_parts.append(re.escape(katakana_to_hiragana(text)))
    match = re.fullmatch("".join(pattern_parts), katakana_to_hiragana(reading))
    if match is None:
        return None
    aligned: list[tuple[str, str | None]] = []
    groups = iter(match.groups())
    for text, kanji in parts:
        aligned.append((text, next(groups) if kanji else None))
    return aligned
