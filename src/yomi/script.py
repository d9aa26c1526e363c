from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

__all__ = [
    "ScriptClass",
    "CodePointSpan",
    "classify",
    "char_class",
    "is_kanji",
    "is_hiragana",
    "is_katakana",
    "contains_kanji",
    "split_kanji_runs",
]


class ScriptClass(str, Enum):
    KANJI = "kanji"
    HIRAGANA = "hiragana"
    KATAKANA = "katakana"
    LATIN = "latin"
    DIGIT = "digit"
    PUNCTUATION = "punctuation"
    WHITESPACE = "whitespace"


@dataclass(frozen=True, slots=True)
class CodePointSpan:
    start: int
    end: int
    script: ScriptClass

    def slice(self, text: str) -> str:
        return text[self.start:self.end]

    def __len__(self) -> int:
        return self.end - self.start


_KANJI_EXTRAS = "々〆〇"
_PROLONGED_MARK = "ー"
_MIDDLE_DOT = "・"


def is_kanji(ch: str) -> bool:
    if not ch:
        return False
    code = ord(ch)
    return (
        0x4E00 <= code <= 0x9FFF
        or 0x3400 <= code <= 0x4DBF
        or ch in _KANJI_EXTRAS
    )


def is_hiragana(ch: str) -> bool:
    return bool(ch) and 0x3040 <= ord(ch) <= 0x309F


def is_katakana(ch: str) -> bool:
    return bool(ch) and 0x30A0 <= ord(ch) <= 0x30FF


def contains_kanji(text: str) -> bool:
    return any(is_kanji(ch) for ch in text)


def _is_latin_letter(ch: str) -> bool:
    code = ord(ch)
    if 0xFF21 <= code <= 0xFF3A or 0xFF41 <= code <= 0xFF5A:
        return True
    return ch.isalpha() and code <= 0x024F


def _is_digit(ch: str) -> bool:
    code = ord(ch)
    return 0x30 <= code <= 0x39 or 0xFF10 <= code <= 0xFF19


def _base_class(ch: str) -> ScriptClass:
    if ch.isspace():
        return ScriptClass.WHITESPACE
    if is_kanji(ch):
        return ScriptClass.KANJI
    if is_hiragana(ch):
        return ScriptClass.HIRAGANA
    if is_katakana(ch):
        return ScriptClass.KATAKANA
    if _is_digit(ch):
        return ScriptClass.DIGIT
    if _is_latin_letter(ch):
        return ScriptClass.LATIN
    return ScriptClass.PUNCTUATION


def _classify_chars(text: str) -> list[ScriptClass]:
    classes = [_base_class(ch) for ch in text]

    # Contextual marks: ー follows the kana it lengthens, ・ only joins katakana.
    for idx, ch in enumerate(text):
        if ch == _PROLONGED_MARK and idx > 0 and classes[idx - 1] is ScriptClass.HIRAGANA:
            classes[idx] = ScriptClass.HIRAGANA
        elif ch == _MIDDLE_DOT:
            before = text[idx - 1] if idx > 0 else ""
            after = text[idx + 1] if idx + 1 < len(text) else ""
            joined = (
                is_katakana(before)
                and is_katakana(after)
                and before != _MIDDLE_DOT
                and after != _MIDDLE_DOT
            )
            if not joined:
                classes[idx] = ScriptClass.PUNCTUATION

    # Digits touching a Latin letter belong to the Latin run (iPhone12).
    idx = 0
    while idx < len(classes):
        if classes[idx] not in (ScriptClass.LATIN, ScriptClass.DIGIT):
            idx += 1
            continue
        end = idx
        has_letter = False
        while end < len(classes) and classes[end] in (ScriptClass.LATIN, ScriptClass.DIGIT):
            has_letter = has_letter or classes[end] is ScriptClass.LATIN
            end += 1
        if has_letter:
            for pos in range(idx, end):
                classes[pos] = ScriptClass.LATIN
        idx = end
    return classes


def char_class(text: str, index: int) -> ScriptClass:
    """Class of ``text[index]`` taking neighbouring characters into account."""
    return _classify_chars(text)[index]


def classify(text: str) -> list[CodePointSpan]:
    """
    Partition ``text`` into maximal runs of one script class.

    The spans cover the whole string without gaps; characters that fit no
    other class are Punctuation.
    """
    spans: list[CodePointSpan] = []
    if not text:
        return spans
    classes = _classify_chars(text)
    start = 0
    for idx in range(1, len(text) + 1):
        if idx == len(text) or classes[idx] is not classes[start]:
            spans.append(CodePointSpan(start=start, end=idx, script=classes[start]))
            start = idx
    return spans


def split_kanji_runs(text: str) -> list[tuple[int, str, bool]]:
    """Maximal kanji / non-kanji runs of ``text`` as (offset, run, is_kanji)."""
    runs: list[tuple[int, str, bool]] = []
    start = 0
    for idx in range(1, len(text) + 1):
        if idx == len(text) or is_kanji(text[idx]) != is_kanji(text[start]):
            runs.append((start, text[start:idx], is_kanji(text[start])))
            start = idx
    return runs
