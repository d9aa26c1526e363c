from __future__ import annotations

import shlex
import unicodedata
import warnings
from dataclasses import dataclass
from typing import Callable, Optional

from .logging_utils import debug_log
from .readings import ReadingContext, align_okurigana, hiragana_to_katakana, katakana_to_hiragana
from .script import contains_kanji, is_kanji
from .tools import get_unidic_dicdir

__all__ = [
    "NLPBackend",
    "NLPBackendUnavailableError",
]


class NLPBackendUnavailableError(RuntimeError):
    """Raised when the optional NLP backend cannot be initialized."""


def _normalize_katakana(text: str) -> str:
    text = unicodedata.normalize("NFKC", text)
    text = text.replace("ヮ", "ワ").replace("ヵ", "カ").replace("ヶ", "ケ")
    return text


@dataclass
class _Morpheme:
    surface: str
    reading: str


class NLPBackend:
    """
    Fugashi-based reading source.

    An instance is a ``ReadingLookup``: it reads the whole word with MeCab,
    aligns that reading to the word's kanji runs and answers for the run at
    the requested offset. Words it cannot align fall back to reading the
    surface on its own.
    """

    def __init__(self) -> None:
        try:
            from fugashi import GenericTagger, Tagger  # type: ignore
            from fugashi import fugashi as fugashi_core  # type: ignore
        except ImportError as exc:
            raise NLPBackendUnavailableError(
                "Dictionary readings require 'fugashi' (MeCab) to be installed."
            ) from exc

        dicdir = get_unidic_dicdir()
        if dicdir:
            args = f"-d {shlex.quote(str(dicdir))}"
            feature_wrapper = getattr(fugashi_core, "UnidicFeatures29", None)
            try:
                if feature_wrapper is not None:
                    self._tagger = GenericTagger(args, feature_wrapper)
                else:
                    self._tagger = GenericTagger(args)
            except RuntimeError as exc:
                raise NLPBackendUnavailableError(
                    f"Failed to initialize UniDic dictionary at '{dicdir}': {exc}"
                ) from exc
        else:
            warnings.warn(
                "UniDic not detected; falling back to the default MeCab dictionary.",
                RuntimeWarning,
                stacklevel=2,
            )
            try:
                self._tagger = Tagger()
            except RuntimeError as exc:
                raise NLPBackendUnavailableError(
                    f"Failed to initialize the default MeCab dictionary: {exc}"
                ) from exc
        self._kakasi_converter = self._build_kakasi_converter()
        self._alignments: dict[str, dict[int, str]] = {}

    def __call__(self, surface: str, context: ReadingContext) -> str | None:
        if not contains_kanji(surface):
            return None
        aligned = self._aligned_readings(context.word)
        reading = aligned.get(context.start)
        if reading is not None and len(surface) == self._run_length(context.word, context.start):
            return reading
        return self.reading(surface)

    def reading(self, text: str) -> str | None:
        """Hiragana reading of ``text``, or None when a kanji stays unread."""
        pieces: list[str] = []
        for morpheme in self._tokenize(text):
            if contains_kanji(morpheme.surface):
                pieces.append(morpheme.reading)
            else:
                pieces.append(morpheme.surface)
        reading = katakana_to_hiragana(_normalize_katakana("".join(pieces)))
        if not reading or contains_kanji(reading):
            return None
        return reading

    def _run_length(self, word: str, start: int) -> int:
        end = start
        while end < len(word) and is_kanji(word[end]):
            end += 1
        return end - start

    def _aligned_readings(self, word: str) -> dict[int, str]:
        cached = self._alignments.get(word)
        if cached is not None:
            return cached
        result: dict[int, str] = {}
        reading = self.reading(word)
        aligned = align_okurigana(word, reading) if reading else None
        if aligned is None:
            debug_log(f"could not align reading {reading!r} to {word!r}")
        else:
            offset = 0
            for part, part_reading in aligned:
                if part_reading:
                    result[offset] = part_reading
                offset += len(part)
        self._alignments[word] = result
        return result

    def _tokenize(self, text: str) -> list[_Morpheme]:
        morphemes: list[_Morpheme] = []
        if not text:
            return morphemes
        previous_reading = ""
        for raw in self._tagger(text):
            surface = raw.surface
            if not surface:
                continue
            reading = self._extract_reading(raw)
            if not reading or contains_kanji(reading):
                reading = self._reading_by_character(surface, previous_reading)
            morphemes.append(_Morpheme(surface=surface, reading=reading))
            previous_reading = reading if contains_kanji(surface) else ""
        return morphemes

    def _reading_by_character(self, surface: str, previous_reading: str) -> str:
        chars: list[str] = []
        for ch in surface:
            if is_kanji(ch):
                if ch == "々" and (chars or previous_reading):
                    chars.append(chars[-1] if chars else previous_reading)
                else:
                    chars.append(self._reading_for_char(ch))
            else:
                chars.append(ch)
        return "".join(chars)

    def _reading_for_char(self, ch: str) -> str:
        for raw in self._tagger(ch):
            reading = self._extract_reading(raw)
            if reading and not contains_kanji(reading):
                return reading
        if self._kakasi_converter is not None:
            converted = self._kakasi_converter(ch)
            if converted:
                return _normalize_katakana(hiragana_to_katakana(converted))
        return ch

    def _extract_reading(self, token) -> str:
        feature = getattr(token, "feature", None)
        value: Optional[str] = None
        for attr in ("kana", "reading", "reading_form", "pron", "pronunciation"):
            if feature is None:
                break
            attr_val = None
            if hasattr(feature, attr):
                attr_val = getattr(feature, attr)
            else:
                try:
                    attr_val = feature[attr]
                except Exception:  # pragma: no cover - feature object may not be subscriptable
                    attr_val = None
            if attr_val and attr_val != "*":
                value = attr_val
                break
        if not value:
            return ""
        return _normalize_katakana(hiragana_to_katakana(str(value)))

    def _build_kakasi_converter(self) -> Optional[Callable[[str], str]]:
        try:
            from pykakasi import kakasi  # type: ignore
        except ImportError:
            debug_log("pykakasi not installed; single-kanji fallback disabled")
            return None

        kk = kakasi()

        def _convert(text: str) -> str:
            try:
                result = kk.convert(text)
            except Exception:  # pragma: no cover - kakasi errors are rare
                return text
            if isinstance(result, list):
                converted = "".join(item.get("hira") or item.get("orig", "") for item in result)
                return converted or text
            return str(result)

        return _convert
