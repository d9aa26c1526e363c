from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping

from .script import contains_kanji

__all__ = [
    "TokenKind",
    "ReadingSegment",
    "Token",
    "serialize_tokens",
    "deserialize_tokens",
]


class TokenKind(str, Enum):
    WORD = "word"
    PARTICLE = "particle"
    FOREIGN = "foreign"
    PUNCTUATION = "punctuation"
    WHITESPACE = "whitespace"


@dataclass(frozen=True, slots=True)
class ReadingSegment:
    """
    A contiguous piece of a word.

    Annotated segments are kanji runs carrying a reading; everything else in
    the word (okurigana, prefixes, kanji without a known reading) is a bare
    segment with ``reading`` left as None.
    """

    surface: str
    reading: str | None = None
    annotated: bool = False


@dataclass(frozen=True, slots=True)
class Token:
    """
    One unit of the segmented text.

    Concatenating ``text`` over a token stream reproduces the source string.
    ``reading_segments`` is only filled for kanji-bearing words once they have
    been through the annotator.
    """

    text: str
    kind: TokenKind
    reading_segments: tuple[ReadingSegment, ...] = ()

    @property
    def is_word(self) -> bool:
        return self.kind is TokenKind.WORD

    @property
    def has_kanji(self) -> bool:
        return contains_kanji(self.text)

    @property
    def is_annotated(self) -> bool:
        return any(segment.annotated for segment in self.reading_segments)


def serialize_tokens(tokens: Iterable[Token]) -> list[dict[str, object]]:
    payload: list[dict[str, object]] = []
    for token in tokens:
        entry: dict[str, object] = {
            "text": token.text,
            "kind": token.kind.value,
        }
        if token.reading_segments:
            entry["segments"] = [
                {
                    "surface": segment.surface,
                    "reading": segment.reading,
                    "annotated": segment.annotated,
                }
                for segment in token.reading_segments
            ]
        payload.append(entry)
    return payload


def _deserialize_segments(data: object) -> tuple[ReadingSegment, ...]:
    if not isinstance(data, list):
        return ()
    segments: list[ReadingSegment] = []
    for entry in data:
        if not isinstance(entry, Mapping):
            continue
        surface = entry.get("surface")
        if not isinstance(surface, str) or not surface:
            continue
        reading = entry.get("reading")
        if not isinstance(reading, str):
            reading = None
        annotated = bool(entry.get("annotated")) and reading is not None
        segments.append(ReadingSegment(surface=surface, reading=reading, annotated=annotated))
    return tuple(segments)


def deserialize_tokens(data: Iterable[Mapping[str, object]]) -> list[Token]:
    tokens: list[Token] = []
    for entry in data:
        if not isinstance(entry, Mapping):
            continue
        text = entry.get("text")
        if not isinstance(text, str) or not text:
            continue
        try:
            kind = TokenKind(entry.get("kind"))
        except ValueError:
            continue
        segments = _deserialize_segments(entry.get("segments"))
        if segments and "".join(segment.surface for segment in segments) != text:
            segments = ()
        if kind is not TokenKind.WORD:
            segments = ()
        tokens.append(Token(text=text, kind=kind, reading_segments=segments))
    return tokens
