from __future__ import annotations

from dataclasses import replace
from typing import Iterable

from .logging_utils import debug_log
from .readings import ReadingContext, ReadingLookup, clean_reading
from .script import split_kanji_runs
from .tokens import ReadingSegment, Token, TokenKind

__all__ = ["annotate", "annotate_tokens"]

# Longest piece tried when breaking an unknown compound into known words.
_MAX_COMPOUND_PIECE = 8
_ITERATION_MARK = "々"


def _lookup_reading(lookup: ReadingLookup, surface: str, word: str, start: int) -> str | None:
    try:
        return clean_reading(lookup(surface, ReadingContext(word=word, start=start)))
    except LookupError:
        return None


def _compound_pieces(
    run: str,
    word: str,
    offset: int,
    lookup: ReadingLookup,
) -> list[ReadingSegment] | None:
    """Fewest known pieces covering ``run``, or None without real compound evidence."""
    size = len(run)
    readings: dict[tuple[int, int], str] = {}
    count: list[int | None] = [None] * (size + 1)
    next_end = [size] * (size + 1)
    count[size] = 0
    for start in range(size - 1, -1, -1):
        for end in range(min(size, start + _MAX_COMPOUND_PIECE), start, -1):
            if start == 0 and end == size:
                continue
            rest = count[end]
            if rest is None:
                continue
            current = count[start]
            if current is not None and rest + 1 >= current:
                continue
            reading = _lookup_reading(lookup, run[start:end], word, offset + start)
            if reading is None:
                continue
            readings[(start, end)] = reading
            count[start] = rest + 1
            next_end[start] = end
    if count[0] is None:
        return None
    pieces: list[ReadingSegment] = []
    start = 0
    while start < size:
        end = next_end[start]
        pieces.append(ReadingSegment(run[start:end], readings[(start, end)], True))
        start = end
    if all(len(piece.surface) == 1 for piece in pieces):
        return None
    return pieces


def _per_character_reading(run: str, word: str, offset: int, lookup: ReadingLookup) -> str | None:
    readings: list[str] = []
    for idx, ch in enumerate(run):
        if ch == _ITERATION_MARK and readings:
            readings.append(readings[-1])
            continue
        reading = _lookup_reading(lookup, ch, word, offset + idx)
        if reading is None:
            return None
        readings.append(reading)
    return "".join(readings)


def _kanji_segments(
    run: str,
    word: str,
    offset: int,
    lookup: ReadingLookup | None,
) -> list[ReadingSegment]:
    if lookup is None:
        return [ReadingSegment(run)]
    reading = _lookup_reading(lookup, run, word, offset)
    if reading is not None:
        return [ReadingSegment(run, reading, True)]
    if len(run) > 1:
        pieces = _compound_pieces(run, word, offset, lookup)
        if pieces is not None:
            return pieces
        reading = _per_character_reading(run, word, offset, lookup)
        if reading is not None:
            return [ReadingSegment(run, reading, True)]
    debug_log(f"no reading for {run!r} in {word!r}")
    return [ReadingSegment(run)]


def annotate(token: Token, lookup: ReadingLookup | None = None) -> Token:
    """
    Attach reading segments to a kanji-bearing Word token.

    Non-word tokens and kana-only words come back unchanged. Each maximal
    kanji run is annotated as a whole when the lookup knows it; a run
    without any reading stays as a bare segment so the rest of the word
    (and document) is unaffected.
    """
    if token.kind is not TokenKind.WORD or not token.has_kanji:
        return token
    if lookup is None and token.reading_segments:
        return token
    segments: list[ReadingSegment] = []
    for offset, run, kanji in split_kanji_runs(token.text):
        if kanji:
            segments.extend(_kanji_segments(run, token.text, offset, lookup))
        else:
            segments.append(ReadingSegment(run))
    return replace(token, reading_segments=tuple(segments))


def annotate_tokens(tokens: Iterable[Token], lookup: ReadingLookup | None = None) -> list[Token]:
    return [annotate(token, lookup) for token in tokens]
