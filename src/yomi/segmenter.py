from __future__ import annotations

from typing import Sequence

from .lexicon import (
    HONORIFIC_PREFIX_SET,
    KANA_WORDS,
    LEADING_PARTICLE_GUARD,
    OKURIGANA_FINALS,
    PARTICLES,
    SuffixCover,
    decompose,
)
from .script import CodePointSpan, ScriptClass, classify
from .tokens import Token, TokenKind

__all__ = ["segment", "segment_text"]

_LEXICAL = (ScriptClass.KANJI, ScriptClass.HIRAGANA, ScriptClass.KATAKANA)
_TAIL_VOCABULARY = PARTICLES | KANA_WORDS
_LONGEST_TAIL_ENTRY = max(len(entry) for entry in _TAIL_VOCABULARY)
_PLAIN_KINDS = {
    ScriptClass.LATIN: TokenKind.FOREIGN,
    ScriptClass.DIGIT: TokenKind.FOREIGN,
    ScriptClass.WHITESPACE: TokenKind.WHITESPACE,
    ScriptClass.PUNCTUATION: TokenKind.PUNCTUATION,
}

_Piece = tuple[ScriptClass, str]


def _cover(spans: Sequence[CodePointSpan], text: str) -> list[_Piece]:
    """Turn spans into pieces covering ``text`` exactly; gaps become single characters."""
    pieces: list[_Piece] = []
    cursor = 0
    for span in sorted(spans, key=lambda item: item.start):
        start = max(span.start, cursor)
        end = min(span.end, len(text))
        if start >= end:
            continue
        for idx in range(cursor, start):
            pieces.append((ScriptClass.PUNCTUATION, text[idx]))
        pieces.append((span.script, text[start:end]))
        cursor = end
    for idx in range(cursor, len(text)):
        pieces.append((ScriptClass.PUNCTUATION, text[idx]))
    return pieces


def _in_lexical_run(pieces: Sequence[_Piece], idx: int) -> bool:
    script = pieces[idx][0]
    if script in _LEXICAL:
        return True
    # A number directly before kanji is part of that word (2023年, 5月).
    return (
        script is ScriptClass.DIGIT
        and idx + 1 < len(pieces)
        and pieces[idx + 1][0] is ScriptClass.KANJI
    )


def _word(text: str) -> Token:
    return Token(text=text, kind=TokenKind.WORD)


def _kana_tokens(pieces: Sequence[str]) -> list[Token]:
    """
    Particle and kana-word tokens for ``pieces``.

    Consecutive particles are re-split the way the decoder splits bare
    hiragana, so the markup reads back as the same particles.
    """
    tokens: list[Token] = []
    block: list[str] = []
    for piece in [*pieces, ""]:
        if piece in PARTICLES:
            block.append(piece)
            continue
        if block:
            joined = "".join(block)
            tokens.extend(
                Token(text=particle, kind=TokenKind.PARTICLE)
                for particle in decompose(joined, PARTICLES) or block
            )
            block = []
        if piece:
            tokens.append(_word(piece))
    return tokens


def _tail_allowed(first: str, count: int) -> bool:
    return not (count > 1 and first in LEADING_PARTICLE_GUARD)


def _split_at_inflection(kana: str, cover: SuffixCover) -> tuple[str, list[Token]] | None:
    """Keep the shortest inflected head whose remainder is particles or kana words."""
    for cut in range(1, len(kana)):
        if kana[cut - 1] not in OKURIGANA_FINALS:
            continue
        count = cover.count(cut)
        if count and _tail_allowed(cover.first(cut), count):
            return kana[:cut], _kana_tokens(cover.pieces(cut) or [])
    return None


def _split_after_stem(kana: str) -> tuple[str, list[Token]]:
    particles = decompose(kana, PARTICLES)
    if particles and _tail_allowed(particles[0], len(particles)):
        return "", [Token(text=piece, kind=TokenKind.PARTICLE) for piece in particles]
    cover = SuffixCover(kana, _TAIL_VOCABULARY)
    count = cover.count(0)
    first = cover.first(0)
    if count and first in PARTICLES and _tail_allowed(first, count):
        return "", _kana_tokens(cover.pieces() or [])
    split = _split_at_inflection(kana, cover)
    if split is not None:
        return split
    return kana, []


def _leading_phrase(kana: str) -> tuple[list[Token], str] | None:
    """
    Longest proper prefix made of particles and kana words that ends in a
    particle and holds at least one kana word (これは|…).
    """
    # A state is (ends_in_particle, has_kana_word) for some split of kana[:end].
    reached: list[dict[tuple[bool, bool], tuple[int, tuple[bool, bool]]]] = [
        {} for _ in range(len(kana) + 1)
    ]
    reached[0][(False, False)] = (0, (False, False))
    for start in range(len(kana) - 1):
        if not reached[start]:
            continue
        for length in range(min(_LONGEST_TAIL_ENTRY, len(kana) - 1 - start), 0, -1):
            piece = kana[start:start + length]
            if piece not in _TAIL_VOCABULARY:
                continue
            for previous in list(reached[start]):
                state = (piece in PARTICLES, previous[1] or piece in KANA_WORDS)
                reached[start + length].setdefault(state, (start, previous))
    for cut in range(len(kana) - 1, 0, -1):
        if (True, True) not in reached[cut]:
            continue
        pieces: list[str] = []
        end, state = cut, (True, True)
        while end > 0:
            start, state = reached[end][state]
            pieces.append(kana[start:end])
            end = start
        pieces.reverse()
        return _kana_tokens(pieces), kana[cut:]
    return None


def _split_free_kana(kana: str) -> list[Token]:
    cover = SuffixCover(kana, _TAIL_VOCABULARY)
    if cover.count(0):
        return _kana_tokens(cover.pieces() or [])
    leading = _leading_phrase(kana)
    if leading is not None:
        tokens, rest = leading
        return tokens + _split_free_kana(rest)
    split = _split_at_inflection(kana, cover)
    if split is not None:
        head, tail = split
        return [_word(head), *tail]
    return [_word(kana)]


def _segment_lexical_run(pieces: Sequence[_Piece]) -> list[Token]:
    tokens: list[Token] = []
    word = ""
    prefix = ""
    for idx, (script, chunk) in enumerate(pieces):
        following = pieces[idx + 1][0] if idx + 1 < len(pieces) else None
        if script is ScriptClass.KANJI:
            if word:
                tokens.append(_word(word))
            word = prefix + chunk
            prefix = ""
        elif script is ScriptClass.DIGIT:
            # Digits only enter the run before kanji, so the word carries on.
            prefix = word + prefix + chunk
            word = ""
        elif script is ScriptClass.KATAKANA:
            if word:
                tokens.append(_word(word))
                word = ""
            tokens.append(_word(chunk))
        else:
            handoff = ""
            if following is ScriptClass.KANJI and chunk[-1] in HONORIFIC_PREFIX_SET:
                handoff, chunk = chunk[-1], chunk[:-1]
            if chunk and word:
                head, tail = _split_after_stem(chunk)
                tokens.append(_word(word + head))
                tokens.extend(tail)
                word = ""
            elif chunk:
                tokens.extend(_split_free_kana(chunk))
            prefix = handoff
    if word:
        tokens.append(_word(word))
    if prefix:
        tokens.append(_word(prefix))
    return tokens


def segment(spans: Sequence[CodePointSpan], text: str) -> list[Token]:
    """
    Group classified spans into Word, Particle, Foreign, Punctuation and
    Whitespace tokens.

    Never fails: characters the spans do not cover come out as
    single-character Punctuation tokens, so the token texts always
    concatenate back to ``text``.
    """
    pieces = _cover(spans, text)
    tokens: list[Token] = []
    idx = 0
    while idx < len(pieces):
        if _in_lexical_run(pieces, idx):
            end = idx
            while end < len(pieces) and _in_lexical_run(pieces, end):
                end += 1
            tokens.extend(_segment_lexical_run(pieces[idx:end]))
            idx = end
            continue
        script, chunk = pieces[idx]
        tokens.append(Token(text=chunk, kind=_PLAIN_KINDS.get(script, TokenKind.PUNCTUATION)))
        idx += 1
    return tokens


def segment_text(text: str) -> list[Token]:
    return segment(classify(text), text)
