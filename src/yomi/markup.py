from __future__ import annotations

import html
import re
from typing import Iterable, Sequence

from .lexicon import PARTICLES, decompose
from .script import ScriptClass, classify, contains_kanji, split_kanji_runs
from .tokens import ReadingSegment, Token, TokenKind

__all__ = [
    "SPAN_OPEN",
    "SPAN_CLOSE",
    "RoundTripError",
    "encode",
    "decode",
    "strip_annotations",
    "strip_readings_only",
    "extract_words",
    "tokens_equivalent",
    "check_round_trip",
]

SPAN_OPEN = '<span class="jp-word">'
SPAN_CLOSE = "</span>"
RUBY_OPEN = "<ruby>"
RUBY_CLOSE = "</ruby>"
RT_OPEN = "<rt>"
RT_CLOSE = "</rt>"

_RUBY_GROUP_RE = re.compile(r"<ruby>([^<>]+)<rt>([^<>]*)</rt></ruby>")
# Only the wire vocabulary counts as markup; any other angle brackets are text.
_STRAY_TAG_RE = re.compile(r'<span class="jp-word">|</span>|</?ruby>|</?rt>')


class RoundTripError(ValueError):
    """Raised when encoded markup does not decode back to the same tokens."""


# ---------- encoder ----------

def _escape(text: str) -> str:
    return html.escape(text, quote=False)


def _encode_segment(segment: ReadingSegment) -> str:
    surface = _escape(segment.surface)
    if segment.annotated and segment.reading is not None:
        return f"{RUBY_OPEN}{surface}{RT_OPEN}{_escape(segment.reading)}{RT_CLOSE}{RUBY_CLOSE}"
    return surface


def _encode_word(token: Token) -> str:
    if token.reading_segments:
        body = "".join(_encode_segment(segment) for segment in token.reading_segments)
    else:
        body = _escape(token.text)
    return f"{SPAN_OPEN}{body}{SPAN_CLOSE}"


def encode(tokens: Iterable[Token]) -> str:
    """
    Serialize tokens to the jp-word / ruby markup.

    Words become sibling ``<span class="jp-word">`` elements; everything else
    is written out as text. ``&``, ``<`` and ``>`` in any text are written as
    entities, so the only tags in the output are the ones encode emits.
    """
    parts: list[str] = []
    for token in tokens:
        if not token.text:
            continue
        if token.kind is TokenKind.WORD:
            parts.append(_encode_word(token))
        else:
            parts.append(_escape(token.text))
    return "".join(parts)


# ---------- decoder ----------

def _literal(text: str) -> Token:
    return Token(text=text, kind=TokenKind.PUNCTUATION)


def _plain_run_tokens(markup: str) -> list[Token]:
    text = html.unescape(markup)
    tokens: list[Token] = []
    for span in classify(text):
        piece = span.slice(text)
        if span.script in (ScriptClass.LATIN, ScriptClass.DIGIT):
            tokens.append(Token(text=piece, kind=TokenKind.FOREIGN))
        elif span.script is ScriptClass.WHITESPACE:
            tokens.append(Token(text=piece, kind=TokenKind.WHITESPACE))
        elif span.script is ScriptClass.HIRAGANA:
            particles = decompose(piece, PARTICLES)
            if particles:
                tokens.extend(Token(text=particle, kind=TokenKind.PARTICLE) for particle in particles)
            else:
                tokens.append(_literal(piece))
        else:
            tokens.append(_literal(piece))
    return tokens


def _decode_plain(text: str) -> list[Token]:
    tokens: list[Token] = []
    cursor = 0
    for match in _STRAY_TAG_RE.finditer(text):
        if match.start() > cursor:
            tokens.extend(_plain_run_tokens(text[cursor:match.start()]))
        tokens.append(_literal(match.group(0)))
        cursor = match.end()
    if cursor < len(text):
        tokens.extend(_plain_run_tokens(text[cursor:]))
    return tokens


def _parse_word(markup: str, start: int) -> tuple[Token, int] | None:
    cursor = start + len(SPAN_OPEN)
    segments: list[ReadingSegment] = []
    while not markup.startswith(SPAN_CLOSE, cursor):
        if cursor >= len(markup):
            return None
        if markup[cursor] == "<":
            match = _RUBY_GROUP_RE.match(markup, cursor)
            if match is None:
                return None
            surface = html.unescape(match.group(1))
            segments.append(ReadingSegment(surface, html.unescape(match.group(2)), True))
            cursor = match.end()
            continue
        tag_start = markup.find("<", cursor)
        if tag_start == -1:
            return None
        for _, run, _ in split_kanji_runs(html.unescape(markup[cursor:tag_start])):
            segments.append(ReadingSegment(run))
        cursor = tag_start
    if not segments:
        return None
    text = "".join(segment.surface for segment in segments)
    if not contains_kanji(text) and not any(segment.annotated for segment in segments):
        segments = []
    return Token(text=text, kind=TokenKind.WORD, reading_segments=tuple(segments)), cursor + len(SPAN_CLOSE)


def decode(markup: str) -> list[Token]:
    """
    Parse markup back into tokens.

    Fail-soft: a span that does not parse leaves its opening tag behind as
    literal Punctuation text and scanning resumes right after it, so no
    input character is ever lost and nothing raises.
    """
    tokens: list[Token] = []
    plain_start = 0
    search = 0
    while True:
        found = markup.find(SPAN_OPEN, search)
        if found == -1:
            break
        tokens.extend(_decode_plain(markup[plain_start:found]))
        parsed = _parse_word(markup, found)
        if parsed is None:
            tokens.append(_literal(SPAN_OPEN))
            plain_start = search = found + len(SPAN_OPEN)
            continue
        token, plain_start = parsed
        tokens.append(token)
        search = plain_start
    tokens.extend(_decode_plain(markup[plain_start:]))
    return tokens


def strip_annotations(markup: str) -> str:
    """Plain text: tags removed, readings dropped, surfaces kept."""
    return "".join(token.text for token in decode(markup))


def _hide_reading(match: re.Match[str]) -> str:
    return f"{RUBY_OPEN}{match.group(1)}{RT_OPEN}{RT_CLOSE}{RUBY_CLOSE}"


def strip_readings_only(markup: str) -> str:
    """Empty every <rt> while keeping the span and ruby structure; nothing else changes."""
    return _RUBY_GROUP_RE.sub(_hide_reading, markup)


def extract_words(markup: str) -> list[str]:
    return [token.text for token in decode(markup) if token.kind is TokenKind.WORD]


# ---------- round-trip validation ----------

def _signature(token: Token) -> tuple[object, ...]:
    if token.kind is not TokenKind.WORD:
        return (token.kind, token.text)
    segments = token.reading_segments or (ReadingSegment(token.text),)
    merged: list[tuple[str, str | None, bool]] = []
    for segment in segments:
        if not segment.annotated and merged and not merged[-1][2]:
            merged[-1] = (merged[-1][0] + segment.surface, None, False)
        elif segment.annotated:
            merged.append((segment.surface, segment.reading, True))
        else:
            merged.append((segment.surface, None, False))
    return (token.kind, token.text, tuple(merged))


def tokens_equivalent(left: Sequence[Token], right: Sequence[Token]) -> bool:
    """Same kinds, texts and annotated segments, ignoring how bare kana is split."""
    left_sig = [_signature(token) for token in left if token.text]
    right_sig = [_signature(token) for token in right if token.text]
    return left_sig == right_sig


def check_round_trip(tokens: Sequence[Token]) -> str:
    """Encode ``tokens`` and verify the markup decodes back; returns the markup."""
    markup = encode(tokens)
    expected = [token for token in tokens if token.text]
    decoded = decode(markup)
    if not tokens_equivalent(expected, decoded):
        for idx, (want, got) in enumerate(zip(expected, decoded)):
            if _signature(want) != _signature(got):
                raise RoundTripError(f"Token {idx} changed in round trip: {want!r} -> {got!r}")
        raise RoundTripError(
            f"Round trip produced {len(decoded)} tokens instead of {len(expected)}."
        )
    plain = strip_annotations(markup)
    original = "".join(token.text for token in expected)
    if plain != original:
        raise RoundTripError(f"Stripped text {plain!r} does not match {original!r}.")
    return markup
