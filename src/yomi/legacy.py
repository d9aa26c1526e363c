"""
Import of model-generated furigana markup.

Older translations were annotated by a chat model and stored as whatever HTML
came back: ``<ruby>漢字|かんじ</ruby>`` pipe readings, ``<rb>``/``<rp>``
elements, spans around particles, missing spans, entity-escaped text. None of
that is trusted for word boundaries. The markup is flattened to plain text,
re-segmented, and the ruby readings it carried are reused as the reading
source for the kanji they covered.
"""

from __future__ import annotations

from collections import Counter, defaultdict

from bs4 import BeautifulSoup, Comment, Doctype, NavigableString, Tag  # type: ignore

from .markup import encode
from .pipeline import analyze
from .readings import ReadingLookup, align_okurigana, chain_lookups, clean_reading, mapping_lookup
from .script import contains_kanji
from .tokens import Token

__all__ = ["collect_ruby_readings", "legacy_plain_text", "normalize_legacy_markup", "upgrade_legacy_markup"]

_PIPE = "|"
_SKIPPED_TAGS = {"script", "style", "rt", "rp"}


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def _ruby_parts(ruby: Tag) -> tuple[str, str]:
    """Base and reading of a <ruby>, supporting <rb> and the ``base|reading`` form."""
    rbs = ruby.find_all("rb", recursive=False)
    if rbs:
        base = "".join(rb.get_text() for rb in rbs)
    else:
        pieces = []
        for child in ruby.children:
            if isinstance(child, NavigableString):
                pieces.append(str(child))
            elif isinstance(child, Tag) and child.name not in ("rt", "rp"):
                pieces.append(child.get_text())
        base = "".join(pieces)
    rts = ruby.find_all("rt", recursive=False)
    reading = "".join(rt.get_text() for rt in rts)
    if not rts and _PIPE in base:
        base, _, reading = base.partition(_PIPE)
    return base.strip(), reading.strip()


def collect_ruby_readings(html: str) -> dict[str, str]:
    """
    Most frequent reading per kanji run found in ruby annotations.

    Ruby bases that include okurigana (住んで/すんで) are aligned so only the
    kanji run is recorded.
    """
    counts: dict[str, Counter[str]] = defaultdict(Counter)
    for ruby in _soup(html).find_all("ruby"):
        base, reading = _ruby_parts(ruby)
        if not base or not contains_kanji(base) or not clean_reading(reading):
            continue
        aligned = align_okurigana(base, reading)
        if aligned is None:
            counts[base][reading] += 1
            continue
        for surface, part in aligned:
            if part is not None:
                counts[surface][part] += 1
    return {surface: counter.most_common(1)[0][0] for surface, counter in counts.items()}


def _flatten(node: Tag, pieces: list[str]) -> None:
    for child in node.children:
        if isinstance(child, (Comment, Doctype)):
            continue
        if isinstance(child, NavigableString):
            pieces.append(str(child))
            continue
        if not isinstance(child, Tag) or child.name in _SKIPPED_TAGS:
            continue
        if child.name == "br":
            pieces.append("\n")
        elif child.name == "ruby":
            pieces.append(_ruby_parts(child)[0])
        else:
            _flatten(child, pieces)


def legacy_plain_text(html: str) -> str:
    """Surface text of legacy markup with every reading removed."""
    pieces: list[str] = []
    _flatten(_soup(html), pieces)
    return "".join(pieces)


def normalize_legacy_markup(html: str, lookup: ReadingLookup | None = None) -> list[Token]:
    """
    Rebuild a canonical token stream from legacy markup.

    Readings found in the markup take precedence over ``lookup``.
    """
    evidence = collect_ruby_readings(html)
    readings = chain_lookups(mapping_lookup(evidence), lookup) if evidence or lookup else None
    return analyze(legacy_plain_text(html), readings)


def upgrade_legacy_markup(html: str, lookup: ReadingLookup | None = None) -> str:
    return encode(normalize_legacy_markup(html, lookup))
