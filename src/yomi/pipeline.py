from __future__ import annotations

from pathlib import Path

from .annotator import annotate_tokens
from .markup import encode
from .readings import ReadingLookup, chain_lookups, load_reading_table, mapping_lookup
from .segmenter import segment
from .script import classify
from .tokens import Token

__all__ = ["READING_BACKENDS", "analyze", "annotate_text", "build_reading_lookup"]

READING_BACKENDS = ("none", "fugashi")


def build_reading_lookup(
    *,
    readings_path: Path | None = None,
    backend: str = "none",
) -> ReadingLookup | None:
    """
    Reading source from configuration: a JSON table in front of an optional
    dictionary backend. Returns None when neither is configured.
    """
    if backend not in READING_BACKENDS:
        raise ValueError(f"Unknown reading backend: {backend}")
    lookups: list[ReadingLookup] = []
    if readings_path is not None:
        lookups.append(mapping_lookup(load_reading_table(readings_path)))
    if backend == "fugashi":
        from .nlp import NLPBackend

        lookups.append(NLPBackend())
    if not lookups:
        return None
    return chain_lookups(*lookups)


def analyze(text: str, lookup: ReadingLookup | None = None) -> list[Token]:
    """Classify, segment and annotate ``text``."""
    return annotate_tokens(segment(classify(text), text), lookup)


def annotate_text(text: str, lookup: ReadingLookup | None = None) -> str:
    """Translated plain text in, jp-word / ruby markup out."""
    return encode(analyze(text, lookup))
