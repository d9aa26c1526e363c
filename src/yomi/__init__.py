from .annotator import annotate, annotate_tokens
from .legacy import normalize_legacy_markup, upgrade_legacy_markup
from .markup import (
    RoundTripError,
    check_round_trip,
    decode,
    encode,
    extract_words,
    strip_annotations,
    strip_readings_only,
    tokens_equivalent,
)
from .pipeline import analyze, annotate_text, build_reading_lookup
from .readings import ReadingContext, ReadingLookup, chain_lookups, load_reading_table, mapping_lookup
from .script import CodePointSpan, ScriptClass, char_class, classify
from .segmenter import segment, segment_text
from .tokens import ReadingSegment, Token, TokenKind

__all__ = [
    "ScriptClass",
    "CodePointSpan",
    "classify",
    "char_class",
    "Token",
    "TokenKind",
    "ReadingSegment",
    "segment",
    "segment_text",
    "ReadingContext",
    "ReadingLookup",
    "mapping_lookup",
    "chain_lookups",
    "load_reading_table",
    "annotate",
    "annotate_tokens",
    "encode",
    "decode",
    "strip_annotations",
    "strip_readings_only",
    "extract_words",
    "tokens_equivalent",
    "check_round_trip",
    "RoundTripError",
    "analyze",
    "annotate_text",
    "build_reading_lookup",
    "normalize_legacy_markup",
    "upgrade_legacy_markup",
]
