from __future__ import annotations

from yomi.pipeline import analyze
from yomi.readings import mapping_lookup
from yomi.tokens import ReadingSegment, Token, TokenKind, deserialize_tokens, serialize_tokens


def test_serialize_tokens_includes_segments_for_annotated_words() -> None:
    tokens = analyze("住むよ", mapping_lookup({"住": "す"}))
    assert serialize_tokens(tokens) == [
        {
            "text": "住む",
            "kind": "word",
            "segments": [
                {"surface": "住", "reading": "す", "annotated": True},
                {"surface": "む", "reading": None, "annotated": False},
            ],
        },
        {"text": "よ", "kind": "particle"},
    ]


def test_deserialize_tokens_restores_serialized_stream() -> None:
    tokens = analyze("私は東京に住んでいます。", mapping_lookup({"私": "わたし", "住": "す"}))
    assert deserialize_tokens(serialize_tokens(tokens)) == tokens


def test_deserialize_tokens_skips_malformed_entries() -> None:
    data = [
        {"text": "", "kind": "word"},
        {"text": "本", "kind": "bogus"},
        "not a token",
        {"text": "本", "kind": "word", "segments": [{"surface": "木", "reading": "き", "annotated": True}]},
        {"text": "は", "kind": "particle", "segments": [{"surface": "は", "reading": "わ", "annotated": True}]},
        {"text": "猫", "kind": "word", "segments": [{"surface": "猫", "annotated": True}]},
    ]
    assert deserialize_tokens(data) == [
        Token(text="本", kind=TokenKind.WORD),
        Token(text="は", kind=TokenKind.PARTICLE),
        Token(text="猫", kind=TokenKind.WORD, reading_segments=(ReadingSegment("猫"),)),
    ]


def test_token_properties() -> None:
    token = Token(
        text="住む",
        kind=TokenKind.WORD,
        reading_segments=(ReadingSegment("住", "す", True), ReadingSegment("む")),
    )
    assert token.is_word
    assert token.has_kanji
    assert token.is_annotated
    assert not Token(text="は", kind=TokenKind.PARTICLE).is_word
