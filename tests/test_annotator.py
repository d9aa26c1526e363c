from __future__ import annotations

import time

import pytest

import yomi.logging_utils as logging_utils
from yomi.annotator import annotate, annotate_tokens
from yomi.readings import ReadingContext, mapping_lookup
from yomi.tokens import ReadingSegment, Token, TokenKind


def _word(text: str) -> Token:
    return Token(text=text, kind=TokenKind.WORD)


def _segments(token: Token) -> list[tuple[str, str | None, bool]]:
    return [(seg.surface, seg.reading, seg.annotated) for seg in token.reading_segments]


READINGS = mapping_lookup(
    {
        "住": "す",
        "図書館": "としょかん",
        "東京": "とうきょう",
        "大学": "だいがく",
        "東": "とう",
        "京": "きょう",
        "色": "いろ",
        "年": "ねん",
        "茶": "ちゃ",
    }
)


def test_okurigana_stays_outside_the_ruby() -> None:
    token = annotate(_word("住む"), READINGS)
    assert _segments(token) == [("住", "す", True), ("む", None, False)]


def test_compound_gets_one_reading() -> None:
    token = annotate(_word("図書館"), READINGS)
    assert _segments(token) == [("図書館", "としょかん", True)]


def test_unknown_compound_splits_into_known_words() -> None:
    token = annotate(_word("東京大学"), READINGS)
    assert _segments(token) == [("東京", "とうきょう", True), ("大学", "だいがく", True)]


def test_single_character_readings_are_joined_not_split() -> None:
    lookup = mapping_lookup({"北": "ほっ", "海": "かい", "道": "どう"})
    token = annotate(_word("北海道"), lookup)
    assert _segments(token) == [("北海道", "ほっかいどう", True)]


def test_iteration_mark_repeats_previous_reading() -> None:
    token = annotate(_word("色々"), READINGS)
    assert _segments(token) == [("色々", "いろいろ", True)]


def test_prefixes_are_bare_segments() -> None:
    assert _segments(annotate(_word("お茶"), READINGS)) == [("お", None, False), ("茶", "ちゃ", True)]
    assert _segments(annotate(_word("2023年"), READINGS)) == [("2023", None, False), ("年", "ねん", True)]


def test_missing_reading_leaves_kanji_unannotated(monkeypatch, capsys) -> None:
    monkeypatch.setattr(logging_utils, "_DEBUG_LOG", True)
    token = annotate(_word("猫が好き"), READINGS)
    assert _segments(token) == [("猫", None, False), ("が", None, False), ("好", None, False), ("き", None, False)]
    assert not token.is_annotated
    err = capsys.readouterr().err
    assert "no reading for '猫'" in err


def test_partial_gap_only_affects_its_run() -> None:
    tokens = annotate_tokens([_word("東京"), _word("猫"), _word("住む")], READINGS)
    assert [token.is_annotated for token in tokens] == [True, False, True]


def test_without_lookup_kanji_runs_are_bare() -> None:
    token = annotate(_word("食べ物"))
    assert _segments(token) == [("食", None, False), ("べ", None, False), ("物", None, False)]


def test_lookup_receives_word_context() -> None:
    calls: list[tuple[str, ReadingContext]] = []

    def _lookup(surface: str, context: ReadingContext) -> str | None:
        calls.append((surface, context))
        return {"食": "た", "物": "もの"}.get(surface)

    token = annotate(_word("食べ物"), _lookup)
    assert _segments(token) == [("食", "た", True), ("べ", None, False), ("物", "もの", True)]
    assert calls == [
        ("食", ReadingContext(word="食べ物", start=0)),
        ("物", ReadingContext(word="食べ物", start=2)),
    ]


def test_lookup_errors_count_as_missing() -> None:
    def _lookup(surface: str, context: ReadingContext) -> str | None:
        raise KeyError(surface)

    token = annotate(_word("本"), _lookup)
    assert _segments(token) == [("本", None, False)]


def test_other_lookup_failures_propagate() -> None:
    def _lookup(surface: str, context: ReadingContext) -> str | None:
        raise RuntimeError("reading source offline")

    with pytest.raises(RuntimeError):
        annotate(_word("本"), _lookup)


def test_unusable_readings_are_ignored() -> None:
    lookup = mapping_lookup({"本": "  ", "日": "<b>にち</b>"})
    assert _segments(annotate(_word("本"), lookup)) == [("本", None, False)]
    assert _segments(annotate(_word("日"), lookup)) == [("日", None, False)]
    assert _segments(annotate(_word("住"), mapping_lookup({"住": " す\n"}))) == [("住", "す", True)]


def test_non_words_and_kana_words_are_untouched() -> None:
    particle = Token(text="は", kind=TokenKind.PARTICLE)
    assert annotate(particle, READINGS) is particle
    kana = _word("ありがとう")
    assert annotate(kana, READINGS) is kana


def test_annotated_token_kept_without_lookup() -> None:
    token = Token(
        text="本",
        kind=TokenKind.WORD,
        reading_segments=(ReadingSegment("本", "ほん", True),),
    )
    assert annotate(token) is token


def test_long_compound_is_split_quickly() -> None:
    started = time.perf_counter()
    token = annotate(_word("東京大学" * 1000), READINGS)
    assert time.perf_counter() - started < 1.0
    assert len(token.reading_segments) == 2000
    assert token.reading_segments[1] == ReadingSegment("大学", "だいがく", True)
