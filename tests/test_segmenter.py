from __future__ import annotations

import time

import pytest

from yomi.script import CodePointSpan, ScriptClass
from yomi.segmenter import segment, segment_text
from yomi.tokens import TokenKind


def _pairs(text: str) -> list[tuple[str, TokenKind]]:
    return [(token.text, token.kind) for token in segment_text(text)]


W = TokenKind.WORD
P = TokenKind.PARTICLE
F = TokenKind.FOREIGN
X = TokenKind.PUNCTUATION
S = TokenKind.WHITESPACE


def test_kanji_words_with_particles_and_okurigana() -> None:
    assert _pairs("私は東京に住んでいます。") == [
        ("私", W),
        ("は", P),
        ("東京", W),
        ("に", P),
        ("住んでいます", W),
        ("。", X),
    ]


def test_foreign_and_katakana_words() -> None:
    assert _pairs("彼はLe Wagonでプログラミングを学びました。") == [
        ("彼", W),
        ("は", P),
        ("Le", F),
        (" ", S),
        ("Wagon", F),
        ("で", P),
        ("プログラミング", W),
        ("を", P),
        ("学びました", W),
        ("。", X),
    ]


def test_kana_only_text_splits_on_known_words() -> None:
    assert _pairs("ありがとうございます。") == [
        ("ありがとう", W),
        ("ございます", W),
        ("。", X),
    ]


def test_free_kana_word_followed_by_particle() -> None:
    assert _pairs("これは本") == [("これ", W), ("は", P), ("本", W)]


def test_particle_chain_after_kanji() -> None:
    assert _pairs("私からも") == [("私", W), ("から", P), ("も", P)]


def test_inflected_verb_keeps_head_and_splits_tail() -> None:
    assert _pairs("勉強するのが好き") == [
        ("勉強する", W),
        ("の", P),
        ("が", P),
        ("好き", W),
    ]
    assert _pairs("書かれたもの") == [("書かれた", W), ("もの", W)]


def test_ka_and_ya_do_not_start_a_particle_tail() -> None:
    assert _pairs("静かに") == [("静かに", W)]
    assert _pairs("穏やかに") == [("穏やかに", W)]


def test_numeric_prefix_joins_kanji_word() -> None:
    assert _pairs("2023年に") == [("2023年", W), ("に", P)]
    assert _pairs("第3章") == [("第3章", W)]
    assert _pairs("2023年5月") == [("2023年5月", W)]


def test_standalone_numbers_stay_foreign() -> None:
    assert _pairs("2023は") == [("2023", F), ("は", P)]


def test_honorific_prefix_moves_to_next_word() -> None:
    assert _pairs("私はお茶を飲みます。") == [
        ("私", W),
        ("は", P),
        ("お茶", W),
        ("を", P),
        ("飲みます", W),
        ("。", X),
    ]
    assert _pairs("ご飯") == [("ご飯", W)]


def test_particle_then_kana_word_after_kanji() -> None:
    assert _pairs("今日もよろしくお願いします。") == [
        ("今日", W),
        ("も", P),
        ("よろしく", W),
        ("お願い", W),
        ("します", W),
        ("。", X),
    ]


def test_katakana_run_is_one_word() -> None:
    assert _pairs("コーヒーを飲む") == [("コーヒー", W), ("を", P), ("飲む", W)]


def test_unknown_hiragana_run_is_one_word() -> None:
    assert _pairs("すごーい") == [("すごーい", W)]


def test_punctuation_and_whitespace_runs() -> None:
    assert _pairs("東京 大阪。。」") == [("東京", W), (" ", S), ("大阪", W), ("。。」", X)]


def test_gaps_in_spans_become_single_character_punctuation() -> None:
    tokens = segment([CodePointSpan(0, 1, ScriptClass.KANJI)], "本!?")
    assert [(token.text, token.kind) for token in tokens] == [("本", W), ("!", X), ("?", X)]


def test_segment_text_on_empty_input() -> None:
    assert segment_text("") == []


@pytest.mark.parametrize(
    "text",
    [
        "私は東京に住んでいます。",
        "彼はLe Wagonでプログラミングを学びました。",
        "「えっ？」　2023年５月、iPhone12を買った😀",
        "おはようございます！今日もよろしくお願いします。",
        "<span>タグ</span>&amp;",
        "ー・々〆",
        "   ",
    ],
)
def test_segmentation_is_lossless(text: str) -> None:
    assert "".join(token.text for token in segment_text(text)) == text


@pytest.mark.parametrize(
    "text",
    [
        "あいうえお" * 1000,
        "のに" * 2500,
        "これはすごい" * 800,
        "これは" * 1600 + "本",
        "勉強するのが" * 800,
        "ひらがな" * 1250 + "漢字",
    ],
)
def test_long_kana_runs_segment_quickly(text: str) -> None:
    started = time.perf_counter()
    tokens = segment_text(text)
    elapsed = time.perf_counter() - started
    assert "".join(token.text for token in tokens) == text
    assert elapsed < 1.0


def test_long_unknown_kana_run_is_one_word() -> None:
    text = "あいうえお" * 1000
    assert _pairs(text) == [(text, W)]


def test_leading_phrase_is_cut_once_before_unknown_kana() -> None:
    assert _pairs("これはすごい") == [("これ", W), ("は", P), ("すごい", W)]


def test_adjacent_particles_are_split_like_the_decoder() -> None:
    assert _pairs("それのに") == [("それ", W), ("のに", P)]
