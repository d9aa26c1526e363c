from __future__ import annotations

from yomi.lexicon import KANA_WORDS, PARTICLES, SuffixCover, decompose


def test_decompose_prefers_fewest_pieces() -> None:
    assert decompose("からも", PARTICLES) == ["から", "も"]
    assert decompose("けれども", PARTICLES) == ["けれども"]
    assert decompose("のに", PARTICLES) == ["のに"]


def test_decompose_breaks_ties_with_longer_leading_piece() -> None:
    vocabulary = {"ab", "c", "a", "bc"}
    assert decompose("abc", vocabulary) == ["ab", "c"]


def test_decompose_returns_none_when_uncovered() -> None:
    assert decompose("んで", PARTICLES) is None
    assert decompose("", PARTICLES) is None


def test_decompose_mixes_particles_and_kana_words() -> None:
    assert decompose("これはもの", PARTICLES | KANA_WORDS) == ["これ", "は", "もの"]


def test_suffix_cover_answers_every_suffix() -> None:
    cover = SuffixCover("すこれはもの", PARTICLES | KANA_WORDS)
    assert cover.count(0) is None
    assert cover.pieces(0) is None
    assert cover.count(1) == 3
    assert cover.first(1) == "これ"
    assert cover.pieces(1) == ["これ", "は", "もの"]
    assert cover.pieces(6) == []
