from __future__ import annotations

from yomi.legacy import collect_ruby_readings, legacy_plain_text, normalize_legacy_markup, upgrade_legacy_markup
from yomi.markup import strip_annotations
from yomi.readings import mapping_lookup
from yomi.tokens import ReadingSegment, TokenKind

CANONICAL = (
    '<span class="jp-word"><ruby>私<rt>わたし</rt></ruby></span>は'
    '<span class="jp-word"><ruby>東京<rt>とうきょう</rt></ruby></span>に'
    '<span class="jp-word"><ruby>住<rt>す</rt></ruby>んでいます</span>。'
)


def test_collect_ruby_readings_supports_pipe_and_rb_forms() -> None:
    html = (
        "<ruby>東京|とうきょう</ruby>に"
        "<ruby><rb>住</rb><rp>(</rp><rt>す</rt><rp>)</rp></ruby>んで"
    )
    assert collect_ruby_readings(html) == {"東京": "とうきょう", "住": "す"}


def test_collect_ruby_readings_aligns_okurigana_in_base() -> None:
    assert collect_ruby_readings("<ruby>住んで<rt>すんで</rt></ruby>") == {"住": "す"}


def test_collect_ruby_readings_prefers_most_frequent() -> None:
    html = (
        "<ruby>今日<rt>きょう</rt></ruby>"
        "<ruby>今日<rt>こんにち</rt></ruby>"
        "<ruby>今日<rt>きょう</rt></ruby>"
        "<ruby>かな<rt>かな</rt></ruby>"
        "<ruby>本<rt></rt></ruby>"
    )
    assert collect_ruby_readings(html) == {"今日": "きょう"}


def test_legacy_plain_text_flattens_markup() -> None:
    html = (
        '<p><span class="jp-word"><ruby>私<rt>わたし</rt></ruby></span>は'
        "<span>東京</span>&amp;<br>大阪<script>alert(1)</script></p>"
    )
    assert legacy_plain_text(html) == "私は東京&\n大阪"


def test_upgrade_legacy_markup_rebuilds_canonical_spans() -> None:
    html = (
        '<span class="jp-word">私は</span>'
        "<ruby>東京|とうきょう</ruby>に"
        "<ruby>住<rt>す</rt></ruby>んでいます。"
    )
    assert upgrade_legacy_markup(html, mapping_lookup({"私": "わたし"})) == CANONICAL


def test_markup_readings_take_precedence_over_lookup() -> None:
    html = "<ruby>東京<rt>とうきょう</rt></ruby>に"
    tokens = normalize_legacy_markup(html, mapping_lookup({"東京": "ひがしきょう"}))
    assert tokens[0].reading_segments == (ReadingSegment("東京", "とうきょう", True),)
    assert tokens[1].kind is TokenKind.PARTICLE


def test_upgrade_preserves_surface_text() -> None:
    html = "<p>彼は<ruby>学<rt>まな</rt></ruby>びました</p>"
    assert strip_annotations(upgrade_legacy_markup(html)) == "彼は学びました"
