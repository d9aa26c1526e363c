from __future__ import annotations

from typing import Collection

__all__ = [
    "PARTICLES",
    "KANA_WORDS",
    "HONORIFIC_PREFIX_SET",
    "OKURIGANA_FINALS",
    "LEADING_PARTICLE_GUARD",
    "SuffixCover",
    "decompose",
]

# Closed particle list. Only these are ever emitted as Particle tokens.
PARTICLES = frozenset(
    {
        "は",
        "が",
        "の",
        "を",
        "に",
        "へ",
        "で",
        "と",
        "も",
        "や",
        "か",
        "より",
        "から",
        "まで",
        "ながら",
        "ので",
        "のに",
        "けれど",
        "けれども",
        "けど",
        "しか",
        "だけ",
        "など",
        "ね",
        "よ",
    }
)

# Kana-only words that may be cut out of a hiragana run as their own Word.
KANA_WORDS = frozenset(
    {
        "ありがとう",
        "ございます",
        "ください",
        "おはよう",
        "こんにちは",
        "こんばんは",
        "さようなら",
        "すみません",
        "よろしく",
        "いただきます",
        "ごちそうさま",
        "はい",
        "いいえ",
        "これ",
        "それ",
        "あれ",
        "どれ",
        "この",
        "その",
        "あの",
        "どの",
        "ここ",
        "そこ",
        "あそこ",
        "どこ",
        "こちら",
        "そちら",
        "あちら",
        "どちら",
        "わたし",
        "あなた",
        "だれ",
        "なに",
        "いつ",
        "もの",
        "こと",
        "とき",
        "ところ",
        "ため",
        "よう",
        "もう",
        "まだ",
        "とても",
        "ちょっと",
        "たくさん",
        "すこし",
        "もっと",
        "いつも",
        "そして",
        "しかし",
        "だから",
        "それから",
        "する",
        "します",
        "しました",
    }
)

HONORIFIC_PREFIX_SET = frozenset({"お", "ご"})

# Kana that can end an inflected stem, i.e. where a particle may start.
OKURIGANA_FINALS = frozenset("るただいうくすつぬぶむぐてでばず")

# Particles that never open a multi-particle tail after a kanji stem
# (静かに, 穏やかに).
LEADING_PARTICLE_GUARD = frozenset({"か", "や"})


class SuffixCover:
    """
    Fewest-piece covers of every suffix of ``text`` by ``vocabulary``.

    One backward pass fills the table; each suffix then answers in constant
    time how many pieces it needs and how long its first piece is. Ties on
    the piece count go to the longer first piece.
    """

    def __init__(self, text: str, vocabulary: Collection[str]) -> None:
        self.text = text
        size = len(text)
        longest = max((len(entry) for entry in vocabulary), default=0)
        self._count: list[int | None] = [None] * (size + 1)
        self._first = [0] * (size + 1)
        self._count[size] = 0
        for start in range(size - 1, -1, -1):
            for length in range(min(longest, size - start), 0, -1):
                rest = self._count[start + length]
                if rest is None or text[start:start + length] not in vocabulary:
                    continue
                current = self._count[start]
                if current is None or rest + 1 < current:
                    self._count[start] = rest + 1
                    self._first[start] = length

    def count(self, start: int) -> int | None:
        """Pieces needed to cover ``text[start:]``, or None when it cannot be covered."""
        return self._count[start]

    def first(self, start: int) -> str:
        return self.text[start:start + self._first[start]]

    def pieces(self, start: int = 0) -> list[str] | None:
        if self._count[start] is None:
            return None
        pieces: list[str] = []
        while start < len(self.text):
            length = self._first[start]
            pieces.append(self.text[start:start + length])
            start += length
        return pieces


def decompose(text: str, vocabulary: Collection[str]) -> list[str] | None:
    """
    Split ``text`` into entries of ``vocabulary``.

    Returns the decomposition with the fewest pieces, preferring longer
    pieces first on ties, or None when ``text`` cannot be covered.
    """
    if not text:
        return None
    return SuffixCover(text, vocabulary).pieces()
