# pricewise/filters/similarity.py

"""Word-overlap similarity between two product names."""

import re

_WORD_RE = re.compile(r"[a-z0-9]+")


def significant_words(name: str) -> list[str]:
    """Lowercase alphanumeric words longer than two characters."""
    return [w for w in _WORD_RE.findall(name.lower()) if len(w) > 2]


def _matched(words: list[str], others: list[str]) -> int:
    """Count words with a containment match among *others*."""
    return sum(
        1
        for word in words
        if any(word in other or other in word for other in others)
    )


def similarity(first: str, second: str) -> float:
    """Fraction of the larger name's words matched in the other name.

    The score lies in ``[0, 1]`` and is symmetric: when both names
    have the same number of significant words, the better-matching
    direction is used.
    """
    words_a = significant_words(first)
    words_b = significant_words(second)
    if not words_a or not words_b:
        return 0.0

    if len(words_a) > len(words_b):
        matches = _matched(words_a, words_b)
    elif len(words_b) > len(words_a):
        matches = _matched(words_b, words_a)
    else:
        matches = max(
            _matched(words_a, words_b), _matched(words_b, words_a)
        )
    return matches / max(len(words_a), len(words_b))
