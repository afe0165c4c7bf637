from __future__ import annotations


def tokenize(normalized: str) -> frozenset[str]:
    return frozenset(normalized.split())


def score(normalized_a: str, normalized_b: str) -> float:
    """Jaccard overlap of the whitespace tokens of two normalized strings."""

    if not normalized_a or not normalized_b:
        return 0.0
    if normalized_a == normalized_b:
        return 1.0

    tokens_a = tokenize(normalized_a)
    tokens_b = tokenize(normalized_b)
    union = tokens_a | tokens_b
    if not union:
        return 0.0
    return len(tokens_a & tokens_b) / len(union)


__all__ = ["score", "tokenize"]
