from __future__ import annotations

import unicodedata

from cleantext import clean


def _strip_accents_keep_non_ascii(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize(text: str | None) -> str:
    """Fold ``text`` into the canonical form used for question comparison.

    Case and diacritics are folded, anything that is neither alphanumeric nor
    whitespace is dropped and whitespace runs collapse to a single space.
    ``normalize(normalize(x)) == normalize(x)`` for every input.
    """

    if not text:
        return ""

    text = _strip_accents_keep_non_ascii(text).casefold()
    text = clean(
        text,
        fix_unicode=False,   # compatibility forms already folded above
        to_ascii=False,      # keep non-latin scripts comparable
        lower=True,
        no_line_breaks=True,
        no_punct=True,
        lang="en",
    )
    # Lower-casing can reintroduce combining marks (e.g. dotted capital I).
    text = _strip_accents_keep_non_ascii(text)

    # no_punct leaves symbols such as currency signs behind
    kept = "".join(ch for ch in text if ch.isalnum() or ch.isspace())
    return " ".join(kept.split())


__all__ = ["normalize"]
