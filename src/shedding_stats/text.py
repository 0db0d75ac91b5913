"""String normalisation for regex mining of free-text clinical fields."""

from __future__ import annotations

import re
import unicodedata

import pandas as pd

# Latin letters that have no Unicode decomposition to ASCII.
_LATIN_EXTRA = str.maketrans(
    {
        "ß": "ss",
        "ẞ": "SS",
        "æ": "ae",
        "Æ": "AE",
        "œ": "oe",
        "Œ": "OE",
        "ø": "o",
        "Ø": "O",
        "ł": "l",
        "Ł": "L",
        "đ": "d",
        "Đ": "D",
        "ð": "d",
        "Ð": "D",
        "þ": "th",
        "Þ": "TH",
        "ı": "i",
    }
)

# Word characters of any script survive; punctuation, "+", "-", "/",
# symbols, underscores and whitespace do not.
_NON_WORD = re.compile(r"[\W_]+")


def transliterate_latin(value: str) -> str:
    """Transliterate Latin letters to ASCII, dropping diacritics.

    Characters whose decomposition is not plain ASCII (Cyrillic, Greek,
    CJK, most symbols) are left as they are.
    """
    out = []
    for ch in value.translate(_LATIN_EXTRA):
        if ch.isascii():
            out.append(ch)
            continue
        base = "".join(
            c for c in unicodedata.normalize("NFKD", ch) if not unicodedata.combining(c)
        )
        out.append(base if base and base.isascii() else ch)
    return "".join(out)


def _clean_one(value: object) -> str:
    return _NON_WORD.sub("", transliterate_latin(str(value)).lower())


def clean(value: str | pd.Series) -> str | pd.Series:
    """Normalise text so that regex patterns match reliably.

    Transliterates Latin letters to ASCII (letters of other scripts
    are kept), lower-cases, then removes punctuation, ``+``/``-`` signs,
    symbols, underscores and all whitespace.

    Args:
        value: A string, or a Series of strings (missing values are
            kept as missing).

    Example:
        >>> clean("Mycophénolate-Mofétil + Tacrolimus!")
        'mycophenolatemofetiltacrolimus'
    """
    if isinstance(value, pd.Series):
        return value.map(_clean_one, na_action="ignore")
    if not isinstance(value, str):
        raise TypeError(f"clean() expects a str or Series, got {type(value).__name__}.")
    return _clean_one(value)


__all__ = ["clean", "transliterate_latin"]
