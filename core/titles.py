"""
Title normalization for AniForge.

Catalog titles are compared after being folded into a canonical form:
lowercase, no season/cour/part keywords, no ordinal suffixes and nothing
but ``[a-z0-9]``. Two variants exist:

- loose: additionally folds a standalone roman numeral ``ii`` into ``2``
- strict: keeps roman numerals but also strips ``uncensored``

The rewrite rules are applied until the string stops changing, so both
functions are idempotent.
"""
import re
from typing import Optional, Pattern

_LOOSE_KEYWORDS = re.compile(r"(season|cour|part)")
_STRICT_KEYWORDS = re.compile(r"(season|cour|part|uncensored)")
_ORDINAL_SUFFIX = re.compile(r"(\d+)(?:st|nd|rd|th)")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_ROMAN_TWO = re.compile(r"(?<!i)ii(?!i)")


def _canonicalize(title: Optional[str], keywords: Pattern, fold_roman: bool) -> str:
    text = (title or "").lower()

    # Every rule only shortens the string, so this terminates
    while True:
        previous = text
        text = keywords.sub("", text)
        text = _ORDINAL_SUFFIX.sub(r"\1", text)
        text = _NON_ALNUM.sub("", text)
        if fold_roman:
            text = _ROMAN_TWO.sub("2", text)
        if text == previous:
            return text


def normalize_loose(title: Optional[str]) -> str:
    """
    Normalize a title for date-backed matching.

    Args:
        title: Title text (None is treated as empty)

    Returns:
        Canonical comparison string, e.g. "Mob Psycho 100 II" -> "mobpsycho1002"
    """
    return _canonicalize(title, _LOOSE_KEYWORDS, fold_roman=True)


def normalize_strict(title: Optional[str]) -> str:
    """
    Normalize a title for the title-only fallback match.

    Args:
        title: Title text (None is treated as empty)

    Returns:
        Canonical comparison string without roman numeral folding
    """
    return _canonicalize(title, _STRICT_KEYWORDS, fold_roman=False)


def fix_escaped_ampersands(text: Optional[str]) -> str:
    """
    Replace JSON-escaped ampersands (``\\u0026``) left in scraped titles.

    HTML entities are not touched: the HTML parser has already decoded them.
    """
    return (text or "").replace("\\u0026", "&")
