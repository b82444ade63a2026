# core/text_normalizer.py
"""
Shared text normalization used by every matcher. Pure and total.
"""
import re
from typing import Final

_NON_WORD: Final = re.compile(r"[^\w\s]")
_NON_NUMERIC_WORD: Final = re.compile(r"[^\w\s%$.,]")
_WHITESPACE: Final = re.compile(r"\s+")


def normalize(text: str | None) -> str:
    """Lowercase, keep only word characters and whitespace, collapse whitespace."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", _NON_WORD.sub("", text.lower())).strip()


def normalize_numeric(text: str | None) -> str:
    """
    Like `normalize` but keeps `%`, `$`, `.` and `,` so numeric literals such as
    "2.5", "47%" or "$1,200" survive.
    """
    if not text:
        return ""
    return _WHITESPACE.sub(" ", _NON_NUMERIC_WORD.sub("", text.lower())).strip()
