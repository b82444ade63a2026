# core/keywords.py
import re
from typing import AbstractSet, Final, List
from core.text_normalizer import normalize, normalize_numeric

STOP_WORDS: Final[frozenset[str]] = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
        "of", "with", "by", "from", "is", "are", "was", "were", "be", "been",
        "being", "have", "has", "had", "do", "does", "did", "will", "would",
        "could", "should", "may", "might", "can", "shall", "this", "that",
        "these", "those", "it", "its", "not", "no", "than", "as", "if",
        "when", "where", "which", "who", "whom", "what", "how", "all", "each",
        "every", "both", "few", "more", "most", "other", "some", "such",
        "only", "also", "very", "just", "about", "above", "after", "before",
        "between", "during", "through", "into", "over", "under", "again",
        "further", "then", "once", "here", "there", "any", "up", "out",
        "so", "we", "they", "he", "she", "me", "him", "her", "my", "your",
        "our", "their", "us", "them",
    }
)

MIN_KEYWORD_LEN: Final[int] = 3

_NON_KEYWORD: Final = re.compile(r"[^\w\s-]|_")
_NUMBER: Final = re.compile(r"\d+(?:[.,]\d+)*")


def _dedupe(values: List[str]) -> List[str]:
    return list(dict.fromkeys(values))


def extract_keywords(
    text: str | None, stop_words: AbstractSet[str] = STOP_WORDS
) -> List[str]:
    """
    Stop-word filtered, de-duplicated terms of `text` in first-seen order.
    """
    cleaned = _NON_KEYWORD.sub(" ", normalize(text))
    return _dedupe(
        [
            w
            for w in cleaned.split()
            if len(w) >= MIN_KEYWORD_LEN and w not in stop_words
        ]
    )


def tokens(text: str | None) -> List[str]:
    """Normalized whitespace tokens, order and duplicates kept."""
    return normalize(text).split()


def extract_numbers(text: str | None) -> List[str]:
    """Numeric literals ("47", "2.5", "1,200") in first-seen order."""
    cleaned = normalize_numeric(text)
    return _dedupe(_NUMBER.findall(cleaned))
