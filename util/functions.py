# util/functions.py
import re

_EXTENSION = re.compile(r"\.[^.]+$")
_SEPARATORS = re.compile(r"[_\-.]+")
_DATE_PREFIX = re.compile(r"^\d{4}[\s-]\d{2}[\s-]\d{2}\s*", re.IGNORECASE)
_VERSION_PREFIX = re.compile(r"^v\d+(\.\d+)?\s*", re.IGNORECASE)
_CODE_PREFIX = re.compile(r"^[A-Z]{2,4}-[A-Z]{2,4}-\d+\s*", re.IGNORECASE)
_STATUS_SUFFIX = re.compile(r"\s*(FINAL|DRAFT|v\d+(\.\d+)?|copy)\s*$", re.IGNORECASE)

MAX_ALIAS_CHARS = 100


def truncate_for_prompt(text: str | None, max_chars: int = 2000) -> str:
    """
    - Trim `text` to at most `max_chars` characters, ellipsis included.
    - Empty or missing text becomes an empty string.
    """
    if not text:
        return ""
    if len(text) <= max_chars:
        return text
    return text[: max(0, max_chars - 3)] + "..."


def generate_alias(filename: str) -> str:
    """
    Human-friendly display name for an uploaded reference file, e.g.
    "2023-04-01_efficacy-study_FINAL.pdf" -> "Efficacy Study".
    """
    alias = _EXTENSION.sub("", filename)
    alias = _SEPARATORS.sub(" ", alias)
    alias = _DATE_PREFIX.sub("", alias)
    alias = _VERSION_PREFIX.sub("", alias)
    alias = _CODE_PREFIX.sub("", alias)
    alias = _STATUS_SUFFIX.sub("", alias)
    alias = re.sub(r"\s+", " ", alias).strip()
    alias = re.sub(r"\b\w", lambda m: m.group(0).upper(), alias)
    if len(alias) > MAX_ALIAS_CHARS:
        alias = re.sub(r"\s\w*$", "", alias[:MAX_ALIAS_CHARS])
    return alias or filename
