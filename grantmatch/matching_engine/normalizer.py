"""
Keyword normalization for Korean/English program and profile text.

Korean titles do not word-break reliably on spaces ("스마트 공장" vs "스마트공장"),
so every string compared anywhere in the engine goes through normalize_keyword first.
"""

import re
from typing import Iterable, List, Optional

_WHITESPACE = re.compile(r"\s+")

_YEAR_PREFIX = re.compile(r"^\d{4}년도?\s*")
_TRAILING_PARENTHETICAL = re.compile(r"\([^)]*\)\s*$")
_YEAR_SUFFIX = re.compile(r"_?\(?20\d{2}\)?.*$")


def normalize_keyword(text: Optional[str]) -> str:
    """Remove all whitespace and case-fold to upper case."""
    if not text:
        return ""
    return _WHITESPACE.sub("", str(text)).upper()


def normalize_keywords(texts: Optional[Iterable[str]]) -> List[str]:
    """Normalize a collection of keywords, dropping empties and preserving order."""
    if not texts:
        return []
    result = []
    for text in texts:
        normalized = normalize_keyword(text)
        if normalized and normalized not in result:
            result.append(normalized)
    return result


def keywords_overlap(a: str, b: str) -> bool:
    """Bidirectional substring containment of two already-normalized keywords."""
    if not a or not b:
        return False
    return a in b or b in a


def split_words(text: Optional[str], min_length: int = 2) -> List[str]:
    """Split free text on whitespace, keeping words of at least min_length characters."""
    if not text:
        return []
    return [word for word in _WHITESPACE.split(text.strip()) if len(word) >= min_length]


def normalize_title_for_dedup(title: Optional[str]) -> str:
    """
    Canonical form of a program title used to detect re-posted announcements.

    Strips a leading year ("2025년도 "), a trailing parenthetical and any
    year suffix, then collapses whitespace and lower-cases.
    """
    if not title:
        return ""
    text = _YEAR_PREFIX.sub("", title)
    text = _TRAILING_PARENTHETICAL.sub("", text)
    text = _YEAR_SUFFIX.sub("", text)
    return _WHITESPACE.sub(" ", text).strip().lower()
