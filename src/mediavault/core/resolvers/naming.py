"""Name parsing helpers shared by the built-in resolvers."""

from __future__ import annotations

import re

_YEAR_BRACKETED = re.compile(r"^(?P<title>.+?)\s*[\(\[](?P<year>(?:18|19|20)\d{2})[\)\]]")
_YEAR_INLINE = re.compile(r"^(?P<title>.+?)[\s._-]+(?P<year>(?:19|20)\d{2})(?=[\s._-]|$)")
_SEPARATORS = re.compile(r"[._]+")
_WHITESPACE = re.compile(r"\s+")
_ARTICLES = ("the ", "a ", "an ")


def clean_title(text: str) -> str:
    """Turn a file-system name fragment into a display title."""
    text = _SEPARATORS.sub(" ", text)
    return _WHITESPACE.sub(" ", text).strip(" -")


def parse_title_year(name: str) -> tuple[str, int | None]:
    """Split ``Title (YYYY)`` or ``Title.YYYY.more`` into title and year.

    Returns:
        The cleaned title and the year, or the whole cleaned name and None
    """
    match = _YEAR_BRACKETED.match(name) or _YEAR_INLINE.match(name)
    if match:
        title = clean_title(match.group("title"))
        if title:
            return title, int(match.group("year"))
    return clean_title(name) or name, None


def has_bracketed_year(name: str) -> bool:
    return _YEAR_BRACKETED.match(name) is not None


def sort_title(title: str) -> str:
    """Title without a leading article, for ordering."""
    lowered = title.lower()
    for article in _ARTICLES:
        if lowered.startswith(article) and len(title) > len(article):
            return title[len(article):]
    return title
