"""
Field extraction for citation keys.

Turns raw bibliographic records (CSL-JSON, Zotero-style ``creators`` lists,
loose ``year``/``date`` strings) into the three building blocks of a key:
first-author surname, four-digit year and significant title words.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from biblib.logger import get_logger

_log = get_logger("citations.extract")

UNKNOWN_AUTHOR = "unknown"

STOP_WORDS = frozenset({
    "a", "an", "the", "and", "or", "but", "on", "in", "at", "to", "for", "with",
    "of", "from", "by", "as", "into", "like", "near", "over", "past", "since",
    "upon", "about", "above", "across", "after", "against", "along", "among",
    "around", "before", "behind", "below", "beneath", "beside", "between",
    "beyond", "concerning", "considering", "despite", "down", "during",
    "except", "following", "inside", "minus", "onto", "opposite", "out",
    "outside", "per", "plus", "regarding", "round", "save", "through",
    "toward", "towards", "under", "underneath", "unlike", "until", "up",
    "versus", "via", "within", "without",
})

_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")
_EDGE_PUNCT_RE = re.compile(r"^[^a-zA-Z0-9]+|[^a-zA-Z0-9]+$")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")
_LITERAL_SPLIT_RE = re.compile(r"[\s,\-.:;()&/]+")
_NAME_CLEAN_RE = re.compile(r"[^a-z0-9_-]", re.IGNORECASE)
_YEAR_RE = re.compile(r"\b([0-9]{4})\b", re.ASCII)
_LEADING_INT_RE = re.compile(r"\s*([+-]?[0-9]+)")


# ---------------------------------------------------------------------------
# Title words
# ---------------------------------------------------------------------------

def extract_title_words(title: Any, count: int = 1) -> str:
    """
    Return the first `count` significant words of `title`, joined, lowercased
    and reduced to ``[a-z0-9]``.

    Stop words are skipped; if nothing survives, the first `count` raw words
    are used instead.
    """
    if not title or not isinstance(title, str):
        return ""

    words = _WS_RE.split(_TAG_RE.sub("", title))
    significant = [
        w for w in (_EDGE_PUNCT_RE.sub("", word) for word in words)
        if w and w.lower() not in STOP_WORDS
    ]

    if significant:
        chosen = significant[:count]
    else:
        chosen = [w for w in (_EDGE_PUNCT_RE.sub("", word) for word in words[:count]) if w]

    return _NON_ALNUM_RE.sub("", "".join(chosen).lower())


def extract_title_part(data: Mapping, count: int = 1) -> str:
    title = data.get("title") or data.get("Title")
    return extract_title_words(title, count)


# ---------------------------------------------------------------------------
# Authors
# ---------------------------------------------------------------------------

def author_entries(data: Mapping) -> list:
    """Raw author list: CSL ``author`` or Zotero creators of type author."""
    authors = data.get("author")
    if isinstance(authors, list) and authors:
        return authors
    creators = data.get("creators")
    if isinstance(creators, list):
        return [
            c for c in creators
            if isinstance(c, Mapping) and c.get("creatorType") == "author"
        ]
    return []


def last_name_of(author: Any) -> str:
    """
    Surname of one author entry, cleaned to ``[a-z0-9_-]``.

    Handles CSL ``{family, given}``, ``{literal}``, Zotero
    ``{lastName, firstName}`` and plain strings ("Last, First" or first word).
    """
    if not author:
        return ""

    last = ""
    if isinstance(author, Mapping):
        last = author.get("family") or author.get("lastName") or ""
        literal = author.get("literal")
        if not last and literal:
            parts = [p for p in _LITERAL_SPLIT_RE.split(str(literal)) if p]
            last = parts[0] if parts else ""
    elif isinstance(author, str):
        if "," in author:
            last = author.split(",", 1)[0].strip()
        else:
            last = author.split(" ")[0].strip()

    if not last:
        return ""
    return _NAME_CLEAN_RE.sub("", str(last).lower())


def extract_author_part(data: Mapping) -> str:
    """First author's cleaned surname, or ``"unknown"``."""
    name = ""
    authors = author_entries(data)
    creators = data.get("creators")
    if authors:
        name = last_name_of(authors[0])
    elif isinstance(creators, list) and creators:
        name = last_name_of(creators[0])

    # Never substitute title text for a missing author
    return name or UNKNOWN_AUTHOR


# ---------------------------------------------------------------------------
# Year
# ---------------------------------------------------------------------------

def _search_year(value: Any) -> str:
    m = _YEAR_RE.search(value)
    return m.group(1) if m else ""


def extract_year_part(data: Mapping) -> str:
    """
    Four-digit year, first match wins:
      1. issued.date-parts[0][0] (1000 < year < 3000)
      2. ``year``
      3. issued.literal
      4. ``date``
      5. ``issued`` as a plain string
    Returns "" when nothing matches.
    """
    try:
        issued = data.get("issued")

        if isinstance(issued, Mapping):
            parts = issued.get("date-parts")
            first = parts[0] if isinstance(parts, list) and parts else None
            if isinstance(first, list) and first and first[0]:
                m = _LEADING_INT_RE.match(str(first[0]))
                if m and 1000 < int(m.group(1)) < 3000:
                    return str(int(m.group(1)))

        year = data.get("year")
        if year:
            found = _search_year(str(year))
            if found:
                return found

        if isinstance(issued, Mapping) and isinstance(issued.get("literal"), str):
            found = _search_year(issued["literal"])
            if found:
                return found

        date = data.get("date")
        if isinstance(date, str):
            found = _search_year(date)
            if found:
                return found

        if isinstance(issued, str):
            found = _search_year(issued)
            if found:
                return found
    except (AttributeError, TypeError, ValueError) as exc:
        _log.warning(f"Year extraction failed: {exc}")

    return ""
