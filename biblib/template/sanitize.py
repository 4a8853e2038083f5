"""
Citekey sanitization following Pandoc's citation key rules.

  1. A key must start with a letter, digit or underscore: otherwise an
     underscore is prepended.
  2. Only alphanumerics, ``_`` and the internal punctuation
     ``: . # $ % & - + ? < > ~ /`` survive.
  3. Punctuation is internal only: a trailing run of it is removed.

The steps run in this order so the prepended underscore survives step 2 and
punctuation exposed by step 2 is still caught by step 3.
"""

from __future__ import annotations

import re

_VALID_START_RE = re.compile(r"^[a-zA-Z0-9_]")
_ILLEGAL_RE = re.compile(r"[^a-zA-Z0-9_:.#$%&\-+?<>~/]")
_TRAILING_PUNCT_RE = re.compile(r"[:.#$%&\-+?<>~/]+$")


def sanitize_citekey(key: str) -> str:
    if not _VALID_START_RE.match(key):
        key = "_" + key
    key = _ILLEGAL_RE.sub("", key)
    return _TRAILING_PUNCT_RE.sub("", key)
