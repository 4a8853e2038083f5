"""
Citation key generation.

Priority: configured template > author-year fallback.

Templates use the engine syntax (``{{author|lowercase}}{{year}}``) or the
compact bracket syntax known from reference managers
(``[auth:lower][year][title:words(1)]``), which is translated first.
Generation never raises: failures come back as strings starting with
``error_`` so note creation is never blocked.
"""

from __future__ import annotations

import random
import re
from collections.abc import Mapping
from dataclasses import dataclass, fields
from datetime import date
from typing import Any, Optional, Union

from biblib.citations.extract import (
    UNKNOWN_AUTHOR,
    author_entries,
    extract_author_part,
    extract_title_part,
    extract_year_part,
)
from biblib.logger import clip, get_logger
from biblib.template.engine import RenderOptions, render
from biblib.template.sanitize import sanitize_citekey

_log = get_logger("citations.citekey")

ERROR_NO_DATA = "error_no_data"
ERROR_GENERATING = "error_generating_citekey"
ERROR_PREFIX = "error_"

_BRACKET_RE = re.compile(r"\[([a-zA-Z0-9_]+)((?::[a-zA-Z0-9(),]+)*)\]")
_ABBR_MOD_RE = re.compile(r"^abbr\((\d+)\)$")
_WORDS_MOD_RE = re.compile(r"^words\((\d+)\)$")

FIELD_ALIASES = {"auth": "author"}


@dataclass
class CitekeyOptions:
    citekey_template: str = "{{author|lowercase}}{{year}}"
    min_citekey_length: int = 6


# Plugin-settings spelling accepted in option mappings
OPTION_ALIASES = {
    "citekeyTemplate": "citekey_template",
    "minCitekeyLength": "min_citekey_length",
}


def _merge_options(options: Union[CitekeyOptions, Mapping, None]) -> CitekeyOptions:
    """
    Overlay user options on the defaults; None values keep the default.

    Mappings may use snake_case field names or the camelCase aliases; unknown
    keys are logged and ignored.
    """
    if options is None:
        return CitekeyOptions()
    if isinstance(options, CitekeyOptions):
        supplied = {f.name: getattr(options, f.name) for f in fields(CitekeyOptions)}
    else:
        known = {f.name for f in fields(CitekeyOptions)}
        supplied = {}
        for key, value in dict(options).items():
            name = OPTION_ALIASES.get(key, key)
            if name in known:
                supplied[name] = value
            else:
                _log.warning(f"Ignoring unknown citekey option {key!r}")
    merged = CitekeyOptions()
    for f in fields(CitekeyOptions):
        if supplied.get(f.name) is not None:
            setattr(merged, f.name, supplied[f.name])
    return merged


def _random_digits() -> str:
    return f"{random.randrange(1000):03d}"


# ---------------------------------------------------------------------------
# Bracket templates
# ---------------------------------------------------------------------------

def _convert_modifier(field: str, mod: str) -> str:
    m = _ABBR_MOD_RE.match(mod)
    if m:
        return f"abbr{m.group(1)}"
    if _WORDS_MOD_RE.match(mod):
        if field == "title":
            return "titleword"
        if field == "shorttitle":
            return "shorttitle"
    return mod


def convert_bracket_template(template: str) -> str:
    """
    Translate ``[field:mod1:mod2]`` into ``{{field|mod1|mod2}}``.

    >>> convert_bracket_template("[auth:abbr(3)][year]")
    '{{author|abbr3}}{{year}}'
    """
    def repl(m: re.Match) -> str:
        field = m.group(1).lower()
        var = FIELD_ALIASES.get(field, field)
        mods = [
            _convert_modifier(field, mod)
            for mod in m.group(2)[1:].split(":")
            if mod
        ]
        pipe = "|" + "|".join(mods) if mods else ""
        return "{{" + var + pipe + "}}"

    return _BRACKET_RE.sub(repl, template)


# ---------------------------------------------------------------------------
# Variables
# ---------------------------------------------------------------------------

def prepare_citekey_variables(citation_data: Mapping) -> dict[str, Any]:
    """Citation fields plus the derived ``author``, ``year`` and ``shorttitle``."""
    variables: dict[str, Any] = dict(citation_data)
    variables.update(
        author=extract_author_part(citation_data),
        year=extract_year_part(citation_data),
        title=citation_data.get("title") or "",
        shorttitle=extract_title_part(citation_data, 3),
        authors=author_entries(citation_data),
    )
    return variables


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------

def _fallback_citekey(citation_data: Mapping) -> str:
    author = extract_author_part(citation_data) or UNKNOWN_AUTHOR
    year = extract_year_part(citation_data) or str(date.today().year)
    return sanitize_citekey(author + year)


def generate(
    citation_data: Optional[Mapping],
    options: Union[CitekeyOptions, Mapping, None] = None,
) -> str:
    """
    Generate a citekey for `citation_data` (a CSL-JSON-like mapping).

    Returns ``error_no_data`` for missing data, ``error_generating_citekey``
    for an empty result and ``error_NNN`` for unexpected failures.
    """
    if citation_data is None:
        _log.error("Cannot generate citekey: no citation data")
        return ERROR_NO_DATA

    try:
        config = _merge_options(options)
        template = str(config.citekey_template or "")
        if template.strip():
            citekey = render(
                convert_bracket_template(template),
                prepare_citekey_variables(citation_data),
                RenderOptions(sanitize_for_citekey=True),
            )
            if len(citekey) < int(config.min_citekey_length):
                citekey += _random_digits()
            _log.debug(f"Citekey {citekey!r} from template {clip(template)!r}")
            _log.metric("citekey_generated", source="template", length=len(citekey))
            return citekey or ERROR_GENERATING

        _log.warning("No citekey template configured, using author-year fallback")
        citekey = _fallback_citekey(citation_data)
        _log.metric("citekey_generated", source="fallback", length=len(citekey))
        return citekey

    except Exception as exc:  # key generation must never block note creation
        _log.error(f"Error generating citekey: {exc}")
        return ERROR_PREFIX + _random_digits()
