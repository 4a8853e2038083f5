"""
Literature note composition: citekey, filename, front matter and header.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from biblib.citations.citekey import generate
from biblib.config import BiblibConfig
from biblib.frontmatter.builder import build_frontmatter, dump_frontmatter
from biblib.logger import get_logger
from biblib.notes.variables import Contributor, build_variables, contributors_from_citation
from biblib.template.engine import render

_log = get_logger("notes.composer")

_UNSAFE_FILENAME_RE = re.compile(r'[\\:"*?<>|]+')
_UNSAFE_ID_RE = re.compile(r"[^a-zA-Z0-9_\-]+")


@dataclass
class NoteDraft:
    citekey: str
    filename: str
    frontmatter: dict[str, Any] = field(default_factory=dict)
    content: str = ""


def render_header(citation: Mapping, variables: Mapping, config: BiblibConfig) -> str:
    """Header block; book chapters with a container title use the chapter template."""
    template = config.header_template
    if (
        citation.get("type") == "chapter"
        and citation.get("container-title")
        and config.chapter_header_template
    ):
        template = config.chapter_header_template
    return render(template, variables)


def render_filename(
    citekey: str,
    citation: Optional[Mapping] = None,
    template: str = "@{{citekey}}",
    today: Optional[date] = None,
) -> str:
    """
    Relative note path for `citekey`, always ending in ``.md``.

    Path segments that render empty (missing variables) are dropped.
    """
    variables: dict[str, Any] = {
        "citekey": citekey,
        "currentDate": (today or date.today()).isoformat(),
    }
    if citation is not None:
        for key in ("title", "year", "type", "container-title"):
            variables[key] = citation.get(key) or ""

    name = render(template, variables) if template else ""
    if not name.strip():
        name = "@" + _UNSAFE_ID_RE.sub("_", citekey)
    name = _UNSAFE_FILENAME_RE.sub("_", name)

    if "/" not in name:
        return f"{name}.md"

    segments = [s for s in name.split("/") if s.strip()]
    if not segments:
        return f"{citekey}.md"
    segments[-1] += ".md"
    return "/".join(segments)


def compose_note(
    citation: Mapping,
    config: BiblibConfig,
    contributors: Optional[list[Contributor]] = None,
    attachment_paths: Optional[list[str]] = None,
    related_note_paths: Optional[list[str]] = None,
) -> NoteDraft:
    """
    Build a complete literature note.  A citation without an ``id`` gets a
    generated citekey.
    """
    citation = dict(citation)
    if not citation.get("id"):
        citation["id"] = generate(citation, config.citekey)
        _log.info(f"Generated citekey {citation['id']}")
    citekey = str(citation["id"])

    if contributors is None:
        contributors = contributors_from_citation(citation)
    variables = build_variables(citation, contributors, attachment_paths, related_note_paths)

    frontmatter = build_frontmatter(
        citation, config, contributors, attachment_paths, related_note_paths, variables=variables
    )
    header = render_header(citation, variables, config)
    content = f"---\n{dump_frontmatter(frontmatter)}---\n\n{header}\n\n"

    return NoteDraft(
        citekey=citekey,
        filename=render_filename(citekey, citation, config.filename_template),
        frontmatter=frontmatter,
        content=content,
    )
