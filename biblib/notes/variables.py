"""
Template variables for literature notes.

Builds the variable mapping handed to the template engine from a CSL
citation, its contributors and optional attachment / related-note paths.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


@dataclass
class Contributor:
    role: str = "author"
    given: str = ""
    family: str = ""
    literal: str = ""
    extra: dict[str, Any] = field(default_factory=dict)   # ORCID, affiliation, …

    @classmethod
    def from_csl(cls, entry: Mapping, role: str = "author") -> "Contributor":
        known = {"role", "given", "family", "literal"}
        return cls(
            role=entry.get("role") or role,
            given=entry.get("given") or "",
            family=entry.get("family") or "",
            literal=entry.get("literal") or "",
            extra={k: v for k, v in entry.items() if k not in known},
        )

    def as_csl(self) -> dict[str, Any]:
        """CSL name object without the role."""
        out: dict[str, Any] = {}
        for key in ("family", "given", "literal"):
            if getattr(self, key):
                out[key] = getattr(self, key)
        out.update(self.extra)
        return out

    def display_name(self) -> str:
        """``J. Doe``, the literal name, or whichever part exists."""
        family, given, literal = self.family.strip(), self.given.strip(), self.literal.strip()
        if literal:
            return literal
        if family:
            return f"{given[0].upper()}. {family}" if given else family
        return given

    def full_name(self) -> str:
        if self.literal:
            return self.literal
        if self.family and self.given:
            return f"{self.given} {self.family}"
        return self.family or self.given


CONTRIBUTOR_ROLES = ("author", "editor", "translator", "container-author")


def contributors_from_citation(citation: Mapping) -> list[Contributor]:
    """Collect CSL name lists (author, editor, …) into contributors."""
    result: list[Contributor] = []
    for role in CONTRIBUTOR_ROLES:
        for entry in citation.get(role) or []:
            if isinstance(entry, Mapping):
                result.append(Contributor.from_csl(entry, role))
    return result


def format_authors(contributors: list[Contributor]) -> str:
    """``A. Smith``, ``A. Smith and B. Jones`` or ``A. Smith et al.``."""
    names = [c.display_name() for c in contributors if c.role == "author"]
    names = [n for n in names if n]
    if not names:
        return ""
    if len(names) == 1:
        return names[0]
    if len(names) == 2:
        return f"{names[0]} and {names[1]}"
    return f"{names[0]} et al."


def contributor_lists(contributors: list[Contributor]) -> dict[str, Any]:
    """Per-role lists: ``authors``, ``authors_family``, ``authors_given``, ``authors_raw``."""
    by_role: dict[str, list[Contributor]] = {}
    for c in contributors:
        by_role.setdefault(c.role or "author", []).append(c)

    result: dict[str, Any] = {}
    for role, members in by_role.items():
        result[f"{role}s_raw"] = [dict(c.as_csl(), role=role) for c in members]
        result[f"{role}s"] = [n for n in (c.full_name() for c in members) if n]
        result[f"{role}s_family"] = [n for n in (c.family or c.literal for c in members) if n]
        result[f"{role}s_given"] = [c.given for c in members if c.given]
    return result


def _attachment_link(path: str) -> str:
    ext = path.rsplit(".", 1)[-1].upper() if "." in path else "FILE"
    return f"[[{path}|{ext}]]"


def build_variables(
    citation: Mapping,
    contributors: Optional[list[Contributor]] = None,
    attachment_paths: Optional[list[str]] = None,
    related_note_paths: Optional[list[str]] = None,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """
    Build the full variable mapping for note templates.

    Contributors default to the CSL name lists found on `citation`.
    """
    if contributors is None:
        contributors = contributors_from_citation(citation)
    now = now or datetime.now()

    variables: dict[str, Any] = {
        "currentDate": now.strftime("%Y-%m-%d"),
        "currentTime": now.strftime("%H:%M:%S"),
        "authors": format_authors(contributors),
    }
    variables.update(citation)
    variables.update(contributor_lists(contributors))
    variables["citekey"] = citation.get("id") or ""

    paths = list(attachment_paths or [])
    links = [_attachment_link(p) for p in paths]
    variables.update(
        pdflink=paths,
        raw_pdflinks=paths,
        attachments=links,
        quoted_attachments=[f'"{link}"' for link in links],
        raw_pdflink=paths[0] if paths else "",
        attachment=links[0] if links else "",
        quoted_attachment=f'"{links[0]}"' if links else "",
    )

    notes = list(related_note_paths or [])
    wikilinks = [f"[[{p}]]" for p in notes]
    variables.update(
        links=wikilinks,
        linkPaths=notes,
        links_string=", ".join(wikilinks),
    )
    return variables
