"""
YAML front matter for literature notes.

Standard CSL fields are written in the configured order (with optional
aliases); custom fields are rendered through the template engine and placed
at the start, at the end or after a named standard field.  Array templates
(``[...]``) are rendered in YAML-array mode and stored as real YAML lists.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, Optional

import yaml

from biblib.config import BiblibConfig, CustomFrontmatterField
from biblib.frontmatter.yaml_array import EMPTY_ARRAY, is_array_template, normalize_yaml_array
from biblib.logger import clip, get_logger
from biblib.notes.variables import Contributor, build_variables, contributors_from_citation
from biblib.template.engine import RenderOptions, render

_log = get_logger("frontmatter.builder")

NUMERIC_FIELDS = ("edition", "volume", "number")

# Sentinel: the custom field produces no entry
_SKIP = object()


def _maybe_number(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    try:
        return int(str(value))
    except ValueError:
        return value


def _standard_value(name: str, citation: Mapping, contributors: list[Contributor]) -> Any:
    """Value of a standard field, or None when it should be left out."""
    if name == "issued":
        parts = []
        for key in ("year", "month", "day"):
            if not citation.get(key):
                break
            parts.append(_maybe_number(citation[key]))
        if parts:
            return {"date-parts": [parts]}
        issued = citation.get("issued")
        return issued or None

    if name == "author":
        authors = [c.as_csl() for c in contributors if c.role == "author"]
        return authors or None

    value = citation.get(name)
    if value is None or value == "":
        return None
    if name in NUMERIC_FIELDS:
        return _maybe_number(value)
    return value


def render_custom_field(field: CustomFrontmatterField, variables: Mapping) -> Any:
    """Render one custom field; returns the YAML value or `_SKIP`."""
    # Attachments are passed through as lists rather than re-rendered
    if field.name == "pdflink" and field.template == "{{pdflink}}":
        return list(variables.get("pdflink") or []) or _SKIP
    if field.name == "attachment" and field.template == "{{attachment}}":
        return list(variables.get("attachments") or []) or _SKIP

    array_template = is_array_template(field.template)
    rendered = render(field.template, variables, RenderOptions(yaml_array=array_template))

    if rendered.strip() == "":
        return [] if array_template else _SKIP

    looks_structured = (
        (rendered.startswith("[") and rendered.endswith("]"))
        or (rendered.startswith("{") and rendered.endswith("}"))
    )
    if not looks_structured:
        return rendered

    candidate = normalize_yaml_array(rendered) if array_template else rendered
    try:
        return json.loads(candidate)
    except ValueError:
        _log.warning(f"Custom field {field.name!r} is not valid JSON: {clip(rendered)!r}")
        if array_template and candidate.replace(" ", "") == EMPTY_ARRAY:
            return []
        return rendered


def build_frontmatter(
    citation: Mapping,
    config: BiblibConfig,
    contributors: Optional[list[Contributor]] = None,
    attachment_paths: Optional[list[str]] = None,
    related_note_paths: Optional[list[str]] = None,
    variables: Optional[Mapping] = None,
) -> dict[str, Any]:
    """Assemble the front matter mapping for one citation."""
    if contributors is None:
        contributors = contributors_from_citation(citation)
    if variables is None:
        variables = build_variables(citation, contributors, attachment_paths, related_note_paths)

    frontmatter: dict[str, Any] = {}

    by_anchor: dict[str, list[CustomFrontmatterField]] = {}
    for cf in config.custom_frontmatter_fields:
        if cf.enabled:
            by_anchor.setdefault(cf.insert_after or "end", []).append(cf)

    def place_custom(anchor: str) -> None:
        for cf in by_anchor.get(anchor, []):
            if cf.name in frontmatter:
                continue
            value = render_custom_field(cf, variables)
            if value is not _SKIP:
                frontmatter[cf.name] = value

    place_custom("start")
    for sf in config.standard_frontmatter_fields:
        if not sf.enabled:
            continue
        value = _standard_value(sf.name, citation, contributors)
        if value is not None:
            frontmatter[sf.key] = value
        place_custom(sf.name)
    place_custom("end")

    tags = [t for t in citation.get("tags") or [] if str(t).strip()]
    if config.literature_note_tag.strip():
        tags.append(config.literature_note_tag.strip())
    frontmatter["tags"] = list(dict.fromkeys(tags))

    return frontmatter


def dump_frontmatter(frontmatter: Mapping[str, Any]) -> str:
    """Serialize front matter as YAML, keeping key order."""
    return yaml.safe_dump(
        dict(frontmatter),
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )
