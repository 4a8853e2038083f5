"""
Repair of JSON array literals rendered for YAML front matter.

Template authors write array fields such as
``[{{#authors}}"[[Author/{{.}}]]",{{/authors}}]`` which render to almost
valid JSON: trailing commas from the loop, unquoted ``[[link]]`` items.
`normalize_yaml_array` turns that output into a parseable JSON array.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass

import yaml

from biblib.logger import clip, get_logger

_log = get_logger("frontmatter.yaml_array")

EMPTY_ARRAY = "[]"

_WS_RE = re.compile(r"\s")
# comma followed by an even number of double quotes up to the end
_QUOTE_AWARE_COMMA_RE = re.compile(r',(?=(?:[^"]*"[^"]*")*[^"]*$)')


def is_array_template(template: str) -> bool:
    """
    True for templates written as a bracketed array literal.  Surrounding
    whitespace disqualifies the template.
    """
    return template.startswith("[") and template.endswith("]")


def _is_json(text: str) -> bool:
    try:
        json.loads(text)
    except ValueError:
        return False
    return True


def _quote_item(item: str) -> str:
    if item.startswith('"') and item.endswith('"'):
        return item
    if "[[" in item and "]]" in item:
        return '"' + item.replace('"', '\\"') + '"'
    return item


def normalize_yaml_array(text: str) -> str:
    """
    Return `text` as a JSON array literal.

    ``[]`` and ``[ ]`` become ``[]``; valid JSON passes through; otherwise the
    content is split on commas outside double quotes, empty items are dropped
    and unquoted ``[[link]]`` items are quoted.  Text that is not bracketed
    is returned unchanged.
    """
    stripped = text.strip()
    if _WS_RE.sub("", stripped) == EMPTY_ARRAY:
        return EMPTY_ARRAY

    if not (stripped.startswith("[") and stripped.endswith("]")):
        return text

    if _is_json(stripped):
        return text

    content = stripped[1:-1].strip()
    items = [item.strip() for item in _QUOTE_AWARE_COMMA_RE.split(content)]
    items = [item for item in items if item]
    if not items:
        return EMPTY_ARRAY

    repaired = "[" + ",".join(_quote_item(item) for item in items) + "]"
    _log.debug(f"Repaired array literal {clip(stripped)!r} -> {clip(repaired)!r}")
    return repaired


# ---------------------------------------------------------------------------
# Explaining rendered output
# ---------------------------------------------------------------------------

@dataclass
class YamlAnalysis:
    yaml_representation: str
    explanation: str
    is_array: bool = False


def _as_frontmatter(value: object) -> str:
    body = yaml.safe_dump({"field": value}, sort_keys=False, allow_unicode=True)
    return f"---\n{body}---"


def analyze_yaml_output(template: str, rendered: str) -> YamlAnalysis:
    """
    Describe how a rendered custom-field value will be stored in front matter.
    """
    value = rendered.strip()

    if is_array_template(template) and not value:
        return YamlAnalysis(
            _as_frontmatter([]),
            "The array template rendered nothing and is stored as an empty list.",
            is_array=True,
        )

    if value.startswith("[") and value.endswith("]"):
        try:
            parsed = json.loads(value)
        except ValueError:
            return YamlAnalysis(
                _as_frontmatter(value),
                "This looks like an array but is not valid JSON. The template needs "
                "commas between quoted items. It will be stored as a plain string.",
            )
        return YamlAnalysis(
            _as_frontmatter(parsed),
            "This template produces a valid JSON array and is stored as a YAML list.",
            is_array=True,
        )

    if value.startswith("-") and "\n" in rendered:
        return YamlAnalysis(
            _as_frontmatter(value),
            "Dash lines are NOT parsed as a list. Use the JSON syntax with square "
            "brackets to create arrays.",
        )

    if "," in rendered and "\n" not in rendered and "{" not in rendered and "}" not in rendered:
        return YamlAnalysis(
            _as_frontmatter(rendered),
            "Comma-separated values are stored as a single string, not as a list.",
        )

    if "\n" in rendered:
        return YamlAnalysis(
            _as_frontmatter(rendered),
            "Multi-line text is stored as one string with its line breaks preserved.",
        )

    return YamlAnalysis(
        _as_frontmatter(rendered),
        "Simple strings are stored as-is.",
    )
