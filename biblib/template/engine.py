"""
Template engine for literature-note fields, headers, filenames and citekeys.

Syntax
------
  {{name}}                    – substitute a variable (dotted paths allowed)
  {{name|upper|truncate:20}}  – run the value through formatters, left to right
  {{#name}}…{{/name}}         – render if truthy; repeat per item for lists
  {{^name}}…{{/name}}         – render if missing / empty
  {{rand}}, {{rand|8}}        – random alphanumeric string

Inside a list block the current item is ``{{.}}`` (``{{.field}}`` for a field
of it) and loop metadata is available as ``@index``, ``@number``, ``@first``,
``@last``, ``@odd``, ``@even`` and ``@length``.

The template is tokenized, parsed into a small tree of `Text`, `Variable` and
`Section` nodes and then evaluated.  Block delimiters are therefore resolved
before any value is substituted, and substituted values are never scanned
for template syntax again.
"""

from __future__ import annotations

import re
from collections import ChainMap
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional, Union

from biblib.frontmatter.yaml_array import is_array_template, normalize_yaml_array
from biblib.logger import clip, get_logger
from biblib.template.formatters import DEFAULT_RAND_LENGTH, apply_chain, random_string
from biblib.template.sanitize import sanitize_citekey
from biblib.template.values import (
    MISSING,
    SEQUENCE_TYPES,
    is_empty,
    is_truthy,
    resolve_path,
    to_text,
)

_log = get_logger("template.engine")

_TAG_RE = re.compile(r"\{\{([^}]*)\}\}")
_VARIABLE_RE = re.compile(r"([^#^|]+)(?:\|(.+))?", re.DOTALL)
_RAND_KEY = "rand"
_RAND_N_RE = re.compile(r"rand(\d+)")
_DIGITS_RE = re.compile(r"\d+")


@dataclass(frozen=True)
class RenderOptions:
    """Post-processing applied to the rendered text."""
    sanitize_for_citekey: bool = False   # Pandoc citekey rules
    yaml_array: bool = False             # repair bracketed templates into JSON arrays


# ---------------------------------------------------------------------------
# Syntax tree
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Text:
    text: str


@dataclass(frozen=True)
class Variable:
    key: str
    formatters: tuple[str, ...] = ()


@dataclass(frozen=True)
class Section:
    name: str
    inverted: bool
    children: tuple["Node", ...]


Node = Union[Text, Variable, Section]


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class _Token:
    kind: str            # "text" | "open" | "inverted" | "close" | "var"
    raw: str
    name: str = ""
    formatters: tuple[str, ...] = ()


def _classify(body: str, raw: str) -> _Token:
    if body[:1] in ("#", "^"):
        name = body[1:].strip()
        if name:
            return _Token("open" if body[0] == "#" else "inverted", raw, name)
        return _Token("text", raw)
    if body[:1] == "/":
        return _Token("close", raw, body[1:].strip())

    m = _VARIABLE_RE.fullmatch(body)
    if m is None:
        return _Token("text", raw)
    fmt = (m.group(2) or "").strip()
    formatters = tuple(f.strip() for f in fmt.split("|")) if fmt else ()
    return _Token("var", raw, m.group(1).strip(), formatters)


def tokenize(template: str) -> list[_Token]:
    tokens: list[_Token] = []
    pos = 0
    for m in _TAG_RE.finditer(template):
        if m.start() > pos:
            tokens.append(_Token("text", template[pos:m.start()]))
        tokens.append(_classify(m.group(1), m.group(0)))
        pos = m.end()
    if pos < len(template):
        tokens.append(_Token("text", template[pos:]))
    return tokens


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

def parse(template: str) -> tuple[Node, ...]:
    """Parse a template into a tuple of nodes."""
    nodes, _, _ = _parse_block(tokenize(template), 0, ())
    return tuple(nodes)


def _parse_block(
    tokens: list[_Token],
    pos: int,
    open_names: tuple[str, ...],
) -> tuple[list[Node], int, bool]:
    """
    Parse tokens until the close tag of the innermost open block.

    Returns (nodes, next position, closed).  An opening tag whose block is
    never closed is kept as literal text; a close tag that matches no open
    block renders as nothing.
    """
    nodes: list[Node] = []
    while pos < len(tokens):
        tok = tokens[pos]

        if tok.kind == "close":
            if open_names and tok.name == open_names[-1]:
                return nodes, pos + 1, True
            if tok.name in open_names:
                # closes an enclosing block: the current one is unterminated
                return nodes, pos, False
            pos += 1
            continue

        if tok.kind in ("open", "inverted"):
            children, after, closed = _parse_block(tokens, pos + 1, open_names + (tok.name,))
            if closed:
                nodes.append(Section(tok.name, tok.kind == "inverted", tuple(children)))
                pos = after
            else:
                nodes.append(Text(tok.raw))
                pos += 1
            continue

        if tok.kind == "var":
            nodes.append(Variable(tok.name, tok.formatters))
        else:
            nodes.append(Text(tok.raw))
        pos += 1

    return nodes, pos, False


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------

def _loop_context(item: Any, index: int, length: int) -> dict[str, Any]:
    return {
        ".": item,
        "@index": index,
        "@number": index + 1,
        "@first": index == 0,
        "@last": index == length - 1,
        "@odd": index % 2 == 1,
        "@even": index % 2 == 0,
        "@length": length,
    }


def _render_section(node: Section, scope: ChainMap) -> str:
    value = resolve_path(scope, node.name)

    if node.inverted:
        return _render_nodes(node.children, scope) if is_empty(value) else ""

    if isinstance(value, SEQUENCE_TYPES):
        length = len(value)
        return "".join(
            _render_nodes(node.children, scope.new_child(_loop_context(item, i, length)))
            for i, item in enumerate(value)
        )

    return _render_nodes(node.children, scope) if is_truthy(value) else ""


def _render_variable(node: Variable, scope: ChainMap) -> str:
    if node.key == _RAND_KEY and (
        not node.formatters
        or (len(node.formatters) == 1 and _DIGITS_RE.fullmatch(node.formatters[0]))
    ):
        length = int(node.formatters[0]) if node.formatters else DEFAULT_RAND_LENGTH
        return random_string(length)

    value = resolve_path(scope, node.key)

    if value is MISSING and not node.formatters:
        m = _RAND_N_RE.fullmatch(node.key)
        if m:
            return random_string(int(m.group(1)))

    if value is MISSING or value is None:
        return ""
    if node.formatters:
        return apply_chain(value, list(node.formatters))
    return to_text(value)


def _render_nodes(nodes: tuple[Node, ...], scope: ChainMap) -> str:
    parts: list[str] = []
    for node in nodes:
        if isinstance(node, Text):
            parts.append(node.text)
        elif isinstance(node, Variable):
            parts.append(_render_variable(node, scope))
        else:
            parts.append(_render_section(node, scope))
    return "".join(parts)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def render(
    template: str,
    variables: Optional[Mapping[str, Any]] = None,
    options: Optional[RenderOptions] = None,
) -> str:
    """
    Render `template` against `variables`.

    Missing values render as empty strings.  With
    ``options.sanitize_for_citekey`` the output is reduced to a valid Pandoc
    citekey; with ``options.yaml_array`` a template written as ``[...]`` is
    repaired into a JSON array literal.  Never raises.
    """
    opts = options or RenderOptions()
    try:
        result = _render_nodes(parse(template), ChainMap(dict(variables or {})))
    except (RecursionError, TypeError, ValueError, LookupError) as exc:
        _log.error(f"Rendering failed for template {clip(template)!r}: {exc}")
        result = ""

    if opts.sanitize_for_citekey:
        result = sanitize_citekey(result)

    if opts.yaml_array and is_array_template(template):
        return normalize_yaml_array(result)

    return result
