"""Configuration loading and validation for biblib."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from biblib.citations.citekey import CitekeyOptions


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------

@dataclass
class StandardFrontmatterField:
    name: str                       # CSL key, e.g. "title", "DOI"
    label: str = ""
    enabled: bool = True
    alias: str = ""                 # alternative key written to front matter

    @property
    def key(self) -> str:
        return self.alias.strip() or self.name


@dataclass
class CustomFrontmatterField:
    name: str
    template: str
    enabled: bool = True
    insert_after: str = "end"       # "start", "end" or a standard field name


def _default_standard_fields() -> list[StandardFrontmatterField]:
    return [
        StandardFrontmatterField("id", "ID"),
        StandardFrontmatterField("type", "Type"),
        StandardFrontmatterField("title", "Title"),
        StandardFrontmatterField("author", "Author"),
        StandardFrontmatterField("issued", "Date Issued"),
        StandardFrontmatterField("container-title", "Container Title"),
        StandardFrontmatterField("publisher", "Publisher", enabled=False),
        StandardFrontmatterField("page", "Pages", enabled=False),
        StandardFrontmatterField("volume", "Volume", enabled=False),
        StandardFrontmatterField("URL", "URL", enabled=False),
        StandardFrontmatterField("DOI", "DOI", enabled=False),
    ]


def _default_custom_fields() -> list[CustomFrontmatterField]:
    return [
        CustomFrontmatterField("year", "{{year}}"),
        CustomFrontmatterField("dateCreated", "{{currentDate}}"),
        CustomFrontmatterField("reading-status", "to-read"),
        CustomFrontmatterField("aliases", '["{{title|sentence}}"]'),
        CustomFrontmatterField("author-links", '[{{#authors}}"[[Author/{{.}}]]",{{/authors}}]'),
        CustomFrontmatterField("attachment", "[{{#attachments}}{{.}},{{/attachments}}]"),
        CustomFrontmatterField("related", "[{{links_string}}]", enabled=False),
    ]


# ---------------------------------------------------------------------------
# Main config
# ---------------------------------------------------------------------------

@dataclass
class BiblibConfig:
    # Notes
    filename_template: str = "@{{citekey}}"
    header_template: str = (
        "# {{#title}}{{title}}{{/title}}{{^title}}{{citekey}}{{/title}} \n\n _Notes_"
    )
    chapter_header_template: str = (
        "# {{#raw_pdflink}}[[{{raw_pdflink}}|{{title}}]]{{/raw_pdflink}}"
        "{{^raw_pdflink}}{{title}}{{/raw_pdflink}}"
        " (in {{container-title}})"
    )
    literature_note_tag: str = ""

    # Citekeys
    citekey: CitekeyOptions = field(
        default_factory=lambda: CitekeyOptions(
            citekey_template="{{author|lowercase}}{{title|titleword}}{{year}}",
        )
    )

    # Front matter
    standard_frontmatter_fields: list[StandardFrontmatterField] = field(
        default_factory=_default_standard_fields
    )
    custom_frontmatter_fields: list[CustomFrontmatterField] = field(
        default_factory=_default_custom_fields
    )


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def load_config(path: str | Path = "biblib.yaml") -> BiblibConfig:
    """Load a YAML config file and merge it with the defaults."""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config file not found: {p}")

    with p.open(encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Config root must be a mapping, got: {type(raw).__name__}")

    return config_from_dict(raw)


def config_from_dict(raw: dict) -> BiblibConfig:
    cfg = BiblibConfig()

    # --- Top-level scalars ---
    for key in (
        "filename_template", "header_template",
        "chapter_header_template", "literature_note_tag",
    ):
        if key in raw:
            setattr(cfg, key, str(raw[key] if raw[key] is not None else ""))

    # --- Sub-configs ---
    if "citekey" in raw:
        ck = raw["citekey"] or {}
        cfg.citekey = CitekeyOptions(
            citekey_template=ck.get("template", cfg.citekey.citekey_template) or "",
            min_citekey_length=ck.get("min_length", cfg.citekey.min_citekey_length),
        )

    if "standard_frontmatter_fields" in raw:
        cfg.standard_frontmatter_fields = [
            StandardFrontmatterField(
                name=f["name"],
                label=f.get("label", ""),
                enabled=f.get("enabled", True),
                alias=f.get("alias") or "",
            )
            for f in raw["standard_frontmatter_fields"] or []
        ]

    if "custom_frontmatter_fields" in raw:
        cfg.custom_frontmatter_fields = [
            CustomFrontmatterField(
                name=f.get("name", ""),
                template=str(f.get("template", "")),
                enabled=f.get("enabled", True),
                insert_after=f.get("insert_after") or "end",
            )
            for f in raw["custom_frontmatter_fields"] or []
        ]

    _validate(cfg)
    return cfg


def _validate(cfg: BiblibConfig) -> None:
    min_len = cfg.citekey.min_citekey_length
    if isinstance(min_len, bool) or not isinstance(min_len, int) or min_len < 1:
        raise ValueError(f"citekey.min_length must be a positive integer, got: {min_len!r}")

    standard_names = {f.name for f in cfg.standard_frontmatter_fields}
    for cf in cfg.custom_frontmatter_fields:
        if not cf.name.strip():
            raise ValueError("custom frontmatter field without a name")
        anchor: Optional[str] = cf.insert_after
        if anchor not in ("start", "end") and anchor not in standard_names:
            raise ValueError(
                f"custom field {cf.name!r}: insert_after must be start/end or a "
                f"standard field name, got: {anchor!r}"
            )
