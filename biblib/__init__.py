"""
biblib – template rendering and citation-key engine for literature notes.
"""

from biblib.citations.citekey import CitekeyOptions, generate
from biblib.frontmatter.yaml_array import normalize_yaml_array
from biblib.template.engine import RenderOptions, render
from biblib.template.sanitize import sanitize_citekey

__version__ = "0.1.0"

__all__ = [
    "CitekeyOptions",
    "RenderOptions",
    "generate",
    "normalize_yaml_array",
    "render",
    "sanitize_citekey",
]
