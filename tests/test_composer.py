"""
Unit tests for literature note composition.
"""

from datetime import date

import pytest
import yaml

from biblib.config import BiblibConfig
from biblib.notes.composer import compose_note, render_filename, render_header
from biblib.notes.variables import build_variables


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture
def citation() -> dict:
    return {
        "id": "smith2024",
        "type": "article-journal",
        "title": "Neural Networks",
        "author": [{"family": "Smith", "given": "John"}],
        "issued": {"date-parts": [[2024]]},
    }


# ── Filenames ─────────────────────────────────────────────────────────────────

class TestRenderFilename:
    def test_default(self):
        assert render_filename("smith2024") == "@smith2024.md"

    def test_folder_template(self, citation):
        assert render_filename("smith2024", citation, "{{type}}/@{{citekey}}") == (
            "article-journal/@smith2024.md"
        )

    def test_empty_segments_dropped(self):
        assert render_filename("smith2024", {}, "{{type}}/@{{citekey}}") == "@smith2024.md"

    def test_unsafe_characters(self):
        citation = {"title": 'What? A "Test"'}
        assert render_filename("k", citation, "{{title}}") == "What_ A _Test_.md"

    def test_empty_template_uses_citekey(self):
        assert render_filename("smith:2024", None, "{{missing}}") == "@smith_2024.md"

    def test_current_date(self):
        name = render_filename("k", None, "{{currentDate}}-{{citekey}}", today=date(2025, 1, 2))
        assert name == "2025-01-02-k.md"


# ── Headers ───────────────────────────────────────────────────────────────────

class TestRenderHeader:
    def test_title_header(self, citation):
        header = render_header(citation, build_variables(citation), BiblibConfig())
        assert header.startswith("# Neural Networks")
        assert "_Notes_" in header

    def test_untitled_header_uses_citekey(self):
        citation = {"id": "smith2024"}
        header = render_header(citation, build_variables(citation), BiblibConfig())
        assert header.startswith("# smith2024")

    def test_chapter_header(self):
        citation = {"id": "c", "type": "chapter", "title": "Ch 1", "container-title": "Handbook"}
        header = render_header(citation, build_variables(citation), BiblibConfig())
        assert header == "# Ch 1 (in Handbook)"

    def test_chapter_header_with_pdf(self):
        citation = {"id": "c", "type": "chapter", "title": "Ch 1", "container-title": "Handbook"}
        variables = build_variables(citation, attachment_paths=["lib/c.pdf"])
        header = render_header(citation, variables, BiblibConfig())
        assert header == "# [[lib/c.pdf|Ch 1]] (in Handbook)"


# ── compose_note ──────────────────────────────────────────────────────────────

class TestComposeNote:
    def test_note_content(self, citation):
        draft = compose_note(citation, BiblibConfig())
        assert draft.citekey == "smith2024"
        assert draft.filename == "@smith2024.md"
        assert draft.content.startswith("---\nid: smith2024\n")

        _, front, body = draft.content.split("---\n", 2)
        assert yaml.safe_load(front) == draft.frontmatter
        assert body.startswith("\n# Neural Networks")

    def test_generates_missing_citekey(self, citation):
        del citation["id"]
        draft = compose_note(citation, BiblibConfig())
        assert draft.citekey == "smithneural2024"
        assert draft.frontmatter["id"] == "smithneural2024"
        assert draft.filename == "@smithneural2024.md"

    def test_original_citation_untouched(self, citation):
        del citation["id"]
        compose_note(citation, BiblibConfig())
        assert "id" not in citation

    def test_attachments(self, citation):
        draft = compose_note(citation, BiblibConfig(), attachment_paths=["lib/paper.pdf"])
        assert draft.frontmatter["attachment"] == ["[[lib/paper.pdf|PDF]]"]
