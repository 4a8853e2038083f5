"""
Unit tests for Pandoc citekey sanitization.
"""

import pytest

from biblib.template.sanitize import sanitize_citekey


class TestSanitizeCitekey:
    def test_valid_key_unchanged(self):
        assert sanitize_citekey("smith2024") == "smith2024"
        assert sanitize_citekey("_smith") == "_smith"

    def test_internal_punctuation_kept(self):
        key = "a:b.c#d$e%f&g-h+i?j<k>l~m/n"
        assert sanitize_citekey(key) == key

    def test_invalid_start_gets_underscore(self):
        assert sanitize_citekey("-abc") == "_-abc"
        assert sanitize_citekey(":abc") == "_:abc"

    def test_illegal_characters_removed(self):
        assert sanitize_citekey("smith 2024!") == "smith2024"
        assert sanitize_citekey("o'brien(2020)") == "obrien2020"

    @pytest.mark.parametrize("key, expected", [
        ("smith2024.", "smith2024"),
        ("smith:2024:-", "smith:2024"),
        ("a!.", "a"),            # trailing punctuation exposed by stripping
        ("a.b!", "a.b"),
    ])
    def test_trailing_punctuation_removed(self, key, expected):
        assert sanitize_citekey(key) == expected

    def test_underscore_survives_stripping(self):
        assert sanitize_citekey("ümlaut") == "_mlaut"
        assert sanitize_citekey("ü") == "_"

    def test_empty_key(self):
        assert sanitize_citekey("") == "_"

    @pytest.mark.parametrize("key", [
        "", "smith2024", "-abc", "a!.", "ü", "  spaced out  ", "::", "x/y/", "_~_",
        "Smith & Jones (2024).", "<html>",
    ])
    def test_idempotent(self, key):
        once = sanitize_citekey(key)
        assert sanitize_citekey(once) == once
