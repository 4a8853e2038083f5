"""
Unit tests for the formatter pipeline.
"""

import re

import pytest

from biblib.template.engine import render
from biblib.template.formatters import (
    DEFAULT_TRUNCATE,
    FORMATTERS,
    apply,
    apply_chain,
    parse_spec,
)


# ── Case ──────────────────────────────────────────────────────────────────────

class TestCaseFormatters:
    @pytest.mark.parametrize("name", ["upper", "uppercase"])
    def test_upper_aliases(self, name):
        assert apply(name, "Deep Learning") == "DEEP LEARNING"

    @pytest.mark.parametrize("name", ["lower", "lowercase"])
    def test_lower_aliases(self, name):
        assert apply(name, "Deep Learning") == "deep learning"

    def test_capitalize_every_word(self):
        assert apply("capitalize", "neural networks for climate") == "Neural Networks For Climate"
        assert apply("title", "a  b") == "A  B"

    def test_sentence_only_first_character(self):
        assert apply("sentence", "neural Networks") == "Neural Networks"
        assert apply("sentence", "") == ""

    def test_non_string_values_are_stringified(self):
        assert apply("upper", True) == "TRUE"
        assert apply("upper", ["a", "b"]) == "A,B"
        assert apply("lower", 2024.0) == "2024"


# ── Length ────────────────────────────────────────────────────────────────────

class TestLengthFormatters:
    def test_truncate_default(self):
        text = "x" * 50
        assert apply("truncate", text) == "x" * DEFAULT_TRUNCATE

    def test_truncate_with_argument(self):
        assert apply("truncate", "abcdefgh", ["5"]) == "abcde"
        assert apply("truncate", "abc", ["5"]) == "abc"

    def test_truncate_bad_argument_leaves_value(self):
        assert apply("truncate", "abcdefgh", ["x"]) == "abcdefgh"

    def test_ellipsis(self):
        assert apply("ellipsis", "abcdefgh", ["5"]) == "abcde..."
        assert apply("ellipsis", "abc", ["5"]) == "abc"

    def test_abbr_default_and_argument(self):
        assert apply("abbr", "Smith") == "S"
        assert apply("abbr", "Smith", ["3"]) == "Smi"

    def test_numbered_fallback(self):
        assert apply("abbr3", "Smith") == "Smi"
        assert apply("truncate4", "Smithson") == "Smit"
        assert apply("abbr7", "Rodriguez") == "Rodrigu"

    def test_numbered_name_with_args_passes_through(self):
        assert apply("abbr3", "Smith", ["1"]) == "Smith"

    def test_slice(self):
        assert apply("slice", "abcdef", ["1", "3"]) == "bc"
        assert apply("slice", "abcdef", ["2"]) == "cdef"
        assert apply("slice", "abcdef") == "abcdef"

    def test_pad(self):
        assert apply("pad", "7", ["3", "0"]) == "007"
        assert apply("pad", "7", ["3"]) == "  7"
        assert apply("pad", "1234", ["3", "0"]) == "1234"


# ── Content ───────────────────────────────────────────────────────────────────

class TestContentFormatters:
    def test_replace_is_global(self):
        assert apply("replace", "a-b-c", ["-", "_"]) == "a_b_c"

    def test_replace_regex(self):
        assert apply("replace", "a1b22c", ["\\d+", "#"]) == "a#b#c"

    def test_replace_invalid_regex_falls_back_to_literal(self):
        assert apply("replace", "a(b", ["(", "x"]) == "axb"

    def test_replace_missing_argument(self):
        assert apply("replace", "abc", ["a"]) == "abc"

    def test_trim_prefix_suffix(self):
        assert apply("trim", "  abc \n") == "abc"
        assert apply("prefix", "smith", ["@"]) == "@smith"
        assert apply("suffix", "smith", ["_"]) == "smith_"

    def test_split_normalizes_delimiter(self):
        assert apply("split", "a;b;c", [";"]) == "a,b,c"

    def test_join(self):
        assert apply("join", ["a", "b"], ["-"]) == "a-b"
        assert apply("join", ["a", "b"]) == "a,b"
        assert apply("join", "plain", ["-"]) == "plain"

    def test_url_encoding(self):
        assert apply("urlencode", "a b&c") == "a%20b%26c"
        assert apply("urldecode", "a%20b%26c") == "a b&c"


# ── Numbers and structures ────────────────────────────────────────────────────

class TestNumberFormatters:
    def test_number_precision(self):
        assert apply("number", "3.14159", ["2"]) == "3.14"

    def test_number_without_precision(self):
        assert apply("number", "42") == "42"
        assert apply("number", "2024.0") == "2024"
        assert apply("number", "15 pages") == "15"

    def test_number_unparseable(self):
        assert apply("number", "abc", ["2"]) == "abc"

    def test_json_uses_raw_value(self):
        assert apply("json", ["a", 1]) == '["a",1]'
        assert apply("json", {"name": "Müller"}) == '{"name":"Müller"}'

    def test_count(self):
        assert apply("count", ["a", "b", "c"]) == "3"
        assert apply("count", "abc") == "0"


# ── Dates ─────────────────────────────────────────────────────────────────────

class TestDateFormatter:
    def test_styles(self):
        assert apply("date", "2024-03-15", ["year"]) == "2024"
        assert apply("date", "2024-03-15", ["month"]) == "3"
        assert apply("date", "2024-03-15", ["day"]) == "15"
        assert apply("date", "2024-03-15") == "3/15/2024"
        assert apply("date", "2024-03-15", ["long"]) == "Friday, March 15, 2024"

    def test_iso(self):
        assert apply("date", "2024-03-15", ["iso"]) == "2024-03-15T00:00:00.000Z"

    def test_year_only_is_first_of_january(self):
        assert apply("date", "2024", ["iso"]) == "2024-01-01T00:00:00.000Z"
        assert apply("date", "2024", ["month"]) == "1"
        assert apply("date", "2024") == "1/1/2024"

    def test_month_year_is_first_of_month(self):
        assert apply("date", "March 2024", ["day"]) == "1"
        assert apply("date", "March 2024", ["month"]) == "3"

    def test_partial_date_in_template(self):
        assert render("{{year|date:month}}", {"year": "2024"}) == "1"

    def test_csl_date_parts(self):
        assert apply("date", {"date-parts": [[2020, 1, 5]]}, ["year"]) == "2020"
        assert apply("date", {"date-parts": [[2020]]}) == "1/1/2020"

    def test_epoch_milliseconds(self):
        assert apply("date", 0, ["year"]) == "1970"

    def test_unparseable_date_unchanged(self):
        assert apply("date", "not a date", ["year"]) == "not a date"
        assert apply("date", "", ["year"]) == ""


# ── Citation helpers ──────────────────────────────────────────────────────────

class TestCitationFormatters:
    def test_titleword(self):
        assert apply("titleword", "The Art of War") == "art"

    def test_shorttitle(self):
        assert apply("shorttitle", "The Art of War in Practice") == "artwarpractice"

    def test_rand_lengths(self):
        assert re.fullmatch(r"[A-Za-z0-9]{5}", apply("rand", "ignored"))
        assert len(apply("rand", "", ["8"])) == 8
        assert len(apply("rand", "", ["100"])) == 32
        assert len(apply("rand", "", ["0"])) == 1
        assert len(apply("rand6", "")) == 6


# ── Pipeline ──────────────────────────────────────────────────────────────────

class TestPipeline:
    def test_unknown_formatter_passes_through(self):
        assert apply("bogus", "Smith") == "Smith"
        assert apply("bogus", 12) == "12"

    def test_chain_left_to_right(self):
        assert apply_chain("hello world", ["upper", "truncate:5"]) == "HELLO"
        assert apply_chain("hello world", ["truncate:5", "suffix:!"]) == "hello!"

    def test_chain_skips_empty_specs(self):
        assert apply_chain("abc", ["", "upper", " "]) == "ABC"

    def test_chain_without_specs_stringifies(self):
        assert apply_chain(2024, []) == "2024"

    def test_parse_spec(self):
        assert parse_spec("pad:2:0") == ("pad", ["2", "0"])
        assert parse_spec("upper") == ("upper", [])

    def test_registry_is_read_only(self):
        with pytest.raises(TypeError):
            FORMATTERS["custom"] = lambda value, text, args: text  # type: ignore[index]
