"""
Unit tests for the clipping logger.
"""

import logging

from biblib.logger import clip, get_logger


class TestClip:
    def test_short_text_unchanged(self):
        assert clip("{{title}}") == "{{title}}"

    def test_whitespace_collapsed(self):
        assert clip("a \n\t b") == "a b"

    def test_long_text_shortened(self):
        out = clip("x" * 100, limit=10)
        assert len(out) == 10
        assert out.endswith("…")

    def test_non_string(self):
        assert clip(["a", 1]) == "['a', 1]"


class TestTemplateLogger:
    def test_messages_are_clipped(self, caplog):
        log = get_logger("test")
        logging.getLogger("biblib").propagate = True
        try:
            with caplog.at_level(logging.WARNING, logger="biblib.test"):
                log.warning("y" * 500)
        finally:
            logging.getLogger("biblib").propagate = False
        assert len(caplog.records[-1].getMessage()) == 240

    def test_metric_format(self, caplog):
        log = get_logger("test")
        logging.getLogger("biblib").propagate = True
        try:
            with caplog.at_level(logging.INFO, logger="biblib.test"):
                log.metric("citekey_generated", source="template", length=9)
        finally:
            logging.getLogger("biblib").propagate = False
        assert caplog.records[-1].getMessage() == "METRIC citekey_generated | source=template, length=9"
