"""Tests for ICS text escaping."""

from eventsync.ics.text import escape_text


class TestEscapeText:
    """Tests for escape_text."""

    def test_escape_when_special_characters_then_escaped(self):
        assert escape_text("a;b,c") == "a\\;b\\,c"

    def test_escape_when_newlines_then_escaped(self):
        assert escape_text("line1\nline2\rend") == "line1\\nline2\\rend"

    def test_escape_when_backslash_then_doubled_once(self):
        assert escape_text("C:\\path, here") == "C:\\\\path\\, here"

    def test_escape_when_plain_text_then_unchanged(self):
        assert escape_text("Plain text") == "Plain text"
