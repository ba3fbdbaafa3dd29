"""Tests for shared string helpers."""

from lead_orchestration.utils import only_digits, trim_quotes


class TestOnlyDigits:
    def test_strips_separators(self):
        assert only_digits("+91 (98765) 43-210") == "919876543210"

    def test_none(self):
        assert only_digits(None) == ""

    def test_number(self):
        assert only_digits(9876543210) == "9876543210"

    def test_non_ascii_digits_stripped(self):
        assert only_digits("९८७६५ 43210") == "43210"


class TestTrimQuotes:
    def test_double_quotes(self):
        assert trim_quotes('"chat_log"') == "chat_log"

    def test_single_quotes_and_whitespace(self):
        assert trim_quotes("  'leads tab' ") == "leads tab"

    def test_mismatched_quotes_kept(self):
        assert trim_quotes("'leads\"") == "'leads\""

    def test_lone_quote_kept(self):
        assert trim_quotes('"') == '"'
