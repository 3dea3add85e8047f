"""Tests for identity normalization helpers."""

from bookflow.utils import normalize_email, normalize_name, normalize_phone, short_id


class TestNormalizePhone:
    def test_strips_spaces(self):
        assert normalize_phone("0412 345 678") == "0412345678"

    def test_strips_tabs_and_newlines(self):
        assert normalize_phone(" +61 412\t345\n678 ") == "+61412345678"

    def test_keeps_punctuation(self):
        assert normalize_phone("(04) 1234-5678") == "(04)1234-5678"

    def test_none_and_empty(self):
        assert normalize_phone(None) == ""
        assert normalize_phone("") == ""


class TestNormalizeText:
    def test_email(self):
        assert normalize_email("  Jane@Example.COM ") == "jane@example.com"

    def test_name(self):
        assert normalize_name(" Jane DOE") == "jane doe"

    def test_none(self):
        assert normalize_email(None) == ""
        assert normalize_name(None) == ""


class TestShortId:
    def test_default_length(self):
        assert short_id("bfa3e8a7-1234-5678") == "bfa3e8a7"

    def test_shorter_than_length(self):
        assert short_id("abc") == "abc"
