"""
Tests for input validators and normalizers.
"""

from access_gate.core.validators import is_blank, is_http_url, is_valid_email, normalize_email


class TestEmailValidation:
    """Basic local@domain.tld shape check."""

    def test_valid_emails(self):
        valid_emails = [
            "admin@co.com",
            "first.last+tag@sub.example.org",
            "User@Example.COM",
        ]
        for email in valid_emails:
            assert is_valid_email(email), f"Should be valid: {email}"

    def test_invalid_emails(self):
        invalid_emails = [
            "",
            "plainaddress",
            "missing-tld@example",
            "two@@example.com",
            "space in@example.com",
            "trailing@example.com ",
            None,
        ]
        for email in invalid_emails:
            assert not is_valid_email(email), f"Should be invalid: {email!r}"

    def test_normalize_email(self):
        assert normalize_email("  User@Example.com ") == "user@example.com"


class TestBlankAndUrlChecks:
    """Honeypot blankness and the text-list URL filter."""

    def test_is_blank(self):
        assert is_blank(None)
        assert is_blank("")
        assert is_blank(" \t\n")
        assert not is_blank("x")

    def test_non_string_values_are_not_blank(self):
        for value in [0, 1, False, [], {"a": 1}]:
            assert not is_blank(value), f"Should count as filled: {value!r}"

    def test_is_http_url(self):
        assert is_http_url("https://x/r?u=")
        assert is_http_url("http://x/")
        assert not is_http_url("ftp://x/")
        assert not is_http_url("")
