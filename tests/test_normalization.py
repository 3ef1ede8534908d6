"""Tests for email normalization and Gravatar hashing."""

import hashlib

from gcontact_gravatar.utils.normalization import email_hash, normalize_email


class TestNormalizeEmail:
    """Tests for normalize_email."""

    def test_strips_and_lowercases(self):
        """Surrounding whitespace is removed and case folded."""
        assert normalize_email("  Alice@Example.COM \n") == "alice@example.com"

    def test_empty_values(self):
        """Empty or missing values normalize to an empty string."""
        assert normalize_email("") == ""
        assert normalize_email(None) == ""


class TestEmailHash:
    """Tests for email_hash."""

    def test_known_digest(self):
        """Hash matches MD5 of the normalized address."""
        expected = hashlib.md5(b"alice@example.com").hexdigest()
        assert email_hash(" Alice@Example.com ") == expected

    def test_case_variants_share_hash(self):
        """Addresses differing only in case map to the same avatar."""
        assert email_hash("BOB@x.org") == email_hash("bob@x.org")
