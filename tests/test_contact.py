"""
Unit tests for the Contact model.

Tests Contact.from_feed_entry for both generations of photo links.
"""

import xml.etree.ElementTree as ET

from gcontact_gravatar.sync.contact import Contact

ATOM = "http://www.w3.org/2005/Atom"
GD = "http://schemas.google.com/g/2005"
PHOTO_REL = "http://schemas.google.com/contacts/2008/rel#photo"
EDIT_PHOTO_REL = "http://schemas.google.com/contacts/2008/rel#edit-photo"


def entry(body, entry_attrs=""):
    """Parse an <entry> element with the feed namespaces declared."""
    return ET.fromstring(
        f"<entry xmlns='{ATOM}' xmlns:gd='{GD}' {entry_attrs}>{body}</entry>"
    )


class TestEmails:
    """Tests for email extraction."""

    def test_emails_in_feed_order(self):
        """Test that addresses keep their order."""
        contact = Contact.from_feed_entry(
            entry(
                "<id>1</id>"
                "<gd:email address='b@x.com'/>"
                "<gd:email address='a@x.com'/>"
            )
        )
        assert contact.emails == ("b@x.com", "a@x.com")

    def test_email_without_address_ignored(self):
        """Test that gd:email elements without an address are dropped."""
        contact = Contact.from_feed_entry(
            entry("<id>1</id><gd:email rel='x'/><gd:email address='a@x.com'/>")
        )
        assert contact.emails == ("a@x.com",)

    def test_id_and_title(self):
        """Test identifier and title extraction."""
        contact = Contact.from_feed_entry(entry("<id> c-1 </id><title>Jane</title>"))
        assert contact.contact_id == "c-1"
        assert contact.title == "Jane"
        assert contact.label == "Jane"


class TestPhotoLinks:
    """Tests for has_photo and edit_photo_url."""

    def test_legacy_feed_with_photo(self):
        """Test a feed with both photo and edit-photo links."""
        contact = Contact.from_feed_entry(
            entry(
                "<id>1</id>"
                f"<link rel='{PHOTO_REL}' href='https://p/1'/>"
                f"<link rel='{EDIT_PHOTO_REL}' href='https://p/1/edit'/>"
            )
        )
        assert contact.has_photo is True
        assert contact.edit_photo_url == "https://p/1/edit"

    def test_legacy_feed_without_photo(self):
        """Test a feed with only an edit-photo link."""
        contact = Contact.from_feed_entry(
            entry(f"<id>1</id><link rel='{EDIT_PHOTO_REL}' href='https://p/1/edit'/>")
        )
        assert contact.has_photo is False
        assert contact.edit_photo_url == "https://p/1/edit"

    def test_legacy_feed_photo_without_edit_link(self):
        """Test that a photo without an edit-photo link has no edit target."""
        contact = Contact.from_feed_entry(
            entry(f"<id>1</id><link rel='{PHOTO_REL}' href='https://p/1'/>")
        )
        assert contact.has_photo is True
        assert contact.edit_photo_url is None

    def test_v3_feed_with_photo(self):
        """Test a GData 3.0 photo link carrying an etag."""
        contact = Contact.from_feed_entry(
            entry(
                f"<id>1</id><link rel='{PHOTO_REL}' href='https://p/1' gd:etag='\"x\"'/>",
                entry_attrs="gd:etag='\"e\"'",
            )
        )
        assert contact.has_photo is True
        assert contact.edit_photo_url == "https://p/1"

    def test_v3_feed_without_photo(self):
        """Test a GData 3.0 photo link without an etag."""
        contact = Contact.from_feed_entry(
            entry(
                f"<id>1</id><link rel='{PHOTO_REL}' href='https://p/1'/>",
                entry_attrs="gd:etag='\"e\"'",
            )
        )
        assert contact.has_photo is False
        assert contact.edit_photo_url == "https://p/1"

    def test_no_links(self):
        """Test a contact with no photo links at all."""
        contact = Contact.from_feed_entry(entry("<id>1</id>"))
        assert contact.has_photo is False
        assert contact.edit_photo_url is None


class TestLabel:
    """Tests for the label property."""

    def test_label_falls_back_to_email_then_id(self):
        """Test label fallbacks when there is no title."""
        assert Contact("c1", emails=("a@x.com",)).label == "a@x.com"
        assert Contact("c1").label == "c1"
