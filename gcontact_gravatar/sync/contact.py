"""
Contact data model for Gravatar photo synchronization.

Provides a read-only Contact representation built from entries of the
Google Contacts Atom feed.
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Optional

# XML namespaces used by the contacts feed
NAMESPACES = {
    "atom": "http://www.w3.org/2005/Atom",
    "gd": "http://schemas.google.com/g/2005",
}

# Link relations carrying photo metadata
PHOTO_REL = "http://schemas.google.com/contacts/2008/rel#photo"
EDIT_PHOTO_REL = "http://schemas.google.com/contacts/2008/rel#edit-photo"

GD_ETAG = f"{{{NAMESPACES['gd']}}}etag"


@dataclass(frozen=True)
class Contact:
    """
    A contact as far as photo synchronization is concerned.

    Attributes:
        contact_id: Feed identifier of the contact (opaque)
        title: Display name, for log output only
        emails: Email addresses in feed order (may be empty)
        has_photo: Whether the contact already has a photo
        edit_photo_url: Where a new photo is PUT, or None if the feed
                        offers no editable photo slot

    Usage:
        contact = Contact.from_feed_entry(entry_element)
        for email in contact.emails:
            ...
    """

    contact_id: str
    emails: tuple[str, ...] = field(default_factory=tuple)
    has_photo: bool = False
    edit_photo_url: Optional[str] = None
    title: str = ""

    @property
    def label(self) -> str:
        """Short human-readable name for log lines."""
        if self.title:
            return self.title
        if self.emails:
            return self.emails[0]
        return self.contact_id

    @classmethod
    def from_feed_entry(cls, entry: ET.Element) -> "Contact":
        """
        Create a Contact from an Atom <entry> element.

        Photo links are interpreted for both feed generations: older feeds
        only include the photo link when a photo exists and expose a
        separate edit-photo link, while GData 3.0 feeds always include the
        photo link (with a gd:etag only when a photo exists) and accept
        writes on it.

        Args:
            entry: <entry> element of the contacts feed

        Returns:
            Contact instance

        Example entry::

            <entry gd:etag="...">
              <id>http://www.google.com/m8/feeds/contacts/me%40gmail.com/base/1</id>
              <title>Jane Doe</title>
              <link rel="http://schemas.google.com/contacts/2008/rel#photo"
                    type="image/*" href="https://.../photos/media/..."/>
              <gd:email rel="http://schemas.google.com/g/2005#work"
                        address="jane@example.com"/>
            </entry>
        """
        contact_id = entry.findtext("atom:id", default="", namespaces=NAMESPACES).strip()
        title = entry.findtext("atom:title", default="", namespaces=NAMESPACES).strip()

        emails = tuple(
            address
            for address in (
                email.get("address") for email in entry.findall("gd:email", NAMESPACES)
            )
            if address
        )

        photo_link = None
        edit_link = None
        for link in entry.findall("atom:link", NAMESPACES):
            rel = link.get("rel")
            if rel == PHOTO_REL and photo_link is None:
                photo_link = link
            elif rel == EDIT_PHOTO_REL and edit_link is None:
                edit_link = link

        if edit_link is not None:
            # Older feeds: the photo link exists only when there is a photo
            has_photo = photo_link is not None
            edit_photo_url = edit_link.get("href")
        elif photo_link is not None and GD_ETAG in photo_link.attrib:
            has_photo = True
            edit_photo_url = photo_link.get("href")
        elif photo_link is not None and _feed_uses_etags(entry):
            # GData 3.0: photo link without an etag means no photo yet
            has_photo = False
            edit_photo_url = photo_link.get("href")
        else:
            has_photo = photo_link is not None
            edit_photo_url = None

        return cls(
            contact_id=contact_id,
            emails=emails,
            has_photo=has_photo,
            edit_photo_url=edit_photo_url or None,
            title=title,
        )


def _feed_uses_etags(entry: ET.Element) -> bool:
    """GData 3.0 entries carry a gd:etag attribute on the entry itself."""
    return GD_ETAG in entry.attrib
