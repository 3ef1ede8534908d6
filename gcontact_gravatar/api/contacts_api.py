"""
Google Contacts feed client for photo synchronization.

Provides a thin interface over the GData contacts feeds for:
- Fetching the authenticated user's contact list as Contact records
- Uploading a contact photo to its edit-photo link
"""

import logging
import xml.etree.ElementTree as ET
from typing import Any, Optional
from urllib.parse import urljoin

import requests
from requests.exceptions import RequestException

from gcontact_gravatar.auth.client_login import AuthCredential
from gcontact_gravatar.config.settings import (
    DEFAULT_FEED_BASE_URL,
    DEFAULT_MAX_RESULTS,
    DEFAULT_REQUEST_TIMEOUT,
)
from gcontact_gravatar.sync.contact import NAMESPACES, Contact

# Feed holding every contact of the authenticated user
CONTACTS_FEED_PATH = "contacts/default/full"

GDATA_VERSION = "3.0"

PHOTO_CONTENT_TYPE = "image/jpeg"

logger = logging.getLogger(__name__)


class ContactsAPIError(Exception):
    """Raised when a contacts feed operation fails."""

    pass


class ContactsFeedError(ContactsAPIError):
    """Raised when the contact list cannot be fetched or parsed."""

    pass


class PhotoUploadError(ContactsAPIError):
    """Raised when a contact photo cannot be written."""

    pass


class ContactsAPI:
    """
    Authenticated client for the Google Contacts feeds.

    Attributes:
        credential: Header set from a successful login
        base_url: Base URL feed paths are resolved against

    Usage:
        api = ContactsAPI(credential)

        contacts = api.fetch_contacts(max_results=1000)
        api.upload_photo(contacts[0].edit_photo_url, jpeg_bytes)
    """

    def __init__(
        self,
        credential: AuthCredential,
        base_url: str = DEFAULT_FEED_BASE_URL,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            credential: Credential headers sent with every request
            base_url: Base URL of the contacts feeds
            timeout: HTTP timeout in seconds
            session: requests session to use (defaults to module-level API)
        """
        self.credential = credential
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.timeout = timeout
        self.session = session

    def _headers(self, **extra: str) -> dict[str, str]:
        headers = {"GData-Version": GDATA_VERSION}
        headers.update(self.credential.headers)
        headers.update(extra)
        return headers

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        if self.session is not None:
            return self.session.request(method, url, timeout=self.timeout, **kwargs)
        return requests.request(method, url, timeout=self.timeout, **kwargs)

    def get_feed(self, path: str, **params: Any) -> ET.Element:
        """
        Fetch and parse a feed.

        Args:
            path: Feed path relative to the base URL
            **params: Query parameters (e.g. max-results via
                      {"max-results": 1000})

        Returns:
            Root <feed> element

        Raises:
            ContactsFeedError: On transport errors, HTTP errors or bad XML
        """
        url = urljoin(self.base_url, path)
        try:
            response = self._request("GET", url, params=params, headers=self._headers())
        except RequestException as e:
            raise ContactsFeedError(f"HTTP error for {url}: {e}") from e

        if not response.ok:
            raise ContactsFeedError(
                f"HTTP error for {url}: {response.status_code} {response.reason}"
            )

        try:
            return ET.fromstring(response.content)
        except ET.ParseError as e:
            raise ContactsFeedError(f"Could not parse feed from {url}: {e}") from e

    def fetch_contacts(self, max_results: int = DEFAULT_MAX_RESULTS) -> list[Contact]:
        """
        Fetch the authenticated user's contacts.

        Args:
            max_results: Maximum number of contacts to request

        Returns:
            Contacts in feed order

        Raises:
            ContactsFeedError: If the feed cannot be fetched or parsed
        """
        feed = self.get_feed(CONTACTS_FEED_PATH, **{"max-results": max_results})
        contacts = [
            Contact.from_feed_entry(entry)
            for entry in feed.findall("atom:entry", NAMESPACES)
        ]
        logger.debug(f"Fetched {len(contacts)} contacts")
        return contacts

    def upload_photo(self, edit_photo_url: str, data: bytes) -> None:
        """
        Replace a contact's photo.

        Args:
            edit_photo_url: The contact's edit-photo link
            data: Raw image bytes

        Raises:
            PhotoUploadError: On transport errors or a non-success response
        """
        headers = self._headers(
            **{
                "Content-Type": PHOTO_CONTENT_TYPE,
                "Content-Length": str(len(data)),
                "If-Match": "*",
            }
        )
        try:
            response = self._request("PUT", edit_photo_url, data=data, headers=headers)
        except RequestException as e:
            raise PhotoUploadError(f"Photo upload to {edit_photo_url} failed: {e}") from e

        if not response.ok:
            raise PhotoUploadError(
                f"Photo upload to {edit_photo_url} failed: "
                f"{response.status_code} {response.reason}"
            )
        logger.debug(f"Uploaded {len(data)} bytes to {edit_photo_url}")
