"""
Per-contact photo update policy.

Decides, for one contact, whether a Gravatar should be pushed as its
photo and which one:
- contacts without email addresses are skipped
- contacts that already have a photo are skipped unless overwriting
- email addresses are tried in feed order and the first one with an
  avatar wins; later addresses are never looked up
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from gcontact_gravatar.api.contacts_api import PhotoUploadError
from gcontact_gravatar.sync.avatar import AvatarResolver, AvatarResult
from gcontact_gravatar.sync.contact import Contact

logger = logging.getLogger(__name__)


class OutcomeKind(str, Enum):
    """What happened to a contact during a run."""

    SKIPPED = "skipped"
    UPDATED = "updated"
    FAILED = "failed"


# Skip reasons
REASON_NO_EMAIL = "no-email"
REASON_HAS_PHOTO = "has-photo"
REASON_NO_AVATAR = "no-avatar"

# Failure reasons
REASON_NO_EDIT_TARGET = "no-edit-target"
REASON_UPLOAD_FAILED = "upload-failed"


@dataclass(frozen=True)
class UpdateOutcome:
    """
    Result of applying the policy to one contact.

    Attributes:
        kind: skipped, updated or failed
        contact_id: Feed identifier of the contact
        reason: Why the contact was skipped or failed
        email: Address whose avatar was used (or attempted)
        detail: Extra human-readable context (e.g. an upload error)
    """

    kind: OutcomeKind
    contact_id: str
    reason: Optional[str] = None
    email: Optional[str] = None
    detail: Optional[str] = None

    @classmethod
    def skipped(cls, contact: Contact, reason: str) -> "UpdateOutcome":
        return cls(OutcomeKind.SKIPPED, contact.contact_id, reason=reason)

    @classmethod
    def updated(cls, contact: Contact, email: str) -> "UpdateOutcome":
        return cls(OutcomeKind.UPDATED, contact.contact_id, email=email)

    @classmethod
    def failed(
        cls,
        contact: Contact,
        reason: str,
        email: Optional[str] = None,
        detail: Optional[str] = None,
    ) -> "UpdateOutcome":
        return cls(
            OutcomeKind.FAILED,
            contact.contact_id,
            reason=reason,
            email=email,
            detail=detail,
        )


class PhotoUploader(Protocol):
    """Anything that can write photo bytes to a contact's edit-photo URL."""

    def upload_photo(self, edit_photo_url: str, data: bytes) -> None: ...


class ContactUpdatePolicy:
    """
    Applies the photo update rules to contacts.

    Usage:
        policy = ContactUpdatePolicy(resolver, uploader, overwrite=False)
        outcome = policy.apply(contact)
    """

    def __init__(
        self,
        resolver: AvatarResolver,
        uploader: PhotoUploader,
        overwrite: bool = False,
        refresh: bool = False,
    ):
        """
        Initialize the policy.

        Args:
            resolver: Avatar lookup service
            uploader: Photo writer for the contacts service
            overwrite: Replace existing photos
            refresh: Bypass cached avatar lookups
        """
        self.resolver = resolver
        self.uploader = uploader
        self.overwrite = overwrite
        self.refresh = refresh

    def apply(self, contact: Contact) -> UpdateOutcome:
        """
        Decide on and perform the photo update for one contact.

        Never raises for per-contact problems; they come back as outcomes.

        Args:
            contact: Contact from the feed

        Returns:
            UpdateOutcome describing what happened
        """
        if not contact.emails:
            logger.debug(f"{contact.label} has no email address. Skipping.")
            return UpdateOutcome.skipped(contact, REASON_NO_EMAIL)

        if contact.has_photo and not self.overwrite:
            logger.debug(f"{contact.emails[0]} has a photo. Skipping.")
            return UpdateOutcome.skipped(contact, REASON_HAS_PHOTO)

        match = self._first_avatar(contact)
        if match is None:
            return UpdateOutcome.skipped(contact, REASON_NO_AVATAR)

        email, avatar = match
        logger.info(f"Gravatar found for {email}. Updating the photo.")

        if not contact.edit_photo_url:
            logger.warning(
                f"Contact {contact.label} has no editable photo link; "
                f"cannot upload the Gravatar for {email}"
            )
            return UpdateOutcome.failed(contact, REASON_NO_EDIT_TARGET, email=email)

        try:
            self.uploader.upload_photo(contact.edit_photo_url, avatar.data or b"")
        except PhotoUploadError as e:
            logger.warning(f"Photo update failed for {contact.label}: {e}")
            return UpdateOutcome.failed(
                contact, REASON_UPLOAD_FAILED, email=email, detail=str(e)
            )

        logger.info(f"Photo update was successful for {contact.label}.")
        return UpdateOutcome.updated(contact, email)

    def _first_avatar(self, contact: Contact) -> Optional[tuple[str, AvatarResult]]:
        """
        Find the first email address of the contact that has an avatar.

        First match wins: addresses after the first hit are not looked up,
        even if they would also have avatars.
        """
        for email in contact.emails:
            avatar = self.resolver.resolve(email, force_refresh=self.refresh)
            if avatar.found:
                return email, avatar
        return None
