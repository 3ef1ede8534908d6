"""
Sync run orchestration for Gravatar contact photos.

Drives one run through its states:

    UNAUTHENTICATED -> AUTHENTICATED -> CONTACTS_LOADED -> COMPLETED

Authentication failures (including CAPTCHA challenges) and contact-list
retrieval failures move the run to ABORTED. Nothing that happens to an
individual contact can abort the run.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from gcontact_gravatar.api.contacts_api import ContactsAPI, ContactsFeedError
from gcontact_gravatar.auth.client_login import (
    AuthCredential,
    AuthenticationError,
    CaptchaChallenge,
    CaptchaRequiredError,
    ClientLoginAuth,
)
from gcontact_gravatar.config.settings import GravatarSyncConfig
from gcontact_gravatar.sync.avatar import AvatarResolver
from gcontact_gravatar.sync.contact import Contact
from gcontact_gravatar.sync.policy import (
    REASON_HAS_PHOTO,
    REASON_NO_AVATAR,
    REASON_NO_EMAIL,
    ContactUpdatePolicy,
    OutcomeKind,
    UpdateOutcome,
)

logger = logging.getLogger(__name__)


class SyncState(str, Enum):
    """Lifecycle states of a sync run."""

    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    CONTACTS_LOADED = "contacts_loaded"
    COMPLETED = "completed"
    ABORTED = "aborted"


# States from which a run may still abort
ABORTABLE_STATES = (SyncState.UNAUTHENTICATED, SyncState.AUTHENTICATED)


@dataclass
class SyncStats:
    """
    Statistics from a sync run.

    Tracks how many contacts ended in each outcome.
    """

    contacts_total: int = 0
    updated: int = 0
    skipped_no_email: int = 0
    skipped_has_photo: int = 0
    skipped_no_avatar: int = 0
    failed: int = 0

    @property
    def skipped(self) -> int:
        """Total contacts skipped for any reason."""
        return self.skipped_no_email + self.skipped_has_photo + self.skipped_no_avatar

    def record(self, outcome: UpdateOutcome) -> None:
        """Count one contact's outcome."""
        if outcome.kind is OutcomeKind.UPDATED:
            self.updated += 1
        elif outcome.kind is OutcomeKind.FAILED:
            self.failed += 1
        elif outcome.reason == REASON_NO_EMAIL:
            self.skipped_no_email += 1
        elif outcome.reason == REASON_HAS_PHOTO:
            self.skipped_has_photo += 1
        elif outcome.reason == REASON_NO_AVATAR:
            self.skipped_no_avatar += 1


@dataclass
class SyncReport:
    """
    Result of a sync run.

    Attributes:
        state: Final state (COMPLETED or ABORTED)
        outcomes: One outcome per processed contact, in feed order
        stats: Outcome counts
        error: Reason the run aborted, if it did
        challenge: CAPTCHA the operator must solve, if that caused the abort
    """

    state: SyncState = SyncState.UNAUTHENTICATED
    outcomes: list[UpdateOutcome] = field(default_factory=list)
    stats: SyncStats = field(default_factory=SyncStats)
    error: Optional[str] = None
    challenge: Optional[CaptchaChallenge] = None

    @property
    def aborted(self) -> bool:
        return self.state is SyncState.ABORTED

    @property
    def completed(self) -> bool:
        return self.state is SyncState.COMPLETED

    @property
    def failures(self) -> list[UpdateOutcome]:
        """Outcomes of contacts that could not be updated."""
        return [o for o in self.outcomes if o.kind is OutcomeKind.FAILED]

    def summary(self) -> str:
        """Human-readable one-paragraph summary of the run."""
        if self.aborted:
            return f"Sync aborted: {self.error}"
        s = self.stats
        return (
            f"Processed {s.contacts_total} contacts: {s.updated} updated, "
            f"{s.skipped} skipped ({s.skipped_has_photo} with photo, "
            f"{s.skipped_no_avatar} without Gravatar, "
            f"{s.skipped_no_email} without email), {s.failed} failed"
        )


class SyncOrchestrator:
    """
    Runs one Gravatar photo sync.

    Usage:
        orchestrator = SyncOrchestrator(config, ClientLoginAuth(), resolver)
        report = orchestrator.run()
        if report.aborted:
            ...
    """

    def __init__(
        self,
        config: GravatarSyncConfig,
        authenticator: ClientLoginAuth,
        resolver: AvatarResolver,
        contacts_api_factory: Optional[Callable[[AuthCredential], ContactsAPI]] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            config: Validated run settings
            authenticator: Login collaborator
            resolver: Avatar lookup service
            contacts_api_factory: Builds the feed client from the credential;
                                  defaults to ContactsAPI with the configured
                                  base URL and timeout
        """
        self.config = config
        self.authenticator = authenticator
        self.resolver = resolver
        self.contacts_api_factory = contacts_api_factory or self._default_api_factory
        self.state = SyncState.UNAUTHENTICATED
        self.credential: Optional[AuthCredential] = None
        self.contacts: list[Contact] = []
        self._api: Optional[ContactsAPI] = None

    def _default_api_factory(self, credential: AuthCredential) -> ContactsAPI:
        return ContactsAPI(
            credential,
            base_url=self.config.feed_base_url,
            timeout=self.config.request_timeout,
        )

    def _transition(self, state: SyncState) -> None:
        logger.debug(f"Sync state: {self.state.value} -> {state.value}")
        self.state = state

    def _abort(self, report: SyncReport, error: str) -> SyncReport:
        if self.state not in ABORTABLE_STATES:
            raise RuntimeError(f"Cannot abort a run in state {self.state.value}")
        logger.error(error)
        self._transition(SyncState.ABORTED)
        report.state = self.state
        report.error = error
        return report

    def run(self) -> SyncReport:
        """
        Authenticate, load contacts and update their photos.

        Returns:
            SyncReport; fatal problems are reported as an ABORTED state
            rather than raised

        Raises:
            ConfigError: If the settings are invalid; nothing is sent then
        """
        self.config.validate()
        report = SyncReport(state=self.state)

        try:
            self.authorize()
        except CaptchaRequiredError as e:
            report.challenge = e.challenge
            logger.warning(
                f"CAPTCHA is required. Visit {e.challenge.captcha_url}"
            )
            return self._abort(
                report,
                f"Run again with --captcha-token {e.challenge.captcha_token} "
                f"--captcha <captcha-answer>",
            )
        except AuthenticationError as e:
            return self._abort(report, str(e))

        try:
            self.retrieve_contacts()
        except ContactsFeedError as e:
            return self._abort(report, str(e))

        self.update_contacts_photos(report)
        report.state = self.state
        return report

    def authorize(self) -> AuthCredential:
        """
        Log in and capture the credential.

        Raises:
            CaptchaRequiredError: If a CAPTCHA must be solved first
            AuthenticationError: If login fails
        """
        self.credential = self.authenticator.login(
            self.config.email or "",
            self.config.password or "",
            captcha_token=self.config.captcha_token,
            captcha=self.config.captcha,
        )
        self._api = self.contacts_api_factory(self.credential)
        self._transition(SyncState.AUTHENTICATED)
        return self.credential

    def retrieve_contacts(self) -> list[Contact]:
        """
        Load the contact list.

        Raises:
            ContactsFeedError: If the feed cannot be fetched or parsed
        """
        if self._api is None:
            raise RuntimeError("retrieve_contacts() called before authorize()")

        self.contacts = self._api.fetch_contacts(max_results=self.config.max_results)
        logger.info(f"Retrieved {len(self.contacts)} contacts")
        self._transition(SyncState.CONTACTS_LOADED)
        return self.contacts

    def update_contacts_photos(self, report: SyncReport) -> None:
        """
        Apply the update policy to every loaded contact, in feed order.

        Args:
            report: Report collecting the per-contact outcomes
        """
        if self._api is None:
            raise RuntimeError("update_contacts_photos() called before authorize()")

        policy = ContactUpdatePolicy(
            self.resolver,
            self._api,
            overwrite=self.config.overwrite,
            refresh=self.config.refresh,
        )

        for contact in self.contacts:
            outcome = policy.apply(contact)
            report.outcomes.append(outcome)
            report.stats.record(outcome)

        report.stats.contacts_total = len(self.contacts)
        self._transition(SyncState.COMPLETED)
        logger.info(report.summary())
