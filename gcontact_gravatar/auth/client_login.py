"""
ClientLogin authentication for the Google Contacts feeds.

Provides password-based login with support for:
- The "cp" (contacts) service
- CAPTCHA challenges, answered on a later run with a token/answer pair
- Credential headers attached to every subsequent feed request
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Optional
from urllib.parse import urljoin

import requests
from requests.exceptions import RequestException

from gcontact_gravatar import __version__
from gcontact_gravatar.config.settings import DEFAULT_REQUEST_TIMEOUT

CLIENT_LOGIN_URL = "https://www.google.com/accounts/ClientLogin"

# CaptchaUrl values in ClientLogin responses are relative to this
CAPTCHA_BASE_URL = "https://www.google.com/accounts/"

# Google service name for Contacts
CONTACTS_SERVICE = "cp"

ACCOUNT_TYPE = "HOSTED_OR_GOOGLE"

SOURCE = f"gcontact-gravatar-{__version__}"

CAPTCHA_REQUIRED = "CaptchaRequired"

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Raised when authentication fails or credentials are invalid."""

    pass


@dataclass(frozen=True)
class CaptchaChallenge:
    """
    A CAPTCHA the operator must solve before logging in again.

    Attributes:
        captcha_token: Token to send back with the answer
        captcha_url: Absolute URL of the CAPTCHA image
    """

    captcha_token: str
    captcha_url: str


class CaptchaRequiredError(AuthenticationError):
    """Raised when Google demands a CAPTCHA before accepting the login."""

    def __init__(self, challenge: CaptchaChallenge):
        super().__init__(
            f"CAPTCHA is required. Visit {challenge.captcha_url}"
        )
        self.challenge = challenge


@dataclass(frozen=True)
class AuthCredential:
    """
    Header set proving authentication, attached to every feed request.

    Attributes:
        headers: Read-only mapping of header name to value
    """

    headers: Mapping[str, str]

    @classmethod
    def from_auth_token(cls, token: str) -> "AuthCredential":
        return cls(MappingProxyType({"Authorization": f"GoogleLogin auth={token}"}))

    def __repr__(self) -> str:
        return f"AuthCredential(headers=<{len(self.headers)} redacted>)"


def parse_response_body(body: str) -> dict[str, str]:
    """
    Parse a ClientLogin response body of "Key=Value" lines.

    Args:
        body: Response text

    Returns:
        Dictionary of keys to values; malformed lines are ignored
    """
    values: dict[str, str] = {}
    for line in body.splitlines():
        key, sep, value = line.partition("=")
        if sep:
            values[key.strip()] = value.strip()
    return values


class ClientLoginAuth:
    """
    ClientLogin authenticator for the contacts service.

    Usage:
        auth = ClientLoginAuth()
        try:
            credential = auth.login("me@example.com", "secret")
        except CaptchaRequiredError as e:
            print(e.challenge.captcha_url)
    """

    def __init__(
        self,
        login_url: str = CLIENT_LOGIN_URL,
        service: str = CONTACTS_SERVICE,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the authenticator.

        Args:
            login_url: ClientLogin endpoint
            service: Google service name to request a token for
            timeout: HTTP timeout in seconds
            session: requests session to post with
        """
        self.login_url = login_url
        self.service = service
        self.timeout = timeout
        self.session = session

    def login(
        self,
        email: str,
        password: str,
        captcha_token: Optional[str] = None,
        captcha: Optional[str] = None,
    ) -> AuthCredential:
        """
        Log in and obtain credential headers.

        Args:
            email: Google account email address
            password: Account password
            captcha_token: Token from a previous CaptchaRequired response
            captcha: Operator's answer to that CAPTCHA

        Returns:
            AuthCredential for the contacts service

        Raises:
            CaptchaRequiredError: If Google requires a CAPTCHA to be solved
            AuthenticationError: For any other login failure
        """
        form = {
            "accountType": ACCOUNT_TYPE,
            "Email": email,
            "Passwd": password,
            "service": self.service,
            "source": SOURCE,
        }
        if captcha_token and captcha:
            form["logintoken"] = captcha_token
            form["logincaptcha"] = captcha

        poster = self.session.post if self.session is not None else requests.post

        logger.debug(f"Authenticating {email} against {self.login_url}")
        try:
            response = poster(self.login_url, data=form, timeout=self.timeout)
        except RequestException as e:
            raise AuthenticationError(f"Auth failed against {email}: {e}") from e

        values = parse_response_body(response.text)

        if response.status_code == 200:
            token = values.get("Auth")
            if not token:
                raise AuthenticationError(
                    f"Auth failed against {email}: no Auth token in response"
                )
            logger.debug(f"Authenticated {email}")
            return AuthCredential.from_auth_token(token)

        error = values.get("Error", f"HTTP {response.status_code}")
        if error == CAPTCHA_REQUIRED:
            challenge = CaptchaChallenge(
                captcha_token=values.get("CaptchaToken", ""),
                captcha_url=urljoin(CAPTCHA_BASE_URL, values.get("CaptchaUrl", "")),
            )
            raise CaptchaRequiredError(challenge)

        raise AuthenticationError(f"Auth failed against {email}: {error}")
