"""
Gravatar lookup with a persistent result cache.

Provides:
- AvatarResult, a tagged "present(bytes) | absent" lookup result
- gravatar_url() for building the hash-addressed lookup URL
- AvatarResolver, which serves lookups from the cache and falls back to
  an HTTP lookup, caching whatever it finds (including nothing)
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import Optional, Protocol
from urllib.parse import urlencode

import requests
from requests.exceptions import RequestException

from gcontact_gravatar import __version__
from gcontact_gravatar.config.settings import (
    DEFAULT_GRAVATAR_BASE_URL,
    DEFAULT_ICON,
    DEFAULT_REQUEST_TIMEOUT,
)
from gcontact_gravatar.utils.normalization import email_hash

USER_AGENT = f"gcontact-gravatar/{__version__}"

# Gravatar answers unregistered addresses with 404 for this default
EXISTENCE_CHECK_DEFAULT = "404"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AvatarResult:
    """
    Outcome of an avatar lookup.

    Use AvatarResult.present(data) or AvatarResult.absent() rather than the
    constructor. An absent result carries no data; a present one always
    carries bytes, even if they happen to be empty.
    """

    found: bool
    data: Optional[bytes] = None

    @classmethod
    def present(cls, data: bytes) -> AvatarResult:
        return cls(found=True, data=bytes(data))

    @classmethod
    def absent(cls) -> AvatarResult:
        return cls(found=False)

    def __repr__(self) -> str:
        if self.found:
            return f"AvatarResult.present(<{len(self.data or b'')} bytes>)"
        return "AvatarResult.absent()"


class AvatarCache(Protocol):
    """Key/value store the resolver reads and writes."""

    def get(self, email: str) -> Optional[AvatarResult]: ...

    def set(self, email: str, result: AvatarResult) -> None: ...


def gravatar_url(
    email: str,
    default: str = DEFAULT_ICON,
    size: Optional[int] = None,
    base_url: str = DEFAULT_GRAVATAR_BASE_URL,
) -> str:
    """
    Build the Gravatar lookup URL for an email address.

    Args:
        email: Email address (trimmed and lowercased before hashing)
        default: Gravatar "d" parameter (e.g. "404", "mp" or an image URL)
        size: Optional "s" parameter in pixels
        base_url: Avatar endpoint the hash is appended to

    Returns:
        Absolute lookup URL

    Example:
        >>> gravatar_url("MyEmailAddress@example.com ")
        'https://www.gravatar.com/avatar/0bc83cb571cd1c50ba6f3e8a78ef1346?d=404'
    """
    params: dict[str, str] = {"d": default}
    if size is not None:
        params["s"] = str(size)
    if not base_url.endswith("/"):
        base_url += "/"
    return f"{base_url}{email_hash(email)}?{urlencode(params)}"


class AvatarResolver:
    """
    Resolves email addresses to Gravatar images through a cache.

    Every fetch outcome is written to the cache under the email exactly as
    given, so later lookups of the same literal key never hit the network
    unless a refresh is forced. Network problems never propagate; they
    resolve to "absent".

    Usage:
        resolver = AvatarResolver(cache)
        result = resolver.resolve("someone@example.com")
        if result.found:
            upload(result.data)
    """

    def __init__(
        self,
        cache: AvatarCache,
        default_icon: str = DEFAULT_ICON,
        size: Optional[int] = None,
        base_url: str = DEFAULT_GRAVATAR_BASE_URL,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        placeholder_digests: Optional[list[str]] = None,
        cache_fetch_failures: bool = True,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the resolver.

        Args:
            cache: Store for lookup results
            default_icon: Gravatar "d" parameter
            size: Gravatar "s" parameter
            base_url: Gravatar avatar endpoint
            timeout: HTTP timeout in seconds
            placeholder_digests: MD5 hex digests of bodies that are the
                                 configured placeholder rather than a real avatar
            cache_fetch_failures: When False, transport errors and 5xx
                                  responses resolve to absent without being cached
            session: requests session to fetch with (defaults to the
                     module-level requests API)
        """
        self.cache = cache
        self.default_icon = default_icon
        self.size = size
        self.base_url = base_url
        self.timeout = timeout
        self.placeholder_digests = {d.lower() for d in placeholder_digests or []}
        self.cache_fetch_failures = cache_fetch_failures
        self.session = session

    def resolve(self, email: str, force_refresh: bool = False) -> AvatarResult:
        """
        Look up the avatar for an email address.

        Args:
            email: Email address as it appears on the contact
            force_refresh: Ignore any cached result and fetch again

        Returns:
            AvatarResult, present with the image bytes or absent
        """
        if not force_refresh:
            cached = self.cache.get(email)
            if cached is not None:
                logger.debug(f"Avatar cache hit for {email}: {cached!r}")
                return cached

        logger.debug(f"Finding avatar for {email}")
        result, cacheable = self._fetch(email)

        if cacheable or self.cache_fetch_failures:
            self.cache.set(email, result)
        else:
            logger.debug(f"Not caching transient lookup failure for {email}")

        return result

    def _fetch(self, email: str) -> tuple[AvatarResult, bool]:
        """
        Fetch the avatar from Gravatar.

        Existence is always decided with d=404. When a different default
        icon is configured, a registered avatar is fetched again with it.

        Returns:
            Tuple of (result, cacheable) where cacheable is False for
            outcomes caused by transport errors or server errors
        """
        response, failure = self._get(email, EXISTENCE_CHECK_DEFAULT)
        if failure is not None:
            return failure

        if self.default_icon != EXISTENCE_CHECK_DEFAULT:
            response, failure = self._get(email, self.default_icon)
            if failure is not None:
                return failure

        if not response.content or self._is_placeholder(response):
            logger.debug(f"Placeholder image returned for {email}")
            return AvatarResult.absent(), True

        logger.debug(f"Fetched avatar for {email}: {len(response.content)} bytes")
        return AvatarResult.present(response.content), True

    def _get(
        self, email: str, default: str
    ) -> tuple[Optional[requests.Response], Optional[tuple[AvatarResult, bool]]]:
        """
        GET the avatar URL for an email with the given default selector.

        Returns:
            (response, None) for a successful response, otherwise
            (None, (absent result, cacheable))
        """
        url = gravatar_url(email, default=default, size=self.size, base_url=self.base_url)
        getter = self.session.get if self.session is not None else requests.get

        try:
            response = getter(
                url, timeout=self.timeout, headers={"User-Agent": USER_AGENT}
            )
        except RequestException as e:
            logger.warning(f"Network error looking up avatar for {email}: {e}")
            return None, (AvatarResult.absent(), False)

        if response.status_code == 404:
            logger.debug(f"No avatar registered for {email}")
            return None, (AvatarResult.absent(), True)

        if response.status_code >= 500:
            logger.warning(
                f"Gravatar server error ({response.status_code}) for {email}"
            )
            return None, (AvatarResult.absent(), False)

        if not response.ok:
            logger.warning(
                f"Unexpected status {response.status_code} looking up {email}"
            )
            return None, (AvatarResult.absent(), True)

        return response, None

    def _is_placeholder(self, response: requests.Response) -> bool:
        """Check whether a successful body is a configured placeholder image."""
        if not self.placeholder_digests:
            return False
        return hashlib.md5(response.content).hexdigest() in self.placeholder_digests
