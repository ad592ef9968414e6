"""OAuth client-credentials token lifecycle for Sentinel Hub."""

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock
from typing import NoReturn

import httpx

from .errors import AuthError
from .events import EventHooks, EventName

logger = logging.getLogger(__name__)

TOKEN_PATH = "/auth/realms/main/protocol/openid-connect/token"
DEFAULT_AUTH_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class AccessCredential:
    """Bearer token and the absolute instant (epoch seconds) it expires."""

    token: str
    expires_at: float

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at

    def __repr__(self) -> str:
        return f"AccessCredential(token=<redacted>, expires_at={self.expires_at})"


class TokenManager:
    """Owns one shared credential and renews it through a client-credentials exchange.

    Check-and-exchange happens under a lock, so concurrent callers that find
    the credential expired wait for a single exchange instead of each issuing
    their own.
    """

    def __init__(
        self,
        client: httpx.Client,
        *,
        client_id: str | None,
        client_secret: str | None,
        token_url: str,
        timeout: float = DEFAULT_AUTH_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.time,
        events: EventHooks | None = None,
    ) -> None:
        self._client = client
        self._client_id = client_id
        self._client_secret = client_secret
        self._token_url = token_url
        self.timeout = timeout
        self._clock = clock
        self._events = events or EventHooks()
        self._credential: AccessCredential | None = None
        self._lock = Lock()

    @property
    def configured(self) -> bool:
        return bool(self._client_id and self._client_secret)

    @property
    def credential(self) -> AccessCredential | None:
        """Return the cached credential without renewing it."""
        return self._credential

    def get_token(self) -> AccessCredential:
        """Return a valid credential, exchanging for a new one when expired."""
        credential = self._credential
        if credential is not None and credential.is_valid(self._clock()):
            return credential

        with self._lock:
            credential = self._credential
            if credential is not None and credential.is_valid(self._clock()):
                return credential
            return self._exchange()

    def renew(self) -> AccessCredential:
        """Exchange for a fresh credential even if the current one is still valid."""
        with self._lock:
            return self._exchange()

    def invalidate(self) -> None:
        with self._lock:
            self._credential = None

    def _exchange(self) -> AccessCredential:
        if not self.configured:
            self._fail("credentials not configured")

        logger.info("Requesting new Sentinel Hub access token")
        started = self._clock()
        try:
            response = self._client.post(
                self._token_url,
                data={
                    "grant_type": "client_credentials",
                    "client_id": self._client_id,
                    "client_secret": self._client_secret,
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.timeout,
            )
        except httpx.HTTPError as exc:
            self._fail(f"token request failed: {exc.__class__.__name__}", exc)

        if not response.is_success:
            self._fail(f"token endpoint returned HTTP {response.status_code}")

        try:
            payload = response.json()
            token = payload["access_token"]
            expires_in = float(payload["expires_in"])
        except (ValueError, KeyError, TypeError) as exc:
            self._fail("malformed token response", exc)

        if not isinstance(token, str) or not token or not math.isfinite(expires_in) or expires_in <= 0:
            self._fail("malformed token response")

        credential = AccessCredential(token=token, expires_at=started + expires_in)
        self._credential = credential
        self._events.emit(EventName.TOKEN_ACQUIRED, expires_in=expires_in)
        return credential

    def _fail(self, reason: str, cause: Exception | None = None) -> NoReturn:
        self._events.emit(EventName.TOKEN_RENEW_FAILED, reason=reason)
        raise AuthError(f"Authentication failed with Sentinel Hub: {reason}") from cause
