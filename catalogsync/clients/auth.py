"""Client-credentials access tokens for the ERP platform."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

import httpx
import pendulum

from catalogsync.errors import DependencyUnavailable
from catalogsync.utils.dates import utc_now

logger = logging.getLogger(__name__)

EXPIRY_MARGIN = pendulum.duration(seconds=60)


@dataclass(frozen=True, slots=True)
class AccessToken:
    value: str
    expires_at: pendulum.DateTime | None = None

    def expired(self, now: pendulum.DateTime) -> bool:
        return self.expires_at is not None and now >= self.expires_at


class AccessTokenProvider:
    """Fetch a bearer token once and reuse it until it expires."""

    def __init__(
        self,
        token_url: str,
        client_id: str,
        client_secret: str,
        *,
        session: httpx.Client | None = None,
        clock: Callable[[], pendulum.DateTime] = utc_now,
    ) -> None:
        self.token_url = token_url
        self.client_id = client_id
        self.client_secret = client_secret
        self._session = session or httpx.Client(timeout=30.0)
        self._clock = clock
        self._token: AccessToken | None = None

    def close(self) -> None:
        self._session.close()

    def token(self) -> str:
        if self._token is None or self._token.expired(self._clock()):
            self._token = self._fetch()
        return self._token.value

    def _fetch(self) -> AccessToken:
        form = {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        try:
            response = self._session.post(self.token_url, data=form)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Access token request to %s failed: %s", self.token_url, exc)
            raise DependencyUnavailable(f"Could not obtain an access token: {exc}") from exc

        value = data.get("access_token") if isinstance(data, dict) else None
        if not value:
            logger.error("Token endpoint %s returned no access_token", self.token_url)
            raise DependencyUnavailable("Token endpoint returned no access_token")

        expires_at = None
        expires_in = data.get("expires_in")
        if expires_in:
            expires_at = self._clock() + pendulum.duration(seconds=int(expires_in)) - EXPIRY_MARGIN
        logger.info("Obtained ERP access token (expires at %s)", expires_at or "end of process")
        return AccessToken(value=value, expires_at=expires_at)
