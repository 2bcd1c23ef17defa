"""
Supabase Token Verification

DESIGN DECISION: The server never validates JWTs itself.
Every bearer token is handed to Supabase Auth, which knows about
revocation, expiry and signing keys. We keep:
- No session state
- No token cache
- No expiry logic of our own

One HTTP call per protected request. Any failure means "unauthorized".
"""

from abc import ABC, abstractmethod
from typing import Optional

import httpx
from pydantic import ValidationError

from spendwise.audit import get_logger
from spendwise.config import SupabaseSettings
from spendwise.models.identity import AuthenticatedUser


logger = get_logger(__name__)


class AuthenticationError(Exception):
    """Token missing, invalid, or the provider could not be reached."""
    pass


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """
    Pull the token out of an Authorization header.

    Returns None unless the header is `Bearer <non-empty token>`.
    """
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None


class TokenVerifier(ABC):
    """Abstract interface for resolving a bearer token to a user."""

    @abstractmethod
    async def verify(self, token: str) -> AuthenticatedUser:
        """
        Resolve a bearer token.

        Raises:
            AuthenticationError: If the token is not accepted
        """
        pass


class SupabaseTokenVerifier(TokenVerifier):
    """
    Verifies tokens against the Supabase Auth `/auth/v1/user` endpoint.

    The httpx client is injected and owned by the application lifespan,
    so connections are pooled across requests.
    """

    def __init__(
        self,
        settings: SupabaseSettings,
        client: httpx.AsyncClient,
    ):
        self._settings = settings
        self._client = client

    async def verify(self, token: str) -> AuthenticatedUser:
        if not token:
            raise AuthenticationError("Missing token")

        headers = {
            "apikey": self._settings.service_key,
            "Authorization": f"Bearer {token}",
        }

        try:
            resp = await self._client.get(
                self._settings.auth_user_endpoint,
                headers=headers,
                timeout=self._settings.timeout_seconds,
            )
        except httpx.HTTPError as e:
            logger.warning("auth_provider_unreachable", error_type=type(e).__name__)
            raise AuthenticationError("Auth provider unreachable") from e

        if resp.status_code != 200:
            raise AuthenticationError(f"Auth provider rejected token ({resp.status_code})")

        try:
            payload = resp.json()
        except ValueError as e:
            raise AuthenticationError("Malformed auth provider response") from e

        if not isinstance(payload, dict) or not payload.get("id"):
            raise AuthenticationError("Auth provider returned no user")

        try:
            return AuthenticatedUser.from_provider_payload(payload)
        except ValidationError as e:
            raise AuthenticationError("Malformed user payload") from e
