"""Token verification against the managed auth provider."""

from spendwise.services.auth.supabase_auth import (
    AuthenticationError,
    SupabaseTokenVerifier,
    TokenVerifier,
    extract_bearer_token,
)

__all__ = [
    "AuthenticationError",
    "SupabaseTokenVerifier",
    "TokenVerifier",
    "extract_bearer_token",
]
