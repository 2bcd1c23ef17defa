"""Identity resolved by the external auth provider."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class AuthenticatedUser(BaseModel):
    """
    The user behind a verified bearer token.

    Only what the auth provider returned. The server keeps no
    user records of its own.
    """
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1, description="Provider user ID")
    email: Optional[str] = None
    role: Optional[str] = None
    raw: dict[str, Any] = Field(
        default_factory=dict,
        description="Full payload from the provider"
    )

    @classmethod
    def from_provider_payload(cls, payload: dict[str, Any]) -> "AuthenticatedUser":
        return cls(
            id=str(payload.get("id") or ""),
            email=payload.get("email"),
            role=payload.get("role"),
            raw=payload,
        )
