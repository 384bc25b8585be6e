"""
Pydantic models for normalized gateway payloads.

The server is inconsistent about field names (``token`` vs ``accessToken``,
``_id`` vs ``id``, payloads wrapped in ``data``). The gateway folds every
variant into these fixed shapes so nothing past the boundary branches on
alternate names.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Profile(BaseModel):
    """Display identity of a user, plus whatever attributes the server sent."""

    model_config = ConfigDict(extra="allow")

    id: str
    username: Optional[str] = None
    email: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _normalize_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and "id" not in data and "_id" in data:
            data = dict(data)
            data["id"] = str(data.pop("_id"))
        elif isinstance(data, dict) and "id" in data:
            data = {**data, "id": str(data["id"])}
        return data

    def to_record(self) -> dict[str, Any]:
        """Plain dict used to seed the entity cache."""
        return self.model_dump()


class CredentialPair(BaseModel):
    """Access + renewal credentials issued together."""

    access_credential: str
    renewal_credential: str


class LoginPayload(BaseModel):
    """Normalized successful login response."""

    credentials: CredentialPair
    profile: Profile


class RegisterResponse(BaseModel):
    """Normalized registration response. Never carries credentials."""

    ok: bool = True
    message: Optional[str] = None


class ToggleResponse(BaseModel):
    """Normalized result of a relation toggle."""

    ok: bool = True
    updated_fields: dict[str, Any] = Field(default_factory=dict)
