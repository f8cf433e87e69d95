# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_socialite

"""
Data models for the coreason-socialite package.
"""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class QueryEncoding(StrEnum):
    RFC1738 = "rfc1738"
    RFC3986 = "rfc3986"


class Token(BaseModel):
    """
    Tokens returned by a refresh grant.

    This model is frozen (immutable) once constructed.

    Attributes:
        token (str): The access token.
        refresh_token (str | None): The refresh token that can be exchanged for a new access token.
        expires_in (int | None): The number of seconds the access token is valid for.
        approved_scopes (list[str]): The scopes the user authorized, possibly a subset of the requested ones.
    """

    model_config = ConfigDict(frozen=True)

    token: str
    refresh_token: str | None = None
    expires_in: int | None = None
    approved_scopes: list[str] = Field(default_factory=list)

    def __repr__(self) -> str:
        return (
            f"Token(token='<REDACTED>', "
            f"refresh_token={'<REDACTED>' if self.refresh_token else None!r}, "
            f"expires_in={self.expires_in!r}, "
            f"approved_scopes={self.approved_scopes!r})"
        )

    def __str__(self) -> str:
        return self.__repr__()


class User(BaseModel):
    """
    Canonical user returned by every provider.

    Well-known fields are typed; every mapped value (including provider specific
    extras such as `avatar_original`) is kept in `attributes` and readable with
    `user["key"]`. The provider's unmodified payload is kept in `raw`.
    """

    id: Any = None
    nickname: str | None = None
    name: str | None = None
    email: str | None = None
    avatar: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict)
    attributes: dict[str, Any] = Field(default_factory=dict)

    token: str | None = None
    refresh_token: str | None = None
    expires_in: int | None = None
    approved_scopes: list[str] = Field(default_factory=list)

    def map(self, attributes: dict[str, Any]) -> "User":
        """
        Map the given attributes onto the user's fields.

        Args:
            attributes: Mapped values; keys matching a well-known field are assigned to it.

        Returns:
            User: The same user, for chaining.
        """
        self.attributes = dict(attributes)
        for key in ("id", "nickname", "name", "email", "avatar"):
            if key in attributes:
                setattr(self, key, attributes[key])
        return self

    def set_raw(self, raw: dict[str, Any]) -> "User":
        self.raw = raw
        return self

    def get_raw(self) -> dict[str, Any]:
        return self.raw

    def set_token(self, token: str | None) -> "User":
        self.token = token
        return self

    def set_refresh_token(self, refresh_token: str | None) -> "User":
        self.refresh_token = refresh_token
        return self

    def set_expires_in(self, expires_in: int | str | None) -> "User":
        self.expires_in = int(expires_in) if expires_in is not None else None
        return self

    def set_approved_scopes(self, approved_scopes: list[str]) -> "User":
        self.approved_scopes = list(approved_scopes)
        return self

    def get(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.attributes[key]

    def __contains__(self, key: object) -> bool:
        return key in self.attributes

    def __repr__(self) -> str:
        # Tokens MUST be redacted in __repr__
        return (
            f"User(id={self.id!r}, nickname={self.nickname!r}, name={self.name!r}, "
            f"token={'<REDACTED>' if self.token else None!r}, "
            f"approved_scopes={self.approved_scopes!r})"
        )

    def __str__(self) -> str:
        return self.__repr__()


class OpenIdConfiguration(BaseModel):
    """
    OIDC Configuration from .well-known/openid-configuration.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    issuer: str = Field(..., description="The OIDC issuer URL.")
    authorization_endpoint: str = Field(..., description="The authorization endpoint URL.")
    token_endpoint: str = Field(..., description="The token endpoint URL.")
    jwks_uri: str = Field(..., description="The URL to the JWKS.")
    userinfo_endpoint: str | None = Field(default=None, description="The userinfo endpoint URL.")
