# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_socialite

from typing import Any, ClassVar

import httpx

from coreason_socialite.models import QueryEncoding, User
from coreason_socialite.providers.base import AbstractProvider
from coreason_socialite.transport import fetch_json


class XProvider(AbstractProvider):
    """
    X (formerly Twitter) OAuth 2.0. PKCE is always on and the token endpoint uses HTTP basic auth.
    """

    name: ClassVar[str] = "x"
    default_scopes: ClassVar[tuple[str, ...]] = ("users.read", "users.email", "tweet.read")
    scope_separator: ClassVar[str] = " "
    encoding_type: ClassVar[QueryEncoding] = QueryEncoding.RFC3986
    pkce_by_default: ClassVar[bool] = True

    async def get_auth_url(self, state: str | None) -> str:
        return self.build_auth_url_from_base("https://x.com/i/oauth2/authorize", state)

    async def get_token_url(self) -> str:
        return "https://api.x.com/2/oauth2/token"

    def get_token_auth(self) -> httpx.Auth | None:
        return httpx.BasicAuth(self.client_id, self.client_secret)

    def get_refresh_token_fields(self, refresh_token: str) -> dict[str, Any]:
        return {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": self.client_id,
        }

    def get_code_fields(self, state: str | None = None) -> dict[str, Any]:
        fields = super().get_code_fields(state)

        # X rejects authorization requests without a state parameter
        if self.is_stateless():
            fields["state"] = "state"

        return fields

    async def get_user_by_token(self, token: str) -> dict[str, Any]:
        response = await fetch_json(
            self.get_http_client(),
            "https://api.x.com/2/users/me",
            params={"user.fields": "profile_image_url,confirmed_email"},
            headers={"Authorization": f"Bearer {token}"},
        )
        return response["data"]  # type: ignore[no-any-return]

    def map_user_to_object(self, user: dict[str, Any]) -> User:
        return (
            User()
            .set_raw(user)
            .map(
                {
                    "id": user["id"],
                    "email": user.get("confirmed_email"),
                    "nickname": user.get("username"),
                    "name": user.get("name"),
                    "avatar": user.get("profile_image_url"),
                }
            )
        )
