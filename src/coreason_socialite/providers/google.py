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

from coreason_socialite.models import Token, User
from coreason_socialite.providers.base import AbstractProvider
from coreason_socialite.transport import fetch_json


class GoogleProvider(AbstractProvider):
    name: ClassVar[str] = "google"
    scope_separator: ClassVar[str] = " "
    default_scopes: ClassVar[tuple[str, ...]] = ("openid", "profile", "email")

    async def get_auth_url(self, state: str | None) -> str:
        return self.build_auth_url_from_base("https://accounts.google.com/o/oauth2/auth", state)

    async def get_token_url(self) -> str:
        return "https://www.googleapis.com/oauth2/v4/token"

    async def get_user_by_token(self, token: str) -> dict[str, Any]:
        return await fetch_json(  # type: ignore[no-any-return]
            self.get_http_client(),
            "https://www.googleapis.com/oauth2/v3/userinfo",
            params={"prettyPrint": "false"},
            headers={"Authorization": f"Bearer {token}"},
        )

    async def refresh_token(self, refresh_token: str) -> Token:
        """
        Google omits the refresh token from refresh responses; the one used stays valid.
        """
        response = await self.get_refresh_token_response(refresh_token)
        return self.token_from_response(response, refresh_token=refresh_token)

    def map_user_to_object(self, user: dict[str, Any]) -> User:
        avatar_url = user.get("picture")
        return (
            User()
            .set_raw(user)
            .map(
                {
                    "id": user.get("sub"),
                    "nickname": user.get("nickname"),
                    "name": user.get("name"),
                    "email": user.get("email"),
                    "avatar": avatar_url,
                    "avatar_original": avatar_url,
                }
            )
        )
