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

from coreason_socialite.models import User
from coreason_socialite.providers.base import AbstractProvider
from coreason_socialite.transport import fetch_json


class TwitchProvider(AbstractProvider):
    """
    Twitch. Token responses carry `scope` as a JSON list.
    """

    name: ClassVar[str] = "twitch"
    default_scopes: ClassVar[tuple[str, ...]] = ("user:read:email",)
    scope_separator: ClassVar[str] = " "

    async def get_auth_url(self, state: str | None) -> str:
        return self.build_auth_url_from_base("https://id.twitch.tv/oauth2/authorize", state)

    async def get_token_url(self) -> str:
        return "https://id.twitch.tv/oauth2/token"

    async def get_user_by_token(self, token: str) -> dict[str, Any]:
        return await fetch_json(  # type: ignore[no-any-return]
            self.get_http_client(),
            "https://api.twitch.tv/helix/users",
            headers={
                "Authorization": f"Bearer {token}",
                "Client-ID": self.client_id,
            },
        )

    def map_user_to_object(self, user: dict[str, Any]) -> User:
        user = user["data"][0]

        return (
            User()
            .set_raw(user)
            .map(
                {
                    "id": user["id"],
                    "nickname": user.get("display_name"),
                    "name": user.get("display_name"),
                    "email": user.get("email"),
                    "avatar": user.get("profile_image_url"),
                }
            )
        )
