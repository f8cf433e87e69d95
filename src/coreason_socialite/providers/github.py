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

from coreason_socialite.exceptions import OversizedResponseError
from coreason_socialite.models import User
from coreason_socialite.providers.base import AbstractProvider
from coreason_socialite.transport import fetch_json
from coreason_socialite.utils.logger import logger


class GithubProvider(AbstractProvider):
    name: ClassVar[str] = "github"
    default_scopes: ClassVar[tuple[str, ...]] = ("user:email",)

    async def get_auth_url(self, state: str | None) -> str:
        return self.build_auth_url_from_base("https://github.com/login/oauth/authorize", state)

    async def get_token_url(self) -> str:
        return "https://github.com/login/oauth/access_token"

    async def get_user_by_token(self, token: str) -> dict[str, Any]:
        user: dict[str, Any] = await fetch_json(
            self.get_http_client(),
            "https://api.github.com/user",
            headers=self.get_request_headers(token),
        )

        if "user:email" in self.get_scopes():
            user["email"] = await self.get_email_by_token(token)

        return user

    async def get_email_by_token(self, token: str) -> str | None:
        """
        Get the primary, verified email for the given access token.
        """
        try:
            emails = await fetch_json(
                self.get_http_client(),
                "https://api.github.com/user/emails",
                headers=self.get_request_headers(token),
            )
        except (httpx.HTTPError, OversizedResponseError, ValueError) as e:
            logger.warning(f"Could not fetch GitHub emails: {e}")
            return None

        for email in emails:
            if email.get("primary") and email.get("verified"):
                return email.get("email")  # type: ignore[no-any-return]

        return None

    def map_user_to_object(self, user: dict[str, Any]) -> User:
        return (
            User()
            .set_raw(user)
            .map(
                {
                    "id": user["id"],
                    "node_id": user.get("node_id"),
                    "nickname": user.get("login"),
                    "name": user.get("name"),
                    "email": user.get("email"),
                    "avatar": user.get("avatar_url"),
                }
            )
        )

    def get_request_headers(self, token: str) -> dict[str, str]:
        return {
            "Accept": "application/vnd.github.v3+json",
            "Authorization": f"token {token}",
        }
