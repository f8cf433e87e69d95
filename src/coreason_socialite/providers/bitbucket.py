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
from coreason_socialite.utils.data import data_get
from coreason_socialite.utils.logger import logger


class BitbucketProvider(AbstractProvider):
    """
    Bitbucket Cloud. The token endpoint authenticates the client with HTTP basic auth.
    """

    name: ClassVar[str] = "bitbucket"
    default_scopes: ClassVar[tuple[str, ...]] = ("email",)
    scope_separator: ClassVar[str] = " "

    async def get_auth_url(self, state: str | None) -> str:
        return self.build_auth_url_from_base("https://bitbucket.org/site/oauth2/authorize", state)

    async def get_token_url(self) -> str:
        return "https://bitbucket.org/site/oauth2/access_token"

    def get_token_auth(self) -> httpx.Auth | None:
        return httpx.BasicAuth(self.client_id, self.client_secret)

    async def get_user_by_token(self, token: str) -> dict[str, Any]:
        user: dict[str, Any] = await fetch_json(
            self.get_http_client(),
            "https://api.bitbucket.org/2.0/user",
            params={"access_token": token},
        )

        if "email" in self.get_scopes():
            user["email"] = await self.get_email_by_token(token)

        return user

    async def get_email_by_token(self, token: str) -> str | None:
        """
        Get the primary, confirmed email for the given access token.
        """
        try:
            emails = await fetch_json(
                self.get_http_client(),
                "https://api.bitbucket.org/2.0/user/emails",
                params={"access_token": token},
            )
        except (httpx.HTTPError, OversizedResponseError, ValueError) as e:
            logger.warning(f"Could not fetch Bitbucket emails: {e}")
            return None

        for email in emails.get("values", []):
            if email.get("type") == "email" and email.get("is_primary") and email.get("is_confirmed"):
                return email.get("email")  # type: ignore[no-any-return]

        return None

    def map_user_to_object(self, user: dict[str, Any]) -> User:
        return (
            User()
            .set_raw(user)
            .map(
                {
                    "id": user["uuid"],
                    "nickname": user.get("username"),
                    "name": user.get("display_name"),
                    "email": user.get("email"),
                    "avatar": data_get(user, "links.avatar.href"),
                }
            )
        )
