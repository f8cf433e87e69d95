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
from coreason_socialite.utils.data import data_get


class SlackProvider(AbstractProvider):
    """
    Sign in with Slack (OAuth v2).

    By default scopes are requested as user scopes and the user token is read
    from `authed_user`; `as_bot_user()` requests bot scopes for the current flow.
    """

    name: ClassVar[str] = "slack"
    default_scopes: ClassVar[tuple[str, ...]] = (
        "identity.basic",
        "identity.email",
        "identity.team",
        "identity.avatar",
    )

    def as_bot_user(self) -> "SlackProvider":
        """Indicate that the requested token should be for a bot user."""
        self.set_context("scope_key", "scope")
        return self

    def get_scope_key(self) -> str:
        return self.get_context("scope_key", "user_scope")  # type: ignore[no-any-return]

    async def get_auth_url(self, state: str | None) -> str:
        return self.build_auth_url_from_base("https://slack.com/oauth/v2/authorize", state)

    async def get_token_url(self) -> str:
        return "https://slack.com/api/oauth.v2.access"

    def get_code_fields(self, state: str | None = None) -> dict[str, Any]:
        fields = super().get_code_fields(state)

        if self.get_scope_key() == "user_scope":
            fields["scope"] = ""
            fields["user_scope"] = self.format_scopes(self.get_scopes(), self.scope_separator)

        return fields

    async def get_access_token_response(self, code: str) -> dict[str, Any]:
        result = await super().get_access_token_response(code)

        if self.get_scope_key() == "user_scope":
            return result["authed_user"]  # type: ignore[no-any-return]

        return result

    async def get_user_by_token(self, token: str) -> dict[str, Any]:
        return await fetch_json(  # type: ignore[no-any-return]
            self.get_http_client(),
            "https://slack.com/api/users.identity",
            headers={"Authorization": f"Bearer {token}"},
        )

    def map_user_to_object(self, user: dict[str, Any]) -> User:
        return (
            User()
            .set_raw(user)
            .map(
                {
                    "id": data_get(user, "user.id"),
                    "name": data_get(user, "user.name"),
                    "email": data_get(user, "user.email"),
                    "avatar": data_get(user, "user.image_512"),
                    "organization_id": data_get(user, "team.id"),
                }
            )
        )


class SlackOpenIdProvider(AbstractProvider):
    """
    Sign in with Slack through its OpenID Connect endpoints.
    """

    name: ClassVar[str] = "slack-openid"
    default_scopes: ClassVar[tuple[str, ...]] = ("openid", "email", "profile")
    scope_separator: ClassVar[str] = " "

    async def get_auth_url(self, state: str | None) -> str:
        return self.build_auth_url_from_base("https://slack.com/openid/connect/authorize", state)

    async def get_token_url(self) -> str:
        return "https://slack.com/api/openid.connect.token"

    async def get_user_by_token(self, token: str) -> dict[str, Any]:
        return await fetch_json(  # type: ignore[no-any-return]
            self.get_http_client(),
            "https://slack.com/api/openid.connect.userInfo",
            headers={"Authorization": f"Bearer {token}"},
        )

    def map_user_to_object(self, user: dict[str, Any]) -> User:
        return (
            User()
            .set_raw(user)
            .map(
                {
                    "id": user.get("sub"),
                    "nickname": None,
                    "name": user.get("name"),
                    "email": user.get("email"),
                    "avatar": user.get("picture"),
                    "organization_id": user.get("https://slack.com/team_id"),
                }
            )
        )
