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


class GitlabProvider(AbstractProvider):
    """
    GitLab.com or a self-managed instance (`host` driver option).
    """

    name: ClassVar[str] = "gitlab"
    default_scopes: ClassVar[tuple[str, ...]] = ("read_user",)
    scope_separator: ClassVar[str] = " "

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.host = "https://gitlab.com"

    def set_host(self, host: str | None) -> "GitlabProvider":
        """Set the GitLab instance host; empty values keep gitlab.com."""
        if host:
            self.host = host.rstrip("/")
        return self

    async def get_auth_url(self, state: str | None) -> str:
        return self.build_auth_url_from_base(f"{self.host}/oauth/authorize", state)

    async def get_token_url(self) -> str:
        return f"{self.host}/oauth/token"

    async def get_user_by_token(self, token: str) -> dict[str, Any]:
        return await fetch_json(  # type: ignore[no-any-return]
            self.get_http_client(),
            f"{self.host}/api/v4/user",
            params={"access_token": token},
        )

    def map_user_to_object(self, user: dict[str, Any]) -> User:
        return (
            User()
            .set_raw(user)
            .map(
                {
                    "id": user["id"],
                    "nickname": user.get("username"),
                    "name": user.get("name"),
                    "email": user.get("email"),
                    "avatar": user.get("avatar_url"),
                }
            )
        )
