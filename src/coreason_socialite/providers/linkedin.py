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

_STILL_IMAGE = "com.linkedin.digitalmedia.mediaartifact.StillImage"
_RESTLI_HEADERS = {"X-RestLi-Protocol-Version": "2.0.0"}


class LinkedInProvider(AbstractProvider):
    """
    LinkedIn v2 profile API (legacy `r_liteprofile` / `r_emailaddress` scopes).
    """

    name: ClassVar[str] = "linkedin"
    default_scopes: ClassVar[tuple[str, ...]] = ("r_liteprofile", "r_emailaddress")
    scope_separator: ClassVar[str] = " "

    async def get_auth_url(self, state: str | None) -> str:
        return self.build_auth_url_from_base("https://www.linkedin.com/oauth/v2/authorization", state)

    async def get_token_url(self) -> str:
        return "https://www.linkedin.com/oauth/v2/accessToken"

    async def get_user_by_token(self, token: str) -> dict[str, Any]:
        basic_profile = await self.get_basic_profile(token)
        email_address = await self.get_email_address(token)
        return {**basic_profile, **email_address}

    async def get_basic_profile(self, token: str) -> dict[str, Any]:
        fields = ["id", "firstName", "lastName", "profilePicture(displayImage~:playableStreams)"]

        if "r_liteprofile" in self.get_scopes():
            fields.append("vanityName")

        response = await fetch_json(
            self.get_http_client(),
            "https://api.linkedin.com/v2/me",
            headers={"Authorization": f"Bearer {token}", **_RESTLI_HEADERS},
            params={"projection": f"({','.join(fields)})"},
        )
        return dict(response or {})

    async def get_email_address(self, token: str) -> dict[str, Any]:
        response = await fetch_json(
            self.get_http_client(),
            "https://api.linkedin.com/v2/emailAddress",
            headers={"Authorization": f"Bearer {token}", **_RESTLI_HEADERS},
            params={"q": "members", "projection": "(elements*(handle~))"},
        )
        return dict(data_get(response, ["elements", "0", "handle~"]) or {})

    def map_user_to_object(self, user: dict[str, Any]) -> User:
        locale = (
            f"{data_get(user, 'firstName.preferredLocale.language')}_"
            f"{data_get(user, 'firstName.preferredLocale.country')}"
        )
        first_name = data_get(user, ["firstName", "localized", locale])
        last_name = data_get(user, ["lastName", "localized", locale])

        images = data_get(user, ["profilePicture", "displayImage~", "elements"], []) or []
        avatar = _image_with_width(images, 100)
        original_avatar = _image_with_width(images, 800)

        return (
            User()
            .set_raw(user)
            .map(
                {
                    "id": user["id"],
                    "nickname": None,
                    "name": f"{first_name} {last_name}",
                    "first_name": first_name,
                    "last_name": last_name,
                    "email": user.get("emailAddress"),
                    "avatar": data_get(avatar, "identifiers.0.identifier"),
                    "avatar_original": data_get(original_avatar, "identifiers.0.identifier"),
                }
            )
        )


def _image_with_width(images: list[dict[str, Any]], width: int) -> dict[str, Any] | None:
    for image in images:
        still = data_get(image, ["data", _STILL_IMAGE], {}) or {}
        image_width = data_get(still, "storageSize.width")
        if image_width is None:
            image_width = data_get(still, "displaySize.width")
        if image_width == width:
            return image
    return None


class LinkedInOpenIdProvider(AbstractProvider):
    """
    Sign In with LinkedIn using OpenID Connect scopes.
    """

    name: ClassVar[str] = "linkedin-openid"
    default_scopes: ClassVar[tuple[str, ...]] = ("openid", "profile", "email")
    scope_separator: ClassVar[str] = " "

    async def get_auth_url(self, state: str | None) -> str:
        return self.build_auth_url_from_base("https://www.linkedin.com/oauth/v2/authorization", state)

    async def get_token_url(self) -> str:
        return "https://www.linkedin.com/oauth/v2/accessToken"

    async def get_user_by_token(self, token: str) -> dict[str, Any]:
        response = await fetch_json(
            self.get_http_client(),
            "https://api.linkedin.com/v2/userinfo",
            headers={"Authorization": f"Bearer {token}", **_RESTLI_HEADERS},
            params={"projection": "(sub,email,email_verified,name,given_name,family_name,picture)"},
        )
        return dict(response or {})

    def map_user_to_object(self, user: dict[str, Any]) -> User:
        return (
            User()
            .set_raw(user)
            .map(
                {
                    "id": user["sub"],
                    "nickname": None,
                    "name": user.get("name"),
                    "first_name": user.get("given_name"),
                    "last_name": user.get("family_name"),
                    "email": user.get("email"),
                    "email_verified": user.get("email_verified"),
                    "avatar": user.get("picture"),
                    "avatar_original": user.get("picture"),
                }
            )
        )
