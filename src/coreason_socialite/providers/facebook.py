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
Facebook Login, including Limited Login OIDC tokens.
"""

import hashlib
import hmac
from collections.abc import Iterable
from typing import Any, ClassVar

from authlib.jose import JsonWebKey, JsonWebToken
from authlib.jose.errors import BadSignatureError, ExpiredTokenError, JoseError
from authlib.jose.errors import InvalidTokenError as JoseInvalidTokenError

from coreason_socialite.exceptions import (
    IdTokenExpiredError,
    IdTokenSignatureError,
    InvalidAudienceError,
    InvalidIdTokenError,
    InvalidIssuerError,
)
from coreason_socialite.models import User
from coreason_socialite.providers.base import AbstractProvider
from coreason_socialite.transport import fetch_json
from coreason_socialite.utils.logger import logger
from coreason_socialite.utils.tokens import jwt_header_kid

LIMITED_LOGIN_JWKS_URL = "https://limited.facebook.com/.well-known/oauth/openid/jwks/"
LIMITED_LOGIN_ISSUER = "https://www.facebook.com"


class FacebookProvider(AbstractProvider):
    """
    Facebook Graph API login.

    Access tokens that carry a JWT header with a `kid` are Limited Login ID tokens;
    they are verified locally against Facebook's published keys instead of calling `/me`.
    """

    name: ClassVar[str] = "facebook"
    default_scopes: ClassVar[tuple[str, ...]] = ("email",)
    graph_url: ClassVar[str] = "https://graph.facebook.com"
    default_version: ClassVar[str] = "v3.3"
    default_fields: ClassVar[tuple[str, ...]] = ("name", "email", "gender", "verified", "link")

    _jwt = JsonWebToken(["RS256"])

    async def get_auth_url(self, state: str | None) -> str:
        return self.build_auth_url_from_base(f"https://www.facebook.com/{self.get_version()}/dialog/oauth", state)

    async def get_token_url(self) -> str:
        return f"{self.graph_url}/{self.get_version()}/oauth/access_token"

    async def get_access_token_response(self, code: str) -> dict[str, Any]:
        data = dict(await super().get_access_token_response(code))
        # Graph API reports the lifetime as `expires`
        expires = data.pop("expires", None)
        data.setdefault("expires_in", expires)
        return data

    async def get_user_by_token(self, token: str) -> dict[str, Any]:
        self.set_context("last_token", token)

        user = await self.get_user_by_oidc_token(token)
        if user is not None:
            return user

        return await self.get_user_from_access_token(token)

    async def get_user_by_oidc_token(self, token: str) -> dict[str, Any] | None:
        """
        Verify a Limited Login token and return its claims, or None if `token` is not a JWT.

        Raises:
            IdTokenSignatureError: If no published key matches or the signature is invalid.
            InvalidAudienceError: If `aud` is not the client id.
            InvalidIssuerError: If `iss` is not Facebook.
        """
        kid = jwt_header_kid(token)
        if kid is None:
            return None

        key = await self.get_public_key_of_oidc_token(kid)

        try:
            claims = self._jwt.decode(token, key)
        except BadSignatureError as e:
            raise IdTokenSignatureError(f"Invalid Limited Login token signature: {e}") from e
        except JoseError as e:
            raise InvalidIdTokenError(f"Limited Login token could not be decoded: {e}") from e

        if claims.get("aud") != self.client_id:
            raise InvalidAudienceError("Token has incorrect audience.")

        if claims.get("iss") != LIMITED_LOGIN_ISSUER:
            raise InvalidIssuerError("Token has incorrect issuer.")

        try:
            claims.validate()
        except (ExpiredTokenError, JoseInvalidTokenError) as e:
            raise IdTokenExpiredError(f"Limited Login token is expired: {e}") from e

        data = dict(claims)
        data["id"] = data["sub"]

        if "given_name" in data:
            data["first_name"] = data["given_name"]

        if "family_name" in data:
            data["last_name"] = data["family_name"]

        return data

    async def get_public_key_of_oidc_token(self, kid: str) -> Any:
        response = await fetch_json(self.get_http_client(), LIMITED_LOGIN_JWKS_URL)

        for key in response.get("keys", []):
            if key.get("kid") == kid:
                return JsonWebKey.import_key(key)

        logger.warning(f"No Facebook Limited Login key matches kid {kid}")
        raise IdTokenSignatureError(f"No published Limited Login key matches kid [{kid}].")

    async def get_user_from_access_token(self, token: str) -> dict[str, Any]:
        params: dict[str, Any] = {
            "access_token": token,
            "fields": ",".join(self.get_fields()),
        }

        if self.client_secret:
            params["appsecret_proof"] = hmac.new(
                self.client_secret.encode("utf-8"), token.encode("utf-8"), hashlib.sha256
            ).hexdigest()

        return await fetch_json(  # type: ignore[no-any-return]
            self.get_http_client(),
            f"{self.graph_url}/{self.get_version()}/me",
            params=params,
        )

    def map_user_to_object(self, user: dict[str, Any]) -> User:
        avatar = avatar_original = user.get("picture")

        if "sub" not in user:
            avatar = f"{self.graph_url}/{self.get_version()}/{user['id']}/picture"
            avatar_original = f"{avatar}?width=1920"

        return (
            User()
            .set_raw(user)
            .map(
                {
                    "id": user["id"],
                    "nickname": None,
                    "name": user.get("name"),
                    "email": user.get("email"),
                    "avatar": avatar,
                    "avatar_original": avatar_original,
                    "profile_url": user.get("link"),
                }
            )
        )

    def get_code_fields(self, state: str | None = None) -> dict[str, Any]:
        fields = super().get_code_fields(state)

        if self.get_context("popup", False):
            fields["display"] = "popup"

        if self.get_context("re_request", False):
            fields["auth_type"] = "rerequest"

        return fields

    def fields(self, fields: Iterable[str]) -> "FacebookProvider":
        """Set the user fields requested from the Graph API."""
        self.set_context("fields", list(fields))
        return self

    def get_fields(self) -> list[str]:
        return list(self.get_context("fields", self.default_fields))

    def as_popup(self) -> "FacebookProvider":
        self.set_context("popup", True)
        return self

    def re_request(self) -> "FacebookProvider":
        """Re-request permissions which were previously declined."""
        self.set_context("re_request", True)
        return self

    def last_token(self) -> str | None:
        return self.get_context("last_token")

    def using_graph_version(self, version: str) -> "FacebookProvider":
        self.set_context("graph_version", version)
        return self

    def get_version(self) -> str:
        return self.get_context("graph_version", self.default_version)  # type: ignore[no-any-return]
