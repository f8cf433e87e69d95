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
OpenIdProvider component: OIDC discovery, JWKS caching and ID token validation.
"""

import hmac
import time
from abc import abstractmethod
from typing import Any, ClassVar, cast

import anyio
import httpx
from authlib.common.security import generate_token
from authlib.jose import JsonWebKey, JsonWebToken, KeySet
from authlib.jose.errors import BadSignatureError, ExpiredTokenError, JoseError
from authlib.jose.errors import InvalidTokenError as JoseInvalidTokenError

from coreason_socialite.exceptions import (
    ConfigurationFetchingError,
    IdTokenExpiredError,
    IdTokenSignatureError,
    InvalidAudienceError,
    InvalidIdTokenError,
    InvalidIssuerError,
    InvalidNonceError,
    InvalidUserInfoUrlError,
    SocialiteError,
)
from coreason_socialite.http import AuthorizationRedirect
from coreason_socialite.models import OpenIdConfiguration, User
from coreason_socialite.providers.base import AbstractProvider
from coreason_socialite.transport import fetch_json
from coreason_socialite.utils.logger import logger
from coreason_socialite.utils.tokens import jwt_header_kid


class OpenIdProvider(AbstractProvider):
    """
    OpenID Connect provider.

    Endpoints come from the discovery document at
    `{base_url}/.well-known/openid-configuration`. The discovery document and the
    JWKS are fetched lazily and cached for the lifetime of the instance; flow
    values (`state`, `nonce`, `code_verifier`) stay in the session.

    The profile returned by `user()` is the verified ID token payload.
    """

    name: ClassVar[str] = "openid"
    default_scopes: ClassVar[tuple[str, ...]] = ("openid", "profile", "email")
    scope_separator: ClassVar[str] = " "
    uses_nonce_by_default: ClassVar[bool] = True
    nonce_length: ClassVar[int] = 40
    id_token_algorithms: ClassVar[tuple[str, ...]] = (
        "RS256",
        "RS384",
        "RS512",
        "PS256",
        "PS384",
        "PS512",
        "ES256",
        "ES384",
        "ES512",
    )
    id_token_leeway: ClassVar[int] = 30
    # Minimum seconds between forced JWKS refreshes
    jwks_refresh_cooldown: ClassVar[float] = 30.0

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._openid_config: OpenIdConfiguration | None = None
        self._jwks: KeySet | None = None
        self._jwks_fetched_at: float = 0.0
        self._lock: anyio.Lock | None = None
        # Restrict accepted algorithms; "none" and HMAC algorithms are rejected
        self._jwt = JsonWebToken(list(self.id_token_algorithms))

    @abstractmethod
    def get_base_url(self) -> str:
        """Get the base URL for the OIDC provider."""

    async def redirect(self) -> AuthorizationRedirect:
        """
        Stores a fresh nonce and continues with the OAuth 2.0 redirect.
        """
        if self.uses_nonce():
            self.request.session.put("nonce", self.get_nonce())

        return await super().redirect()

    async def get_auth_url(self, state: str | None) -> str:
        config = await self.get_openid_config()
        return self.build_auth_url_from_base(config.authorization_endpoint, state)

    async def get_token_url(self) -> str:
        config = await self.get_openid_config()
        return config.token_endpoint

    async def get_userinfo_url(self) -> str | None:
        config = await self.get_openid_config()
        return config.userinfo_endpoint

    async def get_jwks_uri(self) -> str:
        config = await self.get_openid_config()
        return config.jwks_uri

    def get_code_fields(self, state: str | None = None) -> dict[str, Any]:
        fields = super().get_code_fields(state)

        if self.uses_nonce():
            fields["nonce"] = self.get_current_nonce()

        return fields

    def uses_nonce(self) -> bool:
        return self.uses_nonce_by_default

    def get_nonce(self) -> str:
        return generate_token(self.nonce_length)

    def get_current_nonce(self) -> str | None:
        return self.request.session.get("nonce")  # type: ignore[no-any-return]

    def get_openid_config_url(self) -> str:
        return f"{self.get_base_url().rstrip('/')}/.well-known/openid-configuration"

    async def get_openid_config(self) -> OpenIdConfiguration:
        """
        Returns the discovery document, fetching it on first use.

        Raises:
            ConfigurationFetchingError: If the document cannot be fetched or is invalid.
        """
        if self._openid_config is not None:
            return self._openid_config

        if self._lock is None:
            self._lock = anyio.Lock()

        async with self._lock:
            # Another task may have completed the fetch while we waited
            if self._openid_config is None:
                self._openid_config = await self._fetch_openid_config()

        return self._openid_config

    async def _fetch_openid_config(self) -> OpenIdConfiguration:
        config_url = self.get_openid_config_url()
        try:
            data = await fetch_json(self.get_http_client(), config_url)
            return OpenIdConfiguration.model_validate(data)
        except (httpx.HTTPError, SocialiteError, ValueError) as e:
            # pydantic.ValidationError and json.JSONDecodeError are ValueErrors
            logger.error(f"Failed to fetch OIDC configuration from {config_url}: {e}")
            raise ConfigurationFetchingError(f"Unable to get the OIDC configuration from {config_url}: {e}") from e

    async def get_jwks(self, force_refresh: bool = False) -> KeySet:
        """
        Returns the provider's JSON Web Key Set, fetching it on first use.

        Args:
            force_refresh: If True, bypasses the cache and fetches fresh keys, unless the
                last fetch is younger than `jwks_refresh_cooldown`.

        Raises:
            ConfigurationFetchingError: If the key set cannot be fetched or parsed.
        """
        if self._jwks is not None and not force_refresh:
            return self._jwks

        jwks_uri = await self.get_jwks_uri()

        if self._lock is None:
            self._lock = anyio.Lock()

        async with self._lock:
            in_cooldown = (
                self._jwks is not None and (time.time() - self._jwks_fetched_at) < self.jwks_refresh_cooldown
            )
            if force_refresh and in_cooldown:
                logger.warning("JWKS refresh cooldown active. Returning cached keys despite force_refresh request.")
            elif self._jwks is None or force_refresh:
                try:
                    data = await fetch_json(self.get_http_client(), jwks_uri)
                    self._jwks = JsonWebKey.import_key_set(data)
                    self._jwks_fetched_at = time.time()
                except (httpx.HTTPError, SocialiteError, ValueError) as e:
                    logger.error(f"Failed to fetch JWKS from {jwks_uri}: {e}")
                    raise ConfigurationFetchingError(f"Unable to get the JWKS from {jwks_uri}: {e}") from e

        return self._jwks

    async def get_user_by_token_response(self, response: dict[str, Any]) -> dict[str, Any]:
        id_token = response.get("id_token")
        if not id_token:
            logger.warning(f"{self.name} token response did not include an id_token")
            raise InvalidIdTokenError("The token response does not contain an id_token.")

        return await self.get_user_by_oidc_token(id_token)

    async def get_user_by_oidc_token(self, token: str) -> dict[str, Any]:
        """
        Verifies the ID token signature and claims.

        Returns:
            dict[str, Any]: The verified claims.
        """
        claims = await self.decode_id_token(token)
        await self.validate_oidc_payload(claims)
        return dict(claims)

    async def decode_id_token(self, token: str) -> Any:
        """
        Decodes the ID token and verifies its signature against the JWKS.
        A `kid` missing from the cached set triggers one refresh (key rotation).

        Raises:
            IdTokenSignatureError: If the signature is invalid or no key matches.
            InvalidIdTokenError: If the token is malformed.
        """
        jwks = await self.get_jwks()
        jwt_any = cast("Any", self._jwt)

        kid = jwt_header_kid(token)
        if kid is not None and not _has_key(jwks, kid):
            logger.info(f"ID token key {kid} not found in cached JWKS, refreshing JWKS...")
            jwks = await self.get_jwks(force_refresh=True)

        try:
            return jwt_any.decode(token, jwks)
        except BadSignatureError as e:
            logger.warning(f"{self.name} ID token has a bad signature")
            raise IdTokenSignatureError(f"Invalid ID token signature: {e}") from e
        except ValueError as e:
            logger.warning(f"{self.name} ID token signing key not found")
            raise IdTokenSignatureError(f"ID token signing key not found: {e}") from e
        except JoseError as e:
            logger.warning(f"{self.name} ID token could not be decoded")
            raise InvalidIdTokenError(f"ID token could not be decoded: {e}") from e

    async def validate_oidc_payload(self, claims: Any) -> None:
        """
        Validates the ID token claims, in order: nonce, audience, issuer, time claims.

        Raises:
            InvalidNonceError: If the nonce is missing or does not match the stored one.
            InvalidAudienceError: If `aud` is not the client id.
            InvalidIssuerError: If `iss` is not the discovered issuer.
            IdTokenExpiredError: If the token is expired or not yet valid.
        """
        if self.uses_nonce() and self.is_invalid_nonce(claims.get("nonce")):
            logger.warning(f"{self.name} ID token nonce mismatch")
            raise InvalidNonceError("The ID token nonce is missing or does not match.")

        aud = claims.get("aud")
        if not (aud == self.client_id or (isinstance(aud, list) and self.client_id in aud)):
            logger.warning(f"{self.name} ID token audience mismatch")
            raise InvalidAudienceError("The ID token audience does not match the client id.")

        config = await self.get_openid_config()
        if claims.get("iss") != config.issuer:
            logger.warning(f"{self.name} ID token issuer mismatch")
            raise InvalidIssuerError("The ID token issuer does not match the discovered issuer.")

        try:
            claims.validate(leeway=self.id_token_leeway)
        except (ExpiredTokenError, JoseInvalidTokenError) as e:
            logger.warning(f"{self.name} ID token is expired or not yet valid")
            raise IdTokenExpiredError(f"ID token is expired or not yet valid: {e}") from e
        except JoseError as e:
            raise InvalidIdTokenError(f"Invalid ID token claim: {e}") from e

    def is_invalid_nonce(self, nonce: Any) -> bool:
        """
        Determine if the ID token nonce is missing or mismatching.
        The stored nonce is consumed so an ID token cannot be replayed within the session.
        """
        current = self.request.session.pull("nonce")
        if not nonce or not current or not isinstance(nonce, str):
            return True
        return not hmac.compare_digest(nonce.encode("utf-8"), str(current).encode("utf-8"))

    async def get_user_by_token(self, token: str) -> dict[str, Any]:
        """
        Fetches the profile from the userinfo endpoint.

        Raises:
            InvalidUserInfoUrlError: If the discovery document has no userinfo endpoint.
        """
        userinfo_url = await self.get_userinfo_url()
        if not userinfo_url:
            raise InvalidUserInfoUrlError(f"The {self.name} provider does not publish a userinfo endpoint.")

        return await fetch_json(  # type: ignore[no-any-return]
            self.get_http_client(),
            userinfo_url,
            headers={"Authorization": f"Bearer {token}"},
        )


class GenericOpenIdProvider(OpenIdProvider):
    """
    OpenID Connect provider for any issuer publishing a discovery document.
    """

    name: ClassVar[str] = "oidc"

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.base_url: str | None = None

    def set_base_url(self, base_url: str) -> "GenericOpenIdProvider":
        self.base_url = base_url.rstrip("/")
        return self

    def get_base_url(self) -> str:
        if not self.base_url:
            raise ConfigurationFetchingError("No base URL configured for the OIDC provider.")
        return self.base_url

    def map_user_to_object(self, user: dict[str, Any]) -> User:
        return (
            User()
            .set_raw(user)
            .map(
                {
                    "id": user.get("sub"),
                    "nickname": user.get("preferred_username") or user.get("nickname"),
                    "name": user.get("name"),
                    "email": user.get("email"),
                    "email_verified": user.get("email_verified"),
                    "avatar": user.get("picture"),
                }
            )
        )


def _has_key(jwks: KeySet, kid: str) -> bool:
    try:
        jwks.find_by_kid(kid)
    except ValueError:
        return False
    return True
