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
AbstractProvider component implementing the OAuth 2.0 authorization code flow.
"""

import hmac
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import Any, ClassVar
from urllib.parse import quote, urlencode

import httpx
from authlib.common.security import generate_token
from authlib.oauth2.rfc7636 import create_s256_code_challenge
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from coreason_socialite.context import ProviderContext
from coreason_socialite.contracts import CallbackRequestContract
from coreason_socialite.exceptions import InvalidStateError, MissingRequestError
from coreason_socialite.http import AuthorizationRedirect
from coreason_socialite.models import QueryEncoding, Token, User
from coreason_socialite.transport import DEFAULT_TIMEOUT, create_http_client, fetch_json
from coreason_socialite.utils.logger import logger

tracer = trace.get_tracer(__name__)


class AbstractProvider(ProviderContext, ABC):
    """
    Base class for OAuth 2.0 providers.

    Instance attributes only hold immutable configuration and the shared HTTP
    client. Everything tied to one authorization attempt is kept in the flow
    context (see `coreason_socialite.context`) or in the request's session, so a
    single instance can serve concurrent requests.

    Variants implement `get_auth_url`, `get_token_url`, `get_user_by_token` and
    `map_user_to_object`.

    Attributes:
        name (str): The driver name, used in logs and spans.
        default_scopes (tuple[str, ...]): Scopes requested unless overridden for the flow.
        scope_separator (str): Separator used to join requested scopes and split granted ones.
        encoding_type (QueryEncoding): Encoding of the authorization query string.
    """

    name: ClassVar[str] = "oauth2"
    default_scopes: ClassVar[tuple[str, ...]] = ()
    default_parameters: ClassVar[Mapping[str, Any]] = {}
    scope_separator: ClassVar[str] = ","
    encoding_type: ClassVar[QueryEncoding] = QueryEncoding.RFC1738
    stateless_by_default: ClassVar[bool] = False
    pkce_by_default: ClassVar[bool] = False
    state_length: ClassVar[int] = 40
    code_verifier_length: ClassVar[int] = 96

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_url: str,
        http_options: Mapping[str, Any] | None = None,
        *,
        request: CallbackRequestContract | None = None,
        client: httpx.AsyncClient | None = None,
        http_timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """
        Initialize the provider.

        Args:
            client_id: The OAuth client id.
            client_secret: The OAuth client secret.
            redirect_url: The absolute callback URL.
            http_options: Keyword arguments for the `httpx.AsyncClient` created on first use.
            request: Default callback request, used when none is bound to the flow.
            client: External async client (optional). When given, `http_options` is ignored.
            http_timeout: Timeout for the internally created client.
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self._redirect_url = redirect_url
        self.http_options = dict(http_options or {})
        self.http_timeout = http_timeout
        self._request = request
        self._client = client
        self._internal_client = client is None
        self._default_scopes: tuple[str, ...] = tuple(self.default_scopes)

    async def __aenter__(self) -> "AbstractProvider":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._internal_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @abstractmethod
    async def get_auth_url(self, state: str | None) -> str:
        """Get the authentication URL for the provider."""

    @abstractmethod
    async def get_token_url(self) -> str:
        """Get the token URL for the provider."""

    @abstractmethod
    async def get_user_by_token(self, token: str) -> dict[str, Any]:
        """Get the raw user for the given access token."""

    @abstractmethod
    def map_user_to_object(self, user: dict[str, Any]) -> User:
        """Map the raw user payload to a User."""

    async def redirect(self) -> AuthorizationRedirect:
        """
        Starts the flow: stores the anti-forgery values and builds the authorization redirect.

        Returns:
            AuthorizationRedirect: Redirect to the provider's authorization screen.
        """
        state = None

        if self.uses_state():
            state = self.get_state()
            self.request.session.put("state", state)

        if self.uses_pkce():
            self.request.session.put("code_verifier", self.get_code_verifier())

        url = await self.get_auth_url(state)
        logger.debug(f"Redirecting to {self.name} authorization endpoint")
        return AuthorizationRedirect(url=url)

    def build_auth_url_from_base(self, url: str, state: str | None) -> str:
        return f"{url}?{self.build_query(self.get_code_fields(state))}"

    def build_query(self, fields: Mapping[str, Any]) -> str:
        """
        Encodes the query string, omitting `None` values.
        RFC1738 encodes spaces as `+`, RFC3986 as `%20`.
        """
        present = {key: value for key, value in fields.items() if value is not None}
        if self.encoding_type == QueryEncoding.RFC3986:
            return urlencode(present, quote_via=quote)
        return urlencode(present)

    def get_code_fields(self, state: str | None = None) -> dict[str, Any]:
        """Get the query parameters for the authorization request."""
        fields: dict[str, Any] = {
            "client_id": self.client_id,
            "redirect_uri": self.get_redirect_url(),
            "scope": self.format_scopes(self.get_scopes(), self.scope_separator),
            "response_type": "code",
        }

        if self.uses_state():
            fields["state"] = state

        if self.uses_pkce():
            fields["code_challenge"] = self.get_code_challenge()
            fields["code_challenge_method"] = self.get_code_challenge_method()

        return {**fields, **self.get_parameters()}

    def format_scopes(self, scopes: Iterable[str], separator: str) -> str:
        return separator.join(scopes)

    def parse_scopes(self, scopes: Any) -> list[str]:
        """
        Normalizes the granted `scope` of a token response.
        Strings are split on the separator; lists are kept as given.
        """
        if scopes is None:
            return []
        if isinstance(scopes, (list, tuple)):
            return [str(scope) for scope in scopes]
        return [scope for scope in str(scopes).split(self.scope_separator) if scope]

    async def user(self) -> User:
        """
        Completes the flow from the callback request.

        Returns:
            User: The mapped user with the token data attached. Memoized for the flow.

        Raises:
            InvalidStateError: If the flow is stateful and `state` is missing or does not match.
            httpx.HTTPError: If the token exchange or the profile request fails.
        """
        cached = self.get_user()
        if cached is not None:
            return cached

        with tracer.start_as_current_span("socialite.user") as span:
            span.set_attribute("socialite.provider", self.name)

            if self.has_invalid_state():
                msg = f"Invalid state returned to the {self.name} callback."
                logger.warning(msg)
                span.set_status(Status(StatusCode.ERROR, msg))
                raise InvalidStateError(msg)

            response = await self.get_access_token_response(self.get_code())
            raw = await self.get_user_by_token_response(response)
            user = self.user_instance(response, raw)

            span.set_status(Status(StatusCode.OK))
            logger.info(f"Resolved {self.name} user")
            return user

    async def get_user_by_token_response(self, response: dict[str, Any]) -> dict[str, Any]:
        """Get the raw user from the token endpoint response."""
        return await self.get_user_by_token(response.get("access_token", ""))

    def get_user(self) -> User | None:
        return self.get_context("user")

    def set_user(self, user: User) -> "AbstractProvider":
        self.set_context("user", user)
        return self

    def user_instance(self, response: dict[str, Any], user: dict[str, Any]) -> User:
        """Map the raw user and attach the token data of `response`."""
        instance = (
            self.map_user_to_object(user)
            .set_token(response.get("access_token"))
            .set_refresh_token(response.get("refresh_token"))
            .set_expires_in(response.get("expires_in"))
            .set_approved_scopes(self.parse_scopes(response.get("scope")))
        )
        self.set_user(instance)
        return instance

    async def user_from_token(self, token: str) -> User:
        """
        Get a User from a known access token, skipping the redirect and state checks.
        """
        user = self.map_user_to_object(await self.get_user_by_token(token))
        return user.set_token(token)

    def has_invalid_state(self) -> bool:
        """Determine if the callback carries a missing or mismatching `state`."""
        if self.is_stateless():
            return False

        state = self.request.session.pull("state")
        incoming = self.request.input("state")

        if not state or not isinstance(incoming, str):
            return True

        return not hmac.compare_digest(incoming.encode("utf-8"), str(state).encode("utf-8"))

    async def get_access_token_response(self, code: str) -> dict[str, Any]:
        """
        Exchange the authorization code at the token endpoint.

        Raises:
            httpx.HTTPStatusError: If the token endpoint rejects the request.
        """
        return await self._post_token_request(
            self.get_token_fields(code),
            headers=self.get_token_headers(code),
        )

    def get_token_headers(self, code: str) -> dict[str, str]:
        return {"Accept": "application/json"}

    def get_token_fields(self, code: str) -> dict[str, Any]:
        """Get the POST fields for the token request."""
        fields: dict[str, Any] = {
            "grant_type": "authorization_code",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "code": code,
            "redirect_uri": self.get_redirect_url(),
        }

        if self.uses_pkce():
            fields["code_verifier"] = self.request.session.pull("code_verifier")

        return {**fields, **self.get_parameters()}

    def get_token_auth(self) -> httpx.Auth | None:
        """
        Credentials for token endpoint requests.
        Variants whose token endpoint requires HTTP basic authentication return them here.
        """
        return None

    async def refresh_token(self, refresh_token: str) -> Token:
        """
        Refresh a user's access token.

        Args:
            refresh_token: The refresh token obtained with the original grant.

        Returns:
            Token: The new token set.
        """
        response = await self.get_refresh_token_response(refresh_token)
        return self.token_from_response(response)

    async def get_refresh_token_response(self, refresh_token: str) -> dict[str, Any]:
        return await self._post_token_request(
            self.get_refresh_token_fields(refresh_token),
            headers={"Accept": "application/json"},
        )

    def get_refresh_token_fields(self, refresh_token: str) -> dict[str, Any]:
        return {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }

    def token_from_response(self, response: dict[str, Any], refresh_token: str | None = None) -> Token:
        expires_in = response.get("expires_in")
        return Token(
            token=response["access_token"],
            refresh_token=response.get("refresh_token", refresh_token),
            expires_in=int(expires_in) if expires_in is not None else None,
            approved_scopes=self.parse_scopes(response.get("scope")),
        )

    async def _post_token_request(self, fields: dict[str, Any], headers: dict[str, str]) -> dict[str, Any]:
        kwargs: dict[str, Any] = {"headers": headers, "data": fields}
        auth = self.get_token_auth()
        if auth is not None:
            kwargs["auth"] = auth

        return await fetch_json(self.get_http_client(), await self.get_token_url(), method="POST", **kwargs)  # type: ignore[no-any-return]

    def get_code(self) -> str:
        return str(self.request.input("code") or "")

    def scopes(self, scopes: str | Iterable[str]) -> "AbstractProvider":
        """Merge scopes into the requested ones, keeping order and dropping duplicates."""
        return self.set_scopes([*self.get_scopes(), *_wrap(scopes)])

    def set_scopes(self, scopes: str | Iterable[str]) -> "AbstractProvider":
        """Replace the requested scopes for the current flow."""
        self.set_context("scopes", list(dict.fromkeys(_wrap(scopes))))
        return self

    def add_default_scopes(self, scopes: str | Iterable[str]) -> "AbstractProvider":
        """
        Merge scopes into the instance defaults shared by every flow.
        Called once at construction with the driver's configured scopes.
        """
        self._default_scopes = tuple(dict.fromkeys([*self._default_scopes, *_wrap(scopes)]))
        return self

    def get_scopes(self) -> list[str]:
        return list(self.get_context("scopes", self._default_scopes))

    def redirect_url(self, url: str) -> "AbstractProvider":
        self.set_context("redirect_url", url)
        return self

    def get_redirect_url(self) -> str:
        return self.get_context("redirect_url", self._redirect_url)  # type: ignore[no-any-return]

    def with_parameters(self, parameters: Mapping[str, Any]) -> "AbstractProvider":
        """Set custom parameters sent with the authorization and token requests."""
        self.set_context("parameters", dict(parameters))
        return self

    def get_parameters(self) -> dict[str, Any]:
        return dict(self.get_context("parameters", self.default_parameters))

    def stateless(self) -> "AbstractProvider":
        self.set_context("stateless", True)
        return self

    def is_stateless(self) -> bool:
        return bool(self.get_context("stateless", self.stateless_by_default))

    def uses_state(self) -> bool:
        return not self.is_stateless()

    def get_state(self) -> str:
        return generate_token(self.state_length)

    def enable_pkce(self) -> "AbstractProvider":
        self.set_context("uses_pkce", True)
        return self

    def uses_pkce(self) -> bool:
        return bool(self.get_context("uses_pkce", self.pkce_by_default))

    def get_code_verifier(self) -> str:
        return generate_token(self.code_verifier_length)

    def get_code_challenge(self) -> str:
        """URL-safe base64 of the SHA-256 of the stored code verifier, without padding."""
        return create_s256_code_challenge(self.request.session.get("code_verifier"))  # type: ignore[no-any-return]

    def get_code_challenge_method(self) -> str:
        return "S256"

    @property
    def request(self) -> CallbackRequestContract:
        request = self.get_context("request", self._request)
        if request is None:
            raise MissingRequestError(f"No request is bound to the {self.name} provider.")
        return request  # type: ignore[no-any-return]

    def set_request(self, request: CallbackRequestContract) -> "AbstractProvider":
        """Bind the current request to the flow."""
        self.set_context("request", request)
        return self

    def get_http_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = create_http_client(self.http_options, timeout=self.http_timeout)
            self._internal_client = True
        return self._client


def _wrap(value: str | Iterable[str]) -> list[str]:
    if isinstance(value, str):
        return [value]
    return list(value)
