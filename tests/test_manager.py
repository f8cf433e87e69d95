# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_socialite

from typing import Any
from unittest.mock import AsyncMock, Mock

import httpx
import pytest
from conftest import query_params

from coreason_socialite.config import SocialiteConfig
from coreason_socialite.contracts import Provider
from coreason_socialite.exceptions import DriverMissingConfigurationError, SocialiteError, UnsupportedDriverError
from coreason_socialite.http import CallbackRequest, MemorySession
from coreason_socialite.manager import BUILTIN_PROVIDERS, SocialiteManager
from coreason_socialite.providers import (
    GenericOpenIdProvider,
    GithubProvider,
    GitlabProvider,
    GoogleProvider,
    XProvider,
)

CREDENTIALS = {"client_id": "cid", "client_secret": "sec", "redirect": "/cb"}


def make_manager(services: dict[str, Any], **kwargs: Any) -> SocialiteManager:
    config = SocialiteConfig(app_url="https://app.test", services=services)
    return SocialiteManager(config, request=CallbackRequest(session=MemorySession()), **kwargs)


def test_relative_redirect_resolved_against_app_url() -> None:
    manager = make_manager({"github": CREDENTIALS})

    provider = manager.driver("github")

    assert isinstance(provider, GithubProvider)
    assert provider.get_redirect_url() == "https://app.test/cb"
    assert provider.client_id == "cid"
    assert provider.client_secret == "sec"


def test_absolute_redirect_does_not_call_url_generator() -> None:
    generator = Mock()
    manager = make_manager(
        {"github": {**CREDENTIALS, "redirect": "https://elsewhere.test/callback"}},
        url_generator=generator,
    )

    provider = manager.driver("github")

    assert provider.get_redirect_url() == "https://elsewhere.test/callback"
    generator.to.assert_not_called()


def test_custom_url_generator() -> None:
    generator = Mock()
    generator.to.return_value = "https://generated.test/cb"
    manager = make_manager({"github": CREDENTIALS}, url_generator=generator)

    assert manager.driver("github").get_redirect_url() == "https://generated.test/cb"
    generator.to.assert_called_once_with("/cb")


def test_relative_redirect_without_app_url() -> None:
    manager = SocialiteManager(SocialiteConfig(services={"github": CREDENTIALS}))

    with pytest.raises(DriverMissingConfigurationError):
        manager.driver("github")


@pytest.mark.parametrize(
    "config, missing",
    [
        ({}, ["client_id", "client_secret", "redirect"]),
        ({"client_id": "cid"}, ["client_secret", "redirect"]),
        ({"client_id": "cid", "client_secret": "sec"}, ["redirect"]),
        ({"client_secret": "sec", "redirect": "/cb"}, ["client_id"]),
        ({"client_id": "cid", "client_secret": "", "redirect": "/cb"}, ["client_secret"]),
    ],
)
def test_missing_keys_are_reported_exactly(config: dict[str, Any], missing: list[str]) -> None:
    manager = make_manager({"github": config})

    with pytest.raises(DriverMissingConfigurationError) as exc_info:
        manager.driver("github")

    assert exc_info.value.missing_keys == missing
    assert exc_info.value.provider == "GithubProvider"
    assert f"[{', '.join(missing)}]" in str(exc_info.value)
    assert manager.get_drivers() == {}


def test_numeric_client_id_is_accepted() -> None:
    manager = make_manager({"facebook": {**CREDENTIALS, "client_id": 1234567890}})

    assert manager.driver("facebook").client_id == "1234567890"


def test_wrongly_typed_value_is_a_configuration_error() -> None:
    manager = make_manager({"github": {**CREDENTIALS, "redirect": ["/cb"]}})

    with pytest.raises(DriverMissingConfigurationError) as exc_info:
        manager.driver("github")

    assert isinstance(exc_info.value, SocialiteError)
    assert exc_info.value.provider == "GithubProvider"
    assert exc_info.value.missing_keys == ["redirect"]
    assert manager.get_drivers() == {}


def test_missing_service_entry() -> None:
    manager = make_manager({})

    with pytest.raises(DriverMissingConfigurationError) as exc_info:
        manager.driver("google")

    assert exc_info.value.missing_keys == ["client_id", "client_secret", "redirect"]


@pytest.mark.parametrize("name", [None, ""])
def test_driver_name_is_required(name: str | None) -> None:
    manager = make_manager({})

    with pytest.raises(DriverMissingConfigurationError, match="No Socialite driver was specified."):
        manager.driver(name)


def test_unknown_driver() -> None:
    manager = make_manager({"myspace": CREDENTIALS})

    with pytest.raises(UnsupportedDriverError, match=r"Driver \[myspace\] not supported."):
        manager.driver("myspace")


def test_drivers_are_cached_and_forgotten() -> None:
    manager = make_manager({"github": CREDENTIALS})

    first = manager.driver("github")
    assert manager.driver("github") is first
    assert manager.get_drivers() == {"github": first}

    manager.forget_drivers()
    assert manager.get_drivers() == {}
    assert manager.driver("github") is not first


def test_extend_registers_custom_creator() -> None:
    manager = make_manager({"acme": CREDENTIALS})
    created = []

    def create_acme(m: SocialiteManager) -> GoogleProvider:
        created.append(m)
        return m.build_provider(GoogleProvider, m.config.service("acme"))

    manager.extend("acme", create_acme)
    provider = manager.driver("acme")

    assert isinstance(provider, GoogleProvider)
    assert created == [manager]


def test_extend_overrides_builtin_driver() -> None:
    manager = make_manager({"github": CREDENTIALS})
    sentinel = object()

    manager.extend("github", lambda m: sentinel)

    assert manager.driver("github") is sentinel


def test_configured_scopes_are_added_to_defaults() -> None:
    manager = make_manager({"github": {**CREDENTIALS, "scopes": ["read:org", "user:email"]}})
    assert manager.driver("github").get_scopes() == ["user:email", "read:org"]


def test_http_options_reach_the_client() -> None:
    manager = make_manager({"github": {**CREDENTIALS, "http": {"timeout": 3.0}}})
    client = manager.driver("github").get_http_client()
    assert client.timeout == httpx.Timeout(3.0)


def test_http_timeout_default_from_config() -> None:
    config = SocialiteConfig(app_url="https://app.test", http_timeout=4.0, services={"github": CREDENTIALS})
    client = SocialiteManager(config).driver("github").get_http_client()
    assert client.timeout == httpx.Timeout(4.0)


def test_shared_client_is_passed_to_drivers() -> None:
    client = httpx.AsyncClient()
    manager = make_manager({"github": CREDENTIALS, "google": CREDENTIALS}, client=client)

    assert manager.driver("github").get_http_client() is client
    assert manager.driver("google").get_http_client() is client


@pytest.mark.asyncio
async def test_bound_request_is_passed_to_drivers() -> None:
    manager = make_manager({"github": CREDENTIALS})
    provider = manager.driver("github")

    redirect = await provider.redirect()

    assert manager.request is not None
    assert query_params(redirect.url)["state"] == manager.request.session.get("state")
    assert query_params(redirect.url)["redirect_uri"] == "https://app.test/cb"


def test_gitlab_host() -> None:
    manager = make_manager({"gitlab": {**CREDENTIALS, "host": "https://git.example.com"}})
    provider = manager.driver("gitlab")

    assert isinstance(provider, GitlabProvider)
    assert provider.host == "https://git.example.com"


def test_gitlab_default_host() -> None:
    provider = make_manager({"gitlab": CREDENTIALS}).driver("gitlab")
    assert provider.host == "https://gitlab.com"


def test_x_falls_back_to_oauth_2_entry() -> None:
    manager = make_manager({"x-oauth-2": CREDENTIALS})
    provider = manager.driver("x")

    assert isinstance(provider, XProvider)
    assert provider.client_id == "cid"


def test_x_prefers_own_entry() -> None:
    manager = make_manager({"x": {**CREDENTIALS, "client_id": "x-id"}, "x-oauth-2": CREDENTIALS})
    assert manager.driver("x").client_id == "x-id"


def test_oidc_driver_requires_base_url() -> None:
    manager = make_manager({"oidc": CREDENTIALS})

    with pytest.raises(DriverMissingConfigurationError) as exc_info:
        manager.driver("oidc")

    assert exc_info.value.missing_keys == ["base_url"]


def test_oidc_driver_reports_credentials_and_base_url_together() -> None:
    manager = make_manager({"oidc": {"client_id": "cid"}})

    with pytest.raises(DriverMissingConfigurationError) as exc_info:
        manager.driver("oidc")

    assert exc_info.value.missing_keys == ["client_secret", "redirect", "base_url"]
    assert exc_info.value.provider == "GenericOpenIdProvider"


def test_oidc_driver() -> None:
    manager = make_manager({"oidc": {**CREDENTIALS, "base_url": "https://idp.test/"}})
    provider = manager.driver("oidc")

    assert isinstance(provider, GenericOpenIdProvider)
    assert provider.get_openid_config_url() == "https://idp.test/.well-known/openid-configuration"


@pytest.mark.parametrize("name", sorted(BUILTIN_PROVIDERS))
def test_every_builtin_driver_builds(name: str) -> None:
    config = {**CREDENTIALS, "base_url": "https://idp.test"}
    provider = make_manager({name: config}).driver(name)
    assert isinstance(provider, BUILTIN_PROVIDERS[name])
    assert isinstance(provider, Provider)
    assert provider.name == name


@pytest.mark.asyncio
async def test_aclose_closes_every_driver() -> None:
    manager = make_manager({"github": CREDENTIALS})
    manager.extend("custom", lambda m: Mock(aclose=AsyncMock()))

    github = manager.driver("github")
    client = github.get_http_client()
    custom = manager.driver("custom")

    async with manager:
        pass

    assert client.is_closed
    custom.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_aforget_drivers_closes_dropped_clients() -> None:
    manager = make_manager({"github": CREDENTIALS})
    first = manager.driver("github")
    client = first.get_http_client()

    await manager.aforget_drivers()

    assert client.is_closed
    assert manager.get_drivers() == {}
    assert manager.driver("github") is not first
