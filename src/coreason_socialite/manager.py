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
SocialiteManager component: the driver registry.
"""

from collections.abc import Callable, Mapping
from typing import Any, TypeVar

import httpx
from pydantic import ValidationError

from coreason_socialite.config import REQUIRED_PROVIDER_KEYS, ProviderConfig, SocialiteConfig
from coreason_socialite.contracts import CallbackRequestContract, Provider, UrlGenerator
from coreason_socialite.exceptions import DriverMissingConfigurationError, UnsupportedDriverError
from coreason_socialite.http import BaseUrlGenerator
from coreason_socialite.providers import (
    AbstractProvider,
    BitbucketProvider,
    FacebookProvider,
    GenericOpenIdProvider,
    GithubProvider,
    GitlabProvider,
    GoogleProvider,
    LinkedInOpenIdProvider,
    LinkedInProvider,
    SlackOpenIdProvider,
    SlackProvider,
    TwitchProvider,
    XProvider,
)
from coreason_socialite.utils.logger import logger

ProviderT = TypeVar("ProviderT", bound=AbstractProvider)
DriverCreator = Callable[["SocialiteManager"], Provider]

BUILTIN_PROVIDERS: dict[str, type[AbstractProvider]] = {
    "github": GithubProvider,
    "facebook": FacebookProvider,
    "google": GoogleProvider,
    "linkedin": LinkedInProvider,
    "linkedin-openid": LinkedInOpenIdProvider,
    "bitbucket": BitbucketProvider,
    "gitlab": GitlabProvider,
    "x": XProvider,
    "twitch": TwitchProvider,
    "slack": SlackProvider,
    "slack-openid": SlackOpenIdProvider,
    "oidc": GenericOpenIdProvider,
}


class SocialiteManager:
    """
    Resolves provider instances by driver name.

    Drivers are built from `config.services[name]` on first use and cached per
    name. Custom drivers registered with `extend()` take precedence over the
    built-in ones.
    """

    def __init__(
        self,
        config: SocialiteConfig | None = None,
        *,
        request: CallbackRequestContract | None = None,
        url_generator: UrlGenerator | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the SocialiteManager.

        Args:
            config: The configuration object. Read from the environment when omitted.
            request: Default callback request handed to every driver.
            url_generator: Resolves relative redirect paths. Defaults to `BaseUrlGenerator(config.app_url)`.
            client: External async client shared by every driver (optional).
        """
        self.config = config if config is not None else SocialiteConfig()
        self.request = request
        self._url_generator = url_generator
        self._client = client
        self._custom_creators: dict[str, DriverCreator] = {}
        self._drivers: dict[str, Provider] = {}

    async def __aenter__(self) -> "SocialiteManager":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP clients of every resolved driver."""
        await self._close_drivers(list(self._drivers.values()))

    async def _close_drivers(self, drivers: list[Provider]) -> None:
        for driver in drivers:
            aclose = getattr(driver, "aclose", None)
            if aclose is not None:
                await aclose()

    def driver(self, name: str | None = None) -> Any:
        """
        Get a driver instance.

        Args:
            name: The driver name, e.g. "github".

        Returns:
            The cached or newly built provider.

        Raises:
            DriverMissingConfigurationError: If no name is given or the driver's configuration is incomplete.
            UnsupportedDriverError: If no creator is registered for `name`.
        """
        if not name:
            raise DriverMissingConfigurationError("No Socialite driver was specified.")

        if name not in self._drivers:
            self._drivers[name] = self._create_driver(name)

        return self._drivers[name]

    def extend(self, name: str, creator: DriverCreator) -> "SocialiteManager":
        """Register a custom driver creator, called with this manager."""
        self._custom_creators[name] = creator
        return self

    def forget_drivers(self) -> "SocialiteManager":
        """
        Forget all of the resolved driver instances.

        The dropped drivers are not closed; call `aclose()` first, or use `aforget_drivers()`.
        """
        self._drivers = {}
        return self

    async def aforget_drivers(self) -> "SocialiteManager":
        """Close and forget all of the resolved driver instances."""
        drivers = list(self._drivers.values())
        self._drivers = {}
        await self._close_drivers(drivers)
        return self

    def get_drivers(self) -> dict[str, Any]:
        return dict(self._drivers)

    def _create_driver(self, name: str) -> Any:
        if name in self._custom_creators:
            logger.debug(f"Creating custom Socialite driver [{name}]")
            return self._custom_creators[name](self)

        if name == "gitlab":
            return self.create_gitlab_driver()
        if name == "x":
            return self.create_x_driver()
        if name == "oidc":
            return self.create_oidc_driver()

        provider_cls = BUILTIN_PROVIDERS.get(name)
        if provider_cls is None:
            raise UnsupportedDriverError(f"Driver [{name}] not supported.")

        return self.build_provider(provider_cls, self.config.service(name))

    def create_gitlab_driver(self) -> GitlabProvider:
        config = self.config.service("gitlab")
        provider = self.build_provider(GitlabProvider, config)
        return provider.set_host((config or {}).get("host"))

    def create_x_driver(self) -> XProvider:
        config = self.config.service("x") or self.config.service("x-oauth-2")
        return self.build_provider(XProvider, config)

    def create_oidc_driver(self) -> GenericOpenIdProvider:
        config = self.config.service("oidc") or {}
        missing = [key for key in (*REQUIRED_PROVIDER_KEYS, "base_url") if not config.get(key)]
        if missing:
            logger.warning(f"Missing configuration keys {missing} for {GenericOpenIdProvider.__name__}")
            raise DriverMissingConfigurationError.make(GenericOpenIdProvider.__name__, missing)

        provider = self.build_provider(GenericOpenIdProvider, config)
        return provider.set_base_url(config["base_url"])

    def build_provider(self, provider_cls: type[ProviderT], config: Mapping[str, Any] | None) -> ProviderT:
        """
        Build an OAuth 2 provider instance.

        Args:
            provider_cls: The provider class.
            config: The driver's `services` entry.

        Returns:
            The provider, with the configured scopes added to its defaults.

        Raises:
            DriverMissingConfigurationError: If `client_id`, `client_secret` or `redirect` is absent or empty,
                or a configured value has the wrong type.
        """
        raw = dict(config or {})
        missing = [key for key in REQUIRED_PROVIDER_KEYS if not raw.get(key)]

        if missing:
            logger.warning(f"Missing configuration keys {missing} for {provider_cls.__name__}")
            raise DriverMissingConfigurationError.make(provider_cls.__name__, missing)

        try:
            provider_config = ProviderConfig.model_validate(raw)
        except ValidationError as e:
            invalid = [str(error["loc"][0]) for error in e.errors() if error["loc"]]
            logger.warning(f"Invalid configuration keys {invalid} for {provider_cls.__name__}")
            raise DriverMissingConfigurationError(
                f"Invalid configuration keys [{', '.join(invalid)}] for [{provider_cls.__name__}] OAuth provider.",
                provider=provider_cls.__name__,
                missing_keys=invalid,
            ) from e

        provider = provider_cls(
            provider_config.client_id,
            provider_config.client_secret.get_secret_value(),
            self.format_redirect_url(provider_config.redirect),
            provider_config.http_options,
            request=self.request,
            client=self._client,
            http_timeout=self.config.http_timeout,
        )
        provider.add_default_scopes(provider_config.scopes)

        logger.debug(f"Built {provider_cls.__name__} driver")
        return provider

    def format_redirect_url(self, redirect: str) -> str:
        """
        Resolve a relative redirect path (leading `/`) through the URL generator.
        Other values are returned unchanged.
        """
        if not redirect.startswith("/"):
            return redirect

        return self.get_url_generator().to(redirect)

    def get_url_generator(self) -> UrlGenerator:
        if self._url_generator is None:
            if not self.config.app_url:
                raise DriverMissingConfigurationError(
                    "A relative redirect requires `app_url` or a URL generator.",
                    missing_keys=["app_url"],
                )
            self._url_generator = BaseUrlGenerator(self.config.app_url)
        return self._url_generator
