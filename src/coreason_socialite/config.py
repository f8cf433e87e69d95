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
Configuration for the coreason-socialite package.
"""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

REQUIRED_PROVIDER_KEYS = ("client_id", "client_secret", "redirect")


class ProviderConfig(BaseModel):
    """
    Credentials and options for a single driver (the `services.<name>` entry).

    Attributes:
        client_id (str): The OAuth client id.
        client_secret (SecretStr): The OAuth client secret.
        redirect (str): The callback URL, absolute or application-relative (leading `/`).
        scopes (list[str]): Scopes added on top of the provider defaults.
        http_options (dict[str, Any]): Keyword arguments for the provider's `httpx.AsyncClient`.

    Provider specific extras (e.g. `host`, `base_url`) are kept as extra fields.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    client_id: str = Field(..., min_length=1)
    client_secret: SecretStr
    redirect: str = Field(..., min_length=1)
    scopes: list[str] = Field(default_factory=list)
    http_options: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("http_options", "http", "guzzle"),
    )

    @field_validator("client_id", "client_secret", mode="before")
    @classmethod
    def stringify_numbers(cls, v: Any) -> Any:
        """
        Accepts numeric ids (e.g. Facebook app ids written unquoted in YAML or JSON).
        """
        if isinstance(v, int | float) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("client_secret")
    @classmethod
    def validate_secret(cls, v: SecretStr) -> SecretStr:
        """
        Ensures the client secret is not blank.
        """
        if not v.get_secret_value():
            raise ValueError("client_secret must not be empty")
        return v

    @field_validator("scopes", mode="before")
    @classmethod
    def split_scopes(cls, v: Any) -> Any:
        """
        Accepts a comma separated string (convenient for environment variables).
        """
        if isinstance(v, str):
            return [scope.strip() for scope in v.split(",") if scope.strip()]
        return v

    def extra(self, key: str, default: Any = None) -> Any:
        return (self.model_extra or {}).get(key, default)


class SocialiteConfig(BaseSettings):
    """
    Configuration settings for coreason-socialite.

    Attributes:
        app_url (str | None): Base URL used to resolve relative redirect paths.
        http_timeout (float): Timeout in seconds for clients created by the library.
        services (dict[str, dict[str, Any]]): Raw per-driver configuration, keyed by driver name.
    """

    model_config = SettingsConfigDict(
        env_prefix="SOCIALITE_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    app_url: str | None = None
    http_timeout: float = Field(default=10.0, gt=0, description="Timeout in seconds for all provider calls.")
    services: dict[str, dict[str, Any]] = Field(default_factory=dict)

    def service(self, name: str) -> dict[str, Any] | None:
        return self.services.get(name)
