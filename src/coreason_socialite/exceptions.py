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
Custom exceptions for the coreason-socialite package.
"""

from collections.abc import Iterable


class SocialiteError(Exception):
    """Base exception for all coreason-socialite errors."""


class DriverMissingConfigurationError(SocialiteError, ValueError):
    """
    Raised when a driver is requested without the configuration it needs.

    Attributes:
        provider (str | None): The provider the configuration was meant for.
        missing_keys (list[str]): The keys that were absent, empty or of the wrong type.
    """

    def __init__(self, message: str, provider: str | None = None, missing_keys: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.provider = provider
        self.missing_keys = list(missing_keys)

    @classmethod
    def make(cls, provider: str, keys: Iterable[str]) -> "DriverMissingConfigurationError":
        keys = list(keys)
        return cls(
            f"Missing required configuration keys [{', '.join(keys)}] for [{provider}] OAuth provider.",
            provider=provider,
            missing_keys=keys,
        )


class UnsupportedDriverError(SocialiteError, ValueError):
    """Raised when no creator is registered for the requested driver name."""


class MissingRequestError(SocialiteError):
    """Raised when a flow step needs the callback request but none is bound."""


class InvalidStateError(SocialiteError):
    """Raised when the callback `state` is missing or does not match the stored one."""


class InvalidIdTokenError(SocialiteError):
    """Raised when an OIDC ID token is missing or fails validation."""


class InvalidNonceError(InvalidIdTokenError):
    """Raised when the ID token `nonce` is missing or does not match the stored one."""


class InvalidAudienceError(InvalidIdTokenError):
    """Raised when the ID token `aud` claim does not match the client id."""


class InvalidIssuerError(InvalidIdTokenError):
    """Raised when the ID token `iss` claim does not match the discovered issuer."""


class IdTokenSignatureError(InvalidIdTokenError):
    """Raised when the ID token signature cannot be verified against the JWKS."""


class IdTokenExpiredError(InvalidIdTokenError):
    """Raised when the ID token is expired or not yet valid."""


class ConfigurationFetchingError(SocialiteError):
    """Raised when the OIDC discovery document cannot be fetched or parsed."""


class InvalidUserInfoUrlError(SocialiteError):
    """Raised when the provider does not publish a userinfo endpoint."""


class OversizedResponseError(SocialiteError):
    """Raised when an HTTP response is too large."""
