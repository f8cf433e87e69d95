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
Multi-provider OAuth 2.0 and OpenID Connect sign-in, normalizing every provider's profile into one User.
"""

__version__ = "0.1.0"
__author__ = "Gowtham A Rao"
__email__ = "gowtham.rao@coreason.ai"

from .config import ProviderConfig, SocialiteConfig
from .context import flow_scope, flush_flow_context
from .exceptions import (
    ConfigurationFetchingError,
    DriverMissingConfigurationError,
    InvalidIdTokenError,
    InvalidStateError,
    SocialiteError,
    UnsupportedDriverError,
)
from .http import AuthorizationRedirect, BaseUrlGenerator, CallbackRequest, MemorySession
from .manager import SocialiteManager
from .models import Token, User
from .providers import AbstractProvider, GenericOpenIdProvider, OpenIdProvider

__all__ = [
    "AbstractProvider",
    "AuthorizationRedirect",
    "BaseUrlGenerator",
    "CallbackRequest",
    "ConfigurationFetchingError",
    "DriverMissingConfigurationError",
    "GenericOpenIdProvider",
    "InvalidIdTokenError",
    "InvalidStateError",
    "MemorySession",
    "OpenIdProvider",
    "ProviderConfig",
    "SocialiteConfig",
    "SocialiteError",
    "SocialiteManager",
    "Token",
    "UnsupportedDriverError",
    "User",
    "flow_scope",
    "flush_flow_context",
]
