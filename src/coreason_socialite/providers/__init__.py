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
OAuth 2.0 and OpenID Connect provider implementations.
"""

from .base import AbstractProvider
from .bitbucket import BitbucketProvider
from .facebook import FacebookProvider
from .github import GithubProvider
from .gitlab import GitlabProvider
from .google import GoogleProvider
from .linkedin import LinkedInOpenIdProvider, LinkedInProvider
from .openid import GenericOpenIdProvider, OpenIdProvider
from .slack import SlackOpenIdProvider, SlackProvider
from .twitch import TwitchProvider
from .x import XProvider

__all__ = [
    "AbstractProvider",
    "BitbucketProvider",
    "FacebookProvider",
    "GenericOpenIdProvider",
    "GithubProvider",
    "GitlabProvider",
    "GoogleProvider",
    "LinkedInOpenIdProvider",
    "LinkedInProvider",
    "OpenIdProvider",
    "SlackOpenIdProvider",
    "SlackProvider",
    "TwitchProvider",
    "XProvider",
]
