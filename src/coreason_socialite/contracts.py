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
Protocols for the collaborators the providers consume.
Framework integrations implement these; `coreason_socialite.http` ships defaults.
"""

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from coreason_socialite.http import AuthorizationRedirect
    from coreason_socialite.models import User


@runtime_checkable
class SessionStore(Protocol):
    """Server-side session surviving between the redirect and the callback request."""

    def get(self, key: str, default: Any = None) -> Any: ...

    def put(self, key: str, value: Any) -> None: ...

    def pull(self, key: str, default: Any = None) -> Any:
        """Return the value for `key` and remove it from the session."""
        ...

    def has(self, key: str) -> bool: ...


@runtime_checkable
class CallbackRequestContract(Protocol):
    """The inbound HTTP request: query/body field access plus the session."""

    @property
    def session(self) -> SessionStore: ...

    def input(self, key: str, default: Any = None) -> Any: ...


@runtime_checkable
class UrlGenerator(Protocol):
    """Resolves application-relative paths to absolute URLs."""

    def to(self, path: str) -> str: ...


@runtime_checkable
class Provider(Protocol):
    """What the manager hands back to callers."""

    async def redirect(self) -> "AuthorizationRedirect": ...

    async def user(self) -> "User": ...
