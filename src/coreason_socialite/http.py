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
Default request, session, redirect and URL generator implementations.
"""

from collections.abc import Mapping, MutableMapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from coreason_socialite.contracts import SessionStore


class MemorySession:
    """
    Dictionary backed SessionStore.
    Suitable for tests and for frameworks that hand over a plain mutable mapping.
    """

    def __init__(self, data: MutableMapping[str, Any] | None = None) -> None:
        self._data: MutableMapping[str, Any] = data if data is not None else {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def put(self, key: str, value: Any) -> None:
        self._data[key] = value

    def pull(self, key: str, default: Any = None) -> Any:
        return self._data.pop(key, default)

    def has(self, key: str) -> bool:
        return key in self._data

    def all(self) -> dict[str, Any]:
        return dict(self._data)


class CallbackRequest:
    """
    Minimal CallbackRequestContract: the query/body parameters plus the session.
    """

    def __init__(self, query: Mapping[str, Any] | None = None, session: SessionStore | None = None) -> None:
        self._query = dict(query or {})
        self._session = session if session is not None else MemorySession()

    @property
    def session(self) -> SessionStore:
        return self._session

    def input(self, key: str, default: Any = None) -> Any:
        return self._query.get(key, default)

    def with_query(self, query: Mapping[str, Any]) -> "CallbackRequest":
        """Return a request with new parameters sharing this request's session."""
        return CallbackRequest(query, self._session)


class AuthorizationRedirect(BaseModel):
    """
    Redirect to the provider's authorization screen.
    """

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., description="The authorization URL, including its query string.")
    status_code: int = 302

    @property
    def headers(self) -> dict[str, str]:
        return {"Location": self.url}


class BaseUrlGenerator:
    """
    UrlGenerator resolving paths against a fixed application base URL.
    """

    def __init__(self, base_url: str) -> None:
        self.base_url = base_url.rstrip("/")

    def to(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"
