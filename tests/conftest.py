# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_socialite

from collections.abc import Callable, Generator
from typing import Any
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest
from authlib.jose import JsonWebKey

from coreason_socialite.context import flush_flow_context

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture(autouse=True)
def reset_flow_context() -> Generator[None, None, None]:
    """
    Every test starts and ends with an empty flow context.
    """
    flush_flow_context()
    yield
    flush_flow_context()


def make_client(handler: Handler) -> httpx.AsyncClient:
    """An AsyncClient whose traffic is answered by `handler`."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def form_data(request: httpx.Request) -> dict[str, str]:
    """Decode the form body of a captured request."""
    return {key: values[0] for key, values in parse_qs(request.content.decode()).items()}


def query_params(url: str) -> dict[str, str]:
    return {key: values[0] for key, values in parse_qs(urlsplit(url).query).items()}


class Router:
    """
    Maps `METHOD url-without-query` to canned JSON responses and records every request.
    """

    def __init__(self, routes: dict[str, Any]) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url).split("?")[0]
        route = self.routes.get(f"{request.method} {url}")
        if route is None:
            return httpx.Response(404, json={"error": "not found"})
        if callable(route):
            return route(request)  # type: ignore[no-any-return]
        return httpx.Response(200, json=route)

    def calls(self, method: str, url: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and str(r.url).split("?")[0] == url]


@pytest.fixture(scope="session")
def rsa_key() -> Any:
    return JsonWebKey.generate_key("RSA", 2048, {"kid": "key-1"}, is_private=True)


@pytest.fixture(scope="session")
def rotated_rsa_key() -> Any:
    return JsonWebKey.generate_key("RSA", 2048, {"kid": "key-2"}, is_private=True)
