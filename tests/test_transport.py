# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_socialite

from unittest.mock import patch

import httpx
import pytest
from conftest import make_client

from coreason_socialite.exceptions import OversizedResponseError
from coreason_socialite.transport import DEFAULT_TIMEOUT, create_http_client, fetch_json


@pytest.mark.asyncio
async def test_fetch_json_success() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True})

    async with make_client(handler) as client:
        data = await fetch_json(client, "https://api.test/me", headers={"Authorization": "Bearer t"})

    assert data == {"ok": True}
    assert seen[0].headers["Accept"] == "application/json"
    assert seen[0].headers["Authorization"] == "Bearer t"


@pytest.mark.asyncio
async def test_fetch_json_posts_form() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"access_token": "tok"})

    async with make_client(handler) as client:
        await fetch_json(client, "https://api.test/token", method="POST", data={"code": "abc"})

    assert seen[0].method == "POST"
    assert seen[0].content == b"code=abc"


@pytest.mark.asyncio
async def test_fetch_json_raises_on_error_status() -> None:
    async with make_client(lambda request: httpx.Response(401, json={"error": "denied"})) as client:
        with pytest.raises(httpx.HTTPStatusError):
            await fetch_json(client, "https://api.test/me")


@pytest.mark.asyncio
async def test_fetch_json_rejects_declared_oversized_body() -> None:
    async with make_client(lambda request: httpx.Response(200, content=b"x" * 64)) as client:
        with pytest.raises(OversizedResponseError):
            await fetch_json(client, "https://api.test/me", max_bytes=16)


@pytest.mark.asyncio
async def test_fetch_json_rejects_streamed_oversized_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        # No Content-Length header: the size is only known while streaming
        return httpx.Response(200, stream=httpx.ByteStream(b"[" + b"1," * 50 + b"1]"))

    async with make_client(handler) as client:
        with pytest.raises(OversizedResponseError):
            await fetch_json(client, "https://api.test/me", max_bytes=16)


@pytest.mark.asyncio
async def test_fetch_json_invalid_json() -> None:
    async with make_client(lambda request: httpx.Response(200, content=b"<html>")) as client:
        with pytest.raises(ValueError):
            await fetch_json(client, "https://api.test/me")


@pytest.mark.asyncio
async def test_create_http_client_defaults() -> None:
    with patch("coreason_socialite.transport.HTTPXClientInstrumentor") as instrumentor:
        client = create_http_client()

    try:
        assert client.timeout == httpx.Timeout(DEFAULT_TIMEOUT)
        instrumentor.return_value.instrument_client.assert_called_once_with(client)
    finally:
        await client.aclose()


@pytest.mark.asyncio
async def test_create_http_client_options_override_timeout() -> None:
    client = create_http_client({"timeout": 1.5, "headers": {"User-Agent": "socialite"}}, timeout=9.0)

    try:
        assert client.timeout == httpx.Timeout(1.5)
        assert client.headers["User-Agent"] == "socialite"
    finally:
        await client.aclose()
