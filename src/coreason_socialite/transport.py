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
HTTP helpers shared by every provider.
"""

import json
from collections.abc import Mapping
from typing import Any

import httpx
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor

from coreason_socialite.exceptions import OversizedResponseError
from coreason_socialite.utils.logger import logger

MAX_RESPONSE_BYTES = 1_000_000
DEFAULT_TIMEOUT = 10.0


def create_http_client(options: Mapping[str, Any] | None = None, timeout: float = DEFAULT_TIMEOUT) -> httpx.AsyncClient:
    """
    Creates the async client a provider uses when none is injected.

    Args:
        options: Keyword arguments for `httpx.AsyncClient` (the driver's `http` configuration).
        timeout: Timeout applied when `options` does not set one.

    Returns:
        httpx.AsyncClient: An instrumented client.
    """
    kwargs = dict(options or {})
    kwargs.setdefault("timeout", timeout)
    client = httpx.AsyncClient(**kwargs)

    # Instrument the client for distributed tracing
    HTTPXClientInstrumentor().instrument_client(client)
    return client


async def fetch_json(
    client: httpx.AsyncClient,
    url: str,
    method: str = "GET",
    max_bytes: int = MAX_RESPONSE_BYTES,
    **kwargs: Any,
) -> Any:
    """
    Performs a request and decodes the JSON body, refusing bodies above `max_bytes`.

    Args:
        client: The async HTTP client.
        url: The URL to request.
        method: The HTTP method.
        max_bytes: Upper bound on the body size.
        **kwargs: Forwarded to `httpx.AsyncClient.stream` (headers, params, data, auth...).

    Returns:
        Any: The decoded JSON document.

    Raises:
        httpx.HTTPStatusError: If the response status is 4xx/5xx.
        httpx.HTTPError: For transport failures.
        OversizedResponseError: If the body exceeds `max_bytes`.
        ValueError: If the body is not valid JSON.
    """
    headers = {"Accept": "application/json", **dict(kwargs.pop("headers", None) or {})}

    async with client.stream(method, url, headers=headers, **kwargs) as response:
        response.raise_for_status()

        content_length = response.headers.get("Content-Length")
        if content_length and content_length.isdigit() and int(content_length) > max_bytes:
            logger.warning(f"Refusing response from {url}: declared length {content_length} exceeds limit")
            raise OversizedResponseError(f"Response from {url} is too large")

        content = bytearray()
        async for chunk in response.aiter_bytes():
            content.extend(chunk)
            if len(content) > max_bytes:
                logger.warning(f"Refusing response from {url}: body exceeds limit")
                raise OversizedResponseError(f"Response from {url} is too large")

    return json.loads(content)
