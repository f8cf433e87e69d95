# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_socialite

import asyncio
import json

import httpx
import pytest
from conftest import make_client, query_params

from coreason_socialite.context import flow_scope
from coreason_socialite.http import CallbackRequest, MemorySession
from coreason_socialite.providers import GithubProvider


def github_handler(request: httpx.Request) -> httpx.Response:
    """Echoes the exchanged code back as the user id so flows can be told apart."""
    if request.url.path == "/login/oauth/access_token":
        code = dict(httpx.QueryParams(request.content.decode()))["code"]
        return httpx.Response(200, json={"access_token": f"token-{code}", "scope": "user:email"})
    if request.url.path == "/user":
        token = request.headers["Authorization"].removeprefix("token ")
        return httpx.Response(200, json={"id": token.removeprefix("token-"), "login": token})
    return httpx.Response(200, content=json.dumps([]).encode())


@pytest.mark.asyncio
async def test_concurrent_flows_share_one_provider() -> None:
    """
    Many callbacks served by one provider instance each resolve their own user.
    """
    provider = GithubProvider("cid", "sec", "https://app.test/cb", client=make_client(github_handler))

    async def flow(index: int) -> tuple[str, list[str]]:
        session = MemorySession()
        provider.set_request(CallbackRequest(session=session))
        provider.scopes([f"scope-{index}"])

        redirect = await provider.redirect()
        params = query_params(redirect.url)
        await asyncio.sleep(0)

        provider.set_request(CallbackRequest({"code": str(index), "state": params["state"]}, session))
        user = await provider.user()
        return str(user.id), provider.get_scopes()

    results = await asyncio.gather(*(flow(i) for i in range(20)))

    for index, (user_id, scopes) in enumerate(results):
        assert user_id == str(index)
        assert scopes == ["user:email", f"scope-{index}"]

    # Nothing leaked into the parent context
    assert provider.get_scopes() == ["user:email"]
    assert provider.get_user() is None


@pytest.mark.asyncio
async def test_flow_scope_isolates_sequential_requests() -> None:
    provider = GithubProvider("cid", "sec", "https://app.test/cb", client=make_client(github_handler))

    with flow_scope():
        provider.stateless().set_request(CallbackRequest({"code": "1"}))
        first = await provider.user()

    with flow_scope():
        provider.stateless().set_request(CallbackRequest({"code": "2"}))
        second = await provider.user()

    assert first.id == "1"
    assert second.id == "2"
