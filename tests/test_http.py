# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_socialite

import pytest
from pydantic import ValidationError

from coreason_socialite.contracts import CallbackRequestContract, SessionStore, UrlGenerator
from coreason_socialite.http import AuthorizationRedirect, BaseUrlGenerator, CallbackRequest, MemorySession
from coreason_socialite.utils.data import data_get


def test_memory_session() -> None:
    backing: dict[str, str] = {}
    session = MemorySession(backing)

    session.put("state", "abc")
    assert session.has("state")
    assert session.get("state") == "abc"
    assert backing == {"state": "abc"}

    assert session.pull("state") == "abc"
    assert not session.has("state")
    assert session.pull("state", "gone") == "gone"
    assert session.all() == {}


def test_callback_request_shares_session() -> None:
    request = CallbackRequest({"code": "c"})
    request.session.put("state", "s")

    callback = request.with_query({"state": "s"})

    assert request.input("code") == "c"
    assert callback.input("code") is None
    assert callback.input("missing", "default") == "default"
    assert callback.session is request.session


def test_default_collaborators_satisfy_protocols() -> None:
    assert isinstance(MemorySession(), SessionStore)
    assert isinstance(CallbackRequest(), CallbackRequestContract)
    assert isinstance(BaseUrlGenerator("https://app.test"), UrlGenerator)


@pytest.mark.parametrize(
    "base, path, expected",
    [
        ("https://app.test", "/cb", "https://app.test/cb"),
        ("https://app.test/", "/cb", "https://app.test/cb"),
        ("https://app.test/sub", "auth/cb", "https://app.test/sub/auth/cb"),
        ("https://app.test", "https://other.test/cb", "https://other.test/cb"),
    ],
)
def test_base_url_generator(base: str, path: str, expected: str) -> None:
    assert BaseUrlGenerator(base).to(path) == expected


def test_authorization_redirect() -> None:
    redirect = AuthorizationRedirect(url="https://idp.test/authorize?x=1")

    assert redirect.status_code == 302
    assert redirect.headers == {"Location": "https://idp.test/authorize?x=1"}
    with pytest.raises(ValidationError):
        redirect.url = "https://evil.test"  # type: ignore[misc]


def test_data_get() -> None:
    data = {"user": {"id": 1, "emails": [{"value": "a@example.com"}]}, "dotted.key": {"x": 2}}

    assert data_get(data, "user.id") == 1
    assert data_get(data, "user.emails.0.value") == "a@example.com"
    assert data_get(data, ["dotted.key", "x"]) == 2
    assert data_get(data, "user.emails.5.value", "none") == "none"
    assert data_get(data, "user.missing") is None
    assert data_get(None, "user.id", "default") == "default"
