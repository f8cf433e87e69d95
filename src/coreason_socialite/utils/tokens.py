# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_socialite

from authlib.common.encoding import json_loads, to_bytes, urlsafe_b64decode

__all__ = ["jwt_header_kid"]


def jwt_header_kid(token: str) -> str | None:
    """
    Reads the `kid` from a compact JWT header without verifying the token.

    Returns:
        str | None: The key id, or None when the header is unreadable or carries no `kid`.
    """
    try:
        header = json_loads(urlsafe_b64decode(to_bytes(token.split(".")[0])))
    except ValueError:
        return None

    if not isinstance(header, dict):
        return None

    kid = header.get("kid")
    return str(kid) if kid is not None else None
