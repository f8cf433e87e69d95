# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_socialite

from collections.abc import Mapping, Sequence
from typing import Any

__all__ = ["data_get"]


def data_get(data: Any, path: str | Sequence[str], default: Any = None) -> Any:
    """
    Reads a nested value from decoded JSON.

    Args:
        data: The decoded JSON document.
        path: Dotted path ("user.image_512") or a sequence of keys for keys containing dots.
            Numeric segments index into lists.
        default: Returned when any segment is missing.

    Returns:
        Any: The value found, or `default`.
    """
    segments = path.split(".") if isinstance(path, str) else list(path)
    current = data

    for segment in segments:
        if isinstance(current, Mapping):
            if segment not in current:
                return default
            current = current[segment]
        elif isinstance(current, list) and segment.isdigit() and int(segment) < len(current):
            current = current[int(segment)]
        else:
            return default

    return current
