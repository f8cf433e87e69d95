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
Async Context Management for flow-scoped provider state.

A provider instance may be shared by many in-flight authorization attempts, so
per-flow values (requested scopes, redirect overrides, the resolved user...)
are kept in a ContextVar rather than on the provider itself.
"""

from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from types import MappingProxyType
from typing import Any

FlowKey = tuple[str, str]

_EMPTY: Mapping[FlowKey, Any] = MappingProxyType({})

# ContextVar holding the current flow context.
# The mapping is never mutated in place; every write installs a new one so that
# tasks which inherited the same context stay isolated.
_flow_context: ContextVar[Mapping[FlowKey, Any]] = ContextVar("socialite_flow_context", default=_EMPTY)


def get_flow_value(key: FlowKey, default: Any = None) -> Any:
    """
    Retrieve a value from the current flow context.

    Args:
        key: The (provider identity, context key) pair.
        default: Returned when the key is not set.

    Returns:
        Any: The stored value or `default`.
    """
    return _flow_context.get().get(key, default)


def set_flow_value(key: FlowKey, value: Any) -> Any:
    """
    Store a value in the current flow context.

    Args:
        key: The (provider identity, context key) pair.
        value: The value to store.

    Returns:
        Any: The stored value.
    """
    current = _flow_context.get()
    updated = dict(current)
    updated[key] = value
    _flow_context.set(MappingProxyType(updated))
    return value


def flush_flow_context() -> None:
    """
    Clear the current flow context (reset to empty).
    """
    _flow_context.set(_EMPTY)


@contextmanager
def flow_scope() -> Iterator[None]:
    """
    Run a block with a fresh, empty flow context and restore the previous one afterwards.
    """
    token = _flow_context.set(_EMPTY)
    try:
        yield
    finally:
        _flow_context.reset(token)


class ProviderContext:
    """
    Mixin giving each provider class its own namespace in the flow context.
    """

    def get_context_key(self, key: str) -> FlowKey:
        cls = type(self)
        return (f"{cls.__module__}.{cls.__qualname__}", key)

    def get_context(self, key: str, default: Any = None) -> Any:
        return get_flow_value(self.get_context_key(key), default)

    def set_context(self, key: str, value: Any) -> Any:
        return set_flow_value(self.get_context_key(key), value)

    def get_or_set_context(self, key: str, factory: Callable[[], Any]) -> Any:
        """
        Return the stored value for `key`, creating it with `factory` when absent.
        """
        context_key = self.get_context_key(key)
        sentinel = object()
        value = get_flow_value(context_key, sentinel)
        if value is sentinel:
            value = set_flow_value(context_key, factory())
        return value
