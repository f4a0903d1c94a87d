"""Per-call logging context carried through ``contextvars``.

Urchin SDK operations bind the operation name, target peer and object locator
once, and every record emitted while the call is in flight picks them up. The
context is copied per task, so concurrent callers on threads or asyncio tasks
never see each other's fields.
"""

from __future__ import annotations

from contextvars import ContextVar, Token
from typing import Mapping

from . import fields

_LOG_CONTEXT: ContextVar[dict[str, str]] = ContextVar(
    "urchin_log_context", default={}
)


def get_context() -> dict[str, str]:
    """Return a shallow copy of the current logging context."""
    return dict(_LOG_CONTEXT.get())


def bind_context(**values: object) -> None:
    """Bind values into the current context; ``None`` values are skipped."""
    if not values:
        return
    current = _LOG_CONTEXT.get().copy()
    current.update(
        {str(key): str(value) for key, value in values.items() if value is not None}
    )
    _LOG_CONTEXT.set(current)


def clear_context(*keys: str) -> None:
    """Drop the given keys, or every key when none are named."""
    if not keys:
        _LOG_CONTEXT.set({})
        return
    current = _LOG_CONTEXT.get().copy()
    for key in keys:
        current.pop(key, None)
    _LOG_CONTEXT.set(current)


class _ScopedContext:
    """Context manager that binds values and restores the previous context.

    Exceptions leaving the block pass through unchanged.
    """

    def __init__(self, values: Mapping[str, object]) -> None:
        self._values = dict(values)
        self._token: Token[dict[str, str]] | None = None

    def __enter__(self) -> None:
        self._token = _LOG_CONTEXT.set(_LOG_CONTEXT.get().copy())
        bind_context(**self._values)

    def __exit__(self, *_: object) -> None:
        if self._token is not None:
            _LOG_CONTEXT.reset(self._token)
            self._token = None


def log_context(values: Mapping[str, object]) -> _ScopedContext:
    """Bind ``values`` for the duration of a block, then restore the previous context."""
    return _ScopedContext(values)


def operation_context(
    operation: str,
    *,
    peer: str,
    endpoint: str = "",
    bucket: str = "",
    object_key: str = "",
) -> Mapping[str, object]:
    """Return the canonical context mapping for one SDK operation."""
    return {
        fields.OPERATION: operation,
        fields.PEER: peer,
        fields.ENDPOINT: endpoint or None,
        fields.BUCKET: bucket or None,
        fields.OBJECT_KEY: object_key or None,
    }
