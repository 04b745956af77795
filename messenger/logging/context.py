"""Scoped logging context backed by contextvars.

Fields pushed here are copied onto every log record by ContextualFilter,
so a call chain (token fetch, user info, user detail) can share an app_key
or request id without threading it through every log call.
"""

from contextvars import ContextVar, Token
from typing import Any, Dict, Optional

_log_context: ContextVar[Dict[str, Any]] = ContextVar("messenger_log_context", default={})


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the active context fields."""
    return dict(_log_context.get())


def push_log_context(**fields: Any) -> Token:
    """Merge fields into the active context and return a reset token."""
    return _log_context.set({**_log_context.get(), **fields})


def pop_log_context(token: Token) -> None:
    """Restore the context that was active before push_log_context()."""
    _log_context.reset(token)


def clear_log_context() -> None:
    """Drop every context field. Mostly useful in tests."""
    _log_context.set({})


class log_context:
    """Context manager that pushes fields on entry and restores them on exit.

    Example:
        >>> with log_context(app_key="dingxxxx"):
        ...     client.resolve_user_detail(code)
    """

    def __init__(self, **fields: Any):
        self.fields = fields
        self._token: Optional[Token] = None

    def __enter__(self):
        self._token = push_log_context(**self.fields)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._token is not None:
            pop_log_context(self._token)
            self._token = None
        return False
