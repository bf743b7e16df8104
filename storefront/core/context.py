"""Per-request context stored in contextvars.

Values set here are picked up by the logging processors, so any log line
emitted while serving a request carries its request id and caller.
"""

from contextvars import ContextVar
from typing import Any
from uuid import UUID, uuid4


request_id_var: ContextVar[str] = ContextVar("request_id", default="")
user_id_var: ContextVar[str | None] = ContextVar("user_id", default=None)
trace_id_var: ContextVar[str | None] = ContextVar("trace_id", default=None)
correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)

_OPTIONAL_VARS: dict[str, ContextVar[str | None]] = {
    "user_id": user_id_var,
    "trace_id": trace_id_var,
    "correlation_id": correlation_id_var,
}


def generate_request_id() -> str:
    """Generate a new unique request ID."""
    return str(uuid4())


def get_request_id() -> str:
    """Get the current request ID."""
    return request_id_var.get()


def set_request_id(request_id: str | None = None) -> str:
    """Set the request ID, generating one when the caller sent none.

    Returns:
        The request ID that is now active.
    """
    rid = request_id or generate_request_id()
    request_id_var.set(rid)
    return rid


def get_user_id() -> str | None:
    return user_id_var.get()


def set_user_id(user_id: str | UUID | None) -> None:
    """Bind the authenticated user to the current context."""
    user_id_var.set(str(user_id) if user_id is not None else None)


def set_trace_id(trace_id: str | None) -> None:
    trace_id_var.set(trace_id)


def set_correlation_id(correlation_id: str | None) -> None:
    correlation_id_var.set(correlation_id)


def get_context() -> dict[str, Any]:
    """Return the non-empty context values as a dictionary."""
    context: dict[str, Any] = {}

    request_id = get_request_id()
    if request_id:
        context["request_id"] = request_id

    for name, var in _OPTIONAL_VARS.items():
        value = var.get()
        if value:
            context[name] = value

    return context


def clear_context() -> None:
    """Reset every context variable at the end of a request."""
    request_id_var.set("")
    for var in _OPTIONAL_VARS.values():
        var.set(None)
