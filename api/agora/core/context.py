"""Request and job context management using contextvars.

Every HTTP request gets a request ID, and every background job a job ID.
Both are picked up by the structlog processors so that all log lines emitted
while handling a request (or a job) can be correlated.
"""

from contextvars import ContextVar
from typing import Any
from uuid import UUID, uuid4


request_id_var: ContextVar[str] = ContextVar("request_id", default="")
user_id_var: ContextVar[str | None] = ContextVar("user_id", default=None)
trace_id_var: ContextVar[str | None] = ContextVar("trace_id", default=None)
job_id_var: ContextVar[str | None] = ContextVar("job_id", default=None)


def generate_request_id() -> str:
    """Generate a new unique request ID."""
    return str(uuid4())


def get_request_id() -> str:
    """Get the current request ID."""
    return request_id_var.get()


def set_request_id(request_id: str | None = None) -> str:
    """Set the request ID for the current context.

    Args:
        request_id: Optional request ID. If not provided, generates a new one.

    Returns:
        The request ID that was set.
    """
    rid = request_id or generate_request_id()
    request_id_var.set(rid)
    return rid


def get_user_id() -> str | None:
    """Get the current user ID."""
    return user_id_var.get()


def set_user_id(user_id: str | UUID | None) -> None:
    """Set the acting user for the current context."""
    user_id_var.set(str(user_id) if user_id is not None else None)


def get_trace_id() -> str | None:
    """Get the current trace ID."""
    return trace_id_var.get()


def set_trace_id(trace_id: str | None) -> None:
    """Set the trace ID propagated by an upstream proxy."""
    trace_id_var.set(trace_id)


def get_job_id() -> str | None:
    """Get the ID of the background job being processed, if any."""
    return job_id_var.get()


def set_job_id(job_id: str | None) -> None:
    """Set the background job ID for the current context."""
    job_id_var.set(job_id)


def get_context() -> dict[str, Any]:
    """Get all non-empty context variables as a dictionary."""
    context: dict[str, Any] = {}

    request_id = get_request_id()
    if request_id:
        context["request_id"] = request_id

    user_id = get_user_id()
    if user_id:
        context["user_id"] = user_id

    trace_id = get_trace_id()
    if trace_id:
        context["trace_id"] = trace_id

    job_id = get_job_id()
    if job_id:
        context["job_id"] = job_id

    return context


def clear_context() -> None:
    """Clear all context variables.

    Called at the end of each request (and each job) so values never leak
    into the next unit of work handled by the same task.
    """
    request_id_var.set("")
    user_id_var.set(None)
    trace_id_var.set(None)
    job_id_var.set(None)
