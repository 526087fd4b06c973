# Core infrastructure
from agora.core.context import (
    clear_context,
    get_context,
    get_job_id,
    get_request_id,
    get_trace_id,
    get_user_id,
    set_job_id,
    set_request_id,
    set_trace_id,
    set_user_id,
)
from agora.core.logging import configure_structlog, get_logger


__all__ = [
    "clear_context",
    "configure_structlog",
    "get_context",
    "get_job_id",
    "get_logger",
    "get_request_id",
    "get_trace_id",
    "get_user_id",
    "set_job_id",
    "set_request_id",
    "set_trace_id",
    "set_user_id",
]
