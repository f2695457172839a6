import uuid
from contextvars import ContextVar, Token
from typing import Optional

TRACE_ID_HEADER = "X-Trace-ID"

# Trace id of the request being served; copied into every task it spawns
trace_id_var: ContextVar[Optional[str]] = ContextVar('trace_id', default=None)


def generate_trace_id() -> str:
    return str(uuid.uuid4())


def set_trace_id(trace_id: str) -> Token:
    """Set the trace id for the current context and return the reset token."""
    return trace_id_var.set(trace_id)


def reset_trace_id(token: Token) -> None:
    trace_id_var.reset(token)


def current_trace_id() -> Optional[str]:
    return trace_id_var.get()


def resolve_trace_id(header_value: Optional[str]) -> str:
    """Use the caller's trace id when it sent a non-blank one, else mint a new one."""
    if header_value and header_value.strip():
        return header_value.strip()
    return generate_trace_id()
