import json
import time
from contextvars import ContextVar, Token
from typing import Any, Mapping, Optional
from uuid import uuid4

from fastapi import Request


REQUEST_ID_HEADER = "X-Request-Id"
USER_ID_HEADER = "X-User-Id"
REQUEST_ID_MAX_LEN = 128

# Fields attached to every log line emitted inside a request or a job run.
_LOG_CONTEXT: ContextVar[Mapping[str, str]] = ContextVar("hobhob_log_context", default={})


def generate_request_id() -> str:
    return str(uuid4())


def validate_request_id(value: str) -> bool:
    candidate = value.strip()
    return bool(candidate) and len(candidate) <= REQUEST_ID_MAX_LEN


def get_request_id(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    return request_id if isinstance(request_id, str) else ""


def bind_log_context(**fields: str) -> Token:
    """
    Layer ``fields`` over the current log context until the token is reset.

    Empty values are dropped so an outer binding is never blanked out.
    """
    merged = dict(_LOG_CONTEXT.get())
    merged.update({key: value for key, value in fields.items() if value})
    return _LOG_CONTEXT.set(merged)


def reset_log_context(token: Token) -> None:
    _LOG_CONTEXT.reset(token)


def current_log_context() -> dict[str, str]:
    return dict(_LOG_CONTEXT.get())


def log_ctx(
    request: Request,
    user_id: Optional[Any] = None,
    extra: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    context: dict[str, Any] = {
        **current_log_context(),
        "request_id": get_request_id(request),
        "path": request.url.path,
        "method": request.method,
    }
    user_id = user_id if user_id is not None else request.headers.get(USER_ID_HEADER)
    if user_id:
        context["user_id"] = str(user_id)
    context.update({key: value for key, value in (extra or {}).items() if value is not None})
    return context


def log_ctx_json(context: dict[str, Any]) -> str:
    return json.dumps(context, separators=(",", ":"), ensure_ascii=False, default=str)


def duration_ms(started_at: float) -> int:
    return int((time.monotonic() - started_at) * 1000)
