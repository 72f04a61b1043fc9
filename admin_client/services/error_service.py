from collections.abc import Awaitable, Callable, Iterable
from typing import Any, TypeVar

import httpx
import structlog
from pydantic import ValidationError

from admin_client.core.constants import (
    ERROR_MESSAGE_SEPARATOR,
    MAX_ERROR_MESSAGE_LENGTH,
    NETWORK_ERROR_MESSAGE,
    SERVER_ERROR_MESSAGE,
    STATUS_FALLBACK_MESSAGES,
    TIMEOUT_ERROR_MESSAGE,
)
from admin_client.schemas.common import Err, NormalizedError, Ok, Result

T = TypeVar("T")

logger = structlog.get_logger()

DIRECT_ERROR_KEYS = ("error", "detail", "message", "non_field_errors")
SEMANTIC_ERROR_KEYS = ("error", "detail", "message")
SUCCESS_MESSAGE_KEYS = ("detail", "message", "msg", "success")
TIMEOUT_CODES = {"ECONNABORTED", "ETIMEDOUT", "timeout"}
INVALID_PAYLOAD_CODE = "INVALID_PAYLOAD"


def _looks_like_html(text: str) -> bool:
    lowered = text.strip().lower()
    return lowered.startswith("<!doctype") or lowered.startswith("<html") or "<body" in lowered


def _truncate(text: str) -> str:
    if len(text) > MAX_ERROR_MESSAGE_LENGTH:
        return text[:MAX_ERROR_MESSAGE_LENGTH] + "…"
    return text


def _scalar_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def flatten_error_body(data: Any) -> list[str]:
    """Flatten a DRF-style error body into readable messages.

    The first present of ``error``/``detail``/``message``/``non_field_errors``
    contributes without a prefix, every other key is prefixed with its name.
    """
    if data is None:
        return []
    if isinstance(data, str):
        text = data.strip()
        return [text] if text else []
    if isinstance(data, (list, tuple)):
        out: list[str] = []
        for item in data:
            out.extend(flatten_error_body(item))
        return out
    if isinstance(data, dict):
        out = []
        direct = next((data[k] for k in DIRECT_ERROR_KEYS if data.get(k) is not None), None)
        if direct:
            out.extend(flatten_error_body(direct))
        for key, value in data.items():
            if key in DIRECT_ERROR_KEYS:
                continue
            out.extend(f"{key}: {msg}" for msg in flatten_error_body(value))
        return out
    return [_scalar_text(data)]


def _response_parts(response: Any) -> tuple[int | None, Any]:
    if isinstance(response, httpx.Response):
        if not response.content:
            return response.status_code, None
        try:
            return response.status_code, response.json()
        except ValueError:
            return response.status_code, response.text
    return getattr(response, "status", None), getattr(response, "data", None)


def _is_timeout(err: Any) -> bool:
    if isinstance(err, httpx.TimeoutException):
        return True
    if getattr(err, "code", None) in TIMEOUT_CODES:
        return True
    return "timeout" in str(getattr(err, "message", None) or err).lower()


def status_fallback_message(status: int | None) -> str | None:
    if status is None:
        return None
    if status in STATUS_FALLBACK_MESSAGES:
        return STATUS_FALLBACK_MESSAGES[status]
    if status >= 500:
        return SERVER_ERROR_MESSAGE
    return None


def normalize_api_error(err: Any, fallback: str) -> NormalizedError:
    code = getattr(err, "code", None)
    code = str(code) if code is not None else None
    response = getattr(err, "response", None)

    if isinstance(err, ValidationError):
        # The server answered 2xx with a body that does not match the contract.
        return NormalizedError(
            code=INVALID_PAYLOAD_CODE,
            message=fallback,
            messages=[fallback],
            raw=err,
        )

    if response is None:
        message = TIMEOUT_ERROR_MESSAGE if _is_timeout(err) else NETWORK_ERROR_MESSAGE
        return NormalizedError(
            code=code,
            message=message,
            messages=[message],
            isNetworkError=True,
            isAuthError=False,
            raw=err,
        )

    status, data = _response_parts(response)
    # HTML error pages are not shown; long texts are cut for display.
    pieces = [_truncate(p) for p in flatten_error_body(data) if p and not _looks_like_html(p)]
    message = ERROR_MESSAGE_SEPARATOR.join(pieces).strip() or status_fallback_message(status) or fallback
    return NormalizedError(
        status=status,
        code=code,
        message=message,
        messages=pieces or [message],
        isNetworkError=False,
        isAuthError=status == 401,
        raw=err,
    )


def semantic_error_from_ok_response(body: Any, keys: Iterable[str] = SEMANTIC_ERROR_KEYS) -> str | None:
    """Return the error a 2xx body carries, if any.

    Some endpoints answer 200 with ``{"error": "..."}``; such a field wins over
    the HTTP status.
    """
    if not isinstance(body, dict):
        return None
    for key in keys:
        value = body.get(key)
        if value is None:
            continue
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None
    return None


def extract_success_message(body: Any) -> str | None:
    if body is None:
        return None
    if isinstance(body, str):
        return body.strip() or None
    if isinstance(body, dict):
        direct = next((body[k] for k in SUCCESS_MESSAGE_KEYS if body.get(k) is not None), None)
        if isinstance(direct, str) and direct.strip():
            return direct.strip()
    return None


async def safe_api(fn: Callable[[], Awaitable[T]], fallback: str) -> Result[T]:
    try:
        data = await fn()
    except Exception as exc:
        error = normalize_api_error(exc, fallback)
        logger.warning("api_call_failed", status=error.status, error=error.message)
        return Err(error)
    return Ok(data)
