"""ApiResult Envelope: the uniform {success, ...} shape returned by every operation.

Invariants:
    - Every result is a dict with a boolean "success" key
    - Failure results carry "error" (str); optional "detail" and "statusCode"
    - Error messages are extracted in order: detail, error, message, fallback

Design Decisions:
    - Plain dicts over a result class: callers (UI layer, scripts) check
      result["success"] exactly as they check the backend's own envelopes
"""

from typing import Any

INVALID_RESPONSE_FORMAT = "Invalid response format"


def success_result(**payload: Any) -> dict:
    return {"success": True, **payload}


def error_result(
    error: str, detail: Any = None, status_code: int | None = None, **extra: Any,
) -> dict:
    result: dict[str, Any] = {"success": False, "error": error}
    if detail is not None:
        result["detail"] = detail
    if status_code is not None:
        result["statusCode"] = status_code
    result.update(extra)
    return result


def as_result(data: Any, list_key: str = "items") -> dict:
    """Wrap a backend body in the ApiResult envelope.

    Dict bodies that already carry "success" pass through untouched; bare
    lists are placed under list_key.
    """
    if isinstance(data, dict):
        if "success" in data:
            return data
        return {"success": True, **data}
    if isinstance(data, list):
        return {"success": True, list_key: data}
    return {"success": True, "data": data}


def extract_error_message(body: Any, status_code: int) -> str:
    """Pick the user-facing message out of an error body."""
    if isinstance(body, dict):
        for key in ("detail", "error", "message"):
            value = body.get(key)
            if value:
                return _render_message(value)
    return f"API error: {status_code}"


def _render_message(value: Any) -> str:
    """Field-level validation lists become one "; "-joined message."""
    if isinstance(value, list):
        parts = []
        for item in value:
            if isinstance(item, dict):
                parts.append(str(item.get("msg") or item.get("message") or item))
            else:
                parts.append(str(item))
        return "; ".join(parts)
    return str(value)
