import hmac
from typing import Any


def _header(headers: Any, name: str) -> str:
    if not headers:
        return ""
    return str(headers.get(name, "") or headers.get(name.title(), "") or "")


def check_function_key(event: dict[str, Any], function_key: str | None) -> tuple[bool, str]:
    """
    Check the function key that authorizes tool invocation.

    The key is accepted from the `code` query string parameter or the
    `x-functions-key` header. When no key is configured every request is allowed.

    Args:
        event: Lambda-style event dictionary containing headers and query parameters.
        function_key: The configured key, or None to disable the check.

    Returns:
        (is_valid, reason_if_invalid)
    """
    if not function_key:
        return True, ""

    query = event.get("queryStringParameters") or {}
    provided = str(query.get("code", "") or "") or _header(event.get("headers"), "x-functions-key")

    if not provided:
        return False, "missing_function_key"

    if not hmac.compare_digest(provided.encode("utf-8"), function_key.encode("utf-8")):
        return False, "bad_function_key"

    return True, ""
