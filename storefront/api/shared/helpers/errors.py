"""Error envelope helpers for API responses.

Every error body carries a machine-readable ``error_code`` so clients and
support can tell failures apart without parsing messages. Unexpected
exception text is logged, never returned.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import HTTPException

from storefront.domain.error_codes import ErrorCode, get_error_info


class APIError(HTTPException):
    """HTTPException carrying a standardized error code.

    The application's exception handlers render it as:
    {
        "success": false,
        "error": "Human-readable message",
        "error_code": "ERR_XXX_NNN",
        "action": "What the user can do",
        "details": {...}
    }
    """

    def __init__(
        self,
        error_code: ErrorCode,
        detail: Optional[str] = None,
        details: Optional[Any] = None,
        status_code: Optional[int] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        error_info = get_error_info(error_code)
        self.error_code = error_code
        self.action = error_info.action

        super().__init__(
            status_code=status_code or error_info.status_code,
            detail=create_error_response(error_code, detail=detail, details=details),
            headers=headers,
        )


def create_error_response(
    error_code: ErrorCode,
    detail: Optional[str] = None,
    details: Optional[Any] = None,
) -> Dict[str, Any]:
    """Build the error envelope for an error code.

    Args:
        error_code: The standardized error code
        detail: Optional custom message
        details: Optional structured context (field errors, states)

    Returns:
        Dict with success, error, error_code, action and optional details
    """
    error_info = get_error_info(error_code)
    body: Dict[str, Any] = {
        "success": False,
        "error": detail or error_info.message,
        "error_code": error_code.value,
        "action": error_info.action,
    }
    if details is not None:
        body["details"] = details
    return body
