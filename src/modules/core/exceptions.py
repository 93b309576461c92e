"""Project-wide DRF exception handler.

Every error leaving the API uses the same envelope the single-page
client expects::

    {"message": "Validation error", "errors": [{"field": ..., "detail": ...}]}

Domain exceptions are translated inside the views; this handler reshapes
what DRF itself raises (validation, authentication, throttling, parse
errors, 404/405) and DTO validation failures from pydantic.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = structlog.get_logger(__name__)


def error_response(
    message: str,
    status_code: int,
    errors: Optional[List[Dict[str, Any]]] = None,
    **extra: Any,
) -> Response:
    """Build a failure response in the standard envelope."""
    body: Dict[str, Any] = {"message": message}
    if errors:
        body["errors"] = errors
    body.update(extra)
    return Response(body, status=status_code)


def flatten_errors(detail: Any, prefix: str = "") -> List[Dict[str, Any]]:
    """Turn nested DRF error details into a flat list of field problems."""
    if isinstance(detail, dict):
        flat: List[Dict[str, Any]] = []
        for key, value in detail.items():
            field = f"{prefix}.{key}" if prefix else str(key)
            flat.extend(flatten_errors(value, field))
        return flat
    if isinstance(detail, list):
        flat = []
        for index, value in enumerate(detail):
            if isinstance(value, (dict, list)):
                flat.extend(flatten_errors(value, f"{prefix}[{index}]"))
            else:
                flat.extend(flatten_errors(value, prefix))
        return flat
    return [
        {
            "field": prefix or "non_field_errors",
            "code": getattr(detail, "code", "invalid"),
            "detail": str(detail),
        }
    ]


def pydantic_errors(exc: Any) -> List[Dict[str, Any]]:
    """Convert a ``pydantic.ValidationError`` into envelope field problems."""
    return [
        {
            "field": ".".join(str(part) for part in err["loc"]) or "non_field_errors",
            "code": err["type"],
            "detail": err["msg"],
        }
        for err in exc.errors()
    ]


def api_exception_handler(exc: Exception, context: Dict[str, Any]) -> Optional[Response]:
    if isinstance(exc, PydanticValidationError):
        # A DTO rejected input the serializer let through (e.g. stricter email rules).
        logger.info("api.request_failed", status_code=400, error_type="DTOValidationError")
        return error_response(
            "Validation error", status.HTTP_400_BAD_REQUEST, pydantic_errors(exc)
        )

    response = exception_handler(exc, context)
    if response is None:
        # Unhandled: let Django produce a 500 and log the traceback.
        return None

    if isinstance(exc, exceptions.ValidationError):
        message = "Validation error"
        errors = flatten_errors(exc.detail)
    else:
        message = str(getattr(exc, "detail", "")) or "Request failed"
        code = getattr(exc, "default_code", "error")
        errors = [{"code": code, "detail": message}]

    logger.info(
        "api.request_failed",
        status_code=response.status_code,
        error_type=type(exc).__name__,
    )

    response.data = {"message": message, "errors": errors}
    if response.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("api.server_error", error_type=type(exc).__name__)
    return response
