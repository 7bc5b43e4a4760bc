"""DRF exception handler rendering every error in one envelope::

    {
        "type": "client_error",
        "errors": [
            {"code": "PREREQUISITE_NOT_MET", "detail": "...", "attr": null,
             "reason": "NO_CONFIRMED_CALL_ATTEMPT"}
        ]
    }

Installed through ``REST_FRAMEWORK["EXCEPTION_HANDLER"]``.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, Optional

import structlog
from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from pydantic import ValidationError as PydanticValidationError
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.settings import api_settings
from rest_framework.views import exception_handler, set_rollback

from modules.core.exceptions import DomainError, ErrorKind

logger = structlog.get_logger(__name__)


def api_exception_handler(exc: Exception, context: Dict[str, Any]) -> Optional[Response]:
    """Render domain, pydantic and DRF errors in the standard envelope.

    Anything else falls through (``None``) so Django produces a 500.
    """
    if isinstance(exc, DomainError):
        set_rollback()
        entry: Dict[str, Any] = {
            "code": exc.kind.value,
            "detail": exc.message,
            "attr": None,
        }
        if exc.reason is not None:
            entry["reason"] = exc.reason.value
        logger.info(
            "api.domain_error",
            kind=exc.kind.value,
            reason=entry.get("reason"),
            view=_view_name(context),
        )
        return Response(
            {"type": "client_error", "errors": [entry]},
            status=exc.http_status,
        )

    if isinstance(exc, PydanticValidationError):
        errors = [
            {
                "code": error["type"],
                "detail": error["msg"],
                "attr": ".".join(str(part) for part in error["loc"]) or None,
            }
            for error in exc.errors()
        ]
        return Response(
            {"type": "validation_error", "errors": errors},
            status=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(exc, Http404):
        exc = exceptions.NotFound()
    elif isinstance(exc, DjangoPermissionDenied):
        exc = exceptions.PermissionDenied()

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, exceptions.ValidationError):
        error_type = "validation_error"
    elif response.status_code >= 500:
        error_type = "server_error"
    else:
        error_type = "client_error"

    detail = exc.detail if isinstance(exc, exceptions.APIException) else response.data
    errors = list(_flatten(detail))
    kind = _kind_for(exc)
    if kind is not None:
        for error in errors:
            error["code"] = kind.value
    response.data = {"type": error_type, "errors": errors}
    return response


def _kind_for(exc: Exception) -> Optional[ErrorKind]:
    """Taxonomy kind for DRF's own authentication and lookup failures."""
    if isinstance(exc, (exceptions.NotAuthenticated, exceptions.AuthenticationFailed)):
        return ErrorKind.UNAUTHENTICATED
    if isinstance(exc, exceptions.PermissionDenied):
        return ErrorKind.FORBIDDEN
    if isinstance(exc, exceptions.NotFound):
        return ErrorKind.NOT_FOUND
    return None


def _flatten(detail: Any, attr: Optional[str] = None) -> Iterator[Dict[str, Any]]:
    if isinstance(detail, dict):
        for key, value in detail.items():
            if key == api_settings.NON_FIELD_ERRORS_KEY:
                child = attr
            else:
                child = f"{attr}.{key}" if attr else str(key)
            yield from _flatten(value, child)
    elif isinstance(detail, list):
        for index, item in enumerate(detail):
            if isinstance(item, (dict, list)):
                yield from _flatten(item, f"{attr}.{index}" if attr else str(index))
            else:
                yield from _flatten(item, attr)
    else:
        yield {
            "code": getattr(detail, "code", None) or "error",
            "detail": str(detail),
            "attr": attr,
        }


def _view_name(context: Dict[str, Any]) -> Optional[str]:
    view = context.get("view")
    return type(view).__name__ if view is not None else None
