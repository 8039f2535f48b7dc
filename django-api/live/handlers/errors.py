"""Mapping of domain errors to HTTP responses.

Installed as REST_FRAMEWORK["EXCEPTION_HANDLER"]. Only the error code and
the user-safe message ever leave the process.
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from live.domain.errors import (
    CapacityError,
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (CapacityError, status.HTTP_409_CONFLICT),
    (ConflictError, status.HTTP_409_CONFLICT),
)


def domain_exception_handler(exc, context):
    if not isinstance(exc, DomainError):
        return exception_handler(exc, context)

    http_status = next(
        (code for error_type, code in STATUS_BY_ERROR if isinstance(exc, error_type)),
        status.HTTP_400_BAD_REQUEST,
    )
    view = context.get("view")
    logger.info(
        f"{type(view).__name__ if view else 'view'} rejected with {exc.code.value}"
    )
    return Response(
        {"error": {"code": exc.code.value, "message": exc.message}},
        status=http_status,
    )
