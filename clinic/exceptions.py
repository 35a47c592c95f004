"""
Error kinds raised by the clinic services and the handler that renders them.

Services raise; views never catch.  ``api_exception_handler`` is installed
as DRF's ``EXCEPTION_HANDLER`` and turns every error into the
``{isSuccess: false, message, error?}`` envelope using ``ERROR_STATUS``.
"""
from __future__ import annotations

import logging

from django.conf import settings
from rest_framework import status
from rest_framework.exceptions import APIException, NotFound, ValidationError
from rest_framework.views import exception_handler as drf_exception_handler, set_rollback

from .responses import failure

logger = logging.getLogger(__name__)


class ConflictError(APIException):
    """A write collided with a uniqueness constraint (e.g. duplicate email)."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Resource already exists.'
    default_code = 'conflict'

    def __init__(self, detail=None, code=None, errors=None):
        super().__init__(detail, code)
        self.errors = errors


class StorageError(APIException):
    """The record store or the blob store failed.

    ``detail`` is the caller-facing message; the underlying exception is
    chained as ``__cause__`` and only exposed when ``DEBUG`` is on.
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Storage failure.'
    default_code = 'storage_error'


ERROR_STATUS = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NotFound: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

VALIDATION_MESSAGE = 'The given data was invalid.'
SERVER_ERROR_MESSAGE = 'Internal server error.'


def status_for(exc: Exception) -> int:
    for kind, code in ERROR_STATUS.items():
        if isinstance(exc, kind):
            return code
    return getattr(exc, 'status_code', status.HTTP_500_INTERNAL_SERVER_ERROR)


def _diagnostic(exc: BaseException):
    if not settings.DEBUG:
        return None
    cause = exc.__cause__ or exc
    return f"{type(cause).__name__}: {cause}"


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        # Not an API error: unexpected failure inside a view or service
        set_rollback()
        logger.error("Unhandled error in %s", context.get('view').__class__.__name__, exc_info=exc)
        return failure(SERVER_ERROR_MESSAGE, _diagnostic(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)

    code = status_for(exc)
    if isinstance(exc, ValidationError):
        logger.info("Validation failed: %s", list(resp.data) if isinstance(resp.data, dict) else resp.data)
        return failure(VALIDATION_MESSAGE, resp.data, code)
    if isinstance(exc, ConflictError):
        logger.info("Conflict: %s", exc.detail)
        return failure(str(exc.detail), exc.errors, code)
    if isinstance(exc, StorageError):
        logger.error("Storage failure: %s", exc.detail, exc_info=exc.__cause__ or exc)
        return failure(str(exc.detail), _diagnostic(exc), code)

    # NotFound and any other DRF error keep their own message
    detail = resp.data.get('detail') if isinstance(resp.data, dict) else None
    return failure(str(detail or exc), None, code)
