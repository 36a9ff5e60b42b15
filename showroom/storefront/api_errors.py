"""
DRF exception handler для ошибок каталога.

Ошибки каталога превращаются в ``{'error': ..., 'code': ..., 'details': ...}`` со
статусом по типу ошибки; остальные исключения обрабатывает стандартный
handler DRF.
"""
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from .exceptions import (
    CatalogError,
    InsufficientStock,
    LimitExceeded,
    NotFound,
    PartialWriteError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (LimitExceeded, status.HTTP_409_CONFLICT),
    (InsufficientStock, status.HTTP_409_CONFLICT),
    (PartialWriteError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def status_for(exc: CatalogError) -> int:
    for error_class, code in STATUS_BY_ERROR:
        if isinstance(exc, error_class):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def catalog_exception_handler(exc, context):
    if not isinstance(exc, CatalogError):
        return exception_handler(exc, context)

    code = status_for(exc)
    view = context.get('view')
    if code >= 500:
        logger.error("Catalog error in %s: %s", view.__class__.__name__ if view else '-', exc, exc_info=exc)
    else:
        logger.info("Catalog request rejected (%s): %s", exc.code, exc.message)
    return Response(exc.as_dict(), status=code)
