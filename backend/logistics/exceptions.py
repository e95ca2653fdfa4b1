import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from dispatch.errors import (
    AlreadyAssigned,
    BusinessRuleFailure,
    CollaboratorFailure,
    DispatchError,
    InvalidCoordinate,
    InvalidOrderState,
    NotFound,
    ValidationFailure,
)

logger = logging.getLogger(__name__)


def status_for(exc: Exception) -> int:
    if isinstance(exc, NotFound):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, (AlreadyAssigned, InvalidOrderState)):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, CollaboratorFailure):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    # ValidationFailure, InvalidCoordinate and the remaining business rules
    return status.HTTP_400_BAD_REQUEST


def dispatch_exception_handler(exc, context):
    """
    REST_FRAMEWORK["EXCEPTION_HANDLER"]: dispatch errors become {error, code}
    with a matching status; everything else goes through DRF's default handler.
    """
    if not isinstance(exc, (DispatchError, InvalidCoordinate)):
        return exception_handler(exc, context)

    code = status_for(exc)
    body = {"error": str(exc), "code": exc.code}

    radius_km = getattr(exc, "radius_km", None)
    if radius_km is not None:
        body["radius_km"] = radius_km

    if isinstance(exc, CollaboratorFailure):
        logger.warning(f"[API] {exc.code}: {exc}")
    elif isinstance(exc, (BusinessRuleFailure, NotFound)):
        logger.info(f"[API] {exc.code}: {exc}")
    elif isinstance(exc, (ValidationFailure, InvalidCoordinate)):
        logger.debug(f"[API] {exc.code}: {exc}")

    return Response(body, status=code)
