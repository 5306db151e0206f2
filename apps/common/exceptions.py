"""
Domain error taxonomy shared by every Mani-Me app.

Services raise these; DRF renders them through logistics_exception_handler
as {"error": <message>, "reason": <reason>}. Every rejection is a normal,
typed response; none of them is retried inside the core.
"""

import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler

logger = logging.getLogger("manime.errors")


class LogisticsError(APIException):
    """Base class. `reason` is the machine-readable rejection tag."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Request rejected."
    default_code = "rejected"
    default_reason = "Rejected"

    def __init__(self, message=None, reason=None):
        super().__init__(detail=message or self.default_detail)
        self.reason = reason or self.default_reason

    @property
    def message(self) -> str:
        return str(self.detail)

    def __str__(self):
        return f"{self.reason}: {self.detail}"


class ValidationError(LogisticsError):
    """Malformed or missing input, raised before any state change."""
    status_code    = status.HTTP_400_BAD_REQUEST
    default_detail = "Validation failed."
    default_code   = "validation_error"
    default_reason = "ValidationError"


class NotFoundError(LogisticsError):
    status_code    = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code   = "not_found"
    default_reason = "NotFound"


class ConflictError(LogisticsError):
    """Illegal transition, double assignment, already-resolved report, race loser."""
    status_code    = status.HTTP_409_CONFLICT
    default_detail = "Conflicting state."
    default_code   = "conflict"
    default_reason = "Conflict"


class PolicyRejection(LogisticsError):
    """A business rule said no (promo expired, warehouse not cleared, …)."""
    status_code    = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "Rejected by policy."
    default_code   = "policy_rejection"
    default_reason = "PolicyRejection"


def logistics_exception_handler(exc, context):
    """DRF EXCEPTION_HANDLER: flatten domain errors, defer everything else."""
    if isinstance(exc, LogisticsError):
        view = context.get("view")
        logger.info(
            "%s rejected by %s: %s",
            exc.reason, view.__class__.__name__ if view else "?", exc.detail,
        )
        response = exception_handler(exc, context)
        response.data = {"error": exc.message, "reason": exc.reason}
        return response
    return exception_handler(exc, context)
