from fastapi import HTTPException, status
from typing import Callable, Any
from functools import wraps
import logging

from ..services.reservation_service import (
    ReservationServiceError,
    EventNotFoundError,
    RSVPNotFoundError,
    DuplicateReservationError,
    CapacityExceededError,
    TransactionConflictError,
)
from ..services.event_service import (
    EventServiceError,
    PermissionDeniedError,
    BusinessRuleViolationError,
)
from .constants import ReservationConstants

logger = logging.getLogger(__name__)

# First match wins, so subclasses come before their bases
_EXPECTED_ERRORS = (
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN, "PERMISSION_DENIED"),
    (EventNotFoundError, status.HTTP_404_NOT_FOUND, None),
    (RSVPNotFoundError, status.HTTP_404_NOT_FOUND, None),
    (CapacityExceededError, status.HTTP_400_BAD_REQUEST, None),
    (DuplicateReservationError, status.HTTP_400_BAD_REQUEST, None),
    (TransactionConflictError, status.HTTP_409_CONFLICT, None),
    (BusinessRuleViolationError, status.HTTP_400_BAD_REQUEST, "BUSINESS_RULE_VIOLATION"),
    (EventServiceError, status.HTTP_400_BAD_REQUEST, "EVENT_SERVICE_ERROR"),
    (ValueError, status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR"),
)


def error_detail(message: str, error_code: str, **extra: Any) -> dict:
    detail = {"message": message, "error_code": error_code}
    detail.update(extra)
    return detail


def _to_http_exception(exc: Exception, status_code: int, error_code: str) -> HTTPException:
    extra = {}
    headers = None

    if isinstance(exc, CapacityExceededError):
        extra["available_spots"] = exc.available_spots
    elif isinstance(exc, TransactionConflictError):
        extra["retryable"] = True
        headers = {"Retry-After": str(ReservationConstants.RETRY_AFTER_SECONDS)}

    return HTTPException(
        status_code=status_code,
        detail=error_detail(str(exc), error_code or exc.error_code, **extra),
        headers=headers,
    )


def handle_service_errors(func: Callable) -> Callable:
    """Translate service exceptions raised by a route into HTTP errors"""

    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)

        except HTTPException:
            raise

        except Exception as e:
            for error_type, status_code, error_code in _EXPECTED_ERRORS:
                if isinstance(e, error_type):
                    logger.warning(f"{func.__name__}: {type(e).__name__}: {e}")
                    raise _to_http_exception(e, status_code, error_code)

            # Storage failures inside the reservation manager land here too
            if isinstance(e, ReservationServiceError):
                logger.error(f"Reservation failed in {func.__name__}: {e}")
                code = e.error_code
            else:
                logger.error(f"Unexpected error in {func.__name__}: {e}", exc_info=True)
                code = "UNKNOWN"

            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=error_detail("An unexpected error occurred", code),
            )

    return wrapper


class RouterResponse:
    """Standard {success, message, data} envelopes"""

    @staticmethod
    def success(data: Any = None, message: str = "Success") -> dict:
        response = {"success": True, "message": message}
        if data is not None:
            response["data"] = data
        return response

    @staticmethod
    def created(data: Any, message: str = "Resource created successfully") -> dict:
        return {"success": True, "message": message, "data": data}

    @staticmethod
    def deleted(message: str = "Resource deleted successfully") -> dict:
        return {"success": True, "message": message}
