"""
Capacity-safe seat reservation.

Every change to ``Event.current_attendees`` and to the existence of an RSVP
goes through ReservationManager. Each operation runs as one transaction on the
session it was given; the capacity check that matters is the conditional
UPDATE, never the earlier read.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from sqlalchemy import and_, delete, update
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    stop_after_delay,
    wait_incrementing,
)

from ..models.event import Event
from ..models.rsvp import RSVP, RSVP_UNIQUE_CONSTRAINT
from ..models.enums import RSVPStatus
from ..utils.constants import ReservationConstants, ResponseMessages

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ReservationServiceError(Exception):
    """Base exception for reservation errors; also used for unexpected storage failures"""

    error_code = "RESERVATION_FAILED"


class EventNotFoundError(ReservationServiceError):
    """Event not found"""

    error_code = "EVENT_NOT_FOUND"


class RSVPNotFoundError(ReservationServiceError):
    """RSVP not found"""

    error_code = "RSVP_NOT_FOUND"


class DuplicateReservationError(ReservationServiceError):
    """User already holds an RSVP for this event"""

    error_code = "DUPLICATE_RESERVATION"


class CapacityExceededError(ReservationServiceError):
    """Event has no seats left"""

    error_code = "CAPACITY_EXCEEDED"

    def __init__(self, message: str = ResponseMessages.EVENT_FULL, available_spots: int = 0):
        super().__init__(message)
        self.available_spots = available_spots


class TransactionConflictError(ReservationServiceError):
    """Store contention; safe for the caller to retry"""

    error_code = "TRANSACTION_CONFLICT"


class TransactionTimeoutError(TransactionConflictError):
    """Operation ran past its time budget"""

    error_code = "TRANSACTION_TIMEOUT"


@dataclass
class SeatSummary:
    event_id: int
    title: str
    capacity: int
    current_attendees: int
    available_spots: int


@dataclass
class ReservationResult:
    rsvp: RSVP
    event: SeatSummary


class ReservationManager:
    def __init__(
        self,
        db: Session,
        max_attempts: int = ReservationConstants.MAX_ATTEMPTS,
        retry_backoff: float = ReservationConstants.RETRY_BACKOFF_SECONDS,
        transaction_timeout: float = ReservationConstants.TRANSACTION_TIMEOUT_SECONDS,
    ):
        self.db = db
        self.max_attempts = max(1, max_attempts)
        self.retry_backoff = retry_backoff
        self.transaction_timeout = transaction_timeout

    def reserve_seat(self, event_id: int, user_id: int) -> ReservationResult:
        """Take one seat on the event for the user"""
        result = self._run_in_transaction(
            lambda: self._reserve_seat(event_id, user_id),
            operation="reserve_seat",
            event_id=event_id,
        )
        logger.info(
            f"User {user_id} reserved a seat on event {event_id} "
            f"({result.event.current_attendees}/{result.event.capacity})"
        )
        return result

    def release_seat(self, event_id: int, user_id: int) -> None:
        """Give the user's seat back and remove their RSVP"""
        self._run_in_transaction(
            lambda: self._release_seat(event_id, user_id),
            operation="release_seat",
            event_id=event_id,
        )
        logger.info(f"User {user_id} released their seat on event {event_id}")

    def _reserve_seat(self, event_id: int, user_id: int) -> ReservationResult:
        event = self._lock_event(event_id)
        if not event:
            raise EventNotFoundError(ResponseMessages.EVENT_NOT_FOUND)

        if self._get_rsvp(event_id, user_id) is not None:
            raise DuplicateReservationError(ResponseMessages.ALREADY_RSVPD)

        # Cheap early exit; the conditional write below is what enforces capacity
        if event.current_attendees >= event.capacity:
            raise CapacityExceededError(available_spots=0)

        claimed = self.db.execute(
            update(Event)
            .where(
                and_(
                    Event.id == event_id,
                    Event.current_attendees < Event.capacity,
                )
            )
            .values(current_attendees=Event.current_attendees + 1)
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount == 0:
            raise CapacityExceededError(
                "Failed to RSVP due to capacity constraint", available_spots=0
            )

        rsvp = RSVP(
            event_id=event_id,
            user_id=user_id,
            status=RSVPStatus.ATTENDING.value,
        )
        self.db.add(rsvp)
        try:
            self.db.flush()
        except IntegrityError as e:
            if _is_duplicate_rsvp(e):
                raise DuplicateReservationError(ResponseMessages.ALREADY_RSVPD) from e
            raise

        # Read back inside the transaction so the counts reflect our own write
        self.db.refresh(event)
        self.db.refresh(rsvp)

        return ReservationResult(
            rsvp=rsvp,
            event=SeatSummary(
                event_id=event.id,
                title=event.title,
                capacity=event.capacity,
                current_attendees=event.current_attendees,
                available_spots=event.capacity - event.current_attendees,
            ),
        )

    def _release_seat(self, event_id: int, user_id: int) -> None:
        self._lock_event(event_id)
        rsvp = self._get_rsvp(event_id, user_id)
        if rsvp is None:
            raise RSVPNotFoundError(ResponseMessages.RSVP_NOT_FOUND)

        was_attending = rsvp.status == RSVPStatus.ATTENDING.value

        deleted = self.db.execute(
            delete(RSVP)
            .where(RSVP.id == rsvp.id)
            .execution_options(synchronize_session=False)
        )
        self.db.expunge(rsvp)
        if deleted.rowcount == 0:
            # Another request released it between our read and the delete
            raise RSVPNotFoundError(ResponseMessages.RSVP_NOT_FOUND)

        if was_attending:
            self.db.execute(
                update(Event)
                .where(and_(Event.id == event_id, Event.current_attendees > 0))
                .values(current_attendees=Event.current_attendees - 1)
                .execution_options(synchronize_session=False)
            )

    def _lock_event(self, event_id: int) -> Optional[Event]:
        """Read the event row, holding its row lock until commit where the store has one"""
        return (
            self.db.query(Event)
            .filter(Event.id == event_id)
            .populate_existing()
            .with_for_update()
            .first()
        )

    def _get_rsvp(self, event_id: int, user_id: int) -> Optional[RSVP]:
        return (
            self.db.query(RSVP)
            .filter(and_(RSVP.event_id == event_id, RSVP.user_id == user_id))
            .first()
        )

    def _run_in_transaction(
        self, work: Callable[[], T], operation: str, event_id: int
    ) -> T:
        """Run work and commit, retrying on store contention.

        Domain errors roll back and propagate untouched. Lock, serialization
        and deadlock failures are retried up to max_attempts within
        transaction_timeout, then surfaced as TransactionConflictError (or
        TransactionTimeoutError once the time budget is spent). Anything else
        from the store becomes a generic ReservationServiceError.
        """

        def give_up(retry_state: RetryCallState):
            cause = retry_state.outcome.exception()
            if retry_state.seconds_since_start >= self.transaction_timeout:
                logger.warning(
                    f"{operation} on event {event_id} timed out after "
                    f"{retry_state.attempt_number} attempt(s)"
                )
                raise TransactionTimeoutError(ResponseMessages.TRY_AGAIN) from cause
            logger.warning(
                f"{operation} on event {event_id} gave up after "
                f"{retry_state.attempt_number} attempt(s): {cause}"
            )
            raise TransactionConflictError(ResponseMessages.TRY_AGAIN) from cause

        def log_retry(retry_state: RetryCallState):
            logger.info(
                f"{operation} on event {event_id} hit contention, retrying "
                f"(attempt {retry_state.attempt_number})"
            )

        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts)
            | stop_after_delay(self.transaction_timeout),
            wait=wait_incrementing(
                start=self.retry_backoff,
                increment=self.retry_backoff,
                max=self.transaction_timeout,
            ),
            retry=retry_if_exception(is_contention_error),
            before_sleep=log_retry,
            retry_error_callback=give_up,
        )
        return retrying(self._attempt, work, operation, event_id)

    def _attempt(self, work: Callable[[], T], operation: str, event_id: int) -> T:
        """One try: commit on success, roll back on any failure"""
        try:
            result = work()
            self.db.commit()
            return result

        except ReservationServiceError:
            self.db.rollback()
            raise

        except SQLAlchemyError as e:
            self.db.rollback()
            if is_contention_error(e):
                raise
            logger.error(
                f"Unexpected storage error in {operation} on event {event_id}: {e}",
                exc_info=True,
            )
            raise ReservationServiceError(
                f"Failed to {operation.replace('_', ' ')}"
            ) from e

        except Exception:
            self.db.rollback()
            raise


# SQLSTATEs for serialization failure, deadlock, lock_not_available, statement timeout
_CONTENTION_SQLSTATES = frozenset({"40001", "40P01", "55P03", "57014"})
# MySQL lock wait timeout and deadlock
_CONTENTION_MYSQL_CODES = frozenset({1205, 1213})
_CONTENTION_MESSAGES = ("database is locked", "database table is locked")


def is_contention_error(exc: BaseException) -> bool:
    """True for store errors that a later attempt can get past"""
    if not isinstance(exc, OperationalError):
        return False

    orig = exc.orig
    sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if sqlstate in _CONTENTION_SQLSTATES:
        return True

    args = getattr(orig, "args", ())
    if args and args[0] in _CONTENTION_MYSQL_CODES:
        return True

    message = str(orig).lower()
    return any(text in message for text in _CONTENTION_MESSAGES)


def _is_duplicate_rsvp(exc: IntegrityError) -> bool:
    """Whether the integrity failure is the one-RSVP-per-user constraint"""
    message = str(exc.orig)
    return RSVP_UNIQUE_CONSTRAINT in message or "rsvps.event_id, rsvps.user_id" in message
