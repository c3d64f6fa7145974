import os


class ResponseMessages:
    """Standard API response messages"""

    # Success messages
    SUCCESS = "Success"
    CREATED = "Created successfully"
    UPDATED = "Updated successfully"
    DELETED = "Deleted successfully"

    # RSVP messages
    RSVP_CREATED = "Successfully RSVP'd to the event"
    RSVP_CANCELLED = "RSVP cancelled successfully"
    EVENT_FULL = "Event is at full capacity"
    ALREADY_RSVPD = "You have already RSVP'd to this event"
    RSVP_NOT_FOUND = "RSVP not found"
    EVENT_NOT_FOUND = "Event not found"
    TRY_AGAIN = "The event is busy right now, please try again"
    RATE_LIMITED = "Too many requests from this IP, please try again later."


class AppConstants:
    # Pagination
    DEFAULT_PAGE = 1
    DEFAULT_PAGE_SIZE = 10
    MAX_PAGE_SIZE = 100

    # Event validation limits
    MIN_TITLE_LENGTH = 5
    MAX_TITLE_LENGTH = 100
    MIN_DESCRIPTION_LENGTH = 10
    MAX_DESCRIPTION_LENGTH = 5000
    MAX_SHORT_DESCRIPTION_LENGTH = 200
    MAX_LOCATION_LENGTH = 200
    MIN_CAPACITY = 1
    MAX_CAPACITY = 10000
    MAX_GUESTS_PER_RSVP = 10

    # Per-client request budget for /api routes
    RATE_LIMIT_REQUESTS = int(os.getenv("RATE_LIMIT_REQUESTS", "100"))
    RATE_LIMIT_WINDOW_MINUTES = int(os.getenv("RATE_LIMIT_WINDOW_MINUTES", "15"))
    RATE_LIMIT = f"{RATE_LIMIT_REQUESTS}/{RATE_LIMIT_WINDOW_MINUTES}minutes"

    DEFAULT_IMAGE_URL = (
        "https://res.cloudinary.com/demo/image/upload/v1674571764/default-event.jpg"
    )


class ReservationConstants:
    # Attempts per reserve/release before surfacing a TransactionConflict
    MAX_ATTEMPTS = int(os.getenv("RESERVATION_MAX_ATTEMPTS", "3"))

    # Linear backoff between attempts (attempt * backoff)
    RETRY_BACKOFF_SECONDS = float(os.getenv("RESERVATION_RETRY_BACKOFF_SECONDS", "0.05"))

    # Wall-clock budget for one operation including retries
    TRANSACTION_TIMEOUT_SECONDS = float(os.getenv("RESERVATION_TIMEOUT_SECONDS", "15"))

    # Hint returned to clients on 409
    RETRY_AFTER_SECONDS = 1


# Event fields a client may never set through the general update endpoint
PROTECTED_EVENT_FIELDS = frozenset(
    {
        "id",
        "capacity",
        "current_attendees",
        "created_by",
        "created_at",
        "updated_at",
    }
)
