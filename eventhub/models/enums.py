from enum import Enum


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class EventStatus(str, Enum):
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class EventCategory(str, Enum):
    MUSIC = "Music"
    SPORTS = "Sports"
    ART = "Art"
    FOOD = "Food"
    TECH = "Tech"
    BUSINESS = "Business"
    EDUCATION = "Education"
    HEALTH = "Health"
    OTHER = "Other"


class RSVPStatus(str, Enum):
    ATTENDING = "attending"
    MAYBE = "maybe"
    NOT_ATTENDING = "not_attending"
