from sqlalchemy import Column, Integer, String, Boolean, DateTime, UniqueConstraint
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base
from .enums import UserRole


class User(Base):
    """Local mirror of a Supabase Auth account"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    supabase_id = Column(String, unique=True, index=True, nullable=False)
    avatar_url = Column(String)
    role = Column(String, default=UserRole.USER.value)
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("supabase_id", name="uq_user_supabase_id"),
        UniqueConstraint("email", name="uq_user_email"),
    )

    created_events = relationship(
        "Event", back_populates="creator", foreign_keys="Event.created_by"
    )
    event_rsvps = relationship("RSVP", back_populates="user")

    @classmethod
    def from_auth_user(cls, auth_user, name=None):
        """Build (unsaved) from a Supabase user object"""
        metadata = getattr(auth_user, "user_metadata", None) or {}
        return cls(
            email=auth_user.email,
            name=name
            or metadata.get("full_name")
            or metadata.get("name")
            or auth_user.email.split("@")[0],
            supabase_id=auth_user.id,
            avatar_url=metadata.get("avatar_url"),
            is_active=True,
        )

    @classmethod
    def sync_from_auth(cls, db_session, auth_user):
        """Return the local user for a Supabase account, creating it on first sight"""
        user = cls.find_by_supabase_id(db_session, auth_user.id)
        if user:
            return user

        user = cls.from_auth_user(auth_user)
        db_session.add(user)
        try:
            db_session.commit()
        except IntegrityError:
            # A parallel first request inserted the same account
            db_session.rollback()
            return cls.find_by_supabase_id(db_session, auth_user.id)

        db_session.refresh(user)
        return user

    @classmethod
    def find_by_supabase_id(cls, db_session, supabase_id: str):
        return (
            db_session.query(cls)
            .filter(cls.supabase_id == supabase_id, cls.is_active.is_(True))
            .first()
        )

    @classmethod
    def find_by_email(cls, db_session, email: str):
        return (
            db_session.query(cls)
            .filter(cls.email == email, cls.is_active.is_(True))
            .first()
        )

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "avatar_url": self.avatar_url,
            "role": self.role,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
