"""SQLAlchemy database models for realsauth."""

from datetime import datetime
import uuid

from sqlalchemy import Column, String, Boolean, DateTime, UniqueConstraint

from realsauth.database.database import Base
from realsauth.models.user import Gender


def _utcnow() -> datetime:
    return datetime.utcnow()


class UserDB(Base):
    """Database model for User."""

    __tablename__ = "users"
    __table_args__ = (
        # NULLs never collide, which gives sparse uniqueness on optional identifiers.
        UniqueConstraint("email", name="uq_users_email"),
        UniqueConstraint("phone", name="uq_users_phone"),
        UniqueConstraint("google_id", name="uq_users_google_id"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    # Identity signals
    email = Column(String, nullable=True, index=True)
    phone = Column(String, nullable=True, index=True)
    google_id = Column(String, nullable=True)
    password_hash = Column(String, nullable=True)

    # Profile
    name = Column(String, nullable=True)
    date_of_birth = Column(DateTime, nullable=True)
    gender = Column(String, nullable=True)
    photo_url = Column(String, nullable=False, default="")

    # Flags
    is_phone_verified = Column(Boolean, nullable=False, default=False)
    is_email_verified = Column(Boolean, nullable=False, default=False)
    registration_complete = Column(Boolean, nullable=False, default=False)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=_utcnow)
    updated_at = Column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from realsauth.models.user import User

        return User(
            id=self.id,
            name=self.name,
            email=self.email,
            phone=self.phone,
            password_hash=self.password_hash,
            date_of_birth=self.date_of_birth,
            gender=Gender(self.gender) if self.gender else None,
            photo_url=self.photo_url or "",
            google_id=self.google_id,
            is_phone_verified=bool(self.is_phone_verified),
            is_email_verified=bool(self.is_email_verified),
            registration_complete=bool(self.registration_complete),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def apply(self, user) -> None:
        """Copy every mutable field from a Pydantic User onto this row."""
        self.name = user.name
        self.email = user.email or None
        self.phone = user.phone or None
        self.google_id = user.google_id or None
        self.password_hash = user.password_hash
        self.date_of_birth = user.date_of_birth
        self.gender = user.gender.value if user.gender else None
        self.photo_url = user.photo_url or ""
        self.is_phone_verified = user.is_phone_verified
        self.is_email_verified = user.is_email_verified
        self.registration_complete = user.registration_complete
        self.updated_at = user.updated_at

    @classmethod
    def from_pydantic(cls, user):
        """Create database model from Pydantic model."""
        row = cls(id=user.id, created_at=user.created_at)
        row.apply(user)
        return row
