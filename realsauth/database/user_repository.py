"""Repository for User database operations."""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from realsauth.models.user import User, normalize_email
from realsauth.database.models import UserDB

logger = logging.getLogger(__name__)

UNIQUE_FIELDS = ("google_id", "email", "phone")


class DuplicateKeyError(Exception):
    """A write collided with another user's email, phone or Google id."""

    def __init__(self, field: Optional[str]):
        super().__init__(f"Duplicate value for {field or 'unique field'}")
        self.field = field


def _collided_field(error: IntegrityError) -> Optional[str]:
    """Work out which unique column an IntegrityError is about.

    SQLite reports ``users.<column>``; PostgreSQL reports the constraint name
    ``uq_users_<column>``. Both contain the column name.
    """
    message = str(getattr(error, "orig", error)).lower()
    for field in UNIQUE_FIELDS:
        if f"users.{field}" in message or f"uq_users_{field}" in message:
            return field
    return None


class UserRepository:
    """Repository for User database operations."""

    def __init__(self, db: Session):
        self.db = db

    def _row(self, user_id: str) -> Optional[UserDB]:
        return self.db.query(UserDB).filter(UserDB.id == user_id).first()

    def get(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        user_db = self._row(user_id)
        return user_db.to_pydantic() if user_db else None

    def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email (case-insensitive)."""
        email = normalize_email(email)
        if not email:
            return None
        return self.find_one(email=email)

    def get_by_phone(self, phone: str) -> Optional[User]:
        """Get user by phone number."""
        if not phone:
            return None
        return self.find_one(phone=phone)

    def get_by_google_id(self, google_id: str) -> Optional[User]:
        if not google_id:
            return None
        user_db = self.db.query(UserDB).filter(UserDB.google_id == google_id).first()
        return user_db.to_pydantic() if user_db else None

    def find_one(self, email: Optional[str] = None, phone: Optional[str] = None) -> Optional[User]:
        """Find the first user matching every given identifier.

        Returns None when neither identifier is given.
        """
        query = self.db.query(UserDB)
        if phone:
            query = query.filter(UserDB.phone == phone.strip())
        if email:
            query = query.filter(UserDB.email == normalize_email(email))
        if not phone and not email:
            return None
        user_db = query.first()
        return user_db.to_pydantic() if user_db else None

    def create(self, user: User) -> User:
        """Insert a new user.

        Raises:
            DuplicateKeyError: If email, phone or google_id is already taken
        """
        try:
            user_db = UserDB.from_pydantic(user)
            self.db.add(user_db)
            self.db.commit()
            self.db.refresh(user_db)
            logger.debug(f"Created user {user.id}")
            return user_db.to_pydantic()
        except IntegrityError as e:
            self.db.rollback()
            field = _collided_field(e)
            logger.info(f"Duplicate key on create for user {user.id}: {field}")
            raise DuplicateKeyError(field) from e
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create user {user.id}: {type(e).__name__}: {str(e)}")
            raise

    def update(self, user: User) -> User:
        """Write the full record of an existing user.

        Raises:
            DuplicateKeyError: If the new email, phone or google_id is already taken
            LookupError: If the user does not exist
        """
        user_db = self._row(user.id)
        if user_db is None:
            raise LookupError(f"User {user.id} not found")
        try:
            user_db.apply(user)
            self.db.commit()
            self.db.refresh(user_db)
            logger.debug(f"Updated user {user.id}")
            return user_db.to_pydantic()
        except IntegrityError as e:
            self.db.rollback()
            field = _collided_field(e)
            logger.info(f"Duplicate key on update for user {user.id}: {field}")
            raise DuplicateKeyError(field) from e
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update user {user.id}: {type(e).__name__}: {str(e)}")
            raise
