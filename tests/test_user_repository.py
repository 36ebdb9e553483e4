"""Tests for UserRepository lookups and sparse uniqueness."""

import uuid
from datetime import datetime

import pytest

from realsauth.database.user_repository import DuplicateKeyError
from realsauth.models.user import User


def _user(**fields) -> User:
    now = datetime.utcnow()
    return User(id=str(uuid.uuid4()), created_at=now, updated_at=now, **fields)


class TestUserRepository:
    """Test UserRepository CRUD operations."""

    def test_create_and_get(self, user_repository):
        created = user_repository.create(_user(name="Ann", email="ann@x.com"))

        retrieved = user_repository.get(created.id)
        assert retrieved is not None
        assert retrieved.name == "Ann"
        assert retrieved.email == "ann@x.com"
        assert retrieved.registration_complete is False

    def test_get_nonexistent_user(self, user_repository):
        assert user_repository.get("nonexistent-id") is None

    def test_email_is_stored_lowercase(self, user_repository):
        created = user_repository.create(_user(email="  Ann@X.com "))

        assert created.email == "ann@x.com"

    def test_get_by_email_is_case_insensitive(self, user_repository):
        created = user_repository.create(_user(email="ann@x.com"))

        assert user_repository.get_by_email("ANN@x.COM").id == created.id

    def test_get_by_phone_and_google_id(self, user_repository):
        created = user_repository.create(_user(phone="+15550001", google_id="g-token"))

        assert user_repository.get_by_phone("+15550001").id == created.id
        assert user_repository.get_by_google_id("g-token").id == created.id
        assert user_repository.get_by_phone("") is None
        assert user_repository.get_by_google_id(None) is None

    def test_find_one_narrows_by_both_identifiers(self, user_repository):
        user_repository.create(_user(email="ann@x.com", phone="+15550001"))

        assert user_repository.find_one(email="ann@x.com", phone="+15550001") is not None
        assert user_repository.find_one(email="ann@x.com", phone="+15559999") is None
        assert user_repository.find_one() is None

    @pytest.mark.parametrize(
        "field,value",
        [("email", "dup@x.com"), ("phone", "+15550001"), ("google_id", "g-token")],
    )
    def test_duplicate_identifier_is_rejected_with_field(self, user_repository, field, value):
        user_repository.create(_user(**{field: value}))

        with pytest.raises(DuplicateKeyError) as exc_info:
            user_repository.create(_user(**{field: value}))
        assert exc_info.value.field == field

    def test_absent_identifiers_never_collide(self, user_repository):
        user_repository.create(_user(name="One"))
        user_repository.create(_user(name="Two", email="", phone="  "))
        user_repository.create(_user(name="Three"))

        assert user_repository.find_one(email=None, phone=None) is None

    def test_update_writes_full_record(self, user_repository):
        created = user_repository.create(_user(email="ann@x.com"))
        created.name = "Ann B"
        created.registration_complete = True

        updated = user_repository.update(created)

        assert updated.name == "Ann B"
        assert user_repository.get(created.id).registration_complete is True

    def test_update_collision_rolls_back(self, user_repository):
        user_repository.create(_user(phone="+15550001"))
        other = user_repository.create(_user(phone="+15550002"))
        other.phone = "+15550001"

        with pytest.raises(DuplicateKeyError) as exc_info:
            user_repository.update(other)
        assert exc_info.value.field == "phone"

        # Session is still usable and the original value survived.
        assert user_repository.get(other.id).phone == "+15550002"

    def test_update_missing_user_raises(self, user_repository):
        with pytest.raises(LookupError):
            user_repository.update(_user(name="Ghost"))
