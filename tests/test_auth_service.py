"""Tests for registration and login."""
import pytest

from auth import verify_password
from exceptions import AuthError
from models import User
from services.auth_service import AuthService


@pytest.mark.parametrize("username", ["admin", "Admin", "ADMIN", " aDmIn "])
def test_admin_name_is_reserved(db, username):
    with pytest.raises(AuthError, match="admin"):
        AuthService().register(db, username, "secret")


def test_register_stores_hash_not_password(db):
    user = AuthService().register(db, "baker", "croissant")

    stored = db.query(User).filter(User.username == "baker").one()
    assert stored.id == user.id
    assert stored.role == "user"
    assert stored.password_hash != "croissant"
    assert verify_password("croissant", stored.password_hash)


def test_duplicate_username_is_rejected(db):
    service = AuthService()
    service.register(db, "baker", "croissant")

    with pytest.raises(AuthError, match="already exists"):
        service.register(db, "baker", "other")


def test_blank_credentials_are_rejected(db):
    with pytest.raises(AuthError):
        AuthService().register(db, "  ", "secret")
    with pytest.raises(AuthError):
        AuthService().register(db, "baker", "")


def test_login_returns_stored_role(db):
    service = AuthService()
    service.register(db, "baker", "croissant")

    assert service.login(db, "baker", "croissant") == {"username": "baker", "role": "user"}


@pytest.mark.parametrize("username,password", [("baker", "wrong"), ("nobody", "croissant")])
def test_login_with_bad_credentials_fails(db, username, password):
    AuthService().register(db, "baker", "croissant")

    with pytest.raises(AuthError, match="Invalid username or password"):
        AuthService().login(db, username, password)
