"""Account registration and login."""
import logging
from typing import Dict

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from auth import hash_password, verify_password
from exceptions import AuthError
from models import User, UserRole
from monitoring import auth_attempts_counter, auth_failures_counter
from repositories import SqlAlchemyUserRepository, UserRepository

logger = logging.getLogger(__name__)

RESERVED_USERNAMES = {"admin"}


class AuthService:
    """Registers customers and checks credentials."""

    def register(self, db: Session, username: str, password: str) -> User:
        """
        Create a ``user`` account.

        Raises:
            AuthError: If input is blank, the name is reserved, or taken
        """
        auth_attempts_counter.add(1, {"type": "register"})
        username = (username or "").strip()

        if not username or not password:
            auth_failures_counter.add(1, {"reason": "missing_fields"})
            raise AuthError("Username and password required")

        if username.lower() in RESERVED_USERNAMES:
            auth_failures_counter.add(1, {"reason": "reserved_username"})
            logger.warning("Registration refused: reserved username", extra={
                "username": username
            })
            raise AuthError("Cannot register as admin")

        users: UserRepository = SqlAlchemyUserRepository(db)
        if users.find_by_username(username) is not None:
            auth_failures_counter.add(1, {"reason": "duplicate_username"})
            raise AuthError("Username already exists")

        try:
            user = users.create(User(
                username=username,
                password_hash=hash_password(password),
                role=UserRole.USER.value
            ))
        except IntegrityError:
            # Lost a race with a concurrent registration of the same name
            db.rollback()
            auth_failures_counter.add(1, {"reason": "duplicate_username"})
            raise AuthError("Username already exists") from None

        logger.info("User registered", extra={
            "username": username,
            "user_id": user.id
        })
        return user

    def login(self, db: Session, username: str, password: str) -> Dict[str, str]:
        """
        Check credentials.

        Returns:
            ``{"username", "role"}`` of the stored account

        Raises:
            AuthError: If the username is unknown or the password is wrong
        """
        auth_attempts_counter.add(1, {"type": "login"})

        user = SqlAlchemyUserRepository(db).find_by_username((username or "").strip())
        if user is None or not verify_password(password or "", user.password_hash):
            auth_failures_counter.add(1, {"reason": "invalid_credentials"})
            logger.warning("Login failed", extra={"username": username})
            raise AuthError("Invalid username or password")

        logger.info("User logged in successfully", extra={
            "username": user.username,
            "role": user.role
        })
        return {"username": user.username, "role": user.role}
