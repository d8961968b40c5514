from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
import threading
from typing import Callable, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from stockledger.core.constants import DEFAULT_ROLE, USER_ROLES
from stockledger.core.errors import (
    DuplicateUserError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from stockledger.core.permissions import USERS_MANAGE, authorize
from stockledger.models.user import User
from stockledger.schemas.user import CurrentUser, UserCreate, UserRead, UserUpdate

logger = logging.getLogger(__name__)

Listener = Callable[[Optional[CurrentUser]], None]


def hash_password(password: str, salt: str, rounds: int) -> str:
    digest = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt.encode("utf-8"),
        rounds,
    )
    return digest.hex()


def _normalize_email(email: str) -> str:
    return (email or "").strip().casefold()


def _role_or_default(role: Optional[str]) -> str:
    return role if role in USER_ROLES else DEFAULT_ROLE


def to_current_user(user: User) -> CurrentUser:
    return CurrentUser(
        id=user.id,
        name=user.name or "User",
        email=user.email,
        role=_role_or_default(user.role),
    )


class IdentityProvider:
    """Authenticates users against the users table and publishes the signed-in user."""

    def __init__(self, session_factory: sessionmaker, *, rounds: int = 200_000):
        self._session_factory = session_factory
        self._rounds = rounds
        self._lock = threading.Lock()
        self._current_user: Optional[CurrentUser] = None
        self._listeners: list[Listener] = []

    @property
    def current_user(self) -> Optional[CurrentUser]:
        return self._current_user

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)
        listener(self._current_user)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, user: Optional[CurrentUser]) -> None:
        with self._lock:
            self._current_user = user
            listeners = list(self._listeners)
        for listener in listeners:
            listener(user)

    def authenticate(self, email: str, password: str) -> Optional[CurrentUser]:
        email = _normalize_email(email)
        db = self._session_factory()
        try:
            user = db.execute(
                select(User).where(func.lower(User.email) == email)
            ).scalars().first()
        except SQLAlchemyError as exc:
            logger.exception("Error loading user %s", email)
            raise PersistenceError("Failed to load user") from exc
        finally:
            db.close()

        if user is None:
            return None
        computed = hash_password(password or "", user.password_salt, self._rounds)
        if not hmac.compare_digest(computed, user.password_hash):
            return None
        return to_current_user(user)

    def get_user(self, user_id: int) -> Optional[CurrentUser]:
        db = self._session_factory()
        try:
            user = db.get(User, user_id)
        except SQLAlchemyError as exc:
            logger.exception("Error loading user %s", user_id)
            raise PersistenceError("Failed to load user") from exc
        finally:
            db.close()
        return to_current_user(user) if user is not None else None

    def sign_in(self, email: str, password: str) -> bool:
        try:
            user = self.authenticate(email, password)
        except PersistenceError:
            logger.warning("Sign-in failed for %s: user store unavailable.", email)
            return False
        if user is None:
            logger.warning("Sign-in failed for %s.", email)
            return False
        self._publish(user)
        logger.info("User %s signed in as %s.", user.email, user.role)
        return True

    def sign_out(self) -> None:
        if self._current_user is not None:
            logger.info("User %s signed out.", self._current_user.email)
        self._publish(None)

    # ------------------------------------------------------------------
    # User management
    # ------------------------------------------------------------------

    def list_users(self, *, actor: Optional[CurrentUser]) -> list[UserRead]:
        authorize(actor, USERS_MANAGE)
        db = self._session_factory()
        try:
            users = db.execute(select(User).order_by(User.id)).scalars().all()
            return [UserRead.model_validate(user) for user in users]
        except SQLAlchemyError as exc:
            logger.exception("Error listing users")
            raise PersistenceError("Failed to list users") from exc
        finally:
            db.close()

    def create_user(self, data, *, actor: Optional[CurrentUser]) -> UserRead:
        authorize(actor, USERS_MANAGE)
        payload = self._validate_create(data)
        return self._insert_user(payload)

    def ensure_user(self, *, name: str, email: str, password: str, role: str) -> UserRead:
        """Create the user unless the email is already registered."""
        payload = self._validate_create(
            {"name": name, "email": email, "password": password, "role": role}
        )
        try:
            return self._insert_user(payload)
        except DuplicateUserError:
            db = self._session_factory()
            try:
                user = db.execute(
                    select(User).where(func.lower(User.email) == _normalize_email(email))
                ).scalars().one()
                return UserRead.model_validate(user)
            finally:
                db.close()

    def update_user(self, user_id: int, data, *, actor: Optional[CurrentUser]) -> UserRead:
        authorize(actor, USERS_MANAGE)
        try:
            changes = UserUpdate.model_validate(data).model_dump(exclude_unset=True)
        except PydanticValidationError as exc:
            raise ValidationError("Invalid user update", errors=exc.errors(include_url=False)) from exc

        db = self._session_factory()
        try:
            user = db.get(User, user_id)
            if user is None:
                raise NotFoundError("User {} not found.".format(user_id))
            if changes.get("name"):
                user.name = changes["name"].strip()
            if changes.get("role"):
                user.role = changes["role"]
            if changes.get("password"):
                user.password_salt = secrets.token_hex(16)
                user.password_hash = hash_password(
                    changes["password"], user.password_salt, self._rounds
                )
            db.commit()
            db.refresh(user)
            logger.info("User %s updated by %s.", user.email, actor.email)
            return UserRead.model_validate(user)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("Error updating user %s", user_id)
            raise PersistenceError("Failed to update user") from exc
        finally:
            db.close()

    @staticmethod
    def _validate_create(data) -> UserCreate:
        if isinstance(data, UserCreate):
            return data
        try:
            return UserCreate.model_validate(data)
        except PydanticValidationError as exc:
            raise ValidationError("Invalid user", errors=exc.errors(include_url=False)) from exc

    def _insert_user(self, payload: UserCreate) -> UserRead:
        email = _normalize_email(payload.email)
        salt = secrets.token_hex(16)
        db = self._session_factory()
        try:
            existing = db.execute(
                select(User.id).where(func.lower(User.email) == email)
            ).first()
            if existing:
                raise DuplicateUserError("A user with email {} already exists.".format(email))
            user = User(
                name=payload.name.strip(),
                email=email,
                password_salt=salt,
                password_hash=hash_password(payload.password, salt, self._rounds),
                role=payload.role,
            )
            db.add(user)
            db.commit()
            db.refresh(user)
            logger.info("User %s created with role %s.", user.email, user.role)
            return UserRead.model_validate(user)
        except IntegrityError as exc:
            db.rollback()
            raise DuplicateUserError("A user with email {} already exists.".format(email)) from exc
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("Error creating user %s", email)
            raise PersistenceError("Failed to create user") from exc
        finally:
            db.close()


__all__ = ["IdentityProvider", "hash_password", "to_current_user"]
