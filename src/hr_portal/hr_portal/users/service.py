from __future__ import annotations

import logging
from dataclasses import dataclass

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login."""

    user_id: int
    name: str
    role: Role


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, email: str, password: str) -> SessionUser:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user or not user.is_active:
            raise AuthenticationError("Invalid credentials")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid credentials")

        return SessionUser(user_id=user.user_id, name=user.name, role=user.role)

    def resolve_session(self, user_id: int) -> SessionUser:
        """Re-validate a session identity against the current user record."""
        user = self._users.get_by_id(int(user_id))
        if not user or not user.is_active:
            raise AuthenticationError("Please login again")
        return SessionUser(user_id=user.user_id, name=user.name, role=user.role)


class UserService:
    """Use case: manage users (HR)."""

    def __init__(self, users: UserRepository):
        self._users = users

    @staticmethod
    def _require_hr(current_role: Role) -> None:
        if current_role != Role.HR:
            raise AuthorizationError("Forbidden: You do not have permission to perform this action.")

    def get(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        return user

    def create_account(
        self,
        *,
        current_role: Role,
        name: str,
        email: str,
        password: str,
        role: Role,
    ) -> int:
        self._require_hr(current_role)

        name = require_non_empty(name, "Name")
        email = require_non_empty(email, "Email").lower()
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)

        if self._users.get_by_email(email):
            raise ValidationError("A user with this email already exists.")

        user_id = self._users.create_user(
            name=name,
            email=email,
            password_hash=generate_password_hash(password),
            role=role,
        )
        logger.info("Created user %s (%s) with role %s", user_id, email, role.value)
        return user_id

    def set_active(self, *, current_role: Role, user_id: int, is_active: bool) -> User:
        self._require_hr(current_role)
        if not self._users.set_active(int(user_id), is_active=bool(is_active)):
            raise NotFoundError("User not found")
        logger.info("User %s active=%s", user_id, bool(is_active))
        return self.get(user_id)

    def list_users(self):
        return list(self._users.list_all())
