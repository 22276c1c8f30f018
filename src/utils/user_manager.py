"""User management utilities.

This module provides user management functionality including user storage,
password hashing, school-domain gated registration, and credential checks.
"""

import logging
from datetime import datetime
from typing import Optional

import bcrypt
import pytz
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import BCRYPT_ROUNDS, REGISTRABLE_ROLES, ROLE_SUPERADMIN, SCHOOL_ROLES
from core.exceptions import (
    InvalidCredentialsError,
    NotFoundError,
    UserAlreadyExistsError,
    ValidationError,
)
from models.school import SchoolModel
from models.user import UserModel
from schemas.user import User, UserInfo
from utils.converters import model_to_user, model_to_user_info, user_to_model

logger = logging.getLogger(__name__)


def email_domain(email: str) -> str:
    """Return the lower-cased domain part of an email address."""
    return email.rsplit("@", 1)[-1].strip().lower()


class UserManager:
    """Manages user data persistence and operations using SQLAlchemy."""

    def __init__(self, db: Session):
        """Initialize UserManager.

        Args:
            db: SQLAlchemy Session.
        """
        self.db = db

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain text password.

        Returns:
            Hashed password (bcrypt hash string).
        """
        # bcrypt only looks at the first 72 bytes
        password_bytes = password.encode("utf-8")[:72]
        salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
        return bcrypt.hashpw(password_bytes, salt).decode("utf-8")

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against a bcrypt hash.

        Args:
            plain_password: Plain text password to verify.
            hashed_password: Bcrypt hash string to verify against.

        Returns:
            True if password matches, False otherwise.
        """
        if not plain_password or not hashed_password:
            return False
        try:
            return bcrypt.checkpw(
                plain_password.encode("utf-8")[:72],
                hashed_password.encode("utf-8"),
            )
        except ValueError as e:
            logger.error("Password verification error: %s", e)
            return False

    def find_school_for_email(self, email: str) -> Optional[SchoolModel]:
        """Look up the active school whose domain matches an email address."""
        return (
            self.db.query(SchoolModel)
            .filter(
                SchoolModel.domain == email_domain(email),
                SchoolModel.is_active.is_(True),
            )
            .first()
        )

    def create_user(
        self,
        full_name: str,
        email: str,
        password: str,
        role: str,
    ) -> User:
        """Register a new user.

        guru and murid accounts must use an email on an active school's
        domain; the account is bound to that school. masyarakat accounts may
        use any email.

        Args:
            full_name: Display name.
            email: Email address, stored lower-cased.
            password: Plain text password.
            role: 'guru', 'murid' or 'masyarakat'.

        Returns:
            Created User object.

        Raises:
            ValidationError: If the role is not registrable or the email
                domain does not belong to a school.
            UserAlreadyExistsError: If the email is already registered.
        """
        if role not in REGISTRABLE_ROLES:
            raise ValidationError(f"Invalid role: {role}")

        email = email.strip().lower()
        existing = self.db.query(UserModel).filter(UserModel.email == email).first()
        if existing:
            raise UserAlreadyExistsError("User with this email already exists")

        school_id = None
        if role in SCHOOL_ROLES:
            school = self.find_school_for_email(email)
            if school is None:
                raise ValidationError(
                    "Invalid email domain. Please use your school email address."
                )
            school_id = school.school_id

        user = User(
            full_name=full_name,
            email=email,
            password_hash=self.hash_password(password),
            role=role,
            school_id=school_id,
        )

        # The unique index on email catches a concurrent registration that
        # passed the check above
        try:
            model = user_to_model(user)
            self.db.add(model)
            self.db.commit()
            self.db.refresh(model)
        except IntegrityError as e:
            self.db.rollback()
            raise UserAlreadyExistsError("User with this email already exists") from e

        logger.info("Created user: %s (%s)", email, role)
        return user

    def create_superadmin(self, full_name: str, email: str, password: str) -> User:
        """Create a platform administrator.

        Superadmins cannot register through the API; the admin console
        creates them.

        Raises:
            UserAlreadyExistsError: If the email is already registered.
        """
        email = email.strip().lower()
        if self.get_user_by_email(email) is not None:
            raise UserAlreadyExistsError("User with this email already exists")
        user = User(
            full_name=full_name.strip(),
            email=email,
            password_hash=self.hash_password(password),
            role=ROLE_SUPERADMIN,
        )
        try:
            self.db.add(user_to_model(user))
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise UserAlreadyExistsError("User with this email already exists") from e
        logger.info("Created superadmin: %s", email)
        return user

    def authenticate(self, email: str, password: str) -> User:
        """Check credentials and record the login time.

        Raises:
            InvalidCredentialsError: If the email is unknown, the password is
                wrong, or the account is deactivated.
        """
        model = (
            self.db.query(UserModel)
            .filter(UserModel.email == email.strip().lower())
            .first()
        )
        if model is None:
            raise InvalidCredentialsError("Invalid email or password")
        if not model.is_active:
            raise InvalidCredentialsError(
                "Account is deactivated. Please contact administrator."
            )
        if not self.verify_password(password, model.password_hash):
            logger.warning("Failed login for %s", model.email)
            raise InvalidCredentialsError("Invalid email or password")

        now = datetime.now(pytz.utc).isoformat()
        model.last_login = now
        model.updated_at = now
        self.db.commit()
        self.db.refresh(model)
        return model_to_user(model)

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        """Get a user by user ID.

        Args:
            user_id: User ID to look up.

        Returns:
            User object if found, None otherwise.
        """
        model = self.db.query(UserModel).filter(UserModel.user_id == user_id).first()
        if model:
            return model_to_user(model)
        return None

    def get_user_by_email(self, email: str) -> Optional[User]:
        model = (
            self.db.query(UserModel)
            .filter(UserModel.email == email.strip().lower())
            .first()
        )
        if model:
            return model_to_user(model)
        return None

    def _get_model(self, user_id: str) -> UserModel:
        model = self.db.query(UserModel).filter(UserModel.user_id == user_id).first()
        if model is None:
            raise NotFoundError("User", user_id)
        return model

    def get_user_info(self, user_id: str) -> UserInfo:
        """Get the public view of a user including their school."""
        return model_to_user_info(self._get_model(user_id))

    def update_profile(
        self,
        user_id: str,
        full_name: Optional[str] = None,
        profile_image: Optional[str] = None,
    ) -> UserInfo:
        """Update the editable profile fields of a user.

        Fields left as None keep their current value.
        """
        model = self._get_model(user_id)
        if full_name:
            model.full_name = full_name.strip()
        if profile_image:
            model.profile_image = profile_image
        model.updated_at = datetime.now(pytz.utc).isoformat()
        self.db.commit()
        self.db.refresh(model)
        logger.info("Updated profile: %s", user_id)
        return model_to_user_info(model)

    def change_password(
        self, user_id: str, current_password: str, new_password: str
    ) -> None:
        """Replace a user's password after checking the current one.

        Raises:
            InvalidCredentialsError: If the current password is wrong.
        """
        model = self._get_model(user_id)
        if not self.verify_password(current_password, model.password_hash):
            raise InvalidCredentialsError("Current password is incorrect")
        model.password_hash = self.hash_password(new_password)
        model.updated_at = datetime.now(pytz.utc).isoformat()
        self.db.commit()
        logger.info("Changed password: %s", user_id)
