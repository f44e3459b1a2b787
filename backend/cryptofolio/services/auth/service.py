"""
Account service.

Handles:
- Registration and login (email/password, bearer access token)
- Profile reads and updates
- Display settings (theme, currency, notifications)
- Password changes

Emails are stored lower-cased and are unique.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cryptofolio.models import DisplayCurrency, Theme, User
from cryptofolio.services.auth.jwt_handler import JWTHandler
from cryptofolio.services.auth.password import PasswordService
from cryptofolio.services.exceptions import (
    InvalidCredentialsError,
    UserExistsError,
    UserInactiveError,
    UserNotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)


@dataclass
class AuthResult:
    """A user together with a freshly issued access token."""
    user: User
    access_token: str
    token_type: str = "bearer"


class AuthService:
    """
    Account management.

    Stateless; every method receives the database session.
    """

    # =========================================================================
    # AUTHENTICATION
    # =========================================================================

    def register(
        self,
        db: Session,
        email: str,
        password: str,
        name: str | None = None,
    ) -> AuthResult:
        """
        Create an account and log it in.

        Raises:
            ValidationError: Password does not meet the policy
            UserExistsError: Email is already registered
        """
        email = self._normalize_email(email)
        PasswordService.validate_strength(password)

        if self.get_user_by_email(db, email) is not None:
            raise UserExistsError(email)

        user = User(
            email=email,
            hashed_password=PasswordService.hash_password(password),
            name=name.strip() if name and name.strip() else None,
            is_active=True,
        )
        db.add(user)
        self._commit_unique_email(db, email)
        db.refresh(user)

        logger.info(f"User registered: {user.id}")
        return AuthResult(user=user, access_token=self._issue_token(user))

    def login(self, db: Session, email: str, password: str) -> AuthResult:
        """
        Authenticate with email and password.

        Unknown email and wrong password raise the same error so that
        registered addresses cannot be enumerated.

        Raises:
            InvalidCredentialsError: Credentials are incorrect
            UserInactiveError: Account is deactivated
        """
        user = self.get_user_by_email(db, email)

        if user is None or not PasswordService.verify_password(password, user.hashed_password):
            logger.info("Failed login attempt")
            raise InvalidCredentialsError()

        if not user.is_active:
            raise UserInactiveError()

        if PasswordService.needs_rehash(user.hashed_password):
            user.hashed_password = PasswordService.hash_password(password)
            db.commit()

        logger.info(f"User logged in: {user.id}")
        return AuthResult(user=user, access_token=self._issue_token(user))

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    def get_user_by_id(self, db: Session, user_id: int) -> User | None:
        return db.get(User, user_id)

    def get_user_by_email(self, db: Session, email: str) -> User | None:
        return db.execute(
            select(User).where(User.email == self._normalize_email(email))
        ).scalar_one_or_none()

    def get_profile(self, db: Session, user_id: int) -> User:
        """
        Raises:
            UserNotFoundError: No user with this id
        """
        user = self.get_user_by_id(db, user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    # =========================================================================
    # PROFILE AND SETTINGS
    # =========================================================================

    def update_profile(
        self,
        db: Session,
        user_id: int,
        name: str | None = None,
        email: str | None = None,
    ) -> User:
        """
        Update name and/or email. None leaves a field unchanged; an empty
        name clears it.

        Raises:
            UserExistsError: New email belongs to another account
        """
        user = self.get_profile(db, user_id)

        if name is not None:
            user.name = name.strip() or None

        if email is not None:
            new_email = self._normalize_email(email)
            if new_email != user.email:
                other = self.get_user_by_email(db, new_email)
                if other is not None and other.id != user.id:
                    raise UserExistsError(new_email)
                user.email = new_email

        self._commit_unique_email(db, user.email)
        db.refresh(user)

        logger.info(f"Profile updated for user {user_id}")
        return user

    def update_settings(
        self,
        db: Session,
        user_id: int,
        theme: Theme | None = None,
        currency: DisplayCurrency | None = None,
        notifications: bool | None = None,
    ) -> User:
        """Partial update of display settings; None leaves a field unchanged."""
        user = self.get_profile(db, user_id)

        if theme is not None:
            user.theme = theme
        if currency is not None:
            user.currency = currency
        if notifications is not None:
            user.notifications = notifications

        db.commit()
        db.refresh(user)
        return user

    def change_password(
        self,
        db: Session,
        user_id: int,
        current_password: str,
        new_password: str,
    ) -> None:
        """
        Replace the password after checking the current one.

        Raises:
            InvalidCredentialsError: current_password is wrong
            ValidationError: new password fails the policy or equals the old one
        """
        user = self.get_profile(db, user_id)

        if not PasswordService.verify_password(current_password, user.hashed_password):
            raise InvalidCredentialsError("Current password is incorrect")

        PasswordService.validate_strength(new_password, field="new_password")
        if new_password == current_password:
            raise ValidationError(
                "New password must differ from the current password",
                field="new_password",
            )

        user.hashed_password = PasswordService.hash_password(new_password)
        db.commit()

        logger.info(f"Password changed for user {user_id}")

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    def _normalize_email(email: str) -> str:
        return email.strip().lower()

    @staticmethod
    def _issue_token(user: User) -> str:
        return JWTHandler.create_access_token(
            user_id=user.id,
            email=user.email,
            role=user.role.value,
        )

    @staticmethod
    def _commit_unique_email(db: Session, email: str) -> None:
        """Commit, mapping a unique-email race to UserExistsError."""
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise UserExistsError(email)
