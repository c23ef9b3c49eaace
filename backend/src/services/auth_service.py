"""
Authentication service: login, OTP-verified registration, and password reset.

Sessions are stateless signed tokens (see core.session); nothing here stores
session state. One-time codes are persisted through otp_service and delivered
through an injected EmailSender.
"""
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings
from core.security import hash_password, validate_password, verify_password
from core.session import (
    SessionClaims,
    TokenError,
    create_reset_token,
    create_session_token,
    decode_reset_token,
)
from models.user import User
from schemas.auth import RegisterRequest
from services import otp_service, state_service
from services.email_sender import EmailMessage, EmailSender
from services.email_templates import (
    PASSWORD_RESET_SUBJECT,
    REGISTRATION_SUBJECT,
    render_password_reset_email,
    render_registration_email,
)
from services.exceptions import (
    EmailNotFoundError,
    EmailOrUsernameTakenError,
    EmailTakenError,
    InvalidCredentialsError,
    InvalidEmailError,
    InvalidOrExpiredCodeError,
    InvalidStateError,
    MissingFieldError,
    ResetNotAuthorizedError,
    UnauthorizedError,
    UserNotFoundError,
    WeakPasswordError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountStatus:
    """Trial and premium flags derived from a user's stored timestamps."""

    is_trial: bool
    is_premium: bool


def compute_account_status(user: User, now: datetime | None = None) -> AccountStatus:
    """
    Derive trial/premium flags relative to now.

    - is_trial: trial_ends_at is set and strictly after now.
    - is_premium: is_subscribed and (no subscription_ends_at, or it is strictly after now).
    """
    if now is None:
        now = datetime.now(UTC)
    is_trial = user.trial_ends_at is not None and user.trial_ends_at > now
    is_premium = bool(user.is_subscribed) and (
        user.subscription_ends_at is None or user.subscription_ends_at > now
    )
    return AccountStatus(is_trial=is_trial, is_premium=is_premium)


def clean_email(email: str) -> str:
    """Strip an address and reject one without an '@' (InvalidEmailError)."""
    email = email.strip()
    if "@" not in email:
        raise InvalidEmailError()
    return email


class AuthService:
    """Orchestrates the login, registration and password reset flows."""

    def __init__(
        self,
        db: AsyncSession,
        email_sender: EmailSender,
        settings: Settings,
    ) -> None:
        self.db = db
        self.email_sender = email_sender
        self.settings = settings

    async def _find_by_identifier(self, identifier: str) -> User | None:
        result = await self.db.execute(
            select(User)
            .where(or_(User.email == identifier, User.username == identifier))
            .limit(1),
        )
        return result.scalar_one_or_none()

    async def _find_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def login(self, identifier: str, password: str) -> tuple[str, User]:
        """
        Authenticate by email or username.

        Returns:
            Tuple of (session_token, user).

        Raises:
            InvalidCredentialsError: Same error for an unknown identifier and a
                wrong password.
        """
        user = await self._find_by_identifier(identifier.strip())
        # Verify even without a user so response time does not reveal the account
        password_ok = verify_password(password, user.password_hash if user else None)
        if user is None or not password_ok:
            raise InvalidCredentialsError()

        token = create_session_token(user.id, self.settings)
        logger.info("User logged in: user_id=%s", user.id)
        return token, user

    async def get_current_user(
        self,
        claims: SessionClaims | None,
        now: datetime | None = None,
    ) -> tuple[User, AccountStatus]:
        """Load the session's user and compute its account status."""
        if claims is None:
            raise UnauthorizedError()
        user = await self.db.get(User, claims.user_id)
        if user is None:
            # Token outlived the account (deleted after issuance)
            raise UnauthorizedError()
        return user, compute_account_status(user, now)

    async def _issue_and_send(
        self,
        email: str,
        subject: str,
        render: Callable[[str, int, str], str],
    ) -> None:
        ttl = self.settings.otp_expire_minutes
        otp = await otp_service.issue_code(self.db, email, ttl)
        # Persist before delivery so a mail failure does not roll the code back
        await self.db.commit()
        logger.info("Issued one-time code: purpose=%r", subject)

        html = render(otp.code, ttl, self.settings.mail_from_name)
        await self.email_sender.send(EmailMessage(to=email, subject=subject, html=html))

    async def request_registration_code(self, email: str) -> None:
        """
        Email a registration code to an address that has no account yet.

        Raises:
            InvalidEmailError: If the email has no '@'.
            EmailTakenError: If a user already owns the email.
            DeliveryFailedError: If sending fails (the code stays persisted).
        """
        email = clean_email(email)
        if await self._find_by_email(email) is not None:
            raise EmailTakenError()

        await self._issue_and_send(email, REGISTRATION_SUBJECT, render_registration_email)

    async def complete_registration(
        self,
        data: RegisterRequest,
        now: datetime | None = None,
    ) -> User:
        """
        Create an account after verifying its registration code.

        Copies the chosen state's requirement fields onto the user and deletes
        every outstanding code for the email.

        Raises:
            InvalidOrExpiredCodeError: If no live code matches email and code.
            EmailOrUsernameTakenError: If the email or username is in use,
                including when a concurrent registration wins the insert.
            InvalidStateError: If the state id does not resolve.
        """
        email = data.email.strip()
        username = data.username.strip()

        otp = await otp_service.find_valid_code(self.db, email, data.otp.strip(), now)
        if otp is None:
            raise InvalidOrExpiredCodeError()

        result = await self.db.execute(
            select(User.id)
            .where(or_(User.email == email, User.username == username))
            .limit(1),
        )
        if result.scalar_one_or_none() is not None:
            raise EmailOrUsernameTakenError()

        state = await state_service.get_state(self.db, data.state)
        if state is None:
            raise InvalidStateError()

        user = User(
            first_name=data.first_name.strip(),
            last_name=data.last_name.strip(),
            email=email,
            username=username,
            password_hash=hash_password(data.password),
            state_id=state.id,
            min_credits_required=state.min_credits_required,
            hours_per_credit=state.hours_per_credit,
        )
        try:
            async with self.db.begin_nested():
                self.db.add(user)
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email/username
            raise EmailOrUsernameTakenError() from None

        await otp_service.delete_codes(self.db, email)
        await self.db.flush()
        logger.info("User registered: user_id=%s state=%s", user.id, state.name)
        return user

    async def find_account_email(self, identifier: str | None) -> str:
        """Return the email of the account matching a username or email."""
        identifier = (identifier or "").strip()
        if not identifier:
            raise MissingFieldError("Username or email is required.")
        user = await self._find_by_identifier(identifier)
        if user is None:
            raise UserNotFoundError()
        return user.email

    async def request_password_reset(self, email: str) -> None:
        """
        Email a password reset code to a registered address.

        Unlike registration this reveals whether the account exists.

        Raises:
            InvalidEmailError: If the email has no '@'.
            EmailNotFoundError: If no user owns the email.
            DeliveryFailedError: If sending fails (the code stays persisted).
        """
        email = clean_email(email)
        if await self._find_by_email(email) is None:
            raise EmailNotFoundError()

        await self._issue_and_send(email, PASSWORD_RESET_SUBJECT, render_password_reset_email)

    async def verify_reset_code(
        self,
        email: str,
        code: str,
        now: datetime | None = None,
    ) -> str:
        """
        Consume a reset code and return a reset authorization token.

        The code is deleted here; the returned token is what gates the final
        password change.
        """
        email = email.strip()
        code = code.strip()
        if not email or not code:
            raise MissingFieldError("Email and OTP are required.")

        otp = await otp_service.find_valid_code(self.db, email, code, now)
        if otp is None:
            raise InvalidOrExpiredCodeError("Invalid or expired OTP.")

        await otp_service.delete_codes(self.db, email)
        return create_reset_token(email, self.settings)

    async def reset_password(
        self,
        email: str,
        new_password: str,
        reset_token: str | None,
    ) -> None:
        """
        Replace a user's password after a verified reset code.

        Raises:
            MissingFieldError: If email or password is empty.
            WeakPasswordError: If the password fails the policy.
            ResetNotAuthorizedError: If reset_token is missing, invalid,
                expired, or issued for another email.
            UserNotFoundError: If no user owns the email.
        """
        email = email.strip()
        if not email or not new_password:
            raise MissingFieldError("Email and new password are required.")
        if not validate_password(new_password):
            raise WeakPasswordError()

        if not reset_token:
            raise ResetNotAuthorizedError()
        try:
            authorized_email = decode_reset_token(reset_token, self.settings)
        except TokenError as e:
            logger.warning("Rejected reset authorization: %s", e)
            raise ResetNotAuthorizedError() from None
        if authorized_email != email:
            raise ResetNotAuthorizedError()

        user = await self._find_by_email(email)
        if user is None:
            raise UserNotFoundError()

        user.password_hash = hash_password(new_password)
        user.updated_at = datetime.now(UTC)
        await self.db.flush()
        logger.info("Password reset: user_id=%s", user.id)
