"""Tests for the authentication service."""
from datetime import UTC, datetime, timedelta
from unittest.mock import patch
from uuid import uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings
from core.security import verify_password
from core.session import SessionClaims, create_reset_token, decode_reset_token, decode_session_token
from models.one_time_code import OneTimeCode
from models.user import User
from schemas.auth import RegisterRequest
from services import state_service
from services.auth_service import AuthService, compute_account_status
from services.exceptions import (
    DeliveryFailedError,
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
from tests.conftest import FakeEmailSender
from tests.factories import DEFAULT_PASSWORD, create_code, create_state, create_user


@pytest.fixture
def service(
    db_session: AsyncSession,
    email_sender: FakeEmailSender,
    test_settings: Settings,
) -> AuthService:
    return AuthService(db_session, email_sender, test_settings)


def registration(state_id: str, **overrides: str) -> RegisterRequest:
    data = {
        "first_name": "Jane",
        "last_name": "Doe",
        "email": "jane@example.com",
        "username": "janedoe",
        "password": "Secret1!",
        "state": state_id,
        "otp": "123456",
    }
    data.update(overrides)
    return RegisterRequest(**data)


async def codes_for(db: AsyncSession, email: str) -> list[OneTimeCode]:
    result = await db.execute(select(OneTimeCode).where(OneTimeCode.email == email))
    return list(result.scalars().all())


class TestComputeAccountStatus:
    """Tests for trial and premium flags at boundary timestamps."""

    NOW = datetime(2026, 1, 15, 12, 0, 0, tzinfo=UTC)

    def make_user(self, **fields: object) -> User:
        return User(
            email="x@example.com",
            username="x",
            password_hash="x",
            first_name="X",
            last_name="Y",
            **fields,
        )

    def test__premium__subscribed_without_end_date(self) -> None:
        user = self.make_user(is_subscribed=True, subscription_ends_at=None)
        assert compute_account_status(user, self.NOW).is_premium is True

    def test__premium__not_subscribed_is_never_premium(self) -> None:
        user = self.make_user(
            is_subscribed=False, subscription_ends_at=self.NOW + timedelta(days=30),
        )
        assert compute_account_status(user, self.NOW).is_premium is False

    @pytest.mark.parametrize(
        ("offset_seconds", "expected"),
        [(-1, False), (0, False), (1, True)],
    )
    def test__premium__end_date_boundaries(self, offset_seconds: int, expected: bool) -> None:
        """Premium only while subscription_ends_at is strictly after now."""
        user = self.make_user(
            is_subscribed=True,
            subscription_ends_at=self.NOW + timedelta(seconds=offset_seconds),
        )
        assert compute_account_status(user, self.NOW).is_premium is expected

    @pytest.mark.parametrize(
        ("offset_seconds", "expected"),
        [(-1, False), (0, False), (1, True)],
    )
    def test__trial__end_date_boundaries(self, offset_seconds: int, expected: bool) -> None:
        user = self.make_user(trial_ends_at=self.NOW + timedelta(seconds=offset_seconds))
        assert compute_account_status(user, self.NOW).is_trial is expected

    def test__trial__no_trial_date(self) -> None:
        assert compute_account_status(self.make_user(trial_ends_at=None), self.NOW).is_trial is False


class TestLogin:
    """Tests for AuthService.login."""

    async def test__login__by_email(
        self, service: AuthService, db_session: AsyncSession, test_settings: Settings,
    ) -> None:
        user = await create_user(db_session)
        token, logged_in = await service.login("parent@example.com", DEFAULT_PASSWORD)

        assert logged_in.id == user.id
        assert decode_session_token(token, test_settings).user_id == user.id

    async def test__login__by_username(
        self, service: AuthService, db_session: AsyncSession,
    ) -> None:
        user = await create_user(db_session)
        _, logged_in = await service.login("parent", DEFAULT_PASSWORD)
        assert logged_in.id == user.id

    async def test__login__wrong_password_and_unknown_user_are_identical(
        self, service: AuthService, db_session: AsyncSession,
    ) -> None:
        await create_user(db_session)

        with pytest.raises(InvalidCredentialsError) as wrong_password:
            await service.login("parent", "Wrong1!")
        with pytest.raises(InvalidCredentialsError) as unknown_user:
            await service.login("nobody", DEFAULT_PASSWORD)

        assert wrong_password.value.status_code == unknown_user.value.status_code
        assert wrong_password.value.message == unknown_user.value.message

    async def test__login__unknown_user_still_checks_a_password(
        self, service: AuthService, db_session: AsyncSession,
    ) -> None:
        """Both failure paths pay for one bcrypt check, so timing reveals nothing."""
        await create_user(db_session)

        with patch(
            "services.auth_service.verify_password", wraps=verify_password,
        ) as check, pytest.raises(InvalidCredentialsError):
            await service.login("nobody", DEFAULT_PASSWORD)
        assert check.call_count == 1
        assert check.call_args.args == (DEFAULT_PASSWORD, None)

        with patch(
            "services.auth_service.verify_password", wraps=verify_password,
        ) as check, pytest.raises(InvalidCredentialsError):
            await service.login("parent", "Wrong1!")
        assert check.call_count == 1


class TestGetCurrentUser:
    """Tests for AuthService.get_current_user."""

    async def test__get_current_user__returns_user_and_status(
        self, service: AuthService, db_session: AsyncSession,
    ) -> None:
        now = datetime.now(UTC)
        user = await create_user(db_session, trial_ends_at=now + timedelta(days=3))
        claims = SessionClaims(user_id=user.id, issued_at=now, expires_at=now + timedelta(days=7))

        found, status = await service.get_current_user(claims, now=now)

        assert found.id == user.id
        assert status.is_trial is True
        assert status.is_premium is False

    async def test__get_current_user__deleted_user_is_unauthorized(
        self, service: AuthService,
    ) -> None:
        now = datetime.now(UTC)
        claims = SessionClaims(user_id=uuid4(), issued_at=now, expires_at=now + timedelta(days=7))
        with pytest.raises(UnauthorizedError):
            await service.get_current_user(claims)

    async def test__get_current_user__no_claims_is_unauthorized(self, service: AuthService) -> None:
        with pytest.raises(UnauthorizedError):
            await service.get_current_user(None)


class TestRequestRegistrationCode:
    """Tests for AuthService.request_registration_code."""

    async def test__request_registration_code__emails_persisted_code(
        self,
        service: AuthService,
        db_session: AsyncSession,
        email_sender: FakeEmailSender,
    ) -> None:
        await service.request_registration_code("new@example.com")

        codes = await codes_for(db_session, "new@example.com")
        assert len(codes) == 1
        assert len(email_sender.sent) == 1
        message = email_sender.sent[0]
        assert message.to == "new@example.com"
        assert message.subject == "Your OTP Code"
        assert codes[0].code in message.html

    async def test__request_registration_code__invalid_email(self, service: AuthService) -> None:
        with pytest.raises(InvalidEmailError):
            await service.request_registration_code("not-an-email")

    async def test__request_registration_code__taken_email(
        self, service: AuthService, db_session: AsyncSession, email_sender: FakeEmailSender,
    ) -> None:
        await create_user(db_session, email="taken@example.com")
        with pytest.raises(EmailTakenError):
            await service.request_registration_code("taken@example.com")
        assert email_sender.sent == []

    async def test__request_registration_code__delivery_failure_keeps_code(
        self,
        service: AuthService,
        db_session: AsyncSession,
        email_sender: FakeEmailSender,
    ) -> None:
        email_sender.fail = True
        with pytest.raises(DeliveryFailedError):
            await service.request_registration_code("new@example.com")
        assert len(await codes_for(db_session, "new@example.com")) == 1


class TestCompleteRegistration:
    """Tests for AuthService.complete_registration."""

    async def test__complete_registration__copies_state_requirements(
        self, service: AuthService, db_session: AsyncSession,
    ) -> None:
        state = await create_state(db_session, min_credits_required=24, hours_per_credit=150)
        await create_code(db_session, "jane@example.com")

        user = await service.complete_registration(registration(str(state.id)))

        stored = await db_session.get(User, user.id)
        assert stored is not None
        assert stored.email == "jane@example.com"
        assert stored.state_id == state.id
        assert stored.min_credits_required == 24
        assert stored.hours_per_credit == 150
        assert verify_password("Secret1!", stored.password_hash)
        assert stored.password_hash != "Secret1!"

    async def test__complete_registration__later_state_edits_do_not_change_user(
        self, service: AuthService, db_session: AsyncSession,
    ) -> None:
        state = await create_state(db_session, min_credits_required=24)
        await create_code(db_session, "jane@example.com")
        user = await service.complete_registration(registration(str(state.id)))

        state.min_credits_required = 30
        await db_session.flush()
        await db_session.refresh(user)

        assert user.min_credits_required == 24

    async def test__complete_registration__consumes_codes(
        self, service: AuthService, db_session: AsyncSession,
    ) -> None:
        state = await create_state(db_session)
        await create_code(db_session, "jane@example.com")

        await service.complete_registration(registration(str(state.id)))

        assert await codes_for(db_session, "jane@example.com") == []

    async def test__complete_registration__code_for_other_email_rejected(
        self, service: AuthService, db_session: AsyncSession,
    ) -> None:
        state = await create_state(db_session)
        await create_code(db_session, "someone-else@example.com")

        with pytest.raises(InvalidOrExpiredCodeError):
            await service.complete_registration(registration(str(state.id)))

    async def test__complete_registration__email_never_issued_code(
        self, service: AuthService, db_session: AsyncSession,
    ) -> None:
        state = await create_state(db_session)
        with pytest.raises(InvalidOrExpiredCodeError):
            await service.complete_registration(registration(str(state.id)))

    async def test__complete_registration__wrong_code_rejected(
        self, service: AuthService, db_session: AsyncSession,
    ) -> None:
        state = await create_state(db_session)
        await create_code(db_session, "jane@example.com", code="654321")
        with pytest.raises(InvalidOrExpiredCodeError):
            await service.complete_registration(registration(str(state.id)))

    async def test__complete_registration__expired_code_rejected(
        self, service: AuthService, db_session: AsyncSession,
    ) -> None:
        state = await create_state(db_session)
        await create_code(
            db_session, "jane@example.com", expires_at=datetime.now(UTC) - timedelta(seconds=1),
        )
        with pytest.raises(InvalidOrExpiredCodeError):
            await service.complete_registration(registration(str(state.id)))

    async def test__complete_registration__superseded_code_rejected(
        self, service: AuthService, db_session: AsyncSession,
    ) -> None:
        """Requesting a new code invalidates the previous one."""
        state = await create_state(db_session)
        await service.request_registration_code("jane@example.com")
        first = (await codes_for(db_session, "jane@example.com"))[0].code
        await service.request_registration_code("jane@example.com")
        second = (await codes_for(db_session, "jane@example.com"))[0].code

        if first != second:
            with pytest.raises(InvalidOrExpiredCodeError):
                await service.complete_registration(registration(str(state.id), otp=first))
        await service.complete_registration(registration(str(state.id), otp=second))

    @pytest.mark.parametrize(
        "overrides",
        [{"email": "taken@example.com"}, {"username": "taken"}],
    )
    async def test__complete_registration__taken_email_or_username(
        self, service: AuthService, db_session: AsyncSession, overrides: dict[str, str],
    ) -> None:
        state = await create_state(db_session)
        await create_user(db_session, email="taken@example.com", username="taken")
        email = overrides.get("email", "jane@example.com")
        await create_code(db_session, email)

        with pytest.raises(EmailOrUsernameTakenError):
            await service.complete_registration(registration(str(state.id), **overrides))

    @pytest.mark.parametrize(
        "rival",
        [
            {"email": "jane@example.com", "username": "someoneelse"},
            {"email": "other@example.com", "username": "janedoe"},
        ],
    )
    async def test__complete_registration__concurrent_insert_wins(
        self,
        service: AuthService,
        db_session: AsyncSession,
        monkeypatch: pytest.MonkeyPatch,
        rival: dict[str, str],
    ) -> None:
        """A rival account committed after the up-front check maps to the same error."""
        state = await create_state(db_session)
        await create_code(db_session, "jane@example.com")
        original_get_state = state_service.get_state

        async def get_state_after_rival_registers(db: AsyncSession, state_id: str) -> object:
            await create_user(db_session, **rival)
            return await original_get_state(db, state_id)

        monkeypatch.setattr(state_service, "get_state", get_state_after_rival_registers)

        with pytest.raises(EmailOrUsernameTakenError):
            await service.complete_registration(registration(str(state.id)))

        # Only the savepoint rolled back: the rival and the code survive
        users = await db_session.execute(select(User.username))
        assert users.scalars().all() == [rival["username"]]
        assert len(await codes_for(db_session, "jane@example.com")) == 1

    @pytest.mark.parametrize("state_id", ["not-a-uuid", "00000000-0000-0000-0000-000000000000"])
    async def test__complete_registration__invalid_state(
        self, service: AuthService, db_session: AsyncSession, state_id: str,
    ) -> None:
        await create_code(db_session, "jane@example.com")
        with pytest.raises(InvalidStateError):
            await service.complete_registration(registration(state_id))

    async def test__complete_registration__user_count_unchanged_on_failure(
        self, service: AuthService, db_session: AsyncSession,
    ) -> None:
        state = await create_state(db_session)
        with pytest.raises(InvalidOrExpiredCodeError):
            await service.complete_registration(registration(str(state.id)))
        count = await db_session.execute(select(func.count()).select_from(User))
        assert count.scalar_one() == 0


class TestFindAccountEmail:
    """Tests for AuthService.find_account_email."""

    async def test__find_account_email__by_username_and_email(
        self, service: AuthService, db_session: AsyncSession,
    ) -> None:
        await create_user(db_session)
        assert await service.find_account_email("parent") == "parent@example.com"
        assert await service.find_account_email("parent@example.com") == "parent@example.com"

    async def test__find_account_email__missing_identifier(self, service: AuthService) -> None:
        with pytest.raises(MissingFieldError):
            await service.find_account_email("  ")

    async def test__find_account_email__unknown(self, service: AuthService) -> None:
        with pytest.raises(UserNotFoundError):
            await service.find_account_email("ghost")


class TestPasswordReset:
    """Tests for the password reset flow."""

    async def test__request_password_reset__sends_reset_email(
        self, service: AuthService, db_session: AsyncSession, email_sender: FakeEmailSender,
    ) -> None:
        await create_user(db_session)
        await service.request_password_reset("parent@example.com")

        assert email_sender.sent[0].subject == "Your Password Reset OTP Code"
        assert len(await codes_for(db_session, "parent@example.com")) == 1

    async def test__request_password_reset__unknown_email(self, service: AuthService) -> None:
        with pytest.raises(EmailNotFoundError):
            await service.request_password_reset("ghost@example.com")

    async def test__request_password_reset__invalid_email(self, service: AuthService) -> None:
        with pytest.raises(InvalidEmailError):
            await service.request_password_reset("ghost")

    async def test__verify_reset_code__returns_token_and_consumes_code(
        self, service: AuthService, db_session: AsyncSession, test_settings: Settings,
    ) -> None:
        await create_user(db_session)
        await create_code(db_session, "parent@example.com", code="424242")

        token = await service.verify_reset_code("parent@example.com", "424242")

        assert decode_reset_token(token, test_settings) == "parent@example.com"
        assert await codes_for(db_session, "parent@example.com") == []
        with pytest.raises(InvalidOrExpiredCodeError):
            await service.verify_reset_code("parent@example.com", "424242")

    async def test__verify_reset_code__missing_fields(self, service: AuthService) -> None:
        with pytest.raises(MissingFieldError):
            await service.verify_reset_code("", "123456")

    async def test__reset_password__changes_password(
        self, service: AuthService, db_session: AsyncSession, test_settings: Settings,
    ) -> None:
        user = await create_user(db_session)
        token = create_reset_token("parent@example.com", test_settings)

        await service.reset_password("parent@example.com", "NewPass1!", token)

        await db_session.refresh(user)
        assert verify_password("NewPass1!", user.password_hash)
        _, logged_in = await service.login("parent", "NewPass1!")
        assert logged_in.id == user.id

    async def test__reset_password__weak_password(
        self, service: AuthService, db_session: AsyncSession, test_settings: Settings,
    ) -> None:
        await create_user(db_session)
        token = create_reset_token("parent@example.com", test_settings)
        with pytest.raises(WeakPasswordError):
            await service.reset_password("parent@example.com", "abc123", token)

    @pytest.mark.parametrize("token", [None, "", "garbage"])
    async def test__reset_password__requires_valid_authorization(
        self, service: AuthService, db_session: AsyncSession, token: str | None,
    ) -> None:
        await create_user(db_session)
        with pytest.raises(ResetNotAuthorizedError):
            await service.reset_password("parent@example.com", "NewPass1!", token)

    async def test__reset_password__token_for_other_email_rejected(
        self, service: AuthService, db_session: AsyncSession, test_settings: Settings,
    ) -> None:
        await create_user(db_session)
        token = create_reset_token("attacker@example.com", test_settings)
        with pytest.raises(ResetNotAuthorizedError):
            await service.reset_password("parent@example.com", "NewPass1!", token)

    async def test__reset_password__expired_authorization_rejected(
        self, service: AuthService, db_session: AsyncSession, test_settings: Settings,
    ) -> None:
        await create_user(db_session)
        token = create_reset_token(
            "parent@example.com",
            test_settings,
            now=datetime.now(UTC) - timedelta(minutes=16),
        )
        with pytest.raises(ResetNotAuthorizedError):
            await service.reset_password("parent@example.com", "NewPass1!", token)

    async def test__reset_password__unknown_user(
        self, service: AuthService, test_settings: Settings,
    ) -> None:
        token = create_reset_token("ghost@example.com", test_settings)
        with pytest.raises(UserNotFoundError):
            await service.reset_password("ghost@example.com", "NewPass1!", token)

    async def test__reset_password__missing_fields(self, service: AuthService) -> None:
        with pytest.raises(MissingFieldError):
            await service.reset_password("parent@example.com", "", None)
