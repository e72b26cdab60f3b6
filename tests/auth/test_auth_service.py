from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta

import pytest
from werkzeug.security import generate_password_hash

from src.hr_crm.hr_crm.auth.login_attempts import LoginAttemptTracker
from src.hr_crm.hr_crm.auth.tokens import TokenService
from src.hr_crm.hr_crm.companies.model import Company
from src.hr_crm.hr_crm.companies.service import matches_company
from src.hr_crm.hr_crm.core.enums import Role
from src.hr_crm.hr_crm.core.exceptions import (
    AccountLockedError,
    AuthenticationError,
    AuthorizationError,
    TokenError,
    ValidationError,
)
from src.hr_crm.hr_crm.users.model import User
from src.hr_crm.hr_crm.users.service import AuthService, hash_reset_token

NOW = datetime(2026, 3, 1, 9, 0, 0)
PASSWORD = "Password@123"


class Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


class FakeUsersRepo:
    def __init__(self, users):
        self.rows = {u.user_id: u for u in users}
        self.last_login = {}

    def get_by_id(self, user_id):
        return self.rows.get(int(user_id))

    def get_by_email(self, email):
        return next((u for u in self.rows.values() if u.email == email), None)

    def get_by_reset_token(self, token_hash):
        return next((u for u in self.rows.values() if u.reset_token_hash == token_hash), None)

    def update_last_login(self, user_id, at):
        self.last_login[user_id] = at

    def set_reset_token(self, user_id, *, token_hash, expires):
        self.rows[user_id] = replace(self.rows[user_id], reset_token_hash=token_hash, reset_token_expires=expires)

    def update_password(self, user_id, password_hash):
        self.rows[user_id] = replace(
            self.rows[user_id], password_hash=password_hash, reset_token_hash=None, reset_token_expires=None
        )
        return True


class FakeCompaniesRepo:
    def __init__(self, companies):
        self.rows = {c.company_id: c for c in companies}

    def get_by_id(self, company_id):
        return self.rows.get(int(company_id))

    def find_by_identifier(self, identifier):
        return next((c for c in self.rows.values() if matches_company(c, identifier)), None)


def _company(**overrides):
    data = dict(
        company_id=1,
        company_name="Demo Corp",
        company_code="DEMOCO",
        company_email="info@demo.io",
        company_address="Somewhere",
        company_phone="9999999999",
        owner_name="Owner",
        login_url="/company/DEMOCO/login",
        db_identifier="company_1_1234",
        subscription_expiry=NOW + timedelta(days=30),
    )
    data.update(overrides)
    return Company(**data)


def _user(user_id=1, email="amy@demo.io", role=Role.USER, company_id=1, **overrides):
    data = dict(
        user_id=user_id,
        name="Amy",
        email=email,
        password_hash=generate_password_hash(PASSWORD),
        role=role,
        company_id=company_id,
        company_code="DEMOCO" if company_id else None,
    )
    data.update(overrides)
    return User(**data)


def _service(users, companies=None, clock=None, max_attempts=3):
    clock = clock or Clock(NOW)
    users_repo = FakeUsersRepo(users)
    svc = AuthService(
        users_repo,
        FakeCompaniesRepo(companies if companies is not None else [_company()]),
        TokenService("test-secret"),
        LoginAttemptTracker(max_attempts=max_attempts, lock_minutes=15, clock=clock),
        clock=clock,
    )
    return svc, users_repo


def test_login_returns_token_that_resolves_to_context():
    svc, users = _service([_user()])
    result = svc.login(email=" AMY@demo.io ", password=PASSWORD)

    assert result.company.company_code == "DEMOCO"
    assert users.last_login[1] == NOW

    actor = svc.context_from_token(result.token.token)
    assert actor.user_id == 1
    assert actor.role == Role.USER
    assert actor.company_id == 1


def test_login_wrong_password_reports_remaining_attempts():
    svc, _ = _service([_user()])
    with pytest.raises(AuthenticationError) as exc:
        svc.login(email="amy@demo.io", password="nope")
    assert exc.value.extra["remaining_attempts"] == 2


def test_login_locks_after_max_failures_and_unlocks_later():
    clock = Clock(NOW)
    svc, _ = _service([_user()], clock=clock)

    for _ in range(2):
        with pytest.raises(AuthenticationError):
            svc.login(email="amy@demo.io", password="nope")
    # the failure that trips the lock is still a 401
    with pytest.raises(AuthenticationError) as exc:
        svc.login(email="amy@demo.io", password="nope")
    assert exc.value.status_code == 401
    assert exc.value.error_code == "INVALID_CREDENTIALS"
    assert exc.value.extra["remaining_attempts"] == 0

    with pytest.raises(AccountLockedError):
        svc.login(email="amy@demo.io", password="nope")

    # correct password is refused while locked
    with pytest.raises(AccountLockedError) as exc:
        svc.login(email="amy@demo.io", password=PASSWORD)
    assert "15 minutes" in exc.value.message

    clock.now = NOW + timedelta(minutes=16)
    assert svc.login(email="amy@demo.io", password=PASSWORD).user.user_id == 1


def test_login_rejects_missing_credentials():
    svc, _ = _service([_user()])
    with pytest.raises(ValidationError):
        svc.login(email="", password=PASSWORD)


def test_login_rejects_inactive_user_and_deactivated_company():
    svc, _ = _service([_user(is_active=False)])
    with pytest.raises(AuthorizationError) as exc:
        svc.login(email="amy@demo.io", password=PASSWORD)
    assert exc.value.error_code == "ACCOUNT_DEACTIVATED"

    svc, _ = _service([_user()], companies=[_company(is_active=False)])
    with pytest.raises(AuthorizationError) as exc:
        svc.login(email="amy@demo.io", password=PASSWORD)
    assert exc.value.error_code == "COMPANY_DEACTIVATED"


def test_login_with_mismatched_company_code_is_refused():
    svc, _ = _service([_user()])
    with pytest.raises(AuthorizationError) as exc:
        svc.login(email="amy@demo.io", password=PASSWORD, company_code="OTHER")
    assert exc.value.error_code == "COMPANY_MISMATCH"

    assert svc.login(email="amy@demo.io", password=PASSWORD, company_code="democo").user.user_id == 1


def test_super_admin_logs_in_without_company():
    svc, _ = _service([_user(role=Role.SUPER_ADMIN, company_id=None)], companies=[])
    result = svc.login(email="amy@demo.io", password=PASSWORD)
    assert result.company is None


def test_company_login_requires_membership():
    other = _company(company_id=2, company_code="OTHERC", login_url="/company/OTHERC/login", db_identifier="company_2")
    svc, _ = _service([_user()], companies=[_company(), other])

    assert svc.company_login(identifier="DEMOCO", email="amy@demo.io", password=PASSWORD).company.company_id == 1
    with pytest.raises(AuthorizationError):
        svc.company_login(identifier="OTHERC", email="amy@demo.io", password=PASSWORD)


def test_context_from_token_rejects_deleted_user():
    svc, users = _service([_user()])
    token = svc.login(email="amy@demo.io", password=PASSWORD).token.token
    users.rows.clear()
    with pytest.raises(TokenError) as exc:
        svc.context_from_token(token)
    assert exc.value.error_code == "USER_NOT_FOUND"


def test_forgot_and_reset_password_flow():
    clock = Clock(NOW)
    svc, users = _service([_user()], clock=clock)

    assert svc.forgot_password(email="ghost@demo.io") is None
    token = svc.forgot_password(email="amy@demo.io")
    assert users.rows[1].reset_token_hash == hash_reset_token(token)

    with pytest.raises(ValidationError):
        svc.reset_password(token=token, new_password=PASSWORD)

    svc.reset_password(token=token, new_password="BrandNew#2026")
    assert users.rows[1].reset_token_hash is None
    assert svc.login(email="amy@demo.io", password="BrandNew#2026").user.user_id == 1


def test_reset_password_rejects_expired_token():
    clock = Clock(NOW)
    svc, _ = _service([_user()], clock=clock)
    token = svc.forgot_password(email="amy@demo.io")

    clock.now = NOW + timedelta(hours=2)
    with pytest.raises(ValidationError) as exc:
        svc.reset_password(token=token, new_password="BrandNew#2026")
    assert exc.value.error_code == "INVALID_TOKEN"
