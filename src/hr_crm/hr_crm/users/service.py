from __future__ import annotations

import hashlib
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..auth.context import AuthContext
from ..auth.login_attempts import LoginAttemptTracker
from ..auth.tokens import IssuedToken, TokenService
from ..common.datetime_utils import now_local
from ..common.validators import (
    optional_int,
    optional_str,
    parse_choice,
    require_email,
    require_length_between,
    require_min_length,
    require_non_empty,
)
from ..companies.model import Company
from ..companies.repository import CompanyRepository
from ..companies.service import ensure_company_usable, matches_company
from ..core.constants import MIN_PASSWORD_LENGTH, RESET_TOKEN_HOURS
from ..core.enums import Role
from ..core.exceptions import (
    AccountLockedError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    TokenError,
    ValidationError,
)
from ..departments.repository import DepartmentRepository
from ..job_roles.repository import JobRoleRepository
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = "If an account exists for this email, a password reset link has been sent."


def mask_email(email: str) -> str:
    return f"{(email or '')[:3]}..."


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def auth_context_for(user: User) -> AuthContext:
    return AuthContext(
        user_id=user.user_id,
        name=user.name,
        email=user.email,
        role=user.role,
        company_id=user.company_id,
        company_code=user.company_code,
        department_id=user.department_id,
        job_role=user.job_role,
    )


@dataclass(frozen=True)
class LoginResult:
    token: IssuedToken
    user: User
    company: Optional[Company]


class AuthService:
    """Use cases: login (global and per company), tokens, password reset."""

    def __init__(
        self,
        users: UserRepository,
        companies: CompanyRepository,
        tokens: TokenService,
        attempts: LoginAttemptTracker,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._users = users
        self._companies = companies
        self._tokens = tokens
        self._attempts = attempts
        self._clock = clock

    def _issue(self, user: User) -> IssuedToken:
        return self._tokens.issue(
            user_id=user.user_id,
            email=user.email,
            role=user.role.value,
            company_id=user.company_id,
            company_code=user.company_code,
            job_role=user.job_role,
        )

    def _verify_credentials(self, email: str, password: str) -> User:
        """Shared credential checks; failures count towards the lockout."""
        if not email or not password:
            raise ValidationError("Email and password are required", error_code="MISSING_CREDENTIALS")

        clean_email = email.strip().lower()
        lock_until = self._attempts.locked_until(clean_email)
        if lock_until:
            minutes = self._attempts.minutes_left(lock_until)
            raise AccountLockedError(
                f"Account temporarily locked. Try again in {minutes} minutes.",
                retry_after=lock_until,
            )

        user = self._users.get_by_email(clean_email)
        try:
            ok = bool(user) and check_password_hash(user.password_hash, password)
        except (TypeError, ValueError):
            # unusable stored hash
            ok = False

        if not ok:
            result = self._attempts.record_failure(clean_email)
            logger.warning("Failed login for %s (remaining=%s)", mask_email(clean_email), result.remaining)
            # the attempt that trips the lock still answers 401; 429 starts with the next one
            raise AuthenticationError(
                "Invalid email or password",
                error_code="INVALID_CREDENTIALS",
                remaining_attempts=0 if result.locked else result.remaining,
            )

        if not user.is_active:
            raise AuthorizationError(
                "Your account has been deactivated. Please contact your administrator.",
                error_code="ACCOUNT_DEACTIVATED",
            )
        return user

    def _finish_login(self, user: User, company: Optional[Company]) -> LoginResult:
        self._attempts.reset(user.email)
        self._users.update_last_login(user.user_id, self._clock())
        logger.info("User %s logged in", user.user_id)
        return LoginResult(token=self._issue(user), user=user, company=company)

    def login(self, *, email: str, password: str, company_code: Optional[str] = None) -> LoginResult:
        user = self._verify_credentials(email, password)

        company = None
        if user.role != Role.SUPER_ADMIN:
            company = self._companies.get_by_id(user.company_id) if user.company_id else None
            if not company:
                raise AuthorizationError(
                    "Your account is not associated with any company",
                    error_code="NO_COMPANY",
                )
            ensure_company_usable(company, self._clock())
            if company_code and not matches_company(company, company_code):
                raise AuthorizationError(
                    "You are not authorized to access this company",
                    error_code="COMPANY_MISMATCH",
                )

        return self._finish_login(user, company)

    def company_login(self, *, identifier: str, email: str, password: str) -> LoginResult:
        if not email or not password:
            raise ValidationError("Email and password are required", error_code="MISSING_CREDENTIALS")

        company = self._companies.find_by_identifier((identifier or "").strip())
        if not company:
            raise NotFoundError("Company not found", error_code="COMPANY_NOT_FOUND")
        ensure_company_usable(company, self._clock())

        user = self._verify_credentials(email, password)
        if user.company_id != company.company_id:
            raise AuthorizationError(
                "You are not authorized to access this company",
                error_code="COMPANY_MISMATCH",
            )
        return self._finish_login(user, company)

    def context_from_token(self, token: str) -> AuthContext:
        """Resolve a bearer token into the current, still active user."""
        payload = self._tokens.decode(token)
        user = self._users.get_by_id(self._tokens.user_id_from(payload))
        if not user:
            raise TokenError("User no longer exists", error_code="USER_NOT_FOUND")
        if not user.is_active:
            raise AuthorizationError("Your account has been deactivated", error_code="ACCOUNT_DEACTIVATED")
        return auth_context_for(user)

    def me(self, *, actor: AuthContext) -> User:
        user = self._users.get_by_id(actor.user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def refresh(self, *, actor: AuthContext) -> IssuedToken:
        return self._issue(self.me(actor=actor))

    def forgot_password(self, *, email: str) -> Optional[str]:
        """Create a reset token for an active account.

        Returns the raw token (for delivery by the caller) or None; callers must
        answer with the same message either way.
        """
        clean_email = require_email(email)
        user = self._users.get_by_email(clean_email)
        if not user or not user.is_active:
            logger.info("Password reset requested for unknown/inactive %s", mask_email(clean_email))
            return None

        token = secrets.token_hex(32)
        self._users.set_reset_token(
            user.user_id,
            token_hash=hash_reset_token(token),
            expires=self._clock() + timedelta(hours=RESET_TOKEN_HOURS),
        )
        logger.info("Password reset token issued for user %s", user.user_id)
        return token

    def reset_password(self, *, token: str, new_password: str) -> None:
        token = require_non_empty(token, "Token")
        require_min_length(new_password, "Password", MIN_PASSWORD_LENGTH)

        user = self._users.get_by_reset_token(hash_reset_token(token))
        if not user or not user.reset_token_expires or user.reset_token_expires < self._clock():
            raise ValidationError("Invalid or expired reset token", error_code="INVALID_TOKEN")

        if check_password_hash(user.password_hash, new_password):
            raise ValidationError("New password must be different from the old password")

        self._users.update_password(user.user_id, generate_password_hash(new_password))
        self._attempts.reset(user.email)


class UserService:
    """Use cases: manage company employees (admin / HR)."""

    def __init__(self, users: UserRepository, departments: DepartmentRepository, job_roles: JobRoleRepository):
        self._users = users
        self._departments = departments
        self._job_roles = job_roles

    def register_user(
        self,
        *,
        actor: AuthContext,
        name: str,
        email: str,
        password: str,
        department_id,
        job_role_id=None,
        role=None,
        phone: Optional[str] = None,
    ) -> User:
        actor.require_role(Role.ADMIN, Role.HR, message="Only admins and HR can create users")
        if actor.company_id is None:
            raise ValidationError("Company is required", error_code="MISSING_FIELDS")

        name = require_length_between(name, "Name", 2, 50)
        if not email:
            raise ValidationError("Email is required", error_code="MISSING_FIELDS")
        email = require_email(email)
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
                error_code="WEAK_PASSWORD",
            )
        new_role = parse_choice(Role, role, "role", default=Role.USER)
        if new_role == Role.SUPER_ADMIN:
            raise AuthorizationError("Cannot create super admins")
        if new_role == Role.ADMIN and actor.role != Role.ADMIN and not actor.is_super_admin:
            raise AuthorizationError("Only admins can create admins")

        if self._users.get_by_email(email):
            raise ConflictError("Email already in use", error_code="EMAIL_EXISTS")

        dept_id = optional_int(department_id, "Department")
        if dept_id is None:
            raise ValidationError("Department is required", error_code="MISSING_FIELDS")
        dept = self._departments.get_by_id(dept_id)
        if not dept or not dept.is_active or dept.company_id != actor.company_id:
            raise NotFoundError("Department not found", error_code="DEPARTMENT_NOT_FOUND")

        role_label = None
        jr_id = optional_int(job_role_id, "Job role")
        if jr_id is not None:
            job_role = self._job_roles.get_by_id(jr_id)
            if not job_role or not job_role.is_active or job_role.company_id != actor.company_id:
                raise NotFoundError("Job role not found", error_code="JOB_ROLE_NOT_FOUND")
            if job_role.department_id != dept.department_id:
                raise ValidationError("Job role does not belong to the selected department")
            role_label = job_role.name

        user_id = self._users.create_user(
            name=name,
            email=email,
            password_hash=generate_password_hash(password),
            role=new_role,
            company_id=actor.company_id,
            company_code=actor.company_code,
            department_id=dept.department_id,
            job_role_id=jr_id,
            job_role=role_label,
            phone=optional_str(phone),
        )
        logger.info("User %s created by %s", user_id, actor.user_id)
        return self._users.get_by_id(user_id)

    def list_users(self, *, actor: AuthContext, department_id=None) -> Sequence[User]:
        if not actor.is_privileged:
            raise AuthorizationError("Access denied")
        company_id = None if actor.is_super_admin else actor.company_id
        return self._users.list_by_company(company_id, department_id=optional_int(department_id, "Department"))

    def set_user_active(self, *, actor: AuthContext, user_id: int, is_active: bool) -> User:
        actor.require_role(Role.ADMIN, message="Only admins can change account status")
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        actor.require_company(user.company_id)
        if user.user_id == actor.user_id:
            raise ValidationError("You cannot change your own account status")

        self._users.set_active(user.user_id, is_active=bool(is_active))
        return self._users.get_by_id(user.user_id)
