from __future__ import annotations

import logging
import random
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional, Sequence

from werkzeug.security import generate_password_hash

from ..auth.context import AuthContext
from ..common.datetime_utils import now_local
from ..common.validators import (
    is_valid_email,
    is_valid_phone,
    optional_str,
    require_length_between,
    require_email,
    require_phone,
)
from ..core.constants import (
    DEFAULT_SUBSCRIPTION_DAYS,
    MIN_OWNER_PASSWORD_LENGTH,
    OWNER_DEPARTMENT,
    OWNER_JOB_ROLE,
)
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..departments.repository import DepartmentRepository
from ..users.model import User
from ..users.repository import UserRepository
from .model import Company, CompanyStats
from .repository import CompanyRepository

logger = logging.getLogger(__name__)

CODE_ATTEMPTS = 5
_LOGIN_URL_CODE = re.compile(r"^/company/([^/]+)/login/?$")


def generate_company_code(company_name: str, now: datetime) -> str:
    """First six alphanumerics of the name, upper-cased; ``CMP`` + timestamp digits if none."""
    base = re.sub(r"[^A-Za-z0-9]", "", company_name or "")[:6].upper()
    if base:
        return base
    return f"CMP{int(now.timestamp() * 1000) % 10000:04d}"


def generate_db_identifier(now: datetime, rng: random.Random) -> str:
    return f"company_{int(now.timestamp() * 1000)}_{rng.randint(1000, 9999)}"


def login_url_for(company_code: str) -> str:
    return f"/company/{company_code}/login"


def matches_company(company: Company, provided: Optional[str]) -> bool:
    """Tenant resolution: does a user-supplied code/identifier designate ``company``?

    The provided value is trimmed and lower-cased, then compared with the company
    code, the db identifier, and the <code> segment of the login URL.
    """
    needle = (provided or "").strip().lower()
    if not needle:
        return False
    if needle == (company.company_code or "").lower():
        return True
    if needle == (company.db_identifier or "").lower():
        return True
    match = _LOGIN_URL_CODE.match(company.login_url or "")
    return bool(match) and needle == match.group(1).lower()


def ensure_company_usable(company: Company, now: datetime) -> None:
    """Raise unless members of ``company`` may sign in at ``now``."""
    if not company.is_active:
        raise AuthorizationError("Company account is deactivated", error_code="COMPANY_DEACTIVATED")
    if company.subscription_expired(now):
        raise AuthorizationError("Company subscription has expired", error_code="SUBSCRIPTION_EXPIRED")


def _digits(value: str) -> str:
    return re.sub(r"\D", "", value or "")


@dataclass(frozen=True)
class CompanyRegistration:
    company: Company
    owner: User


class CompanyService:
    """Use cases: register and administer tenant companies."""

    def __init__(
        self,
        companies: CompanyRepository,
        users: UserRepository,
        departments: DepartmentRepository,
        *,
        clock: Callable[[], datetime] = now_local,
        rng: Optional[random.Random] = None,
    ):
        self._companies = companies
        self._users = users
        self._departments = departments
        self._clock = clock
        self._rng = rng or random.Random()

    def _unique_code(self, company_name: str, now: datetime) -> str:
        base = generate_company_code(company_name, now)
        code = base
        for _ in range(CODE_ATTEMPTS):
            if not self._companies.code_exists(code):
                return code
            code = f"{base}{self._rng.randint(10, 99)}"
        raise ConflictError("Could not generate a unique company code", error_code="COMPANY_CODE_TAKEN")

    def register_company(
        self,
        *,
        company_name: str,
        company_email: str,
        company_address: str,
        company_phone: str,
        owner_name: str,
        owner_email: str,
        owner_password: str,
        logo: Optional[str] = None,
    ) -> CompanyRegistration:
        required = (
            ("Company Name", company_name),
            ("Company Email", company_email),
            ("Company Address", company_address),
            ("Company Phone", company_phone),
            ("Owner Name", owner_name),
            ("Owner Email", owner_email),
            ("Owner Password", owner_password),
        )
        errors = [f"{label} is required" for label, value in required if not value or not str(value).strip()]
        if company_email and not is_valid_email(company_email):
            errors.append("Invalid company email format")
        if owner_email and not is_valid_email(owner_email):
            errors.append("Invalid owner email format")
        if company_phone and not is_valid_phone(company_phone):
            errors.append("Phone number must be 10-15 digits")
        if owner_password and len(owner_password) < MIN_OWNER_PASSWORD_LENGTH:
            errors.append(f"Password must be at least {MIN_OWNER_PASSWORD_LENGTH} characters long")
        if company_name and not (2 <= len(company_name.strip()) <= 100):
            errors.append("Company Name must be between 2 and 100 characters")
        if errors:
            raise ValidationError("Validation failed", errors=errors)

        name = company_name.strip()
        email = company_email.strip().lower()
        phone = _digits(company_phone)
        owner_email_clean = owner_email.strip().lower()

        conflict = self._companies.find_conflict(company_name=name, company_email=email, company_phone=phone)
        if conflict:
            value = {"companyEmail": company_email, "companyPhone": company_phone, "companyName": company_name}[conflict]
            label = {"companyEmail": "email", "companyPhone": "phone", "companyName": "name"}[conflict]
            raise ConflictError(f"Company with {label} '{value}' already exists", field=conflict, value=value)
        if self._users.get_by_email(owner_email_clean):
            raise ConflictError(
                f"User with email '{owner_email}' already exists in the system",
                field="ownerEmail",
                value=owner_email,
            )

        now = self._clock()
        code = self._unique_code(name, now)
        company_id = self._companies.create(
            company_name=name,
            company_code=code,
            company_email=email,
            company_address=company_address.strip(),
            company_phone=phone,
            owner_name=owner_name.strip(),
            logo=optional_str(logo),
            company_domain=email.split("@", 1)[1],
            login_url=login_url_for(code),
            db_identifier=generate_db_identifier(now, self._rng),
            subscription_expiry=now + timedelta(days=DEFAULT_SUBSCRIPTION_DAYS),
        )

        try:
            department_id = self._departments.create(
                company_id=company_id,
                name=OWNER_DEPARTMENT,
                description="Company leadership",
                created_by=None,
            )
            owner_id = self._users.create_user(
                name=owner_name.strip(),
                email=owner_email_clean,
                password_hash=generate_password_hash(owner_password),
                role=Role.ADMIN,
                company_id=company_id,
                company_code=code,
                department_id=department_id,
                job_role_id=None,
                job_role=OWNER_JOB_ROLE,
                phone=phone,
            )
        except Exception:
            logger.exception("Owner setup failed for company %s; rolling back", code)
            self._companies.delete(company_id)
            raise

        logger.info("Registered company %s (%s)", name, code)
        company = self._companies.get_by_id(company_id)
        owner = self._users.get_by_id(owner_id)
        return CompanyRegistration(company=company, owner=owner)

    def list_companies(self, *, actor: AuthContext) -> Sequence[Company]:
        if not actor.is_super_admin:
            raise AuthorizationError("Only super admins can list companies")
        return self._companies.list_all()

    def get_company(self, *, actor: AuthContext, company_id: int) -> Company:
        company = self._companies.get_by_id(int(company_id))
        if not company:
            raise NotFoundError("Company not found", error_code="COMPANY_NOT_FOUND")
        actor.require_company(company.company_id)
        return company

    def get_by_code(self, company_code: str) -> Company:
        company = self._companies.get_by_code(company_code or "")
        if not company:
            raise NotFoundError("Company not found", error_code="COMPANY_NOT_FOUND")
        return company

    def find_for_login(self, identifier: str) -> Optional[Company]:
        ident = (identifier or "").strip()
        if not ident:
            return None
        return self._companies.find_by_identifier(ident)

    def company_details(self, identifier: str) -> Company:
        """Public lookup used by the company login page."""
        company = self.find_for_login(identifier)
        if not company:
            raise NotFoundError("Company not found", error_code="COMPANY_NOT_FOUND")
        ensure_company_usable(company, self._clock())
        return company

    def validate_url(self, identifier: str) -> Company:
        company = self.find_for_login(identifier)
        if not company:
            raise NotFoundError("Company URL not found", error_code="COMPANY_NOT_FOUND")
        return company

    def update_company(self, *, actor: AuthContext, company_id: int, changes: dict) -> Company:
        company = self.get_company(actor=actor, company_id=company_id)
        if not actor.is_super_admin and actor.role != Role.ADMIN:
            raise AuthorizationError("Only company admins can update company details")

        clean: dict = {}
        if "company_name" in changes:
            clean["company_name"] = require_length_between(changes["company_name"], "Company Name", 2, 100)
        if "company_email" in changes:
            clean["company_email"] = require_email(changes["company_email"], "Company Email")
            clean["company_domain"] = clean["company_email"].split("@", 1)[1]
        if "company_phone" in changes:
            clean["company_phone"] = _digits(require_phone(changes["company_phone"], "Company Phone"))
        for key in ("company_address", "owner_name", "logo"):
            if key in changes:
                clean[key] = optional_str(changes[key])
        if "subscription_expiry" in changes:
            if not actor.is_super_admin:
                raise AuthorizationError("Only super admins can change the subscription")
            clean["subscription_expiry"] = changes["subscription_expiry"]
        if not clean:
            raise ValidationError("No valid fields to update")

        conflict = self._companies.find_conflict(
            company_name=clean.get("company_name"),
            company_email=clean.get("company_email"),
            company_phone=clean.get("company_phone"),
            exclude_id=company.company_id,
        )
        if conflict:
            raise ConflictError(f"Another company already uses this {conflict}", field=conflict)

        self._companies.update(company.company_id, clean)
        return self._companies.get_by_id(company.company_id)

    def _super_admin_target(self, actor: AuthContext, company_id: int) -> Company:
        if not actor.is_super_admin:
            raise AuthorizationError("Only super admins can manage companies")
        company = self._companies.get_by_id(int(company_id))
        if not company:
            raise NotFoundError("Company not found", error_code="COMPANY_NOT_FOUND")
        return company

    def deactivate_company(self, *, actor: AuthContext, company_id: int) -> Company:
        company = self._super_admin_target(actor, company_id)
        if not company.is_active:
            raise ValidationError("Company is already deactivated")
        self._companies.set_active(company.company_id, is_active=False, deactivated_at=self._clock())
        logger.warning("Company %s deactivated by user %s", company.company_code, actor.user_id)
        return self._companies.get_by_id(company.company_id)

    def activate_company(self, *, actor: AuthContext, company_id: int) -> Company:
        company = self._super_admin_target(actor, company_id)
        if company.is_active:
            raise ValidationError("Company is already active")
        self._companies.set_active(company.company_id, is_active=True, deactivated_at=None)
        return self._companies.get_by_id(company.company_id)

    def delete_company(self, *, actor: AuthContext, company_id: int) -> None:
        company = self._super_admin_target(actor, company_id)
        if not self._companies.delete(company.company_id):
            raise ValidationError("Failed to delete company")
        logger.warning("Company %s permanently deleted by user %s", company.company_code, actor.user_id)

    def company_users(self, *, actor: AuthContext, company_id: int) -> Sequence[User]:
        company = self.get_company(actor=actor, company_id=company_id)
        if not actor.is_privileged:
            raise AuthorizationError("Access denied")
        return self._users.list_by_company(company.company_id)

    def company_stats(self, *, actor: AuthContext, company_id: int) -> CompanyStats:
        company = self.get_company(actor=actor, company_id=company_id)
        return self._companies.stats(company.company_id)
