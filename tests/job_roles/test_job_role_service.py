from __future__ import annotations

from dataclasses import replace

import pytest

from src.hr_crm.hr_crm.auth.context import AuthContext
from src.hr_crm.hr_crm.core.enums import Role
from src.hr_crm.hr_crm.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from src.hr_crm.hr_crm.departments.model import Department
from src.hr_crm.hr_crm.job_roles.model import JobRole
from src.hr_crm.hr_crm.job_roles.service import JobRoleService


class FakeJobRolesRepo:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, JobRole] = {}

    def get_by_id(self, job_role_id):
        return self.rows.get(int(job_role_id))

    def find_active_by_name(self, *, company_id, department_id, name, exclude_id=None):
        for r in self.rows.values():
            if (
                r.is_active
                and r.company_id == company_id
                and r.department_id == department_id
                and r.name.lower() == name.lower()
                and r.job_role_id != exclude_id
            ):
                return r
        return None

    def list_active(self, *, company_id, department_id=None):
        return [
            r
            for r in self.rows.values()
            if r.is_active
            and (company_id is None or r.company_id == company_id)
            and (department_id is None or r.department_id == department_id)
        ]

    def create(self, *, company_id, department_id, name, description, created_by):
        rid = self._next_id
        self._next_id += 1
        self.rows[rid] = JobRole(
            job_role_id=rid,
            company_id=company_id,
            department_id=department_id,
            name=name,
            description=description,
            created_by=created_by,
        )
        return rid

    def update(self, job_role_id, changes):
        self.rows[job_role_id] = replace(self.rows[job_role_id], **changes)
        return True

    def set_active(self, job_role_id, *, is_active):
        self.rows[job_role_id] = replace(self.rows[job_role_id], is_active=is_active)
        return True


class FakeDepartmentsRepo:
    def __init__(self):
        self.rows = {
            1: Department(department_id=1, company_id=1, name="Sales"),
            2: Department(department_id=2, company_id=1, name="Ops"),
            3: Department(department_id=3, company_id=2, name="Sales"),
        }

    def get_by_id(self, department_id):
        return self.rows.get(int(department_id))


class FakeUsersRepo:
    def __init__(self, active_with_role=None):
        self.active_with_role = active_with_role or {}

    def count_active_with_job_role(self, job_role_id):
        return self.active_with_role.get(job_role_id, 0)


def _actor(role=Role.HR, company_id=1):
    return AuthContext(user_id=7, name="H", email="h@x.io", role=role, company_id=company_id, company_code="X")


def _service(users=None):
    return JobRoleService(FakeJobRolesRepo(), FakeDepartmentsRepo(), users or FakeUsersRepo())


def test_create_job_role_under_own_department():
    svc = _service()
    role = svc.create(actor=_actor(), name="Caller", department_id="1")

    assert role.company_id == 1
    assert role.department_id == 1


def test_create_job_role_rejects_foreign_department():
    svc = _service()
    with pytest.raises(NotFoundError):
        svc.create(actor=_actor(), name="Caller", department_id=3)


def test_department_is_required():
    svc = _service()
    with pytest.raises(ValidationError):
        svc.create(actor=_actor(), name="Caller", department_id=None)


def test_same_name_allowed_in_other_department_only():
    svc = _service()
    svc.create(actor=_actor(), name="Caller", department_id=1)

    with pytest.raises(ConflictError):
        svc.create(actor=_actor(), name="caller", department_id=1)
    assert svc.create(actor=_actor(), name="Caller", department_id=2).department_id == 2


def test_move_job_role_checks_duplicates_in_target_department():
    svc = _service()
    first = svc.create(actor=_actor(), name="Caller", department_id=1)
    svc.create(actor=_actor(), name="Caller", department_id=2)

    with pytest.raises(ConflictError):
        svc.update(actor=_actor(), job_role_id=first.job_role_id, changes={"department_id": 2})


def test_delete_blocked_while_assigned():
    svc = _service(FakeUsersRepo({1: 1}))
    role = svc.create(actor=_actor(), name="Caller", department_id=1)
    with pytest.raises(ValidationError):
        svc.delete(actor=_actor(), job_role_id=role.job_role_id)


def test_other_company_cannot_update_or_delete():
    svc = _service()
    role = svc.create(actor=_actor(), name="Caller", department_id=1)
    with pytest.raises(AuthorizationError):
        svc.update(actor=_actor(company_id=2), job_role_id=role.job_role_id, changes={"name": "X"})
    with pytest.raises(AuthorizationError):
        svc.delete(actor=_actor(company_id=2), job_role_id=role.job_role_id)


def test_list_by_department_filters():
    svc = _service()
    svc.create(actor=_actor(), name="Caller", department_id=1)
    svc.create(actor=_actor(), name="Planner", department_id=2)

    names = [r.name for r in svc.list_by_department(actor=_actor(), department_id=2)]
    assert names == ["Planner"]
