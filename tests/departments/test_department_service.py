from __future__ import annotations

from dataclasses import replace

import pytest

from src.hr_crm.hr_crm.auth.context import AuthContext
from src.hr_crm.hr_crm.core.enums import Role
from src.hr_crm.hr_crm.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from src.hr_crm.hr_crm.departments.model import Department
from src.hr_crm.hr_crm.departments.service import DepartmentService


class FakeDepartmentsRepo:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, Department] = {}

    def get_by_id(self, department_id):
        return self.rows.get(int(department_id))

    def find_active_by_name(self, company_id, name, *, exclude_id=None):
        for d in self.rows.values():
            if d.company_id == company_id and d.is_active and d.name.lower() == name.lower() and d.department_id != exclude_id:
                return d
        return None

    def list_active(self, company_id):
        return [d for d in self.rows.values() if d.is_active and (company_id is None or d.company_id == company_id)]

    def create(self, *, company_id, name, description, created_by):
        did = self._next_id
        self._next_id += 1
        self.rows[did] = Department(
            department_id=did, company_id=company_id, name=name, description=description, created_by=created_by
        )
        return did

    def update(self, department_id, changes):
        self.rows[department_id] = replace(self.rows[department_id], **changes)
        return True

    def set_active(self, department_id, *, is_active):
        self.rows[department_id] = replace(self.rows[department_id], is_active=is_active)
        return True


class FakeUsersRepo:
    def __init__(self, active_in_department=None):
        self.active_in_department = active_in_department or {}

    def count_active_in_department(self, department_id):
        return self.active_in_department.get(department_id, 0)


def _actor(role=Role.ADMIN, company_id=1, user_id=1):
    return AuthContext(user_id=user_id, name="A", email="a@x.io", role=role, company_id=company_id, company_code="X")


def test_create_department_in_actor_company():
    svc = DepartmentService(FakeDepartmentsRepo(), FakeUsersRepo())
    dept = svc.create(actor=_actor(), name="Sales", description="  Field team ")

    assert dept.company_id == 1
    assert dept.description == "Field team"
    assert dept.created_by == 1


def test_duplicate_name_is_case_insensitive_per_company():
    svc = DepartmentService(FakeDepartmentsRepo(), FakeUsersRepo())
    svc.create(actor=_actor(), name="Sales")

    with pytest.raises(ConflictError):
        svc.create(actor=_actor(), name="sales")
    assert svc.create(actor=_actor(company_id=2), name="Sales").company_id == 2


def test_plain_user_cannot_create_department():
    svc = DepartmentService(FakeDepartmentsRepo(), FakeUsersRepo())
    with pytest.raises(AuthorizationError):
        svc.create(actor=_actor(role=Role.USER), name="Sales")


def test_description_length_is_limited():
    svc = DepartmentService(FakeDepartmentsRepo(), FakeUsersRepo())
    with pytest.raises(ValidationError):
        svc.create(actor=_actor(), name="Sales", description="x" * 201)


def test_other_company_department_is_hidden():
    svc = DepartmentService(FakeDepartmentsRepo(), FakeUsersRepo())
    dept = svc.create(actor=_actor(), name="Sales")

    with pytest.raises(AuthorizationError):
        svc.get(actor=_actor(company_id=2), department_id=dept.department_id)


def test_delete_is_soft_and_blocked_by_active_users():
    repo = FakeDepartmentsRepo()
    svc = DepartmentService(repo, FakeUsersRepo({1: 2}))
    busy = svc.create(actor=_actor(), name="Sales")
    with pytest.raises(ValidationError):
        svc.delete(actor=_actor(), department_id=busy.department_id)

    idle = svc.create(actor=_actor(), name="Ops")
    svc.delete(actor=_actor(), department_id=idle.department_id)
    assert repo.rows[idle.department_id].is_active is False
    assert [d.name for d in svc.list(actor=_actor())] == ["Sales"]

    with pytest.raises(NotFoundError):
        svc.get(actor=_actor(), department_id=idle.department_id)


def test_update_renames_department():
    svc = DepartmentService(FakeDepartmentsRepo(), FakeUsersRepo())
    dept = svc.create(actor=_actor(), name="Sales")
    svc.create(actor=_actor(), name="Ops")

    with pytest.raises(ConflictError):
        svc.update(actor=_actor(), department_id=dept.department_id, name="OPS")
    assert svc.update(actor=_actor(role=Role.HR), department_id=dept.department_id, name="Growth").name == "Growth"
