from __future__ import annotations

from dataclasses import replace

import pytest

from src.hr_crm.hr_crm.auth.context import AuthContext
from src.hr_crm.hr_crm.core.enums import MenuSection, Role
from src.hr_crm.hr_crm.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from src.hr_crm.hr_crm.departments.model import Department
from src.hr_crm.hr_crm.menus.model import MenuAccess, MenuItem, SidebarConfig
from src.hr_crm.hr_crm.menus.service import (
    MenuAccessService,
    MenuItemService,
    SidebarConfigService,
    default_access_for,
    parse_sidebar_items,
    slugify,
)


class FakeMenuItemsRepo:
    def __init__(self):
        self.rows: dict[int, MenuItem] = {}

    def get_by_id(self, menu_item_id):
        return self.rows.get(int(menu_item_id))

    def find_conflict(self, *, name, path, exclude_id=None):
        for item in self.rows.values():
            if item.menu_item_id != exclude_id and ((name and item.name == name) or (path and item.path == path)):
                return item
        return None

    def key_exists(self, key):
        return any(i.key == key for i in self.rows.values())

    def list(self, *, active_only):
        return [i for i in self.rows.values() if i.is_active or not active_only]

    def create(self, fields):
        mid = len(self.rows) + 1
        self.rows[mid] = MenuItem(menu_item_id=mid, **fields)
        return mid

    def update(self, menu_item_id, changes):
        self.rows[menu_item_id] = replace(self.rows[menu_item_id], **changes)
        return True

    def set_active(self, menu_item_id, *, is_active):
        return self.update(menu_item_id, {"is_active": is_active})


class FakeMenuAccessRepo:
    def __init__(self):
        self.rows: dict[int, MenuAccess] = {}

    def get_by_id(self, access_id):
        return self.rows.get(int(access_id))

    def find(self, company_id, department, job_role):
        return next(
            (
                r
                for r in self.rows.values()
                if r.company_id == company_id and r.department == department and r.job_role == job_role
            ),
            None,
        )

    def list(self, company_id):
        return [r for r in self.rows.values() if company_id is None or r.company_id == company_id]

    def create(self, *, company_id, department, job_role, access_items, created_by):
        aid = len(self.rows) + 1
        self.rows[aid] = MenuAccess(
            access_id=aid,
            company_id=company_id,
            department=department,
            job_role=job_role,
            access_items=tuple(access_items),
            created_by=created_by,
        )
        return aid

    def update_items(self, access_id, *, access_items, updated_by):
        self.rows[access_id] = replace(self.rows[access_id], access_items=tuple(access_items), updated_by=updated_by)
        return True

    def delete(self, access_id):
        return self.rows.pop(access_id, None) is not None


class FakeSidebarRepo:
    def __init__(self):
        self.rows: dict[int, SidebarConfig] = {}

    def get_by_id(self, config_id):
        return self.rows.get(int(config_id))

    def find(self, company_id, department_id, role):
        return next(
            (
                c
                for c in self.rows.values()
                if c.company_id == company_id and c.department_id == department_id and c.role == role
            ),
            None,
        )

    def list(self, *, company_id=None, department_id=None, role=None):
        return [
            c
            for c in self.rows.values()
            if (company_id is None or c.company_id == company_id)
            and (department_id is None or c.department_id == department_id)
            and (role is None or c.role == role)
        ]

    def create(self, *, company_id, department_id, role, menu_items, created_by):
        cid = len(self.rows) + 1
        self.rows[cid] = SidebarConfig(
            config_id=cid,
            company_id=company_id,
            department_id=department_id,
            role=role,
            menu_items=tuple(menu_items),
            created_by=created_by,
        )
        return cid

    def update_items(self, config_id, *, menu_items, updated_by):
        self.rows[config_id] = replace(self.rows[config_id], menu_items=tuple(menu_items), updated_by=updated_by)
        return True

    def delete(self, config_id):
        return self.rows.pop(config_id, None) is not None


class FakeDepartmentsRepo:
    def get_by_id(self, department_id):
        depts = {3: Department(department_id=3, company_id=1, name="Sales"), 4: Department(department_id=4, company_id=2, name="Ops")}
        return depts.get(int(department_id))


def _actor(role=Role.ADMIN, company_id=1, department_id=3, user_id=1):
    return AuthContext(user_id=user_id, name="A", email="a@x.io", role=role, company_id=company_id, company_code="X",
                       department_id=department_id)


SIDEBAR_ITEMS = [
    {"id": "dashboard", "name": "Dashboard", "icon": "FaHome", "path": "/dashboard"},
    {"id": "tasks", "name": "Tasks", "icon": "FaTasks", "path": "/tasks", "category": "tasks"},
]


def test_slugify_and_default_access():
    assert slugify("  Team Reports & KPIs ") == "team-reports-kpis"
    assert "admin-task-create" in default_access_for("Manager")
    assert default_access_for("intern") == default_access_for("user")
    assert default_access_for(None) == default_access_for("user")


def test_menu_item_create_slugs_key_and_rejects_duplicates():
    svc = MenuItemService(FakeMenuItemsRepo())
    item = svc.create(actor=_actor(), data={"name": "Team Reports", "path": "/reports"})

    assert item.key == "team-reports"
    assert item.icon == "FaCog"
    assert item.section == MenuSection.MAIN
    assert item.section_name == "Main"

    with pytest.raises(ValidationError):
        svc.create(actor=_actor(), data={"name": "Other", "path": "/reports"})
    with pytest.raises(ValidationError):
        svc.create(actor=_actor(), data={"name": "Only name"})
    with pytest.raises(AuthorizationError):
        svc.create(actor=_actor(role=Role.HR), data={"name": "X", "path": "/x"})


def test_menu_item_soft_delete_and_restore():
    svc = MenuItemService(FakeMenuItemsRepo())
    item = svc.create(actor=_actor(), data={"name": "Reports", "path": "/reports"})

    svc.delete(actor=_actor(), menu_item_id=item.menu_item_id)
    assert svc.list_active() == []
    assert len(svc.list_all(actor=_actor())) == 1

    assert svc.restore(actor=_actor(), menu_item_id=item.menu_item_id).is_active is True
    with pytest.raises(NotFoundError):
        svc.delete(actor=_actor(), menu_item_id=77)


def test_menu_access_falls_back_to_role_defaults():
    svc = MenuAccessService(FakeMenuAccessRepo())
    row = svc.get(actor=_actor(role=Role.USER), department="Sales", job_role="hr")

    assert row.is_default is True
    assert row.access_id is None
    assert list(row.access_items) == default_access_for("hr")

    with pytest.raises(ValidationError):
        svc.get(actor=_actor(), department="", job_role="hr")


def test_menu_access_save_is_an_upsert():
    repo = FakeMenuAccessRepo()
    svc = MenuAccessService(repo)
    first = svc.save(actor=_actor(), department="Sales", job_role="user", access_items=["dashboard", "dashboard", "alerts"])
    assert first.access_items == ("dashboard", "alerts")

    second = svc.save(actor=_actor(), department="Sales", job_role="user", access_items=["tasks"])
    assert second.access_id == first.access_id
    assert second.access_items == ("tasks",)
    assert len(repo.rows) == 1

    stored = svc.get(actor=_actor(role=Role.USER), department="Sales", job_role="user")
    assert stored.is_default is False


def test_menu_access_validation_and_scoping():
    svc = MenuAccessService(FakeMenuAccessRepo())
    with pytest.raises(ValidationError):
        svc.save(actor=_actor(), department="Sales", job_role="user", access_items="dashboard")
    with pytest.raises(AuthorizationError):
        svc.save(actor=_actor(role=Role.MANAGER), department="Sales", job_role="user", access_items=[])

    row = svc.save(actor=_actor(), department="Sales", job_role="user", access_items=[])
    with pytest.raises(NotFoundError):
        svc.delete(actor=_actor(company_id=2), access_id=row.access_id)
    svc.delete(actor=_actor(), access_id=row.access_id)
    assert svc.list_all(actor=_actor()) == []


def test_parse_sidebar_items_requires_complete_entries():
    items = parse_sidebar_items(SIDEBAR_ITEMS)
    assert [i.category for i in items] == ["main", "tasks"]

    with pytest.raises(ValidationError):
        parse_sidebar_items({"id": "x"})
    with pytest.raises(ValidationError):
        parse_sidebar_items([{"id": "x", "name": "X", "icon": "", "path": "/x"}])


def test_sidebar_create_conflict_returns_existing_config():
    svc = SidebarConfigService(FakeSidebarRepo(), FakeDepartmentsRepo())
    config = svc.create(actor=_actor(), company_id=1, department_id=3, role="user", menu_items=SIDEBAR_ITEMS)
    assert len(config.menu_items) == 2

    with pytest.raises(ConflictError) as exc:
        svc.create(actor=_actor(), company_id="1", department_id="3", role="user", menu_items=SIDEBAR_ITEMS)
    assert exc.value.status_code == 409
    assert exc.value.extra["data"].config_id == config.config_id


def test_sidebar_create_checks_company_and_department():
    svc = SidebarConfigService(FakeSidebarRepo(), FakeDepartmentsRepo())
    with pytest.raises(AuthorizationError):
        svc.create(actor=_actor(), company_id=2, department_id=4, role="user", menu_items=SIDEBAR_ITEMS)
    with pytest.raises(NotFoundError):
        svc.create(actor=_actor(), company_id=1, department_id=4, role="user", menu_items=SIDEBAR_ITEMS)
    with pytest.raises(ValidationError):
        svc.create(actor=_actor(), company_id=1, department_id=None, role="user", menu_items=SIDEBAR_ITEMS)


def test_user_config_matches_actor_department_and_role():
    svc = SidebarConfigService(FakeSidebarRepo(), FakeDepartmentsRepo())
    svc.create(actor=_actor(), company_id=1, department_id=3, role="user", menu_items=SIDEBAR_ITEMS)

    found = svc.user_config(actor=_actor(role=Role.USER, user_id=8))
    assert found is not None
    assert found.role == "user"
    assert svc.user_config(actor=_actor(role=Role.HR, user_id=8)) is None
    assert svc.user_config(actor=_actor(role=Role.USER, department_id=None)) is None


def test_sidebar_update_and_delete():
    svc = SidebarConfigService(FakeSidebarRepo(), FakeDepartmentsRepo())
    config = svc.create(actor=_actor(), company_id=1, department_id=3, role="user", menu_items=SIDEBAR_ITEMS)

    updated = svc.update(actor=_actor(), config_id=config.config_id, menu_items=SIDEBAR_ITEMS[:1])
    assert len(updated.menu_items) == 1

    with pytest.raises(AuthorizationError):
        svc.delete(actor=_actor(company_id=2), config_id=config.config_id)
    svc.delete(actor=_actor(), config_id=config.config_id)
    assert svc.list(actor=_actor()) == []
