from __future__ import annotations

import re
from dataclasses import replace
from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from src.hr_crm.hr_crm.assets.model import Asset, AssetHistoryEntry, MaintenanceRecord
from src.hr_crm.hr_crm.assets.service import AssetService, generate_asset_tag
from src.hr_crm.hr_crm.auth.context import AuthContext
from src.hr_crm.hr_crm.core.enums import AssetCategory, AssetStatus, Role
from src.hr_crm.hr_crm.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.hr_crm.hr_crm.departments.model import Department
from src.hr_crm.hr_crm.users.model import User

NOW = datetime(2026, 7, 1, 10, 0)


class FakeAssetsRepo:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, Asset] = {}
        self.history: list[AssetHistoryEntry] = []
        self.maintenance: list[MaintenanceRecord] = []

    def get_by_id(self, asset_id):
        asset = self.rows.get(int(asset_id))
        if not asset:
            return None
        return replace(
            asset,
            history=tuple(h for h in self.history if h.asset_id == asset.asset_id),
            maintenance_records=tuple(m for m in self.maintenance if m.asset_id == asset.asset_id),
        )

    def get_by_serial(self, serial_number):
        return next((a for a in self.rows.values() if a.serial_number == serial_number), None)

    def list(self, company_id, *, category=None, status=None, department_id=None, assigned_to=None, search=None,
             offset=0, limit=10):
        rows = [
            a
            for a in self.rows.values()
            if (company_id is None or a.company_id == company_id)
            and (category is None or a.category == category)
            and (status is None or a.status == status)
        ]
        rows.sort(key=lambda a: a.asset_id, reverse=True)
        return rows[offset:offset + limit], len(rows)

    def create(self, *, company_id, created_by, fields):
        aid = self._next_id
        self._next_id += 1
        self.rows[aid] = Asset(asset_id=aid, company_id=company_id, created_by=created_by, **fields)
        return aid

    def update(self, asset_id, changes):
        self.rows[asset_id] = replace(self.rows[asset_id], **changes)
        return True

    def delete(self, asset_id):
        return self.rows.pop(asset_id, None) is not None

    def delete_many(self, asset_ids):
        return sum(1 for aid in asset_ids if self.rows.pop(aid, None) is not None)

    def count_owned(self, asset_ids, company_id):
        return sum(1 for aid in asset_ids if aid in self.rows and self.rows[aid].company_id == company_id)

    def add_history(self, asset_id, *, action, performed_by, performed_at, description=None, details=None):
        self.history.append(
            AssetHistoryEntry(
                history_id=len(self.history) + 1,
                asset_id=asset_id,
                action=action,
                performed_by=performed_by,
                date=performed_at,
                description=description,
                details=details,
            )
        )
        return len(self.history)

    def add_maintenance(self, asset_id, *, type, scheduled_date, description, cost, vendor, performed_by):
        record = MaintenanceRecord(
            maintenance_id=len(self.maintenance) + 1,
            asset_id=asset_id,
            type=type,
            scheduled_date=scheduled_date,
            description=description,
            cost=cost,
            vendor=vendor,
            performed_by=performed_by,
        )
        self.maintenance.append(record)
        return record.maintenance_id

    def complete_maintenance(self, maintenance_id, *, completed_date, notes):
        self.maintenance = [
            replace(m, completed_date=completed_date, notes=notes or m.notes) if m.maintenance_id == maintenance_id else m
            for m in self.maintenance
        ]
        return True

    def status_totals(self, company_id):
        counts: dict = {}
        value = Decimal("0")
        for a in self.rows.values():
            if company_id is None or a.company_id == company_id:
                counts[a.status.value] = counts.get(a.status.value, 0) + 1
                value += a.purchase_cost
        return counts, value

    def category_totals(self, company_id):
        return []


class FakeUsersRepo:
    def get_by_id(self, user_id):
        users = {
            5: User(user_id=5, name="Eve", email="e@x.io", password_hash="x", role=Role.USER, company_id=1, company_code="X"),
            9: User(user_id=9, name="Zed", email="z@x.io", password_hash="x", role=Role.USER, company_id=2, company_code="Y"),
        }
        return users.get(int(user_id))


class FakeDepartmentsRepo:
    def get_by_id(self, department_id):
        depts = {1: Department(department_id=1, company_id=1, name="IT"), 2: Department(department_id=2, company_id=2, name="IT")}
        return depts.get(int(department_id))


def _actor(user_id=1, role=Role.ADMIN, company_id=1):
    return AuthContext(user_id=user_id, name="Admin", email="a@x.io", role=role, company_id=company_id, company_code="X")


def _service():
    repo = FakeAssetsRepo()
    return AssetService(repo, FakeUsersRepo(), FakeDepartmentsRepo(), clock=lambda: NOW), repo


def _data(**overrides):
    data = {"name": "ThinkPad T14", "category": "electronics", "serial_number": "SN-001", "purchase_cost": "1200.50"}
    data.update(overrides)
    return data


def test_generate_asset_tag_format():
    tag = generate_asset_tag(AssetCategory.IT_EQUIPMENT, NOW)
    assert re.fullmatch(r"IT_-\d{8}", tag)
    assert generate_asset_tag(AssetCategory.FURNITURE, NOW).startswith("FUR-")


def test_create_asset_generates_tag_and_records_history():
    svc, _ = _service()
    asset = svc.create(actor=_actor(), data=_data())

    assert asset.asset_tag.startswith("ELE-")
    assert asset.status == AssetStatus.AVAILABLE
    assert asset.purchase_cost == Decimal("1200.50")
    assert [h.action for h in asset.history] == ["created"]


def test_create_asset_checks_role_serial_and_cost():
    svc, _ = _service()
    with pytest.raises(AuthorizationError):
        svc.create(actor=_actor(role=Role.USER), data=_data())

    svc.create(actor=_actor(), data=_data())
    with pytest.raises(ValidationError):
        svc.create(actor=_actor(), data=_data())
    with pytest.raises(ValidationError):
        svc.create(actor=_actor(), data=_data(serial_number="SN-002", purchase_cost="-5"))
    with pytest.raises(ValidationError):
        svc.create(actor=_actor(), data=_data(serial_number="SN-003", category="spaceship"))


def test_update_records_changed_fields():
    svc, _ = _service()
    asset = svc.create(actor=_actor(), data=_data())
    asset = svc.update(actor=_actor(), asset_id=asset.asset_id, data={"location": "Floor 2", "notes": "spare"})

    assert asset.location == "Floor 2"
    assert asset.history[-1].details == {"changes": ["location: None -> Floor 2"]}


def test_assign_and_return_cycle():
    svc, _ = _service()
    asset = svc.create(actor=_actor(), data=_data())

    with pytest.raises(ValidationError):
        svc.assign(actor=_actor(), asset_id=asset.asset_id)
    with pytest.raises(AuthorizationError):
        svc.assign(actor=_actor(), asset_id=asset.asset_id, assigned_to=9)
    with pytest.raises(NotFoundError):
        svc.assign(actor=_actor(), asset_id=asset.asset_id, department_id=2)

    asset = svc.assign(
        actor=_actor(), asset_id=asset.asset_id, assigned_to=5, expected_return_date="2026-08-01"
    )
    assert asset.status == AssetStatus.ASSIGNED
    assert asset.assigned_to == 5
    assert asset.assigned_date == NOW
    assert asset.expected_return_date == date(2026, 8, 1)

    with pytest.raises(ValidationError):
        svc.assign(actor=_actor(), asset_id=asset.asset_id, assigned_to=5)

    # the holder may hand it back without a privileged role
    asset = svc.return_asset(actor=_actor(user_id=5, role=Role.USER), asset_id=asset.asset_id)
    assert asset.status == AssetStatus.AVAILABLE
    assert asset.assigned_to is None
    assert [h.action for h in asset.history] == ["created", "assigned", "returned"]

    with pytest.raises(ValidationError):
        svc.return_asset(actor=_actor(), asset_id=asset.asset_id)


def test_return_by_someone_else_is_denied():
    svc, _ = _service()
    asset = svc.create(actor=_actor(), data=_data())
    svc.assign(actor=_actor(), asset_id=asset.asset_id, assigned_to=5)
    with pytest.raises(AuthorizationError):
        svc.return_asset(actor=_actor(user_id=6, role=Role.USER), asset_id=asset.asset_id)


def test_maintenance_schedule_and_complete():
    svc, _ = _service()
    asset = svc.create(actor=_actor(), data=_data())

    with pytest.raises(ValidationError):
        svc.schedule_maintenance(actor=_actor(), asset_id=asset.asset_id, data={})

    asset = svc.schedule_maintenance(
        actor=_actor(),
        asset_id=asset.asset_id,
        data={"type": "repair", "scheduled_date": "2026-07-05", "cost": "99.90", "vendor": "FixIt"},
    )
    assert asset.status == AssetStatus.MAINTENANCE
    record = asset.maintenance_records[0]
    assert record.scheduled_date == date(2026, 7, 5)
    assert not record.is_completed

    with pytest.raises(NotFoundError):
        svc.complete_maintenance(actor=_actor(), asset_id=asset.asset_id, maintenance_id=42)

    asset = svc.complete_maintenance(
        actor=_actor(), asset_id=asset.asset_id, maintenance_id=record.maintenance_id, notes="Replaced screen"
    )
    assert asset.status == AssetStatus.AVAILABLE
    assert asset.maintenance_records[0].is_completed
    assert asset.maintenance_records[0].notes == "Replaced screen"

    history, maintenance = svc.history(actor=_actor(), asset_id=asset.asset_id)
    assert [h.action for h in history] == ["created", "maintenance", "maintenance"]
    assert len(maintenance) == 1


def test_bulk_delete_only_own_company_assets():
    svc, repo = _service()
    mine = svc.create(actor=_actor(), data=_data())
    theirs = svc.create(actor=_actor(company_id=2), data=_data(serial_number="SN-900"))

    with pytest.raises(ValidationError):
        svc.bulk_delete(actor=_actor(), asset_ids=[])
    with pytest.raises(AuthorizationError):
        svc.bulk_delete(actor=_actor(), asset_ids=[mine.asset_id, theirs.asset_id])

    assert svc.bulk_delete(actor=_actor(), asset_ids=[str(mine.asset_id)]) == 1
    assert list(repo.rows) == [theirs.asset_id]


def test_other_company_asset_is_denied():
    svc, _ = _service()
    asset = svc.create(actor=_actor(), data=_data())
    with pytest.raises(AuthorizationError):
        svc.get(actor=_actor(company_id=2), asset_id=asset.asset_id)


def test_list_paginates_and_caps_limit():
    svc, _ = _service()
    for i in range(3):
        svc.create(actor=_actor(), data=_data(serial_number=f"SN-{i}"))

    page = svc.list(actor=_actor(), filters={"page": "2", "limit": "2", "category": "all"})
    assert page.pagination.total == 3
    assert page.pagination.pages == 2
    assert [a.serial_number for a in page.assets] == ["SN-0"]

    capped = svc.list(actor=_actor(), filters={"limit": "1000"})
    assert capped.pagination.limit == 100


def test_stats_counts_statuses_and_value():
    svc, _ = _service()
    first = svc.create(actor=_actor(), data=_data())
    svc.create(actor=_actor(), data=_data(serial_number="SN-2", purchase_cost="100"))
    svc.assign(actor=_actor(), asset_id=first.asset_id, assigned_to=5)

    stats, categories = svc.stats(actor=_actor())
    assert stats.total == 2
    assert stats.available == 1
    assert stats.assigned == 1
    assert stats.total_value == Decimal("1300.50")
    assert categories == []
