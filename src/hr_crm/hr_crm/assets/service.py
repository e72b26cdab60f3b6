from __future__ import annotations

import logging
import math
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from ..auth.context import AuthContext
from ..common.datetime_utils import now_local, parse_iso_datetime
from ..common.validators import optional_int, optional_str, parse_choice, parse_int
from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..core.enums import AssetCategory, AssetCondition, AssetStatus, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..departments.repository import DepartmentRepository
from ..users.repository import UserRepository
from .model import Asset, AssetHistoryEntry, AssetPage, AssetStats, CategoryStat, MaintenanceRecord, Pagination
from .repository import AssetRepository

logger = logging.getLogger(__name__)

_WRITE_ROLES = (Role.ADMIN, Role.HR, Role.MANAGER)

_TEXT_FIELDS = ("model", "supplier", "manufacturer", "location", "description", "notes")
_DATE_FIELDS = ("purchase_date", "warranty_expiry", "expected_return_date")


def generate_asset_tag(category: AssetCategory, now: datetime) -> str:
    """``ELE-12345678``: category prefix plus the last eight digits of the millisecond timestamp."""
    millis = str(int(now.timestamp() * 1000))
    return f"{category.value[:3].upper()}-{millis[-8:]}"


def _optional_date(value, field_name: str) -> Optional[date]:
    if value in (None, ""):
        return None
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    return parse_iso_datetime(value, field_name).date()


def _money(value, field_name: str) -> Optional[Decimal]:
    if value in (None, ""):
        return None
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"{field_name} must be a number")
    if amount < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    return amount


def _filter(enum_cls, value, field_name: str):
    if value in (None, "") or str(value).lower() == "all":
        return None
    return parse_choice(enum_cls, value, field_name)


class AssetService:
    def __init__(
        self,
        assets: AssetRepository,
        users: UserRepository,
        departments: DepartmentRepository,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._assets = assets
        self._users = users
        self._departments = departments
        self._clock = clock

    def _load(self, actor: AuthContext, asset_id) -> Asset:
        asset = self._assets.get_by_id(parse_int(asset_id, "Asset id"))
        if not asset:
            raise NotFoundError("Asset not found")
        if not actor.can_access_company(asset.company_id):
            raise AuthorizationError("Access denied")
        return asset

    def _record(self, asset_id: int, actor: AuthContext, action: str, description: str, details=None) -> None:
        self._assets.add_history(
            asset_id,
            action=action,
            performed_by=actor.user_id,
            performed_at=self._clock(),
            description=description,
            details=details,
        )

    def _clean(self, data: dict, *, partial: bool) -> dict:
        clean: dict = {}
        if "name" in data or not partial:
            name = optional_str(data.get("name"))
            if not name:
                raise ValidationError("Asset name is required")
            clean["name"] = name
        if "category" in data or not partial:
            clean["category"] = parse_choice(AssetCategory, data.get("category"), "category")
        if "serial_number" in data or not partial:
            serial = optional_str(data.get("serial_number"))
            if not serial:
                raise ValidationError("Serial number is required")
            clean["serial_number"] = serial
        if "asset_tag" in data:
            tag = optional_str(data.get("asset_tag"))
            if tag:
                clean["asset_tag"] = tag.upper()
        if "purchase_cost" in data:
            clean["purchase_cost"] = _money(data.get("purchase_cost"), "Purchase cost") or Decimal("0")
        if "condition" in data or not partial:
            clean["condition"] = parse_choice(AssetCondition, data.get("condition"), "condition", default=AssetCondition.GOOD)
        if "status" in data or not partial:
            clean["status"] = parse_choice(AssetStatus, data.get("status"), "status", default=AssetStatus.AVAILABLE)
        for key in _DATE_FIELDS:
            if key in data:
                clean[key] = _optional_date(data.get(key), key)
        for key in _TEXT_FIELDS:
            if key in data:
                clean[key] = optional_str(data.get(key))
        if "department_id" in data:
            clean["department_id"] = optional_int(data.get("department_id"), "Department")
        return clean

    def _ensure_serial_free(self, serial_number: str, *, asset_id: Optional[int] = None) -> None:
        existing = self._assets.get_by_serial(serial_number)
        if existing and existing.asset_id != asset_id:
            raise ValidationError("Asset with this serial number already exists")

    def list(self, *, actor: AuthContext, filters: dict) -> AssetPage:
        show_all = str(filters.get("show_all", "")).lower() == "true"
        company_id = None if (actor.is_super_admin and show_all) else actor.company_id

        page = max(1, optional_int(filters.get("page"), "page") or 1)
        limit = min(MAX_PAGE_SIZE, max(1, optional_int(filters.get("limit"), "limit") or DEFAULT_PAGE_SIZE))
        department = filters.get("department")
        assigned_to = filters.get("assigned_to")
        assets, total = self._assets.list(
            company_id,
            category=_filter(AssetCategory, filters.get("category"), "category"),
            status=_filter(AssetStatus, filters.get("status"), "status"),
            department_id=None if department == "all" else optional_int(department, "department"),
            assigned_to=None if assigned_to == "all" else optional_int(assigned_to, "assignedTo"),
            search=optional_str(filters.get("search")),
            offset=(page - 1) * limit,
            limit=limit,
        )
        return AssetPage(
            assets=tuple(assets),
            pagination=Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit)),
        )

    def get(self, *, actor: AuthContext, asset_id) -> Asset:
        return self._load(actor, asset_id)

    def create(self, *, actor: AuthContext, data: dict) -> Asset:
        actor.require_role(*_WRITE_ROLES)
        if actor.company_id is None:
            raise ValidationError("User is not associated with a company")
        fields = self._clean(data, partial=False)
        self._ensure_serial_free(fields["serial_number"])
        fields.setdefault("asset_tag", generate_asset_tag(fields["category"], self._clock()))

        asset_id = self._assets.create(company_id=actor.company_id, created_by=actor.user_id, fields=fields)
        self._record(asset_id, actor, "created", f"Asset created by {actor.name}")
        logger.info("Asset %s (%s) created by user %s", asset_id, fields["asset_tag"], actor.user_id)
        return self._assets.get_by_id(asset_id)

    def update(self, *, actor: AuthContext, asset_id, data: dict) -> Asset:
        actor.require_role(*_WRITE_ROLES)
        asset = self._load(actor, asset_id)
        changes = self._clean(data, partial=True)
        if "serial_number" in changes:
            self._ensure_serial_free(changes["serial_number"], asset_id=asset.asset_id)

        changed: List[str] = []
        for key, value in changes.items():
            old = getattr(asset, key)
            if key != "notes" and old != value:
                changed.append(f"{key}: {getattr(old, 'value', old)} -> {getattr(value, 'value', value)}")

        self._assets.update(asset.asset_id, {**changes, "updated_by": actor.user_id})
        self._record(asset.asset_id, actor, "updated", f"Asset updated by {actor.name}", {"changes": changed})
        return self._assets.get_by_id(asset.asset_id)

    def delete(self, *, actor: AuthContext, asset_id) -> None:
        actor.require_role(*_WRITE_ROLES)
        asset = self._load(actor, asset_id)
        self._assets.delete(asset.asset_id)
        logger.info("Asset %s deleted by user %s", asset.asset_id, actor.user_id)

    def bulk_delete(self, *, actor: AuthContext, asset_ids: Optional[Iterable]) -> int:
        actor.require_role(*_WRITE_ROLES)
        ids = sorted({parse_int(i, "Asset id") for i in (asset_ids or [])})
        if not ids:
            raise ValidationError("No assets selected for deletion")
        if not actor.is_super_admin and self._assets.count_owned(ids, actor.company_id) != len(ids):
            raise AuthorizationError("Some assets do not belong to your company")
        return self._assets.delete_many(ids)

    def assign(
        self,
        *,
        actor: AuthContext,
        asset_id,
        assigned_to=None,
        department_id=None,
        notes: Optional[str] = None,
        expected_return_date=None,
    ) -> Asset:
        actor.require_role(*_WRITE_ROLES)
        asset = self._load(actor, asset_id)
        if asset.status != AssetStatus.AVAILABLE:
            raise ValidationError(f"Asset is {asset.status.value} and cannot be assigned")

        user_id = optional_int(assigned_to, "assignedTo")
        dept_id = optional_int(department_id, "department")
        if user_id is None and dept_id is None:
            raise ValidationError("assignedTo or department is required")
        if user_id is not None:
            user = self._users.get_by_id(user_id)
            if not user:
                raise NotFoundError("User not found")
            if user.company_id != asset.company_id:
                raise AuthorizationError("User does not belong to your company")
        if dept_id is not None:
            dept = self._departments.get_by_id(dept_id)
            if not dept or dept.company_id != asset.company_id:
                raise NotFoundError("Department not found")

        self._assets.update(
            asset.asset_id,
            {
                "assigned_to": user_id,
                "department_id": dept_id,
                "assigned_date": self._clock(),
                "expected_return_date": _optional_date(expected_return_date, "expectedReturnDate"),
                "status": AssetStatus.ASSIGNED,
                "updated_by": actor.user_id,
            },
        )
        self._record(
            asset.asset_id,
            actor,
            "assigned",
            f"Asset assigned to {'user' if user_id is not None else 'department'}",
            {"assignedTo": user_id, "department": dept_id, "notes": optional_str(notes)},
        )
        return self._assets.get_by_id(asset.asset_id)

    def return_asset(self, *, actor: AuthContext, asset_id) -> Asset:
        asset = self._load(actor, asset_id)
        if asset.status != AssetStatus.ASSIGNED:
            raise ValidationError("Asset is not currently assigned")
        if not actor.is_privileged and asset.assigned_to != actor.user_id:
            raise AuthorizationError("Access denied")

        self._assets.update(
            asset.asset_id,
            {
                "assigned_to": None,
                "assigned_date": None,
                "expected_return_date": None,
                "status": AssetStatus.AVAILABLE,
                "updated_by": actor.user_id,
            },
        )
        self._record(asset.asset_id, actor, "returned", f"Asset returned by {actor.name}")
        return self._assets.get_by_id(asset.asset_id)

    def schedule_maintenance(self, *, actor: AuthContext, asset_id, data: dict) -> Asset:
        actor.require_role(*_WRITE_ROLES)
        asset = self._load(actor, asset_id)
        kind = optional_str(data.get("type"))
        if not kind:
            raise ValidationError("Maintenance type is required")
        scheduled = _optional_date(data.get("scheduled_date"), "scheduledDate")
        cost = _money(data.get("cost"), "Cost")
        description = optional_str(data.get("description"))
        vendor = optional_str(data.get("vendor"))

        self._assets.add_maintenance(
            asset.asset_id,
            type=kind,
            scheduled_date=scheduled,
            description=description,
            cost=cost,
            vendor=vendor,
            performed_by=actor.user_id,
        )
        changes: dict = {"updated_by": actor.user_id}
        if asset.status in (AssetStatus.AVAILABLE, AssetStatus.ASSIGNED):
            changes["status"] = AssetStatus.MAINTENANCE
        self._assets.update(asset.asset_id, changes)
        self._record(
            asset.asset_id,
            actor,
            "maintenance",
            f"Maintenance scheduled: {kind}",
            {
                "type": kind,
                "scheduledDate": scheduled.isoformat() if scheduled else None,
                "description": description,
                "cost": float(cost) if cost is not None else None,
                "vendor": vendor,
            },
        )
        return self._assets.get_by_id(asset.asset_id)

    def complete_maintenance(self, *, actor: AuthContext, asset_id, maintenance_id, notes: Optional[str] = None) -> Asset:
        actor.require_role(*_WRITE_ROLES)
        asset = self._load(actor, asset_id)
        record_id = parse_int(maintenance_id, "Maintenance id")
        if not any(r.maintenance_id == record_id for r in asset.maintenance_records):
            raise NotFoundError("Maintenance record not found")

        self._assets.complete_maintenance(record_id, completed_date=self._clock(), notes=optional_str(notes))
        self._assets.update(asset.asset_id, {"status": AssetStatus.AVAILABLE, "updated_by": actor.user_id})
        self._record(asset.asset_id, actor, "maintenance", "Maintenance completed")
        return self._assets.get_by_id(asset.asset_id)

    def history(
        self, *, actor: AuthContext, asset_id
    ) -> Tuple[Sequence[AssetHistoryEntry], Sequence[MaintenanceRecord]]:
        asset = self._load(actor, asset_id)
        return asset.history, asset.maintenance_records

    def stats(self, *, actor: AuthContext) -> Tuple[AssetStats, Sequence[CategoryStat]]:
        company_id = None if actor.is_super_admin else actor.company_id
        counts, total_value = self._assets.status_totals(company_id)
        stats = AssetStats(
            total=sum(counts.values()),
            available=counts.get(AssetStatus.AVAILABLE.value, 0),
            assigned=counts.get(AssetStatus.ASSIGNED.value, 0),
            maintenance=counts.get(AssetStatus.MAINTENANCE.value, 0),
            damaged=counts.get(AssetStatus.DAMAGED.value, 0),
            retired=counts.get(AssetStatus.RETIRED.value, 0),
            reserved=counts.get(AssetStatus.RESERVED.value, 0),
            total_value=total_value,
        )
        return stats, self._assets.category_totals(company_id)
