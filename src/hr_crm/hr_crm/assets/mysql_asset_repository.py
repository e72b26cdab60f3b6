from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ..core.enums import AssetCategory, AssetCondition, AssetStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json, placeholders
from .model import Asset, AssetHistoryEntry, CategoryStat, MaintenanceRecord
from .repository import AssetRepository

_SELECT = """
    SELECT a.asset_id, a.company_id, a.name, a.category, a.model, a.serial_number, a.asset_tag,
           a.purchase_date, a.purchase_cost, a.warranty_expiry, a.supplier, a.manufacturer,
           a.`condition`, a.status, a.assigned_to, a.assigned_date, a.expected_return_date,
           a.department_id, a.location, a.description, a.notes, a.created_by, a.updated_by,
           a.created_at, a.updated_at, u.name AS assigned_to_name, d.name AS department_name
    FROM assets a
    LEFT JOIN users u ON u.user_id = a.assigned_to
    LEFT JOIN departments d ON d.department_id = a.department_id
"""

_WRITABLE = (
    "name",
    "category",
    "model",
    "serial_number",
    "asset_tag",
    "purchase_date",
    "purchase_cost",
    "warranty_expiry",
    "supplier",
    "manufacturer",
    "condition",
    "status",
    "assigned_to",
    "assigned_date",
    "expected_return_date",
    "department_id",
    "location",
    "description",
    "notes",
    "updated_by",
)


def _row_to_asset(row: dict) -> Asset:
    return Asset(
        asset_id=int(row["asset_id"]),
        company_id=int(row["company_id"]),
        name=row["name"],
        category=AssetCategory(row["category"]),
        serial_number=row["serial_number"],
        asset_tag=row["asset_tag"],
        model=row.get("model"),
        purchase_date=row.get("purchase_date"),
        purchase_cost=Decimal(str(row.get("purchase_cost") or 0)),
        warranty_expiry=row.get("warranty_expiry"),
        supplier=row.get("supplier"),
        manufacturer=row.get("manufacturer"),
        condition=AssetCondition(row.get("condition") or AssetCondition.GOOD.value),
        status=AssetStatus(row.get("status") or AssetStatus.AVAILABLE.value),
        assigned_to=row.get("assigned_to"),
        assigned_date=row.get("assigned_date"),
        expected_return_date=row.get("expected_return_date"),
        department_id=row.get("department_id"),
        location=row.get("location"),
        description=row.get("description"),
        notes=row.get("notes"),
        created_by=row.get("created_by"),
        updated_by=row.get("updated_by"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
        assigned_to_name=row.get("assigned_to_name"),
        department_name=row.get("department_name"),
    )


def _row_to_history(row: dict) -> AssetHistoryEntry:
    return AssetHistoryEntry(
        history_id=int(row["history_id"]),
        asset_id=int(row["asset_id"]),
        action=row["action"],
        performed_by=row.get("performed_by"),
        date=row["performed_at"],
        description=row.get("description"),
        details=load_json(row.get("details"), {}),
        performed_by_name=row.get("performed_by_name"),
    )


def _row_to_maintenance(row: dict) -> MaintenanceRecord:
    cost = row.get("cost")
    return MaintenanceRecord(
        maintenance_id=int(row["maintenance_id"]),
        asset_id=int(row["asset_id"]),
        type=row["type"],
        scheduled_date=row.get("scheduled_date"),
        completed_date=row.get("completed_date"),
        description=row.get("description"),
        cost=Decimal(str(cost)) if cost is not None else None,
        vendor=row.get("vendor"),
        performed_by=row.get("performed_by"),
        notes=row.get("notes"),
    )


def _db_values(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {k: (v.value if hasattr(v, "value") else v) for k, v in fields.items() if k in _WRITABLE}


class MySQLAssetRepository(AssetRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, asset_id: int) -> Optional[Asset]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE a.asset_id=%s", (int(asset_id),))
            row = fetchone(cur)
        if not row:
            return None
        asset = _row_to_asset(row)
        return replace(
            asset,
            history=tuple(self.list_history(asset.asset_id)),
            maintenance_records=tuple(self.list_maintenance(asset.asset_id)),
        )

    def get_by_serial(self, serial_number: str) -> Optional[Asset]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE a.serial_number=%s", (serial_number,))
            row = fetchone(cur)
            return _row_to_asset(row) if row else None

    def list(
        self,
        company_id: Optional[int],
        *,
        category: Optional[AssetCategory] = None,
        status: Optional[AssetStatus] = None,
        department_id: Optional[int] = None,
        assigned_to: Optional[int] = None,
        search: Optional[str] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Tuple[Sequence[Asset], int]:
        where: List[str] = []
        params: list = []
        if company_id is not None:
            where.append("a.company_id=%s")
            params.append(int(company_id))
        if category is not None:
            where.append("a.category=%s")
            params.append(category.value)
        if status is not None:
            where.append("a.status=%s")
            params.append(status.value)
        if department_id is not None:
            where.append("a.department_id=%s")
            params.append(int(department_id))
        if assigned_to is not None:
            where.append("a.assigned_to=%s")
            params.append(int(assigned_to))
        if search:
            like = f"%{search}%"
            where.append(
                "(a.name LIKE %s OR a.model LIKE %s OR a.serial_number LIKE %s OR a.asset_tag LIKE %s OR a.location LIKE %s)"
            )
            params.extend([like] * 5)
        clause = (" WHERE " + " AND ".join(where)) if where else ""

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS cnt FROM assets a" + clause, tuple(params))
            total = int(fetchone(cur)["cnt"])
            cur.execute(
                _SELECT + clause + " ORDER BY a.created_at DESC, a.asset_id DESC LIMIT %s OFFSET %s",
                (*params, int(limit), int(offset)),
            )
            return [_row_to_asset(r) for r in fetchall(cur)], total

    def create(self, *, company_id: int, created_by: Optional[int], fields: Dict[str, Any]) -> int:
        values = _db_values(fields)
        cols = ["company_id", "created_by", *values.keys()]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO assets({', '.join(f'`{c}`' for c in cols)}) VALUES({placeholders(cols)})",
                (int(company_id), created_by, *values.values()),
            )
            return int(cur.lastrowid)

    def update(self, asset_id: int, changes: Dict[str, Any]) -> bool:
        values = _db_values(changes)
        if not values:
            return False
        assignments = ", ".join(f"`{c}`=%s" for c in values)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE assets SET {assignments} WHERE asset_id=%s", (*values.values(), int(asset_id)))
            return cur.rowcount > 0

    def delete(self, asset_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM assets WHERE asset_id=%s", (int(asset_id),))
            return cur.rowcount > 0

    def delete_many(self, asset_ids: Iterable[int]) -> int:
        ids = [int(i) for i in asset_ids]
        if not ids:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"DELETE FROM assets WHERE asset_id IN ({placeholders(ids)})", tuple(ids))
            return cur.rowcount

    def count_owned(self, asset_ids: Iterable[int], company_id: int) -> int:
        ids = [int(i) for i in asset_ids]
        if not ids:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT COUNT(*) AS cnt FROM assets WHERE company_id=%s AND asset_id IN ({placeholders(ids)})",
                (int(company_id), *ids),
            )
            return int(fetchone(cur)["cnt"])

    def add_history(
        self,
        asset_id: int,
        *,
        action: str,
        performed_by: Optional[int],
        performed_at: datetime,
        description: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO asset_history(asset_id, action, performed_by, performed_at, description, details)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(asset_id),
                    action,
                    performed_by,
                    performed_at,
                    description,
                    dump_json(details) if details is not None else None,
                ),
            )
            return int(cur.lastrowid)

    def list_history(self, asset_id: int) -> Sequence[AssetHistoryEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT h.history_id, h.asset_id, h.action, h.performed_by, h.performed_at, h.description,
                       h.details, u.name AS performed_by_name
                FROM asset_history h
                LEFT JOIN users u ON u.user_id = h.performed_by
                WHERE h.asset_id=%s
                ORDER BY h.performed_at, h.history_id
                """,
                (int(asset_id),),
            )
            return [_row_to_history(r) for r in fetchall(cur)]

    def add_maintenance(
        self,
        asset_id: int,
        *,
        type: str,
        scheduled_date: Optional[date],
        description: Optional[str],
        cost: Optional[Decimal],
        vendor: Optional[str],
        performed_by: Optional[int],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO asset_maintenance(asset_id, type, scheduled_date, description, cost, vendor, performed_by)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (int(asset_id), type, scheduled_date, description, cost, vendor, performed_by),
            )
            return int(cur.lastrowid)

    def list_maintenance(self, asset_id: int) -> Sequence[MaintenanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT maintenance_id, asset_id, type, scheduled_date, completed_date, description, cost,
                       vendor, performed_by, notes
                FROM asset_maintenance WHERE asset_id=%s ORDER BY maintenance_id
                """,
                (int(asset_id),),
            )
            return [_row_to_maintenance(r) for r in fetchall(cur)]

    def complete_maintenance(self, maintenance_id: int, *, completed_date: datetime, notes: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE asset_maintenance SET completed_date=%s, notes=COALESCE(%s, notes) WHERE maintenance_id=%s",
                (completed_date, notes, int(maintenance_id)),
            )
            return cur.rowcount > 0

    def status_totals(self, company_id: Optional[int]) -> Tuple[Dict[str, int], Decimal]:
        sql = "SELECT status, COUNT(*) AS cnt, COALESCE(SUM(purchase_cost), 0) AS value FROM assets"
        params: tuple = ()
        if company_id is not None:
            sql += " WHERE company_id=%s"
            params = (int(company_id),)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " GROUP BY status", params)
            rows = fetchall(cur)
        counts = {r["status"]: int(r["cnt"]) for r in rows}
        value = sum((Decimal(str(r["value"])) for r in rows), Decimal("0"))
        return counts, value

    def category_totals(self, company_id: Optional[int]) -> Sequence[CategoryStat]:
        sql = "SELECT category, COUNT(*) AS cnt, COALESCE(SUM(purchase_cost), 0) AS value FROM assets"
        params: tuple = ()
        if company_id is not None:
            sql += " WHERE company_id=%s"
            params = (int(company_id),)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " GROUP BY category ORDER BY category", params)
            return [
                CategoryStat(category=r["category"], count=int(r["cnt"]), value=Decimal(str(r["value"])))
                for r in fetchall(cur)
            ]
