from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional, Sequence

from ..core.constants import DEFAULT_MENU_ICON
from ..core.enums import MenuSection
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, dump_json, fetchall, fetchone, load_json
from .model import MenuAccess, MenuItem, SidebarConfig, SidebarMenuItem
from .repository import MenuAccessRepository, MenuItemRepository, SidebarConfigRepository

_MENU_COLUMNS = """
    menu_item_id, item_key, name, path, icon, section, section_name, is_active, sort_order,
    created_at, updated_at
"""

# field name -> column name
_MENU_WRITABLE = {
    "key": "item_key",
    "name": "name",
    "path": "path",
    "icon": "icon",
    "section": "section",
    "section_name": "section_name",
    "is_active": "is_active",
    "order": "sort_order",
}


def _row_to_menu_item(row: dict) -> MenuItem:
    return MenuItem(
        menu_item_id=int(row["menu_item_id"]),
        key=row["item_key"],
        name=row["name"],
        path=row["path"],
        icon=row.get("icon") or DEFAULT_MENU_ICON,
        section=MenuSection(row.get("section") or MenuSection.MAIN.value),
        section_name=row.get("section_name"),
        is_active=as_bool(row.get("is_active")),
        order=int(row.get("sort_order") or 0),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def _menu_values(fields: Dict[str, Any]) -> Dict[str, Any]:
    out = {}
    for name, column in _MENU_WRITABLE.items():
        if name in fields:
            value = fields[name]
            if isinstance(value, bool):
                value = 1 if value else 0
            out[column] = value.value if hasattr(value, "value") else value
    return out


class MySQLMenuItemRepository(MenuItemRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, menu_item_id: int) -> Optional[MenuItem]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_MENU_COLUMNS} FROM menu_items WHERE menu_item_id=%s", (int(menu_item_id),))
            row = fetchone(cur)
            return _row_to_menu_item(row) if row else None

    def find_conflict(self, *, name: Optional[str], path: Optional[str], exclude_id: Optional[int] = None) -> Optional[MenuItem]:
        where = ["(name=%s OR path=%s)"]
        params: list = [name, path]
        if exclude_id is not None:
            where.append("menu_item_id<>%s")
            params.append(int(exclude_id))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_MENU_COLUMNS} FROM menu_items WHERE {' AND '.join(where)} LIMIT 1", tuple(params))
            row = fetchone(cur)
            return _row_to_menu_item(row) if row else None

    def key_exists(self, key: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT 1 FROM menu_items WHERE item_key=%s LIMIT 1", (key,))
            return fetchone(cur) is not None

    def list(self, *, active_only: bool) -> Sequence[MenuItem]:
        sql = f"SELECT {_MENU_COLUMNS} FROM menu_items"
        if active_only:
            sql += " WHERE is_active=1"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY sort_order, menu_item_id")
            return [_row_to_menu_item(r) for r in fetchall(cur)]

    def create(self, fields: Dict[str, Any]) -> int:
        values = _menu_values(fields)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO menu_items({', '.join(values)}) VALUES({', '.join(['%s'] * len(values))})",
                tuple(values.values()),
            )
            return int(cur.lastrowid)

    def update(self, menu_item_id: int, changes: Dict[str, Any]) -> bool:
        values = _menu_values(changes)
        if not values:
            return False
        assignments = ", ".join(f"{c}=%s" for c in values)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE menu_items SET {assignments} WHERE menu_item_id=%s",
                (*values.values(), int(menu_item_id)),
            )
            return cur.rowcount > 0

    def set_active(self, menu_item_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE menu_items SET is_active=%s WHERE menu_item_id=%s",
                (1 if is_active else 0, int(menu_item_id)),
            )
            return cur.rowcount > 0


_ACCESS_COLUMNS = "access_id, company_id, department, job_role, access_items, created_by, updated_by, updated_at"


def _row_to_access(row: dict) -> MenuAccess:
    return MenuAccess(
        access_id=int(row["access_id"]),
        company_id=row.get("company_id"),
        department=row["department"],
        job_role=row["job_role"],
        access_items=tuple(load_json(row.get("access_items"))),
        created_by=row.get("created_by"),
        updated_by=row.get("updated_by"),
        updated_at=row.get("updated_at"),
    )


class MySQLMenuAccessRepository(MenuAccessRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, access_id: int) -> Optional[MenuAccess]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_ACCESS_COLUMNS} FROM menu_access WHERE access_id=%s", (int(access_id),))
            row = fetchone(cur)
            return _row_to_access(row) if row else None

    def find(self, company_id: Optional[int], department: str, job_role: str) -> Optional[MenuAccess]:
        company_clause = "company_id IS NULL" if company_id is None else "company_id=%s"
        params: list = [] if company_id is None else [int(company_id)]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_ACCESS_COLUMNS} FROM menu_access WHERE {company_clause} AND department=%s AND job_role=%s",
                (*params, department, job_role),
            )
            row = fetchone(cur)
            return _row_to_access(row) if row else None

    def list(self, company_id: Optional[int]) -> Sequence[MenuAccess]:
        sql = f"SELECT {_ACCESS_COLUMNS} FROM menu_access"
        params: tuple = ()
        if company_id is not None:
            sql += " WHERE company_id=%s"
            params = (int(company_id),)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY COALESCE(updated_at, created_at) DESC", params)
            return [_row_to_access(r) for r in fetchall(cur)]

    def create(
        self,
        *,
        company_id: Optional[int],
        department: str,
        job_role: str,
        access_items: Sequence[str],
        created_by: Optional[int],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO menu_access(company_id, department, job_role, access_items, created_by, updated_by)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (company_id, department, job_role, dump_json(list(access_items)), created_by, created_by),
            )
            return int(cur.lastrowid)

    def update_items(self, access_id: int, *, access_items: Sequence[str], updated_by: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE menu_access SET access_items=%s, updated_by=%s, updated_at=NOW() WHERE access_id=%s",
                (dump_json(list(access_items)), updated_by, int(access_id)),
            )
            return cur.rowcount > 0

    def delete(self, access_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM menu_access WHERE access_id=%s", (int(access_id),))
            return cur.rowcount > 0


_SIDEBAR_SELECT = """
    SELECT s.config_id, s.company_id, s.department_id, s.role, s.menu_items, s.is_active, s.created_by,
           s.updated_by, s.created_at, s.updated_at, c.company_name, d.name AS department_name
    FROM sidebar_configs s
    LEFT JOIN companies c ON c.company_id = s.company_id
    LEFT JOIN departments d ON d.department_id = s.department_id
"""


def _row_to_sidebar(row: dict) -> SidebarConfig:
    return SidebarConfig(
        config_id=int(row["config_id"]),
        company_id=int(row["company_id"]),
        department_id=int(row["department_id"]),
        role=row["role"],
        menu_items=tuple(SidebarMenuItem(**item) for item in load_json(row.get("menu_items"))),
        is_active=as_bool(row.get("is_active")),
        created_by=row.get("created_by"),
        updated_by=row.get("updated_by"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
        company_name=row.get("company_name"),
        department_name=row.get("department_name"),
    )


def _dump_items(menu_items: Sequence[SidebarMenuItem]) -> str:
    return dump_json([asdict(item) for item in menu_items])


class MySQLSidebarConfigRepository(SidebarConfigRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, config_id: int) -> Optional[SidebarConfig]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SIDEBAR_SELECT + " WHERE s.config_id=%s", (int(config_id),))
            row = fetchone(cur)
            return _row_to_sidebar(row) if row else None

    def find(self, company_id: int, department_id: int, role: str) -> Optional[SidebarConfig]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SIDEBAR_SELECT + " WHERE s.company_id=%s AND s.department_id=%s AND s.role=%s",
                (int(company_id), int(department_id), role),
            )
            row = fetchone(cur)
            return _row_to_sidebar(row) if row else None

    def list(
        self,
        *,
        company_id: Optional[int] = None,
        department_id: Optional[int] = None,
        role: Optional[str] = None,
    ) -> Sequence[SidebarConfig]:
        where: List[str] = []
        params: list = []
        if company_id is not None:
            where.append("s.company_id=%s")
            params.append(int(company_id))
        if department_id is not None:
            where.append("s.department_id=%s")
            params.append(int(department_id))
        if role:
            where.append("s.role=%s")
            params.append(role)
        sql = _SIDEBAR_SELECT
        if where:
            sql += " WHERE " + " AND ".join(where)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY s.created_at DESC, s.config_id DESC", tuple(params))
            return [_row_to_sidebar(r) for r in fetchall(cur)]

    def create(
        self,
        *,
        company_id: int,
        department_id: int,
        role: str,
        menu_items: Sequence[SidebarMenuItem],
        created_by: Optional[int],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO sidebar_configs(company_id, department_id, role, menu_items, created_by, updated_by)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(company_id), int(department_id), role, _dump_items(menu_items), created_by, created_by),
            )
            return int(cur.lastrowid)

    def update_items(self, config_id: int, *, menu_items: Sequence[SidebarMenuItem], updated_by: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE sidebar_configs SET menu_items=%s, updated_by=%s WHERE config_id=%s",
                (_dump_items(menu_items), updated_by, int(config_id)),
            )
            return cur.rowcount > 0

    def delete(self, config_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM sidebar_configs WHERE config_id=%s", (int(config_id),))
            return cur.rowcount > 0
