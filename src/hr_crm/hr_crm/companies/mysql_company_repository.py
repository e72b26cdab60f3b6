from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone, update_clause
from .model import Company, CompanyStats
from .repository import CompanyRepository

_COLUMNS = """
    company_id, company_name, company_code, company_email, company_address, company_phone,
    owner_name, logo, company_domain, login_url, db_identifier, is_active, deactivated_at,
    subscription_expiry, created_at
"""

_UPDATABLE = (
    "company_name", "company_email", "company_address", "company_phone",
    "owner_name", "logo", "company_domain", "subscription_expiry",
)


def _row_to_company(row: dict) -> Company:
    return Company(
        company_id=int(row["company_id"]),
        company_name=row["company_name"],
        company_code=row["company_code"],
        company_email=row["company_email"],
        company_address=row["company_address"],
        company_phone=row["company_phone"],
        owner_name=row["owner_name"],
        logo=row.get("logo"),
        company_domain=row.get("company_domain"),
        login_url=row["login_url"],
        db_identifier=row["db_identifier"],
        is_active=as_bool(row.get("is_active")),
        deactivated_at=row.get("deactivated_at"),
        subscription_expiry=row["subscription_expiry"],
        created_at=row.get("created_at"),
    )


class MySQLCompanyRepository(CompanyRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _one(self, where: str, params: tuple) -> Optional[Company]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM companies WHERE {where} LIMIT 1", params)
            row = fetchone(cur)
            return _row_to_company(row) if row else None

    def get_by_id(self, company_id: int) -> Optional[Company]:
        return self._one("company_id=%s", (int(company_id),))

    def get_by_code(self, company_code: str) -> Optional[Company]:
        return self._one("company_code=%s", ((company_code or "").strip().upper(),))

    def find_by_identifier(self, identifier: str) -> Optional[Company]:
        ident = (identifier or "").strip()
        return self._one(
            "company_code=%s OR db_identifier=%s OR login_url LIKE %s",
            (ident.upper(), ident, f"%/company/{ident}/%"),
        )

    def find_conflict(
        self,
        *,
        company_name: Optional[str] = None,
        company_email: Optional[str] = None,
        company_phone: Optional[str] = None,
        exclude_id: Optional[int] = None,
    ) -> Optional[str]:
        checks = (
            ("companyEmail", "LOWER(company_email)=LOWER(%s)", company_email),
            ("companyPhone", "company_phone=%s", company_phone),
            ("companyName", "LOWER(company_name)=LOWER(%s)", company_name),
        )
        with db_cursor(self._conn_factory) as (_, cur):
            for field, cond, value in checks:
                if not value:
                    continue
                sql = f"SELECT company_id FROM companies WHERE {cond}"
                params: list = [value]
                if exclude_id is not None:
                    sql += " AND company_id<>%s"
                    params.append(int(exclude_id))
                cur.execute(sql + " LIMIT 1", tuple(params))
                if fetchone(cur):
                    return field
        return None

    def code_exists(self, company_code: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT 1 AS x FROM companies WHERE company_code=%s", (company_code,))
            return fetchone(cur) is not None

    def create(
        self,
        *,
        company_name: str,
        company_code: str,
        company_email: str,
        company_address: str,
        company_phone: str,
        owner_name: str,
        logo: Optional[str],
        company_domain: str,
        login_url: str,
        db_identifier: str,
        subscription_expiry: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO companies(company_name, company_code, company_email, company_address,
                                      company_phone, owner_name, logo, company_domain, login_url,
                                      db_identifier, is_active, subscription_expiry)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,1,%s)
                """,
                (company_name, company_code, company_email, company_address, company_phone,
                 owner_name, logo, company_domain, login_url, db_identifier, subscription_expiry),
            )
            return int(cur.lastrowid)

    def list_all(self) -> Sequence[Company]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM companies ORDER BY created_at DESC")
            return [_row_to_company(r) for r in fetchall(cur)]

    def update(self, company_id: int, changes: dict) -> bool:
        assignments, params = update_clause(changes, _UPDATABLE)
        if not assignments:
            return False
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE companies SET {assignments} WHERE company_id=%s", (*params, int(company_id)))
            return cur.rowcount > 0

    def set_active(self, company_id: int, *, is_active: bool, deactivated_at: Optional[datetime]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE companies SET is_active=%s, deactivated_at=%s WHERE company_id=%s",
                (1 if is_active else 0, deactivated_at, int(company_id)),
            )
            return cur.rowcount > 0

    def delete(self, company_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM companies WHERE company_id=%s", (int(company_id),))
            return cur.rowcount > 0

    def stats(self, company_id: int) -> CompanyStats:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT
                  (SELECT COUNT(*) FROM users WHERE company_id=%s) AS total_users,
                  (SELECT COUNT(*) FROM users WHERE company_id=%s AND is_active=1) AS active_users,
                  (SELECT COUNT(*) FROM departments WHERE company_id=%s AND is_active=1) AS departments,
                  (SELECT COUNT(*) FROM job_roles WHERE company_id=%s AND is_active=1) AS job_roles,
                  (SELECT COUNT(*) FROM assets WHERE company_id=%s) AS assets
                """,
                (company_id,) * 5,
            )
            row = fetchone(cur) or {}
            return CompanyStats(
                total_users=int(row.get("total_users") or 0),
                active_users=int(row.get("active_users") or 0),
                departments=int(row.get("departments") or 0),
                job_roles=int(row.get("job_roles") or 0),
                assets=int(row.get("assets") or 0),
            )
