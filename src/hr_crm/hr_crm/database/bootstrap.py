from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable

import mysql.connector
from werkzeug.security import generate_password_hash

from ..core.enums import Role
from .connection import DBConfig

logger = logging.getLogger(__name__)

DEMO_COMPANY_CODE = "DEMOCO"
DEMO_PASSWORD = "Password@123"


def _connect(target: DBConfig, *, with_database: bool = True):
    kwargs = dict(
        host=target.host,
        port=target.port,
        user=target.user,
        password=target.password,
        charset=target.charset,
        use_pure=True,
    )
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def _strip_create_db_and_use(sql: str) -> str:
    # The configured database name wins over whatever the .sql file hardcodes.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _iter_sql_statements(sql: str) -> Iterable[str]:
    """Split a script on ``;`` while ignoring separators inside quotes and ``--`` comments."""
    buf: list[str] = []
    in_single = False
    in_double = False
    in_comment = False
    escape = False
    prev = ""

    for ch in sql:
        if in_comment:
            if ch == "\n":
                in_comment = False
                buf.append(ch)
            prev = ch
            continue

        if escape:
            buf.append(ch)
            escape = False
            prev = ch
            continue

        if ch == "\\" and (in_single or in_double):
            buf.append(ch)
            escape = True
            prev = ch
            continue

        if ch == "-" and prev == "-" and not in_single and not in_double:
            buf.pop()
            in_comment = True
            prev = ""
            continue

        if ch == "'" and not in_double:
            in_single = not in_single
        elif ch == '"' and not in_single:
            in_double = not in_double
        elif ch == ";" and not in_single and not in_double:
            stmt = "".join(buf).strip()
            buf.clear()
            prev = ch
            if stmt:
                yield stmt
            continue

        buf.append(ch)
        prev = ch

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _exec_sql(cur, sql: str) -> int:
    count = 0
    for stmt in _iter_sql_statements(sql):
        cur.execute(stmt)
        count += 1
    return count


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_dict(db_config)
    conn = _connect(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def _run_script(db_config: dict, path: Path) -> int:
    target = DBConfig.from_dict(db_config)
    sql = _strip_create_db_and_use(path.read_text(encoding="utf-8"))
    conn = _connect(target)
    try:
        cur = conn.cursor()
        count = _exec_sql(cur, sql)
        conn.commit()
        return count
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    count = _run_script(db_config, Path(schema_path))
    logger.info("Applied %s schema statements to %s", count, DBConfig.from_dict(db_config).describe())


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    count = _run_script(db_config, Path(seed_path))
    logger.info("Applied %s seed statements", count)


def ensure_demo_users(db_config: dict) -> None:
    """Create or refresh the demo accounts (platform super-admin, company admin, sales agent)."""
    target = DBConfig.from_dict(db_config)
    conn = _connect(target)
    try:
        cur = conn.cursor(dictionary=True)

        cur.execute("SELECT company_id FROM companies WHERE company_code=%s", (DEMO_COMPANY_CODE,))
        company = cur.fetchone()
        if not company:
            raise RuntimeError(f"Missing demo company {DEMO_COMPANY_CODE}; run seed.sql first")
        company_id = int(company["company_id"])

        def department_id(name: str) -> int:
            cur.execute(
                "SELECT department_id FROM departments WHERE company_id=%s AND name=%s",
                (company_id, name),
            )
            row = cur.fetchone()
            if not row:
                raise RuntimeError(f"Missing department {name}")
            return int(row["department_id"])

        def job_role_id(dept_id: int, name: str) -> int:
            cur.execute(
                "SELECT job_role_id FROM job_roles WHERE department_id=%s AND name=%s",
                (dept_id, name),
            )
            row = cur.fetchone()
            if not row:
                raise RuntimeError(f"Missing job role {name}")
            return int(row["job_role_id"])

        management = department_id("Management")
        sales = department_id("Sales")
        agent_role = job_role_id(sales, "Sales Agent")

        def upsert_user(*, name, email, role, company, dept_id, role_id, role_label) -> None:
            password_hash = generate_password_hash(DEMO_PASSWORD)
            cur.execute("SELECT user_id FROM users WHERE email=%s", (email,))
            if cur.fetchone():
                cur.execute(
                    """
                    UPDATE users
                    SET name=%s, password_hash=%s, role=%s, company_id=%s, company_code=%s,
                        department_id=%s, job_role_id=%s, job_role=%s, is_active=1
                    WHERE email=%s
                    """,
                    (name, password_hash, role.value, company, DEMO_COMPANY_CODE if company else None,
                     dept_id, role_id, role_label, email),
                )
            else:
                cur.execute(
                    """
                    INSERT INTO users (name, email, password_hash, role, company_id, company_code,
                                       department_id, job_role_id, job_role)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                    """,
                    (name, email, password_hash, role.value, company, DEMO_COMPANY_CODE if company else None,
                     dept_id, role_id, role_label),
                )

        upsert_user(name="Platform Admin", email="superadmin@platform.example", role=Role.SUPER_ADMIN,
                    company=None, dept_id=None, role_id=None, role_label="super_admin")
        upsert_user(name="Demo Admin", email="admin@democorp.example", role=Role.ADMIN,
                    company=company_id, dept_id=management, role_id=None, role_label="owner")
        upsert_user(name="Demo Agent", email="agent@democorp.example", role=Role.USER,
                    company=company_id, dept_id=sales, role_id=agent_role, role_label="Sales Agent")

        conn.commit()
        logger.info("Demo users ready (password %r)", DEMO_PASSWORD)
    finally:
        conn.close()


def list_tables(db_config: dict) -> list[str]:
    conn = _connect(DBConfig.from_dict(db_config))
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
