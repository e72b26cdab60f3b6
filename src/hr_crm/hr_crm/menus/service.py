from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence

from ..auth.context import AuthContext
from ..common.validators import optional_int, optional_str, parse_choice, parse_int
from ..core.constants import DEFAULT_MENU_ACCESS, DEFAULT_MENU_ICON
from ..core.enums import MenuSection, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..departments.repository import DepartmentRepository
from .model import MenuAccess, MenuItem, SidebarConfig, SidebarMenuItem
from .repository import MenuAccessRepository, MenuItemRepository, SidebarConfigRepository

logger = logging.getLogger(__name__)

_SLUG_BREAK = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    return _SLUG_BREAK.sub("-", value.lower()).strip("-")


def default_access_for(job_role: Optional[str]) -> List[str]:
    """Built-in access list for a job role; unknown roles fall back to the ``user`` list."""
    key = (job_role or "").strip().lower()
    return list(DEFAULT_MENU_ACCESS.get(key, DEFAULT_MENU_ACCESS["user"]))


def _string_list(value, field_name: str) -> List[str]:
    if not isinstance(value, (list, tuple)):
        raise ValidationError(f"{field_name} must be a list")
    items = [str(v).strip() for v in value if str(v).strip()]
    return list(dict.fromkeys(items))


class MenuItemService:
    def __init__(self, items: MenuItemRepository):
        self._items = items

    def _load(self, menu_item_id) -> MenuItem:
        item = self._items.get_by_id(parse_int(menu_item_id, "Menu item id"))
        if not item:
            raise NotFoundError("Menu item not found")
        return item

    def list_active(self) -> Sequence[MenuItem]:
        return self._items.list(active_only=True)

    def list_all(self, *, actor: AuthContext) -> Sequence[MenuItem]:
        actor.require_role(Role.ADMIN)
        return self._items.list(active_only=False)

    def create(self, *, actor: AuthContext, data: dict) -> MenuItem:
        actor.require_role(Role.ADMIN)
        name = optional_str(data.get("name"))
        path = optional_str(data.get("path"))
        if not name or not path:
            raise ValidationError("Name and path are required")
        if self._items.find_conflict(name=name, path=path):
            raise ValidationError("Menu item with this name or path already exists")

        key = slugify(optional_str(data.get("key")) or name)
        if not key:
            raise ValidationError("Menu item key is invalid")
        if self._items.key_exists(key):
            raise ValidationError("Menu item with this key already exists")

        section = parse_choice(MenuSection, data.get("section"), "section", default=MenuSection.MAIN)
        fields = {
            "key": key,
            "name": name,
            "path": path,
            "icon": optional_str(data.get("icon")) or DEFAULT_MENU_ICON,
            "section": section,
            "section_name": optional_str(data.get("section_name")) or section.value.title(),
            "is_active": bool(data.get("is_active", True)),
            "order": optional_int(data.get("order"), "order") or 0,
        }
        menu_item_id = self._items.create(fields)
        logger.info("Menu item %s (%s) created by user %s", menu_item_id, key, actor.user_id)
        return self._items.get_by_id(menu_item_id)

    def update(self, *, actor: AuthContext, menu_item_id, data: dict) -> MenuItem:
        actor.require_role(Role.ADMIN)
        item = self._load(menu_item_id)
        changes: dict = {}
        for key in ("name", "path"):
            if key in data:
                value = optional_str(data.get(key))
                if not value:
                    raise ValidationError(f"{key.title()} cannot be empty")
                changes[key] = value
        if ("name" in changes or "path" in changes) and self._items.find_conflict(
            name=changes.get("name"), path=changes.get("path"), exclude_id=item.menu_item_id
        ):
            raise ValidationError("Menu item with this name or path already exists")
        if "icon" in data:
            changes["icon"] = optional_str(data.get("icon")) or DEFAULT_MENU_ICON
        if "section" in data:
            changes["section"] = parse_choice(MenuSection, data.get("section"), "section")
        if "section_name" in data:
            changes["section_name"] = optional_str(data.get("section_name"))
        if "is_active" in data:
            changes["is_active"] = bool(data.get("is_active"))
        if "order" in data:
            changes["order"] = optional_int(data.get("order"), "order") or 0

        if changes:
            self._items.update(item.menu_item_id, changes)
        return self._items.get_by_id(item.menu_item_id)

    def delete(self, *, actor: AuthContext, menu_item_id) -> None:
        actor.require_role(Role.ADMIN)
        item = self._load(menu_item_id)
        self._items.set_active(item.menu_item_id, is_active=False)

    def restore(self, *, actor: AuthContext, menu_item_id) -> MenuItem:
        actor.require_role(Role.ADMIN)
        item = self._load(menu_item_id)
        self._items.set_active(item.menu_item_id, is_active=True)
        return self._items.get_by_id(item.menu_item_id)


class MenuAccessService:
    """Per department/job-role menu access lists, scoped to the caller's company."""

    def __init__(self, access: MenuAccessRepository):
        self._access = access

    def _load(self, actor: AuthContext, access_id) -> MenuAccess:
        row = self._access.get_by_id(parse_int(access_id, "Configuration id"))
        if not row or not (actor.is_super_admin or row.company_id == actor.company_id):
            raise NotFoundError("Configuration not found")
        return row

    def get(self, *, actor: AuthContext, department: Optional[str], job_role: Optional[str]) -> MenuAccess:
        department = optional_str(department)
        job_role = optional_str(job_role)
        if not department or not job_role:
            raise ValidationError("Department and job role are required")
        stored = self._access.find(actor.company_id, department, job_role)
        if stored:
            return stored
        return MenuAccess(
            access_id=None,
            company_id=actor.company_id,
            department=department,
            job_role=job_role,
            access_items=tuple(default_access_for(job_role)),
            is_default=True,
        )

    def save(self, *, actor: AuthContext, department, job_role, access_items) -> MenuAccess:
        actor.require_role(Role.ADMIN)
        department = optional_str(department)
        job_role = optional_str(job_role)
        if not department or not job_role or access_items is None:
            raise ValidationError("Missing required fields")
        items = _string_list(access_items, "accessItems")

        existing = self._access.find(actor.company_id, department, job_role)
        if existing:
            self._access.update_items(existing.access_id, access_items=items, updated_by=actor.user_id)
            return self._access.get_by_id(existing.access_id)
        access_id = self._access.create(
            company_id=actor.company_id,
            department=department,
            job_role=job_role,
            access_items=items,
            created_by=actor.user_id,
        )
        return self._access.get_by_id(access_id)

    def update(self, *, actor: AuthContext, access_id, access_items) -> MenuAccess:
        actor.require_role(Role.ADMIN)
        if access_items is None:
            raise ValidationError("Missing required fields")
        items = _string_list(access_items, "accessItems")
        row = self._load(actor, access_id)
        self._access.update_items(row.access_id, access_items=items, updated_by=actor.user_id)
        return self._access.get_by_id(row.access_id)

    def delete(self, *, actor: AuthContext, access_id) -> None:
        actor.require_role(Role.ADMIN)
        row = self._load(actor, access_id)
        self._access.delete(row.access_id)

    def list_all(self, *, actor: AuthContext) -> Sequence[MenuAccess]:
        return self._access.list(None if actor.is_super_admin else actor.company_id)


def parse_sidebar_items(value) -> List[SidebarMenuItem]:
    if not isinstance(value, (list, tuple)):
        raise ValidationError("Valid menuItems array is required")
    items: List[SidebarMenuItem] = []
    for raw in value:
        if not isinstance(raw, dict):
            raise ValidationError("Each menu item must be an object")
        fields = {k: optional_str(raw.get(k)) for k in ("id", "name", "icon", "path")}
        if not all(fields.values()):
            raise ValidationError("Each menu item requires id, name, icon and path")
        items.append(SidebarMenuItem(category=optional_str(raw.get("category")) or "main", **fields))
    return items


class SidebarConfigService:
    def __init__(self, configs: SidebarConfigRepository, departments: DepartmentRepository):
        self._configs = configs
        self._departments = departments

    def _load(self, actor: AuthContext, config_id) -> SidebarConfig:
        config = self._configs.get_by_id(parse_int(config_id, "Configuration id"))
        if not config:
            raise NotFoundError("Configuration not found")
        actor.require_company(config.company_id)
        return config

    def _company_filter(self, actor: AuthContext, company_id) -> Optional[int]:
        requested = optional_int(company_id, "companyId")
        if actor.is_super_admin:
            return requested
        if requested is not None and requested != actor.company_id:
            raise AuthorizationError("Access denied")
        return actor.company_id

    def list(self, *, actor: AuthContext, company_id=None, department_id=None, role=None) -> Sequence[SidebarConfig]:
        return self._configs.list(
            company_id=self._company_filter(actor, company_id),
            department_id=optional_int(department_id, "departmentId"),
            role=optional_str(role),
        )

    def get_config(self, *, actor: AuthContext, company_id, department_id, role) -> Optional[SidebarConfig]:
        if company_id in (None, "") or department_id in (None, "") or not optional_str(role):
            raise ValidationError("Company, department and role are required")
        return self._configs.find(
            self._company_filter(actor, company_id),
            parse_int(department_id, "departmentId"),
            optional_str(role),
        )

    def create(self, *, actor: AuthContext, company_id, department_id, role, menu_items) -> SidebarConfig:
        actor.require_role(Role.ADMIN)
        if company_id in (None, "") or department_id in (None, "") or not optional_str(role) or menu_items is None:
            raise ValidationError("Company, department, role and menuItems are required")
        company_key = self._company_filter(actor, company_id)
        dept = self._departments.get_by_id(parse_int(department_id, "departmentId"))
        if not dept or dept.company_id != company_key:
            raise NotFoundError("Department not found")
        items = parse_sidebar_items(menu_items)

        existing = self._configs.find(company_key, dept.department_id, optional_str(role))
        if existing:
            raise ConflictError("Configuration already exists for this combination", data=existing)
        config_id = self._configs.create(
            company_id=company_key,
            department_id=dept.department_id,
            role=optional_str(role),
            menu_items=items,
            created_by=actor.user_id,
        )
        return self._configs.get_by_id(config_id)

    def update(self, *, actor: AuthContext, config_id, menu_items) -> SidebarConfig:
        actor.require_role(Role.ADMIN)
        items = parse_sidebar_items(menu_items)
        config = self._load(actor, config_id)
        self._configs.update_items(config.config_id, menu_items=items, updated_by=actor.user_id)
        return self._configs.get_by_id(config.config_id)

    def delete(self, *, actor: AuthContext, config_id) -> None:
        actor.require_role(Role.ADMIN)
        config = self._load(actor, config_id)
        self._configs.delete(config.config_id)

    def user_config(self, *, actor: AuthContext) -> Optional[SidebarConfig]:
        if actor.company_id is None or actor.department_id is None:
            return None
        return self._configs.find(actor.company_id, actor.department_id, actor.role.value)
