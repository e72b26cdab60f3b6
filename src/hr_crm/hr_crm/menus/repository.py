from __future__ import annotations

from typing import Any, Dict, Optional, Protocol, Sequence

from .model import MenuAccess, MenuItem, SidebarConfig, SidebarMenuItem


class MenuItemRepository(Protocol):
    def get_by_id(self, menu_item_id: int) -> Optional[MenuItem]:
        raise NotImplementedError

    def find_conflict(self, *, name: Optional[str], path: Optional[str], exclude_id: Optional[int] = None) -> Optional[MenuItem]:
        """Another item already using ``name`` or ``path``."""
        raise NotImplementedError

    def key_exists(self, key: str) -> bool:
        raise NotImplementedError

    def list(self, *, active_only: bool) -> Sequence[MenuItem]:
        raise NotImplementedError

    def create(self, fields: Dict[str, Any]) -> int:
        raise NotImplementedError

    def update(self, menu_item_id: int, changes: Dict[str, Any]) -> bool:
        raise NotImplementedError

    def set_active(self, menu_item_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError


class MenuAccessRepository(Protocol):
    def get_by_id(self, access_id: int) -> Optional[MenuAccess]:
        raise NotImplementedError

    def find(self, company_id: Optional[int], department: str, job_role: str) -> Optional[MenuAccess]:
        raise NotImplementedError

    def list(self, company_id: Optional[int]) -> Sequence[MenuAccess]:
        """Configurations, most recently updated first; every company when ``company_id`` is None."""
        raise NotImplementedError

    def create(
        self,
        *,
        company_id: Optional[int],
        department: str,
        job_role: str,
        access_items: Sequence[str],
        created_by: Optional[int],
    ) -> int:
        raise NotImplementedError

    def update_items(self, access_id: int, *, access_items: Sequence[str], updated_by: Optional[int]) -> bool:
        raise NotImplementedError

    def delete(self, access_id: int) -> bool:
        raise NotImplementedError


class SidebarConfigRepository(Protocol):
    def get_by_id(self, config_id: int) -> Optional[SidebarConfig]:
        raise NotImplementedError

    def find(self, company_id: int, department_id: int, role: str) -> Optional[SidebarConfig]:
        raise NotImplementedError

    def list(
        self,
        *,
        company_id: Optional[int] = None,
        department_id: Optional[int] = None,
        role: Optional[str] = None,
    ) -> Sequence[SidebarConfig]:
        raise NotImplementedError

    def create(
        self,
        *,
        company_id: int,
        department_id: int,
        role: str,
        menu_items: Sequence[SidebarMenuItem],
        created_by: Optional[int],
    ) -> int:
        raise NotImplementedError

    def update_items(self, config_id: int, *, menu_items: Sequence[SidebarMenuItem], updated_by: Optional[int]) -> bool:
        raise NotImplementedError

    def delete(self, config_id: int) -> bool:
        raise NotImplementedError
