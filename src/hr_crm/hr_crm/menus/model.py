from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from ..core.constants import DEFAULT_MENU_ICON
from ..core.enums import MenuSection


@dataclass(frozen=True)
class MenuItem:
    menu_item_id: int
    key: str
    name: str
    path: str
    icon: str = DEFAULT_MENU_ICON
    section: MenuSection = MenuSection.MAIN
    section_name: Optional[str] = None
    is_active: bool = True
    order: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class MenuAccess:
    access_id: Optional[int]
    company_id: Optional[int]
    department: str
    job_role: str
    access_items: Tuple[str, ...]
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    updated_at: Optional[datetime] = None
    is_default: bool = False


@dataclass(frozen=True)
class SidebarMenuItem:
    id: str
    name: str
    icon: str
    path: str
    category: str = "main"


@dataclass(frozen=True)
class SidebarConfig:
    config_id: int
    company_id: int
    department_id: int
    role: str
    menu_items: Tuple[SidebarMenuItem, ...]
    is_active: bool = True
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    company_name: Optional[str] = None
    department_name: Optional[str] = None
