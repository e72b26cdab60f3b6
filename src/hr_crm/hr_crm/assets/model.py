from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

from ..core.enums import AssetCategory, AssetCondition, AssetStatus


@dataclass(frozen=True)
class AssetHistoryEntry:
    history_id: int
    asset_id: int
    action: str
    performed_by: Optional[int]
    date: datetime
    description: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    performed_by_name: Optional[str] = None


@dataclass(frozen=True)
class MaintenanceRecord:
    maintenance_id: int
    asset_id: int
    type: str
    scheduled_date: Optional[date] = None
    completed_date: Optional[datetime] = None
    description: Optional[str] = None
    cost: Optional[Decimal] = None
    vendor: Optional[str] = None
    performed_by: Optional[int] = None
    notes: Optional[str] = None

    @property
    def is_completed(self) -> bool:
        return self.completed_date is not None


@dataclass(frozen=True)
class Asset:
    asset_id: int
    company_id: int
    name: str
    category: AssetCategory
    serial_number: str
    asset_tag: str
    model: Optional[str] = None
    purchase_date: Optional[date] = None
    purchase_cost: Decimal = Decimal("0")
    warranty_expiry: Optional[date] = None
    supplier: Optional[str] = None
    manufacturer: Optional[str] = None
    condition: AssetCondition = AssetCondition.GOOD
    status: AssetStatus = AssetStatus.AVAILABLE
    assigned_to: Optional[int] = None
    assigned_date: Optional[datetime] = None
    expected_return_date: Optional[date] = None
    department_id: Optional[int] = None
    location: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    assigned_to_name: Optional[str] = None
    department_name: Optional[str] = None
    history: Tuple[AssetHistoryEntry, ...] = ()
    maintenance_records: Tuple[MaintenanceRecord, ...] = ()


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int
    total: int
    pages: int


@dataclass(frozen=True)
class AssetPage:
    assets: Tuple[Asset, ...]
    pagination: Pagination


@dataclass(frozen=True)
class CategoryStat:
    category: str
    count: int
    value: Decimal


@dataclass(frozen=True)
class AssetStats:
    total: int
    available: int
    assigned: int
    maintenance: int
    damaged: int
    retired: int
    reserved: int
    total_value: Decimal
