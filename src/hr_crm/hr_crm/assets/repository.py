from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional, Protocol, Sequence, Tuple

from ..core.enums import AssetCategory, AssetStatus
from .model import Asset, AssetHistoryEntry, CategoryStat, MaintenanceRecord


class AssetRepository(Protocol):
    def get_by_id(self, asset_id: int) -> Optional[Asset]:
        """Asset with its history and maintenance records attached."""
        raise NotImplementedError

    def get_by_serial(self, serial_number: str) -> Optional[Asset]:
        raise NotImplementedError

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
        """One page of assets, newest first, plus the total number of matches."""
        raise NotImplementedError

    def create(self, *, company_id: int, created_by: Optional[int], fields: Dict[str, Any]) -> int:
        raise NotImplementedError

    def update(self, asset_id: int, changes: Dict[str, Any]) -> bool:
        raise NotImplementedError

    def delete(self, asset_id: int) -> bool:
        raise NotImplementedError

    def delete_many(self, asset_ids: Iterable[int]) -> int:
        raise NotImplementedError

    def count_owned(self, asset_ids: Iterable[int], company_id: int) -> int:
        raise NotImplementedError

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
        raise NotImplementedError

    def list_history(self, asset_id: int) -> Sequence[AssetHistoryEntry]:
        raise NotImplementedError

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
        raise NotImplementedError

    def list_maintenance(self, asset_id: int) -> Sequence[MaintenanceRecord]:
        raise NotImplementedError

    def complete_maintenance(self, maintenance_id: int, *, completed_date: datetime, notes: Optional[str]) -> bool:
        raise NotImplementedError

    def status_totals(self, company_id: Optional[int]) -> Tuple[Dict[str, int], Decimal]:
        """Asset count per status and the summed purchase cost."""
        raise NotImplementedError

    def category_totals(self, company_id: Optional[int]) -> Sequence[CategoryStat]:
        raise NotImplementedError
