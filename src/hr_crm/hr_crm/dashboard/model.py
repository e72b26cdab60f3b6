from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

from ..calls.model import AgentCallCount
from ..core.enums import DashboardRange


@dataclass(frozen=True)
class DashboardSummary:
    range: DashboardRange
    total_calls: int
    total_leads: int
    pending_follow_ups: int
    leads_by_status: Dict[str, int]
    agent_call_counts: Tuple[AgentCallCount, ...]


@dataclass(frozen=True)
class TaskSummary:
    total: int
    overdue: int
    by_status: Dict[str, int]
