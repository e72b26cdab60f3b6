from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..auth.context import AuthContext
from ..common.datetime_utils import ist_day_window, now_local, parse_iso_datetime, tomorrow_ist_at
from ..common.validators import optional_int, optional_str, parse_choice, require_max_length
from ..core.constants import FOLLOWUP_DEFAULT_HOUR
from ..core.enums import FollowUpStatus, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..leads.repository import LeadRepository
from .model import FollowUp
from .repository import FollowUpRepository

logger = logging.getLogger(__name__)


class FollowUpService:
    """Lead follow-ups; scheduling days are India Standard Time days."""

    def __init__(
        self,
        followups: FollowUpRepository,
        leads: LeadRepository,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._followups = followups
        self._leads = leads
        self._clock = clock

    def create(self, *, actor: AuthContext, lead_id, note: Optional[str] = None, date=None) -> FollowUp:
        lead_key = optional_int(lead_id, "Lead")
        if lead_key is None:
            raise ValidationError("Lead is required")
        lead = self._leads.get_by_id(lead_key)
        if not lead or not actor.can_access_company(lead.company_id):
            raise NotFoundError("Lead not found")

        if date in (None, ""):
            follow_date = tomorrow_ist_at(self._clock(), FOLLOWUP_DEFAULT_HOUR)
        else:
            follow_date = parse_iso_datetime(date, "Follow-up date")

        followup_id = self._followups.create(
            company_id=lead.company_id,
            lead_id=lead.lead_id,
            agent_id=actor.user_id,
            follow_date=follow_date,
            note=require_max_length(optional_str(note), "Note", 1000),
        )
        logger.info("Follow-up %s scheduled for lead %s at %s", followup_id, lead.lead_id, follow_date)
        return self._followups.get_by_id(followup_id)

    def today(self, *, actor: AuthContext) -> Sequence[FollowUp]:
        start, end = ist_day_window(self._clock())
        return self._followups.list_for_agent_between(actor.user_id, start=start, end=end)

    def complete(self, *, actor: AuthContext, followup_id: int) -> FollowUp:
        followup = self._followups.get_by_id(int(followup_id))
        if not followup or not actor.can_access_company(followup.company_id):
            raise NotFoundError("Follow-up not found")
        if followup.agent_id != actor.user_id and not actor.is_privileged:
            raise AuthorizationError("You can only complete your own follow-ups")
        self._followups.set_status(followup.followup_id, FollowUpStatus.DONE)
        return self._followups.get_by_id(followup.followup_id)

    def list(self, *, actor: AuthContext, status: Optional[str] = None) -> Sequence[FollowUp]:
        return self._followups.list(
            None if actor.is_super_admin else actor.company_id,
            agent_id=actor.user_id if actor.role == Role.USER else None,
            status=parse_choice(FollowUpStatus, status, "status") if status else None,
        )
