from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..auth.context import AuthContext
from ..common.datetime_utils import now_local
from ..common.validators import optional_int, optional_str, parse_choice, require_max_length
from ..core.enums import CallStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..leads.repository import LeadRepository
from .model import CallLog
from .repository import CallLogRepository

logger = logging.getLogger(__name__)


class CallService:
    def __init__(self, calls: CallLogRepository, leads: LeadRepository, *, clock: Callable[[], datetime] = now_local):
        self._calls = calls
        self._leads = leads
        self._clock = clock

    def start(self, *, actor: AuthContext, lead_id) -> CallLog:
        lead_key = optional_int(lead_id, "Lead")
        if lead_key is None:
            raise ValidationError("leadId is required")
        lead = self._leads.get_by_id(lead_key)
        if not lead or not actor.can_access_company(lead.company_id):
            raise NotFoundError("Lead not found")

        call_id = self._calls.start(
            company_id=lead.company_id,
            lead_id=lead.lead_id,
            agent_id=actor.user_id,
            start_time=self._clock(),
        )
        return self._calls.get_by_id(call_id)

    def end(self, *, actor: AuthContext, call_id, status=None, notes: Optional[str] = None) -> CallLog:
        key = optional_int(call_id, "Call")
        if key is None:
            raise ValidationError("callId is required")
        call = self._calls.get_by_id(key)
        if not call:
            raise NotFoundError("Call not found")
        if call.agent_id != actor.user_id:
            raise AuthorizationError("You can only end your own calls")
        if call.is_ended:
            raise ValidationError("Call has already ended")

        end_time = self._clock()
        duration = max(0, int((end_time - call.start_time).total_seconds()))
        finished = self._calls.finish(
            call.call_id,
            end_time=end_time,
            duration=duration,
            status=parse_choice(CallStatus, status, "status", default=CallStatus.ANSWERED),
            notes=require_max_length(optional_str(notes), "Notes", 1000),
        )
        if not finished:
            raise ValidationError("Call has already ended")
        logger.info("Call %s ended after %ss", call.call_id, duration)
        return self._calls.get_by_id(call.call_id)

    def list(self, *, actor: AuthContext) -> Sequence[CallLog]:
        return self._calls.list_for_agent(actor.user_id)
