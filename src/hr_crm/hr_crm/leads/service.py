from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..auth.context import AuthContext
from ..common.validators import optional_int, optional_str, parse_choice, require_email, require_non_empty
from ..core.enums import LeadStatus, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.repository import UserRepository
from .model import Lead
from .repository import LeadRepository

logger = logging.getLogger(__name__)


class LeadService:
    def __init__(self, leads: LeadRepository, users: UserRepository):
        self._leads = leads
        self._users = users

    def _agent(self, actor: AuthContext, user_id) -> int:
        agent_id = optional_int(user_id, "User")
        if agent_id is None:
            raise ValidationError("User is required")
        agent = self._users.get_by_id(agent_id)
        if not agent or not agent.is_active:
            raise NotFoundError("User not found")
        if not actor.can_access_company(agent.company_id):
            raise AuthorizationError("You can only assign leads to users of your company")
        return agent.user_id

    def get(self, *, actor: AuthContext, lead_id: int) -> Lead:
        lead = self._leads.get_by_id(int(lead_id))
        if not lead or not actor.can_access_company(lead.company_id):
            raise NotFoundError("Lead not found")
        if actor.role == Role.USER and actor.user_id not in (lead.assigned_to, lead.created_by):
            raise AuthorizationError("You can only access leads assigned to you")
        return lead

    def create(self, *, actor: AuthContext, data: dict) -> Lead:
        name = require_non_empty(data.get("name"), "Name")
        phone = require_non_empty(data.get("phone"), "Phone")
        email = optional_str(data.get("email"))
        assigned_to = data.get("assigned_to")
        if assigned_to in (None, "") and actor.role == Role.USER:
            # agents own the leads they capture
            assigned_to = actor.user_id
        lead_id = self._leads.create(
            company_id=actor.company_id,
            name=name,
            phone=phone,
            email=require_email(email) if email else None,
            source=optional_str(data.get("source")),
            status=parse_choice(LeadStatus, data.get("status"), "status", default=LeadStatus.NEW),
            assigned_to=self._agent(actor, assigned_to) if assigned_to not in (None, "") else None,
            created_by=actor.user_id,
        )
        logger.info("Lead %s created by user %s", lead_id, actor.user_id)
        return self._leads.get_by_id(lead_id)

    def list(self, *, actor: AuthContext, status: Optional[str] = None) -> Sequence[Lead]:
        return self._leads.list(
            None if actor.is_super_admin else actor.company_id,
            status=parse_choice(LeadStatus, status, "status") if status else None,
            visible_to=actor.user_id if actor.role == Role.USER else None,
        )

    def update(self, *, actor: AuthContext, lead_id: int, data: dict) -> Lead:
        lead = self.get(actor=actor, lead_id=lead_id)
        changes: dict = {}
        if "name" in data:
            changes["name"] = require_non_empty(data.get("name"), "Name")
        if "phone" in data:
            changes["phone"] = require_non_empty(data.get("phone"), "Phone")
        if "email" in data:
            email = optional_str(data.get("email"))
            changes["email"] = require_email(email) if email else None
        if "source" in data:
            changes["source"] = optional_str(data.get("source"))
        if "status" in data:
            changes["status"] = parse_choice(LeadStatus, data.get("status"), "status")
        if changes:
            self._leads.update(lead.lead_id, changes)
        return self._leads.get_by_id(lead.lead_id)

    def assign(self, *, actor: AuthContext, lead_id: int, user_id) -> Lead:
        if not actor.is_privileged:
            raise AuthorizationError("Only admins, HR and managers can assign leads")
        lead = self.get(actor=actor, lead_id=lead_id)
        agent_id = self._agent(actor, user_id)
        self._leads.update(lead.lead_id, {"assigned_to": agent_id})
        logger.info("Lead %s assigned to user %s", lead.lead_id, agent_id)
        return self._leads.get_by_id(lead.lead_id)

    def add_note(self, *, actor: AuthContext, lead_id: int, message: Optional[str]) -> Lead:
        lead = self.get(actor=actor, lead_id=lead_id)
        text = require_non_empty(message, "Message")
        self._leads.add_note(lead.lead_id, message=text, created_by=actor.user_id)
        return self._leads.get_by_id(lead.lead_id)
