from __future__ import annotations

import calendar
import logging
import re
from datetime import date, datetime, time, timedelta
from typing import Callable, Optional, Sequence, Tuple

from ..auth.context import AuthContext
from ..common.datetime_utils import is_weekend, now_local, optional_day, parse_day, parse_iso_datetime
from ..common.validators import optional_int, optional_str, parse_choice, parse_int, require_max_length
from ..companies.repository import CompanyRepository
from ..core.constants import ABSENCE_LOOKBACK_DAYS, ABSENT_CUTOFF, AUTO_ABSENT_NOTE, SHIFT_END, SHIFT_START
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import NotFoundError, ValidationError
from ..users.model import User
from ..users.repository import UserRepository
from .factory import AttendanceStrategyFactory
from .model import AbsenceSweepResult, AttendanceRecord, AttendanceStats, TodayStatus
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

_HHMM = re.compile(r"^\d{1,2}:\d{2}(:\d{2})?$")
_ATTENDANCE_ADMINS = (Role.ADMIN, Role.HR, Role.MANAGER)


def format_duration(seconds: float) -> str:
    """``HH:MM:SS``; negative spans count as zero."""
    total = max(0, int(seconds))
    return f"{total // 3600:02d}:{total % 3600 // 60:02d}:{total % 60:02d}"


def _at(day: date, hm: Tuple[int, int]) -> datetime:
    return datetime.combine(day, time(*hm))


class AttendanceService:
    """Daily clock-in / clock-out, company attendance records and the absence sweep."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        companies: CompanyRepository,
        *,
        strategy_factory: Optional[AttendanceStrategyFactory] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._users = users
        self._companies = companies
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._clock = clock

    def _timings(self, in_time: datetime, out_time: Optional[datetime]) -> dict:
        """Status and durations for a day given its clock-in (and clock-out, if any)."""
        strategy = self._factory.for_login(in_time.time())
        shift_start = _at(in_time.date(), SHIFT_START)
        values = {"in_time": in_time, "late_by": format_duration((in_time - shift_start).total_seconds())}
        if out_time is None:
            decision = strategy.decide_checkin(in_time=in_time.time())
            values.update(status=decision.status, out_time=None, early_leave=None, over_time=None, total_time=None)
            return values

        if out_time < in_time:
            raise ValidationError("Out time cannot be before in time")
        worked = (out_time - in_time).total_seconds()
        shift_end = _at(in_time.date(), SHIFT_END)
        decision = strategy.decide_checkout(in_time=in_time.time(), hours=worked / 3600)
        values.update(
            status=decision.status,
            out_time=out_time,
            total_time=format_duration(worked),
            over_time=format_duration((out_time - shift_end).total_seconds()),
            early_leave=format_duration((shift_end - out_time).total_seconds()),
        )
        return values

    # --- self service -------------------------------------------------------------------------

    def clock_in(self, *, actor: AuthContext, now: Optional[datetime] = None) -> AttendanceRecord:
        now = (now or self._clock()).replace(microsecond=0)
        if actor.company_id is None:
            raise ValidationError("User company not found", error_code="NO_COMPANY")
        today = now.date()
        if self._attendance.get_for_user_and_date(actor.user_id, today):
            raise ValidationError("You've already logged your attendance today.", error_code="ALREADY_CLOCKED_IN")

        values = self._timings(now, None)
        attendance_id = self._attendance.create(
            company_id=actor.company_id,
            user_id=actor.user_id,
            work_date=today,
            status=values["status"],
            in_time=now,
            late_by=values["late_by"],
        )
        logger.info("User %s clocked in at %s (%s)", actor.user_id, now, values["status"].value)
        return self._attendance.get_by_id(attendance_id)

    def clock_out(self, *, actor: AuthContext, now: Optional[datetime] = None) -> AttendanceRecord:
        now = (now or self._clock()).replace(microsecond=0)
        record = self._attendance.get_for_user_and_date(actor.user_id, now.date())
        if not record or not record.is_clocked_in:
            raise ValidationError("Not clocked in or already clocked out", error_code="NOT_CLOCKED_IN")

        values = self._timings(record.in_time, now)
        self._attendance.update(record.attendance_id, values)
        logger.info("User %s clocked out at %s (%s)", actor.user_id, now, values["status"].value)
        return self._attendance.get_by_id(record.attendance_id)

    def today_status(self, *, actor: AuthContext, now: Optional[datetime] = None) -> TodayStatus:
        now = now or self._clock()
        record = self._attendance.get_for_user_and_date(actor.user_id, now.date())
        if record:
            return TodayStatus(is_clocked_in=record.is_clocked_in, status=record.status, record=record)
        absent = now.time() >= time(*ABSENT_CUTOFF)
        return TodayStatus(is_clocked_in=False, status=AttendanceStatus.ABSENT if absent else None)

    def month_list(
        self,
        *,
        actor: AuthContext,
        month=None,
        year=None,
        now: Optional[datetime] = None,
    ) -> Sequence[AttendanceRecord]:
        """Every day of the month up to today, newest first; missing days are filled in unsaved."""
        now = now or self._clock()
        today = now.date()
        month = parse_int(month, "Month") if month not in (None, "") else today.month
        year = parse_int(year, "Year") if year not in (None, "") else today.year
        if not 1 <= month <= 12:
            raise ValidationError("Month must be between 1 and 12")

        first = date(year, month, 1)
        last = date(year, month, calendar.monthrange(year, month)[1])
        end = min(last, today)
        if first > end:
            return []

        by_day = {r.work_date: r for r in self._attendance.list_for_user_between(actor.user_id, first, end)}
        past_cutoff = now.time() >= time(*ABSENT_CUTOFF)
        days = []
        day = end
        while day >= first:
            record = by_day.get(day)
            if record is None and (day < today or past_cutoff):
                weekend = is_weekend(day)
                record = AttendanceRecord(
                    attendance_id=None,
                    company_id=actor.company_id,
                    user_id=actor.user_id,
                    work_date=day,
                    status=AttendanceStatus.WEEKEND if weekend else AttendanceStatus.ABSENT,
                    notes="Weekend" if weekend else "No attendance recorded",
                )
            if record is not None:
                days.append(record)
            day -= timedelta(days=1)
        return days

    # --- company records ----------------------------------------------------------------------

    def _company_user(self, actor: AuthContext, user_id) -> User:
        user_key = optional_int(user_id, "User")
        if user_key is None:
            raise ValidationError("User is required")
        user = self._users.get_by_id(user_key)
        if not user:
            raise NotFoundError("User not found")
        actor.require_company(user.company_id, "You can only manage attendance within your company")
        return user

    def _company_record(self, actor: AuthContext, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(int(attendance_id))
        if not record or not actor.can_access_company(record.company_id):
            raise NotFoundError("Attendance record not found")
        return record

    def list_company(self, *, actor: AuthContext, day=None) -> Sequence[AttendanceRecord]:
        actor.require_role(*_ATTENDANCE_ADMINS)
        return self._attendance.list_for_company(
            None if actor.is_super_admin else actor.company_id,
            work_date=optional_day(day),
        )

    def for_user(self, *, actor: AuthContext, user_id: int, day=None) -> Sequence[AttendanceRecord]:
        actor.require_role(*_ATTENDANCE_ADMINS)
        user = self._company_user(actor, user_id)
        return self._attendance.list_for_company(user.company_id, user_id=user.user_id, work_date=optional_day(day))

    def _clock_value(self, value, day: date, field_name: str) -> Optional[datetime]:
        if value is None or value == "":
            return None
        raw = str(value).strip()
        if _HHMM.match(raw):
            try:
                return datetime.combine(day, time(*(int(p) for p in raw.split(":"))))
            except ValueError:
                raise ValidationError(f"{field_name} must be HH:MM")
        return parse_iso_datetime(raw, field_name).replace(microsecond=0)

    def _edited_values(self, data: dict, day: date, current: Optional[AttendanceRecord]) -> dict:
        in_time = self._clock_value(data.get("in_time"), day, "In time")
        out_time = self._clock_value(data.get("out_time"), day, "Out time")
        values: dict = {}

        if in_time is not None or out_time is not None:
            in_time = in_time or (current.in_time if current else None)
            out_time = out_time or (current.out_time if current else None)
            if in_time is None:
                raise ValidationError("In time is required when setting out time")
            values.update(self._timings(in_time, out_time))

        if data.get("status") not in (None, ""):
            values["status"] = parse_choice(AttendanceStatus, data.get("status"), "status")
        if "notes" in data:
            values["notes"] = require_max_length(optional_str(data.get("notes")), "Notes", 500)
        return values

    def save_manual(self, *, actor: AuthContext, data: dict) -> Tuple[AttendanceRecord, bool]:
        """Create or overwrite a user's day; returns ``(record, created)``."""
        actor.require_role(*_ATTENDANCE_ADMINS)
        user = self._company_user(actor, data.get("user_id"))
        day = parse_day(data.get("date"), "Date")

        existing = self._attendance.get_for_user_and_date(user.user_id, day)
        values = self._edited_values(data, day, existing)
        if existing:
            if values:
                self._attendance.update(existing.attendance_id, values)
            logger.info("Attendance %s for user %s on %s edited by %s", existing.attendance_id, user.user_id, day, actor.user_id)
            return self._attendance.get_by_id(existing.attendance_id), False

        values.setdefault("status", AttendanceStatus.ABSENT)
        attendance_id = self._attendance.create(
            company_id=user.company_id,
            user_id=user.user_id,
            work_date=day,
            **values,
        )
        logger.info("Manual attendance %s for user %s on %s by %s", attendance_id, user.user_id, day, actor.user_id)
        return self._attendance.get_by_id(attendance_id), True

    def update(self, *, actor: AuthContext, attendance_id: int, data: dict) -> AttendanceRecord:
        actor.require_role(*_ATTENDANCE_ADMINS)
        record = self._company_record(actor, attendance_id)
        values = self._edited_values(data, record.work_date, record)
        if not values:
            raise ValidationError("No changes provided")
        self._attendance.update(record.attendance_id, values)
        return self._attendance.get_by_id(record.attendance_id)

    def delete(self, *, actor: AuthContext, attendance_id: int) -> None:
        actor.require_role(*_ATTENDANCE_ADMINS)
        record = self._company_record(actor, attendance_id)
        self._attendance.delete(record.attendance_id)
        logger.info("Attendance %s deleted by %s", record.attendance_id, actor.user_id)

    def stats(self, *, actor: AuthContext, start_date=None, end_date=None) -> AttendanceStats:
        actor.require_role(*_ATTENDANCE_ADMINS)
        start, end = optional_day(start_date, "Start date"), optional_day(end_date, "End date")
        if start and end and start > end:
            raise ValidationError("Start date cannot be after end date")
        counts = self._attendance.status_counts(
            None if actor.is_super_admin else actor.company_id,
            start=start,
            end=end,
        )
        return AttendanceStats(
            total=sum(v for k, v in counts.items() if k != AttendanceStatus.WEEKEND),
            present=counts.get(AttendanceStatus.PRESENT, 0),
            late=counts.get(AttendanceStatus.LATE, 0),
            half_day=counts.get(AttendanceStatus.HALFDAY, 0),
            absent=counts.get(AttendanceStatus.ABSENT, 0),
        )

    # --- absence sweep ------------------------------------------------------------------------

    def _mark_day(self, day: date, now: datetime) -> Tuple[int, int]:
        checked = marked = 0
        for company in self._companies.list_all():
            if not company.is_active or company.subscription_expired(now):
                continue
            user_ids = [
                u.user_id
                for u in self._users.list_by_company(company.company_id, active_only=True)
                if u.role != Role.SUPER_ADMIN
            ]
            recorded = self._attendance.user_ids_with_record(user_ids, day)
            for user_id in user_ids:
                checked += 1
                if user_id in recorded:
                    continue
                if self._attendance.create_absent(
                    company_id=company.company_id, user_id=user_id, work_date=day, notes=AUTO_ABSENT_NOTE
                ):
                    marked += 1
        return checked, marked

    def mark_absences(self, now: Optional[datetime] = None, *, days: int = ABSENCE_LOOKBACK_DAYS) -> AbsenceSweepResult:
        """Record ABSENT for active users with no attendance on past weekdays.

        Covers the last ``days`` days before today, and today itself once the
        10:00 cutoff has passed. Existing records are never touched.
        """
        now = now or self._clock()
        today = now.date()
        candidates = [today - timedelta(days=n) for n in range(max(0, int(days)), 0, -1)]
        if now.time() >= time(*ABSENT_CUTOFF):
            candidates.append(today)

        swept = []
        checked = marked = 0
        for day in candidates:
            if is_weekend(day):
                continue
            day_checked, day_marked = self._mark_day(day, now)
            swept.append(day)
            checked += day_checked
            marked += day_marked
        logger.info("Absence sweep: days=%s checked=%s marked=%s", len(swept), checked, marked)
        return AbsenceSweepResult(days=tuple(swept), checked=checked, marked=marked)
