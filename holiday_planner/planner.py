"""Planner state, roster/holiday commands and preference resolution.

Every command takes the current ``PlannerState`` and returns a new one; the
input state is never mutated. Invalid commands raise ``PlannerRejection``.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, field_validator, model_validator
from pydantic.alias_generators import to_camel

AssignmentType = Literal["volunteer", "lottery"]


class PlannerRejection(ValueError):
    """A command was refused; ``code`` is stable, ``detail`` is for humans."""

    def __init__(self, code: str, detail: str) -> None:
        super().__init__(detail)
        self.code = code
        self.detail = detail


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TeamMember(CamelModel):
    id: str
    name: str = Field(min_length=1)


class Application(CamelModel):
    id: str
    member_id: str
    member_name: str
    preference: int = Field(ge=1)


class DailyAssignment(CamelModel):
    date: str
    member_id: str
    member_name: str
    type: AssignmentType


class _HolidayBase(CamelModel):
    id: str
    name: str
    start_date: str = ""
    end_date: str = ""
    slots: int = Field(ge=1)

    @field_validator("start_date", "end_date")
    @classmethod
    def validate_iso_date(cls, value: str) -> str:
        # stored as YYYY-MM-DD so string comparison orders dates
        return date.fromisoformat(value).isoformat() if value else value

    @model_validator(mode="after")
    def validate_range(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("startDate must not be after endDate")
        return self


class PreferenceHoliday(_HolidayBase):
    is_special_lottery: Literal[False] = False
    applications: list[Application] = Field(default_factory=list)


class LotteryHoliday(_HolidayBase):
    is_special_lottery: Literal[True] = True
    daily_assignments: list[DailyAssignment] = Field(default_factory=list)
    daily_labels: dict[str, str] = Field(default_factory=dict)


def _holiday_kind(value: Any) -> str:
    if isinstance(value, dict):
        flag = value.get("isSpecialLottery", value.get("is_special_lottery", False))
    else:
        flag = getattr(value, "is_special_lottery", False)
    return "lottery" if flag else "preference"


HolidayPeriod = Annotated[
    Union[
        Annotated[PreferenceHoliday, Tag("preference")],
        Annotated[LotteryHoliday, Tag("lottery")],
    ],
    Discriminator(_holiday_kind),
]


class PlannerState(CamelModel):
    team_members: list[TeamMember] = Field(default_factory=list)
    holidays: list[HolidayPeriod] = Field(default_factory=list)
    default_preference: int = Field(default=5, ge=1)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


@dataclass
class Approval:
    approved: list[Application]
    waitlisted: list[Application]


def new_id() -> str:
    return str(uuid.uuid4())


# ── Dates ──


def holiday_year(start_date: str | None) -> int | None:
    """Year from the leading four digits of an ISO date string."""
    if not start_date or len(start_date) < 4 or not start_date[:4].isdigit():
        return None
    return int(start_date[:4])


def dates_between(start_date: str, end_date: str) -> list[str]:
    if not start_date or not end_date:
        return []
    current = date.fromisoformat(start_date)
    end = date.fromisoformat(end_date)
    out: list[str] = []
    while current <= end:
        out.append(current.isoformat())
        current += timedelta(days=1)
    return out


def _parse_date(value: str, field: str) -> date:
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise PlannerRejection("invalid_dates", f"{field} must be an ISO date (YYYY-MM-DD)") from None


def _validated_range(start_date: str, end_date: str) -> tuple[str, str]:
    start = _parse_date(start_date, "startDate")
    end = _parse_date(end_date, "endDate")
    if start > end:
        raise PlannerRejection("invalid_dates", "startDate must not be after endDate")
    return start.isoformat(), end.isoformat()


# ── Lookups ──


def find_member(state: PlannerState, member_id: str) -> TeamMember | None:
    return next((m for m in state.team_members if m.id == member_id), None)


def require_member(state: PlannerState, member_id: str) -> TeamMember:
    member = find_member(state, member_id)
    if member is None:
        raise PlannerRejection("unknown_member", f"No team member with id {member_id!r}")
    return member


def require_holiday(state: PlannerState, holiday_id: str) -> PreferenceHoliday | LotteryHoliday:
    holiday = next((h for h in state.holidays if h.id == holiday_id), None)
    if holiday is None:
        raise PlannerRejection("not_found", f"No holiday with id {holiday_id!r}")
    return holiday


def require_preference_holiday(state: PlannerState, holiday_id: str) -> PreferenceHoliday:
    holiday = require_holiday(state, holiday_id)
    if not isinstance(holiday, PreferenceHoliday):
        raise PlannerRejection("wrong_holiday_kind", f"{holiday.name} is a lottery holiday")
    return holiday


def require_lottery_holiday(state: PlannerState, holiday_id: str) -> LotteryHoliday:
    holiday = require_holiday(state, holiday_id)
    if not isinstance(holiday, LotteryHoliday):
        raise PlannerRejection("wrong_holiday_kind", f"{holiday.name} is not a lottery holiday")
    return holiday


# ── Preferences and approvals ──


def available_preferences(
    state: PlannerState,
    member_id: str,
    year: int | None,
    current: int | None = None,
) -> list[int]:
    """Preference ranks the member has not yet used on a holiday starting in ``year``.

    ``current`` is the value of an application being edited; it stays
    selectable even though the member has already used it.
    """
    if year is None:
        return []
    used = {
        app.preference
        for holiday in state.holidays
        if isinstance(holiday, PreferenceHoliday) and holiday_year(holiday.start_date) == year
        for app in holiday.applications
        if app.member_id == member_id
    }
    available = [p for p in range(1, state.default_preference + 1) if p not in used]
    if current is not None and current not in available:
        available.append(current)
        available.sort()
    return available


def preferences_for_holiday(
    state: PlannerState,
    holiday_id: str,
    member_id: str,
    application_id: str | None = None,
) -> list[int]:
    holiday = require_preference_holiday(state, holiday_id)
    current = None
    if application_id is not None:
        current = _require_application(holiday, application_id).preference
    return available_preferences(state, member_id, holiday_year(holiday.start_date), current)


def resolve_approvals(holiday: PreferenceHoliday) -> Approval:
    ordered = sorted(holiday.applications, key=lambda app: app.preference)
    return Approval(approved=ordered[: holiday.slots], waitlisted=ordered[holiday.slots :])


def _require_application(holiday: PreferenceHoliday, application_id: str) -> Application:
    app = next((a for a in holiday.applications if a.id == application_id), None)
    if app is None:
        raise PlannerRejection("not_found", f"No application with id {application_id!r}")
    return app


def add_application(state: PlannerState, holiday_id: str, member_id: str, preference: int) -> PlannerState:
    new_state = state.model_copy(deep=True)
    holiday = require_preference_holiday(new_state, holiday_id)
    member = require_member(new_state, member_id)
    if any(app.member_id == member_id for app in holiday.applications):
        raise PlannerRejection("duplicate_application", f"{member.name} has already applied for {holiday.name}")
    available = available_preferences(new_state, member_id, holiday_year(holiday.start_date))
    if preference not in available:
        raise PlannerRejection(
            "preference_unavailable",
            f"Preference {preference} is not available to {member.name}; choose from {available or 'none'}",
        )
    holiday.applications.append(
        Application(id=new_id(), member_id=member.id, member_name=member.name, preference=preference)
    )
    return new_state


def update_application_preference(
    state: PlannerState,
    holiday_id: str,
    application_id: str,
    preference: int,
) -> PlannerState:
    new_state = state.model_copy(deep=True)
    holiday = require_preference_holiday(new_state, holiday_id)
    app = _require_application(holiday, application_id)
    available = available_preferences(new_state, app.member_id, holiday_year(holiday.start_date), app.preference)
    if preference not in available:
        raise PlannerRejection(
            "preference_unavailable",
            f"Preference {preference} is not available to {app.member_name}; choose from {available or 'none'}",
        )
    app.preference = preference
    return new_state


def remove_application(state: PlannerState, holiday_id: str, application_id: str) -> PlannerState:
    new_state = state.model_copy(deep=True)
    holiday = require_preference_holiday(new_state, holiday_id)
    _require_application(holiday, application_id)
    holiday.applications = [app for app in holiday.applications if app.id != application_id]
    return new_state


# ── Roster ──


def _clean_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise PlannerRejection("invalid_name", "Name must not be empty")
    return cleaned


def add_member(state: PlannerState, name: str) -> PlannerState:
    member = TeamMember(id=new_id(), name=_clean_name(name))
    new_state = state.model_copy(deep=True)
    new_state.team_members.append(member)
    return new_state


def rename_member(state: PlannerState, member_id: str, name: str) -> PlannerState:
    cleaned = _clean_name(name)
    new_state = state.model_copy(deep=True)
    member = find_member(new_state, member_id)
    if member is None:
        raise PlannerRejection("not_found", f"No team member with id {member_id!r}")
    member.name = cleaned
    for holiday in new_state.holidays:
        entries = holiday.applications if isinstance(holiday, PreferenceHoliday) else holiday.daily_assignments
        for entry in entries:
            if entry.member_id == member_id:
                entry.member_name = cleaned
    return new_state


def remove_member(state: PlannerState, member_id: str) -> PlannerState:
    if find_member(state, member_id) is None:
        raise PlannerRejection("not_found", f"No team member with id {member_id!r}")
    new_state = state.model_copy(deep=True)
    new_state.team_members = [m for m in new_state.team_members if m.id != member_id]
    for holiday in new_state.holidays:
        if isinstance(holiday, PreferenceHoliday):
            holiday.applications = [a for a in holiday.applications if a.member_id != member_id]
        else:
            holiday.daily_assignments = [d for d in holiday.daily_assignments if d.member_id != member_id]
    return new_state


def set_default_preference(state: PlannerState, value: int) -> PlannerState:
    new_state = state.model_copy(deep=True)
    new_state.default_preference = max(1, int(value))
    return new_state


# ── Holidays ──


def add_holiday(
    state: PlannerState,
    name: str,
    start_date: str,
    end_date: str,
    slots: int,
    is_special_lottery: bool = False,
) -> PlannerState:
    cleaned = _clean_name(name)
    if slots <= 0:
        raise PlannerRejection("invalid_slots", "slots must be a positive integer")
    start, end = _validated_range(start_date, end_date)
    holiday_cls = LotteryHoliday if is_special_lottery else PreferenceHoliday
    holiday = holiday_cls(id=new_id(), name=cleaned, start_date=start, end_date=end, slots=slots)
    new_state = state.model_copy(deep=True)
    new_state.holidays.append(holiday)
    return new_state


def remove_holiday(state: PlannerState, holiday_id: str) -> PlannerState:
    require_holiday(state, holiday_id)
    new_state = state.model_copy(deep=True)
    new_state.holidays = [h for h in new_state.holidays if h.id != holiday_id]
    return new_state


def move_holiday(state: PlannerState, ordered_ids: list[str]) -> PlannerState:
    current_ids = [h.id for h in state.holidays]
    if len(ordered_ids) != len(current_ids) or set(ordered_ids) != set(current_ids):
        raise PlannerRejection("invalid_order", "Holiday order must list every existing holiday exactly once")
    new_state = state.model_copy(deep=True)
    by_id = {h.id: h for h in new_state.holidays}
    new_state.holidays = [by_id[hid] for hid in ordered_ids]
    return new_state


def update_holiday_details(
    state: PlannerState,
    holiday_id: str,
    start_date: str | None = None,
    end_date: str | None = None,
    slots: int | None = None,
) -> PlannerState:
    new_state = state.model_copy(deep=True)
    holiday = require_holiday(new_state, holiday_id)
    if slots is not None:
        if slots <= 0:
            raise PlannerRejection("invalid_slots", "slots must be a positive integer")
        holiday.slots = slots
    if start_date is not None or end_date is not None:
        start, end = _validated_range(
            start_date if start_date is not None else holiday.start_date,
            end_date if end_date is not None else holiday.end_date,
        )
        holiday.start_date, holiday.end_date = start, end
        if isinstance(holiday, LotteryHoliday):
            # assignments and labels may only reference dates inside the range
            in_range = set(dates_between(start, end))
            holiday.daily_assignments = [d for d in holiday.daily_assignments if d.date in in_range]
            holiday.daily_labels = {k: v for k, v in holiday.daily_labels.items() if k in in_range}
    return new_state
