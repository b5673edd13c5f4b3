"""Per-member annual summary derived from current holiday state."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from holiday_planner.planner import CamelModel, LotteryHoliday, PlannerState, resolve_approvals


class AssignedDay(CamelModel):
    holiday_name: str
    date_info: str
    category: Literal["holiday", "onduty"]


class MemberOverview(CamelModel):
    member_id: str
    member_name: str
    holiday_days: int = 0
    onduty_days: int = 0
    assigned_days: list[AssignedDay] = Field(default_factory=list)


def build_overview(state: PlannerState) -> list[MemberOverview]:
    rows = {m.id: MemberOverview(member_id=m.id, member_name=m.name) for m in state.team_members}

    for holiday in state.holidays:
        if isinstance(holiday, LotteryHoliday):
            for assignment in holiday.daily_assignments:
                row = rows.get(assignment.member_id)
                if row is None:
                    continue
                label = holiday.daily_labels.get(assignment.date, "")
                row.assigned_days.append(
                    AssignedDay(
                        holiday_name=f"{holiday.name} ({label})" if label else holiday.name,
                        date_info=assignment.date,
                        category="onduty",
                    )
                )
                row.onduty_days += 1
        else:
            for app in resolve_approvals(holiday).approved:
                row = rows.get(app.member_id)
                if row is None:
                    continue
                row.assigned_days.append(
                    AssignedDay(
                        holiday_name=holiday.name,
                        date_info=f"{holiday.start_date} ~ {holiday.end_date}",
                        category="holiday",
                    )
                )
                row.holiday_days += 1

    # sorted() is stable, so ties keep roster order
    return sorted(rows.values(), key=lambda row: -row.holiday_days)
