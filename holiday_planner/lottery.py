"""Daily-duty assignment for lottery holidays."""

from __future__ import annotations

import logging
import random

from holiday_planner.planner import (
    DailyAssignment,
    PlannerRejection,
    PlannerState,
    dates_between,
    require_lottery_holiday,
    require_member,
)

logger = logging.getLogger(__name__)


def run_lottery(state: PlannerState, holiday_id: str, rng: random.Random | None = None) -> PlannerState:
    """Fill unassigned dates with randomly ordered members who hold no date yet.

    Existing assignments are never touched. Dates or members left over once
    one side runs out stay as they are.
    """
    rng = rng or random.Random()
    new_state = state.model_copy(deep=True)
    holiday = require_lottery_holiday(new_state, holiday_id)

    assigned_dates = {da.date for da in holiday.daily_assignments}
    unassigned_dates = [d for d in dates_between(holiday.start_date, holiday.end_date) if d not in assigned_dates]

    assigned_member_ids = {da.member_id for da in holiday.daily_assignments}
    available_members = [m for m in new_state.team_members if m.id not in assigned_member_ids]

    if not unassigned_dates or not available_members:
        logger.info("lottery for %s had nothing to fill", holiday.name)
        return state

    rng.shuffle(available_members)
    for day, member in zip(unassigned_dates, available_members):
        holiday.daily_assignments.append(
            DailyAssignment(date=day, member_id=member.id, member_name=member.name, type="lottery")
        )

    filled = min(len(unassigned_dates), len(available_members))
    logger.info(
        "lottery for %s assigned %d date(s), %d left unassigned",
        holiday.name,
        filled,
        len(unassigned_dates) - filled,
    )
    return new_state


def clear_lottery(state: PlannerState, holiday_id: str) -> PlannerState:
    if not any(da.type == "lottery" for da in require_lottery_holiday(state, holiday_id).daily_assignments):
        return state
    new_state = state.model_copy(deep=True)
    holiday = require_lottery_holiday(new_state, holiday_id)
    holiday.daily_assignments = [da for da in holiday.daily_assignments if da.type != "lottery"]
    return new_state


def add_daily_assignment(state: PlannerState, holiday_id: str, member_id: str, day: str) -> PlannerState:
    new_state = state.model_copy(deep=True)
    holiday = require_lottery_holiday(new_state, holiday_id)
    member = require_member(new_state, member_id)
    if day not in dates_between(holiday.start_date, holiday.end_date):
        raise PlannerRejection("date_out_of_range", f"{day} is outside {holiday.start_date} ~ {holiday.end_date}")
    if any(da.date == day for da in holiday.daily_assignments):
        raise PlannerRejection("date_taken", f"{day} already has an assignment")
    if any(da.member_id == member_id for da in holiday.daily_assignments):
        raise PlannerRejection("member_already_assigned", f"{member.name} already holds a date on {holiday.name}")
    holiday.daily_assignments.append(
        DailyAssignment(date=day, member_id=member.id, member_name=member.name, type="volunteer")
    )
    return new_state


def remove_daily_assignment(state: PlannerState, holiday_id: str, day: str) -> PlannerState:
    new_state = state.model_copy(deep=True)
    holiday = require_lottery_holiday(new_state, holiday_id)
    assignment = next((da for da in holiday.daily_assignments if da.date == day), None)
    if assignment is None:
        raise PlannerRejection("not_found", f"No assignment on {day}")
    if assignment.type == "lottery":
        raise PlannerRejection("lottery_assignment", "Lottery assignments can only be removed by clearing the lottery")
    holiday.daily_assignments = [da for da in holiday.daily_assignments if da.date != day]
    return new_state


def update_daily_label(state: PlannerState, holiday_id: str, day: str, label: str) -> PlannerState:
    current = require_lottery_holiday(state, holiday_id)
    if day not in dates_between(current.start_date, current.end_date):
        raise PlannerRejection("date_out_of_range", f"{day} is outside {current.start_date} ~ {current.end_date}")
    cleaned = (label or "").strip()
    if current.daily_labels.get(day, "") == cleaned:
        return state
    new_state = state.model_copy(deep=True)
    holiday = require_lottery_holiday(new_state, holiday_id)
    if cleaned:
        holiday.daily_labels[day] = cleaned
    else:
        holiday.daily_labels.pop(day, None)
    return new_state
