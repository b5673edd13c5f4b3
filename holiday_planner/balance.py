"""Greedy fair distribution of remaining preference-holiday slots."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field

from holiday_planner.planner import (
    Application,
    LotteryHoliday,
    PlannerState,
    PreferenceHoliday,
    TeamMember,
    available_preferences,
    holiday_year,
    new_id,
    resolve_approvals,
)

logger = logging.getLogger(__name__)


@dataclass
class BalanceResult:
    state: PlannerState
    created: list[tuple[str, Application]] = field(default_factory=list)


def approved_day_counts(state: PlannerState) -> dict[str, int]:
    """Per-member count of lottery duty days plus approved preference holidays."""
    counts = {m.id: 0 for m in state.team_members}
    for holiday in state.holidays:
        if isinstance(holiday, LotteryHoliday):
            for assignment in holiday.daily_assignments:
                if assignment.member_id in counts:
                    counts[assignment.member_id] += 1
        else:
            for app in resolve_approvals(holiday).approved:
                if app.member_id in counts:
                    counts[app.member_id] += 1
    return counts


def _eligible_holiday(state: PlannerState, member: TeamMember) -> tuple[PreferenceHoliday, list[int]] | None:
    for holiday in state.holidays:
        if not isinstance(holiday, PreferenceHoliday) or not holiday.start_date:
            continue
        if len(holiday.applications) >= holiday.slots:
            continue
        if any(app.member_id == member.id for app in holiday.applications):
            continue
        choices = available_preferences(state, member.id, holiday_year(holiday.start_date))
        if choices:
            return holiday, choices
    return None


def auto_assign_remaining(state: PlannerState, rng: random.Random | None = None) -> BalanceResult:
    """Give open slots to whoever currently holds the fewest approved days.

    Each round recomputes every member's count, picks the first member in
    roster order with the lowest count and registers them on the first
    preference holiday that still has room, using a random rank from their
    unused ranks for that year. Stops as soon as that member has nowhere
    left to go.
    """
    rng = rng or random.Random()
    new_state = state.model_copy(deep=True)
    created: list[tuple[str, Application]] = []

    while new_state.team_members:
        counts = approved_day_counts(new_state)
        target = min(new_state.team_members, key=lambda m: counts[m.id])
        found = _eligible_holiday(new_state, target)
        if found is None:
            break
        holiday, choices = found
        app = Application(
            id=new_id(),
            member_id=target.id,
            member_name=target.name,
            preference=rng.choice(choices),
        )
        holiday.applications.append(app)
        created.append((holiday.id, app))
        logger.debug("auto-assigned %s to %s with preference %d", target.name, holiday.name, app.preference)

    logger.info("auto-assign created %d application(s)", len(created))
    if not created:
        return BalanceResult(state=state)
    return BalanceResult(state=new_state, created=created)
