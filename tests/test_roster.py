from __future__ import annotations

import pytest
from pydantic import ValidationError

from holiday_planner.lottery import add_daily_assignment
from holiday_planner.planner import (
    LotteryHoliday,
    PlannerRejection,
    PlannerState,
    PreferenceHoliday,
    add_application,
    add_holiday,
    add_member,
    dates_between,
    holiday_year,
    move_holiday,
    remove_holiday,
    remove_member,
    rename_member,
    require_holiday,
    set_default_preference,
    update_holiday_details,
)
from holiday_planner.seed import seed_document, seed_state


def build_state() -> PlannerState:
    state = PlannerState.model_validate(
        {
            "teamMembers": [{"id": "a", "name": "Ann"}, {"id": "b", "name": "Ben"}],
            "holidays": [
                {"id": "spring", "name": "Spring", "startDate": "2025-02-28", "endDate": "2025-03-02", "slots": 2},
                {
                    "id": "fest",
                    "name": "Festival",
                    "startDate": "2025-01-28",
                    "endDate": "2025-01-30",
                    "slots": 1,
                    "isSpecialLottery": True,
                },
            ],
        }
    )
    state = add_application(state, "spring", "a", 1)
    state = add_application(state, "spring", "b", 1)
    return add_daily_assignment(state, "fest", "a", "2025-01-28")


def test_add_member_strips_name_and_rejects_blank():
    state = add_member(build_state(), "  Cy ")
    assert state.team_members[-1].name == "Cy"
    assert state.team_members[-1].id not in {"a", "b"}

    with pytest.raises(PlannerRejection) as exc:
        add_member(state, "   ")
    assert exc.value.code == "invalid_name"


def test_rename_propagates_into_applications_and_assignments():
    state = rename_member(build_state(), "a", "Annie")

    spring = require_holiday(state, "spring")
    fest = require_holiday(state, "fest")
    assert [app.member_name for app in spring.applications if app.member_id == "a"] == ["Annie"]
    assert [da.member_name for da in fest.daily_assignments] == ["Annie"]
    assert [app.member_name for app in spring.applications if app.member_id == "b"] == ["Ben"]


def test_remove_member_cascades_everywhere():
    state = remove_member(build_state(), "a")

    assert [m.id for m in state.team_members] == ["b"]
    assert [app.member_id for app in require_holiday(state, "spring").applications] == ["b"]
    assert require_holiday(state, "fest").daily_assignments == []

    with pytest.raises(PlannerRejection) as exc:
        remove_member(state, "a")
    assert exc.value.code == "not_found"


def test_add_holiday_creates_the_matching_variant():
    state = add_holiday(build_state(), "Summer", "2025-07-01", "2025-07-03", 2)
    state = add_holiday(state, "Lantern", "2025-02-12", "2025-02-14", 1, is_special_lottery=True)

    summer, lantern = state.holidays[-2:]
    assert isinstance(summer, PreferenceHoliday)
    assert isinstance(lantern, LotteryHoliday)
    assert lantern.daily_assignments == []


@pytest.mark.parametrize(
    ("name", "start", "end", "slots", "code"),
    [
        ("", "2025-07-01", "2025-07-03", 2, "invalid_name"),
        ("Summer", "2025-07-01", "2025-07-03", 0, "invalid_slots"),
        ("Summer", "2025-07-03", "2025-07-01", 2, "invalid_dates"),
        ("Summer", "07/01/2025", "2025-07-03", 2, "invalid_dates"),
    ],
)
def test_add_holiday_validation(name, start, end, slots, code):
    with pytest.raises(PlannerRejection) as exc:
        add_holiday(build_state(), name, start, end, slots)
    assert exc.value.code == code


def test_move_holiday_reorders_and_requires_a_full_permutation():
    state = move_holiday(build_state(), ["fest", "spring"])
    assert [h.id for h in state.holidays] == ["fest", "spring"]

    for bad in (["fest"], ["fest", "fest"], ["fest", "spring", "ghost"]):
        with pytest.raises(PlannerRejection) as exc:
            move_holiday(state, bad)
        assert exc.value.code == "invalid_order"


def test_update_holiday_details_is_partial():
    state = update_holiday_details(build_state(), "spring", slots=1)
    spring = require_holiday(state, "spring")
    assert (spring.start_date, spring.end_date, spring.slots) == ("2025-02-28", "2025-03-02", 1)

    state = update_holiday_details(state, "spring", end_date="2025-03-05")
    assert require_holiday(state, "spring").end_date == "2025-03-05"

    with pytest.raises(PlannerRejection) as exc:
        update_holiday_details(state, "spring", start_date="2025-03-10")
    assert exc.value.code == "invalid_dates"

    with pytest.raises(PlannerRejection) as exc:
        update_holiday_details(state, "spring", slots=-1)
    assert exc.value.code == "invalid_slots"


def test_remove_holiday():
    state = remove_holiday(build_state(), "fest")
    assert [h.id for h in state.holidays] == ["spring"]
    with pytest.raises(PlannerRejection):
        remove_holiday(state, "fest")


def test_default_preference_is_at_least_one():
    assert set_default_preference(build_state(), 0).default_preference == 1
    assert set_default_preference(build_state(), 7).default_preference == 7


def test_document_round_trip_keeps_wire_shape():
    document = build_state().to_document()

    assert set(document) == {"teamMembers", "holidays", "defaultPreference"}
    spring, fest = document["holidays"]
    assert spring["isSpecialLottery"] is False
    assert spring["applications"][0]["memberId"] == "a"
    assert fest["isSpecialLottery"] is True
    assert fest["dailyAssignments"][0]["type"] == "volunteer"
    assert "applications" not in fest
    assert PlannerState.model_validate(document).to_document() == document


def test_legacy_documents_load_into_the_right_variant():
    state = PlannerState.model_validate(
        {
            "teamMembers": [],
            "holidays": [
                {"id": "x", "name": "Plain", "startDate": "2025-05-01", "endDate": "2025-05-01", "slots": 1, "applications": []},
                {
                    "id": "y",
                    "name": "Lottery",
                    "startDate": "2025-05-02",
                    "endDate": "2025-05-03",
                    "slots": 1,
                    "applications": [],
                    "isSpecialLottery": True,
                },
            ],
            "defaultPreference": 5,
        }
    )
    assert isinstance(state.holidays[0], PreferenceHoliday)
    assert isinstance(state.holidays[1], LotteryHoliday)
    assert state.holidays[1].daily_labels == {}


def test_seed_dataset_is_a_valid_2025_calendar():
    state = seed_state()
    assert len(state.team_members) == 6
    assert len(state.holidays) == 8
    assert all(h.start_date.startswith("2025-") for h in state.holidays)
    assert state.default_preference == 5
    assert state.to_document() == PlannerState.model_validate(seed_document()).to_document()


def test_compact_dates_are_stored_in_extended_form():
    state = PlannerState.model_validate(
        {
            "teamMembers": [{"id": "a", "name": "Ann"}],
            "holidays": [
                {"id": "spring", "name": "Spring", "startDate": "20250228", "endDate": "2025-03-02", "slots": 1},
                {
                    "id": "fest",
                    "name": "Festival",
                    "startDate": "20250128",
                    "endDate": "20250130",
                    "slots": 1,
                    "isSpecialLottery": True,
                },
            ],
        }
    )

    spring = require_holiday(state, "spring")
    assert (spring.start_date, spring.end_date) == ("2025-02-28", "2025-03-02")
    assert dates_between(spring.start_date, spring.end_date) == ["2025-02-28", "2025-03-01", "2025-03-02"]
    assert holiday_year(spring.start_date) == 2025
    assert add_daily_assignment(state, "fest", "a", "2025-01-29").holidays[1].daily_assignments[0].date == "2025-01-29"

    with pytest.raises(ValidationError):
        PlannerState.model_validate(
            {
                "teamMembers": [],
                "holidays": [{"id": "x", "name": "Backwards", "startDate": "20250302", "endDate": "2025-02-28", "slots": 1}],
            }
        )
