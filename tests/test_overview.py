from __future__ import annotations

from holiday_planner.overview import build_overview
from holiday_planner.planner import PlannerState


def build_state() -> PlannerState:
    return PlannerState.model_validate(
        {
            "teamMembers": [
                {"id": "a", "name": "Ann"},
                {"id": "b", "name": "Ben"},
                {"id": "c", "name": "Cy"},
            ],
            "holidays": [
                {
                    "id": "spring",
                    "name": "Spring",
                    "startDate": "2025-02-28",
                    "endDate": "2025-03-02",
                    "slots": 1,
                    "applications": [
                        {"id": "1", "memberId": "b", "memberName": "Ben", "preference": 1},
                        {"id": "2", "memberId": "a", "memberName": "Ann", "preference": 2},
                    ],
                },
                {
                    "id": "fest",
                    "name": "Festival",
                    "startDate": "2025-01-28",
                    "endDate": "2025-01-30",
                    "slots": 1,
                    "isSpecialLottery": True,
                    "dailyAssignments": [
                        {"date": "2025-01-28", "memberId": "c", "memberName": "Cy", "type": "lottery"},
                        {"date": "2025-01-29", "memberId": "a", "memberName": "Ann", "type": "volunteer"},
                    ],
                    "dailyLabels": {"2025-01-28": "Eve"},
                },
            ],
        }
    )


def test_overview_lists_approved_holidays_and_duty_days():
    rows = {row.member_id: row for row in build_overview(build_state())}

    ben = rows["b"]
    assert ben.holiday_days == 1
    assert [(d.holiday_name, d.date_info, d.category) for d in ben.assigned_days] == [
        ("Spring", "2025-02-28 ~ 2025-03-02", "holiday"),
    ]

    # waitlisted applications are not part of the overview
    ann = rows["a"]
    assert ann.holiday_days == 0
    assert [(d.holiday_name, d.date_info, d.category) for d in ann.assigned_days] == [
        ("Festival", "2025-01-29", "onduty"),
    ]
    assert rows["c"].assigned_days[0].holiday_name == "Festival (Eve)"
    assert rows["c"].onduty_days == 1


def test_overview_sorts_by_holiday_days_then_roster_order():
    order = [row.member_id for row in build_overview(build_state())]
    assert order == ["b", "a", "c"]


def test_overview_serializes_with_camel_case_keys():
    row = build_overview(build_state())[0].model_dump(by_alias=True)
    assert set(row) == {"memberId", "memberName", "holidayDays", "ondutyDays", "assignedDays"}
    assert set(row["assignedDays"][0]) == {"holidayName", "dateInfo", "category"}
