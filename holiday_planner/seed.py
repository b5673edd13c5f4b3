"""Dataset used when no stored document exists yet."""

from __future__ import annotations

from typing import Any

from holiday_planner.planner import PlannerState


def _holiday(hid: str, name: str, start: str, end: str, slots: int, applications=None) -> dict[str, Any]:
    return {
        "id": hid,
        "name": name,
        "startDate": start,
        "endDate": end,
        "slots": slots,
        "applications": applications or [],
        "isSpecialLottery": False,
    }


def seed_document() -> dict[str, Any]:
    return {
        "teamMembers": [
            {"id": "tm1", "name": "品孝"},
            {"id": "tm2", "name": "13"},
            {"id": "tm3", "name": "思嫺"},
            {"id": "tm4", "name": "詩涵"},
            {"id": "tm5", "name": "香"},
            {"id": "tm6", "name": "喜德"},
        ],
        "holidays": [
            _holiday(
                "h1", "228連假", "2025-02-28", "2025-03-02", 3,
                [{"id": "app1", "memberId": "tm1", "memberName": "品孝", "preference": 1}],
            ),
            _holiday(
                "h2", "4月假", "2025-04-04", "2025-04-06", 2,
                [{"id": "app2", "memberId": "tm2", "memberName": "13", "preference": 2}],
            ),
            _holiday("h3", "5月", "2025-05-01", "2025-05-01", 3),
            _holiday("h4", "6月", "2025-06-08", "2025-06-10", 3),
            _holiday("h5", "9月", "2025-09-17", "2025-09-17", 2),
            _holiday("h6", "10月國慶", "2025-10-10", "2025-10-12", 3),
            _holiday("h7", "10月光復", "2025-10-25", "2025-10-25", 3),
            _holiday("h8", "12月25", "2025-12-25", "2025-12-25", 3),
        ],
        "defaultPreference": 5,
    }


def seed_state() -> PlannerState:
    return PlannerState.model_validate(seed_document())
