from __future__ import annotations

import logging
import random
import threading
from contextlib import asynccontextmanager
from functools import partial

from fastapi import Depends, FastAPI, Query, Request, status
from fastapi.responses import JSONResponse
from pydantic import Field

import holiday_planner.db as app_db
from holiday_planner import models  # noqa: F401
from holiday_planner.balance import auto_assign_remaining
from holiday_planner.config import get_document_key, get_environment, get_save_debounce_seconds
from holiday_planner.logging_config import configure_logging
from holiday_planner.lottery import (
    add_daily_assignment,
    clear_lottery,
    remove_daily_assignment,
    run_lottery,
    update_daily_label,
)
from holiday_planner.overview import MemberOverview, build_overview
from holiday_planner.planner import (
    Application,
    CamelModel,
    PlannerRejection,
    PlannerState,
    add_application,
    add_holiday,
    add_member,
    move_holiday,
    preferences_for_holiday,
    remove_application,
    remove_holiday,
    remove_member,
    rename_member,
    require_preference_holiday,
    resolve_approvals,
    set_default_preference,
    update_application_preference,
    update_holiday_details,
)
from holiday_planner.store import DocumentStore, PlannerService

logger = logging.getLogger(__name__)

_SERVICE: PlannerService | None = None
_SERVICE_LOCK = threading.Lock()

CONFLICT_CODES = {"duplicate_application", "date_taken", "member_already_assigned"}


def get_planner_service() -> PlannerService:
    global _SERVICE
    with _SERVICE_LOCK:
        if _SERVICE is None:
            service = PlannerService(DocumentStore(get_document_key()), get_save_debounce_seconds())
            service.load()
            _SERVICE = service
        return _SERVICE


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging()
    app_db.Base.metadata.create_all(bind=app_db.engine)
    # load failures abort startup; there is no offline fallback
    get_planner_service()
    yield
    if _SERVICE is not None:
        _SERVICE.shutdown()


app = FastAPI(title="Holiday Planner", lifespan=lifespan)


@app.middleware("http")
async def disable_cache_for_api(request: Request, call_next):
    response = await call_next(request)
    if request.url.path.startswith("/api/"):
        response.headers["Cache-Control"] = "no-store, no-cache, max-age=0, must-revalidate"
        response.headers["Pragma"] = "no-cache"
    return response


def rejection_status(code: str) -> int:
    if code == "not_found":
        return status.HTTP_404_NOT_FOUND
    if code in CONFLICT_CODES:
        return status.HTTP_409_CONFLICT
    return status.HTTP_400_BAD_REQUEST


@app.exception_handler(PlannerRejection)
async def planner_rejection_handler(_: Request, exc: PlannerRejection) -> JSONResponse:
    logger.debug("rejected command: %s (%s)", exc.detail, exc.code)
    return JSONResponse(status_code=rejection_status(exc.code), content={"detail": exc.detail, "code": exc.code})


class MemberPayload(CamelModel):
    name: str


class DefaultPreferencePayload(CamelModel):
    value: int


class HolidayCreatePayload(CamelModel):
    name: str
    start_date: str
    end_date: str
    slots: int
    is_special_lottery: bool = False


class HolidayPatchPayload(CamelModel):
    start_date: str | None = None
    end_date: str | None = None
    slots: int | None = None


class HolidayOrderPayload(CamelModel):
    holiday_ids: list[str]


class ApplicationCreatePayload(CamelModel):
    member_id: str
    preference: int


class ApplicationPatchPayload(CamelModel):
    preference: int


class DailyAssignmentPayload(CamelModel):
    member_id: str
    date: str


class DailyLabelPayload(CamelModel):
    label: str = ""


class ApprovalOut(CamelModel):
    approved: list[Application]
    waitlisted: list[Application]


class AvailablePreferencesOut(CamelModel):
    member_id: str
    preferences: list[int]


class CreatedApplicationOut(CamelModel):
    holiday_id: str
    application: Application


class AutoAssignOut(CamelModel):
    created: list[CreatedApplicationOut] = Field(default_factory=list)
    data: PlannerState


def _rng(seed: int | None) -> random.Random:
    return random.Random(seed) if seed is not None else random.Random()


@app.get("/health")
def health() -> dict[str, bool | str]:
    return {"ok": True, "env": get_environment()}


@app.get("/api/status")
def save_status(service: PlannerService = Depends(get_planner_service)) -> dict:
    return service.status()


@app.get("/api/data", response_model=PlannerState)
def get_data(service: PlannerService = Depends(get_planner_service)) -> PlannerState:
    return service.state


@app.put("/api/data", response_model=PlannerState)
def put_data(document: PlannerState, service: PlannerService = Depends(get_planner_service)) -> PlannerState:
    return service.replace(document.to_document())


# ── Roster ──


@app.post("/api/members", response_model=PlannerState, status_code=status.HTTP_201_CREATED)
def create_member(payload: MemberPayload, service: PlannerService = Depends(get_planner_service)) -> PlannerState:
    return service.apply(partial(add_member, name=payload.name))


@app.patch("/api/members/{member_id}", response_model=PlannerState)
def patch_member(
    member_id: str,
    payload: MemberPayload,
    service: PlannerService = Depends(get_planner_service),
) -> PlannerState:
    return service.apply(partial(rename_member, member_id=member_id, name=payload.name))


@app.delete("/api/members/{member_id}", response_model=PlannerState)
def delete_member(member_id: str, service: PlannerService = Depends(get_planner_service)) -> PlannerState:
    return service.apply(partial(remove_member, member_id=member_id))


@app.put("/api/settings/default-preference", response_model=PlannerState)
def put_default_preference(
    payload: DefaultPreferencePayload,
    service: PlannerService = Depends(get_planner_service),
) -> PlannerState:
    return service.apply(partial(set_default_preference, value=payload.value))


# ── Holidays ──


@app.post("/api/holidays", response_model=PlannerState, status_code=status.HTTP_201_CREATED)
def create_holiday(payload: HolidayCreatePayload, service: PlannerService = Depends(get_planner_service)) -> PlannerState:
    return service.apply(
        partial(
            add_holiday,
            name=payload.name,
            start_date=payload.start_date,
            end_date=payload.end_date,
            slots=payload.slots,
            is_special_lottery=payload.is_special_lottery,
        )
    )


@app.put("/api/holidays/order", response_model=PlannerState)
def reorder_holidays(payload: HolidayOrderPayload, service: PlannerService = Depends(get_planner_service)) -> PlannerState:
    return service.apply(partial(move_holiday, ordered_ids=payload.holiday_ids))


@app.patch("/api/holidays/{holiday_id}", response_model=PlannerState)
def patch_holiday(
    holiday_id: str,
    payload: HolidayPatchPayload,
    service: PlannerService = Depends(get_planner_service),
) -> PlannerState:
    return service.apply(
        partial(
            update_holiday_details,
            holiday_id=holiday_id,
            start_date=payload.start_date,
            end_date=payload.end_date,
            slots=payload.slots,
        )
    )


@app.delete("/api/holidays/{holiday_id}", response_model=PlannerState)
def delete_holiday(holiday_id: str, service: PlannerService = Depends(get_planner_service)) -> PlannerState:
    return service.apply(partial(remove_holiday, holiday_id=holiday_id))


@app.get("/api/holidays/{holiday_id}/approvals", response_model=ApprovalOut)
def get_approvals(holiday_id: str, service: PlannerService = Depends(get_planner_service)) -> ApprovalOut:
    approval = resolve_approvals(require_preference_holiday(service.state, holiday_id))
    return ApprovalOut(approved=approval.approved, waitlisted=approval.waitlisted)


@app.get("/api/holidays/{holiday_id}/available-preferences", response_model=AvailablePreferencesOut)
def get_available_preferences(
    holiday_id: str,
    member_id: str = Query(alias="memberId"),
    application_id: str | None = Query(default=None, alias="applicationId"),
    service: PlannerService = Depends(get_planner_service),
) -> AvailablePreferencesOut:
    preferences = preferences_for_holiday(service.state, holiday_id, member_id, application_id)
    return AvailablePreferencesOut(member_id=member_id, preferences=preferences)


# ── Applications ──


@app.post("/api/holidays/{holiday_id}/applications", response_model=PlannerState, status_code=status.HTTP_201_CREATED)
def create_application(
    holiday_id: str,
    payload: ApplicationCreatePayload,
    service: PlannerService = Depends(get_planner_service),
) -> PlannerState:
    return service.apply(
        partial(add_application, holiday_id=holiday_id, member_id=payload.member_id, preference=payload.preference)
    )


@app.patch("/api/holidays/{holiday_id}/applications/{application_id}", response_model=PlannerState)
def patch_application(
    holiday_id: str,
    application_id: str,
    payload: ApplicationPatchPayload,
    service: PlannerService = Depends(get_planner_service),
) -> PlannerState:
    return service.apply(
        partial(
            update_application_preference,
            holiday_id=holiday_id,
            application_id=application_id,
            preference=payload.preference,
        )
    )


@app.delete("/api/holidays/{holiday_id}/applications/{application_id}", response_model=PlannerState)
def delete_application(
    holiday_id: str,
    application_id: str,
    service: PlannerService = Depends(get_planner_service),
) -> PlannerState:
    return service.apply(partial(remove_application, holiday_id=holiday_id, application_id=application_id))


# ── Lottery holidays ──


@app.post("/api/holidays/{holiday_id}/daily-assignments", response_model=PlannerState, status_code=status.HTTP_201_CREATED)
def create_daily_assignment(
    holiday_id: str,
    payload: DailyAssignmentPayload,
    service: PlannerService = Depends(get_planner_service),
) -> PlannerState:
    return service.apply(
        partial(add_daily_assignment, holiday_id=holiday_id, member_id=payload.member_id, day=payload.date)
    )


@app.delete("/api/holidays/{holiday_id}/daily-assignments/{day}", response_model=PlannerState)
def delete_daily_assignment(
    holiday_id: str,
    day: str,
    service: PlannerService = Depends(get_planner_service),
) -> PlannerState:
    return service.apply(partial(remove_daily_assignment, holiday_id=holiday_id, day=day))


@app.put("/api/holidays/{holiday_id}/daily-labels/{day}", response_model=PlannerState)
def put_daily_label(
    holiday_id: str,
    day: str,
    payload: DailyLabelPayload,
    service: PlannerService = Depends(get_planner_service),
) -> PlannerState:
    return service.apply(partial(update_daily_label, holiday_id=holiday_id, day=day, label=payload.label))


@app.post("/api/holidays/{holiday_id}/lottery", response_model=PlannerState)
def post_lottery(
    holiday_id: str,
    seed: int | None = None,
    service: PlannerService = Depends(get_planner_service),
) -> PlannerState:
    return service.apply(partial(run_lottery, holiday_id=holiday_id, rng=_rng(seed)))


@app.delete("/api/holidays/{holiday_id}/lottery", response_model=PlannerState)
def delete_lottery(holiday_id: str, service: PlannerService = Depends(get_planner_service)) -> PlannerState:
    return service.apply(partial(clear_lottery, holiday_id=holiday_id))


# ── Bulk and read-only views ──


@app.post("/api/auto-assign", response_model=AutoAssignOut)
def post_auto_assign(seed: int | None = None, service: PlannerService = Depends(get_planner_service)) -> AutoAssignOut:
    # intended for the team leader once registration closes; not enforced
    created: list[CreatedApplicationOut] = []

    def command(state: PlannerState) -> PlannerState:
        result = auto_assign_remaining(state, _rng(seed))
        created.extend(
            CreatedApplicationOut(holiday_id=holiday_id, application=application)
            for holiday_id, application in result.created
        )
        return result.state

    state = service.apply(command)
    return AutoAssignOut(created=created, data=state)


@app.get("/api/overview", response_model=list[MemberOverview])
def get_overview(service: PlannerService = Depends(get_planner_service)) -> list[MemberOverview]:
    return build_overview(service.state)
