"""HTTP handler implementations used by the routers."""

from __future__ import annotations

import datetime
import logging
from typing import Any, Dict

from fastapi import HTTPException, Request
from fastapi.responses import RedirectResponse
from pydantic import ValidationError

from study_planner.core.config import get_notification_auto_dismiss_seconds
from study_planner.core.dates import try_parse_date
from study_planner.models import SubjectCreate, SubjectUpdate, TaskCreate, TaskUpdate
from study_planner.services.calendar_service import normalize_year_month
from study_planner.services.gateway import (
    GatewayError,
    NotFoundError,
    PlannerGateway,
    serialize_subject,
    serialize_task,
)
from study_planner.services.notification_service import NotificationCenter, check_upcoming_items
from study_planner.web.auth import UserContext

logger = logging.getLogger(__name__)

# The Sunday-first grid pads with days of the neighbouring years.
MIN_YEAR = datetime.MINYEAR + 1
MAX_YEAR = datetime.MAXYEAR - 1


async def _read_payload(request: Request) -> Dict[str, Any]:
    content_type = request.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            payload = await request.json()
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid request body")
        if not isinstance(payload, dict):
            raise HTTPException(status_code=400, detail="Invalid request body")
        return payload
    form = await request.form()
    return {key: value for key, value in form.items()}


def _is_form_post(request: Request) -> bool:
    return "application/json" not in request.headers.get("content-type", "")


def _validation_detail(label: str, exc: ValidationError) -> str:
    fields = sorted({".".join(str(part) for part in error["loc"]) or "form" for error in exc.errors()})
    return f"Please check the {label} form: {', '.join(fields)}"


def _validate(schema, payload: Dict[str, Any], label: str):
    try:
        return schema.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=_validation_detail(label, exc))


def _parse_optional_int(value: Any, name: str) -> int | None:
    if value in (None, "", "all"):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail=f"{name} must be a number")


def _redirect(request: Request, endpoint: str) -> RedirectResponse:
    return RedirectResponse(url=str(request.url_for(endpoint)), status_code=303)


def api_flash(request: Request, *, pop_flashed_messages_fn):
    return {"messages": pop_flashed_messages_fn(request)}


def page(request: Request, page_id: str, user: UserContext | None, *, template_response_fn):
    return template_response_fn(
        request,
        "spa.html",
        {"page_id": page_id, "user": user, "page_date": None},
    )


def day_page(request: Request, date_str: str, user: UserContext | None, *, template_response_fn):
    date_obj = try_parse_date(date_str)
    if date_obj is None:
        return RedirectResponse(url=str(request.url_for("index")), status_code=303)
    return template_response_fn(
        request,
        "spa.html",
        {"page_id": "day", "user": user, "page_date": date_obj.isoformat()},
    )


def api_session(user: UserContext | None):
    if user is None:
        return {"authenticated": False, "user": None}
    return {
        "authenticated": True,
        "user": {"user_id": user.user_id, "display_name": user.display_name},
    }


async def create_session(request: Request, *, sign_in_fn):
    payload = await _read_payload(request)
    user_id = str(payload.get("user_id") or "").strip()
    if not user_id:
        raise HTTPException(status_code=400, detail="user_id is required")
    display_name = (str(payload.get("display_name") or "").strip()) or None
    user = sign_in_fn(request, user_id, display_name)
    logger.info("User %s signed in", user.user_id)
    return api_session(user)


def delete_session(request: Request, *, sign_out_fn):
    sign_out_fn(request)
    return {"authenticated": False, "user": None}


def api_dashboard(gateway: PlannerGateway, *, get_dashboard_fn, today: datetime.date | None = None):
    try:
        return get_dashboard_fn(gateway, today or datetime.date.today())
    except GatewayError:
        raise HTTPException(status_code=500, detail="Failed to load dashboard")


def api_subjects(request: Request, gateway: PlannerGateway, *, list_subjects_view_fn):
    day = _parse_optional_int(request.query_params.get("day"), "day")
    if day is not None and not 0 <= day <= 6:
        raise HTTPException(status_code=400, detail="day must be between 0 and 6")
    try:
        return list_subjects_view_fn(gateway, day)
    except GatewayError:
        raise HTTPException(status_code=500, detail="Failed to load subjects")


def api_subject_detail(subject_id: int, gateway: PlannerGateway):
    try:
        return serialize_subject(gateway.get_subject(subject_id))
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Subject not found")


async def create_subject(request: Request, gateway: PlannerGateway, *, flash_fn):
    payload = await _read_payload(request)
    data = _validate(SubjectCreate, payload, "subject")
    try:
        subject = gateway.create_subject(data.model_dump())
    except GatewayError:
        raise HTTPException(status_code=500, detail="Failed to save subject")
    flash_fn(request, "Subject added.")
    if _is_form_post(request):
        return _redirect(request, "subjects_page")
    return serialize_subject(subject)


async def update_subject(request: Request, subject_id: int, gateway: PlannerGateway, *, flash_fn):
    payload = await _read_payload(request)
    changes = _validate(SubjectUpdate, payload, "subject").model_dump(exclude_unset=True)
    try:
        subject = gateway.get_subject(subject_id)
        # 日本語: 部分更新後の値で開始<終了を再検証 / English: Re-check start < end against the merged values
        merged = {**serialize_subject(subject), **changes}
        _validate(SubjectCreate, merged, "subject")
        subject = gateway.update_subject(subject_id, changes)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Subject not found")
    except GatewayError:
        raise HTTPException(status_code=500, detail="Failed to save subject")
    flash_fn(request, "Subject updated.")
    if _is_form_post(request):
        return _redirect(request, "subjects_page")
    return serialize_subject(subject)


def delete_subject(request: Request, subject_id: int, gateway: PlannerGateway, *, flash_fn, redirect: bool = False):
    try:
        gateway.delete_subject(subject_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Subject not found")
    except GatewayError:
        raise HTTPException(status_code=500, detail="Failed to delete subject")
    flash_fn(request, "Subject deleted.")
    if redirect:
        return _redirect(request, "subjects_page")
    return {"status": "ok"}


def api_tasks(request: Request, gateway: PlannerGateway, *, list_tasks_view_fn, today: datetime.date | None = None):
    params = request.query_params
    status = params.get("status") or "all"
    if status not in {"all", "pending", "completed"}:
        raise HTTPException(status_code=400, detail="status must be all, pending or completed")
    try:
        return list_tasks_view_fn(
            gateway,
            today or datetime.date.today(),
            search=params.get("search", ""),
            subject_id=_parse_optional_int(params.get("subject_id"), "subject_id"),
            status=status,
        )
    except GatewayError:
        raise HTTPException(status_code=500, detail="Failed to load tasks")


def api_task_detail(task_id: int, gateway: PlannerGateway):
    try:
        return serialize_task(gateway.get_task(task_id))
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Task not found")


async def create_task(request: Request, gateway: PlannerGateway, *, flash_fn):
    payload = await _read_payload(request)
    data = _validate(TaskCreate, payload, "task")
    try:
        task = gateway.create_task(data.model_dump())
    except NotFoundError:
        raise HTTPException(status_code=400, detail="Please check the task form: subject_id")
    except GatewayError:
        raise HTTPException(status_code=500, detail="Failed to save task")
    flash_fn(request, "Task added.")
    if _is_form_post(request):
        return _redirect(request, "tasks_page")
    return serialize_task(task)


async def update_task(request: Request, task_id: int, gateway: PlannerGateway, *, flash_fn):
    payload = await _read_payload(request)
    changes = _validate(TaskUpdate, payload, "task").model_dump(exclude_unset=True)
    try:
        gateway.get_task(task_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Task not found")
    try:
        task = gateway.update_task(task_id, changes)
    except NotFoundError:
        raise HTTPException(status_code=400, detail="Please check the task form: subject_id")
    except GatewayError:
        raise HTTPException(status_code=500, detail="Failed to save task")
    flash_fn(request, "Task updated.")
    if _is_form_post(request):
        return _redirect(request, "tasks_page")
    return serialize_task(task)


def delete_task(request: Request, task_id: int, gateway: PlannerGateway, *, flash_fn, redirect: bool = False):
    try:
        gateway.delete_task(task_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Task not found")
    except GatewayError:
        raise HTTPException(status_code=500, detail="Failed to delete task")
    flash_fn(request, "Task deleted.")
    if redirect:
        return _redirect(request, "tasks_page")
    return {"status": "ok"}


def toggle_task(request: Request, task_id: int, gateway: PlannerGateway, *, flash_fn, redirect: bool = False):
    try:
        task = gateway.toggle_task(task_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Task not found")
    except GatewayError:
        raise HTTPException(status_code=500, detail="Failed to update task status")
    flash_fn(request, "Task marked as done." if task.is_completed else "Task marked as not done.")
    if redirect:
        return _redirect(request, "tasks_page")
    return serialize_task(task)


def api_calendar(request: Request, gateway: PlannerGateway, *, get_month_calendar_fn, today: datetime.date | None = None):
    today = today or datetime.date.today()
    try:
        year = int(request.query_params.get("year", today.year))
        month = int(request.query_params.get("month", today.month))
    except ValueError:
        raise HTTPException(status_code=400, detail="year and month must be numbers")
    # Navigation rolls over one step at a time: month 0 and 13 are the only overflow values.
    if not 0 <= month <= 13 or not MIN_YEAR <= normalize_year_month(year, month)[0] <= MAX_YEAR:
        raise HTTPException(status_code=400, detail="year and month are out of range")
    try:
        return get_month_calendar_fn(gateway, year, month, today)
    except GatewayError:
        raise HTTPException(status_code=500, detail="Failed to load calendar")


def api_day_view(date_str: str, gateway: PlannerGateway, *, get_day_detail_fn):
    try:
        date_obj = datetime.datetime.strptime(date_str, "%Y-%m-%d").date()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid date format")
    try:
        return get_day_detail_fn(gateway, date_obj)
    except GatewayError:
        raise HTTPException(status_code=500, detail="Failed to load calendar")


def api_search(request: Request, gateway: PlannerGateway, *, search_items_fn):
    try:
        return search_items_fn(gateway, request.query_params.get("q", ""))
    except GatewayError:
        raise HTTPException(status_code=500, detail="Search failed")


def add_sample_data(gateway: PlannerGateway, *, seed_sample_data_fn):
    try:
        messages = seed_sample_data_fn(gateway)
    except GatewayError:
        raise HTTPException(status_code=500, detail="Failed to add sample data")
    if not messages:
        return {"status": "ok", "message": "Data already exists, nothing new seeded."}
    return {"status": "ok", "message": "; ".join(messages)}


def _notification_payload(center: NotificationCenter, user: UserContext, items) -> Dict[str, Any]:
    permission = center.get_permission(user.user_id)
    return {
        "notifications": [item.to_dict() for item in items],
        "permission": permission,
        "system": permission == "granted",
        "auto_dismiss_seconds": get_notification_auto_dismiss_seconds(),
    }


def api_notifications(center: NotificationCenter, user: UserContext):
    return _notification_payload(center, user, center.items(user.user_id))


def api_new_notifications(center: NotificationCenter, user: UserContext):
    return _notification_payload(center, user, center.pop_undelivered(user.user_id))


def remove_notification(notification_id: str, center: NotificationCenter, user: UserContext):
    if not center.remove(user.user_id, notification_id):
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"status": "ok"}


def clear_notifications(center: NotificationCenter, user: UserContext):
    center.clear(user.user_id)
    return {"status": "cleared"}


async def update_notification_permission(request: Request, center: NotificationCenter, user: UserContext):
    payload = await _read_payload(request)
    try:
        permission = center.set_permission(user.user_id, str(payload.get("permission", "")))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"permission": permission}


def check_notifications_now(
    gateway: PlannerGateway,
    center: NotificationCenter,
    user: UserContext,
    *,
    now: datetime.datetime | None = None,
):
    now = now or datetime.datetime.now()
    try:
        found = check_upcoming_items(gateway, now)
    except GatewayError:
        raise HTTPException(status_code=500, detail="Failed to check notifications")
    published = [item for item in found if center.publish(user.user_id, item, today=now.date())]
    return _notification_payload(center, user, published)
