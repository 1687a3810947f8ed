"""Page routes."""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from study_planner.web import handlers as web_handlers
from study_planner.web.auth import current_user_or_none
from study_planner.web.templates import template_response

# 日本語: HTMLページ配信用ルーター / English: Router for HTML page endpoints
router = APIRouter()


@router.get("/", response_class=HTMLResponse, name="index")
def index(request: Request):
    # 日本語: ダッシュボード / English: Dashboard page
    return web_handlers.page(
        request, "dashboard", current_user_or_none(request), template_response_fn=template_response
    )


@router.get("/subjects", response_class=HTMLResponse, name="subjects_page")
def subjects_page(request: Request):
    # 日本語: 科目一覧ページ / English: Subject list page
    return web_handlers.page(
        request, "subjects", current_user_or_none(request), template_response_fn=template_response
    )


@router.get("/tasks", response_class=HTMLResponse, name="tasks_page")
def tasks_page(request: Request):
    # 日本語: 課題一覧ページ / English: Task list page
    return web_handlers.page(
        request, "tasks", current_user_or_none(request), template_response_fn=template_response
    )


@router.get("/calendar", response_class=HTMLResponse, name="calendar_page")
def calendar_page(request: Request):
    # 日本語: 月間カレンダーページ / English: Monthly calendar page
    return web_handlers.page(
        request, "calendar", current_user_or_none(request), template_response_fn=template_response
    )


@router.get("/day/{date_str}", response_class=HTMLResponse, name="day_page")
def day_page(request: Request, date_str: str):
    # 日本語: 日次詳細ページ / English: Day-detail page
    return web_handlers.day_page(
        request, date_str, current_user_or_none(request), template_response_fn=template_response
    )
