"""Calendar API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from study_planner.services.gateway import SqlPlannerGateway
from study_planner.services.planner_service import get_day_detail, get_month_calendar
from study_planner.web import handlers as web_handlers
from study_planner.web.auth import get_gateway

# 日本語: カレンダーAPI群 / English: Calendar API router
router = APIRouter()


@router.get("/api/calendar", name="api_calendar")
def api_calendar(request: Request, gateway: SqlPlannerGateway = Depends(get_gateway)):
    # 日本語: 月間カレンダー集計を handler に委譲 / English: Delegate monthly calendar aggregation to handler
    return web_handlers.api_calendar(request, gateway, get_month_calendar_fn=get_month_calendar)


@router.get("/api/day/{date_str}", name="api_day_view")
def api_day_view(date_str: str, gateway: SqlPlannerGateway = Depends(get_gateway)):
    return web_handlers.api_day_view(date_str, gateway, get_day_detail_fn=get_day_detail)
