"""Dashboard and search API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from study_planner.services.gateway import SqlPlannerGateway
from study_planner.services.planner_service import get_dashboard, search_items
from study_planner.services.sample_data_service import seed_sample_data
from study_planner.web import handlers as web_handlers
from study_planner.web.auth import get_gateway

router = APIRouter()


@router.get("/api/dashboard", name="api_dashboard")
def api_dashboard(gateway: SqlPlannerGateway = Depends(get_gateway)):
    # 日本語: 今日・明日の授業と直近の課題 / English: Today's and tomorrow's classes plus upcoming tasks
    return web_handlers.api_dashboard(gateway, get_dashboard_fn=get_dashboard)


@router.get("/api/search", name="api_search")
def api_search(request: Request, gateway: SqlPlannerGateway = Depends(get_gateway)):
    return web_handlers.api_search(request, gateway, search_items_fn=search_items)


@router.post("/api/add_sample_data", name="add_sample_data")
def add_sample_data(gateway: SqlPlannerGateway = Depends(get_gateway)):
    # 日本語: 手動確認用サンプルデータ投入 / English: Seed sample data for manual checks
    return web_handlers.add_sample_data(gateway, seed_sample_data_fn=seed_sample_data)
