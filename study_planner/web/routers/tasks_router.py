"""Task CRUD routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from study_planner.services.gateway import SqlPlannerGateway
from study_planner.services.planner_service import list_tasks_view
from study_planner.web import handlers as web_handlers
from study_planner.web.auth import get_gateway
from study_planner.web.templates import flash

router = APIRouter()


@router.get("/api/tasks", name="api_tasks")
def api_tasks(request: Request, gateway: SqlPlannerGateway = Depends(get_gateway)):
    return web_handlers.api_tasks(request, gateway, list_tasks_view_fn=list_tasks_view)


@router.post("/api/tasks", name="create_task")
async def create_task(request: Request, gateway: SqlPlannerGateway = Depends(get_gateway)):
    return await web_handlers.create_task(request, gateway, flash_fn=flash)


@router.get("/api/tasks/{task_id}", name="api_task_detail")
def api_task_detail(task_id: int, gateway: SqlPlannerGateway = Depends(get_gateway)):
    return web_handlers.api_task_detail(task_id, gateway)


@router.put("/api/tasks/{task_id}", name="update_task")
async def update_task(request: Request, task_id: int, gateway: SqlPlannerGateway = Depends(get_gateway)):
    return await web_handlers.update_task(request, task_id, gateway, flash_fn=flash)


@router.delete("/api/tasks/{task_id}", name="delete_task")
def delete_task(request: Request, task_id: int, gateway: SqlPlannerGateway = Depends(get_gateway)):
    return web_handlers.delete_task(request, task_id, gateway, flash_fn=flash)


@router.post("/api/tasks/{task_id}/toggle", name="toggle_task")
def toggle_task(request: Request, task_id: int, gateway: SqlPlannerGateway = Depends(get_gateway)):
    return web_handlers.toggle_task(request, task_id, gateway, flash_fn=flash)


@router.post("/tasks/add", name="add_task_form")
async def add_task_form(request: Request, gateway: SqlPlannerGateway = Depends(get_gateway)):
    return await web_handlers.create_task(request, gateway, flash_fn=flash)


@router.post("/tasks/{task_id}/edit", name="edit_task_form")
async def edit_task_form(request: Request, task_id: int, gateway: SqlPlannerGateway = Depends(get_gateway)):
    return await web_handlers.update_task(request, task_id, gateway, flash_fn=flash)


@router.post("/tasks/{task_id}/toggle", name="toggle_task_form")
def toggle_task_form(request: Request, task_id: int, gateway: SqlPlannerGateway = Depends(get_gateway)):
    return web_handlers.toggle_task(request, task_id, gateway, flash_fn=flash, redirect=True)


@router.post("/tasks/{task_id}/delete", name="delete_task_form")
def delete_task_form(request: Request, task_id: int, gateway: SqlPlannerGateway = Depends(get_gateway)):
    return web_handlers.delete_task(request, task_id, gateway, flash_fn=flash, redirect=True)
