"""Subject CRUD routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from study_planner.services.gateway import SqlPlannerGateway
from study_planner.services.planner_service import list_subjects_view
from study_planner.web import handlers as web_handlers
from study_planner.web.auth import get_gateway
from study_planner.web.templates import flash

router = APIRouter()


@router.get("/api/subjects", name="api_subjects")
def api_subjects(request: Request, gateway: SqlPlannerGateway = Depends(get_gateway)):
    return web_handlers.api_subjects(request, gateway, list_subjects_view_fn=list_subjects_view)


@router.post("/api/subjects", name="create_subject")
async def create_subject(request: Request, gateway: SqlPlannerGateway = Depends(get_gateway)):
    return await web_handlers.create_subject(request, gateway, flash_fn=flash)


@router.get("/api/subjects/{subject_id}", name="api_subject_detail")
def api_subject_detail(subject_id: int, gateway: SqlPlannerGateway = Depends(get_gateway)):
    return web_handlers.api_subject_detail(subject_id, gateway)


@router.put("/api/subjects/{subject_id}", name="update_subject")
async def update_subject(request: Request, subject_id: int, gateway: SqlPlannerGateway = Depends(get_gateway)):
    return await web_handlers.update_subject(request, subject_id, gateway, flash_fn=flash)


@router.delete("/api/subjects/{subject_id}", name="delete_subject")
def delete_subject(request: Request, subject_id: int, gateway: SqlPlannerGateway = Depends(get_gateway)):
    return web_handlers.delete_subject(request, subject_id, gateway, flash_fn=flash)


@router.post("/subjects/add", name="add_subject_form")
async def add_subject_form(request: Request, gateway: SqlPlannerGateway = Depends(get_gateway)):
    return await web_handlers.create_subject(request, gateway, flash_fn=flash)


@router.post("/subjects/{subject_id}/edit", name="edit_subject_form")
async def edit_subject_form(request: Request, subject_id: int, gateway: SqlPlannerGateway = Depends(get_gateway)):
    return await web_handlers.update_subject(request, subject_id, gateway, flash_fn=flash)


@router.post("/subjects/{subject_id}/delete", name="delete_subject_form")
def delete_subject_form(request: Request, subject_id: int, gateway: SqlPlannerGateway = Depends(get_gateway)):
    return web_handlers.delete_subject(request, subject_id, gateway, flash_fn=flash, redirect=True)
