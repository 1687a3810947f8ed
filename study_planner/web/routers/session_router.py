"""Sign-in session routes."""

from __future__ import annotations

from fastapi import APIRouter, Request

from study_planner.web import handlers as web_handlers
from study_planner.web.auth import current_user_or_none, sign_in, sign_out
from study_planner.web.templates import pop_flashed_messages

router = APIRouter()


@router.get("/api/session", name="api_session")
def api_session(request: Request):
    return web_handlers.api_session(current_user_or_none(request))


@router.post("/api/session", name="create_session")
async def create_session(request: Request):
    return await web_handlers.create_session(request, sign_in_fn=sign_in)


@router.delete("/api/session", name="delete_session")
def delete_session(request: Request):
    return web_handlers.delete_session(request, sign_out_fn=sign_out)


@router.get("/api/flash", name="api_flash")
def api_flash(request: Request):
    # 日本語: セッションフラッシュを取得 / English: Fetch session flash messages
    return web_handlers.api_flash(request, pop_flashed_messages_fn=pop_flashed_messages)
