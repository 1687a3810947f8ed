"""Request-scoped user context and gateway dependencies."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request
from sqlmodel import Session

from study_planner.core.config import trust_user_header
from study_planner.core.db import get_db
from study_planner.services.gateway import SqlPlannerGateway
from study_planner.services.notification_service import NotificationCenter

USER_HEADER = "x-user-id"
SESSION_USER_KEY = "user_id"
SESSION_NAME_KEY = "display_name"


@dataclass(frozen=True)
class UserContext:
    user_id: str
    display_name: str | None = None


def sign_in(request: Request, user_id: str, display_name: str | None = None) -> UserContext:
    request.session[SESSION_USER_KEY] = user_id
    request.session[SESSION_NAME_KEY] = display_name
    return UserContext(user_id=user_id, display_name=display_name)


def sign_out(request: Request) -> None:
    request.session.pop(SESSION_USER_KEY, None)
    request.session.pop(SESSION_NAME_KEY, None)


def current_user_or_none(request: Request) -> UserContext | None:
    # 日本語: セッション優先、API クライアントはヘッダでも可 / English: Session first, API clients may send a header instead
    user_id = request.session.get(SESSION_USER_KEY)
    if not user_id and trust_user_header():
        # 日本語: ヘッダは未検証の開発用IDに過ぎない / English: The header is an unverified, development-only identity
        user_id = (request.headers.get(USER_HEADER) or "").strip()
    if not user_id:
        return None
    return UserContext(user_id=user_id, display_name=request.session.get(SESSION_NAME_KEY))


def get_current_user(request: Request) -> UserContext:
    user = current_user_or_none(request)
    if user is None:
        raise HTTPException(status_code=401, detail="Please sign in")
    return user


def get_gateway(
    user: UserContext = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SqlPlannerGateway:
    return SqlPlannerGateway(db, user.user_id)


def get_notification_center(request: Request) -> NotificationCenter:
    return request.app.state.notification_center
