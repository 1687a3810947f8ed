"""Notification routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from study_planner.services.gateway import SqlPlannerGateway
from study_planner.services.notification_service import NotificationCenter
from study_planner.web import handlers as web_handlers
from study_planner.web.auth import UserContext, get_current_user, get_gateway, get_notification_center

# 日本語: 通知センターAPI群 / English: Notification center router
router = APIRouter()


@router.get("/api/notifications", name="api_notifications")
def api_notifications(
    user: UserContext = Depends(get_current_user),
    center: NotificationCenter = Depends(get_notification_center),
):
    return web_handlers.api_notifications(center, user)


@router.get("/api/notifications/new", name="api_new_notifications")
def api_new_notifications(
    user: UserContext = Depends(get_current_user),
    center: NotificationCenter = Depends(get_notification_center),
):
    # 日本語: 未配信分のみ取り出してトースト表示へ / English: Pop undelivered alerts for toast display
    return web_handlers.api_new_notifications(center, user)


@router.post("/api/notifications/check", name="check_notifications")
def check_notifications(
    user: UserContext = Depends(get_current_user),
    gateway: SqlPlannerGateway = Depends(get_gateway),
    center: NotificationCenter = Depends(get_notification_center),
):
    return web_handlers.check_notifications_now(gateway, center, user)


@router.post("/api/notifications/permission", name="update_notification_permission")
async def update_notification_permission(
    request: Request,
    user: UserContext = Depends(get_current_user),
    center: NotificationCenter = Depends(get_notification_center),
):
    return await web_handlers.update_notification_permission(request, center, user)


@router.delete("/api/notifications/{notification_id}", name="remove_notification")
def remove_notification(
    notification_id: str,
    user: UserContext = Depends(get_current_user),
    center: NotificationCenter = Depends(get_notification_center),
):
    return web_handlers.remove_notification(notification_id, center, user)


@router.delete("/api/notifications", name="clear_notifications")
def clear_notifications(
    user: UserContext = Depends(get_current_user),
    center: NotificationCenter = Depends(get_notification_center),
):
    return web_handlers.clear_notifications(center, user)
