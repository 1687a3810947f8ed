"""FastAPI application assembly."""

from __future__ import annotations

import asyncio
import logging
import os

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from study_planner.core.config import BASE_DIR, PROXY_PREFIX, SESSION_SECRET, notifications_enabled
from study_planner.core.db import _init_db, create_session, refresh_engine_from_env
from study_planner.services.notification_service import NotificationCenter, NotificationPoller
from study_planner.web.routers import (
    calendar_router,
    dashboard_router,
    notifications_router,
    page_router,
    session_router,
    subjects_router,
    tasks_router,
)

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    # 日本語: 逆プロキシ配下運用を想定して root_path を環境変数から解決 / English: Resolve root_path from env for reverse-proxy deployments
    proxy_prefix = os.getenv("PROXY_PREFIX", PROXY_PREFIX)
    # 日本語: 実行時の SESSION_SECRET を優先 / English: Prefer runtime SESSION_SECRET override
    session_secret = os.getenv("SESSION_SECRET") or SESSION_SECRET

    # 日本語: FastAPI アプリ本体を作成 / English: Create root FastAPI application
    app = FastAPI(title="Study Planner", root_path=proxy_prefix)
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")

    if not session_secret:
        raise ValueError("SESSION_SECRET environment variable is not set. Please set it in secrets.env.")

    # 日本語: セッション管理と静的配信を初期化 / English: Configure session middleware and static assets
    app.add_middleware(SessionMiddleware, secret_key=session_secret)
    app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")

    # 日本語: 通知はユーザー単位でプロセス内に保持 / English: Notifications are kept in-process per user
    app.state.notification_center = NotificationCenter()
    app.state.notification_task = None

    # 日本語: 機能別ルーターを順次登録 / English: Register feature routers
    app.include_router(page_router)
    app.include_router(session_router)
    app.include_router(dashboard_router)
    app.include_router(subjects_router)
    app.include_router(tasks_router)
    app.include_router(calendar_router)
    app.include_router(notifications_router)

    @app.on_event("startup")
    async def _startup() -> None:
        # 日本語: 起動時にマイグレーション適用を保証 / English: Ensure migrations are applied on startup
        refresh_engine_from_env()
        _init_db()
        if not notifications_enabled():
            logger.info("Notification poller disabled")
            return
        poller = NotificationPoller(app.state.notification_center, create_session)
        app.state.notification_task = asyncio.create_task(poller.run_forever())

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        # 日本語: ポーラーを停止 / English: Stop the background poller
        task = app.state.notification_task
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        app.state.notification_task = None

    return app


# 日本語: import 時点で既定アプリを構築 / English: Build default app instance at import time
app = create_app()
