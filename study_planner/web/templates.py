"""Template helpers and flash storage."""

from __future__ import annotations

from typing import Any, Dict, List
from urllib.parse import urlencode, urlparse

from fastapi import Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from study_planner.core.config import BASE_DIR

# 日本語: Jinja テンプレートローダー / English: Jinja template loader
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))


def flash(request: Request, message: str, category: str = "success") -> None:
    # 日本語: セッションにフラッシュメッセージを追記 / English: Append flash message into session storage
    flashes = request.session.setdefault("_flashes", [])
    flashes.append({"message": message, "category": category})
    request.session["_flashes"] = flashes


def pop_flashed_messages(request: Request) -> List[Dict[str, str]]:
    # 日本語: 1回表示したメッセージを取り出して削除 / English: Pop one-time flash messages
    return request.session.pop("_flashes", [])


def _resolve_proxy_prefix(request: Request) -> str:
    # 日本語: 逆プロキシの prefix ヘッダを解決 / English: Resolve forwarded proxy prefix if present
    forwarded_prefix = (request.headers.get("x-forwarded-prefix") or "").strip()
    if "," in forwarded_prefix:
        forwarded_prefix = forwarded_prefix.split(",", 1)[0].strip()
    proxy_prefix = forwarded_prefix or request.scope.get("root_path", "")
    if proxy_prefix and not proxy_prefix.startswith("/"):
        proxy_prefix = f"/{proxy_prefix}"
    return proxy_prefix.rstrip("/") if proxy_prefix not in {"", "/"} else ""


def url_path_for(request: Request, endpoint: str, **values: Any) -> str:
    """Route path with the proxy prefix applied; unknown params become the query string."""
    proxy_prefix = _resolve_proxy_prefix(request)
    param_names: set[str] = set()
    for route in request.app.router.routes:
        if getattr(route, "name", None) == endpoint:
            param_names = set(getattr(route, "param_convertors", {}).keys())
            break
    path_params = {k: v for k, v in values.items() if k in param_names}
    query_params = {k: v for k, v in values.items() if k not in param_names}
    path = urlparse(str(request.url_for(endpoint, **path_params))).path or "/"
    if proxy_prefix and not path.startswith(proxy_prefix):
        path = f"{proxy_prefix}{path}"
    if query_params:
        return f"{path}?{urlencode(query_params)}"
    return path


def template_response(request: Request, template_name: str, context: Dict[str, Any]) -> HTMLResponse:
    # 日本語: 呼び出し側コンテキストをコピーして request を保証 / English: Copy caller context and ensure request is present
    payload = dict(context)
    payload.setdefault("request", request)
    payload.setdefault("proxy_prefix", _resolve_proxy_prefix(request))
    payload.setdefault("url_for", lambda endpoint, **values: url_path_for(request, endpoint, **values))
    payload.setdefault("get_flashed_messages", lambda: pop_flashed_messages(request))
    return templates.TemplateResponse(request, template_name, payload)
