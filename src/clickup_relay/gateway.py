"""
ClickUp Relay Gateway

Stateless HTTP relay in front of the ClickUp API. Every request must carry
the shared secret in ``X-Webhook-Secret``; the gateway then translates the
request into exactly one ClickUp call and maps the answer back.

Routes:
- GET  /health            liveness
- GET  /clickup.me        identity behind the configured token
- POST /tasks.create      create a task
- GET  /tasks.list        list tasks of a list
- POST /tasks.update      partial update of a task
- POST /tasks.delete      delete a task
- POST /learning/weekly   create a weekly learning session task
- POST /learning/track    create a learning progress log task
- GET  /learning/goals    current learning goals
- POST /learning/goals    replace learning goals
"""

import hmac
import logging
import math
import re
import time
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

import uvicorn
from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import templates
from .clickup import ClickUpClient
from .config import SECRET_HEADER, Settings
from .errors import GatewayError, InternalServerError, NotFoundError, UnauthorizedError, ValidationError
from .goals import GoalStore
from .scheduler import start_scheduler

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")

# Request key -> ClickUp key; due_date is converted separately
TASK_FIELDS = {
    "title": "name",
    "description": "description",
    "status": "status",
    "assignees": "assignees",
    "priority": "priority",
    "tags": "tags",
    "custom_fields": "custom_fields",
}

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class RequestIdFilter(logging.Filter):
    """Adds the current request id to every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        return True


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s",
    )
    for handler in logging.getLogger().handlers:
        handler.addFilter(RequestIdFilter())


# ============================================
# Request/response translation helpers
# ============================================


def error_response(exc: GatewayError) -> JSONResponse:
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


async def _json_body(request: Request) -> dict[str, Any]:
    """Parse the request body as a JSON object (an empty body counts as {})."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        body = await request.json()
    except ValueError as e:
        raise ValidationError("request body must be valid JSON") from e
    if not isinstance(body, dict):
        raise ValidationError("request body must be a JSON object")
    return body


def _resolve_list_id(value: Any, settings: Settings) -> str:
    list_id = value or settings.clickup_default_list_id
    if not list_id:
        raise ValidationError("list_id required")
    return str(list_id)


def _due_date(value: Any) -> str | None:
    """Convert a due date to ClickUp's epoch-milliseconds string.

    Accepts epoch milliseconds (int or digit string) or a YYYY-MM-DD date,
    taken as midnight UTC. None passes through so an update can clear it.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError("due_date must be epoch milliseconds or YYYY-MM-DD")
    if isinstance(value, (int, float)):
        # NaN and Infinity are accepted by the JSON parser
        if isinstance(value, float) and not math.isfinite(value):
            raise ValidationError("due_date must be a finite number")
        return str(int(value))
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return text
        if _ISO_DATE.match(text):
            try:
                day = datetime.strptime(text, "%Y-%m-%d").replace(tzinfo=timezone.utc)
            except ValueError as e:
                raise ValidationError(f"invalid due_date '{value}'") from e
            return str(int(day.timestamp() * 1000))
    raise ValidationError("due_date must be epoch milliseconds or YYYY-MM-DD")


def task_payload(body: dict[str, Any]) -> dict[str, Any]:
    """Build a ClickUp task payload from the keys present in ``body``.

    Absent keys are left out entirely; explicit null or "" is forwarded.
    """
    payload = {
        upstream: body[field] for field, upstream in TASK_FIELDS.items() if field in body
    }
    if "due_date" in body:
        payload["due_date"] = _due_date(body["due_date"])
    return payload


def task_summary(data: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": data.get("id"),
        "url": data.get("url"),
        "status": (data.get("status") or {}).get("status"),
        "title": data.get("name"),
    }


def task_list_item(data: dict[str, Any]) -> dict[str, Any]:
    due_date = data.get("due_date")
    return {
        "id": data.get("id"),
        "title": data.get("name"),
        "status": (data.get("status") or {}).get("status"),
        "due_date": int(due_date) if due_date else None,
        "assignees": [a.get("id") for a in data.get("assignees") or []],
        "url": data.get("url"),
    }


def status_params(statuses: str | None) -> list[tuple[str, str]]:
    """Turn "a, b,," into repeated ``statuses[]`` query parameters."""
    if not statuses:
        return []
    return [("statuses[]", s.strip()) for s in statuses.split(",") if s.strip()]


def _int_param(query: Any, name: str) -> int | None:
    value = query.get(name)
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError as e:
        raise ValidationError(f"{name} must be an integer") from e


def _string_list(value: Any, name: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValidationError(f"{name} must be a list of strings")
    return value


# ============================================
# Routes
# ============================================

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, Any]:
    return {"ok": True}


@router.get("/clickup.me")
async def clickup_me(request: Request) -> dict[str, Any]:
    data = await request.app.state.clickup.get_user()
    user = data.get("user") or {}
    return {"id": user.get("id"), "username": user.get("username"), "email": user.get("email")}


@router.post("/tasks.create")
async def create_task(request: Request) -> dict[str, Any]:
    body = await _json_body(request)
    list_id = _resolve_list_id(body.get("list_id"), request.app.state.settings)
    if not body.get("title"):
        raise ValidationError("title required")

    data = await request.app.state.clickup.create_task(list_id, task_payload(body))
    return task_summary(data)


@router.get("/tasks.list")
async def list_tasks(request: Request) -> dict[str, Any]:
    query = request.query_params
    list_id = _resolve_list_id(query.get("list_id"), request.app.state.settings)

    params = status_params(query.get("statuses"))
    for name in ("page", "limit"):
        value = _int_param(query, name)
        if value is not None:
            params.append((name, str(value)))

    data = await request.app.state.clickup.list_tasks(list_id, params)
    return {"tasks": [task_list_item(t) for t in data.get("tasks") or []]}


@router.post("/tasks.update")
async def update_task(request: Request) -> dict[str, Any]:
    body = await _json_body(request)
    task_id = body.get("id")
    if not task_id:
        raise ValidationError("id required")

    data = await request.app.state.clickup.update_task(str(task_id), task_payload(body))
    return task_summary(data)


@router.post("/tasks.delete")
async def delete_task(request: Request) -> dict[str, Any]:
    body = await _json_body(request)
    task_id = body.get("id")
    if not task_id:
        raise ValidationError("id required")

    await request.app.state.clickup.delete_task(str(task_id))
    return {"message": "Task deleted successfully", "id": str(task_id)}


@router.post("/learning/weekly")
async def create_weekly_learning_task(request: Request) -> dict[str, Any]:
    body = await _json_body(request)
    list_id = _resolve_list_id(body.get("list_id"), request.app.state.settings)
    objectives = _string_list(body.get("objectives"), "objectives")

    payload = {
        "name": templates.weekly_session_title(),
        "description": templates.weekly_session_description(objectives),
        "status": templates.WEEKLY_TASK_STATUS,
        "tags": templates.WEEKLY_TASK_TAGS,
        "priority": templates.WEEKLY_TASK_PRIORITY,
    }
    data = await request.app.state.clickup.create_task(list_id, payload)
    return {**task_summary(data), "message": "Weekly learning task created successfully!"}


@router.post("/learning/track")
async def track_learning_progress(request: Request) -> dict[str, Any]:
    body = await _json_body(request)
    list_id = _resolve_list_id(body.get("list_id"), request.app.state.settings)

    time_spent = body.get("time_spent", 0)
    if isinstance(time_spent, bool) or not isinstance(time_spent, (int, float)):
        raise ValidationError("time_spent must be a number of minutes")
    next_steps = body.get("next_steps")
    if next_steps is not None and not isinstance(next_steps, str):
        next_steps = _string_list(next_steps, "next_steps")

    description = templates.progress_log_description(
        time_spent=time_spent,
        skills=_string_list(body.get("skills"), "skills"),
        achievements=_string_list(body.get("achievements"), "achievements"),
        session_type=body.get("session_type"),
        focus_area=body.get("focus_area"),
        next_steps=next_steps,
    )
    payload = {
        "name": templates.progress_log_title(),
        "description": description,
        "status": templates.PROGRESS_TASK_STATUS,
        "tags": templates.PROGRESS_TASK_TAGS,
        "priority": templates.PROGRESS_TASK_PRIORITY,
    }
    data = await request.app.state.clickup.create_task(list_id, payload)
    return {**task_summary(data), "message": "Learning progress tracked successfully!"}


@router.get("/learning/goals")
async def get_learning_goals(request: Request) -> dict[str, Any]:
    goals = await run_in_threadpool(request.app.state.goals.get_goals)
    return {"goals": goals}


@router.post("/learning/goals")
async def set_learning_goals(request: Request) -> dict[str, Any]:
    body = await _json_body(request)
    goals = await run_in_threadpool(request.app.state.goals.set_goals, body.get("goals"))
    return {"message": "Learning goals updated successfully!", "goals": goals}


# ============================================
# Application
# ============================================


def create_app(
    settings: Settings,
    clickup: ClickUpClient | None = None,
    goals: GoalStore | None = None,
) -> FastAPI:
    """Build the gateway application around explicit collaborators."""
    clickup = clickup or ClickUpClient(settings)
    goals = goals or GoalStore(settings.goals_db_path)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        scheduler = None
        if settings.scheduler_enabled:
            scheduler = start_scheduler(settings, clickup)
        app.state.scheduler = scheduler
        yield
        if scheduler is not None:
            scheduler.shutdown(wait=False)

    app = FastAPI(
        title="ClickUp Relay Gateway",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.clickup = clickup
    app.state.goals = goals
    app.include_router(router)

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        else:
            logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
        return error_response(exc)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Unknown paths and known paths with the wrong method are both "not found"
        if exc.status_code in (404, 405):
            return error_response(NotFoundError("not found"))
        logger.error("%s %s failed: HTTP %s", request.method, request.url.path, exc.status_code)
        return error_response(InternalServerError(str(exc.detail)))

    @app.middleware("http")
    async def gateway_middleware(request: Request, call_next: Any) -> Any:
        request_id = uuid.uuid4().hex
        token = request_id_var.set(request_id)
        started = time.perf_counter()
        try:
            provided = request.headers.get(SECRET_HEADER, "")
            expected = settings.pd_shared_secret
            if not expected or not hmac.compare_digest(provided.encode(), expected.encode()):
                response = error_response(UnauthorizedError("missing or invalid shared secret"))
            else:
                try:
                    response = await call_next(request)
                except Exception:
                    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
                    response = error_response(InternalServerError("internal server error"))

            logger.info(
                "%s %s -> %s (%.1f ms)",
                request.method,
                request.url.path,
                response.status_code,
                (time.perf_counter() - started) * 1000,
            )
            if settings.expose_request_id:
                response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            request_id_var.reset(token)

    return app


def main() -> None:
    """Entry point for the gateway HTTP server."""
    settings = Settings()
    configure_logging(settings.log_level)
    logger.info("Starting ClickUp relay gateway on %s:%s", settings.host, settings.port)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
