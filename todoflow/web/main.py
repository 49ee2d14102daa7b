"""
HTTP interface for the web client
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from todoflow.api.auth_client import SupabaseAuthClient
from todoflow.api.remote_store import RemoteTaskStore
from todoflow.config.settings import settings
from todoflow.models.identity import Identity
from todoflow.models.query import Projection, SortKey, SortOrder, StatsSnapshot, StatusFilter
from todoflow.models.response import OperationResponse
from todoflow.models.task import Priority, Recurrence, Task
from todoflow.services.local_store import LocalTaskStore
from todoflow.services.notifier import Notification, Notifier
from todoflow.services.session import SessionContext
from todoflow.services.task_service import TaskService
from todoflow.utils.error_handler import (
    NotFoundError,
    RemoteError,
    SessionError,
    StorageError,
    TodoFlowError,
    ValidationError,
    handle_error,
)
from todoflow.utils.local_storage import LocalStorage
from todoflow.utils.logger import logger

_STATUS_CODES = {
    ValidationError: 400,
    NotFoundError: 404,
    SessionError: 409,
    StorageError: 500,
    RemoteError: 502,
}


class LoginRequest(BaseModel):
    email: str
    password: str


class RegisterRequest(LoginRequest):
    name: str


class TaskCreateRequest(BaseModel):
    title: str
    priority: Priority = Priority.MEDIUM
    description: Optional[str] = None
    category: Optional[str] = None
    category_name: Optional[str] = None
    category_color: Optional[str] = None
    due_date: Optional[datetime] = None
    reminder_date: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list)
    recurrence: Recurrence = Recurrence.NONE


class BulkRequest(BaseModel):
    action: str
    task_ids: Optional[List[str]] = None


class SessionInfo(BaseModel):
    mode: Optional[str] = None
    identity: Optional[Identity] = None


class SelectionInfo(BaseModel):
    selected: List[str]


def build_service() -> TaskService:
    """Wire the task service from settings"""
    notifier = Notifier()
    storage = LocalStorage(settings.LOCAL_STORAGE_PATH, quota_bytes=settings.LOCAL_STORAGE_QUOTA_BYTES)
    session = SessionContext(storage, SupabaseAuthClient(), notifier=notifier)
    return TaskService(
        session,
        LocalTaskStore(storage),
        RemoteTaskStore(session),
        notifier=notifier,
    )


def create_app(service: Optional[TaskService] = None) -> FastAPI:
    """
    Create the FastAPI application

    Args:
        service: Pre-built task service (optional, built from settings otherwise)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        task_service = service or build_service()
        app.state.service = task_service
        if task_service.session.current_mode() is None:
            await task_service.session.restore()
        yield
        await task_service.remote_store.close()
        await task_service.session.auth_client.close()

    app = FastAPI(title="TodoFlow", lifespan=lifespan)

    @app.exception_handler(TodoFlowError)
    async def todoflow_error_handler(request: Request, exc: TodoFlowError):
        status_code = next(
            (code for error_type, code in _STATUS_CODES.items() if isinstance(exc, error_type)),
            500,
        )
        return JSONResponse(status_code=status_code, content=handle_error(exc).model_dump())

    def get_service(request: Request) -> TaskService:
        return request.app.state.service

    def session_info(service: TaskService) -> SessionInfo:
        mode = service.session.current_mode()
        return SessionInfo(
            mode=mode.value if mode else None,
            identity=service.session.current_identity(),
        )

    # Auth

    @app.get("/api/auth/session", response_model=SessionInfo)
    async def get_session(request: Request):
        return session_info(get_service(request))

    @app.post("/api/auth/login", response_model=SessionInfo)
    async def login(body: LoginRequest, request: Request):
        service = get_service(request)
        await service.session.login(body.email, body.password)
        return session_info(service)

    @app.post("/api/auth/register", response_model=SessionInfo)
    async def register(body: RegisterRequest, request: Request):
        service = get_service(request)
        await service.session.register(body.email, body.password, body.name)
        return session_info(service)

    @app.post("/api/auth/guest", response_model=SessionInfo)
    async def continue_as_guest(request: Request):
        service = get_service(request)
        await service.session.skip_auth()
        return session_info(service)

    @app.patch("/api/auth/profile", response_model=SessionInfo)
    async def update_profile(changes: Dict[str, Any], request: Request):
        service = get_service(request)
        service.session.update_identity(**changes)
        return session_info(service)

    @app.post("/api/auth/logout", response_model=SessionInfo)
    async def logout(request: Request):
        service = get_service(request)
        await service.session.logout()
        return session_info(service)

    # Todos

    @app.get("/api/todos", response_model=Projection)
    async def list_todos(
        request: Request,
        search: Optional[str] = None,
        status: Optional[StatusFilter] = None,
        sort_by: Optional[SortKey] = None,
        sort_order: Optional[SortOrder] = None,
    ):
        service = get_service(request)
        changes: Dict[str, Any] = {
            key: value
            for key, value in {
                "search": search,
                "status": status,
                "sort_by": sort_by,
                "sort_order": sort_order,
            }.items()
            if value is not None
        }
        if changes:
            return await service.set_query(**changes)
        return await service.refresh()

    @app.post("/api/todos", response_model=Task, status_code=201)
    async def create_todo(body: TaskCreateRequest, request: Request):
        data = body.model_dump(exclude_unset=True)
        title = data.pop("title")
        return await get_service(request).add(title, **data)

    @app.get("/api/todos/{task_id}", response_model=Task)
    async def get_todo(task_id: str, request: Request):
        return await get_service(request).get(task_id)

    @app.patch("/api/todos/{task_id}", response_model=Task)
    async def update_todo(task_id: str, updates: Dict[str, Any], request: Request):
        return await get_service(request).update(task_id, updates)

    @app.delete("/api/todos/{task_id}", response_model=OperationResponse)
    async def delete_todo(task_id: str, request: Request):
        await get_service(request).delete(task_id)
        return OperationResponse(message="Task deleted successfully")

    @app.post("/api/todos/{task_id}/toggle", response_model=Task)
    async def toggle_todo(task_id: str, request: Request):
        return await get_service(request).toggle(task_id)

    @app.post("/api/todos/bulk", response_model=Projection)
    async def bulk_todos(body: BulkRequest, request: Request):
        service = get_service(request)
        await service.bulk_action(body.action, body.task_ids)
        return service.projection

    @app.post("/api/todos/clear-completed", response_model=Projection)
    async def clear_completed(request: Request):
        service = get_service(request)
        await service.clear_completed()
        return service.projection

    @app.get("/api/stats", response_model=StatsSnapshot)
    async def get_stats(request: Request):
        return get_service(request).stats

    # Selection

    @app.get("/api/selection", response_model=SelectionInfo)
    async def get_selection(request: Request):
        return SelectionInfo(selected=get_service(request).selected)

    @app.post("/api/selection/{task_id}", response_model=SelectionInfo)
    async def toggle_selection(task_id: str, request: Request):
        service = get_service(request)
        service.toggle_select(task_id)
        return SelectionInfo(selected=service.selected)

    @app.post("/api/selection-all", response_model=SelectionInfo)
    async def select_all(request: Request):
        service = get_service(request)
        service.select_all()
        return SelectionInfo(selected=service.selected)

    @app.delete("/api/selection", response_model=SelectionInfo)
    async def clear_selection(request: Request):
        service = get_service(request)
        service.clear_selection()
        return SelectionInfo(selected=service.selected)

    # Notifications

    @app.get("/api/notifications", response_model=List[Notification])
    async def drain_notifications(request: Request):
        return get_service(request).notifier.drain()

    logger.debug("Web application created")
    return app
