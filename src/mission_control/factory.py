"""Dependency injection factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from fastapi import FastAPI, Request, WebSocket
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from mission_control.agents.registry import AgentRegistry
from mission_control.config import Config
from mission_control.store.database import Database
from mission_control.store.task_store import TaskStore
from mission_control.sync.task_queue import TaskQueueMirror
from mission_control.tasks.service import TaskService
from mission_control.websocket.connection_manager import ConnectionManager

logger = logging.getLogger(__name__)

API_VERSION = "v1"

# Global config instance for dependency injection
_config: Config | None = None


def get_config() -> Config:
    """Get or create Config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


@dataclass
class Services:
    """Resources owned by one application instance."""

    config: Config
    database: Database
    task_store: TaskStore
    task_service: TaskService
    connection_manager: ConnectionManager
    task_queue: TaskQueueMirror
    agent_registry: AgentRegistry


def build_services(config: Config) -> Services:
    """Create the database handle, store, adapters and service for a config."""
    database = Database(config.database_url)
    database.create_schema()

    task_store = TaskStore(database)
    connection_manager = ConnectionManager()
    task_service = TaskService(
        task_store,
        connection_manager,
        allow_dependency_cycles=config.allow_dependency_cycles,
    )

    return Services(
        config=config,
        database=database,
        task_store=task_store,
        task_service=task_service,
        connection_manager=connection_manager,
        task_queue=TaskQueueMirror(config.task_queue_path),
        agent_registry=AgentRegistry(config.agents_dir, config.agent_file_suffix),
    )


def get_services(request: Request) -> Services:
    services: Services = request.app.state.services
    return services


def get_task_service(request: Request) -> TaskService:
    return get_services(request).task_service


def get_task_queue(request: Request) -> TaskQueueMirror:
    return get_services(request).task_queue


def get_agent_registry(request: Request) -> AgentRegistry:
    return get_services(request).agent_registry


def get_websocket_manager(websocket: WebSocket) -> ConnectionManager:
    services: Services = websocket.app.state.services
    return services.connection_manager


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle - startup and shutdown."""
    services: Services = app.state.services
    logger.info(f"[Lifespan] Task queue: {services.task_queue.path}")
    logger.info(f"[Lifespan] Agents directory: {services.agent_registry.agents_dir}")
    try:
        yield
    finally:
        logger.info("[Lifespan] Disposing database...")
        services.database.dispose()


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return JSONResponse(status_code=400, content={"error": "; ".join(messages)})


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": str(exc)})


def create_app(config: Config | None = None) -> FastAPI:
    """Create FastAPI application (composition root)."""
    from mission_control.api.agents import router as agents_router
    from mission_control.api.health import router as health_router
    from mission_control.api.sync import router as sync_router
    from mission_control.api.system import router as system_router
    from mission_control.api.tasks import router as tasks_router
    from mission_control.api.websocket import router as ws_router

    config = config or get_config()

    app = FastAPI(
        title="MissionControl",
        description="Task, agent and task-queue coordination dashboard API",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.services = build_services(config)

    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)

    app.include_router(health_router)
    app.include_router(tasks_router, prefix=config.api_prefix)
    app.include_router(agents_router, prefix=config.api_prefix)
    app.include_router(sync_router, prefix=config.api_prefix)
    app.include_router(system_router, prefix=config.api_prefix)
    app.include_router(ws_router)  # WebSocket at /ws

    return app
