"""FastAPI app entrypoint for kanban-agents."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field

from kanban_agents.agents import build_agents
from kanban_agents.agents.base import TextGenerator
from kanban_agents.agents.models import MarkdownFormatResult
from kanban_agents.config.settings import Settings, configure_logging, get_settings
from kanban_agents.events.publisher import (
    AgentEvent,
    CompositeEventPublisher,
    InMemoryEventPublisher,
    LoggingEventPublisher,
)
from kanban_agents.hints.service import HintNotFoundError, HintService
from kanban_agents.llm.gateway import build_gateway
from kanban_agents.pipeline.errors import TaskNotFoundError
from kanban_agents.pipeline.models import AgentProcessingProgress, AgentProcessingResult
from kanban_agents.pipeline.orchestrator import AgentOrchestrator
from kanban_agents.processing.task_processor import TaskProcessor
from kanban_agents.storage.base import TaskStore
from kanban_agents.storage.models import HintRecord
from kanban_agents.storage.postgres import PostgresTaskStore
from kanban_agents.web.fetcher import HttpFetcher


class ProcessTaskRequest(BaseModel):
    update_task: bool = True
    skip_web_content: bool = False
    skip_summarization: bool = False


class ProcessTaskResponse(BaseModel):
    result: AgentProcessingResult
    hints: list[HintRecord] = Field(default_factory=list)
    applied_hint_ids: list[str] = Field(default_factory=list)
    markdown: MarkdownFormatResult | None = None
    progress: list[AgentProcessingProgress] = Field(default_factory=list)


def _ensure_runtime_state(
    app: FastAPI,
    *,
    settings: Settings,
    store_override: TaskStore | None,
    gateway_override: TextGenerator | None,
) -> None:
    if not hasattr(app.state, "store"):
        database_url = settings.resolved_database_url()
        if store_override is None and not database_url:
            raise RuntimeError(
                "Missing database URL. Set KANBAN_AGENTS_DATABASE_URL "
                "or DATABASE_URL before starting the app."
            )
        app.state.store = store_override or PostgresTaskStore(database_url)

    if not hasattr(app.state, "settings"):
        app.state.settings = settings

    if not hasattr(app.state, "processor"):
        gateway = gateway_override or build_gateway(settings)
        fetcher = HttpFetcher(
            head_timeout_seconds=settings.web_head_timeout_s,
            fetch_timeout_seconds=settings.web_fetch_timeout_s,
            user_agent=settings.web_user_agent,
        )
        agents = build_agents(gateway, fetcher=fetcher)
        app.state.events = InMemoryEventPublisher()
        publisher = CompositeEventPublisher(LoggingEventPublisher(), app.state.events)
        app.state.hint_service = HintService(app.state.store, settings)
        app.state.fetcher = fetcher
        app.state.processor = TaskProcessor(
            app.state.store,
            AgentOrchestrator(app.state.store, agents, publisher=publisher),
            app.state.hint_service,
            agents.markdown_formatter,
        )


def create_app(
    *,
    store: TaskStore | None = None,
    settings_override: Settings | None = None,
    gateway: TextGenerator | None = None,
) -> FastAPI:
    settings = settings_override or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _ensure_runtime_state(
            app,
            settings=settings,
            store_override=store,
            gateway_override=gateway,
        )
        await app.state.store.migrate()
        yield
        await app.state.fetcher.aclose()

    app_lifespan = lifespan if store is None else None
    app = FastAPI(title=settings.app_name, lifespan=app_lifespan)

    # Keep test paths reliable when lifespan is not executed by the client.
    if store is not None:
        _ensure_runtime_state(
            app,
            settings=settings,
            store_override=store,
            gateway_override=gateway,
        )

    def _runtime(request: Request) -> FastAPI:
        if not hasattr(request.app.state, "processor"):
            _ensure_runtime_state(
                request.app,
                settings=settings,
                store_override=store,
                gateway_override=gateway,
            )
        return request.app

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "service": settings.app_name}

    @app.post("/tasks/{task_id}/process", response_model=ProcessTaskResponse)
    async def process_task(
        task_id: str, request: Request, payload: ProcessTaskRequest | None = None
    ) -> ProcessTaskResponse:
        options = payload or ProcessTaskRequest()
        processor: TaskProcessor = _runtime(request).state.processor
        try:
            report = await processor.process_task_with_agents(
                task_id,
                update_task=options.update_task,
                skip_web_content=options.skip_web_content,
                skip_summarization=options.skip_summarization,
            )
        except TaskNotFoundError as exc:
            raise HTTPException(status_code=404, detail="Task not found") from exc
        return ProcessTaskResponse(
            result=report.result,
            hints=report.hints,
            applied_hint_ids=report.applied_hint_ids,
            markdown=report.markdown,
            progress=report.progress,
        )

    @app.get("/tasks/{task_id}/events", response_model=list[AgentEvent])
    def list_events(task_id: str, request: Request) -> list[AgentEvent]:
        events: InMemoryEventPublisher = _runtime(request).state.events
        return events.events_for(task_id)

    @app.get("/tasks/{task_id}/hints", response_model=list[HintRecord])
    async def list_hints(task_id: str, request: Request) -> list[HintRecord]:
        hint_service: HintService = _runtime(request).state.hint_service
        try:
            return await hint_service.get_hints_for_task(task_id)
        except TaskNotFoundError as exc:
            raise HTTPException(status_code=404, detail="Task not found") from exc

    @app.post("/hints/{hint_id}/apply", response_model=HintRecord)
    async def apply_hint(hint_id: str, request: Request) -> HintRecord:
        hint_service: HintService = _runtime(request).state.hint_service
        try:
            return await hint_service.apply_hint(hint_id)
        except (HintNotFoundError, TaskNotFoundError) as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc

    @app.post("/hints/{hint_id}/dismiss", response_model=HintRecord)
    async def dismiss_hint(hint_id: str, request: Request) -> HintRecord:
        hint_service: HintService = _runtime(request).state.hint_service
        try:
            return await hint_service.dismiss_hint(hint_id)
        except HintNotFoundError as exc:
            raise HTTPException(status_code=404, detail="Hint not found") from exc

    @app.delete("/hints/{hint_id}", status_code=204)
    async def delete_hint(hint_id: str, request: Request) -> None:
        hint_service: HintService = _runtime(request).state.hint_service
        try:
            await hint_service.delete_hint(hint_id)
        except HintNotFoundError as exc:
            raise HTTPException(status_code=404, detail="Hint not found") from exc

    return app


app = create_app()
