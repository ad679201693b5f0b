import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Dict, Optional
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from studyhelper import __version__
from studyhelper.core.config import settings
from studyhelper.core.exceptions import (
    ConfigurationError,
    ContractViolation,
    InvalidTransitionError,
    TransportError,
)
from studyhelper.core.llm import GenerativeClient
from studyhelper.core.logging_config import setup_logging
from studyhelper.routers.quiz import router as quiz_router
from studyhelper.services.grading import GradingEngine, ShortAnswerGrader
from studyhelper.services.quiz_generator import QuizGenerator
from studyhelper.services.quiz_session import QuizSession
from studyhelper.services.resource_matcher import HttpResourceProvider, ResourceProvider
from studyhelper.services.task_aggregator import HttpTaskProvider, TaskAggregator

logger = logging.getLogger(__name__)


@dataclass
class Services:
    aggregator: TaskAggregator
    generator: QuizGenerator
    grading_engine: GradingEngine
    resource_provider: Optional[ResourceProvider] = None
    client: Optional[GenerativeClient] = None
    sessions: Dict[str, QuizSession] = field(default_factory=dict)
    max_sessions: int = field(default_factory=lambda: settings.MAX_SESSIONS)
    
    def new_session(self) -> QuizSession:
        # sessions are kept in least-recently-used order
        while self.sessions and len(self.sessions) >= self.max_sessions:
            oldest_id = next(iter(self.sessions))
            self.sessions.pop(oldest_id).close()
            logger.info(f"Evicted quiz session {oldest_id} (limit {self.max_sessions})")
        
        session = QuizSession(
            generator=self.generator,
            grading_engine=self.grading_engine,
            resource_provider=self.resource_provider,
        )
        self.sessions[session.session_id] = session
        return session
    
    def get_session(self, session_id: str) -> Optional[QuizSession]:
        """Look up a session and mark it most recently used."""
        session = self.sessions.pop(session_id, None)
        if session is not None:
            self.sessions[session_id] = session
        return session


def build_services() -> Services:
    client = GenerativeClient()
    if not client.is_configured:
        logger.warning("GROQ_API_KEY is not set; quiz generation and grading will fail")
    
    return Services(
        aggregator=TaskAggregator(HttpTaskProvider()),
        generator=QuizGenerator(client),
        grading_engine=GradingEngine(ShortAnswerGrader(client)),
        resource_provider=HttpResourceProvider() if settings.RESOURCE_PROVIDER_URL else None,
        client=client,
    )


def create_app(services: Optional[Services] = None, configure_logging: bool = True) -> FastAPI:
    
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if configure_logging:
            setup_logging(settings.ENVIRONMENT, settings.LOG_LEVEL, settings.LOG_DIR)
        logger.info("🚀 Starting Study Helper API...")
        app.state.services = services or build_services()
        
        yield
        
        logger.info("🛑 Shutting down Study Helper API...")
        for session in app.state.services.sessions.values():
            session.close()
        if app.state.services.client is not None:
            await app.state.services.client.aclose()
    
    app = FastAPI(
        title=settings.APP_NAME,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        lifespan=lifespan,
    )
    
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        start = time.time()
        response = await call_next(request)
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"({(time.time() - start) * 1000:.0f}ms)",
            extra={"request_id": request_id},
        )
        response.headers["X-Request-ID"] = request_id
        return response
    
    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError):
        return JSONResponse(
            status_code=503, content={"error_type": "configuration", "detail": str(exc)}
        )
    
    @app.exception_handler(TransportError)
    async def transport_error_handler(request: Request, exc: TransportError):
        return JSONResponse(
            status_code=502, content={"error_type": "transport", "detail": str(exc)}
        )
    
    @app.exception_handler(ContractViolation)
    async def contract_violation_handler(request: Request, exc: ContractViolation):
        return JSONResponse(
            status_code=502, content={"error_type": "contract_violation", "detail": str(exc)}
        )
    
    @app.exception_handler(InvalidTransitionError)
    async def invalid_transition_handler(request: Request, exc: InvalidTransitionError):
        return JSONResponse(
            status_code=409,
            content={"error_type": "invalid_transition", "detail": str(exc), "state": exc.state},
        )
    
    @app.get("/health")
    async def health_check():
        return {"status": "ok", "version": __version__}
    
    app.include_router(quiz_router, prefix=settings.API_V1_STR)
    return app


app = create_app()
