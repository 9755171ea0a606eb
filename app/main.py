from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.rfidpos.api import api_router
from app.rfidpos.core.config import Settings, settings
from app.rfidpos.core.errors import setup_exception_handlers
from app.rfidpos.core.logging import configure_logging
from app.rfidpos.db.session import build_session_factory
from app.rfidpos.middleware.observability import ObservabilityMiddleware
from app.rfidpos.middleware.trace import TraceIdMiddleware
from app.rfidpos.services.terminal import Terminal


def create_app(session_factory=None, app_settings: Settings | None = None, terminal: Terminal | None = None) -> FastAPI:
    configure_logging()
    app_settings = app_settings or settings
    if session_factory is None:
        if terminal is not None:
            raise ValueError("session_factory is required when a terminal is supplied")
        session_factory = build_session_factory(app_settings.DATABASE_URL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        current = app.state.terminal
        current.load()
        current.start()
        try:
            yield
        finally:
            current.stop()

    app = FastAPI(title=app_settings.APP_NAME, lifespan=lifespan)
    app.state.session_factory = session_factory
    app.state.terminal = terminal or Terminal(session_factory, app_settings=app_settings)
    app.add_middleware(TraceIdMiddleware)
    app.add_middleware(ObservabilityMiddleware)
    setup_exception_handlers(app)
    app.include_router(api_router)
    return app


app = create_app()
