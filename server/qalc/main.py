from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from qalc.api.routes import calculator, queries
from qalc.core.config import get_settings
from qalc.core.exceptions import register_exception_handlers
from qalc.core.logging import configure_logging
from qalc.core.middleware import RequestContextMiddleware
from qalc.services.query_cache import QueryResultCache


def create_app() -> FastAPI:
    """
    Application factory for the calculator backend.
    Routes are attached in their respective modules and imported here.
    """

    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.api_title,
        description="Arithmetic expression evaluation for launcher queries.",
        version=settings.api_version,
    )
    app.state.query_cache = QueryResultCache()

    cors_origins = settings.resolved_cors_origins
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)
    app.add_middleware(RequestContextMiddleware)

    app.include_router(calculator.router)
    app.include_router(queries.router)

    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
