"""FastAPI application: student CRUD, health and metrics endpoints."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# local modules (same folder as main.py inside the container)
from db import StudentPool, create_pool, get_pool
from errors import register_error_handlers
from metrics import MetricsCollector, measure_request_duration, router as metrics_router
from request_logging import REQUEST_ID_HEADER, log_requests, setup_logging
from settings import Settings, settings as default_settings
from students.routes import router as students_router

logger = logging.getLogger("student_backend")


def create_app(
    settings: Optional[Settings] = None, pool: Optional[StudentPool] = None
) -> FastAPI:
    """Composition root: wire settings, pool, metrics and routers together.

    When `pool` is given (tests) it is used as is; otherwise the lifespan
    opens one from settings. Either way the lifespan closes it on shutdown,
    after the server has drained in-flight requests.
    """
    settings = settings or default_settings
    setup_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "pool", None) is None:
            app.state.pool = create_pool(settings)
        try:
            yield
        finally:
            app.state.pool.close()
            app.state.pool = None

    app = FastAPI(
        title="Student Backend",
        description="CRUD API over the students table",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.pool = pool
    app.state.metrics = MetricsCollector()

    register_error_handlers(app)

    # Registered innermost first: duration -> request logger -> CORS
    app.middleware("http")(measure_request_duration)
    app.middleware("http")(log_requests)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )

    # Observability
    app.include_router(metrics_router)  # exposes GET /metrics

    @app.get("/healthz")
    def healthz(pool: StudentPool = Depends(get_pool)):
        """Liveness plus a `SELECT 1` round trip to the database."""
        try:
            return {"ok": True, "db": pool.ping()}
        except Exception as e:
            logger.warning("health check failed: %s", e)
            return JSONResponse(status_code=500, content={"ok": False, "error": str(e)})

    # Functional routers
    app.include_router(students_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logger.info("Backend listening on :%s", default_settings.port)
    uvicorn.run(app, host=default_settings.host, port=default_settings.port)
