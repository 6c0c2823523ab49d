import logging
import time
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from config import Settings, get_settings
from database import build_context, init_db
from errors import register_error_handlers

# --- IMPORT ROUTERS (APIs) ---
from routers import admin_results, auth, bulk_import, courses, queries, result_upload, results, student_api, students

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    # --- DATABASE ---
    context = build_context(settings)
    init_db(context)

    app = FastAPI(title=settings.app_name)
    app.state.context = context

    # ==========================================
    # REQUEST LOGGING MIDDLEWARE
    # ==========================================
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        # production only keeps failures
        if not settings.is_production or response.status_code >= 400:
            logger.info(
                "%s %s -> %s (%.1f ms)",
                request.method, request.url.path, response.status_code, elapsed_ms,
            )
        return response

    # ==========================================
    # CORS MIDDLEWARE
    # ==========================================
    origins = settings.cors_origin_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    # --- REGISTER ROUTERS ---
    # report routes first: their static paths must win over /admin/results/{result_id}
    app.include_router(admin_results.router)
    app.include_router(results.router)
    app.include_router(result_upload.router)
    app.include_router(student_api.router)
    app.include_router(auth.router)
    app.include_router(bulk_import.router)
    app.include_router(students.router)
    app.include_router(courses.router)
    app.include_router(queries.router)

    @app.get("/health")
    def health():
        return {"success": True, "status": "ok", "environment": settings.environment}

    logger.info("%s started (%s)", settings.app_name, settings.environment)
    return app


app = create_app()
