from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.attendance.router import router as attendance_router
from app.api.v1.attendance_sessions.router import router as attendance_sessions_router
from app.api.v1.attendance_sessions.scheduler import CodeRotationScheduler
from app.api.v1.auth.router import router as auth_router
from app.api.v1.reports.router import router as reports_router
from app.core.config import settings
from app.core.logging import setup_logging
from app.db.seed_demo import create_tables
from app.db.session import AsyncSessionLocal, engine


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = setup_logging()
    if settings.create_tables_on_startup:
        await create_tables(engine)
    # Tests may install their own scheduler before startup
    if getattr(app.state, "rotation_scheduler", None) is None:
        app.state.rotation_scheduler = CodeRotationScheduler(
            AsyncSessionLocal, settings.code_rotation_interval_seconds
        )
    yield
    await app.state.rotation_scheduler.shutdown()
    logger.info("Code rotation scheduler shut down")


def create_app() -> FastAPI:
    app = FastAPI(title="Class Attendance Backend", lifespan=lifespan)

    # CORS: allow frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(auth_router)
    app.include_router(attendance_sessions_router)
    app.include_router(attendance_router)
    app.include_router(reports_router)

    return app


app = create_app()
