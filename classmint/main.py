from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware

from classmint.config import settings
from classmint.errors import ClassMintError, classmint_error_handler
from classmint.extensions import configure_logging, db
from classmint.services.provisioning import on_auth_event
from classmint.session import auth_events

log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    db.create_all()
    log.info("%s %s ready", settings.APP_NAME, settings.APP_VERSION)
    yield


def create_app(*, create_tables: bool = True) -> FastAPI:
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION, lifespan=lifespan if create_tables else None)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SECRET_KEY,
        same_site=settings.SESSION_COOKIE_SAMESITE.lower(),
        https_only=settings.SESSION_COOKIE_SECURE,
    )
    app.add_exception_handler(ClassMintError, classmint_error_handler)

    # Rebuilding the app replaces the provisioning listener rather than stacking it
    auth_events.clear()
    auth_events.subscribe(on_auth_event)

    from classmint.routers.main.routes import router as main_router
    from classmint.routers.auth.routes import router as auth_router
    from classmint.routers.students.routes import router as students_router
    from classmint.routers.classrooms.routes import router as classrooms_router
    from classmint.routers.attendance.routes import router as attendance_router
    from classmint.routers.seating.routes import router as seating_router
    from classmint.routers.awards.routes import router as awards_router

    app.include_router(main_router)
    app.include_router(auth_router)
    app.include_router(students_router)
    app.include_router(classrooms_router)
    app.include_router(attendance_router)
    app.include_router(seating_router)
    app.include_router(awards_router)

    return app


app = create_app()
