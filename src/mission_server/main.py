from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from mission_sim.config import Settings
from mission_sim.domain.errors import (
    MissionError,
    NotFoundError,
    PersistenceFailure,
    PreconditionError,
    ValidationError,
)
from mission_sim.service import DeploymentService, build_service
from mission_server.api import schemas
from mission_server.api.router import router as api_router

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: tuple[tuple[type[MissionError], int], ...] = (
    (NotFoundError, 404),
    (ValidationError, 422),
    (PreconditionError, 409),
    (PersistenceFailure, 503),
)


def status_for(exc: MissionError) -> int:
    for error_type, status in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 500


async def mission_error_handler(request: Request, exc: MissionError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    body = schemas.ErrorResponse(code=exc.code, message=exc.message)
    return JSONResponse(status_code=status, content=body.model_dump(by_alias=True))


def create_app(
    settings: Settings | None = None, *, service: DeploymentService | None = None
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = getattr(app.state, "service", None) is None
        if owned:
            app.state.service = build_service(settings or Settings.from_env())
        yield
        if owned:
            close = getattr(app.state.service.generator.provider, "close", None)
            if close is not None:
                close()
            app.state.service = None

    app = FastAPI(title="Mission Sim", lifespan=lifespan)
    if service is not None:
        app.state.service = service
    app.add_exception_handler(MissionError, mission_error_handler)
    app.include_router(api_router)
    return app


app = create_app()
