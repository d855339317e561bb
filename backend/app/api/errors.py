from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse

from app.core.errors import NotFoundError, ProfileCreationError, RemoteCallError, ValidationError
from app.core.guards import PROFILE_CREATION_FAILED, PageRedirect, landing_with_error


logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": exc.message, "field": exc.field})

    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        logger.info("request.not_found path=%s detail=%s", request.url.path, exc)
        return JSONResponse(status_code=404, content={"detail": "The action could not be completed"})

    @app.exception_handler(RemoteCallError)
    async def _remote_call(request: Request, exc: RemoteCallError) -> JSONResponse:
        logger.error("request.remote_call_failed path=%s detail=%s", request.url.path, exc)
        return JSONResponse(status_code=502, content={"detail": "Could not load or save data, please retry"})

    @app.exception_handler(ProfileCreationError)
    async def _profile_creation(request: Request, exc: ProfileCreationError) -> RedirectResponse:
        logger.error("request.profile_creation_failed path=%s", request.url.path)
        return RedirectResponse(landing_with_error(PROFILE_CREATION_FAILED), status_code=307)

    @app.exception_handler(PageRedirect)
    async def _page_redirect(request: Request, exc: PageRedirect) -> RedirectResponse:
        return RedirectResponse(exc.location, status_code=307)
