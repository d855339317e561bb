from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from app.api.deps import StoreFactory, get_identity, get_store_factory
from app.core.errors import ProfileCreationError, RemoteCallError
from app.core.guards import (
    AUTH_ERROR,
    LANDING_PATH,
    PROFILE_CREATION_FAILED,
    default_path_for_role,
    guard_redirect,
    landing_with_error,
)
from app.core.security import (
    Identity,
    authorize_url,
    code_challenge_for,
    exchange_code_for_session,
    new_code_verifier,
    sign_out,
)
from app.core.settings import settings
from app.services.profiles import ProfileResolver


logger = logging.getLogger(__name__)

router = APIRouter()

LOGIN_PATH = "/auth/login"
CALLBACK_PATH = "/auth/callback"


class LandingResponse(BaseModel):
    authenticated: bool
    error: str | None = None
    login_url: str = LOGIN_PATH


def _set_cookie(response, name: str, value: str, max_age: int) -> None:
    response.set_cookie(
        name,
        value,
        max_age=max_age,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )


def _clear_session_cookies(response) -> None:
    for name in (settings.session_cookie_name, settings.refresh_cookie_name, settings.code_verifier_cookie_name):
        response.delete_cookie(name, path="/")


@router.get("/", response_model=LandingResponse)
def landing(
    error: str | None = None,
    identity: Identity | None = Depends(get_identity),
    store_factory: StoreFactory = Depends(get_store_factory),
):
    # With an error on the query string the landing page is always shown.
    if identity is not None and not error:
        with store_factory(identity.access_token) as store:
            role = ProfileResolver(store).role_for(identity.id)
        redirect = guard_redirect(LANDING_PATH, identity, role)
        if redirect:
            return RedirectResponse(redirect, status_code=307)
    return LandingResponse(authenticated=identity is not None, error=error)


@router.get(LOGIN_PATH)
def login():
    verifier = new_code_verifier()
    url = authorize_url(
        provider=settings.oauth_provider,
        redirect_to=f"{settings.site_url}{CALLBACK_PATH}",
        code_challenge=code_challenge_for(verifier),
    )
    response = RedirectResponse(url, status_code=307)
    _set_cookie(response, settings.code_verifier_cookie_name, verifier, max_age=600)
    return response


@router.get(CALLBACK_PATH)
def callback(
    request: Request,
    code: str | None = None,
    store_factory: StoreFactory = Depends(get_store_factory),
):
    verifier = request.cookies.get(settings.code_verifier_cookie_name)
    if not code or not verifier:
        logger.info("auth.callback.missing_code has_code=%s has_verifier=%s", bool(code), bool(verifier))
        return RedirectResponse(landing_with_error(AUTH_ERROR), status_code=307)

    try:
        session = exchange_code_for_session(code, verifier)
        with store_factory(session.access_token) as store:
            profile = ProfileResolver(store).resolve_profile(session.user_id, session.email)
    except ProfileCreationError:
        return RedirectResponse(landing_with_error(PROFILE_CREATION_FAILED), status_code=307)
    except RemoteCallError:
        logger.exception("auth.callback.error")
        return RedirectResponse(landing_with_error(AUTH_ERROR), status_code=307)

    logger.info("auth.callback.ok user_id=%s role=%s", profile.id, profile.role)
    response = RedirectResponse(default_path_for_role(profile.role), status_code=307)
    _set_cookie(response, settings.session_cookie_name, session.access_token, max_age=session.expires_in)
    if session.refresh_token:
        _set_cookie(response, settings.refresh_cookie_name, session.refresh_token, max_age=60 * 60 * 24 * 30)
    response.delete_cookie(settings.code_verifier_cookie_name, path="/")
    return response


@router.post("/auth/signout")
def signout(identity: Identity | None = Depends(get_identity)):
    if identity is not None and settings.supabase_url:
        try:
            sign_out(identity.access_token)
        except RemoteCallError:
            # The local session is dropped either way.
            logger.warning("auth.signout.remote_failed user_id=%s", identity.id)
    response = RedirectResponse(LANDING_PATH, status_code=303)
    _clear_session_cookies(response)
    return response
