from __future__ import annotations

from typing import Callable, ContextManager, Iterator

from fastapi import Depends, Request

from app.core.guards import LANDING_PATH, PageRedirect, guard_redirect
from app.core.security import Identity, get_current_identity
from app.schemas.time_log import ProfileOut
from app.services.profiles import ProfileResolver
from app.services.store.base import DataStore
from app.services.store.factory import open_data_store


StoreFactory = Callable[[str | None], ContextManager[DataStore]]


def get_identity(request: Request) -> Identity | None:
    return get_current_identity(request)


def get_store_factory() -> StoreFactory:
    return open_data_store


def get_data_store(
    identity: Identity | None = Depends(get_identity),
    store_factory: StoreFactory = Depends(get_store_factory),
) -> Iterator[DataStore]:
    with store_factory(identity.access_token if identity else None) as store:
        yield store


def require_page_profile(
    request: Request,
    identity: Identity | None = Depends(get_identity),
    store: DataStore = Depends(get_data_store),
) -> ProfileOut:
    """Guard a protected path and hand the caller's profile to the endpoint.

    Unauthenticated callers go to the landing path; members asking for an
    admin path go to the logger. The profile is created on first access.
    """
    path = request.url.path
    if identity is None:
        raise PageRedirect(guard_redirect(path, None, None) or LANDING_PATH)
    profile = ProfileResolver(store).resolve_profile(identity.id, identity.email)
    redirect = guard_redirect(path, identity, profile.role)
    if redirect:
        raise PageRedirect(redirect)
    return profile
