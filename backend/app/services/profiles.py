from __future__ import annotations

import logging

from app.core.errors import ProfileCreationError, RemoteCallError
from app.core.settings import settings
from app.schemas.time_log import ProfileOut
from app.services.cache import RoleCache
from app.services.store.base import DataStore, Query


logger = logging.getLogger(__name__)

DEFAULT_ROLE = "user"
ADMIN_ROLE = "admin"

_PROFILE_ROLE_CACHE = RoleCache(max_items=20000, ttl_s=settings.profile_cache_ttl_s)


def normalize_role(value: str | None) -> str:
    role = str(value or "").strip().lower()
    return ADMIN_ROLE if role == ADMIN_ROLE else DEFAULT_ROLE


class ProfileResolver:
    def __init__(self, store: DataStore, *, cache: RoleCache | None = _PROFILE_ROLE_CACHE) -> None:
        self._store = store
        self._cache = cache

    def get_profile(self, user_id: str) -> ProfileOut | None:
        result = self._store.select(Query("profiles").eq("id", user_id).range(0, 1))
        if not result.rows:
            if self._cache is not None:
                self._cache.forget(user_id)
            return None
        profile = ProfileOut.model_validate(result.rows[0])
        self._remember(profile)
        return profile

    def resolve_profile(self, user_id: str, email: str) -> ProfileOut:
        """Fetch the profile for ``user_id``, creating it with the default role on first access.

        A failed insert (including losing a race with a concurrent call) is
        not retried; it surfaces as ``ProfileCreationError``.
        """
        existing = self.get_profile(user_id)
        if existing is not None:
            return existing
        try:
            row = self._store.insert("profiles", {"id": user_id, "email": email, "role": DEFAULT_ROLE})
        except RemoteCallError as exc:
            logger.error("profiles.create.error user_id=%s", user_id)
            raise ProfileCreationError(f"Could not create profile for {user_id}") from exc
        profile = ProfileOut.model_validate(row)
        logger.info("profiles.create.ok user_id=%s", user_id)
        self._remember(profile)
        return profile

    def role_for(self, user_id: str) -> str:
        if self._cache is not None:
            cached = self._cache.get_role(user_id)
            if cached is not None:
                return cached
        profile = self.get_profile(user_id)
        # A missing profile reads as a plain member until it is created.
        return normalize_role(profile.role if profile else None)

    def _remember(self, profile: ProfileOut) -> None:
        if self._cache is not None:
            self._cache.remember(profile.id, normalize_role(profile.role))
