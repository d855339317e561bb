from __future__ import annotations

from app.core.security import Identity


LANDING_PATH = "/"
MEMBER_PATH = "/logger"
ADMIN_PATH = "/dashboard"
AUDIT_PATH = "/audit"

PROTECTED_PREFIXES = (MEMBER_PATH, ADMIN_PATH, AUDIT_PATH)
ADMIN_ONLY_PREFIXES = (ADMIN_PATH, AUDIT_PATH)

AUTH_ERROR = "auth_error"
PROFILE_CREATION_FAILED = "profile_creation_failed"


class PageRedirect(Exception):
    def __init__(self, location: str) -> None:
        super().__init__(location)
        self.location = location


def _matches(path: str, prefixes: tuple[str, ...]) -> bool:
    return any(path == p or path.startswith(p + "/") for p in prefixes)


def default_path_for_role(role: str | None) -> str:
    return ADMIN_PATH if (role or "").lower() == "admin" else MEMBER_PATH


def landing_with_error(code: str) -> str:
    return f"{LANDING_PATH}?error={code}"


def guard_redirect(path: str, identity: Identity | None, role: str | None) -> str | None:
    """Where a request for ``path`` must be sent instead, or None to let it through."""
    if identity is None:
        return LANDING_PATH if _matches(path, PROTECTED_PREFIXES) else None
    if _matches(path, ADMIN_ONLY_PREFIXES) and (role or "").lower() != "admin":
        return MEMBER_PATH
    if path == LANDING_PATH:
        return default_path_for_role(role)
    return None
