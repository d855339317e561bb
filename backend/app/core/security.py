from __future__ import annotations

import base64
import hashlib
import logging
import secrets
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

import jwt
import requests
from fastapi import HTTPException, Request

from app.core.errors import RemoteCallError
from app.core.settings import settings


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    id: str
    email: str
    access_token: str


@dataclass(frozen=True)
class AuthSession:
    access_token: str
    refresh_token: str
    expires_in: int
    user_id: str
    email: str


def _require_supabase_config() -> str:
    if not settings.supabase_url:
        raise HTTPException(status_code=500, detail="SUPABASE_URL is not configured")
    return settings.supabase_url


_JWKS_CLIENTS: dict[str, jwt.PyJWKClient] = {}


def _jwks_client(supabase_url: str) -> jwt.PyJWKClient:
    jwks_url = f"{supabase_url}/auth/v1/.well-known/jwks.json"
    client = _JWKS_CLIENTS.get(jwks_url)
    if client is None:
        client = jwt.PyJWKClient(jwks_url)
        _JWKS_CLIENTS[jwks_url] = client
    return client


def _decode_supabase_jwt(token: str) -> dict[str, Any]:
    """Verify an access token issued by Supabase Auth; raises ``jwt.PyJWTError`` when invalid."""
    audience = settings.supabase_jwt_audience or "authenticated"
    issuer = settings.supabase_jwt_issuer
    if not issuer and settings.supabase_url:
        issuer = f"{settings.supabase_url}/auth/v1"
    options = {"require": ["exp", "sub"]}

    if settings.supabase_jwt_secret:
        payload = jwt.decode(
            token,
            settings.supabase_jwt_secret,
            algorithms=["HS256"],
            audience=audience,
            issuer=issuer,
            options=options,
        )
        return dict(payload)

    supabase_url = _require_supabase_config()
    signing_key = _jwks_client(supabase_url).get_signing_key_from_jwt(token).key
    payload = jwt.decode(
        token,
        signing_key,
        algorithms=["ES256", "RS256"],
        audience=audience,
        issuer=issuer,
        options=options,
    )
    return dict(payload)


def get_session_token(request: Request) -> str | None:
    auth = request.headers.get("authorization") or ""
    if auth.lower().startswith("bearer "):
        token = auth.split(" ", 1)[1].strip()
        if token:
            return token
    token = (request.cookies.get(settings.session_cookie_name) or "").strip()
    return token or None


def identity_from_token(token: str | None) -> Identity | None:
    if not token:
        return None
    try:
        claims = _decode_supabase_jwt(token)
    except jwt.PyJWTError as exc:
        logger.info("auth.token.rejected reason=%s", type(exc).__name__)
        return None
    user_id = str(claims.get("sub") or "").strip()
    if not user_id:
        return None
    email = str(claims.get("email") or "").strip()
    return Identity(id=user_id, email=email, access_token=token)


def get_current_identity(request: Request) -> Identity | None:
    return identity_from_token(get_session_token(request))


def new_code_verifier() -> str:
    return secrets.token_urlsafe(48)


def code_challenge_for(verifier: str) -> str:
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def authorize_url(*, provider: str, redirect_to: str, code_challenge: str) -> str:
    supabase_url = _require_supabase_config()
    query = urlencode(
        {
            "provider": provider,
            "redirect_to": redirect_to,
            "code_challenge": code_challenge,
            "code_challenge_method": "s256",
        }
    )
    return f"{supabase_url}/auth/v1/authorize?{query}"


def _auth_headers(bearer: str | None = None) -> dict[str, str]:
    api_key = (settings.supabase_anon_key or "").strip()
    return {
        "apikey": api_key,
        "authorization": f"Bearer {bearer or api_key}",
        "accept": "application/json",
    }


def exchange_code_for_session(code: str, code_verifier: str) -> AuthSession:
    supabase_url = _require_supabase_config()
    try:
        resp = requests.post(
            f"{supabase_url}/auth/v1/token",
            params={"grant_type": "pkce"},
            json={"auth_code": code, "code_verifier": code_verifier},
            headers=_auth_headers(),
            timeout=settings.supabase_timeout_s,
        )
    except requests.RequestException as exc:
        logger.exception("auth.exchange.error")
        raise RemoteCallError("Code exchange failed") from exc
    if resp.status_code >= 400:
        logger.error("auth.exchange.status status=%s", resp.status_code)
        raise RemoteCallError(f"Code exchange returned {resp.status_code}", status_code=int(resp.status_code))
    try:
        body = resp.json() or {}
    except ValueError as exc:
        raise RemoteCallError("Code exchange returned invalid JSON") from exc
    user = body.get("user") if isinstance(body.get("user"), dict) else {}
    access_token = str(body.get("access_token") or "").strip()
    user_id = str(user.get("id") or "").strip()
    if not access_token or not user_id:
        raise RemoteCallError("Code exchange returned no session")
    return AuthSession(
        access_token=access_token,
        refresh_token=str(body.get("refresh_token") or ""),
        expires_in=int(body.get("expires_in") or 3600),
        user_id=user_id,
        email=str(user.get("email") or "").strip(),
    )


def sign_out(access_token: str) -> None:
    supabase_url = _require_supabase_config()
    try:
        resp = requests.post(
            f"{supabase_url}/auth/v1/logout",
            headers=_auth_headers(access_token),
            timeout=settings.supabase_timeout_s,
        )
    except requests.RequestException as exc:
        raise RemoteCallError("Sign out failed") from exc
    if resp.status_code >= 400:
        raise RemoteCallError(f"Sign out returned {resp.status_code}", status_code=int(resp.status_code))
