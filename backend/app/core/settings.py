import os


def _getenv(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip()
    return value if value else default


def _getenv_bool(name: str, default: bool = False) -> bool:
    raw = _getenv(name)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "y", "on"}


def _getenv_float(name: str, default: float) -> float:
    raw = _getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


class Settings:
    def __init__(self) -> None:
        self.environment = (_getenv("ENVIRONMENT", "development") or "development").lower()
        self.database_url = _getenv("DATABASE_URL", "sqlite:///./time_logger.db") or "sqlite:///./time_logger.db"
        self.db_auto_create = _getenv_bool("DB_AUTO_CREATE", default=True)

        self.supabase_url = (_getenv("SUPABASE_URL") or _getenv("NEXT_PUBLIC_SUPABASE_URL") or "").rstrip("/") or None
        self.supabase_anon_key = _getenv("SUPABASE_ANON_KEY") or _getenv("NEXT_PUBLIC_SUPABASE_ANON_KEY")
        self.supabase_jwt_audience = _getenv("SUPABASE_JWT_AUD", "authenticated")
        self.supabase_jwt_issuer = _getenv("SUPABASE_JWT_ISSUER")
        # Legacy projects sign access tokens with a shared HS256 secret instead of JWKS.
        self.supabase_jwt_secret = _getenv("SUPABASE_JWT_SECRET")
        self.supabase_timeout_s = _getenv_float("SUPABASE_TIMEOUT_S", 10.0)

        default_backend = "supabase" if (self.supabase_url and self.supabase_anon_key) else "sql"
        self.data_backend = (_getenv("DATA_BACKEND", default_backend) or default_backend).lower()

        self.oauth_provider = _getenv("OAUTH_PROVIDER", "google") or "google"
        self.site_url = (_getenv("SITE_URL", "http://localhost:8000") or "http://localhost:8000").rstrip("/")
        self.session_cookie_name = _getenv("SESSION_COOKIE_NAME", "tl-access-token") or "tl-access-token"
        self.refresh_cookie_name = f"{self.session_cookie_name}-refresh"
        self.code_verifier_cookie_name = f"{self.session_cookie_name}-code-verifier"
        self.cookie_secure = _getenv_bool("COOKIE_SECURE", default=(self.environment == "production"))

        self.profile_cache_ttl_s = int(_getenv_float("PROFILE_CACHE_TTL_S", 60))
        self.cors_allow_origins = _getenv("CORS_ALLOW_ORIGINS")
        self.log_level = (_getenv("LOG_LEVEL", "INFO") or "INFO").upper()

    @property
    def uses_supabase_store(self) -> bool:
        return self.data_backend == "supabase"

    def resolved_cors_origins(self) -> list[str]:
        raw = self.cors_allow_origins
        if raw is None:
            return ["http://localhost:3000", "http://localhost:8000"]
        if raw.strip() == "*":
            return ["*"]
        origins = [o.strip() for o in raw.split(",") if o.strip()]
        return origins


settings = Settings()
