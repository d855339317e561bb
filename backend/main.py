import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.endpoints import audit, auth, dashboard, logger as time_logger
from app.api.errors import register_error_handlers
from app.core.database import create_schema, engine
from app.core.settings import settings
from app.models import audit_log, profile, time_log  # noqa: F401  (register tables on Base.metadata)

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger("time_logger")

app = FastAPI(title="Time Logger API")

# Configure CORS
origins = settings.resolved_cors_origins()
if origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.on_event("startup")
def startup() -> None:
    logger.info("startup backend=%s environment=%s", settings.data_backend, settings.environment)
    if not settings.uses_supabase_store and settings.db_auto_create:
        if not create_schema(engine):
            logger.warning("startup.create_all.skipped dialect=%s run=alembic upgrade head", engine.dialect.name)


register_error_handlers(app)

app.include_router(auth.router, tags=["auth"])
app.include_router(time_logger.router, tags=["logger"])
app.include_router(dashboard.router, tags=["dashboard"])
app.include_router(audit.router, tags=["audit"])


@app.get("/health")
async def health_check():
    return {"status": "healthy", "backend": settings.data_backend}
