from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.settings import settings

SQLALCHEMY_DATABASE_URL = settings.database_url

engine_kwargs: dict = {"pool_pre_ping": True}
if SQLALCHEMY_DATABASE_URL.startswith("sqlite"):
    engine_kwargs["connect_args"] = {"check_same_thread": False}
    if SQLALCHEMY_DATABASE_URL in {"sqlite://", "sqlite:///:memory:"}:
        engine_kwargs["poolclass"] = StaticPool

engine = create_engine(SQLALCHEMY_DATABASE_URL, **engine_kwargs)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def create_schema(bind) -> bool:
    """Create missing tables for local development; False when migrations must do it.

    PostgreSQL gets its audit trigger and row level security from
    ``alembic upgrade head``, which ``create_all`` cannot install.
    """
    if bind.dialect.name == "postgresql":
        return False
    Base.metadata.create_all(bind=bind)
    return True
