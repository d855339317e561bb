from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from app.core.database import SessionLocal
from app.core.settings import settings
from app.services.store.base import DataStore
from app.services.store.sql import SqlStore
from app.services.store.supabase import SupabaseStore


@contextmanager
def open_data_store(access_token: str | None = None) -> Iterator[DataStore]:
    if settings.uses_supabase_store:
        if not settings.supabase_url or not settings.supabase_anon_key:
            raise RuntimeError("DATA_BACKEND=supabase but SUPABASE_URL/SUPABASE_ANON_KEY are not set")
        store = SupabaseStore(
            supabase_url=settings.supabase_url,
            api_key=settings.supabase_anon_key,
            access_token=access_token,
            timeout_s=settings.supabase_timeout_s,
        )
        try:
            yield store
        finally:
            store.close()
        return

    db = SessionLocal()
    try:
        yield SqlStore(db)
    finally:
        db.close()
