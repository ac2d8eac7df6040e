import asyncio
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from flashcards.config import settings
from flashcards.database import engine, Base, is_sqlite
from flashcards.routers import attempts, pools, sessions, stats
from flashcards.services.catalog import CatalogCache

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    alembic_ini = Path(__file__).resolve().parent.parent / "alembic.ini"
    if alembic_ini.exists() and os.environ.get("FLASHCARDS_SKIP_MIGRATIONS") != "1":
        # Dispose engine pool to avoid SQLite locking conflicts with alembic
        engine.dispose()
        await asyncio.to_thread(_run_alembic, alembic_ini)
    else:
        Base.metadata.create_all(bind=engine)
    catalog = app.state.catalog_cache.get()
    logger.info(f"Catalog ready: {len(catalog)} items from {settings.data_dir}")
    yield


def _run_alembic(alembic_ini: Path):
    if is_sqlite(settings.database_url) and ":memory:" not in settings.database_url:
        import sqlite3
        # Checkpoint WAL before alembic to avoid lock contention
        db_path = settings.database_url.replace("sqlite:///", "")
        conn = sqlite3.connect(db_path)
        conn.execute("PRAGMA wal_checkpoint(TRUNCATE)")
        conn.close()

    from alembic import command
    from alembic.config import Config
    alembic_cfg = Config(str(alembic_ini))
    alembic_cfg.set_main_option("script_location", str(alembic_ini.parent / "alembic"))
    command.upgrade(alembic_cfg, "head")


app = FastAPI(title="UKE Exam Flashcards API", version=VERSION, lifespan=lifespan)
app.state.catalog_cache = CatalogCache(settings.data_dir)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(pools.router)
app.include_router(attempts.router)
app.include_router(sessions.router)
app.include_router(stats.router)


@app.get("/")
def root():
    return {"app": "flashcards", "version": VERSION}
