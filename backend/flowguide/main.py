"""Flowguide FastAPI application entry point."""

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from flowguide.db.connection import Database
from flowguide.guides.router import get_guide_service
from flowguide.guides.router import router as guides_router
from flowguide.guides.service import GuideService
from flowguide.importer.router import get_import_service
from flowguide.importer.router import router as import_router
from flowguide.importer.service import DEFAULT_MAX_IMPORT_BYTES, ImportService

VERSION = "0.1.0"

# Load .env from backend/ directory before reading settings
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("FLOWGUIDE_CORS_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage database lifecycle and service wiring."""
    db = await Database.connect(os.environ.get("FLOWGUIDE_DB_PATH", "flowguide.db"))

    # Guide service (also the storage side of imports)
    guide_svc = GuideService(db)
    app.dependency_overrides[get_guide_service] = lambda: guide_svc

    # Import service
    max_import_bytes = int(
        os.environ.get("FLOWGUIDE_MAX_IMPORT_BYTES", DEFAULT_MAX_IMPORT_BYTES)
    )
    import_svc = ImportService(guide_svc, max_import_bytes=max_import_bytes)
    app.dependency_overrides[get_import_service] = lambda: import_svc

    app.state.db = db
    yield

    await db.close()


app = FastAPI(
    title="Flowguide",
    description="Onboarding guides built from flow boxes and steps",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(guides_router)
app.include_router(import_router)


@app.get("/api/health")
async def health() -> dict:
    return {"status": "ok", "version": VERSION}
