import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from activity_tracker.core.config import settings
from activity_tracker.core.db import SessionLocal
from activity_tracker.core.logging_setup import configure_logging
from activity_tracker.core.observability import setup_observability
from activity_tracker.routes.activities import router as activities_router
from activity_tracker.routes.admin import router as admin_router
from activity_tracker.routes.auth import router as auth_router
from activity_tracker.routes.profile import router as profile_router
from activity_tracker.services.seeder import seed_database
from activity_tracker.services.uploads import UPLOADS_URL_PATH

configure_logging(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.SEED_ON_STARTUP:
        with SessionLocal() as db:
            seed_database(db)
    yield


app = FastAPI(title="Activity Tracker API", lifespan=lifespan)
setup_observability(app, settings)

app.include_router(auth_router)
app.include_router(activities_router)
app.include_router(profile_router)
app.include_router(admin_router)

os.makedirs(settings.UPLOADS_DIR, exist_ok=True)
app.mount(UPLOADS_URL_PATH, StaticFiles(directory=settings.UPLOADS_DIR), name="uploads")


@app.get("/health")
def health():
    return {"status": "ok"}
