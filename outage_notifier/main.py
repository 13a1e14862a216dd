import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from outage_notifier.config import settings
from outage_notifier.database import init_db

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    if settings.scheduler_enabled:
        from outage_notifier.tasks.scheduler import start_scheduler, stop_scheduler
        start_scheduler()
        yield
        stop_scheduler()
    else:
        yield


app = FastAPI(
    title="Outage Notifier",
    description="Power outage schedule monitor with deduplicated notifications",
    version="0.1.0",
    lifespan=lifespan,
)

from outage_notifier.routers import outage  # noqa: E402

app.include_router(outage.router, prefix="/api/v1")


@app.get("/health")
async def health():
    return {"status": "ok"}
