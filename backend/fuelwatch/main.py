from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from apscheduler.schedulers.asyncio import AsyncIOScheduler
import logging
import pytz
import uvicorn

from fuelwatch.config import settings
from fuelwatch.database import engine, Base
from fuelwatch.api import alerts, groups, permissions, tanks
from fuelwatch.tasks.alert_update import evaluate_alerts_job
import fuelwatch.models  # noqa: F401  (register tables on Base.metadata)


# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Create scheduler
scheduler = AsyncIOScheduler(timezone=pytz.timezone(settings.schedule_timezone))


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting application...")
    if settings.auto_create_tables:
        Base.metadata.create_all(bind=engine)
    scheduler.start()

    # Schedule recurring tasks
    scheduler.add_job(
        evaluate_alerts_job,
        'interval',
        minutes=settings.alert_evaluation_minutes,
        id='alert_evaluation',
        replace_existing=True,
        coalesce=True
    )
    logger.info(f"Scheduled alert evaluation every {settings.alert_evaluation_minutes} minutes")

    yield
    # Shutdown
    logger.info("Shutting down application...")
    scheduler.shutdown()


app = FastAPI(
    title="FuelWatch",
    description="Fuel tank levels, depletion forecasts and alerts, scoped by group and subgroup",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(tanks.router, prefix="/api/tanks", tags=["Tanks"])
app.include_router(groups.router, prefix="/api/groups", tags=["Groups"])
app.include_router(alerts.router, prefix="/api/alerts", tags=["Alerts"])
app.include_router(permissions.router, prefix="/api/permissions", tags=["Permissions"])


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


@app.get("/")
async def root():
    return {"message": "FuelWatch API", "docs": "/docs"}


if __name__ == "__main__":
    uvicorn.run("fuelwatch.main:app", host=settings.api_host, port=settings.api_port)
