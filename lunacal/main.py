"""
lunacal - calendar storage and almanac service
FastAPI Application Entry Point
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from lunacal.config import settings
from lunacal.database import async_engine, init_db
from lunacal.api import calendars, events, reminders, lunar

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    await init_db()
    logger.info("Database ready at %s", settings.database_url)
    yield
    # Shutdown
    await async_engine.dispose()


app = FastAPI(
    title="lunacal API",
    description="Calendars, events and reminders with Chinese lunisolar almanac data",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",  # Vite dev server
        "http://localhost:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(calendars.router, prefix="/api/calendars", tags=["Calendars"])
app.include_router(events.router, prefix="/api/events", tags=["Events"])
app.include_router(reminders.router, prefix="/api/reminders", tags=["Reminders"])
app.include_router(lunar.router, prefix="/api", tags=["Lunar"])


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "healthy", "service": "lunacal API", "version": "1.0.0"}


@app.get("/health")
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "database": settings.database_url.split(":", 1)[0],
        "timezone": settings.timezone or "host",
        "lunar_range": [settings.lunar_min_year, settings.lunar_max_year],
    }


def run():
    import uvicorn

    uvicorn.run("lunacal.main:app", host=settings.host, port=settings.port, reload=settings.debug)
