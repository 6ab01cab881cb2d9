"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lifegoals.config import settings
from lifegoals.database import database
from lifegoals.routers import auth, domains, flows, goals, notifications, reviews
from lifegoals.scheduler import start_scheduler, stop_scheduler

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown events."""
    # Startup
    await database.connect()
    start_scheduler()
    yield
    # Shutdown
    stop_scheduler()
    await database.disconnect()


app = FastAPI(
    title="Life Goals API",
    description="Backend API for life-goal tracking and AI-assisted goal creation",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router)
app.include_router(goals.router)
app.include_router(domains.router)
app.include_router(flows.router)
app.include_router(notifications.router)
app.include_router(reviews.router)


@app.get("/")
async def root():
    """Root endpoint - health check."""
    return {"status": "ok", "message": "Life Goals API"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
