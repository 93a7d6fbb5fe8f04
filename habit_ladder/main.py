from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
from pathlib import Path

from habit_ladder import config
from habit_ladder.database import engine, Base
from habit_ladder import models  # Import all models to register them with Base
from habit_ladder.routes import router
from habit_ladder.services.scheduler_service import start_scheduler, stop_scheduler
from habit_ladder.constants import DEFAULT_LOG_DIRECTORY_DEV, CORS_ALLOWED_ORIGINS

LOG_DIR = config.LOG_DIR

# Create log directory if it doesn't exist (for development)
try:
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / config.LOG_FILE
except PermissionError:
    # Fallback to local directory if no permissions for /var/log
    LOG_DIR = DEFAULT_LOG_DIRECTORY_DEV
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / config.LOG_FILE

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(log_path),
        logging.StreamHandler()  # Also log to console
    ]
)

logger = logging.getLogger("habit_ladder")

# Create database tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Habit Ladder API",
    description="Habit and goal tracking with points, streaks, levels and achievements",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.on_event("startup")
async def startup_event():
    logger.info(f"Habit Ladder API started. Logging to: {log_path}")
    start_scheduler()


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down Habit Ladder API")
    stop_scheduler()


# Health check (no auth required)
@app.get("/")
async def root():
    return {"message": "Habit Ladder API", "status": "active"}
