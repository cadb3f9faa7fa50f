from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
import os
from dotenv import load_dotenv

# Load environment variables from .env file FIRST
env_path = os.path.join(os.path.dirname(__file__), '.env')
load_dotenv(dotenv_path=env_path)

from app.config import settings, validate_settings
from app.infra.mongodb import close_database, ensure_indexes
from app.infra.mongodb.repositories import get_curated_template_repo
from app.routes import (
    replies_router,
    templates_router,
    refined_responses_router,
    conversations_router,
    profile_router,
)
from app.services.reply_service import shutdown_background_executor

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        validate_settings()
    except ValueError as e:
        logger.warning(f"Configuration incomplete: {e}")
    try:
        ensure_indexes()
        get_curated_template_repo().seed_defaults()
    except Exception as e:
        logger.error(f"MongoDB startup tasks failed: {e}")
    yield
    shutdown_background_executor()
    close_database()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
async def root():
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }


app.include_router(replies_router)
app.include_router(templates_router)
app.include_router(refined_responses_router)
app.include_router(conversations_router)
app.include_router(profile_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
        log_level="info",
    )
