# app/main.py
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import get_settings
from app.database import create_db_and_tables, ensure_display_order_column

# Table models must be registered on SQLModel.metadata before create_all()
from app.models import category as _category_models  # noqa: F401
from app.models import post as _post_models  # noqa: F401

from app.routers.categories import router as categories_router
from app.routers.posts import router as posts_router
from app.routers.uploads import router as uploads_router

settings = get_settings()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup:
      - create posts / post_translations / categories if missing
      - migrate legacy posts tables to carry display_order
    """
    logger.info("Preparing database schema")
    try:
        create_db_and_tables()
        ensure_display_order_column()
    except Exception:
        logger.exception("Database schema setup failed")
        raise
    logger.info("Database ready")
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for router in (posts_router, categories_router, uploads_router):
    app.include_router(router, prefix=settings.API_V1_STR)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "post-cms"}
