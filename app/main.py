import app.db.base  # noqa: F401
import app.models  # noqa: F401

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.api.http_errors import register_exception_handlers
from app.api.routes.health import router as health_router
from app.api.routes.auth import router as auth_router
from app.api.routes.me import router as me_router
from app.api.routes.tmdb import router as tmdb_router
from app.api.routes.titles import router as titles_router
from app.api.routes.lists import router as lists_router
from app.api.routes.user_titles import router as user_titles_router

logging.basicConfig(
    level=settings.log_level_value(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)
app = FastAPI(title="Watch Tracker API", version="0.1.0")

local_cors_origin_regex = (
    r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$"
    if settings.env in {"local", "test"}
    else None
)

register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list(),
    allow_origin_regex=local_cors_origin_regex,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(me_router)
app.include_router(tmdb_router)
app.include_router(titles_router)
app.include_router(lists_router)
app.include_router(user_titles_router)

logger.info("Watch Tracker API configured env=%s", settings.env)
