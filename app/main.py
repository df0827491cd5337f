# app/main.py
from __future__ import annotations

import logging
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.gzip import GZipMiddleware

# Load /backend/.env (main.py is /backend/app/main.py)
BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")

from app.core.settings import settings
from app.core.storage import connect_sqlite, ensure_schema
from app.core.gazetteer import Gazetteer
from app.api import api_router

from app.services.cache import CacheAside, CacheBackend, SqliteCacheBackend
from app.services.cache_supa import SupaCacheBackend
from app.services.events import EventPublisher, LoggingPublisher
from app.services.extraction import default_extraction_chain
from app.services.nominatim import NominatimGeocoding
from app.services.priority import PriorityClassifier
from app.services.resolver import LocationResolver, build_resolver
from app.services.social import SampleSocialFeed, SocialMedia

logging.basicConfig(
    level=getattr(logging, str(settings.log_level).upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Disaster Response Geocoding", version="1.0.0")

# ── Compression (must be added before CORS) ──
app.add_middleware(GZipMiddleware, minimum_size=1000)

app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=r"(^https?://localhost(:\d+)?$)|(\.vercel\.app$)",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ──────────────────────────────────────────────────────────────
# Cache backing store
# ──────────────────────────────────────────────────────────────

_cache_conn = None
if settings.cache_backend == "supabase":
    _cache_backend: CacheBackend = SupaCacheBackend()
else:
    _cache_conn = connect_sqlite(settings.cache_db_path)
    ensure_schema(_cache_conn)
    _cache_backend = SqliteCacheBackend(_cache_conn)

_cache = CacheAside(_cache_backend)

# Shared, built once at startup and injected
_publisher: EventPublisher = LoggingPublisher()
_classifier = PriorityClassifier()
_resolver = build_resolver(
    cache=_cache,
    extractor=default_extraction_chain(),
    geocoder=NominatimGeocoding(),
    gazetteer=Gazetteer(),
    publisher=_publisher,
)
_social = SocialMedia(
    cache=_cache,
    feed=SampleSocialFeed(),
    classifier=_classifier,
    publisher=_publisher,
)

# ──────────────────────────────────────────────────────────────
# Dependency providers
# ──────────────────────────────────────────────────────────────

def provide_cache() -> CacheAside:
    return _cache


def provide_location_resolver() -> LocationResolver:
    return _resolver


def provide_priority_classifier() -> PriorityClassifier:
    return _classifier


def provide_social_media_service() -> SocialMedia:
    return _social


# ──────────────────────────────────────────────────────────────
# Dependency overrides
# ──────────────────────────────────────────────────────────────

from app.api import disasters as disasters_api
from app.api import geocode as geocode_api
from app.api import health as health_api
from app.api import priority as priority_api

app.dependency_overrides[health_api.get_cache] = provide_cache
app.dependency_overrides[geocode_api.get_location_resolver] = provide_location_resolver
app.dependency_overrides[priority_api.get_priority_classifier] = provide_priority_classifier
app.dependency_overrides[disasters_api.get_social_media_service] = provide_social_media_service

# Routes
app.include_router(api_router)


@app.get("/")
def root() -> dict:
    return {"name": "Disaster Response Geocoding", "status": "running"}


# ──────────────────────────────────────────────────────────────
# Errors
# ──────────────────────────────────────────────────────────────

@app.exception_handler(Exception)
async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("[app] unhandled error path=%s", request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": {"code": "internal_error", "message": str(exc)}},
    )


# ──────────────────────────────────────────────────────────────
# Shutdown
# ──────────────────────────────────────────────────────────────

@app.on_event("shutdown")
def shutdown():
    logger.info("[app] Shutting down, closing connections")
    if _cache_conn is None:
        return
    try:
        _cache_conn.close()
    except Exception as e:
        logger.warning(f"[app] Error closing cache DB: {e}")
