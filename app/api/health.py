from __future__ import annotations

from fastapi import APIRouter, Depends

from app.services.cache import CacheAside

router = APIRouter()


def get_cache() -> CacheAside:
    raise RuntimeError("CacheAside must be provided by app dependency override")


@router.get("/health")
def health(cache: CacheAside = Depends(get_cache)) -> dict:
    return {
        "status": "ok",
        "cache_backend": getattr(cache.backend, "name", type(cache.backend).__name__),
    }
