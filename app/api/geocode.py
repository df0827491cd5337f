from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from app.core.contracts import GeocodeRequest, ResolutionResult
from app.core.errors import InvalidDescription, bad_request
from app.services.resolver import LocationResolver

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/geocode")


def get_location_resolver() -> LocationResolver:
    raise RuntimeError("LocationResolver must be provided by app dependency override")


@router.post("", response_model=ResolutionResult)
async def geocode(
    req: GeocodeRequest,
    resolver: LocationResolver = Depends(get_location_resolver),
) -> ResolutionResult:
    try:
        return await resolver.resolve(req.description)
    except InvalidDescription as e:
        bad_request("bad_geocode_request", str(e))
