from __future__ import annotations

from fastapi import HTTPException


def bad_request(code: str, message: str):
    raise HTTPException(status_code=400, detail={"code": code, "message": message})


# ──────────────────────────────────────────────────────────────
# Resolution pipeline errors
# ──────────────────────────────────────────────────────────────

class ResolutionError(Exception):
    """Base for everything the location pipeline raises."""


class InvalidDescription(ResolutionError, ValueError):
    """Description text missing or empty. Surfaced to the caller."""


class ServiceUnavailable(ResolutionError):
    """An external resolver timed out, errored or is not configured.

    Always recovered inside the pipeline by moving to the next stage.
    """


class GeocodingUnavailable(ServiceUnavailable):
    pass


class LocationNotFound(ResolutionError):
    """No resolver produced coordinates for the location name."""


class UnexpectedPayload(ResolutionError):
    """An upstream answered with a shape we don't understand.

    Not recovered: this indicates a pipeline bug rather than an outage.
    """
