from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


# ──────────────────────────────────────────────────────────────
# Shared
# ──────────────────────────────────────────────────────────────

Priority = Literal["urgent", "high", "normal"]


class GeoPoint(BaseModel):
    lat: float
    lon: float


# ──────────────────────────────────────────────────────────────
# Location resolution
# ──────────────────────────────────────────────────────────────

class GeocodeRequest(BaseModel):
    # Optional so a missing description reaches our own validation (400)
    # instead of a generic 422.
    description: Optional[str] = None


class GeocodeHit(BaseModel):
    """First candidate returned by the address directory."""
    lat: float
    lon: float
    display_name: str
    confidence: float = Field(ge=0.0, le=1.0)


class ResolutionResult(BaseModel):
    location_name: str
    lat: float
    lon: float
    display_name: str
    confidence: float = Field(ge=0.0, le=1.0)
    fallback_used: bool
    error: Optional[str] = None


# ──────────────────────────────────────────────────────────────
# Priority classification
# ──────────────────────────────────────────────────────────────

class PriorityRequest(BaseModel):
    text: str


class PriorityVerdict(BaseModel):
    priority: Priority
    reason: str


class SocialPost(BaseModel):
    post: str
    user: str
    platform: str
    timestamp: str


class ClassifiedPost(SocialPost):
    priority: Priority
    priority_reason: str


class Report(BaseModel):
    # Reports live in the incident store; keep whatever fields the caller sends.
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    content: Optional[str] = None
    image_url: Optional[str] = None


class ReportTriageRequest(BaseModel):
    reports: List[Report] = Field(default_factory=list)


class ClassifiedReport(Report):
    priority: Priority
    priority_reason: str


# ──────────────────────────────────────────────────────────────
# Events
# ──────────────────────────────────────────────────────────────

class LocationResolvedEvent(BaseModel):
    description: str
    result: ResolutionResult


class SocialMediaUpdatedEvent(BaseModel):
    disaster_id: str
    data: List[Dict[str, Any]] = Field(default_factory=list)
