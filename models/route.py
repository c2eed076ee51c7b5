"""
Geographic models for the route optimizer.

Waypoints are ephemeral: they arrive already geocoded and leave reordered.
"""

import math
from typing import Optional
from pydantic import BaseModel, Field, field_validator


class Waypoint(BaseModel):
    """A point to visit, in WGS84 degrees."""
    id: str = Field(min_length=1, description="Unique identifier within one route request")
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    name: Optional[str] = Field(default=None, description="Display name, e.g. the client address")

    @field_validator('latitude', 'longitude')
    @classmethod
    def must_be_finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("Coordinates must be finite numbers")
        return v
