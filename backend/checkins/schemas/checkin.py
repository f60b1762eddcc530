"""
Checkins Backend — Pydantic Request/Response Schemas
======================================================

What:  Pydantic models defining the API contract.
How:   CheckinRequest is validated in strict mode straight from the raw JSON
       body; CheckinResponse is built from ORM rows (from_attributes).

Design Decision:
    Schemas are separate from SQLAlchemy models because the wire shape and
    the table shape differ: the request has no id or timestamp, and the
    database stores gps as one point value.
"""

from datetime import datetime
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

INT4_MIN = -(2**31)
INT4_MAX = 2**31 - 1


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class CheckinRequest(BaseModel):
    """
    What:  Body of POST /v1/checkins.

    Every field is required and strictly typed: "3" is not an integer and a
    string is not a coordinate. Unknown extra fields are ignored. No
    semantic checks are applied (coordinate ranges, crowded_level scale),
    but coordinates must be finite and crowded_level must fit in 32 bits.
    """

    model_config = ConfigDict(strict=True, extra="ignore", allow_inf_nan=False)

    gps: Tuple[float, float] = Field(description="Coordinate pair, order kept as received")
    location_name: str = Field(description="Name of the reported location")
    # Width of the int4 column; the scale itself is not checked
    crowded_level: int = Field(
        ge=INT4_MIN,
        le=INT4_MAX,
        description="Reported crowding level (no fixed scale)",
    )
    user_id: str = Field(description="Reporting user")
    client_id: str = Field(description="Reporting client application")
    missing_goods: List[str] = Field(description="Goods reported missing; may be empty")


class NewCheckin(BaseModel):
    """
    What:  Store-insertable check-in (no id, no created_at).
    Who:   Built by the POST handler, consumed by CheckinRepository.create().
    """

    gps: Tuple[float, float]
    location_name: str
    crowded_level: int
    user_id: str
    client_id: str
    missing_goods: List[str]

    @classmethod
    def from_request(cls, request: CheckinRequest) -> "NewCheckin":
        return cls(
            gps=request.gps,
            location_name=request.location_name,
            crowded_level=request.crowded_level,
            user_id=request.user_id,
            client_id=request.client_id,
            missing_goods=list(request.missing_goods),
        )


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class CheckinResponse(BaseModel):
    """
    What:  A stored check-in as returned by GET /v1/checkins.
    """

    id: int = Field(description="Identifier assigned by the database")
    gps: List[float] = Field(description="Coordinate pair in the order it was submitted")
    location_name: str
    crowded_level: int
    user_id: str
    client_id: str
    missing_goods: List[str]
    created_at: datetime = Field(description="When the check-in was stored (UTC ISO 8601)")

    model_config = {"from_attributes": True}


class ErrorResponse(BaseModel):
    """
    What:  Error envelope for client errors (400, 413).

    Store failures (500) deliberately return an empty body instead.
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """
    What:  Health check response for monitoring and load balancer probes.
    """

    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    pool: Dict[str, int] = Field(description="Connection pool accounting")
