"""
RR Nagar Backend — Shared Pydantic Schemas
============================================

What:  Base model and response shapes shared by every resource.
How:   `CamelModel` reads ORM attributes by their snake_case names and
       serializes with camelCase aliases (FastAPI dumps response models
       by alias), so `is_template` goes out as `isTemplate`.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class OkResponse(BaseModel):
    """`{"ok": true}` acknowledgement used by delete and logout."""
    ok: bool = True


class ErrorResponse(CamelModel):
    """
    What:  Standardized error response format for all API errors.

    Fields:
        error: Machine-readable error code (e.g., "validation_error", "not_found")
        message: Human-readable description
        details: Optional extra context (e.g., which field failed validation)
        request_id: Correlation ID for tracing this error in server logs

    Example:
        {
            "error": "forbidden",
            "message": "Not authorized",
            "requestId": "1f0c9e2a"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(CamelModel):
    """Returned by GET /health for monitoring and load balancer checks."""
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    translation: str = Field(
        description="Translation status: available, unavailable, circuit_open"
    )
    uptime_seconds: float = Field(description="Seconds since service started")
