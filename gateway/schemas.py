"""
Gateway — Response Schemas
===========================

What:  Pydantic models for the bodies the gateway itself produces.
Why:   They document the error contract and the health probe in OpenAPI,
       and give tests a single definition of the shapes to assert against.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standard error body.

    `error` and `stack` are only present in development mode.
    """
    status: Literal["fail", "error"] = Field(
        description="'fail' for operational 4xx errors, 'error' otherwise"
    )
    message: str = Field(description="Client-safe error description")
    error: Optional[Dict[str, Any]] = Field(default=None, description="Development only")
    stack: Optional[List[str]] = Field(default=None, description="Development only")


class HealthResponse(BaseModel):
    status: str = Field(description="Always 'healthy' when the process can answer")
    version: str
    environment: str
    uptime_seconds: float
    rate_limited_clients: int = Field(description="Clients tracked by the rate limiter")


class ResourceIndexResponse(BaseModel):
    status: Literal["success"] = "success"
    resource: str
    requested_time: Optional[str] = Field(
        default=None, description="Time the request entered the router (UTC ISO 8601)"
    )
    data: List[Any] = Field(default_factory=list)
