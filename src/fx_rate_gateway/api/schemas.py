"""Pydantic v2 schemas for API request/response models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RateData(BaseModel):
    """Resolved rate payload."""

    model_config = ConfigDict(populate_by_name=True)

    from_currency: str = Field(..., alias="from")
    to_currency: str = Field(..., alias="to")
    rate: str = Field(..., description="Fixed-point decimal string")
    date: str
    timestamp: int = Field(..., description="Unix seconds at resolution time")
    source: str


class RateResponse(BaseModel):
    """Schema for a successful rate lookup."""

    success: bool = True
    data: RateData
    warning: str | None = None


class CurrenciesResponse(BaseModel):
    provider: str
    currencies: list[str]


class HealthResponse(BaseModel):
    """Schema for health check response."""

    status: str
    version: str = "0.1.0"
    caching_enabled: bool
    provider: str


class ErrorResponse(BaseModel):
    """Schema for every error body."""

    error: str
    message: str
    context: dict[str, Any] = Field(default_factory=dict)
