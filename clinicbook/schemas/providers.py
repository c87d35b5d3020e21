"""Provider directory schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class ProviderResponse(BaseModel):
    """Public provider profile."""

    id: UUID
    full_name: str
    email: str
    specialization: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ProviderListResponse(BaseModel):
    """Schema for paginated provider list response."""

    total: int
    page: int
    page_size: int
    items: list[ProviderResponse]


class ProviderFilters(BaseModel):
    """Schema for provider search."""

    specialization: str | None = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=100)
