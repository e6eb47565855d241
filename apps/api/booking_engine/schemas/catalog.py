"""Service catalog schemas."""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ServiceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    duration_minutes: int = Field(..., gt=0, le=720)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    is_active: bool = True


class ServiceUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = None
    duration_minutes: int | None = Field(None, gt=0, le=720)
    price: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    is_active: bool | None = None


class ServiceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None
    duration_minutes: int
    price: Decimal
    is_active: bool


class AddOnCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    duration_minutes: int = Field(0, ge=0, le=240)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    compatible_service_ids: list[UUID] = Field(default_factory=list)
    is_active: bool = True


class AddOnUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = None
    duration_minutes: int | None = Field(None, ge=0, le=240)
    price: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    compatible_service_ids: list[UUID] | None = None
    is_active: bool | None = None


class AddOnRead(BaseModel):
    id: UUID
    name: str
    description: str | None
    duration_minutes: int
    price: Decimal
    compatible_service_ids: list[UUID]
    is_active: bool
