"""Delivery agent DTOs (Pydantic v2, immutable)."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from modules.delivery.constants import AgentAvailability, VehicleType


def _normalize_phone(value: str) -> str:
    phone = value.strip()
    digits = phone.lstrip("+").replace(" ", "").replace("-", "")
    if not digits.isdigit() or not 7 <= len(digits) <= 15:
        raise ValueError("Phone must contain 7 to 15 digits.")
    return phone


class CreateDeliveryAgentDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    phone: str
    email: str = ""
    vehicle_type: VehicleType = VehicleType.BIKE
    vehicle_number: str = ""
    address: str = ""
    status: AgentAvailability = AgentAvailability.AVAILABLE
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def name_must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name must not be blank.")
        return v.strip()

    @field_validator("phone")
    @classmethod
    def phone_must_be_valid(cls, v: str) -> str:
        return _normalize_phone(v)


class UpdateDeliveryAgentDTO(BaseModel):
    """Partial update: ``None`` means "leave unchanged"."""

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    vehicle_type: Optional[VehicleType] = None
    vehicle_number: Optional[str] = None
    address: Optional[str] = None
    status: Optional[AgentAvailability] = None
    is_active: Optional[bool] = None

    @field_validator("phone")
    @classmethod
    def phone_must_be_valid(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_phone(v) if v is not None else v
