"""Data models shared by the symptom matcher and the labor rate reconciler."""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


# ─── Symptom catalog ───

class SymptomCategory(BaseModel):
    """One diagnostic category of the intake catalog."""
    model_config = ConfigDict(frozen=True)

    name: str
    keywords: tuple[str, ...]  # matching only, never displayed
    questions: tuple[str, ...]


# ─── Labor rate groups ───

class LaborRateGroup(BaseModel):
    """Shop-defined labor rate for a set of vehicle makes."""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1)
    makes: list[str] = Field(..., min_length=1)
    labor_rate: int = Field(..., alias="laborRate", ge=0)  # cents

    def covers(self, make: str | None) -> bool:
        if not make:
            return False
        wanted = make.strip().lower()
        return any(m.strip().lower() == wanted for m in self.makes)

    def to_store(self) -> dict:
        return self.model_dump(by_alias=True)


# ─── Captured auth session ───

class AuthSession(BaseModel):
    """Credentials captured from observed Tekmetric traffic."""
    token: Optional[str] = None
    shop_id: Optional[str] = None
    base_url: Optional[str] = None  # origin: shop, sandbox or cba

    @property
    def is_complete(self) -> bool:
        return bool(self.token) and bool(self.shop_id)


# ─── Repair orders ───

class OrderEventKind(str, Enum):
    EXISTING_ORDER_VIEWED = "existing-order-viewed"
    NEW_ORDER_CREATED = "new-order-created"


class RepairOrderEvent(BaseModel):
    order_id: str
    shop_id: str
    kind: OrderEventKind


# Sibling fields the summary endpoint nulls out unless they are resent.
PASS_THROUGH_FIELDS = (
    "appointmentOption",
    "customerTimeIn",
    "customerTimeOut",
    "defaultTechnicianId",
    "keytag",
    "leadSource",
    "notes",
    "poNumber",
    "referrerId",
    "referrerName",
    "saveCustomerParts",
    "serviceWriterId",
)


class RepairOrderSnapshot(BaseModel):
    """Current state of a remote repair order, as fetched."""
    labor_rate: Optional[int] = None
    vehicle_make: Optional[str] = None
    pass_through: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_api(cls, data: Any) -> "RepairOrderSnapshot":
        if not isinstance(data, dict):
            raise ValueError(f"expected a repair order object, got {type(data).__name__}")
        vehicle = data.get("vehicle") or {}
        if not isinstance(vehicle, dict):
            raise ValueError(f"expected a vehicle object, got {type(vehicle).__name__}")
        return cls(
            labor_rate=data.get("laborRate"),
            vehicle_make=vehicle.get("make"),
            pass_through={k: data[k] for k in PASS_THROUGH_FIELDS if k in data},
        )

    def summary_payload(self, labor_rate: int) -> dict:
        """Body for the summary PUT: the new rate plus every captured sibling."""
        payload = {"laborRate": labor_rate}
        payload.update(self.pass_through)
        return payload


class RefreshNotice(BaseModel):
    """Tells open Tekmetric views to reload the order's labor rate."""
    type: str = "REFRESH_LABOR_RATE_UI"
    order_id: str
    rate: int
    group_name: str


# ─── Estimates sent to Tekmetric ───

class LaborLine(BaseModel):
    name: str
    hours: float
    rate: int  # cents
    technician_id: Optional[int] = None


class PartLine(BaseModel):
    name: str
    part_number: Optional[str] = None
    cost: int  # cents
    quantity: Optional[int] = 1
    retail: Optional[int] = None


class JobEstimate(BaseModel):
    """A historical job to recreate as a Tekmetric estimate."""
    id: Optional[int] = None
    name: str
    labor_items: list[LaborLine] = Field(default_factory=list)
    parts: list[PartLine] = Field(default_factory=list)
