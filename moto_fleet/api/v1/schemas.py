"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import List, Optional

from moto_fleet.domain.models import Sector, StaffRole, UrgencyTier, VehicleModel, VehicleStatus


class VehicleUpdateRequest(BaseModel):
    """Request body for PUT /v1/vehicles/{plate}"""

    model: VehicleModel = VehicleModel.MOTTU_POP
    status: VehicleStatus = VehicleStatus.AVAILABLE
    sector: Sector = Sector.GOOD
    yard_name: str = Field(..., min_length=1, max_length=50, description="Yard holding the vehicle")
    staff_username: str = Field(..., min_length=1, max_length=50, description="Responsible staff member")
    mileage: int = Field(0, ge=0, le=1_000_000, description="Odometer reading in km")
    last_service_date: Optional[date] = None


class VehicleCreateRequest(VehicleUpdateRequest):
    """Request body for POST /v1/vehicles"""

    plate: str = Field(..., description="Plate in XXX-0000 format")


class VehicleResponse(BaseModel):
    plate: str
    model: VehicleModel
    status: VehicleStatus
    sector: Sector
    yard_name: str
    staff_username: str
    mileage: int
    last_service_date: Optional[date] = None
    service_count: int
    maintenance_flag: bool
    maintenance_probability: float
    occupies_slot: bool
    available_for_rent: bool


class VehicleListResponse(BaseModel):
    vehicles: List[VehicleResponse]


class RiskAssessmentResponse(BaseModel):
    """Response for POST /v1/vehicles/{plate}/risk"""

    plate: str
    needs_maintenance: bool
    probability: float
    score: float
    urgency_tier: UrgencyTier
    recommendation: str
    source: str
    factors: List[str]
    assessed_at: datetime


class YardUpdateRequest(BaseModel):
    """Request body for PUT /v1/yards/{name}"""

    total_slots: int = Field(..., gt=0, le=1000, description="Total parking slots")
    location: str = Field("", max_length=200)


class YardCreateRequest(YardUpdateRequest):
    """Request body for POST /v1/yards"""

    name: str = Field(..., min_length=3, max_length=50, pattern=r"^[a-zA-Z0-9\s]+$")


class YardResponse(BaseModel):
    name: str
    location: str
    total_slots: int
    occupied_slots: int
    available_slots: int
    occupancy_rate: float


class YardListResponse(BaseModel):
    yards: List[YardResponse]


class StaffCreateRequest(BaseModel):
    """Request body for POST /v1/yards/{name}/staff"""

    username: str = Field(..., min_length=3, max_length=50, pattern=r"^[a-zA-Z0-9_]+$")
    name: str = Field(..., min_length=1, max_length=100)
    role: StaffRole = StaffRole.STAFF


class StaffResponse(BaseModel):
    username: str
    name: str
    yard_name: str
    role: StaffRole


class ClientCreateRequest(BaseModel):
    """Request body for POST /v1/clients"""

    username: str = Field(..., min_length=3, max_length=50, pattern=r"^[a-zA-Z0-9_]+$")
    name: str = Field(..., min_length=1, max_length=100)
    vehicle_plate: Optional[str] = None


class ClientLinkRequest(BaseModel):
    """Request body for PUT /v1/clients/{username}/vehicle"""

    plate: str = Field(..., description="Plate in XXX-0000 format")


class ClientResponse(BaseModel):
    username: str
    name: str
    vehicle_plate: Optional[str] = None
