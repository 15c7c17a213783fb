"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Optional


class VehicleStatus(str, Enum):
    AVAILABLE = "Available"
    RENTED = "Rented"
    MAINTENANCE = "Maintenance"

    @property
    def occupies_slot(self) -> bool:
        """Rented vehicles are out on the street and never hold a yard slot"""
        return self in (VehicleStatus.AVAILABLE, VehicleStatus.MAINTENANCE)


class Sector(str, Enum):
    """Condition tier of a vehicle"""

    GOOD = "Good"
    INTERMEDIATE = "Intermediate"
    BAD = "Bad"

    @property
    def ordinal(self) -> int:
        return _SECTOR_ORDINALS[self]


_SECTOR_ORDINALS = {Sector.GOOD: 0, Sector.INTERMEDIATE: 1, Sector.BAD: 2}


class VehicleModel(str, Enum):
    MOTTU_SPORT = "MottuSport"
    MOTTU_E = "MottuE"
    MOTTU_POP = "MottuPop"


class UrgencyTier(str, Enum):
    NONE = "None"
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class StaffRole(str, Enum):
    STAFF = "Staff"
    ADMIN = "Admin"


@dataclass
class Yard:
    """Capacity-constrained site where vehicles are parked"""

    name: str
    total_slots: int
    occupied_slots: int = 0
    location: str = ""

    @property
    def available_slots(self) -> int:
        return self.total_slots - self.occupied_slots

    @property
    def occupancy_rate(self) -> float:
        return self.occupied_slots / self.total_slots if self.total_slots > 0 else 0.0


@dataclass
class Staff:
    """Yard staff member responsible for vehicles"""

    username: str
    name: str
    yard_name: str
    role: StaffRole = StaffRole.STAFF

    def belongs_to(self, yard_name: str) -> bool:
        return bool(yard_name) and self.yard_name == yard_name


@dataclass
class Client:
    """Rental customer, optionally linked to one vehicle"""

    username: str
    name: str
    vehicle_plate: Optional[str] = None


@dataclass
class VehicleSpec:
    """Caller-supplied vehicle fields for create and update"""

    plate: str
    yard_name: str
    staff_username: str
    model: VehicleModel = VehicleModel.MOTTU_POP
    status: VehicleStatus = VehicleStatus.AVAILABLE
    sector: Sector = Sector.GOOD
    mileage: int = 0
    last_service_date: Optional[date] = None


@dataclass
class Vehicle:
    """Tracked motor-scooter asset"""

    plate: str
    yard_name: str
    staff_username: str
    model: VehicleModel = VehicleModel.MOTTU_POP
    status: VehicleStatus = VehicleStatus.AVAILABLE
    sector: Sector = Sector.GOOD
    mileage: int = 0
    last_service_date: Optional[date] = None
    service_count: int = 0
    maintenance_flag: bool = False
    maintenance_probability: float = 0.0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def occupies_slot(self) -> bool:
        return self.status.occupies_slot

    @property
    def available_for_rent(self) -> bool:
        return self.status == VehicleStatus.AVAILABLE and not self.maintenance_flag


@dataclass(frozen=True)
class VehicleFeatures:
    """Numeric inputs of the maintenance risk scorers"""

    mileage: float
    service_count: float
    days_since_last_service: float
    sector_ordinal: float
    never_serviced: bool


@dataclass(frozen=True)
class Prediction:
    """Raw output of a single scorer"""

    needs_maintenance: bool
    probability: float
    score: float


@dataclass(frozen=True)
class RiskAssessment:
    """Maintenance classification of a vehicle with its explanation"""

    plate: str
    needs_maintenance: bool
    probability: float
    score: float
    urgency_tier: UrgencyTier
    recommendation: str
    source: str  # "model" | "rules"
    factors: List[str] = field(default_factory=list)
