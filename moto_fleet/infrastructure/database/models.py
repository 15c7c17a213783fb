"""SQLAlchemy ORM models for yards, vehicles, staff and clients"""

from sqlalchemy import Column, String, Boolean, Float, DateTime, Date, Integer, ForeignKey, Text, CheckConstraint
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()

# Relationships are plain foreign-key columns; repositories resolve them with explicit lookups.


class YardRecord(Base):
    """Yard with its slot counters"""

    __tablename__ = "yard"
    __table_args__ = (
        CheckConstraint("total_slots > 0", name="ck_yard_total_positive"),
        CheckConstraint("occupied_slots >= 0 AND occupied_slots <= total_slots", name="ck_yard_occupancy"),
    )

    name = Column(String(50), primary_key=True)
    location = Column(Text, nullable=False, default="")
    total_slots = Column(Integer, nullable=False)
    occupied_slots = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class StaffRecord(Base):
    """Staff member assigned to one yard"""

    __tablename__ = "staff"

    username = Column(String(50), primary_key=True)
    name = Column(Text, nullable=False)
    yard_name = Column(String(50), ForeignKey("yard.name"), nullable=False, index=True)
    role = Column(Text, nullable=False, default="Staff")


class VehicleRecord(Base):
    """Tracked vehicle with its latest maintenance classification"""

    __tablename__ = "vehicle"

    plate = Column(String(8), primary_key=True)
    model = Column(Text, nullable=False)
    status = Column(Text, nullable=False, index=True)
    sector = Column(Text, nullable=False)
    yard_name = Column(String(50), ForeignKey("yard.name"), nullable=False, index=True)
    staff_username = Column(String(50), ForeignKey("staff.username"), nullable=False)
    mileage = Column(Integer, nullable=False, default=0)
    last_service_date = Column(Date, nullable=True)
    service_count = Column(Integer, nullable=False, default=0)
    maintenance_flag = Column(Boolean, nullable=False, default=False, index=True)
    maintenance_probability = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class ClientRecord(Base):
    """Rental customer; a plate can be linked to at most one client"""

    __tablename__ = "client"

    username = Column(String(50), primary_key=True)
    name = Column(Text, nullable=False)
    vehicle_plate = Column(String(8), ForeignKey("vehicle.plate"), nullable=True, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
