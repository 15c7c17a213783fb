"""Yard administration - provisioning, resizing and staffing yards"""

import logging
from typing import List

from sqlalchemy.orm import Session

from moto_fleet.domain.exceptions import ConflictError, NotFoundError, ValidationError
from moto_fleet.domain.models import Staff, StaffRole, Yard
from moto_fleet.infrastructure.database.repositories import StaffRepository, VehicleRepository, YardRepository
from moto_fleet.services.locks import YardLockRegistry, unit_of_work


class YardService:
    """Yard CRUD; occupancy counters are only ever touched through the slot ledger"""

    def __init__(self, db: Session, locks: YardLockRegistry):
        self.db = db
        self.locks = locks
        self.yards = YardRepository(db)
        self.vehicles = VehicleRepository(db)
        self.staff = StaffRepository(db)

    def get(self, name: str) -> Yard:
        yard = self.yards.get(name)
        if yard is None:
            raise NotFoundError("yard", name)
        return yard

    def list(self, available_only: bool = False) -> List[Yard]:
        return self.yards.list(available_only=available_only)

    def create(self, name: str, total_slots: int, location: str = "") -> Yard:
        if total_slots <= 0:
            raise ValidationError("A yard needs at least one slot", ValidationError.INVALID_TOTAL_SLOTS)

        yard = Yard(name=name.strip(), total_slots=total_slots, occupied_slots=0, location=location.strip())
        with unit_of_work(self.db, self.locks, yard.name):
            if self.yards.exists(yard.name):
                raise ConflictError(f"Yard '{yard.name}' already exists", ConflictError.DUPLICATE_YARD)
            self.yards.add(yard)

        logging.info("Yard created", extra={"yard": yard.name, "total_slots": total_slots})
        return yard

    def update(self, name: str, total_slots: int, location: str = "") -> Yard:
        """Resize or relocate a yard; capacity can never drop below current occupancy"""
        if total_slots <= 0:
            raise ValidationError("A yard needs at least one slot", ValidationError.INVALID_TOTAL_SLOTS)

        with unit_of_work(self.db, self.locks, name):
            yard = self.yards.get_for_update(name)
            if yard is None:
                raise NotFoundError("yard", name)
            if total_slots < yard.occupied_slots:
                raise ValidationError(
                    f"Cannot reduce yard '{name}' to {total_slots} slots, {yard.occupied_slots} are occupied",
                    ValidationError.SLOTS_BELOW_OCCUPIED,
                )
            yard.total_slots = total_slots
            yard.location = location.strip()
            self.yards.save(yard)

        return yard

    def delete(self, name: str) -> None:
        """Delete a yard that holds no vehicles and no staff"""
        with unit_of_work(self.db, self.locks, name):
            if not self.yards.exists(name):
                raise NotFoundError("yard", name)
            if self.vehicles.count_in_yard(name) > 0:
                raise ValidationError(f"Yard '{name}' still holds vehicles", ValidationError.YARD_NOT_EMPTY)
            if self.staff.count_in_yard(name) > 0:
                raise ValidationError(f"Yard '{name}' still has staff assigned", ValidationError.YARD_NOT_EMPTY)
            self.yards.delete(name)

        logging.info("Yard deleted", extra={"yard": name})

    def register_staff(self, username: str, name: str, yard_name: str, role: StaffRole = StaffRole.STAFF) -> Staff:
        staff = Staff(username=username.strip(), name=name.strip(), yard_name=yard_name.strip(), role=role)
        with unit_of_work(self.db, self.locks, staff.yard_name):
            if not self.yards.exists(staff.yard_name):
                raise NotFoundError("yard", staff.yard_name)
            if self.staff.get(staff.username) is not None:
                raise ConflictError(
                    f"Staff member '{staff.username}' already exists", ConflictError.DUPLICATE_STAFF
                )
            self.staff.add(staff)

        return staff
