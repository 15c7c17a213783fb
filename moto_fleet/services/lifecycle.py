"""Vehicle lifecycle - slot bookkeeping and risk scoring for every vehicle write"""

import logging
import re
from datetime import date
from typing import Callable, List, Optional, TypeVar

from sqlalchemy.orm import Session

from moto_fleet.config import settings
from moto_fleet.domain import slots
from moto_fleet.domain.exceptions import ConflictError, NotFoundError, ValidationError
from moto_fleet.domain.models import (
    Client,
    RiskAssessment,
    Sector,
    Staff,
    Vehicle,
    VehicleSpec,
    VehicleStatus,
    Yard,
)
from moto_fleet.domain.risk import MaintenanceRiskScorer
from moto_fleet.infrastructure.database.repositories import (
    ClientRepository,
    StaffRepository,
    VehicleRepository,
    YardRepository,
)
from moto_fleet.services.locks import YardLockRegistry, unit_of_work
from moto_fleet.utils.date_utils import utcnow

PLATE_PATTERN = re.compile(r"^[A-Z]{3}-\d{4}$")

T = TypeVar("T")


def normalize_plate(plate: Optional[str]) -> str:
    """Trim and upper-case a plate, rejecting anything not shaped XXX-0000"""
    normalized = (plate or "").strip().upper()
    if not PLATE_PATTERN.match(normalized):
        raise ValidationError(f"Malformed plate '{plate}', expected XXX-0000", ValidationError.MALFORMED_PLATE)
    return normalized


class VehicleLifecycleCoordinator:
    """
    Orchestrates vehicle create/update/delete/score.

    Every write is one unit of work: the locks of every yard it touches are
    held, slot counters and the vehicle row change in one transaction, and
    any exception rolls the whole thing back. A failed acquire during a
    cross-yard transfer therefore also undoes the release on the old yard.
    """

    def __init__(
        self,
        db: Session,
        scorer: MaintenanceRiskScorer,
        locks: YardLockRegistry,
        today: Optional[date] = None,
        retry_limit: Optional[int] = None,
    ):
        self.db = db
        self.scorer = scorer
        self.locks = locks
        self.today = today
        self.retry_limit = retry_limit or settings.update_retry_limit

        self.yards = YardRepository(db)
        self.vehicles = VehicleRepository(db)
        self.staff = StaffRepository(db)
        self.clients = ClientRepository(db)

    def _unit_of_work(self, *yard_names: str):
        return unit_of_work(self.db, self.locks, *yard_names)

    def _with_locked_vehicle(self, plate: str, action: Callable[[Vehicle], T], *extra_yards: str) -> T:
        """
        Run action on a fresh copy of the vehicle while its yard (and extra_yards) are locked.

        The yard is looked up before locking, so a vehicle moved by a concurrent
        transfer in the meantime is detected and the lookup retried.
        """
        for attempt in range(self.retry_limit):
            yard_name = self.vehicles.get_yard_name(plate)
            if yard_name is None:
                raise NotFoundError("vehicle", plate)

            with self._unit_of_work(yard_name, *extra_yards):
                vehicle = self.vehicles.get(plate)
                if vehicle is None:
                    raise NotFoundError("vehicle", plate)
                if vehicle.yard_name == yard_name:
                    return action(vehicle)

            logging.info("Vehicle moved while waiting for yard lock", extra={"plate": plate, "attempt": attempt + 1})

        raise ConflictError(
            f"Vehicle '{plate}' kept moving between yards, giving up",
            ConflictError.CONCURRENT_MODIFICATION,
        )

    def _require_staff_in_yard(self, username: str, yard_name: str) -> Staff:
        staff = self.staff.get(username)
        if staff is None:
            raise NotFoundError("staff", username)
        if not staff.belongs_to(yard_name):
            raise ValidationError(
                f"Staff member '{username}' does not belong to yard '{yard_name}'",
                ValidationError.STAFF_NOT_IN_TARGET_YARD,
            )
        return staff

    def _require_locked_yard(self, name: str) -> Yard:
        yard = self.yards.get_for_update(name)
        if yard is None:
            raise NotFoundError("yard", name)
        return yard

    def _take_slot(self, yard: Yard) -> None:
        if not slots.acquire(yard):
            raise ConflictError(f"No slot available in yard '{yard.name}'", ConflictError.NO_SLOT_AVAILABLE)
        self.yards.save(yard)

    def _give_back_slot(self, yard: Yard) -> None:
        slots.release(yard)
        self.yards.save(yard)

    def _rescore(self, vehicle: Vehicle) -> RiskAssessment:
        assessment = self.scorer.assess(vehicle, self.today)
        vehicle.maintenance_flag = assessment.needs_maintenance
        vehicle.maintenance_probability = assessment.probability
        return assessment

    # Writes

    def create(self, spec: VehicleSpec) -> Vehicle:
        """Register a new vehicle, taking a slot in its yard when its status needs one"""
        plate = normalize_plate(spec.plate)
        yard_name = spec.yard_name.strip()
        staff_username = spec.staff_username.strip()

        with self._unit_of_work(yard_name):
            if self.vehicles.exists(plate):
                raise ConflictError(f"Plate '{plate}' already registered", ConflictError.DUPLICATE_PLATE)

            self._require_staff_in_yard(staff_username, yard_name)
            yard = self._require_locked_yard(yard_name)

            if spec.status.occupies_slot:
                self._take_slot(yard)

            now = utcnow()
            vehicle = Vehicle(
                plate=plate,
                yard_name=yard_name,
                staff_username=staff_username,
                model=spec.model,
                status=spec.status,
                sector=spec.sector,
                mileage=spec.mileage,
                last_service_date=spec.last_service_date,
                service_count=1 if spec.last_service_date is not None else 0,
                created_at=now,
                updated_at=now,
            )
            self._rescore(vehicle)
            self.vehicles.add(vehicle)

        logging.info(
            "Vehicle created",
            extra={
                "plate": plate,
                "yard": yard_name,
                "status": vehicle.status.value,
                "occupied_slots": yard.occupied_slots,
                "maintenance_flag": vehicle.maintenance_flag,
            },
        )
        return vehicle

    def update(self, plate: str, spec: VehicleSpec) -> Vehicle:
        """
        Apply new fields to a vehicle, moving slots as its yard and status require.

        Slot transitions (before = current status holds a slot, after = new one does):
        - same yard, before == after: nothing
        - same yard, before and not after: release
        - same yard, not before and after: acquire (Conflict if full)
        - new yard: release old if before, then acquire new if after (Conflict if full)

        spec.plate is ignored; plates are immutable.
        """
        plate = normalize_plate(plate)
        new_yard_name = spec.yard_name.strip()
        staff_username = spec.staff_username.strip()

        def apply(vehicle: Vehicle) -> Vehicle:
            self._require_staff_in_yard(staff_username, new_yard_name)
            # Row locks in name order, same as YardLockRegistry.hold
            locked = {name: self._require_locked_yard(name) for name in sorted({new_yard_name, vehicle.yard_name})}
            new_yard = locked[new_yard_name]
            old_yard = locked[vehicle.yard_name]

            occupied_before = vehicle.occupies_slot
            occupied_after = spec.status.occupies_slot

            if old_yard is not new_yard:
                if occupied_before:
                    self._give_back_slot(old_yard)
                if occupied_after:
                    self._take_slot(new_yard)
            elif occupied_before and not occupied_after:
                self._give_back_slot(old_yard)
            elif occupied_after and not occupied_before:
                self._take_slot(old_yard)

            if spec.last_service_date is not None and spec.last_service_date != vehicle.last_service_date:
                vehicle.service_count += 1

            vehicle.model = spec.model
            vehicle.status = spec.status
            vehicle.sector = spec.sector
            vehicle.yard_name = new_yard_name
            vehicle.staff_username = staff_username
            vehicle.mileage = spec.mileage
            vehicle.last_service_date = spec.last_service_date
            vehicle.updated_at = utcnow()

            self._rescore(vehicle)
            self.vehicles.save(vehicle)

            logging.info(
                "Vehicle updated",
                extra={
                    "plate": plate,
                    "from_yard": old_yard.name,
                    "to_yard": new_yard.name,
                    "status": vehicle.status.value,
                    "maintenance_flag": vehicle.maintenance_flag,
                },
            )
            return vehicle

        return self._with_locked_vehicle(plate, apply, new_yard_name)

    def delete(self, plate: str) -> None:
        """Remove a vehicle, releasing its slot first; slot state never blocks a delete"""
        plate = normalize_plate(plate)

        def remove(vehicle: Vehicle) -> None:
            if vehicle.occupies_slot:
                yard = self.yards.get_for_update(vehicle.yard_name)
                if yard is not None:
                    self._give_back_slot(yard)

            self.clients.unlink_plate(plate)
            self.vehicles.delete(plate)
            logging.info("Vehicle deleted", extra={"plate": plate, "yard": vehicle.yard_name})

        self._with_locked_vehicle(plate, remove)

    def score(self, plate: str) -> RiskAssessment:
        """Re-assess a vehicle's maintenance risk and store the refreshed flag"""
        plate = normalize_plate(plate)

        def assess(vehicle: Vehicle) -> RiskAssessment:
            assessment = self._rescore(vehicle)
            self.vehicles.save(vehicle)
            return assessment

        assessment = self._with_locked_vehicle(plate, assess)
        logging.info(
            "Vehicle risk assessed",
            extra={
                "plate": plate,
                "source": assessment.source,
                "needs_maintenance": assessment.needs_maintenance,
                "urgency_tier": assessment.urgency_tier.value,
            },
        )
        return assessment

    def register_client(self, username: str, name: str, plate: Optional[str] = None) -> Client:
        """Create a client, optionally linked to a vehicle no other client holds"""
        client = Client(username=username.strip(), name=name.strip())

        with self._unit_of_work():
            if self.clients.get(client.username) is not None:
                raise ConflictError(f"Client '{client.username}' already exists", ConflictError.DUPLICATE_CLIENT)
            if plate:
                client.vehicle_plate = self._claim_plate(client.username, plate)
            self.clients.add(client)

        return client

    def link_client(self, username: str, plate: str) -> Client:
        """Link an existing client to a vehicle"""
        with self._unit_of_work():
            client = self.clients.get(username)
            if client is None:
                raise NotFoundError("client", username)
            client.vehicle_plate = self._claim_plate(username, plate)
            self.clients.save(client)

        return client

    def _claim_plate(self, username: str, plate: str) -> str:
        plate = normalize_plate(plate)
        if not self.vehicles.exists(plate):
            raise NotFoundError("vehicle", plate)

        holder = self.clients.get_by_plate(plate)
        if holder is not None and holder.username != username:
            raise ConflictError(
                f"Vehicle '{plate}' is already linked to client '{holder.username}'",
                ConflictError.VEHICLE_ALREADY_LINKED,
            )
        return plate

    # Reads

    def get(self, plate: str) -> Vehicle:
        plate = normalize_plate(plate)
        vehicle = self.vehicles.get(plate)
        if vehicle is None:
            raise NotFoundError("vehicle", plate)
        return vehicle

    def list_vehicles(
        self,
        status: Optional[VehicleStatus] = None,
        sector: Optional[Sector] = None,
        yard_name: Optional[str] = None,
    ) -> List[Vehicle]:
        return self.vehicles.list(status=status, sector=sector, yard_name=yard_name)

    def list_needing_maintenance(self) -> List[Vehicle]:
        return self.vehicles.list(needs_maintenance=True)
