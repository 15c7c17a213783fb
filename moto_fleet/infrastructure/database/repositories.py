"""Data access layer mapping ORM rows to domain entities.

Storage failures are raised as PersistenceError. Lookups return None only
when the row genuinely does not exist.
"""

from contextlib import contextmanager
from typing import Iterator, List, Optional
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from moto_fleet.infrastructure.database.models import YardRecord, VehicleRecord, StaffRecord, ClientRecord
from moto_fleet.domain.exceptions import ConflictError, NotFoundError, PersistenceError
from moto_fleet.domain.models import (
    Client,
    Sector,
    Staff,
    StaffRole,
    Vehicle,
    VehicleModel,
    VehicleStatus,
    Yard,
)


@contextmanager
def storage_errors(action: str) -> Iterator[None]:
    """Re-raise SQLAlchemy failures as PersistenceError"""
    try:
        yield
    except SQLAlchemyError as e:
        raise PersistenceError(f"Storage failure while trying to {action}: {e}") from e


def _to_yard(row: YardRecord) -> Yard:
    return Yard(
        name=row.name,
        total_slots=row.total_slots,
        occupied_slots=row.occupied_slots,
        location=row.location or "",
    )


def _to_vehicle(row: VehicleRecord) -> Vehicle:
    return Vehicle(
        plate=row.plate,
        yard_name=row.yard_name,
        staff_username=row.staff_username,
        model=VehicleModel(row.model),
        status=VehicleStatus(row.status),
        sector=Sector(row.sector),
        mileage=row.mileage,
        last_service_date=row.last_service_date,
        service_count=row.service_count,
        maintenance_flag=row.maintenance_flag,
        maintenance_probability=row.maintenance_probability,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_staff(row: StaffRecord) -> Staff:
    return Staff(username=row.username, name=row.name, yard_name=row.yard_name, role=StaffRole(row.role))


def _to_client(row: ClientRecord) -> Client:
    return Client(username=row.username, name=row.name, vehicle_plate=row.vehicle_plate)


def _client_conflict(client: Client, error: IntegrityError) -> ConflictError:
    """Tell a plate already held by another client apart from a duplicate username"""
    message = str(error.orig).lower()
    if client.vehicle_plate and "vehicle_plate" in message and ("unique" in message or "duplicate" in message):
        return ConflictError(
            f"Vehicle '{client.vehicle_plate}' is already linked to another client",
            ConflictError.VEHICLE_ALREADY_LINKED,
        )
    return ConflictError(f"Client '{client.username}' already exists", ConflictError.DUPLICATE_CLIENT)


class YardRepository:
    """Repository for yards and their slot counters"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, name: str) -> Optional[Yard]:
        with storage_errors("read yard"):
            row = self.db.get(YardRecord, name)
        return _to_yard(row) if row else None

    def get_for_update(self, name: str) -> Optional[Yard]:
        """Fresh read holding a row lock until the transaction ends (where supported)"""
        with storage_errors("lock yard"):
            row = (
                self.db.query(YardRecord)
                .filter(YardRecord.name == name)
                .with_for_update()
                .populate_existing()
                .first()
            )
        return _to_yard(row) if row else None

    def exists(self, name: str) -> bool:
        with storage_errors("check yard"):
            return self.db.query(YardRecord.name).filter(YardRecord.name == name).first() is not None

    def list(self, available_only: bool = False) -> List[Yard]:
        with storage_errors("list yards"):
            query = self.db.query(YardRecord)
            if available_only:
                query = query.filter(YardRecord.occupied_slots < YardRecord.total_slots)
            rows = query.order_by(YardRecord.name).all()
        return [_to_yard(row) for row in rows]

    def add(self, yard: Yard) -> Yard:
        with storage_errors("create yard"):
            try:
                self.db.add(
                    YardRecord(
                        name=yard.name,
                        location=yard.location,
                        total_slots=yard.total_slots,
                        occupied_slots=yard.occupied_slots,
                    )
                )
                self.db.flush()
            except IntegrityError as e:
                raise ConflictError(f"Yard '{yard.name}' already exists", ConflictError.DUPLICATE_YARD) from e
        return yard

    def save(self, yard: Yard) -> Yard:
        """Write counters and location back to the existing row"""
        with storage_errors("save yard"):
            row = self.db.get(YardRecord, yard.name)
            if row is None:
                raise NotFoundError("yard", yard.name)
            row.total_slots = yard.total_slots
            row.occupied_slots = yard.occupied_slots
            row.location = yard.location
            self.db.flush()
        return yard

    def delete(self, name: str) -> None:
        with storage_errors("delete yard"):
            self.db.query(YardRecord).filter(YardRecord.name == name).delete()
            self.db.flush()


class VehicleRepository:
    """Repository for vehicles"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, plate: str) -> Optional[Vehicle]:
        with storage_errors("read vehicle"):
            row = (
                self.db.query(VehicleRecord)
                .filter(VehicleRecord.plate == plate)
                .populate_existing()
                .first()
            )
        return _to_vehicle(row) if row else None

    def get_yard_name(self, plate: str) -> Optional[str]:
        """Cheap lookup of the yard currently holding a vehicle"""
        with storage_errors("read vehicle yard"):
            row = self.db.query(VehicleRecord.yard_name).filter(VehicleRecord.plate == plate).first()
        return row[0] if row else None

    def exists(self, plate: str) -> bool:
        with storage_errors("check vehicle"):
            return self.db.query(VehicleRecord.plate).filter(VehicleRecord.plate == plate).first() is not None

    def list(
        self,
        status: Optional[VehicleStatus] = None,
        sector: Optional[Sector] = None,
        yard_name: Optional[str] = None,
        needs_maintenance: Optional[bool] = None,
    ) -> List[Vehicle]:
        with storage_errors("list vehicles"):
            query = self.db.query(VehicleRecord)
            if status is not None:
                query = query.filter(VehicleRecord.status == status.value)
            if sector is not None:
                query = query.filter(VehicleRecord.sector == sector.value)
            if yard_name is not None:
                query = query.filter(VehicleRecord.yard_name == yard_name)
            if needs_maintenance is not None:
                query = query.filter(VehicleRecord.maintenance_flag == needs_maintenance)
            rows = query.order_by(VehicleRecord.plate).all()
        return [_to_vehicle(row) for row in rows]

    def count_in_yard(self, yard_name: str) -> int:
        with storage_errors("count vehicles"):
            return self.db.query(func.count(VehicleRecord.plate)).filter(VehicleRecord.yard_name == yard_name).scalar()

    def add(self, vehicle: Vehicle) -> Vehicle:
        with storage_errors("create vehicle"):
            try:
                row = VehicleRecord(plate=vehicle.plate)
                self._copy_fields(vehicle, row)
                if vehicle.created_at is not None:
                    row.created_at = vehicle.created_at
                self.db.add(row)
                self.db.flush()
            except IntegrityError as e:
                raise ConflictError(f"Plate '{vehicle.plate}' already registered", ConflictError.DUPLICATE_PLATE) from e
        return vehicle

    def save(self, vehicle: Vehicle) -> Vehicle:
        with storage_errors("save vehicle"):
            row = self.db.get(VehicleRecord, vehicle.plate)
            if row is None:
                raise NotFoundError("vehicle", vehicle.plate)
            self._copy_fields(vehicle, row)
            self.db.flush()
        return vehicle

    def delete(self, plate: str) -> None:
        with storage_errors("delete vehicle"):
            self.db.query(VehicleRecord).filter(VehicleRecord.plate == plate).delete()
            self.db.flush()

    @staticmethod
    def _copy_fields(vehicle: Vehicle, row: VehicleRecord) -> None:
        row.model = vehicle.model.value
        row.status = vehicle.status.value
        row.sector = vehicle.sector.value
        row.yard_name = vehicle.yard_name
        row.staff_username = vehicle.staff_username
        row.mileage = vehicle.mileage
        row.last_service_date = vehicle.last_service_date
        row.service_count = vehicle.service_count
        row.maintenance_flag = vehicle.maintenance_flag
        row.maintenance_probability = vehicle.maintenance_probability
        if vehicle.updated_at is not None:
            row.updated_at = vehicle.updated_at


class StaffRepository:
    """Repository for yard staff"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, username: str) -> Optional[Staff]:
        with storage_errors("read staff"):
            row = self.db.get(StaffRecord, username)
        return _to_staff(row) if row else None

    def count_in_yard(self, yard_name: str) -> int:
        with storage_errors("count staff"):
            return self.db.query(func.count(StaffRecord.username)).filter(StaffRecord.yard_name == yard_name).scalar()

    def add(self, staff: Staff) -> Staff:
        with storage_errors("create staff"):
            try:
                self.db.add(
                    StaffRecord(
                        username=staff.username,
                        name=staff.name,
                        yard_name=staff.yard_name,
                        role=staff.role.value,
                    )
                )
                self.db.flush()
            except IntegrityError as e:
                raise ConflictError(f"Staff member '{staff.username}' already exists", ConflictError.DUPLICATE_STAFF) from e
        return staff


class ClientRepository:
    """Repository for rental clients"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, username: str) -> Optional[Client]:
        with storage_errors("read client"):
            row = self.db.get(ClientRecord, username)
        return _to_client(row) if row else None

    def get_by_plate(self, plate: str) -> Optional[Client]:
        with storage_errors("read client by plate"):
            row = self.db.query(ClientRecord).filter(ClientRecord.vehicle_plate == plate).first()
        return _to_client(row) if row else None

    def add(self, client: Client) -> Client:
        with storage_errors("create client"):
            try:
                self.db.add(ClientRecord(username=client.username, name=client.name, vehicle_plate=client.vehicle_plate))
                self.db.flush()
            except IntegrityError as e:
                raise _client_conflict(client, e) from e
        return client

    def save(self, client: Client) -> Client:
        with storage_errors("save client"):
            row = self.db.get(ClientRecord, client.username)
            if row is None:
                raise NotFoundError("client", client.username)
            row.name = client.name
            row.vehicle_plate = client.vehicle_plate
            try:
                self.db.flush()
            except IntegrityError as e:
                raise _client_conflict(client, e) from e
        return client

    def unlink_plate(self, plate: str) -> None:
        """Detach a plate from whichever client holds it"""
        with storage_errors("unlink client"):
            self.db.query(ClientRecord).filter(ClientRecord.vehicle_plate == plate).update(
                {ClientRecord.vehicle_plate: None}
            )
            self.db.flush()
