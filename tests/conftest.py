"""Pytest fixtures for testing"""

import pytest
from datetime import date
from typing import Callable, Generator
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker, Session
from moto_fleet.api.main import create_app
from moto_fleet.infrastructure.database.models import Base
from moto_fleet.infrastructure.database.session import build_engine, get_db
from moto_fleet.domain.models import Sector, VehicleSpec, VehicleStatus, Yard
from moto_fleet.domain.risk import MaintenanceRiskScorer
from moto_fleet.services.lifecycle import VehicleLifecycleCoordinator
from moto_fleet.services.locks import YardLockRegistry
from moto_fleet.services.yards import YardService


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = build_engine(TEST_DATABASE_URL)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Fixed reference date so day-based risk terms are reproducible
TODAY = date(2025, 6, 1)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def scorer() -> MaintenanceRiskScorer:
    """Rule-based scorer so assertions on probabilities are exact"""
    return MaintenanceRiskScorer(use_model=False)


@pytest.fixture
def locks() -> YardLockRegistry:
    return YardLockRegistry()


@pytest.fixture
def coordinator(db: Session, scorer: MaintenanceRiskScorer, locks: YardLockRegistry) -> VehicleLifecycleCoordinator:
    return VehicleLifecycleCoordinator(db, scorer, locks, today=TODAY)


@pytest.fixture
def yard_factory(db: Session, locks: YardLockRegistry) -> Callable[..., Yard]:
    """Create a yard with one staff member named '<yard>_staff'"""
    service = YardService(db, locks)

    def make(name: str, total_slots: int) -> Yard:
        yard = service.create(name, total_slots, location="Av. Paulista 1000")
        service.register_staff(f"{name.lower()}_staff", f"{name} Staff", name)
        return yard

    return make


@pytest.fixture
def vehicle_spec() -> Callable[..., VehicleSpec]:
    """Build a VehicleSpec for a yard created by yard_factory"""

    def make(plate: str, yard_name: str, status: VehicleStatus = VehicleStatus.AVAILABLE, **fields) -> VehicleSpec:
        return VehicleSpec(
            plate=plate,
            yard_name=yard_name,
            staff_username=fields.pop("staff_username", f"{yard_name.lower()}_staff"),
            status=status,
            sector=fields.pop("sector", Sector.GOOD),
            **fields,
        )

    return make


@pytest.fixture
def client(db: Session, scorer: MaintenanceRiskScorer) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app(risk_scorer=scorer)

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)
