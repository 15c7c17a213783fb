"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session
from moto_fleet.domain.risk import MaintenanceRiskScorer
from moto_fleet.infrastructure.database.session import get_db
from moto_fleet.services.lifecycle import VehicleLifecycleCoordinator
from moto_fleet.services.locks import YardLockRegistry
from moto_fleet.services.yards import YardService


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_risk_scorer(request: Request) -> MaintenanceRiskScorer:
    """Process-wide scorer trained at application start"""
    return request.app.state.risk_scorer


def get_yard_locks(request: Request) -> YardLockRegistry:
    """Process-wide yard lock registry"""
    return request.app.state.yard_locks


def get_coordinator(
    db: Session = Depends(get_db),
    scorer: MaintenanceRiskScorer = Depends(get_risk_scorer),
    locks: YardLockRegistry = Depends(get_yard_locks),
) -> VehicleLifecycleCoordinator:
    return VehicleLifecycleCoordinator(db, scorer, locks)


def get_yard_service(
    db: Session = Depends(get_db),
    locks: YardLockRegistry = Depends(get_yard_locks),
) -> YardService:
    return YardService(db, locks)
