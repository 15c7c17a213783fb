"""/v1/vehicles - vehicle lifecycle and maintenance risk endpoints"""

import time
import logging
from typing import Callable, Optional, TypeVar
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response

from moto_fleet.api.v1.schemas import (
    RiskAssessmentResponse,
    VehicleCreateRequest,
    VehicleListResponse,
    VehicleResponse,
    VehicleUpdateRequest,
)
from moto_fleet.api.v1.errors import outcome_for, to_http_exception
from moto_fleet.api.dependencies import get_coordinator, get_request_id
from moto_fleet.domain.exceptions import DomainException
from moto_fleet.domain.models import Sector, Vehicle, VehicleSpec, VehicleStatus
from moto_fleet.services.lifecycle import VehicleLifecycleCoordinator
from moto_fleet.infrastructure.observability.logging import log_vehicle_operation
from moto_fleet.infrastructure.observability.metrics import record_risk_assessment, record_vehicle_operation
from moto_fleet.utils.date_utils import utcnow

router = APIRouter()

T = TypeVar("T")


def vehicle_response(vehicle: Vehicle) -> VehicleResponse:
    return VehicleResponse(
        plate=vehicle.plate,
        model=vehicle.model,
        status=vehicle.status,
        sector=vehicle.sector,
        yard_name=vehicle.yard_name,
        staff_username=vehicle.staff_username,
        mileage=vehicle.mileage,
        last_service_date=vehicle.last_service_date,
        service_count=vehicle.service_count,
        maintenance_flag=vehicle.maintenance_flag,
        maintenance_probability=vehicle.maintenance_probability,
        occupies_slot=vehicle.occupies_slot,
        available_for_rent=vehicle.available_for_rent,
    )


def run_operation(request: Request, operation: str, plate: str, action: Callable[[], T]) -> T:
    """Run a lifecycle operation, recording metrics/logs and mapping domain errors to HTTP"""
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        result = action()
    except DomainException as e:
        outcome = outcome_for(e)
        record_vehicle_operation(operation, outcome)
        log_vehicle_operation(request_id, operation, plate, outcome, (time.time() - start_time) * 1000, e.reason)
        raise to_http_exception(e, request_id)
    except Exception as e:
        record_vehicle_operation(operation, "error")
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id, "operation": operation})
        raise HTTPException(status_code=500, detail="Internal server error")

    record_vehicle_operation(operation, "ok")
    log_vehicle_operation(request_id, operation, plate, "ok", (time.time() - start_time) * 1000)
    return result


@router.post("/vehicles", response_model=VehicleResponse, status_code=201)
def create_vehicle(
    request_body: VehicleCreateRequest,
    request: Request,
    coordinator: VehicleLifecycleCoordinator = Depends(get_coordinator),
):
    """
    Register a vehicle in a yard.

    Available and Maintenance vehicles take a yard slot; a full yard answers 409.
    """
    spec = VehicleSpec(**request_body.model_dump())
    vehicle = run_operation(request, "create", request_body.plate, lambda: coordinator.create(spec))
    return vehicle_response(vehicle)


@router.get("/vehicles", response_model=VehicleListResponse)
def list_vehicles(
    status: Optional[VehicleStatus] = Query(None),
    sector: Optional[Sector] = Query(None),
    yard_name: Optional[str] = Query(None),
    coordinator: VehicleLifecycleCoordinator = Depends(get_coordinator),
):
    vehicles = coordinator.list_vehicles(status=status, sector=sector, yard_name=yard_name)
    return VehicleListResponse(vehicles=[vehicle_response(v) for v in vehicles])


@router.get("/vehicles/maintenance", response_model=VehicleListResponse)
def list_vehicles_needing_maintenance(coordinator: VehicleLifecycleCoordinator = Depends(get_coordinator)):
    vehicles = coordinator.list_needing_maintenance()
    return VehicleListResponse(vehicles=[vehicle_response(v) for v in vehicles])


@router.get("/vehicles/{plate}", response_model=VehicleResponse)
def get_vehicle(
    plate: str,
    request: Request,
    coordinator: VehicleLifecycleCoordinator = Depends(get_coordinator),
):
    try:
        vehicle = coordinator.get(plate)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))
    return vehicle_response(vehicle)


@router.put("/vehicles/{plate}", response_model=VehicleResponse)
def update_vehicle(
    plate: str,
    request_body: VehicleUpdateRequest,
    request: Request,
    coordinator: VehicleLifecycleCoordinator = Depends(get_coordinator),
):
    """Update a vehicle; yard or status changes move slots all-or-nothing"""
    spec = VehicleSpec(plate=plate, **request_body.model_dump())
    vehicle = run_operation(request, "update", plate, lambda: coordinator.update(plate, spec))
    return vehicle_response(vehicle)


@router.delete("/vehicles/{plate}", status_code=204, response_class=Response)
def delete_vehicle(
    plate: str,
    request: Request,
    coordinator: VehicleLifecycleCoordinator = Depends(get_coordinator),
):
    run_operation(request, "delete", plate, lambda: coordinator.delete(plate))
    return Response(status_code=204)


@router.post("/vehicles/{plate}/risk", response_model=RiskAssessmentResponse)
def score_vehicle(
    plate: str,
    request: Request,
    coordinator: VehicleLifecycleCoordinator = Depends(get_coordinator),
):
    """
    Re-assess maintenance risk for a vehicle.

    Returns:
        Classification, probability, urgency tier and the factors behind it
    """
    assessment = run_operation(request, "score", plate, lambda: coordinator.score(plate))
    record_risk_assessment(assessment.urgency_tier.value, assessment.source)

    return RiskAssessmentResponse(
        plate=assessment.plate,
        needs_maintenance=assessment.needs_maintenance,
        probability=assessment.probability,
        score=assessment.score,
        urgency_tier=assessment.urgency_tier,
        recommendation=assessment.recommendation,
        source=assessment.source,
        factors=list(assessment.factors),
        assessed_at=utcnow(),
    )
