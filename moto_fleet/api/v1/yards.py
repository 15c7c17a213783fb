"""/v1/yards - yard provisioning, occupancy and staffing"""

from fastapi import APIRouter, Depends, Query, Request, Response

from moto_fleet.api.v1.schemas import (
    StaffCreateRequest,
    StaffResponse,
    YardCreateRequest,
    YardListResponse,
    YardResponse,
    YardUpdateRequest,
)
from moto_fleet.api.v1.errors import to_http_exception
from moto_fleet.api.dependencies import get_request_id, get_yard_service
from moto_fleet.domain.exceptions import DomainException
from moto_fleet.domain.models import Yard
from moto_fleet.services.yards import YardService

router = APIRouter()


def yard_response(yard: Yard) -> YardResponse:
    return YardResponse(
        name=yard.name,
        location=yard.location,
        total_slots=yard.total_slots,
        occupied_slots=yard.occupied_slots,
        available_slots=yard.available_slots,
        occupancy_rate=round(yard.occupancy_rate, 4),
    )


@router.post("/yards", response_model=YardResponse, status_code=201)
def create_yard(request_body: YardCreateRequest, request: Request, service: YardService = Depends(get_yard_service)):
    try:
        yard = service.create(request_body.name, request_body.total_slots, request_body.location)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))
    return yard_response(yard)


@router.get("/yards", response_model=YardListResponse)
def list_yards(
    available_only: bool = Query(False, description="Only yards with at least one free slot"),
    service: YardService = Depends(get_yard_service),
):
    return YardListResponse(yards=[yard_response(y) for y in service.list(available_only=available_only)])


@router.get("/yards/{name}", response_model=YardResponse)
def get_yard(name: str, request: Request, service: YardService = Depends(get_yard_service)):
    try:
        yard = service.get(name)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))
    return yard_response(yard)


@router.put("/yards/{name}", response_model=YardResponse)
def update_yard(
    name: str,
    request_body: YardUpdateRequest,
    request: Request,
    service: YardService = Depends(get_yard_service),
):
    """Resize a yard; total slots can't go below the slots already occupied"""
    try:
        yard = service.update(name, request_body.total_slots, request_body.location)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))
    return yard_response(yard)


@router.delete("/yards/{name}", status_code=204, response_class=Response)
def delete_yard(name: str, request: Request, service: YardService = Depends(get_yard_service)):
    try:
        service.delete(name)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))
    return Response(status_code=204)


@router.post("/yards/{name}/staff", response_model=StaffResponse, status_code=201)
def register_staff(
    name: str,
    request_body: StaffCreateRequest,
    request: Request,
    service: YardService = Depends(get_yard_service),
):
    try:
        staff = service.register_staff(request_body.username, request_body.name, name, request_body.role)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))
    return StaffResponse(username=staff.username, name=staff.name, yard_name=staff.yard_name, role=staff.role)
