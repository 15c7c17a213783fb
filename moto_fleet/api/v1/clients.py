"""/v1/clients - client registration and vehicle linking"""

from fastapi import APIRouter, Depends, Request

from moto_fleet.api.v1.schemas import ClientCreateRequest, ClientLinkRequest, ClientResponse
from moto_fleet.api.v1.errors import to_http_exception
from moto_fleet.api.dependencies import get_coordinator, get_request_id
from moto_fleet.domain.exceptions import DomainException
from moto_fleet.services.lifecycle import VehicleLifecycleCoordinator

router = APIRouter()


@router.post("/clients", response_model=ClientResponse, status_code=201)
def register_client(
    request_body: ClientCreateRequest,
    request: Request,
    coordinator: VehicleLifecycleCoordinator = Depends(get_coordinator),
):
    """Register a client; a vehicle can be linked to only one client"""
    try:
        client = coordinator.register_client(request_body.username, request_body.name, request_body.vehicle_plate)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))
    return ClientResponse(username=client.username, name=client.name, vehicle_plate=client.vehicle_plate)


@router.put("/clients/{username}/vehicle", response_model=ClientResponse)
def link_client_vehicle(
    username: str,
    request_body: ClientLinkRequest,
    request: Request,
    coordinator: VehicleLifecycleCoordinator = Depends(get_coordinator),
):
    try:
        client = coordinator.link_client(username, request_body.plate)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))
    return ClientResponse(username=client.username, name=client.name, vehicle_plate=client.vehicle_plate)
