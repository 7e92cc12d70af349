# backend/chefhome/routes/v1/chef_home.py
"""
Chef-home routes - API v1

Locations where guests visit the chef, and the appointments requested
against them.

Endpoints:
    GET / - Browse active locations
    POST / - Publish a location (chef)
    GET /mine - The caller's own locations (chef)
    GET /appointments/mine - The caller's appointments (client or chef)
    PATCH /appointments/{appointment_id}/status - Accept, decline or cancel
    GET /{location_id} - Location details
    PUT /{location_id} - Update a location (owner)
    DELETE /{location_id} - Deactivate a location (owner, soft)
    POST /{location_id}/appointments - Request an appointment (client)
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from ...api.dependencies import get_chef_home_service, get_current_actor, get_reservation_service
from ...core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ...core.exceptions import DomainException
from ...models.chef_home import AppointmentStatus
from ...principal import Actor
from ...schemas.chef_home import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentStatusUpdate,
    LocationCreate,
    LocationResponse,
    LocationUpdate,
)
from ...schemas.reservation import ChefHomeAppointmentRequest
from ...services.chef_home_service import ChefHomeService
from ...services.reservation_service import ReservationService
from .common import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chef-home-v1"])


# ============================================================================
# Static routes (no path parameters)
# ============================================================================


@router.get("", response_model=List[LocationResponse])
async def list_locations(
    city: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    chef_home_service: ChefHomeService = Depends(get_chef_home_service),
) -> List[LocationResponse]:
    locations = await asyncio.to_thread(chef_home_service.list_active_locations, city, page, per_page)
    return [LocationResponse.model_validate(location) for location in locations]


@router.post("", response_model=LocationResponse, status_code=status.HTTP_201_CREATED)
async def create_location(
    payload: LocationCreate = Body(...),
    actor: Actor = Depends(get_current_actor),
    chef_home_service: ChefHomeService = Depends(get_chef_home_service),
) -> LocationResponse:
    try:
        location = await asyncio.to_thread(chef_home_service.create_location, actor, payload.to_values())
        return LocationResponse.model_validate(location)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/mine", response_model=List[LocationResponse])
async def list_my_locations(
    actor: Actor = Depends(get_current_actor),
    chef_home_service: ChefHomeService = Depends(get_chef_home_service),
) -> List[LocationResponse]:
    try:
        locations = await asyncio.to_thread(chef_home_service.list_locations_for_chef, actor)
        return [LocationResponse.model_validate(location) for location in locations]
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/appointments/mine", response_model=List[AppointmentResponse])
async def list_my_appointments(
    status_filter: Optional[AppointmentStatus] = Query(None, alias="status"),
    actor: Actor = Depends(get_current_actor),
    chef_home_service: ChefHomeService = Depends(get_chef_home_service),
) -> List[AppointmentResponse]:
    appointments = await asyncio.to_thread(
        chef_home_service.list_my_appointments,
        actor,
        status_filter.value if status_filter else None,
    )
    return [AppointmentResponse.model_validate(a) for a in appointments]


@router.patch(
    "/appointments/{appointment_id}/status",
    response_model=AppointmentResponse,
    responses={
        403: {"description": "Caller's party may not trigger this event"},
        409: {"description": "Event not allowed from the current status"},
    },
)
async def update_appointment_status(
    appointment_id: str,
    payload: AppointmentStatusUpdate = Body(...),
    actor: Actor = Depends(get_current_actor),
    chef_home_service: ChefHomeService = Depends(get_chef_home_service),
) -> AppointmentResponse:
    try:
        appointment = await asyncio.to_thread(
            chef_home_service.transition_appointment, actor, appointment_id, payload.event.value
        )
        return AppointmentResponse.model_validate(appointment)
    except DomainException as e:
        handle_domain_exception(e)


# ============================================================================
# Dynamic routes (with path parameters - placed last)
# ============================================================================


@router.get("/{location_id}", response_model=LocationResponse)
async def get_location(
    location_id: str,
    chef_home_service: ChefHomeService = Depends(get_chef_home_service),
) -> LocationResponse:
    try:
        location = await asyncio.to_thread(chef_home_service.get_location, location_id)
        return LocationResponse.model_validate(location)
    except DomainException as e:
        handle_domain_exception(e)


@router.put("/{location_id}", response_model=LocationResponse)
async def update_location(
    location_id: str,
    payload: LocationUpdate = Body(...),
    actor: Actor = Depends(get_current_actor),
    chef_home_service: ChefHomeService = Depends(get_chef_home_service),
) -> LocationResponse:
    try:
        location = await asyncio.to_thread(
            chef_home_service.update_location, actor, location_id, payload.to_changes()
        )
        return LocationResponse.model_validate(location)
    except DomainException as e:
        handle_domain_exception(e)


@router.delete("/{location_id}", response_model=LocationResponse)
async def deactivate_location(
    location_id: str,
    actor: Actor = Depends(get_current_actor),
    chef_home_service: ChefHomeService = Depends(get_chef_home_service),
) -> LocationResponse:
    """Soft delete; existing appointments are untouched."""
    try:
        location = await asyncio.to_thread(chef_home_service.deactivate_location, actor, location_id)
        return LocationResponse.model_validate(location)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/{location_id}/appointments",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        409: {"description": "Overlaps an existing reservation"},
        422: {"description": "Capacity or availability rule violated"},
        503: {"description": "Chef schedule busy, retry"},
    },
)
async def request_appointment(
    location_id: str,
    payload: AppointmentCreate = Body(...),
    actor: Actor = Depends(get_current_actor),
    reservation_service: ReservationService = Depends(get_reservation_service),
) -> AppointmentResponse:
    try:
        request = ChefHomeAppointmentRequest(location_id=location_id, **payload.model_dump())
        appointment = await asyncio.to_thread(reservation_service.reserve, actor, request)
        return AppointmentResponse.model_validate(appointment)
    except DomainException as e:
        handle_domain_exception(e)
