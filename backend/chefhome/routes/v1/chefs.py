# backend/chefhome/routes/v1/chefs.py
"""
Chef availability routes - API v1

Endpoints:
    GET /me/availability - Weekly windows, blackout dates and limits
    PUT /me/availability/windows - Replace the weekly windows
    PATCH /me/availability/limits - Lead time, advance limit, max guests
    POST /me/availability/blackouts - Block a date
    DELETE /me/availability/blackouts/{day} - Unblock a date
    GET /{chef_id}/schedule?date= - Day agenda (both reservation kinds)
"""

import asyncio
from datetime import date
import logging

from fastapi import APIRouter, Body, Depends, Query, Response, status

from ...api.dependencies import get_availability_store, get_conflict_checker, get_current_actor
from ...core.exceptions import DomainException
from ...models.chef import Chef
from ...principal import Actor
from ...schemas.availability import (
    AvailabilityWindowResponse,
    BlackoutDateCreate,
    BlackoutDateResponse,
    BookingLimitsUpdate,
    ChefAvailabilityResponse,
    DayScheduleResponse,
    ScheduleEntry,
    WeeklyWindowsReplace,
)
from ...services.availability_store import AvailabilityStore, WeeklyWindowInput
from ...services.conflict_checker import ConflictChecker
from .common import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chefs-v1"])


def _availability_response(chef: Chef) -> ChefAvailabilityResponse:
    return ChefAvailabilityResponse(
        chef_id=chef.id,
        lead_time_days=chef.lead_time_days,
        advance_booking_limit_days=chef.advance_booking_limit_days,
        max_guests=chef.max_guests,
        windows=[AvailabilityWindowResponse.model_validate(w) for w in chef.availability_windows],
        blackout_dates=[BlackoutDateResponse.model_validate(b) for b in chef.blackout_dates],
    )


@router.get("/me/availability", response_model=ChefAvailabilityResponse)
async def get_my_availability(
    actor: Actor = Depends(get_current_actor),
    store: AvailabilityStore = Depends(get_availability_store),
) -> ChefAvailabilityResponse:
    try:
        chef = await asyncio.to_thread(store.get_chef_for_user, actor.user_id)
        return _availability_response(chef)
    except DomainException as e:
        handle_domain_exception(e)


@router.put("/me/availability/windows", response_model=ChefAvailabilityResponse)
async def replace_my_windows(
    payload: WeeklyWindowsReplace = Body(...),
    actor: Actor = Depends(get_current_actor),
    store: AvailabilityStore = Depends(get_availability_store),
) -> ChefAvailabilityResponse:
    try:
        chef = await asyncio.to_thread(store.get_chef_for_user, actor.user_id)
        windows = [WeeklyWindowInput(w.day_of_week, w.start, w.end) for w in payload.windows]
        chef = await asyncio.to_thread(store.replace_weekly_windows, actor, chef.id, windows)
        return _availability_response(chef)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/me/availability/limits", response_model=ChefAvailabilityResponse)
async def update_my_limits(
    payload: BookingLimitsUpdate = Body(...),
    actor: Actor = Depends(get_current_actor),
    store: AvailabilityStore = Depends(get_availability_store),
) -> ChefAvailabilityResponse:
    try:
        chef = await asyncio.to_thread(store.get_chef_for_user, actor.user_id)
        chef = await asyncio.to_thread(
            lambda: store.update_booking_limits(actor, chef.id, **payload.model_dump(exclude_unset=True))
        )
        return _availability_response(chef)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/me/availability/blackouts",
    response_model=BlackoutDateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_my_blackout(
    payload: BlackoutDateCreate = Body(...),
    actor: Actor = Depends(get_current_actor),
    store: AvailabilityStore = Depends(get_availability_store),
) -> BlackoutDateResponse:
    try:
        chef = await asyncio.to_thread(store.get_chef_for_user, actor.user_id)
        blackout = await asyncio.to_thread(
            store.add_blackout_date, actor, chef.id, payload.date, payload.reason
        )
        return BlackoutDateResponse.model_validate(blackout)
    except DomainException as e:
        handle_domain_exception(e)


@router.delete("/me/availability/blackouts/{day}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_my_blackout(
    day: date,
    actor: Actor = Depends(get_current_actor),
    store: AvailabilityStore = Depends(get_availability_store),
) -> Response:
    try:
        chef = await asyncio.to_thread(store.get_chef_for_user, actor.user_id)
        await asyncio.to_thread(store.remove_blackout_date, actor, chef.id, day)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{chef_id}/schedule", response_model=DayScheduleResponse)
async def get_day_schedule(
    chef_id: str,
    day: date = Query(..., alias="date"),
    actor: Actor = Depends(get_current_actor),
    store: AvailabilityStore = Depends(get_availability_store),
    conflict_checker: ConflictChecker = Depends(get_conflict_checker),
) -> DayScheduleResponse:
    """Busy windows of a chef on one day; reservation ids are not exposed."""
    try:
        await asyncio.to_thread(store.get_availability, chef_id)
        refs = await asyncio.to_thread(conflict_checker.day_schedule, chef_id, day)
        entries = []
        for ref in refs:
            data = ref.to_dict()
            entries.append(
                ScheduleEntry(
                    kind=data["kind"],
                    start_time=data["start_time"],
                    end_time=data["end_time"],
                    status=data["status"],
                )
            )
        return DayScheduleResponse(chef_id=chef_id, date=day, reservations=entries)
    except DomainException as e:
        handle_domain_exception(e)
