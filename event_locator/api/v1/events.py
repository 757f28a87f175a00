"""
Event API endpoints
"""
import dataclasses
from datetime import datetime

from fastapi import APIRouter, Depends, Query

from event_locator.api.deps import get_current_user, get_event_service, get_locale
from event_locator.application.events import EventService
from event_locator.application.schemas import EventCreate, EventUpdate
from event_locator.domain.event import EventFilters
from event_locator.domain.user import AuthUser
from event_locator.i18n import render

router = APIRouter(prefix="/api/v1/events", tags=["events"])


def _filters(
    name: str | None = None,
    category: str | None = None,
    start_date: datetime | None = Query(None, alias="startDate"),
    end_date: datetime | None = Query(None, alias="endDate"),
    address: str | None = None,
    created_by: int | None = None,
    limit: int | None = Query(None, ge=1),
    offset: int = Query(0, ge=0),
) -> EventFilters:
    return EventFilters(
        name=name,
        category=category,
        start_date=start_date,
        end_date=end_date,
        address=address,
        created_by=created_by,
        limit=limit,
        offset=offset,
    )


@router.post("", status_code=201)
def create_event(
    body: EventCreate,
    user: AuthUser = Depends(get_current_user),
    service: EventService = Depends(get_event_service),
    locale: str = Depends(get_locale),
):
    event = service.create_event(body, user)
    return {
        "success": True,
        "message": render("events.created", locale),
        "data": event.model_dump(mode="json"),
    }


@router.get("")
def list_events(
    filters: EventFilters = Depends(_filters),
    service: EventService = Depends(get_event_service),
):
    page = service.list_events(filters)
    return {"success": True, "data": page.model_dump(mode="json", by_alias=True)}


@router.get("/mine")
def list_my_events(
    filters: EventFilters = Depends(_filters),
    user: AuthUser = Depends(get_current_user),
    service: EventService = Depends(get_event_service),
):
    filters = dataclasses.replace(filters, created_by=user.id)
    page = service.list_events(filters)
    return {"success": True, "data": page.model_dump(mode="json", by_alias=True)}


@router.get("/nearby")
def find_nearby(
    latitude: float | None = None,
    longitude: float | None = None,
    radius: float | None = Query(None, gt=0),
    filters: EventFilters = Depends(_filters),
    service: EventService = Depends(get_event_service),
):
    page = service.find_nearby(latitude, longitude, radius, filters)
    return {"success": True, "data": page.model_dump(mode="json")}


@router.get("/categories")
def get_categories(service: EventService = Depends(get_event_service)):
    return {"success": True, "data": service.get_categories()}


@router.get("/distance")
def calculate_distance(
    lat1: float | None = None,
    lon1: float | None = None,
    lat2: float | None = None,
    lon2: float | None = None,
):
    result = EventService.calculate_distance(lat1, lon1, lat2, lon2)
    return {"success": True, "data": result.model_dump()}


@router.get("/{event_id}")
def get_event(event_id: int, service: EventService = Depends(get_event_service)):
    return {"success": True, "data": service.get_event(event_id).model_dump(mode="json")}


@router.put("/{event_id}")
def update_event(
    event_id: int,
    body: EventUpdate,
    user: AuthUser = Depends(get_current_user),
    service: EventService = Depends(get_event_service),
    locale: str = Depends(get_locale),
):
    event = service.update_event(event_id, body, user, locale)
    return {
        "success": True,
        "message": render("events.updated", locale),
        "data": event.model_dump(mode="json"),
    }


@router.delete("/{event_id}")
def delete_event(
    event_id: int,
    user: AuthUser = Depends(get_current_user),
    service: EventService = Depends(get_event_service),
    locale: str = Depends(get_locale),
):
    service.delete_event(event_id, user, locale)
    return {"success": True, "message": render("events.deleted", locale)}
