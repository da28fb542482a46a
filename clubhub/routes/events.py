import datetime

from fastapi import APIRouter, Header
from pydantic import BaseModel

from ..services import events as event_service
from ..services.auth import require_auth

router = APIRouter()


class EventCreate(BaseModel):
    clubId: str | None = None
    title: str | None = None
    date: datetime.datetime | None = None
    venue: str | None = None
    description: str | None = None
    endDate: datetime.datetime | None = None
    maxParticipants: int | None = None
    category: str | None = None
    registrationLink: str | None = None


@router.get("/events")
def list_events_api(clubId: str | None = None):
    return event_service.list_events(clubId)


@router.get("/events/{event_id}")
def get_event_api(event_id: str):
    return event_service.get_event(event_id)


@router.post("/events", status_code=201)
def create_event_api(data: EventCreate, authorization: str | None = Header(None)):
    uid = require_auth(authorization)
    return event_service.create_event(
        uid,
        data.clubId,
        data.title,
        data.date,
        data.venue,
        description=data.description,
        end_date=data.endDate,
        max_participants=data.maxParticipants,
        category=data.category,
        registration_link=data.registrationLink,
    )


@router.delete("/events/{event_id}")
def delete_event_api(event_id: str, authorization: str | None = Header(None)):
    uid = require_auth(authorization)
    event_service.delete_event(uid, event_id)
    return {"message": "Event deleted successfully"}


@router.get("/announcements")
def list_announcements_api(clubId: str | None = None):
    return event_service.list_announcements(clubId)
