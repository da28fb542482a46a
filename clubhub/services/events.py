from __future__ import annotations
import datetime
import logging
import uuid

from .exceptions import Forbidden, InvalidInput, NotFound
from .helpers import can_manage, get_club_or_404
from .views import announcement_dict, event_dict
from .. import storage
from ..models import Announcement, Event

logger = logging.getLogger(__name__)


def _naive_utc(value: datetime.datetime | None) -> datetime.datetime | None:
    """Stored timestamps are naive UTC; convert aware values accordingly."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(datetime.timezone.utc).replace(tzinfo=None)


def list_events(club_id: str | None = None) -> list[dict]:
    clubs: dict[str, object] = {}
    result = []
    for event in storage.list_events(club_id=club_id):
        if event.club_id not in clubs:
            clubs[event.club_id] = storage.get_club(event.club_id)
        result.append(event_dict(event, clubs[event.club_id]))
    return result


def get_event(event_id: str) -> dict:
    event = storage.get_event(event_id)
    if not event:
        raise NotFound("Event not found")
    return event_dict(event, storage.get_club(event.club_id))


def create_event(
    user_id: str,
    club_id: str | None,
    title: str | None,
    date: datetime.datetime | None,
    venue: str | None,
    **fields,
) -> dict:
    if not title or not title.strip() or date is None or not venue or not club_id:
        raise InvalidInput("Title, date, venue, and club are required")
    club = get_club_or_404(club_id, active_only=True)
    if not can_manage(club, user_id):
        raise Forbidden("Only club owners and admins can create events")

    end_date = _naive_utc(fields.pop("end_date", None))
    date = _naive_utc(date)
    if end_date is not None and end_date < date:
        raise InvalidInput("End date must be after the start date")
    event = Event(
        event_id=uuid.uuid4().hex,
        club_id=club_id,
        title=title.strip(),
        date=date,
        venue=venue.strip(),
        end_date=end_date,
        **fields,
    )
    storage.create_event(event)
    logger.info("Event %s created for club %s", event.event_id, club_id)
    return event_dict(event, club)


def delete_event(user_id: str, event_id: str) -> None:
    """Soft delete: the event stays stored but is no longer listed."""
    event = storage.get_event(event_id)
    if not event:
        raise NotFound("Event not found")
    club = get_club_or_404(event.club_id)
    if not can_manage(club, user_id):
        raise Forbidden("Only club owners and admins can delete events")
    storage.set_event_active(event_id, False)


def list_announcements(club_id: str | None = None) -> list[dict]:
    return [announcement_dict(a) for a in storage.list_announcements(club_id=club_id)]


def create_announcement(user_id: str, club_id: str, title: str | None, content: str | None) -> dict:
    if not title or not title.strip() or not content or not content.strip():
        raise InvalidInput("Title and content are required")
    club = get_club_or_404(club_id, active_only=True)
    if not can_manage(club, user_id):
        raise Forbidden("Only club owners and admins can post announcements")
    announcement = Announcement(
        announcement_id=uuid.uuid4().hex,
        club_id=club_id,
        author_id=user_id,
        title=title.strip(),
        content=content.strip(),
    )
    storage.create_announcement(announcement)
    return announcement_dict(announcement)
