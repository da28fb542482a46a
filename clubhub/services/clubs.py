from __future__ import annotations
import logging
import uuid

from .exceptions import Conflict, Forbidden, InvalidInput, NotFound
from .helpers import get_club_or_404, get_user_or_404, require_owner
from .views import (
    announcement_dict,
    club_fields,
    event_dict,
    member_dict,
    request_dict,
    user_summary,
)
from .. import storage
from ..models import (
    Club,
    ClubMember,
    MembershipRequest,
    ROLE_ADMIN,
    ROLE_MEMBER,
    STATUS_APPROVED,
    STATUS_REJECTED,
    VALID_ROLES,
)
from ..storage import transaction

logger = logging.getLogger(__name__)

# limits of the windows embedded in club payloads
DETAIL_EVENT_LIMIT = 10
DETAIL_ANNOUNCEMENT_LIMIT = 5
LISTING_EVENT_LIMIT = 3
SEARCH_RESULT_LIMIT = 20

ALREADY_PROCESSED = "Request has already been processed"

# club attributes an update may not clear
REQUIRED_CLUB_FIELDS = ("name", "description", "category", "is_public", "tags")


def new_id() -> str:
    """Return a random UUID based identifier for new records."""
    return uuid.uuid4().hex


def _counts(club_id: str) -> dict:
    return {
        "members": storage.count_club_members(club_id),
        "events": storage.count_events(club_id),
        "announcements": storage.count_announcements(club_id),
    }


def list_clubs(category: str | None = None, search: str | None = None) -> list[dict]:
    """Active clubs, newest first, with owner and the next few events."""
    if category == "all":
        category = None
    result = []
    for club in storage.list_clubs(category=category, search=search or None):
        entry = club_fields(club)
        entry["owner"] = user_summary(storage.get_user(club.owner_id), email=False, profile=False)
        entry["upcomingEvents"] = [
            event_dict(e)
            for e in storage.list_events(club.club_id, upcoming_only=True, limit=LISTING_EVENT_LIMIT)
        ]
        entry["counts"] = _counts(club.club_id)
        result.append(entry)
    return result


def _relevance(club: Club, text: str, members: int, upcoming: int) -> float:
    text = text.lower()
    name = club.name.lower()
    score = 0.0
    if text in name:
        score += 10
        if name == text:
            score += 5
    if text in club.description.lower():
        score += 5
    if any(text in tag.lower() for tag in club.tags):
        score += 3
    if text in club.category.lower():
        score += 3
    if club.requirements and text in club.requirements.lower():
        score += 2
    score += min(members * 0.1, 2)
    score += min(upcoming * 0.2, 1)
    return round(score, 2)


def search_clubs(query, categories: list[str] | None = None, tags: list[str] | None = None) -> dict:
    """Free-text club search ranked by relevance.

    ``categories`` keeps clubs in any of the listed categories and ``tags``
    keeps clubs carrying at least one of the listed tags.
    """
    if not isinstance(query, str) or not query.strip():
        raise InvalidInput("Search query is required and must be a string")
    query = query.strip()

    results = []
    for club in storage.search_clubs(query, categories or None):
        if tags and not set(tags) & set(club.tags):
            continue
        members = storage.count_club_members(club.club_id)
        upcoming = storage.list_events(club.club_id, upcoming_only=True)
        entry = club_fields(club)
        entry["owner"] = user_summary(storage.get_user(club.owner_id), email=False, profile=False)
        entry["upcomingEvents"] = [event_dict(e) for e in upcoming[:LISTING_EVENT_LIMIT]]
        entry["counts"] = {"members": members, "events": len(upcoming)}
        entry["relevanceScore"] = _relevance(club, query, members, len(upcoming))
        results.append(entry)

    # stable sort keeps name order among equal scores
    results.sort(key=lambda c: c["relevanceScore"], reverse=True)
    results = results[:SEARCH_RESULT_LIMIT]
    return {"clubs": results, "totalResults": len(results), "query": query}


def create_club(
    user_id: str,
    name: str | None,
    description: str | None,
    category: str | None,
    **fields,
) -> dict:
    """Create a club owned by ``user_id`` and enrol the owner as ``admin``."""
    owner = get_user_or_404(user_id)
    if not name or not name.strip() or not description or not category:
        raise InvalidInput("Name, description, and category are required")
    name = name.strip()
    if storage.get_club_by_name(name):
        raise Conflict("A club with this name already exists")

    club = Club(
        club_id=new_id(),
        name=name,
        description=description.strip(),
        category=category,
        owner_id=owner.user_id,
        **fields,
    )
    membership = ClubMember(member_id=new_id(), club_id=club.club_id, user_id=owner.user_id, role=ROLE_ADMIN)
    try:
        with transaction() as conn:
            storage.create_club(club, conn=conn)
            storage.add_club_member(membership, conn=conn)
    except storage.IntegrityError:
        raise Conflict("A club with this name already exists")
    logger.info("Club %s (%s) created by %s", club.club_id, club.name, owner.user_id)

    data = club_fields(club)
    data["owner"] = user_summary(owner, email=False, profile=False)
    data["counts"] = _counts(club.club_id)
    return data


def get_club_detail(club_id: str) -> dict:
    """Club with owner, members, upcoming events, recent announcements and counts."""
    club = get_club_or_404(club_id, active_only=True)
    data = club_fields(club)
    data["owner"] = user_summary(storage.get_user(club.owner_id), profile=False)
    data["members"] = [member_dict(m) for m in storage.list_club_members(club_id)]
    data["events"] = [
        event_dict(e)
        for e in storage.list_events(club_id, upcoming_only=True, limit=DETAIL_EVENT_LIMIT)
    ]
    data["announcements"] = [
        announcement_dict(a)
        for a in storage.list_announcements(club_id, limit=DETAIL_ANNOUNCEMENT_LIMIT)
    ]
    data["counts"] = _counts(club_id)
    return data


def update_club(user_id: str, club_id: str, changes: dict) -> dict:
    """Apply owner edits. ``changes`` holds only the fields that were sent."""
    club = get_club_or_404(club_id)
    require_owner(club, user_id, "Only club owners can edit club details")

    name = changes.get("name")
    if name is not None and len(name.strip()) < 3:
        raise InvalidInput("Club name must be at least 3 characters long")
    description = changes.get("description")
    if description is not None and len(description.strip()) < 10:
        raise InvalidInput("Club description must be at least 10 characters long")

    for key, value in changes.items():
        if value is None and key in REQUIRED_CLUB_FIELDS:
            continue
        if isinstance(value, str) and key != "logo":
            value = value.strip()
        setattr(club, key, value)
    existing = storage.get_club_by_name(club.name)
    if existing and existing.club_id != club.club_id:
        raise Conflict("A club with this name already exists")

    with transaction() as conn:
        storage.save_club(club, conn=conn)

    data = club_fields(club)
    data["owner"] = user_summary(storage.get_user(club.owner_id), profile=False)
    data["counts"] = _counts(club_id)
    return data


def delete_club(user_id: str, club_id: str) -> None:
    club = get_club_or_404(club_id)
    require_owner(club, user_id, "Only club owners can delete clubs")
    with transaction() as conn:
        storage.delete_club(club_id, conn=conn)
    logger.info("Club %s deleted by %s", club_id, user_id)


# --- membership -------------------------------------------------------------

def join_club(user_id: str, club_id: str) -> None:
    """Direct join, reserved for owners returning to their own club."""
    user = get_user_or_404(user_id)
    club = get_club_or_404(club_id)
    if storage.get_club_member(club_id, user.user_id):
        raise Conflict("Already a member of this club")
    if club.owner_id != user.user_id:
        raise Forbidden(
            "Please send a membership request to join this club. "
            "Direct joining is only available to club owners."
        )
    try:
        storage.add_club_member(
            ClubMember(member_id=new_id(), club_id=club_id, user_id=user.user_id, role=ROLE_ADMIN)
        )
    except storage.IntegrityError:
        raise Conflict("Already a member of this club")


def leave_club(user_id: str, club_id: str) -> None:
    membership = storage.get_club_member(club_id, user_id)
    if not membership:
        raise NotFound("Not a member of this club")
    storage.remove_club_member(membership.member_id)


def add_member(user_id: str, club_id: str, user_email: str | None, role: str = ROLE_MEMBER) -> dict:
    """Owner adds an existing user, found by email, to the club."""
    if not user_email or not user_email.strip():
        raise InvalidInput("User email is required")
    club = get_club_or_404(club_id)
    require_owner(club, user_id, "Only club owners can add members")
    if role not in VALID_ROLES:
        raise InvalidInput("Invalid role")

    target = storage.get_user_by_email(user_email)
    if not target:
        raise NotFound("User with this email not found")
    if storage.get_club_member(club_id, target.user_id):
        raise Conflict("User is already a member of this club")

    member = ClubMember(member_id=new_id(), club_id=club_id, user_id=target.user_id, role=role)
    try:
        storage.add_club_member(member)
    except storage.IntegrityError:
        raise Conflict("User is already a member of this club")
    logger.info("User %s added to club %s as %s", target.user_id, club_id, role)
    return member_dict(member, target)


def _owned_membership(user_id: str, club_id: str, member_id: str, message: str) -> ClubMember:
    club = get_club_or_404(club_id)
    require_owner(club, user_id, message)
    member = storage.get_member(member_id)
    if not member or member.club_id != club_id:
        raise NotFound("Membership not found")
    return member


def update_member_role(user_id: str, club_id: str, member_id: str, role: str | None) -> dict:
    member = _owned_membership(user_id, club_id, member_id, "Only club owners can manage members")
    if role not in VALID_ROLES:
        raise InvalidInput("Invalid role")
    storage.update_member_role(member_id, role)
    member.role = role
    return member_dict(member)


def remove_member(user_id: str, club_id: str, member_id: str) -> None:
    member = _owned_membership(user_id, club_id, member_id, "Only club owners can remove members")
    if member.user_id == user_id:
        raise InvalidInput("Club owners cannot remove themselves")
    storage.remove_club_member(member_id)


# --- membership requests ----------------------------------------------------

def request_membership(user_id: str, club_id: str, message: str | None = None) -> dict:
    """File a PENDING request for ``user_id`` to join ``club_id``."""
    user = get_user_or_404(user_id)
    get_club_or_404(club_id)
    if storage.get_club_member(club_id, user_id):
        raise Conflict("You are already a member of this club")
    if storage.find_pending_request(club_id, user_id):
        raise Conflict("You already have a pending request for this club")
    req = MembershipRequest(request_id=new_id(), club_id=club_id, user_id=user_id, message=message)
    storage.create_membership_request(req)
    return request_dict(req, user)


def list_requests(user_id: str, club_id: str, for_user: str | None = None):
    """Owner view of pending requests, or a user checking their own request."""
    club = get_club_or_404(club_id)
    if for_user:
        if for_user != user_id:
            raise Forbidden("You can only check your own request status")
        active = storage.find_pending_request(club_id, user_id)
        return {
            "hasActiveRequest": active is not None,
            "requestId": active.request_id if active else None,
        }
    require_owner(club, user_id, "Only club owners can view membership requests")
    return [request_dict(r) for r in storage.list_pending_requests(club_id)]


def _load_request(user_id: str, club_id: str, request_id: str, message: str) -> MembershipRequest:
    club = get_club_or_404(club_id)
    require_owner(club, user_id, message)
    req = storage.get_membership_request(request_id)
    if not req:
        raise NotFound("Membership request not found")
    if req.club_id != club_id:
        raise NotFound("Request does not belong to this club")
    return req


def approve_request(user_id: str, club_id: str, request_id: str, processed_status: int = 400) -> MembershipRequest:
    """Approve a pending request and create the membership atomically.

    The status flip is conditional on the request still being PENDING, so a
    concurrent approval that commits first makes this one fail with
    ``processed_status`` instead of creating a second membership.
    """
    req = _load_request(user_id, club_id, request_id, "Only club owners can approve membership requests")
    if not req.is_pending:
        raise Conflict(ALREADY_PROCESSED, processed_status)

    member = ClubMember(member_id=new_id(), club_id=club_id, user_id=req.user_id, role=ROLE_MEMBER)
    try:
        with transaction() as conn:
            if not storage.transition_request(request_id, STATUS_APPROVED, conn=conn):
                raise Conflict(ALREADY_PROCESSED, processed_status)
            storage.add_club_member(member, conn=conn)
    except storage.IntegrityError:
        raise Conflict("User is already a member of this club")
    logger.info("Request %s approved; user %s joined club %s", request_id, req.user_id, club_id)
    return storage.get_membership_request(request_id)


def reject_request(user_id: str, club_id: str, request_id: str, processed_status: int = 400) -> MembershipRequest:
    req = _load_request(user_id, club_id, request_id, "Only club owners can reject membership requests")
    if not req.is_pending or not storage.transition_request(request_id, STATUS_REJECTED):
        raise Conflict(ALREADY_PROCESSED, processed_status)
    logger.info("Request %s rejected for club %s", request_id, club_id)
    return storage.get_membership_request(request_id)


def process_request(user_id: str, club_id: str, request_id: str, action: str | None) -> dict:
    """Approve or reject depending on ``action``; returns the updated request."""
    if action not in ("approve", "reject"):
        raise InvalidInput('Invalid action. Must be "approve" or "reject"')
    if action == "approve":
        req = approve_request(user_id, club_id, request_id, processed_status=409)
    else:
        req = reject_request(user_id, club_id, request_id, processed_status=409)
    return request_dict(req)
