from __future__ import annotations
import logging
import uuid

from .auth import check_password, hash_password, issue_tokens
from .exceptions import Conflict, InvalidInput, Unauthenticated
from .helpers import get_user_or_404
from .views import club_fields, event_dict, iso, user_profile, user_summary
from .. import storage
from ..models import User, utcnow

logger = logging.getLogger(__name__)

# profile fields a user may edit, keyed by their JSON name
PROFILE_FIELDS = {
    "name": "name",
    "phone": "phone",
    "studentId": "student_id",
    "department": "department",
    "year": "year",
    "bio": "bio",
    "image": "image",
}

UPCOMING_EVENT_LIMIT = 3
MIN_PASSWORD_LENGTH = 8


def create_user(email: str, name: str, password: str, **profile) -> User:
    email = (email or "").strip().lower()
    if not email or "@" not in email:
        raise InvalidInput("A valid email is required")
    if not name or not name.strip():
        raise InvalidInput("Name is required")
    if not password:
        raise InvalidInput("Password is required")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidInput(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if storage.get_user_by_email(email):
        raise Conflict("User with this email already exists")

    user = User(
        user_id=uuid.uuid4().hex,
        email=email,
        name=name.strip(),
        password_hash=hash_password(password),
        **profile,
    )
    try:
        storage.create_user(user)
    except storage.IntegrityError:
        raise Conflict("User with this email already exists")
    logger.info("Registered user %s", user.user_id)
    return user


def login(email: str, password: str):
    """Return ``(success, access_token, refresh_token, user_id)``."""
    user = storage.get_user_by_email(email or "")
    if not user or not check_password(password, user.password_hash):
        return False, None, None, None
    access, refresh = issue_tokens(user.user_id)
    return True, access, refresh, user.user_id


def logout(token: str) -> None:
    storage.delete_token(token)


def refresh_access_token(refresh_token: str) -> tuple[str, str]:
    """Exchange a refresh token for a new access token."""
    info = storage.get_refresh_token(refresh_token)
    if not info:
        raise Unauthenticated("Invalid refresh token")
    user_id, expires = info
    if expires is None or expires < utcnow():
        storage.delete_refresh_token(user_id)
        raise Unauthenticated("Refresh token expired")
    access, _ = issue_tokens(user_id)
    return access, user_id


def get_profile(user_id: str) -> dict:
    """Profile with memberships and owned clubs."""
    user = get_user_or_404(user_id)
    data = user_profile(user)
    memberships = []
    for m in storage.list_user_memberships(user_id):
        club = storage.get_club(m.club_id)
        if club is None:
            continue
        memberships.append(
            {
                "id": m.member_id,
                "role": m.role,
                "joinedAt": iso(m.joined_at),
                "club": {
                    "id": club.club_id,
                    "name": club.name,
                    "category": club.category,
                    "logo": club.logo,
                },
            }
        )
    data["clubMemberships"] = memberships
    data["ownedClubs"] = [
        {
            "id": c.club_id,
            "name": c.name,
            "category": c.category,
            "logo": c.logo,
            "memberCount": storage.count_club_members(c.club_id),
        }
        for c in storage.list_owned_clubs(user_id)
    ]
    return {"user": data}


def update_profile(user_id: str, changes: dict) -> dict:
    user = get_user_or_404(user_id)
    for key, value in changes.items():
        attr = PROFILE_FIELDS.get(key)
        if attr is None:
            continue
        if attr == "name" and (not value or not str(value).strip()):
            raise InvalidInput("Name cannot be empty")
        setattr(user, attr, value.strip() if isinstance(value, str) else value)
    storage.update_user(user)
    return {"user": user_profile(user)}


def list_user_clubs(user_id: str) -> dict:
    """Clubs ``user_id`` belongs to, most recently joined first."""
    get_user_or_404(user_id)
    clubs = []
    for m in storage.list_user_memberships(user_id):
        club = storage.get_club(m.club_id)
        if club is None or not club.is_active:
            continue
        entry = club_fields(club)
        entry["owner"] = user_summary(storage.get_user(club.owner_id), profile=False)
        entry["membershipRole"] = m.role
        entry["joinedAt"] = iso(m.joined_at)
        entry["memberCount"] = storage.count_club_members(club.club_id)
        entry["upcomingEvents"] = [
            event_dict(e)
            for e in storage.list_events(club.club_id, upcoming_only=True, limit=UPCOMING_EVENT_LIMIT)
        ]
        clubs.append(entry)
    return {"success": True, "clubs": clubs, "totalJoinedClubs": len(clubs)}
