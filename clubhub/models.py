from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import List, Optional

# Membership roles. The club owner is implied by ``Club.owner_id``; an owner
# who joins their own club directly is recorded as ``admin``.
ROLE_MEMBER = "member"
ROLE_ADMIN = "admin"
ROLE_MODERATOR = "moderator"
VALID_ROLES = (ROLE_MEMBER, ROLE_ADMIN, ROLE_MODERATOR)

# Membership request states; only PENDING may change.
STATUS_PENDING = "PENDING"
STATUS_APPROVED = "APPROVED"
STATUS_REJECTED = "REJECTED"


def utcnow() -> datetime.datetime:
    """Naive UTC timestamp used for every stored date."""
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


@dataclass
class User:
    """Account data for authentication and profile display."""

    user_id: str
    email: str
    name: str
    password_hash: str
    image: Optional[str] = None
    phone: Optional[str] = None
    student_id: Optional[str] = None
    department: Optional[str] = None
    year: Optional[str] = None
    bio: Optional[str] = None
    created_at: datetime.datetime = field(default_factory=utcnow)


@dataclass
class Club:
    club_id: str
    name: str
    description: str
    category: str
    owner_id: str
    logo: str | None = None
    is_public: bool = True
    max_members: int | None = None
    tags: List[str] = field(default_factory=list)
    requirements: str | None = None
    meeting_schedule: str | None = None
    contact_email: str | None = None
    is_active: bool = True
    created_at: datetime.datetime = field(default_factory=utcnow)
    updated_at: datetime.datetime = field(default_factory=utcnow)


@dataclass
class ClubMember:
    """A user's membership in a club. ``(club_id, user_id)`` is unique."""

    member_id: str
    club_id: str
    user_id: str
    role: str = ROLE_MEMBER
    joined_at: datetime.datetime = field(default_factory=utcnow)


@dataclass
class MembershipRequest:
    request_id: str
    club_id: str
    user_id: str
    status: str = STATUS_PENDING
    message: str | None = None
    created_at: datetime.datetime = field(default_factory=utcnow)
    updated_at: datetime.datetime = field(default_factory=utcnow)

    @property
    def is_pending(self) -> bool:
        return self.status == STATUS_PENDING


@dataclass
class Event:
    event_id: str
    club_id: str
    title: str
    date: datetime.datetime
    venue: str
    description: str | None = None
    end_date: datetime.datetime | None = None
    max_participants: int | None = None
    category: str | None = None
    registration_link: str | None = None
    is_active: bool = True
    created_at: datetime.datetime = field(default_factory=utcnow)


@dataclass
class Announcement:
    announcement_id: str
    club_id: str
    author_id: str
    title: str
    content: str
    is_active: bool = True
    created_at: datetime.datetime = field(default_factory=utcnow)


@dataclass
class ClubSummary:
    """The slice of a club the suggestion resolver looks at."""

    name: str
    description: str = ""
    category: str = ""
    club_id: str | None = None
    tags: List[str] = field(default_factory=list)
    member_count: int = 0
    event_count: int = 0
    created_at: datetime.datetime | None = None


@dataclass
class Suggestion:
    club_name: str
    reason: str
    club_id: str | None = None
    # 1-10, how well the club matches the stated interest
    match_score: int = 1

    def to_dict(self) -> dict:
        return {
            "clubName": self.club_name,
            "reason": self.reason,
            "clubId": self.club_id,
            "matchScore": self.match_score,
        }


@dataclass
class Address:
    """A postal address in a user's address book; at most one is the default."""

    address_id: str
    user_id: str
    street: str
    city: str
    label: str | None = None
    state: str | None = None
    zip_code: str | None = None
    country: str = "US"
    is_default: bool = False
    created_at: datetime.datetime = field(default_factory=utcnow)
