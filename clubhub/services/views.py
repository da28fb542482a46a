"""JSON shapes returned by the API.

Keys are camelCase to match what the web client reads.
"""

from __future__ import annotations

import datetime

from .. import storage
from ..models import Address, Announcement, Club, ClubMember, Event, MembershipRequest, User


def iso(value: datetime.datetime | None) -> str | None:
    return value.isoformat() if value else None


def user_summary(user: User | None, *, email: bool = True, profile: bool = True) -> dict | None:
    if user is None:
        return None
    data = {"id": user.user_id, "name": user.name, "image": user.image}
    if email:
        data["email"] = user.email
    if profile:
        data["department"] = user.department
        data["year"] = user.year
    return data


def user_profile(user: User) -> dict:
    return {
        "id": user.user_id,
        "email": user.email,
        "name": user.name,
        "image": user.image,
        "phone": user.phone,
        "studentId": user.student_id,
        "department": user.department,
        "year": user.year,
        "bio": user.bio,
        "createdAt": iso(user.created_at),
    }


def club_fields(club: Club) -> dict:
    return {
        "id": club.club_id,
        "name": club.name,
        "description": club.description,
        "category": club.category,
        "logo": club.logo,
        "isPublic": club.is_public,
        "maxMembers": club.max_members,
        "tags": list(club.tags),
        "requirements": club.requirements,
        "meetingSchedule": club.meeting_schedule,
        "contactEmail": club.contact_email,
        "isActive": club.is_active,
        "ownerId": club.owner_id,
        "createdAt": iso(club.created_at),
        "updatedAt": iso(club.updated_at),
    }


def member_dict(member: ClubMember, user: User | None = None) -> dict:
    if user is None:
        user = storage.get_user(member.user_id)
    return {
        "id": member.member_id,
        "clubId": member.club_id,
        "userId": member.user_id,
        "role": member.role,
        "joinedAt": iso(member.joined_at),
        "user": user_summary(user),
    }


def request_dict(req: MembershipRequest, user: User | None = None) -> dict:
    if user is None:
        user = storage.get_user(req.user_id)
    return {
        "id": req.request_id,
        "clubId": req.club_id,
        "userId": req.user_id,
        "status": req.status,
        "message": req.message,
        "createdAt": iso(req.created_at),
        "updatedAt": iso(req.updated_at),
        "user": user_summary(user),
    }


def event_dict(event: Event, club: Club | None = None) -> dict:
    data = {
        "id": event.event_id,
        "clubId": event.club_id,
        "title": event.title,
        "description": event.description,
        "date": iso(event.date),
        "endDate": iso(event.end_date),
        "venue": event.venue,
        "maxParticipants": event.max_participants,
        "category": event.category,
        "registrationLink": event.registration_link,
        "isActive": event.is_active,
        "createdAt": iso(event.created_at),
    }
    if club is not None:
        data["club"] = {"id": club.club_id, "name": club.name}
    return data


def announcement_dict(announcement: Announcement, author: User | None = None) -> dict:
    if author is None:
        author = storage.get_user(announcement.author_id)
    return {
        "id": announcement.announcement_id,
        "clubId": announcement.club_id,
        "title": announcement.title,
        "content": announcement.content,
        "isActive": announcement.is_active,
        "createdAt": iso(announcement.created_at),
        "author": user_summary(author, email=False, profile=False),
    }


def address_dict(address: Address) -> dict:
    return {
        "id": address.address_id,
        "label": address.label,
        "street": address.street,
        "city": address.city,
        "state": address.state,
        "zipCode": address.zip_code,
        "country": address.country,
        "isDefault": address.is_default,
        "createdAt": iso(address.created_at),
    }
