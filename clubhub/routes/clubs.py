from fastapi import APIRouter, Header
from pydantic import BaseModel

from ..services import clubs as club_service
from ..services import events as event_service
from ..services.auth import require_auth

router = APIRouter()


class ClubCreate(BaseModel):
    name: str | None = None
    description: str | None = None
    category: str | None = None
    logo: str | None = None
    isPublic: bool = True
    maxMembers: int | None = None
    tags: list[str] = []
    requirements: str | None = None
    meetingSchedule: str | None = None
    contactEmail: str | None = None


class ClubUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    category: str | None = None
    logo: str | None = None
    isPublic: bool | None = None
    maxMembers: int | None = None
    tags: list[str] | None = None
    requirements: str | None = None
    meetingSchedule: str | None = None
    contactEmail: str | None = None


# JSON field name -> Club attribute
CLUB_FIELDS = {
    "name": "name",
    "description": "description",
    "category": "category",
    "logo": "logo",
    "isPublic": "is_public",
    "maxMembers": "max_members",
    "tags": "tags",
    "requirements": "requirements",
    "meetingSchedule": "meeting_schedule",
    "contactEmail": "contact_email",
}


class ClubSearch(BaseModel):
    query: str | None = None
    categories: list[str] = []
    tags: list[str] = []


class AddMember(BaseModel):
    userEmail: str | None = None
    role: str = "member"


class RoleUpdate(BaseModel):
    role: str | None = None


class MembershipRequestCreate(BaseModel):
    message: str | None = None


class RequestAction(BaseModel):
    action: str | None = None


class AnnouncementCreate(BaseModel):
    title: str | None = None
    content: str | None = None


@router.get("/clubs")
def list_clubs_api(category: str | None = None, search: str | None = None):
    return club_service.list_clubs(category=category, search=search)


@router.post("/clubs/search")
def search_clubs_api(data: ClubSearch):
    return club_service.search_clubs(data.query, categories=data.categories, tags=data.tags)


@router.post("/clubs", status_code=201)
def create_club_api(data: ClubCreate, authorization: str | None = Header(None)):
    uid = require_auth(authorization)
    return club_service.create_club(
        uid,
        data.name,
        data.description,
        data.category,
        logo=data.logo,
        is_public=data.isPublic,
        max_members=data.maxMembers,
        tags=data.tags,
        requirements=data.requirements,
        meeting_schedule=data.meetingSchedule,
        contact_email=data.contactEmail,
    )


@router.get("/clubs/{club_id}")
def get_club_api(club_id: str, authorization: str | None = Header(None)):
    require_auth(authorization)
    return club_service.get_club_detail(club_id)


@router.patch("/clubs/{club_id}")
def update_club_api(club_id: str, data: ClubUpdate, authorization: str | None = Header(None)):
    uid = require_auth(authorization)
    changes = {CLUB_FIELDS[key]: value for key, value in data.model_dump(exclude_unset=True).items()}
    return club_service.update_club(uid, club_id, changes)


@router.delete("/clubs/{club_id}")
def delete_club_api(club_id: str, authorization: str | None = Header(None)):
    uid = require_auth(authorization)
    club_service.delete_club(uid, club_id)
    return {"message": "Club deleted successfully"}


@router.post("/clubs/{club_id}/join")
def join_club_api(club_id: str, authorization: str | None = Header(None)):
    uid = require_auth(authorization)
    club_service.join_club(uid, club_id)
    return {"message": "Successfully joined the club"}


@router.delete("/clubs/{club_id}/join")
def leave_club_api(club_id: str, authorization: str | None = Header(None)):
    uid = require_auth(authorization)
    club_service.leave_club(uid, club_id)
    return {"message": "Successfully left the club"}


@router.post("/clubs/{club_id}/add-member", status_code=201)
def add_member_api(club_id: str, data: AddMember, authorization: str | None = Header(None)):
    uid = require_auth(authorization)
    return club_service.add_member(uid, club_id, data.userEmail, data.role)


@router.patch("/clubs/{club_id}/members/{member_id}")
def update_member_api(
    club_id: str, member_id: str, data: RoleUpdate, authorization: str | None = Header(None)
):
    uid = require_auth(authorization)
    return club_service.update_member_role(uid, club_id, member_id, data.role)


@router.delete("/clubs/{club_id}/members/{member_id}")
def remove_member_api(club_id: str, member_id: str, authorization: str | None = Header(None)):
    uid = require_auth(authorization)
    club_service.remove_member(uid, club_id, member_id)
    return {"message": "Member removed successfully"}


@router.get("/clubs/{club_id}/requests")
def list_requests_api(club_id: str, userId: str | None = None, authorization: str | None = Header(None)):
    uid = require_auth(authorization)
    return club_service.list_requests(uid, club_id, for_user=userId)


@router.post("/clubs/{club_id}/requests", status_code=201)
def create_request_api(
    club_id: str, data: MembershipRequestCreate | None = None, authorization: str | None = Header(None)
):
    uid = require_auth(authorization)
    message = data.message if data else None
    return club_service.request_membership(uid, club_id, message)


@router.patch("/clubs/{club_id}/requests/{request_id}")
def process_request_api(
    club_id: str, request_id: str, data: RequestAction, authorization: str | None = Header(None)
):
    uid = require_auth(authorization)
    return club_service.process_request(uid, club_id, request_id, data.action)


@router.post("/clubs/{club_id}/requests/{request_id}/approve")
def approve_request_api(club_id: str, request_id: str, authorization: str | None = Header(None)):
    uid = require_auth(authorization)
    club_service.approve_request(uid, club_id, request_id)
    return {"message": "Membership request approved successfully", "approved": True}


@router.post("/clubs/{club_id}/requests/{request_id}/reject")
def reject_request_api(club_id: str, request_id: str, authorization: str | None = Header(None)):
    uid = require_auth(authorization)
    club_service.reject_request(uid, club_id, request_id)
    return {"message": "Membership request rejected", "rejected": True}


@router.post("/clubs/{club_id}/announcements", status_code=201)
def create_announcement_api(
    club_id: str, data: AnnouncementCreate, authorization: str | None = Header(None)
):
    uid = require_auth(authorization)
    return event_service.create_announcement(uid, club_id, data.title, data.content)
