from fastapi import APIRouter, Header
from pydantic import BaseModel

from ..services import addresses as address_service
from ..services import users as user_service
from ..services.auth import require_auth
from ..services.views import user_profile

router = APIRouter()


class UserCreate(BaseModel):
    email: str
    name: str
    password: str
    image: str | None = None
    phone: str | None = None
    studentId: str | None = None
    department: str | None = None
    year: str | None = None
    bio: str | None = None


class LoginRequest(BaseModel):
    email: str
    password: str


class LogoutRequest(BaseModel):
    token: str


class RefreshRequest(BaseModel):
    refresh_token: str


class ProfileUpdate(BaseModel):
    name: str | None = None
    image: str | None = None
    phone: str | None = None
    studentId: str | None = None
    department: str | None = None
    year: str | None = None
    bio: str | None = None


class AddressCreate(BaseModel):
    label: str | None = None
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zipCode: str | None = None
    country: str | None = None
    isDefault: bool = False


class AddressUpdate(BaseModel):
    id: str | None = None
    label: str | None = None
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zipCode: str | None = None
    country: str | None = None
    isDefault: bool | None = None


@router.post("/users", status_code=201)
def register_user_api(data: UserCreate):
    user = user_service.create_user(
        data.email,
        data.name,
        data.password,
        image=data.image,
        phone=data.phone,
        student_id=data.studentId,
        department=data.department,
        year=data.year,
        bio=data.bio,
    )
    return {"status": "ok", "user_id": user.user_id, "user": user_profile(user)}


@router.post("/login")
def login_api(data: LoginRequest):
    success, access, refresh, user_id = user_service.login(data.email, data.password)
    if success:
        return {
            "success": True,
            "access_token": access,
            "refresh_token": refresh,
            "token": access,
            "user_id": user_id,
        }
    return {"success": False}


@router.post("/logout")
def logout_api(data: LogoutRequest):
    user_service.logout(data.token)
    return {"status": "ok"}


@router.post("/refresh_token")
def refresh_access_token_api(data: RefreshRequest):
    token, uid = user_service.refresh_access_token(data.refresh_token)
    return {"access_token": token, "token": token, "user_id": uid}


@router.get("/user/profile")
def get_profile_api(authorization: str | None = Header(None)):
    uid = require_auth(authorization)
    return user_service.get_profile(uid)


@router.put("/user/profile")
def update_profile_api(data: ProfileUpdate, authorization: str | None = Header(None)):
    uid = require_auth(authorization)
    return user_service.update_profile(uid, data.model_dump(exclude_unset=True))


@router.get("/user/clubs")
def get_user_clubs_api(authorization: str | None = Header(None)):
    uid = require_auth(authorization)
    return user_service.list_user_clubs(uid)


@router.get("/users/{user_id}/clubs")
def get_other_user_clubs_api(user_id: str):
    return user_service.list_user_clubs(user_id)


@router.get("/user/addresses")
def list_addresses_api(authorization: str | None = Header(None)):
    uid = require_auth(authorization)
    return address_service.list_addresses(uid)


@router.post("/user/addresses")
def create_address_api(data: AddressCreate, authorization: str | None = Header(None)):
    uid = require_auth(authorization)
    return address_service.create_address(uid, data.model_dump())


@router.put("/user/addresses")
def update_address_api(data: AddressUpdate, authorization: str | None = Header(None)):
    uid = require_auth(authorization)
    changes = data.model_dump(exclude_unset=True)
    address_id = changes.pop("id", None)
    return address_service.update_address(uid, address_id, changes)


@router.delete("/user/addresses")
def delete_address_api(id: str | None = None, authorization: str | None = Header(None)):
    uid = require_auth(authorization)
    address_service.delete_address(uid, id)
    return {"success": True}
