from .exceptions import Forbidden, NotFound
from .. import storage
from ..models import Club, ROLE_ADMIN, User


def get_user_or_404(user_id: str) -> User:
    user = storage.get_user(user_id)
    if not user:
        raise NotFound("User not found")
    return user


def get_club_or_404(club_id: str, active_only: bool = False) -> Club:
    club = storage.get_club(club_id)
    if not club or (active_only and not club.is_active):
        raise NotFound("Club not found")
    return club


def require_owner(club: Club, user_id: str, message: str = "Only club owners can manage this club") -> None:
    if club.owner_id != user_id:
        raise Forbidden(message)


def can_manage(club: Club, user_id: str) -> bool:
    """Owners and ``admin`` members may post events and announcements."""
    if club.owner_id == user_id:
        return True
    member = storage.get_club_member(club.club_id, user_id)
    return member is not None and member.role == ROLE_ADMIN
