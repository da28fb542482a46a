from __future__ import annotations
import logging
import uuid

from .exceptions import InvalidInput, NotFound
from .views import address_dict
from .. import storage
from ..models import Address
from ..storage import transaction

logger = logging.getLogger(__name__)

# address attributes a user may edit, keyed by their JSON name
ADDRESS_FIELDS = {
    "label": "label",
    "street": "street",
    "city": "city",
    "state": "state",
    "zipCode": "zip_code",
    "country": "country",
    "isDefault": "is_default",
}

DEFAULT_COUNTRY = "US"


def list_addresses(user_id: str) -> dict:
    return {"addresses": [address_dict(a) for a in storage.list_addresses(user_id)]}


def create_address(user_id: str, data: dict) -> dict:
    """Add an address; a new default replaces the previous one."""
    street = (data.get("street") or "").strip()
    city = (data.get("city") or "").strip()
    if not street or not city:
        raise InvalidInput("Street and city are required")

    address = Address(
        address_id=uuid.uuid4().hex,
        user_id=user_id,
        street=street,
        city=city,
        label=data.get("label"),
        state=data.get("state"),
        zip_code=data.get("zipCode"),
        country=data.get("country") or DEFAULT_COUNTRY,
        is_default=bool(data.get("isDefault")),
    )
    with transaction() as conn:
        if address.is_default:
            storage.clear_default_address(user_id, conn=conn)
        storage.create_address(address, conn=conn)
    logger.info("Address %s added for user %s", address.address_id, user_id)
    return {"address": address_dict(address)}


def update_address(user_id: str, address_id: str | None, changes: dict) -> dict:
    """Apply the sent fields to one of the user's addresses."""
    if not address_id:
        raise InvalidInput("Address ID is required")
    with transaction() as conn:
        address = storage.get_address(address_id, user_id, conn=conn)
        if address is None:
            raise NotFound("Address not found")
        for key, value in changes.items():
            attr = ADDRESS_FIELDS.get(key)
            if attr is None:
                continue
            if attr in ("street", "city"):
                value = (value or "").strip()
                if not value:
                    raise InvalidInput("Street and city are required")
            if attr == "is_default":
                value = bool(value)
            if attr == "country":
                value = value or DEFAULT_COUNTRY
            setattr(address, attr, value)
        if changes.get("isDefault"):
            storage.clear_default_address(user_id, conn=conn)
        storage.save_address(address, conn=conn)
    return {"address": address_dict(address)}


def delete_address(user_id: str, address_id: str | None) -> None:
    if not address_id:
        raise InvalidInput("Address ID is required")
    with transaction() as conn:
        if storage.get_address(address_id, user_id, conn=conn) is None:
            raise NotFound("Address not found")
        storage.delete_address(address_id, conn=conn)
    logger.info("Address %s removed for user %s", address_id, user_id)
