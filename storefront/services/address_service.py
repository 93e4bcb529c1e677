import logging
from typing import List, Optional

from fastapi import HTTPException
from sqlmodel import Session, select

from storefront.models.base import utcnow
from storefront.models.address import Address
from storefront.schemas.address_schemas import AddressCreate, AddressUpdate

logger = logging.getLogger(__name__)


def _clear_default(session: Session, user_id: int, keep_id: Optional[int] = None):
    query = select(Address).where(
        Address.user_id == user_id,
        Address.is_default == True,  # noqa: E712
    )
    for address in session.exec(query).all():
        if address.id == keep_id:
            continue
        address.is_default = False
        session.add(address)


def list_addresses(session: Session, user_id: int) -> List[Address]:
    return session.exec(
        select(Address)
        .where(Address.user_id == user_id)
        .order_by(Address.is_default.desc(), Address.created_at, Address.id)
    ).all()


def get_owned_address(session: Session, user_id: int, address_id: int) -> Address:
    address = session.get(Address, address_id)

    if not address or address.user_id != user_id:
        raise HTTPException(404, "Address not found")

    return address


def create_address(session: Session, user_id: int, data: AddressCreate) -> Address:
    if data.is_default:
        _clear_default(session, user_id)

    address = Address(user_id=user_id, **data.model_dump())

    session.add(address)
    session.commit()
    session.refresh(address)

    logger.info(f"Address {address.id} created for user {user_id} (default={address.is_default})")
    return address


def update_address(session: Session, user_id: int, address_id: int, data: AddressUpdate) -> Address:
    address = get_owned_address(session, user_id, address_id)

    changes = data.model_dump(exclude_unset=True)

    if "is_default" in changes and changes["is_default"] is None:
        raise HTTPException(400, "is_default must be true or false")

    for field in ("full_name", "address1", "city", "state", "postal_code", "country"):
        if field in changes and not (changes[field] or "").strip():
            raise HTTPException(400, f"{field} must not be blank")

    if changes.get("is_default"):
        _clear_default(session, user_id, keep_id=address.id)

    for key, value in changes.items():
        setattr(address, key, value)
    address.updated_at = utcnow()

    session.add(address)
    session.commit()
    session.refresh(address)

    return address


def delete_address(session: Session, user_id: int, address_id: int) -> None:
    address = get_owned_address(session, user_id, address_id)
    was_default = address.is_default

    session.delete(address)
    session.commit()

    if not was_default:
        return

    # the oldest remaining address inherits the default flag
    next_address = session.exec(
        select(Address)
        .where(Address.user_id == user_id)
        .order_by(Address.created_at, Address.id)
    ).first()

    if next_address:
        next_address.is_default = True
        session.add(next_address)
        session.commit()
        logger.info(f"Address {next_address.id} promoted to default for user {user_id}")


def set_default_address(session: Session, user_id: int, address_id: int) -> Address:
    address = get_owned_address(session, user_id, address_id)

    _clear_default(session, user_id, keep_id=address.id)

    address.is_default = True
    address.updated_at = utcnow()
    session.add(address)
    session.commit()
    session.refresh(address)

    return address
