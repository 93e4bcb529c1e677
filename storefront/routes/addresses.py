from fastapi import APIRouter, Depends
from sqlmodel import Session
from typing import List

from storefront.database import get_session
from storefront.models.user import User
from storefront.schemas.address_schemas import AddressCreate, AddressRead, AddressUpdate
from storefront.services import address_service
from storefront.utils.token import get_current_user

router = APIRouter()


@router.get("", response_model=List[AddressRead])
def list_addresses(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    return address_service.list_addresses(session, current_user.id)


@router.post("", response_model=AddressRead, status_code=201)
def create_address(
    data: AddressCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    return address_service.create_address(session, current_user.id, data)


@router.put("/{address_id}", response_model=AddressRead)
def update_address(
    address_id: int,
    data: AddressUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    return address_service.update_address(session, current_user.id, address_id, data)


@router.delete("/{address_id}")
def delete_address(
    address_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    address_service.delete_address(session, current_user.id, address_id)
    return {"message": "Address deleted successfully"}


@router.put("/{address_id}/default", response_model=AddressRead)
def set_default_address(
    address_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    return address_service.set_default_address(session, current_user.id, address_id)
