"""
Profile and saved addresses.
"""

from fastapi import APIRouter, Depends, status

from pizza_api.models import User
from pizza_api.repositories import UnitOfWork
from pizza_api.routers._common import get_current_user, get_uow
from pizza_api.services.domain import ProfileService
from pizza_api.services.domain.auth_service import UserOutput
from pizza_api.services.domain.profile_service import AddressOutput
from pizza_shared.utils.schemas import AddressCreate, AddressUpdate, MessageResponse, ProfileUpdate


router = APIRouter(prefix="/api/profile", tags=["profile"])


@router.get("", response_model=UserOutput)
def get_profile(
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
) -> UserOutput:
    return ProfileService(uow).get_profile(user.id)


@router.patch("", response_model=UserOutput)
def update_profile(
    body: ProfileUpdate,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
) -> UserOutput:
    return ProfileService(uow).update_profile(user.id, body)


# =============================================================================
# Addresses
# =============================================================================


@router.get("/addresses", response_model=list[AddressOutput])
def list_addresses(
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
) -> list[AddressOutput]:
    return ProfileService(uow).list_addresses(user.id)


@router.post("/addresses", response_model=AddressOutput, status_code=status.HTTP_201_CREATED)
def add_address(
    body: AddressCreate,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
) -> AddressOutput:
    return ProfileService(uow).add_address(user.id, body)


@router.patch("/addresses/{address_id}", response_model=AddressOutput)
def update_address(
    address_id: int,
    body: AddressUpdate,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
) -> AddressOutput:
    return ProfileService(uow).update_address(user.id, address_id, body)


@router.delete("/addresses/{address_id}", response_model=MessageResponse)
def delete_address(
    address_id: int,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
) -> MessageResponse:
    ProfileService(uow).delete_address(user.id, address_id)
    return MessageResponse(message="Address deleted")


@router.post("/addresses/{address_id}/default", response_model=AddressOutput)
def set_default_address(
    address_id: int,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
) -> AddressOutput:
    return ProfileService(uow).set_default_address(user.id, address_id)
