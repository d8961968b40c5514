from typing import List

from fastapi import APIRouter, Depends, status

from stockledger.core.identity import IdentityProvider
from stockledger.dependencies import get_identity, require_user
from stockledger.schemas.user import CurrentUser, UserCreate, UserRead, UserUpdate

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=List[UserRead])
def list_users(
    identity: IdentityProvider = Depends(get_identity),
    actor: CurrentUser = Depends(require_user),
):
    return identity.list_users(actor=actor)


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    identity: IdentityProvider = Depends(get_identity),
    actor: CurrentUser = Depends(require_user),
):
    return identity.create_user(payload, actor=actor)


@router.patch("/{user_id}", response_model=UserRead)
def update_user(
    user_id: int,
    payload: UserUpdate,
    identity: IdentityProvider = Depends(get_identity),
    actor: CurrentUser = Depends(require_user),
):
    return identity.update_user(user_id, payload.model_dump(exclude_unset=True), actor=actor)
