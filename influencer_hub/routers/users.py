from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from .. import schemas
from ..core.dependencies import get_account_service, get_current_user
from ..services import AccountService

router = APIRouter()


@router.get("/profile", response_model=schemas.ProfileResponse)
def read_profile(
        current_user: schemas.TokenPayload = Depends(get_current_user),
        accounts: AccountService = Depends(get_account_service),
):
    return {"user": accounts.get_profile(current_user)}


@router.put("/profile", response_model=schemas.ProfileUpdatedResponse)
def update_profile(
        changes: Dict[str, Any] = Body(...),
        current_user: schemas.TokenPayload = Depends(get_current_user),
        accounts: AccountService = Depends(get_account_service),
):
    user = accounts.update_profile(current_user, changes)
    return {"message": "Profile updated", "user": user}
