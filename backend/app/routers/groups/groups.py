from typing import List
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.db.models.access_levels import AccessLevel
from app.db.models.user import User
from app.dependencies.auth import get_current_user
from app.services.group_service import GroupService
from .helpers import GroupRead, get_group_service


router = APIRouter()


# ─────────────────────────────────────────────────────────────────────
#  Pydantic models
# ─────────────────────────────────────────────────────────────────────
class GroupCreate(BaseModel):
    # Optional so a missing field is answered with 400, not a schema 422
    name: str | None = None
    path: str | None = None
    description: str | None = None


# ─────────────────────────────────────────────────────────────────────
#  List / show
# ─────────────────────────────────────────────────────────────────────
@router.get("", response_model=List[GroupRead])
def list_groups(
    current_user: User = Depends(get_current_user),
    service: GroupService = Depends(get_group_service),
):
    """
    Groups the caller belongs to; administrators see every group.
    """
    return service.list_groups(current_user)


@router.get("/access-levels")
def list_access_levels(current_user: User = Depends(get_current_user)):
    """
    Access levels a membership can carry, e.g. ``{"Guest": 10, …}``.
    Declared before /{group_id} so the path is not read as a group id.
    """
    return AccessLevel.options()


@router.get("/{group_id}", response_model=GroupRead)
def get_group(
    group_id: int,
    current_user: User = Depends(get_current_user),
    service: GroupService = Depends(get_group_service),
):
    return service.get_readable_group(group_id, current_user)


# ─────────────────────────────────────────────────────────────────────
#  Create group
# ─────────────────────────────────────────────────────────────────────
@router.post("", response_model=GroupRead, status_code=201)
def create_group(
    payload: GroupCreate,
    current_user: User = Depends(get_current_user),
    service: GroupService = Depends(get_group_service),
):
    """
    Create a new group. Administrators only.
    The creator becomes the group's first owner.
    """
    return service.create_group(
        payload.name,
        payload.path,
        current_user,
        description=payload.description,
    )


# ─────────────────────────────────────────────────────────────────────
#  Delete group
# ─────────────────────────────────────────────────────────────────────
@router.delete("/{group_id}")
def delete_group(
    group_id: int,
    current_user: User = Depends(get_current_user),
    service: GroupService = Depends(get_group_service),
):
    """
    Delete a group together with all of its memberships.
    Group owners and administrators only.
    """
    grp = service.get_group(group_id)
    name = grp.name
    service.delete_group(grp, current_user)
    return {"detail": f"Group '{name}' deleted."}
