from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel

from app.db.models.user import User
from app.dependencies.auth import get_current_user
from app.services.group_service import GroupService
from app.services.membership_manager import MembershipManager
from .helpers import (
    MemberRead,
    ensure_group_admin,
    get_group_service,
    get_membership_manager,
    member_to_read,
)


router = APIRouter()


# ─────────────────────────────────────────────────────────────────────
#  Pydantic models
# ─────────────────────────────────────────────────────────────────────
class MemberCreate(BaseModel):
    user_id: int | None = None
    access_level: int | None = None


class MembersBulkCreate(BaseModel):
    # [1, 2, 3] or "1,2,3"
    user_ids: List[int] | str | None = None
    access_level: int | None = None


class MemberUpdate(BaseModel):
    access_level: int | None = None


# ─────────────────────────────────────────────────────────────────────
#  List members
# ─────────────────────────────────────────────────────────────────────
@router.get("/{group_id}/members", response_model=List[MemberRead])
def list_members(
    group_id: int,
    response: Response,
    search: str | None = Query(None),
    page: int = Query(1),
    per_page: int | None = Query(None),
    current_user: User = Depends(get_current_user),
    groups: GroupService = Depends(get_group_service),
    manager: MembershipManager = Depends(get_membership_manager),
):
    """
    Members of a group, highest access level first.
    Only visible to members of the group (and administrators).
    """
    grp = groups.get_readable_group(group_id, current_user)
    result = manager.list_members(grp, search=search, page=page, per_page=per_page)

    response.headers["X-Total"] = str(result.total)
    response.headers["X-Page"] = str(result.page)
    response.headers["X-Per-Page"] = str(result.per_page)
    return [member_to_read(m) for m in result]


# ─────────────────────────────────────────────────────────────────────
#  Add members
# ─────────────────────────────────────────────────────────────────────
@router.post("/{group_id}/members", response_model=MemberRead, status_code=201)
def add_member(
    group_id: int,
    payload: MemberCreate,
    current_user: User = Depends(get_current_user),
    groups: GroupService = Depends(get_group_service),
    manager: MembershipManager = Depends(get_membership_manager),
):
    """
    Add one user to the group.
    400 when user_id / access_level is missing, 409 when already a member,
    422 for an unknown access level.
    """
    grp = groups.get_group(group_id)
    ensure_group_admin(manager, current_user, grp)

    if payload.user_id is None:
        raise HTTPException(status_code=400, detail='"user_id" not given.')
    if payload.access_level is None:
        raise HTTPException(status_code=400, detail='"access_level" not given.')

    member = manager.add_member(grp, payload.user_id, payload.access_level, actor=current_user)
    return member_to_read(member)


@router.post("/{group_id}/members/bulk", status_code=201)
def add_members(
    group_id: int,
    payload: MembersBulkCreate,
    current_user: User = Depends(get_current_user),
    groups: GroupService = Depends(get_group_service),
    manager: MembershipManager = Depends(get_membership_manager),
):
    """
    Add several users at once. Existing members are left untouched.
    """
    grp = groups.get_group(group_id)
    ensure_group_admin(manager, current_user, grp)

    if payload.user_ids is None:
        raise HTTPException(status_code=400, detail='"user_ids" not given.')
    if payload.access_level is None:
        raise HTTPException(status_code=400, detail='"access_level" not given.')

    added = manager.add_members(grp, payload.user_ids, payload.access_level, actor=current_user)
    return {"added": added}


# ─────────────────────────────────────────────────────────────────────
#  Update access level
# ─────────────────────────────────────────────────────────────────────
@router.put("/{group_id}/members/{user_id}", response_model=MemberRead)
def update_member(
    group_id: int,
    user_id: int,
    payload: MemberUpdate,
    current_user: User = Depends(get_current_user),
    groups: GroupService = Depends(get_group_service),
    manager: MembershipManager = Depends(get_membership_manager),
):
    grp = groups.get_readable_group(group_id, current_user)
    if payload.access_level is None:
        raise HTTPException(status_code=400, detail='"access_level" not given.')

    member = manager.get_member(grp, user_id)
    manager.update_access_level(member, payload.access_level, actor=current_user)
    return member_to_read(member)


# ─────────────────────────────────────────────────────────────────────
#  Remove / leave
# ─────────────────────────────────────────────────────────────────────
@router.delete("/{group_id}/members/{user_id}")
def remove_member(
    group_id: int,
    user_id: int,
    current_user: User = Depends(get_current_user),
    groups: GroupService = Depends(get_group_service),
    manager: MembershipManager = Depends(get_membership_manager),
):
    """
    Remove a member. Allowed for the member themself and for masters /
    owners ranking at least as high; never for the last owner.
    """
    grp = groups.get_readable_group(group_id, current_user)
    member = manager.get_member(grp, user_id)
    manager.remove_member(grp, member, current_user)
    return {"detail": "User was successfully removed from group."}


@router.post("/{group_id}/leave")
def leave_group(
    group_id: int,
    current_user: User = Depends(get_current_user),
    groups: GroupService = Depends(get_group_service),
    manager: MembershipManager = Depends(get_membership_manager),
):
    grp = groups.get_group(group_id)
    manager.leave_group(grp, current_user)
    return {"detail": f"You left {grp.name} group."}
