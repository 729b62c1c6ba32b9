from fastapi import Depends
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from app.db.database import get_db
from app.db.models.group import Group
from app.db.models.group_member import GroupMember
from app.db.models.user import User
from app.services import authorizer as actions
from app.services.errors import Forbidden
from app.services.group_service import GroupService
from app.services.membership_manager import MembershipManager


# ─────────────────────────────────────────────────────────────────────
#  Pydantic models shared by the group routers
# ─────────────────────────────────────────────────────────────────────
class MemberRead(BaseModel):
    id: int
    username: str
    name: str
    email: str | None = None
    access_level: int


class GroupRead(BaseModel):
    id: int
    name: str
    path: str
    description: str | None = None

    model_config = ConfigDict(from_attributes=True)


# ─────────────────────────────────────────────────────────────────────
#  Dependencies
# ─────────────────────────────────────────────────────────────────────
def get_group_service(db: Session = Depends(get_db)) -> GroupService:
    return GroupService(db)


def get_membership_manager(db: Session = Depends(get_db)) -> MembershipManager:
    return MembershipManager(db)


def ensure_group_admin(manager: MembershipManager, user: User, group: Group) -> None:
    """
    Raise 403 unless *user* may manage the members of *group*.
    """
    if not manager.authorizer.can_perform(user, actions.ADMIN_GROUP, group):
        raise Forbidden("You must be a group master or owner to manage members.")


def member_to_read(member: GroupMember) -> MemberRead:
    usr = member.user
    return MemberRead(
        id=usr.id,
        username=usr.username,
        name=usr.name,
        email=usr.email,
        access_level=member.access_level,
    )
