import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.db.models.access_levels import AccessLevel
from app.db.models.group import Group
from app.db.models.group_member import GroupMember
from app.db.models.user import User
from app.services import authorizer as actions
from app.services.authorizer import Authorizer
from app.services.errors import Conflict, Forbidden, InvalidInput, NotFound
from app.services.membership_repository import MembershipRepository

logger = logging.getLogger(__name__)


class GroupService:
    def __init__(self, db: Session, authorizer: Optional[Authorizer] = None):
        self.db = db
        self.repository = MembershipRepository(db)
        self.authorizer = authorizer or Authorizer(self.repository)

    def create_group(
        self,
        name: Optional[str],
        path: Optional[str],
        creator: User,
        description: Optional[str] = None,
    ) -> Group:
        """Create a group; *creator* becomes its first OWNER."""
        if not self.authorizer.can_perform(creator, actions.CREATE_GROUP):
            raise Forbidden("Only administrators can create groups.")
        if not name or not name.strip():
            raise InvalidInput('"name" not given.')
        if not path or not path.strip():
            raise InvalidInput('"path" not given.')
        path = path.strip()

        if self.db.query(Group).filter(Group.path == path).first():
            raise Conflict("Group path is already taken.")

        grp = Group(name=name.strip(), path=path, description=description)
        try:
            self.db.add(grp)
            self.db.flush()
            self.repository.create(grp.id, creator.id, AccessLevel.OWNER)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise Conflict("Group path is already taken.") from None
        self.db.refresh(grp)

        logger.info("Group %s (%s) created by user %s", grp.id, grp.path, creator.id)
        return grp

    def get_group(self, group_id: int) -> Group:
        grp = self.db.query(Group).filter(Group.id == group_id).first()
        if not grp:
            raise NotFound("Group not found.")
        return grp

    def get_readable_group(self, group_id: int, user: User) -> Group:
        grp = self.get_group(group_id)
        if not self.authorizer.can_perform(user, actions.READ_GROUP, grp):
            raise Forbidden("You are not a member of this group.")
        return grp

    def list_groups(self, user: User) -> List[Group]:
        q = self.db.query(Group)
        if not user.is_admin:
            q = q.join(GroupMember, GroupMember.group_id == Group.id).filter(
                GroupMember.user_id == user.id
            )
        return q.order_by(Group.name, Group.id).all()

    def delete_group(self, group: Group, actor: User) -> None:
        if not self.authorizer.can_perform(actor, actions.DESTROY_GROUP, group):
            raise Forbidden("Only group owners can delete a group.")
        group_id, path = group.id, group.path
        self.db.delete(group)
        self.db.commit()
        logger.info("Group %s (%s) deleted by user %s", group_id, path, actor.id)
