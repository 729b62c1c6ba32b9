"""
Membership Access Manager.

Keeps the (group, user) -> access level mapping of a group and the rule
that a group always has at least one OWNER. Every public mutating method
is one transaction: it commits when it returns and rolls back when it
raises.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from app.config import settings
from app.db.models.access_levels import AccessLevel
from app.db.models.group import Group
from app.db.models.group_member import GroupMember
from app.db.models.user import User
from app.services import authorizer as actions
from app.services.authorizer import Authorizer
from app.services.errors import (
    Conflict,
    Forbidden,
    InvalidInput,
    LastOwnerViolation,
    NotFound,
)
from app.services.membership_repository import MembershipRepository

logger = logging.getLogger(__name__)

# can_authorize() verbs -> Authorizer actions
_MEMBER_ACTIONS = {
    "destroy": actions.DESTROY_GROUP_MEMBER,
    "update": actions.UPDATE_GROUP_MEMBER,
}


@dataclass
class MemberPage:
    """One page of a member listing; ``items`` stays lazy until iterated."""

    items: Query
    total: int
    page: int
    per_page: int

    def __iter__(self) -> Iterator[GroupMember]:
        return iter(self.items)


def parse_user_ids(user_ids: Union[str, Iterable]) -> list[int]:
    """
    Accept ``[1, 2]`` or the form-style ``"1,2"``; return distinct ids in
    their original order.
    """
    if isinstance(user_ids, str):
        raw = [part.strip() for part in user_ids.split(",") if part.strip()]
    else:
        raw = list(user_ids)

    out: list[int] = []
    for value in raw:
        try:
            uid = int(value)
        except (TypeError, ValueError):
            raise InvalidInput(f"Invalid user id {value!r}.") from None
        if uid not in out:
            out.append(uid)
    return out


class MembershipManager:
    def __init__(
        self,
        db: Session,
        repository: Optional[MembershipRepository] = None,
        authorizer: Optional[Authorizer] = None,
        max_per_page: Optional[int] = None,
    ):
        self.db = db
        self.repository = repository or MembershipRepository(db)
        self.authorizer = authorizer or Authorizer(self.repository)
        self.max_per_page = max_per_page or settings.max_per_page

    @contextmanager
    def _transaction(self):
        try:
            yield
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def _require(self, actor: Optional[User], action: str, resource) -> None:
        if not self.authorizer.can_perform(actor, action, resource):
            logger.warning(
                "Denied %s for user %s on %r",
                action,
                actor.id if actor else None,
                resource,
            )
            raise Forbidden()

    # ------------------------------------------------------------------ #
    #  Adding                                                            #
    # ------------------------------------------------------------------ #
    def add_members(
        self,
        group: Group,
        user_ids: Union[str, Iterable],
        access_level,
        actor: Optional[User] = None,
    ) -> int:
        """
        Add every user in *user_ids* to *group* at *access_level*.

        Users that are already members, and ids with no matching user, are
        skipped. Returns the number of memberships created. With *actor*
        given, the actor must be allowed to manage the group and to grant
        the level.
        """
        level = AccessLevel.parse(access_level)
        ids = parse_user_ids(user_ids)

        with self._transaction():
            if actor is not None:
                self._require(actor, actions.ADMIN_GROUP, group)
                self._require(actor, actions.GRANT_ACCESS_LEVEL, (group, level))

            existing = self.repository.existing_user_ids(group.id, ids)
            known = self.repository.known_user_ids(ids)
            created = 0
            try:
                for uid in ids:
                    if uid in existing or uid not in known:
                        continue
                    self.repository.create(group.id, uid, level)
                    created += 1
            except IntegrityError:
                raise Conflict("Group membership changed concurrently, try again.") from None

        logger.info("Added %d member(s) to group %s as %s", created, group.id, level.name)
        return created

    def add_member(
        self,
        group: Group,
        user_id: int,
        access_level,
        actor: Optional[User] = None,
    ) -> GroupMember:
        level = AccessLevel.parse(access_level)

        with self._transaction():
            if actor is not None:
                self._require(actor, actions.ADMIN_GROUP, group)
                self._require(actor, actions.GRANT_ACCESS_LEVEL, (group, level))

            user = self.db.query(User).filter(User.id == user_id).first()
            if not user:
                raise NotFound("User not found.")
            if self.repository.find(group.id, user_id):
                raise Conflict("Already a member of this group.")
            try:
                member = self.repository.create(group.id, user_id, level)
            except IntegrityError:
                raise Conflict("Already a member of this group.") from None

        logger.info("User %s joined group %s as %s", user_id, group.id, level.name)
        return member

    # ------------------------------------------------------------------ #
    #  Updating                                                          #
    # ------------------------------------------------------------------ #
    def update_access_level(
        self,
        member: GroupMember,
        new_level,
        actor: Optional[User] = None,
    ) -> GroupMember:
        level = AccessLevel.parse(new_level)

        with self._transaction():
            if actor is not None:
                self._require(actor, actions.UPDATE_GROUP_MEMBER, member)
                self._require(actor, actions.GRANT_ACCESS_LEVEL, (member.group, level))

            if level != AccessLevel.OWNER and self.authorizer.is_last_owner(member, lock=True):
                raise LastOwnerViolation()
            self.repository.update(member, level)

        logger.info(
            "User %s in group %s is now %s", member.user_id, member.group_id, level.name
        )
        return member

    # ------------------------------------------------------------------ #
    #  Removing                                                          #
    # ------------------------------------------------------------------ #
    def remove_member(self, group: Group, member: GroupMember, acting_user: User) -> None:
        if member.group_id != group.id:
            raise NotFound("Member not found.")
        user_id = member.user_id

        with self._transaction():
            if self.authorizer.is_last_owner(member, lock=True):
                logger.warning(
                    "Refused to remove last owner %s of group %s", member.user_id, group.id
                )
                raise LastOwnerViolation()
            self._require(acting_user, actions.DESTROY_GROUP_MEMBER, member)
            self.repository.delete(member)

        logger.info(
            "User %s removed from group %s by %s", user_id, group.id, acting_user.id
        )

    def leave_group(self, group: Group, user: User) -> None:
        member = self.repository.find(group.id, user.id)
        if not member:
            raise NotFound("You are not a member of this group.")
        self.remove_member(group, member, user)

    # ------------------------------------------------------------------ #
    #  Reading                                                           #
    # ------------------------------------------------------------------ #
    def get_member(self, group: Group, user_id: int) -> GroupMember:
        member = self.repository.find(group.id, user_id)
        if not member:
            raise NotFound("Member not found.")
        return member

    def list_members(
        self,
        group: Group,
        search: Optional[str] = None,
        page: int = 1,
        per_page: Optional[int] = None,
    ) -> MemberPage:
        page = max(page or 1, 1)
        per_page = min(max(per_page or settings.members_per_page, 1), self.max_per_page)

        q = self.repository.list(group.id, search=search.strip() if search else None)
        total = q.count()
        # past the last page the offset is pinned to the total (empty page)
        offset = min((page - 1) * per_page, total)
        items = q.offset(offset).limit(per_page)
        return MemberPage(items=items, total=total, page=page, per_page=per_page)

    def can_authorize(self, acting_user: Optional[User], member: GroupMember, action: str) -> bool:
        try:
            mapped = _MEMBER_ACTIONS[action]
        except KeyError:
            raise ValueError(f"Unknown member action {action!r}") from None
        return self.authorizer.can_perform(acting_user, mapped, member)
