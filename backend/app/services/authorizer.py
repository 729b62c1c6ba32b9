"""
Group authorization rules.

``Authorizer.can_perform(actor, action, resource)`` is the single entry
point. Every action has its own method below and the mapping is a fixed
table, so request data can never select an arbitrary method.
"""
from typing import Optional

from app.db.models.access_levels import AccessLevel, MANAGE_THRESHOLD
from app.db.models.group import Group
from app.db.models.group_member import GroupMember
from app.db.models.user import User
from app.services.membership_repository import MembershipRepository


READ_GROUP = "read_group"
ADMIN_GROUP = "admin_group"
DESTROY_GROUP = "destroy_group"
CREATE_GROUP = "create_group"
GRANT_ACCESS_LEVEL = "grant_access_level"
UPDATE_GROUP_MEMBER = "update_group_member"
DESTROY_GROUP_MEMBER = "destroy_group_member"


class Authorizer:
    def __init__(self, repository: MembershipRepository):
        self.repository = repository
        self._rules = {
            READ_GROUP: self.can_read_group,
            ADMIN_GROUP: self.can_admin_group,
            DESTROY_GROUP: self.can_destroy_group,
            CREATE_GROUP: self.can_create_group,
            GRANT_ACCESS_LEVEL: self.can_grant_access_level,
            UPDATE_GROUP_MEMBER: self.can_update_group_member,
            DESTROY_GROUP_MEMBER: self.can_destroy_group_member,
        }

    def can_perform(self, actor: Optional[User], action: str, resource=None) -> bool:
        try:
            rule = self._rules[action]
        except KeyError:
            raise ValueError(f"Unknown action {action!r}") from None
        if actor is None:
            return False
        return rule(actor, resource)

    # ------------------------------------------------------------------ #
    #  helpers                                                           #
    # ------------------------------------------------------------------ #
    def level_of(self, actor: User, group_id: int) -> Optional[AccessLevel]:
        member = self.repository.find(group_id, actor.id)
        return member.level if member else None

    # ------------------------------------------------------------------ #
    #  group rules                                                       #
    # ------------------------------------------------------------------ #
    def can_read_group(self, actor: User, group: Group) -> bool:
        return actor.is_admin or self.level_of(actor, group.id) is not None

    def can_admin_group(self, actor: User, group: Group) -> bool:
        if actor.is_admin:
            return True
        level = self.level_of(actor, group.id)
        return level is not None and level >= MANAGE_THRESHOLD

    def can_destroy_group(self, actor: User, group: Group) -> bool:
        return actor.is_admin or self.level_of(actor, group.id) == AccessLevel.OWNER

    def can_create_group(self, actor: User, _resource=None) -> bool:
        return bool(actor.is_admin)

    def can_grant_access_level(self, actor: User, resource: tuple[Group, AccessLevel]) -> bool:
        """Nobody hands out more than they hold themselves."""
        group, level = resource
        if actor.is_admin:
            return True
        own = self.level_of(actor, group.id)
        return own is not None and own >= MANAGE_THRESHOLD and level <= own

    # ------------------------------------------------------------------ #
    #  membership rules                                                  #
    # ------------------------------------------------------------------ #
    def _outranks(self, actor: User, member: GroupMember) -> bool:
        own = self.level_of(actor, member.group_id)
        return own is not None and own >= MANAGE_THRESHOLD and own >= member.level

    def can_update_group_member(self, actor: User, member: GroupMember) -> bool:
        return actor.is_admin or self._outranks(actor, member)

    def can_destroy_group_member(self, actor: User, member: GroupMember) -> bool:
        if self.is_last_owner(member):
            return False
        return actor.is_admin or actor.id == member.user_id or self._outranks(actor, member)

    def is_last_owner(self, member: GroupMember, lock: bool = False) -> bool:
        if not member.is_owner:
            return False
        return self.repository.count_owners(member.group_id, lock=lock) <= 1
