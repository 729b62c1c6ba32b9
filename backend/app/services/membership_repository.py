from typing import Iterable, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session, joinedload

from app.db.models.access_levels import AccessLevel
from app.db.models.group_member import GroupMember
from app.db.models.user import User


class MembershipRepository:
    """
    Data access for the ``group_members`` table.

    The repository never commits; the caller owns the transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    def find(self, group_id: int, user_id: int) -> Optional[GroupMember]:
        return (
            self.db.query(GroupMember)
            .filter(GroupMember.group_id == group_id, GroupMember.user_id == user_id)
            .first()
        )

    def existing_user_ids(self, group_id: int, user_ids: Iterable[int]) -> set[int]:
        ids = list(user_ids)
        if not ids:
            return set()
        rows = (
            self.db.query(GroupMember.user_id)
            .filter(GroupMember.group_id == group_id, GroupMember.user_id.in_(ids))
            .all()
        )
        return {uid for (uid,) in rows}

    def known_user_ids(self, user_ids: Iterable[int]) -> set[int]:
        ids = list(user_ids)
        if not ids:
            return set()
        return {uid for (uid,) in self.db.query(User.id).filter(User.id.in_(ids))}

    def list(self, group_id: int, search: Optional[str] = None) -> Query:
        """
        Lazy query of a group's memberships, highest access level first.
        """
        q = (
            self.db.query(GroupMember)
            .join(User, User.id == GroupMember.user_id)
            .options(joinedload(GroupMember.user))
            .filter(GroupMember.group_id == group_id)
        )
        if search:
            # % and _ in the term are matched literally
            term = search.lower()
            q = q.filter(
                or_(
                    func.lower(User.username).contains(term, autoescape=True),
                    func.lower(User.name).contains(term, autoescape=True),
                )
            )
        return q.order_by(GroupMember.access_level.desc(), GroupMember.id)

    def count_owners(self, group_id: int, lock: bool = False) -> int:
        # FOR UPDATE keeps two concurrent removals from both seeing 2 owners
        q = self.db.query(GroupMember.id).filter(
            GroupMember.group_id == group_id,
            GroupMember.access_level == int(AccessLevel.OWNER),
        )
        if lock:
            q = q.with_for_update()
        return len(q.all())

    def create(self, group_id: int, user_id: int, access_level: AccessLevel) -> GroupMember:
        member = GroupMember(
            group_id=group_id,
            user_id=user_id,
            access_level=int(access_level),
        )
        self.db.add(member)
        self.db.flush()
        return member

    def update(self, member: GroupMember, access_level: AccessLevel) -> GroupMember:
        member.access_level = int(access_level)
        self.db.add(member)
        self.db.flush()
        return member

    def delete(self, member: GroupMember) -> None:
        self.db.delete(member)
        self.db.flush()
