from sqlalchemy import (
    Column,
    Integer,
    DateTime,
    ForeignKey,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from app.db.base_class import Base
from app.db.models.access_levels import AccessLevel


class GroupMember(Base):
    __tablename__ = "group_members"

    id = Column(Integer, primary_key=True)
    group_id = Column(
        Integer,
        ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # One of AccessLevel's values; validated before it reaches the row
    access_level = Column(Integer, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("group_id", "user_id", name="uq_group_members_group_user"),
    )

    group = relationship("Group", back_populates="members")
    user = relationship("User", back_populates="memberships")

    @property
    def level(self) -> AccessLevel:
        return AccessLevel(self.access_level)

    @property
    def is_owner(self) -> bool:
        return self.access_level == AccessLevel.OWNER
