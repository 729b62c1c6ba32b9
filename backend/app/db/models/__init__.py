from .access_levels import AccessLevel, MANAGE_THRESHOLD
from .user import User
from .group import Group
from .group_member import GroupMember
from .user_session import UserSession

__all__ = [
    "AccessLevel",
    "MANAGE_THRESHOLD",
    "User",
    "Group",
    "GroupMember",
    "UserSession",
]
