from activity_tracker.models.base import Base
from activity_tracker.models.role import Role, user_roles
from activity_tracker.models.user import User
from activity_tracker.models.activity import Activity

__all__ = [
    "Base",
    "Role",
    "user_roles",
    "User",
    "Activity",
]
