"""
Access policy for administrative operations.
Admin rights come from the user's role, never from a specific identity.
"""
from typing import Optional

from habit_ladder.models import User
from habit_ladder.exceptions import ForbiddenException


class AccessPolicy:
    """Capability checks on the acting user"""

    def can_administer(self, user: Optional[User]) -> bool:
        """Whether the user may run administrative operations"""
        return user is not None and user.is_admin

    def require_admin(self, user: Optional[User]) -> User:
        """
        Ensure the user holds the admin capability.

        Raises:
            ForbiddenException: If the user is missing or not an admin
        """
        if not self.can_administer(user):
            user_id = user.id if user is not None else None
            raise ForbiddenException(user_id, "administrative operations")
        return user
