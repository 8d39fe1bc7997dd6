"""User repository."""

from typing import Optional

from ..exceptions import UserNotFoundError
from ..models import User
from .base import BaseRepository


class UserRepository(BaseRepository[User]):
    model_class = User
    not_found_error = UserNotFoundError

    def get_by_email(self, email: str) -> Optional[User]:
        return self._base_query().filter(User.email == email).first()

    def get_active(self, user_id: int) -> Optional[User]:
        """Return the user only when the account is enabled."""
        user = self.get_by_id_optional(user_id)
        if user is None or not user.is_active:
            return None
        return user
