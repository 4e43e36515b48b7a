"""User directory: resolves alert owners to notification addresses."""

from abc import ABC, abstractmethod

from pricewatch.db.store import DataStore
from pricewatch.errors import UserNotFoundError


class BaseUserDirectory(ABC):
    """Abstract base class for user directories."""

    @abstractmethod
    def resolve_email(self, user_id: str) -> str:
        """Resolve a user ID to an email address.

        Raises:
            UserNotFoundError: If the user is unknown or has no address.
        """
        pass


class StoreUserDirectory(BaseUserDirectory):
    """Looks users up in the ``users`` table of a :class:`DataStore`."""

    def __init__(self, store: DataStore):
        self._store = store

    def resolve_email(self, user_id: str) -> str:
        user = self._store.get_user(user_id)
        if user is None:
            raise UserNotFoundError(user_id, "User not found")
        if not user.email.strip():
            raise UserNotFoundError(user_id, "User email not found")
        return user.email.strip()
