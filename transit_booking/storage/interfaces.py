"""Repository interface (one instance per entity collection).

Backends must be swappable and honor the same contract: keyed by
``entity.key``, returning independent copies of stored records.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, List, Optional, TypeVar

E = TypeVar("E")


class Repository(ABC, Generic[E]):
    """Interface for keyed entity persistence."""

    @abstractmethod
    def create(self, entity: E) -> bool:
        """Insert the entity unless its key is taken. Return True if inserted."""
        ...

    @abstractmethod
    def get(self, key: Any) -> Optional[E]:
        """Return the entity stored under key, or None if not found."""
        ...

    @abstractmethod
    def update(self, entity: E) -> bool:
        """Replace the record at the entity's key. Return False if absent."""
        ...

    @abstractmethod
    def delete(self, key: Any) -> bool:
        """Remove the record if present. Return True if something was removed."""
        ...

    @abstractmethod
    def get_all(self) -> List[E]:
        """Return every stored entity, in no guaranteed order."""
        ...

    def contains_key(self, key: Any) -> bool:
        """Check if a record is stored under key."""
        return self.get(key) is not None
