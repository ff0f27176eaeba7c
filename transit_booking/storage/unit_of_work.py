"""Multi-entity writes that either all land or are all undone."""

import logging
from typing import Any, Callable, List, Tuple

from transit_booking.exceptions import StorageError
from transit_booking.storage.interfaces import Repository

logger = logging.getLogger(__name__)


class UnitOfWork:
    """Records writes made through it and reverts them if the block fails.

    Usage:
        with UnitOfWork() as uow:
            uow.create(tickets, ticket)
            uow.update(customers, customer)

    A write that returns False (duplicate key, missing record) is treated as
    a failure and raises ``StorageError`` so the earlier writes are undone.
    """

    def __init__(self):
        self._undo: List[Tuple[str, Callable[[], Any]]] = []

    def __enter__(self) -> "UnitOfWork":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self.rollback()
        self._undo.clear()
        return False

    def create(self, repository: Repository, entity: Any) -> None:
        if not repository.create(entity):
            raise StorageError(f"Could not store record {entity.key}, the key is taken!")
        self._undo.append((f"create {entity.key}", lambda: repository.delete(entity.key)))

    def update(self, repository: Repository, entity: Any) -> None:
        previous = repository.get(entity.key)
        if previous is None or not repository.update(entity):
            raise StorageError(f"Could not update record {entity.key}, it does not exist!")
        self._undo.append((f"update {entity.key}", lambda: repository.update(previous)))

    def delete(self, repository: Repository, key: Any) -> None:
        previous = repository.get(key)
        if previous is None or not repository.delete(key):
            raise StorageError(f"Could not delete record {key}, it does not exist!")
        self._undo.append((f"delete {key}", lambda: repository.create(previous)))

    def rollback(self) -> None:
        """Undo recorded writes newest first; undo failures are only logged"""
        reverted = 0
        while self._undo:
            description, undo = self._undo.pop()
            try:
                undo()
                reverted += 1
            except Exception:
                logger.exception("Failed to undo write", extra={"write": description})
        logger.error("Rolled back unit of work", extra={"reverted_writes": reverted})
