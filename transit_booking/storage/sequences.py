"""Persisted id counters, one per entity collection."""

import logging
import threading
from typing import Optional

from pydantic import BaseModel, Field

from transit_booking.exceptions import StorageError
from transit_booking.storage.interfaces import Repository

logger = logging.getLogger(__name__)

TICKETS_SEQUENCE = "tickets"
TRANSPORTS_SEQUENCE = "transports"
LOCATIONS_SEQUENCE = "locations"


class IdSequence(BaseModel):
    """Last id handed out for a collection"""
    name: str
    last_issued: int = Field(-1, ge=-1)

    @property
    def key(self) -> str:
        return self.name


class SequenceAllocator:
    """Issues ids that are never reused, even after the entity is deleted.

    A missing counter is seeded from the highest id already stored in the
    target collection, so existing data keeps working. Candidate ids that are
    somehow already taken are skipped.
    """

    def __init__(self, sequences: Repository[IdSequence]):
        self.sequences = sequences
        self._lock = threading.Lock()

    def next_id(self, name: str, target: Repository) -> int:
        with self._lock:
            sequence = self.sequences.get(name)
            is_new = sequence is None
            if is_new:
                sequence = IdSequence(name=name, last_issued=self._highest_id(target))
                logger.info("Seeded id sequence", extra={"sequence": name, "last_issued": sequence.last_issued})

            candidate = sequence.last_issued + 1
            while target.contains_key(candidate):
                candidate += 1
            sequence.last_issued = candidate

            stored = self.sequences.create(sequence) if is_new else self.sequences.update(sequence)
            if not stored:
                raise StorageError(f"Could not persist the id sequence '{name}'!")
            return candidate

    def peek(self, name: str) -> Optional[int]:
        """Last issued id, None when the counter was never used"""
        sequence = self.sequences.get(name)
        return sequence.last_issued if sequence is not None else None

    @staticmethod
    def _highest_id(target: Repository) -> int:
        ids = [entity.id for entity in target.get_all()]
        return max(ids) if ids else -1
