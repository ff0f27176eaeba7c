"""In-memory repository backed by a dict."""

import threading
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from transit_booking.storage.interfaces import E, Repository


class InMemoryRepository(Repository[E]):
    """Dict-backed store; records are deep-copied on the way in and out."""

    def __init__(self) -> None:
        self._records: Dict[Any, BaseModel] = {}
        self._lock = threading.RLock()

    def create(self, entity: E) -> bool:
        with self._lock:
            if entity.key in self._records:
                return False
            self._records[entity.key] = entity.model_copy(deep=True)
            return True

    def get(self, key: Any) -> Optional[E]:
        with self._lock:
            record = self._records.get(key)
            return record.model_copy(deep=True) if record is not None else None

    def update(self, entity: E) -> bool:
        with self._lock:
            if entity.key not in self._records:
                return False
            self._records[entity.key] = entity.model_copy(deep=True)
            return True

    def delete(self, key: Any) -> bool:
        with self._lock:
            return self._records.pop(key, None) is not None

    def get_all(self) -> List[E]:
        with self._lock:
            return [record.model_copy(deep=True) for record in self._records.values()]

    def contains_key(self, key: Any) -> bool:
        with self._lock:
            return key in self._records

    def __len__(self) -> int:
        return len(self._records)
