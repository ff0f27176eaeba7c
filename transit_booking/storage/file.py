"""JSON file repository: one file holds the whole collection as a list."""

import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, List, Optional, Union

from pydantic import TypeAdapter, ValidationError

from transit_booking.exceptions import StorageError
from transit_booking.storage.interfaces import E, Repository

logger = logging.getLogger(__name__)


class JsonFileRepository(Repository[E]):
    """File-backed store; every call re-reads the file, every write replaces it."""

    def __init__(self, file_path: Union[str, Path], entity_type: Any) -> None:
        self.file_path = Path(file_path)
        self._adapter = TypeAdapter(List[entity_type])
        self._lock = threading.RLock()
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            self.file_path.touch(exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create file {self.file_path}") from e

    def create(self, entity: E) -> bool:
        with self._lock:
            records = self._read()
            if any(record.key == entity.key for record in records):
                return False
            records.append(entity)
            self._write(records)
            return True

    def get(self, key: Any) -> Optional[E]:
        with self._lock:
            for record in self._read():
                if record.key == key:
                    return record
            return None

    def update(self, entity: E) -> bool:
        with self._lock:
            records = self._read()
            for index, record in enumerate(records):
                if record.key == entity.key:
                    records[index] = entity
                    self._write(records)
                    return True
            return False

    def delete(self, key: Any) -> bool:
        with self._lock:
            records = self._read()
            remaining = [record for record in records if record.key != key]
            if len(remaining) == len(records):
                return False
            self._write(remaining)
            return True

    def get_all(self) -> List[E]:
        with self._lock:
            return self._read()

    def _read(self) -> List[E]:
        try:
            raw = self.file_path.read_bytes()
        except FileNotFoundError:
            return []
        except OSError as e:
            raise StorageError(f"Failed to read file {self.file_path}") from e
        if not raw.strip():
            return []
        try:
            return self._adapter.validate_json(raw)
        except ValidationError as e:
            logger.error("Corrupt collection file", extra={"path": str(self.file_path)})
            raise StorageError(f"Failed to decode file {self.file_path}") from e

    def _write(self, records: List[E]) -> None:
        payload = self._adapter.dump_json(records, indent=2)
        try:
            # Write next to the target, then swap it in
            fd, tmp_path = tempfile.mkstemp(dir=self.file_path.parent, prefix=f".{self.file_path.name}.")
            try:
                with os.fdopen(fd, "wb") as handle:
                    handle.write(payload)
                os.replace(tmp_path, self.file_path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write file {self.file_path}") from e
