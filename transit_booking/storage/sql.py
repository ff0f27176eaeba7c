"""SQLAlchemy repository: every collection shares the stored_records table."""

import logging
import time
from typing import Any, Callable, List, Optional, TypeVar

from pydantic import TypeAdapter, ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from transit_booking.config import settings
from transit_booking.exceptions import StorageError
from transit_booking.models import StoredRecord
from transit_booking.storage.interfaces import E, Repository

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SqlRepository(Repository[E]):
    """Relational store with bounded retry on transient connection failures."""

    def __init__(
        self,
        session_factory: sessionmaker,
        collection: str,
        entity_type: Any,
        retry_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
    ) -> None:
        self._session_factory = session_factory
        self.collection = collection
        self._adapter = TypeAdapter(entity_type)
        self.retry_attempts = settings.STORAGE_RETRY_ATTEMPTS if retry_attempts is None else retry_attempts
        self.retry_delay = settings.STORAGE_RETRY_DELAY_SECONDS if retry_delay is None else retry_delay

    def create(self, entity: E) -> bool:
        def work(session: Session) -> bool:
            if session.get(StoredRecord, (self.collection, str(entity.key))) is not None:
                return False
            session.add(self._to_record(entity))
            try:
                session.flush()
            except IntegrityError:
                # Lost a race against a concurrent insert of the same key
                session.rollback()
                return False
            return True

        return self._run("create", work)

    def get(self, key: Any) -> Optional[E]:
        def work(session: Session) -> Optional[E]:
            record = session.get(StoredRecord, (self.collection, str(key)))
            return self._to_entity(record) if record is not None else None

        return self._run("get", work)

    def update(self, entity: E) -> bool:
        def work(session: Session) -> bool:
            record = session.get(StoredRecord, (self.collection, str(entity.key)))
            if record is None:
                return False
            record.kind = self._kind_of(entity)
            record.payload = entity.model_dump(mode="json")
            return True

        return self._run("update", work)

    def delete(self, key: Any) -> bool:
        def work(session: Session) -> bool:
            record = session.get(StoredRecord, (self.collection, str(key)))
            if record is None:
                return False
            session.delete(record)
            return True

        return self._run("delete", work)

    def get_all(self) -> List[E]:
        def work(session: Session) -> List[E]:
            query = select(StoredRecord).where(StoredRecord.collection == self.collection)
            return [self._to_entity(record) for record in session.scalars(query).all()]

        return self._run("get_all", work)

    def contains_key(self, key: Any) -> bool:
        def work(session: Session) -> bool:
            return session.get(StoredRecord, (self.collection, str(key))) is not None

        return self._run("contains_key", work)

    def _run(self, operation: str, work: Callable[[Session], T]) -> T:
        """Run one unit of work in its own session, retrying transient failures"""
        attempts = max(1, self.retry_attempts)
        for attempt in range(attempts):
            session: Optional[Session] = None
            try:
                session = self._session_factory()
                result = work(session)
                session.commit()
                return result
            except OperationalError as e:
                self._discard(session)
                if attempt + 1 >= attempts:
                    logger.error(
                        "Storage operation failed after %d attempts", attempts,
                        extra={"collection": self.collection, "operation": operation},
                    )
                    raise StorageError(f"Storage is unavailable, could not {operation} in {self.collection}!") from e
                delay = self.retry_delay * (2 ** attempt)
                logger.warning(
                    "Storage operation failed, retrying in %.2fs", delay,
                    extra={"collection": self.collection, "operation": operation},
                )
                time.sleep(delay)
            except SQLAlchemyError as e:
                self._discard(session)
                raise StorageError(f"Error during {operation} in table {self.collection}!") from e
            finally:
                if session is not None:
                    session.close()
        raise StorageError(f"Storage is unavailable, could not {operation} in {self.collection}!")

    @staticmethod
    def _discard(session: Optional[Session]) -> None:
        if session is not None:
            session.rollback()

    def _to_record(self, entity: E) -> StoredRecord:
        return StoredRecord(
            collection=self.collection,
            key=str(entity.key),
            kind=self._kind_of(entity),
            payload=entity.model_dump(mode="json"),
        )

    def _to_entity(self, record: StoredRecord) -> E:
        try:
            return self._adapter.validate_python(record.payload)
        except ValidationError as e:
            raise StorageError(f"Corrupt record {record.key} in {self.collection}!") from e

    @staticmethod
    def _kind_of(entity: E) -> Optional[str]:
        return getattr(entity, "kind", None) or getattr(entity, "role", None)
