"""Build the repository set for the configured storage backend."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from transit_booking.auth.schemas import Person
from transit_booking.bookings.schemas import Ticket
from transit_booking.config import Settings, settings as default_settings
from transit_booking.database import build_engine, build_session_factory, init_db
from transit_booking.exceptions import InputValidationError
from transit_booking.locations.schemas import Location
from transit_booking.storage.file import JsonFileRepository
from transit_booking.storage.interfaces import Repository
from transit_booking.storage.memory import InMemoryRepository
from transit_booking.storage.sequences import IdSequence
from transit_booking.storage.sql import SqlRepository
from transit_booking.transports.schemas import Transport

logger = logging.getLogger(__name__)

MEMORY_BACKEND = "memory"
FILE_BACKEND = "file"
DATABASE_BACKEND = "database"

COLLECTIONS = {
    "persons": Person,
    "transports": Transport,
    "tickets": Ticket,
    "locations": Location,
    "sequences": IdSequence,
}


@dataclass
class Repositories:
    persons: Repository
    transports: Repository
    tickets: Repository
    locations: Repository
    sequences: Repository


def build_repositories(config: Optional[Settings] = None, **overrides: Any) -> Repositories:
    """Create one repository per collection for ``STORAGE_BACKEND``

    ``overrides`` replace settings fields, e.g. ``DATA_DIR`` in tests.
    """
    config = config or default_settings
    if overrides:
        config = config.model_copy(update=overrides)
    backend = config.STORAGE_BACKEND.lower()

    if backend == MEMORY_BACKEND:
        repos = {name: InMemoryRepository() for name in COLLECTIONS}
    elif backend == FILE_BACKEND:
        data_dir = Path(config.DATA_DIR)
        repos = {
            name: JsonFileRepository(data_dir / f"{name}.json", entity_type)
            for name, entity_type in COLLECTIONS.items()
        }
    elif backend == DATABASE_BACKEND:
        engine = build_engine(config.DATABASE_URL, timeout=config.STORAGE_TIMEOUT_SECONDS)
        init_db(engine)
        session_factory = build_session_factory(engine)
        repos = {
            name: SqlRepository(
                session_factory,
                name,
                entity_type,
                retry_attempts=config.STORAGE_RETRY_ATTEMPTS,
                retry_delay=config.STORAGE_RETRY_DELAY_SECONDS,
            )
            for name, entity_type in COLLECTIONS.items()
        }
    else:
        raise InputValidationError(f"Unknown storage backend: {config.STORAGE_BACKEND}")

    logger.info("Storage ready", extra={"backend": backend})
    return Repositories(**repos)
