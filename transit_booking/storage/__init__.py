"""
Storage Module

One repository per entity collection behind a common interface.

Key Components:
- interfaces.py: Repository contract
- memory.py, file.py, sql.py: In-memory, JSON file and SQLAlchemy backends
- sequences.py: Persisted id counters
- unit_of_work.py: All-or-nothing multi-entity writes
- factory.py: Backend selection from settings (import it directly)
"""

from .interfaces import Repository
from .memory import InMemoryRepository
from .file import JsonFileRepository
from .sql import SqlRepository
from .sequences import IdSequence, SequenceAllocator
from .unit_of_work import UnitOfWork

__all__ = [
    "Repository",
    "InMemoryRepository",
    "JsonFileRepository",
    "SqlRepository",
    "IdSequence",
    "SequenceAllocator",
    "UnitOfWork",
]
