from __future__ import annotations

from .database import DatabaseManager
from .errors import InvalidArgument, NotFound, PersonStoreError, StoreError, ValidationError
from .person_state import PEOPLE_COLLECTION, PersonQuery, PersonRecord
from .repositories import AsyncPersonRepository, MongoPersonRepository
from .results import OperationResult

__all__ = [
    "DatabaseManager",
    "PEOPLE_COLLECTION",
    "PersonRecord",
    "PersonQuery",
    "AsyncPersonRepository",
    "MongoPersonRepository",
    "OperationResult",
    "PersonStoreError",
    "ValidationError",
    "NotFound",
    "InvalidArgument",
    "StoreError",
]
