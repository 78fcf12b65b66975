from database.connection import DatabasePool, acquire_as
from database.db_manager import DatabaseManager
from database.exceptions import (
    DatabaseError,
    DuplicateError,
    IntegrityError,
    NotFoundError,
    PermissionDeniedError,
)

__all__ = [
    "DatabasePool",
    "acquire_as",
    "DatabaseManager",
    "DatabaseError",
    "DuplicateError",
    "IntegrityError",
    "NotFoundError",
    "PermissionDeniedError",
]
