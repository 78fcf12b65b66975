class DatabaseError(Exception):
    """Base for all database errors."""


class NotFoundError(DatabaseError):
    """Entity not found."""


class DuplicateError(DatabaseError):
    """Unique constraint violation."""


class IntegrityError(DatabaseError):
    """Foreign key or check constraint violation."""


class PermissionDeniedError(DatabaseError):
    """The caller does not own the row, or row-level security refused the write."""
