"""Error kinds raised by the persistence and workflow layer."""


class BatchReviewError(Exception):
    """Base class."""


class NotFoundError(BatchReviewError):
    pass


class DuplicateKeyError(BatchReviewError):
    pass


class ValidationError(BatchReviewError):
    pass


class IntegrityError(BatchReviewError):
    """A foreign key names a row that does not exist."""


class PersistenceError(BatchReviewError, OSError):
    """Flushing the in-memory database to its snapshot file failed."""
