class PersistenceError(Exception):
    """A store operation failed; carries the underlying error."""

    def __init__(self, operation: str, cause: Exception):
        super().__init__(str(cause))
        self.operation = operation
        self.cause = cause


class DuplicateRecordError(PersistenceError):
    """A uniqueness constraint rejected the write."""
