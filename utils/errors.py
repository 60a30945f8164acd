from typing import Optional

from sqlalchemy.exc import DBAPIError


class SqliteError(Exception):
    # str(err) is the message sent back: the stage, then the engine message if any
    stage = "SQLite error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail
        super().__init__(f"{self.stage}: {detail}" if detail else self.stage)

    @classmethod
    def wrap(cls, exc: BaseException) -> "SqliteError":
        # DBAPIError.__str__ appends the SQL and a background link, keep only the driver text
        if isinstance(exc, DBAPIError) and exc.orig is not None:
            return cls(str(exc.orig))
        return cls(str(exc))


class InvalidInputError(SqliteError):
    stage = "filePath is required"


class OpenFailureError(SqliteError):
    stage = "Failed to open SQLite file"


class NotADatabaseError(SqliteError):
    stage = "Not a valid SQLite database"


class RegistryMissError(SqliteError):
    stage = "No SQLite file registered for this connection"


class RegistryPoisonedError(SqliteError):
    stage = "state poisoned"


class StatementPrepareError(SqliteError):
    stage = "Prepare error"


class StatementExecutionError(SqliteError):
    stage = "Execution error"


class CountError(SqliteError):
    stage = "Count error"


class RowDecodeError(SqliteError):
    stage = "Row error"


class PlanExplainError(SqliteError):
    stage = "Explain query error"


class IntrospectionError(SqliteError):
    stage = "Schema introspection error"
