import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from sqlalchemy import Connection, Engine, create_engine, event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from utils.errors import InvalidInputError, NotADatabaseError, OpenFailureError
from utils.logger import after_cursor_execute, before_cursor_execute

logger = logging.getLogger(__name__)


def _read_only_uri(file_path: str) -> str:
    # as_uri() percent-encodes '?', '#' and friends so sqlite sees the whole path
    return Path(file_path).absolute().as_uri() + "?mode=ro"


def _decode_text(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace")


def create_read_only_engine(file_path: str) -> Engine:
    # no pooling, every checkout is a fresh read-only connection closed on return
    uri = _read_only_uri(file_path)

    def connect():
        return sqlite3.connect(uri, uri=True, check_same_thread=False)

    engine = create_engine("sqlite://", creator=connect, poolclass=NullPool)

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, _connection_record):
        dbapi_connection.text_factory = _decode_text

    event.listen(engine, "before_cursor_execute", before_cursor_execute)
    event.listen(engine, "after_cursor_execute", after_cursor_execute)
    return engine


@contextmanager
def sqlite_connection(file_path: str) -> Iterator[Connection]:
    engine = create_read_only_engine(file_path)
    try:
        try:
            connection = engine.connect()
        except SQLAlchemyError as e:
            raise OpenFailureError.wrap(e) from e
        with connection:
            yield connection
    finally:
        engine.dispose()


def validate_file(file_path: str):
    #reading the schema version forces sqlite to check the header
    if not file_path:
        raise InvalidInputError()

    with sqlite_connection(file_path) as connection:
        try:
            connection.execute(text("PRAGMA schema_version")).scalar()
        except SQLAlchemyError as e:
            raise NotADatabaseError.wrap(e) from e
    logger.debug("Validated SQLite file %s", file_path)
