import logging
import sqlite3
import time
from typing import Any, Dict, List

from sqlalchemy import Connection
from sqlalchemy.exc import SQLAlchemyError

from utils.codec import row_to_dict
from utils.engine import sqlite_connection
from utils.errors import (
    CountError,
    RowDecodeError,
    SqliteError,
    StatementExecutionError,
    StatementPrepareError,
)
from utils.plan import describe_plan
from utils.registry import ConnectionRegistry
from utils.schema import QueryResult

logger = logging.getLogger(__name__)

# page and pageSize are u32 on the wire, so is the offset
MAX_OFFSET = 2**32 - 1


def is_select_query(query: str) -> bool:
    # WITH ... SELECT and row returning pragmas are deliberately not treated as reads
    return query.lstrip().lower().startswith("select")


def as_subquery(query: str) -> str:
    # a trailing semicolon would end the wrapping statement early,
    # wrappers close on a new line so a trailing -- comment cannot swallow the paren
    return query.strip().rstrip(";")


def page_offset(page: int, page_size: int) -> int:
    return min(page * page_size, MAX_OFFSET)


def count_rows(connection: Connection, sql: str) -> int:
    try:
        return connection.exec_driver_sql(f"SELECT COUNT(*) AS count FROM ( {as_subquery(sql)}\n)").scalar()
    except SQLAlchemyError as e:
        raise CountError.wrap(e) from e


def fetch_page(connection: Connection, sql: str, page: int, page_size: int):
    try:
        result = connection.exec_driver_sql(
            f"SELECT * FROM ( {as_subquery(sql)}\n) LIMIT ? OFFSET ?",
            (page_size, page_offset(page, page_size)),
        )
    except SQLAlchemyError as e:
        raise StatementPrepareError.wrap(e) from e

    columns: List[str] = list(result.keys())
    rows: List[Dict[str, Any]] = []
    try:
        for row in result:
            rows.append(row_to_dict(row, columns))
    except (SQLAlchemyError, TypeError) as e:
        raise RowDecodeError.wrap(e) from e
    return columns, rows


def execute_batch(connection: Connection, sql: str):
    # executescript handles several statements, which exec_driver_sql does not
    try:
        connection.connection.driver_connection.executescript(sql)
    except sqlite3.Error as e:
        raise StatementExecutionError.wrap(e) from e


def run_query(file_path: str, sql: str, page: int, page_size: int) -> QueryResult:
    # reads come back paged with the total and plan fields, anything else runs as a batch
    with sqlite_connection(file_path) as connection:
        if not is_select_query(sql):
            execute_batch(connection, sql)
            logger.debug("Executed non-select statement as a batch")
            return QueryResult()

        total_rows = count_rows(connection, sql)
        columns, rows = fetch_page(connection, sql, page, page_size)
        plan = describe_plan(connection, sql)

    return QueryResult(columns=columns, rows=rows, total_rows=total_rows, **plan)


def execute_query(registry: ConnectionRegistry, connection_id: str, sql: str, page: int, page_size: int):
    try:
        file_path = registry.resolve(connection_id)
        start_time = time.perf_counter()
        result = run_query(file_path, sql, page, page_size)
        duration = time.perf_counter() - start_time
    except SqliteError as e:
        logger.warning("Query on connection %s failed: %s", connection_id, e)
        return {"success": False, "message": str(e)}

    logger.info(
        "Query on connection %s returned %d of %s row(s) in %.3fs",
        connection_id, len(result.rows), result.total_rows, duration,
    )
    return {"success": True, "data": result.model_dump(by_alias=True)}
