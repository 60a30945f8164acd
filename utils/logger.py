import logging
import time
from typing import List, Tuple

from sqlglot import expressions, parse_one

logger = logging.getLogger(__name__)


def before_cursor_execute(conn, _cursor, _statement, _parameters, _context, _executemany):
    conn.info.setdefault("query_start_time", []).append(time.perf_counter())


def after_cursor_execute(conn, _cursor, statement, _parameters, _context, _executemany):
    elapsed = time.perf_counter() - conn.info["query_start_time"].pop()
    if not logger.isEnabledFor(logging.DEBUG):
        return

    query = " ".join(statement.split()).rstrip(";")
    where_cols, join_cols, order_by_cols = extract_columns(query)
    logger.debug(
        "%.2f ms: %s (where=%s join=%s order_by=%s)",
        elapsed * 1000, query, where_cols, join_cols, order_by_cols,
    )


def extract_columns(query: str) -> Tuple[List[str], List[str], List[str]]:
    """Sorted WHERE, JOIN and ORDER BY columns, empty lists if sqlglot can't parse it."""
    try:
        #parse_one returns a syntax tree
        parsed = parse_one(query, read="sqlite")
    except Exception as e:
        logger.debug("Could not parse statement for logging: %s", e)
        return [], [], []
    if parsed is None:
        return [], [], []

    where_columns = sorted({
        col.name for where in parsed.find_all(expressions.Where)
        for col in where.find_all(expressions.Column)
    })

    join_columns = sorted({
        col.name for join in parsed.find_all(expressions.Join)
        for col in join.find_all(expressions.Column)
    })

    order_by_columns = sorted({
        col.name for order in parsed.find_all(expressions.Order)
        for col in order.find_all(expressions.Column)
    })

    return where_columns, join_columns, order_by_columns
