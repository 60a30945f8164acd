import logging
from typing import Optional

from utils.engine import sqlite_connection
from utils.errors import SqliteError
from utils.introspect import summarize_schema
from utils.registry import ConnectionRegistry

logger = logging.getLogger(__name__)


def get_summary(registry: ConnectionRegistry, connection_id: str, table_name: Optional[str] = None):
    try:
        file_path = registry.resolve(connection_id)
        with sqlite_connection(file_path) as connection:
            summary = summarize_schema(connection, only_table=table_name)
    except SqliteError as e:
        logger.warning("Schema summary for connection %s failed: %s", connection_id, e)
        return {"success": False, "message": str(e)}

    logger.info("Schema summary for connection %s: %d table(s)", connection_id, len(summary.tables))
    return {"success": True, "data": summary.model_dump(by_alias=True)}


def schema_summary(registry: ConnectionRegistry, connection_id: str):
    return get_summary(registry, connection_id)


def table_summary(registry: ConnectionRegistry, connection_id: str, table_name: str):
    return get_summary(registry, connection_id, table_name)
