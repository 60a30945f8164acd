import logging

from utils.engine import validate_file
from utils.errors import RegistryMissError, SqliteError
from utils.registry import ConnectionRegistry

logger = logging.getLogger(__name__)


def open_connection(registry: ConnectionRegistry, connection_id: str, file_path: str):
    try:
        validate_file(file_path)
        registry.register(connection_id, file_path)
    except SqliteError as e:
        logger.warning("Could not open %r for connection %s: %s", file_path, connection_id, e)
        return {"success": False, "message": str(e)}

    logger.info("Registered SQLite file %s for connection %s", file_path, connection_id)
    return {"success": True}


def close_connection(registry: ConnectionRegistry, connection_id: str):
    try:
        if not registry.unregister(connection_id):
            raise RegistryMissError()
    except SqliteError as e:
        logger.warning("Could not close connection %s: %s", connection_id, e)
        return {"success": False, "message": str(e)}

    logger.info("Closed connection %s", connection_id)
    return {"success": True}
