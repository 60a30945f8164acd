import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy import Connection, text
from sqlalchemy.exc import SQLAlchemyError

from utils.errors import IntrospectionError
from utils.schema import DbSchemaSummary, ForeignKeyEdge, TableColumn, TableInfo, TableKey

logger = logging.getLogger(__name__)

AUTO_INDEX_PREFIX = "sqlite_autoindex"

LIST_TABLES_SQL = text(
    "SELECT name FROM sqlite_master "
    "WHERE type = 'table' AND substr(name, 1, 7) <> 'sqlite_' "
    "ORDER BY name"
)


def _quote_literal(name: str) -> str:
    return "'" + name.replace("'", "''") + "'"


def _pragma(connection: Connection, pragma: str, argument: str):
    try:
        return connection.exec_driver_sql(f"PRAGMA {pragma}({_quote_literal(argument)})").all()
    except SQLAlchemyError as e:
        raise IntrospectionError.wrap(e) from e


def list_tables(connection: Connection) -> List[str]:
    """User tables in alphabetical order, sqlite's own tables left out."""
    try:
        return list(connection.execute(LIST_TABLES_SQL).scalars())
    except SQLAlchemyError as e:
        raise IntrospectionError.wrap(e) from e


def get_columns(connection: Connection, table: str) -> List[TableColumn]:
    # cid, name, type, notnull, dflt_value, pk
    return [
        TableColumn(name=row[1], data_type=row[2], not_null=row[3] != 0, pk=row[5] != 0)
        for row in _pragma(connection, "table_info", table)
    ]


def primary_key(columns: List[TableColumn]) -> Optional[TableKey]:
    # columns keep their definition order, not their position within the key
    pk_columns = [col.name for col in columns if col.pk]
    if not pk_columns:
        return None
    return TableKey(key_type="PRIMARY_KEY", columns=pk_columns)


def get_foreign_keys(connection: Connection, table: str) -> List[Tuple[str, List[str], List[str]]]:
    # rows of one constraint are grouped on its id, first seen order
    groups: Dict[int, Tuple[str, List[str], List[str]]] = {}
    # id, seq, table, from, to, on_update, on_delete, match
    for row in _pragma(connection, "foreign_key_list", table):
        fk_id, seq, ref_table, from_col, to_col = row[0], row[1], row[2], row[3], row[4]
        if to_col is None:
            # "REFERENCES parent" without columns targets the parent's primary key
            to_col = _referenced_key_column(connection, ref_table, seq)
        _, from_cols, to_cols = groups.setdefault(fk_id, (ref_table, [], []))
        from_cols.append(from_col)
        to_cols.append(to_col)
    return list(groups.values())


def _referenced_key_column(connection: Connection, ref_table: str, seq: int) -> str:
    rows = sorted(_pragma(connection, "table_info", ref_table), key=lambda r: r[5])
    pk_columns = [row[1] for row in rows if row[5]]
    return pk_columns[seq] if seq < len(pk_columns) else "rowid"


def get_indexes(connection: Connection, table: str) -> List[TableKey]:
    indexes = []
    # seq, name, unique, origin, partial
    for row in _pragma(connection, "index_list", table):
        index_name, unique = row[1], row[2] != 0
        if index_name.startswith(AUTO_INDEX_PREFIX):
            continue
        # seqno, cid, name; name is NULL for expression columns
        columns = [info[2] for info in _pragma(connection, "index_info", index_name) if info[2] is not None]
        indexes.append(TableKey(key_type="INDEX", name=index_name, columns=columns, unique=unique))
    return indexes


def describe_table(connection: Connection, table: str) -> Tuple[TableInfo, List[ForeignKeyEdge]]:
    columns = get_columns(connection, table)
    keys: List[TableKey] = []
    edges: List[ForeignKeyEdge] = []

    pk = primary_key(columns)
    if pk is not None:
        keys.append(pk)

    for ref_table, from_cols, to_cols in get_foreign_keys(connection, table):
        keys.append(TableKey(
            key_type="FOREIGN_KEY",
            columns=from_cols,
            ref_table=ref_table,
            ref_columns=to_cols,
        ))
        edges.append(ForeignKeyEdge(
            from_table=table,
            from_columns=list(from_cols),
            to_table=ref_table,
            to_columns=list(to_cols),
        ))

    keys.extend(get_indexes(connection, table))
    return TableInfo(name=table, columns=columns, keys=keys), edges


def summarize_schema(connection: Connection, only_table: Optional[str] = None) -> DbSchemaSummary:
    # a name that is not a user table gives an empty summary
    summary = DbSchemaSummary()
    for table in list_tables(connection):
        if only_table is not None and table != only_table:
            continue
        info, edges = describe_table(connection, table)
        summary.tables.append(info)
        summary.foreign_keys.extend(edges)
    logger.debug("Summarized %d table(s), %d foreign key(s)", len(summary.tables), len(summary.foreign_keys))
    return summary
