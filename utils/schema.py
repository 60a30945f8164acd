from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Literal, Optional

# the client reads camelCase keys
class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

AccessKind = Literal["SCAN", "SEARCH", "UNKNOWN"]
KeyType = Literal["PRIMARY_KEY", "FOREIGN_KEY", "INDEX"]

class PlanTableInfo(CamelModel):
    table: str
    access: AccessKind
    total_rows: Optional[int] = None

class QueryResult(CamelModel):
    columns: List[str] = []
    rows: List[Dict[str, Any]] = []
    total_rows: Optional[int] = None
    plan_steps: Optional[List[str]] = None
    insights: Optional[List[str]] = None
    plan_tables: Optional[List[PlanTableInfo]] = None
    rows_scanned_estimate: Optional[int] = None

class TableColumn(CamelModel):
    name: str
    data_type: Optional[str] = None
    not_null: bool
    pk: bool

class TableKey(CamelModel):
    key_type: KeyType
    name: Optional[str] = None
    columns: List[str]
    ref_table: Optional[str] = None
    ref_columns: Optional[List[str]] = None
    unique: Optional[bool] = None

class TableInfo(CamelModel):
    name: str
    columns: List[TableColumn]
    keys: List[TableKey]

class ForeignKeyEdge(CamelModel):
    from_table: str
    from_columns: List[str]
    to_table: str
    to_columns: List[str]

class DbSchemaSummary(CamelModel):
    tables: List[TableInfo] = []
    foreign_keys: List[ForeignKeyEdge] = []
