import logging
from typing import Annotated

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import Field

from utils.config import CORS_ORIGINS, configure_logging
from utils.registry import ConnectionRegistry
from utils.schema import CamelModel

from routes.connect import close_connection, open_connection
from routes.execute import execute_query
from routes.summary import schema_summary, table_summary

configure_logging()
logger = logging.getLogger(__name__)

UINT32_MAX = 2**32 - 1

app = FastAPI()
# connection id -> file path, owned by the app and handed to each request
app.state.registry = ConnectionRegistry()

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

def get_registry(request: Request) -> ConnectionRegistry:
    return request.app.state.registry

Registry = Annotated[ConnectionRegistry, Depends(get_registry)]

@app.get("/health")
def health():
    return {"message": "working and stuff"}

class OpenRequest(CamelModel):
    connection_id: str
    file_path: str

@app.post("/sqlite/open")
def sqliteOpen(request: OpenRequest, registry: Registry):
    return open_connection(registry, request.connection_id, request.file_path)

class CloseRequest(CamelModel):
    connection_id: str

@app.post("/sqlite/close")
def sqliteClose(request: CloseRequest, registry: Registry):
    return close_connection(registry, request.connection_id)

class QueryRequest(CamelModel):
    connection_id: str
    sql: str
    page: int = Field(ge=0, le=UINT32_MAX)
    page_size: int = Field(ge=0, le=UINT32_MAX)

@app.post("/sqlite/query")
def runSqliteQuery(request: QueryRequest, registry: Registry):
    return execute_query(registry, request.connection_id, request.sql, request.page, request.page_size)

class SummaryRequest(CamelModel):
    connection_id: str

@app.post("/sqlite/schema_summary")
def sqliteSchemaSummary(request: SummaryRequest, registry: Registry):
    return schema_summary(registry, request.connection_id)

class TableSummaryRequest(CamelModel):
    connection_id: str
    table_name: str

@app.post("/sqlite/table_summary")
def sqliteTableSummary(request: TableSummaryRequest, registry: Registry):
    return table_summary(registry, request.connection_id, request.table_name)
