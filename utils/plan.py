import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlalchemy import Connection
from sqlalchemy.exc import SQLAlchemyError

from utils.errors import PlanExplainError
from utils.schema import AccessKind, PlanTableInfo

logger = logging.getLogger(__name__)

# EXPLAIN QUERY PLAN detail is free text ("SCAN TABLE t" before 3.36, "SCAN t",
# "SEARCH t USING INDEX ..."), parsed below on a best-effort basis.
# Since 3.36 aliased tables are reported by alias ("SCAN a" for "t AS a"), so they
# get no row count and add nothing to the estimate.
INTERNAL_TABLE_PREFIX = "sqlite_"
NO_FULL_SCAN_INSIGHT = "Plan analyzed with no obvious full scans"
# the estimate is reported as an unsigned 64-bit value
ROWS_ESTIMATE_MAX = 2**64 - 1

_SEARCH = re.compile(r"SEARCH ", re.IGNORECASE)
_SCAN = re.compile(r"SCAN ", re.IGNORECASE)
_TABLE_KEYWORD = "TABLE "
_QUOTES = ('"', "'")


@dataclass
class PlanAnalysis:
    insights: List[str] = field(default_factory=list)
    # table -> access kind, in the order tables were first seen
    table_access: Dict[str, AccessKind] = field(default_factory=dict)


def classify_step(step: str) -> AccessKind:
    if _SEARCH.search(step):
        return "SEARCH"
    if _SCAN.search(step):
        return "SCAN"
    return "UNKNOWN"


def extract_table_name(step: str) -> Optional[str]:
    # name after the first SEARCH or SCAN (SCAN wins), past an optional TABLE keyword
    start = None
    search = _SEARCH.search(step)
    if search:
        start = search.end()
    scan = _SCAN.search(step)
    if scan:
        start = scan.end()
    if start is None:
        return None

    while start < len(step) and step[start].isspace():
        start += 1
    if step[start:start + len(_TABLE_KEYWORD)].upper() == _TABLE_KEYWORD:
        start += len(_TABLE_KEYWORD)

    if start < len(step) and step[start] in _QUOTES:
        quote = step[start]
        end = step.find(quote, start + 1)
        name = step[start + 1:] if end == -1 else step[start + 1:end]
    else:
        end = start
        while end < len(step) and (step[end].isalnum() or step[end] == "_"):
            end += 1
        name = step[start:end]
    return name or None


def analyze_plan(plan_steps: List[str]) -> PlanAnalysis:
    # a table seen in a SCAN step stays SCAN
    analysis = PlanAnalysis()
    for step in plan_steps:
        upper = step.upper()
        if "USING INDEX" in upper:
            analysis.insights.append(f"Index used: {step}")
        if "SCAN " in upper and "SEARCH " not in upper:
            analysis.insights.append(f"Full scan: {step}")

        table = extract_table_name(step)
        if table is None:
            continue
        if analysis.table_access.get(table) != "SCAN":
            analysis.table_access[table] = classify_step(step)

    if not analysis.insights and plan_steps:
        analysis.insights.append(NO_FULL_SCAN_INSIGHT)
    return analysis


def explain_query_plan(connection: Connection, sql: str) -> List[str]:
    try:
        result = connection.exec_driver_sql(f"EXPLAIN QUERY PLAN {sql}")
        # columns: id, parent, notused, detail
        return [row[3] for row in result]
    except SQLAlchemyError as e:
        raise PlanExplainError.wrap(e) from e


def count_table_rows(connection: Connection, table: str) -> Optional[int]:
    quoted = table.replace('"', "")
    try:
        return connection.exec_driver_sql(f'SELECT COUNT(*) FROM "{quoted}"').scalar()
    except SQLAlchemyError as e:
        logger.debug("Row count unavailable for %s: %s", table, e)
        return None


def describe_plan(connection: Connection, sql: str) -> dict:
    plan_steps = explain_query_plan(connection, sql)
    analysis = analyze_plan(plan_steps)

    plan_tables: List[PlanTableInfo] = []
    rows_scanned_estimate = 0
    for table, access in analysis.table_access.items():
        if table.startswith(INTERNAL_TABLE_PREFIX):
            continue
        total_rows = count_table_rows(connection, table)
        if access == "SCAN" and total_rows is not None:
            rows_scanned_estimate = min(rows_scanned_estimate + total_rows, ROWS_ESTIMATE_MAX)
        plan_tables.append(PlanTableInfo(table=table, access=access, total_rows=total_rows))

    return {
        "plan_steps": plan_steps,
        "insights": analysis.insights,
        "plan_tables": plan_tables or None,
        "rows_scanned_estimate": rows_scanned_estimate,
    }
