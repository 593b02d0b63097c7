# ─────────────────────────────────────────────────────────────────
# conditions.py - Condition Builder
#
# Turns a flat {field: value} mapping (usually the query string of
# GET /api/data/{table}) into a Condition: a dict of column → value
# that rows must ALL equal.
#
# Limitation: equality only. There is no OR, no ranges and no
# partial text match.
# ─────────────────────────────────────────────────────────────────

from typing import Any, Mapping, Optional

from sqlalchemy import Table, and_

from errors import UnknownColumn
from models import ColumnDescriptor, SemanticType, TableDescriptor

Condition = dict[str, Any]


def coerce_value(column: ColumnDescriptor, value: Any) -> Any:
    """
    Best-effort conversion of an incoming value to the column's type.

    Query strings only carry text, so "3" becomes 3 for integer
    columns. Values that cannot be converted are passed through as-is.
    """
    if value is None:
        return None

    if column.type == SemanticType.INTEGER:
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, (int, float)):
            return int(value) if float(value).is_integer() else value
        try:
            return int(str(value).strip())
        except ValueError:
            return value

    if isinstance(value, (dict, list)):
        return value

    # JSON spelling, not Python's "True"/"False"
    if isinstance(value, bool):
        return "true" if value else "false"

    return str(value)


def build_condition(descriptor: TableDescriptor, params: Optional[Mapping[str, Any]]) -> Condition:
    """Validate every key against the table's columns and coerce its value."""
    condition: Condition = {}
    for key, value in (params or {}).items():
        column = descriptor.column(key)
        if column is None:
            raise UnknownColumn(descriptor.name, key)
        condition[key] = coerce_value(column, value)
    return condition


def where_clause(table: Table, condition: Optional[Condition]):
    """
    Build the WHERE clause for a Condition.

    Returns None for an empty condition (match all), the single
    equality clause for one key, and an AND of all clauses otherwise.
    """
    if not condition:
        return None

    clauses = []
    for key, value in condition.items():
        column = table.c[key]
        clauses.append(column.is_(None) if value is None else column == value)

    return clauses[0] if len(clauses) == 1 else and_(*clauses)
