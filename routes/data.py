# ─────────────────────────────────────────────────────────────────
# routes/data.py - Generic Table Endpoints
#
# One set of routes serves every table in the Schema Registry:
#
#   POST   /api/data/{table}        → insert one entry
#   GET    /api/data/{table}?k=v    → query, optional &limit=n
#   PATCH  /api/data/{table}        → partial update (object or array)
#   PUT    /api/data/{table}        → full update, required fields enforced
#   DELETE /api/data/{table}/{id}   → delete by primary key
#
# These handlers only translate HTTP ↔ gateway calls. Validation
# failures are raised as AgroGoError subclasses and rendered by the
# exception handlers in main.py.
# ─────────────────────────────────────────────────────────────────

from typing import Any

from fastapi import APIRouter, Body, Depends, Request

from auth import current_user
from database import get_gateway, get_registry
from entries import require_fields
from errors import AgroGoError, InvalidLimit, NotFound
from gateway import EntryGateway
from models import TableDescriptor
from registry import SchemaRegistry

router = APIRouter(
    prefix="/api",
    tags=["Data"],
    dependencies=[Depends(current_user)],
)


def describe_or_404(registry: SchemaRegistry, table: str) -> TableDescriptor:
    descriptor = registry.describe(table)
    if descriptor is None:
        raise NotFound(f"Table {table} not found")
    return descriptor


def parse_limit(raw: str) -> int:
    try:
        limit = int(raw)
    except (TypeError, ValueError):
        raise InvalidLimit(f"limit must be a positive integer, got '{raw}'")
    if limit <= 0:
        raise InvalidLimit(f"limit must be a positive integer, got '{raw}'")
    return limit


# ─────────────────────────────────────────────────────────────────
# GET /api/tables - Names of every table the API exposes
# ─────────────────────────────────────────────────────────────────

@router.get("/tables")
def list_tables(registry: SchemaRegistry = Depends(get_registry)):
    return {"success": True, "data": registry.list_tables()}


# ─────────────────────────────────────────────────────────────────
# POST /api/data/{table} - Insert an entry
# ─────────────────────────────────────────────────────────────────

@router.post("/data/{table}", status_code=201)
def add_table_entry(
    table: str,
    body: Any = Body(...),
    registry: SchemaRegistry = Depends(get_registry),
    gateway: EntryGateway = Depends(get_gateway),
):
    describe_or_404(registry, table)
    row = gateway.insert(table, body)
    return {"success": True, "data": row}


# ─────────────────────────────────────────────────────────────────
# GET /api/data/{table} - Query entries
# ─────────────────────────────────────────────────────────────────

@router.get("/data/{table}")
def get_table_entries(
    table: str,
    request: Request,
    registry: SchemaRegistry = Depends(get_registry),
    gateway: EntryGateway = Depends(get_gateway),
):
    """
    Every query-string parameter except `limit` becomes an equality
    filter; all of them must hold. `limit` defaults to 100.
    """
    describe_or_404(registry, table)

    params = dict(request.query_params)
    limit = parse_limit(params.pop("limit")) if "limit" in params else None

    rows = gateway.query(table, params, limit)
    return {"success": True, "data": rows}


# ─────────────────────────────────────────────────────────────────
# PATCH /api/data/{table} - Partial update keyed by primary key
# ─────────────────────────────────────────────────────────────────

@router.patch("/data/{table}")
def edit_table_entry(
    table: str,
    body: Any = Body(...),
    registry: SchemaRegistry = Depends(get_registry),
    gateway: EntryGateway = Depends(get_gateway),
):
    describe_or_404(registry, table)
    return apply_update(gateway, table, body)


# ─────────────────────────────────────────────────────────────────
# PUT /api/data/{table} - Full update, required fields enforced
# ─────────────────────────────────────────────────────────────────

@router.put("/data/{table}")
def replace_table_entry(
    table: str,
    body: Any = Body(...),
    registry: SchemaRegistry = Depends(get_registry),
    gateway: EntryGateway = Depends(get_gateway),
):
    """
    Same as PATCH, but every field in the table's required list must
    be present. If any entry is incomplete nothing is written.
    """
    descriptor = describe_or_404(registry, table)

    if isinstance(body, list):
        require_fields(body, descriptor.required_fields, batch=True)
    elif isinstance(body, dict):
        require_fields([body], descriptor.required_fields)

    return apply_update(gateway, table, body)


def apply_update(gateway: EntryGateway, table: str, body: Any) -> dict[str, Any]:
    if isinstance(body, list):
        result = gateway.update_many(table, body)
        return result.to_response()

    if not isinstance(body, dict):
        raise AgroGoError("Body must be a JSON object or an array of objects")

    row = gateway.update_by_primary_key(table, body)
    return {"success": True, "updated": True, "data": row}


# ─────────────────────────────────────────────────────────────────
# DELETE /api/data/{table}/{row_id} - Delete by primary key
# ─────────────────────────────────────────────────────────────────

@router.delete("/data/{table}/{row_id}")
def delete_table_entry(
    table: str,
    row_id: str,
    registry: SchemaRegistry = Depends(get_registry),
    gateway: EntryGateway = Depends(get_gateway),
):
    describe_or_404(registry, table)
    row = gateway.delete_by_primary_key(table, row_id)
    return {"success": True, "deleted": True, "data": row}
