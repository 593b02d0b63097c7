# ─────────────────────────────────────────────────────────────────
# routes/users.py - Account Endpoints
#
#   POST /api/login        → make sure a user row exists for the caller
#   GET  /api/me/{table}   → the caller's own rows of a table
#   POST /api/zones        → create a zone owned by the caller
#   POST /api/pair         → attach a Raspberry Pi (by MAC) to the caller
# ─────────────────────────────────────────────────────────────────

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from auth import VerifiedUser, current_user
from database import get_gateway, get_registry
from errors import AgroGoError, InvalidMac, NotFound
from gateway import EntryGateway
from mac import normalize_mac
from models import LoginRequest, PairingRequest, ZoneCreate
from registry import SchemaRegistry
from routes.data import parse_limit

logger = logging.getLogger("routes")

router = APIRouter(prefix="/api", tags=["Users"])


def find_user(gateway: EntryGateway, user_id: str):
    rows = gateway.query("user", {"id": user_id}, 1)
    return rows[0] if rows else None


def ensure_user(gateway: EntryGateway, identity: VerifiedUser, profile: LoginRequest) -> tuple[dict, bool]:
    """Return (user row, created?) for the verified identity."""
    existing = find_user(gateway, identity.user_id)
    if existing is not None:
        return existing, False

    entry = {"id": identity.user_id, "email": identity.email or ""}
    entry.update(profile.model_dump(exclude_none=True))
    row = gateway.insert("user", entry)
    logger.info(f"👤 Created user record for uid={identity.user_id}")
    return row, True


# ─────────────────────────────────────────────────────────────────
# POST /api/login
# ─────────────────────────────────────────────────────────────────

@router.post("/login")
def login(
    profile: LoginRequest,
    identity: VerifiedUser = Depends(current_user),
    gateway: EntryGateway = Depends(get_gateway),
):
    """
    Called by the frontend right after the identity provider signs the
    user in. Creates the user row on first login (201), otherwise
    returns the stored record (200).
    """
    row, created = ensure_user(gateway, identity, profile)
    if created:
        return JSONResponse(status_code=201, content={"message": "Login successful", "user": row})
    return {"message": "User already exists", "user": row}


# ─────────────────────────────────────────────────────────────────
# GET /api/me/{table}
# ─────────────────────────────────────────────────────────────────

@router.get("/me/{table}")
def get_user_data_by_table(
    table: str,
    limit: Optional[str] = None,
    identity: VerifiedUser = Depends(current_user),
    registry: SchemaRegistry = Depends(get_registry),
    gateway: EntryGateway = Depends(get_gateway),
):
    """
    All of the caller's rows in `table`. Unlike /api/data there is no
    default cap; pass ?limit=n to get at most n rows.
    """
    descriptor = registry.describe(table)
    if descriptor is None:
        raise NotFound(f"Table {table} not found")

    if table == "user":
        condition = {"id": identity.user_id}
    elif descriptor.has_column("userId"):
        condition = {"userId": identity.user_id}
    else:
        raise AgroGoError(f"Table {table} is not scoped to a user")

    if limit is None:
        rows = gateway.query_all(table, condition)
    else:
        rows = gateway.query(table, condition, parse_limit(limit))
    return {"success": True, "table": table, "count": len(rows), "data": rows}


# ─────────────────────────────────────────────────────────────────
# POST /api/zones
# ─────────────────────────────────────────────────────────────────

@router.post("/zones", status_code=201)
def create_zone(
    zone: ZoneCreate,
    identity: VerifiedUser = Depends(current_user),
    gateway: EntryGateway = Depends(get_gateway),
):
    row = gateway.insert(
        "zone",
        {"userId": identity.user_id, "zoneName": zone.zoneName, "description": zone.description},
    )
    logger.info(f"🌱 Zone '{zone.zoneName}' created for uid={identity.user_id}")
    return {"zoneId": row["id"], "zoneName": row["zoneName"]}


# ─────────────────────────────────────────────────────────────────
# POST /api/pair
# ─────────────────────────────────────────────────────────────────

@router.post("/pair")
def pair_device(
    pairing: PairingRequest,
    identity: VerifiedUser = Depends(current_user),
    gateway: EntryGateway = Depends(get_gateway),
):
    """
    Flow:
    1. Normalize the MAC → 400 if it is not 12 hex digits
    2. Make sure the caller has a user row
    3. Store the MAC on that row and return the updated user
    """
    mac = normalize_mac(pairing.raspiMac)
    if mac is None:
        raise InvalidMac("Invalid raspiMac format. Expected 12 hex digits")

    profile = LoginRequest(firstName=pairing.firstName, lastName=pairing.lastName)
    ensure_user(gateway, identity, profile)

    user = gateway.update_by_primary_key("user", {"id": identity.user_id, "raspiMac": mac})
    logger.info(f"🔗 Paired device {mac} with uid={identity.user_id}")
    return {"message": "Device paired", "user": user}
