# ─────────────────────────────────────────────────────────────────
# routes/devices.py - Raspberry Pi Endpoints
#
# Called by the garden hardware itself, which has no user token.
# A device identifies itself by its MAC address; the MAC is mapped
# to the user who paired it through POST /api/pair.
#
#   GET  /raspi/{mac}/pairingStatus   → is this device paired?
#   POST /raspi/{mac}/sensorReadings  → store temperature/humidity
#   GET  /raspi/{mac}/pinActionTable  → fan + water schedule per GPIO pin
# ─────────────────────────────────────────────────────────────────

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from database import get_gateway
from errors import InvalidMac, InvalidSchedule, NotFound
from gateway import EntryGateway
from mac import normalize_mac
from models import SensorReadingsBatch

logger = logging.getLogger("routes")

router = APIRouter(prefix="/raspi", tags=["Devices"])

# GPIO pins the relays are wired to
FAN_PIN = 17
WATER_PINS = (27, 22, 23)


def user_for_mac(gateway: EntryGateway, raw_mac: str) -> Optional[dict]:
    mac = normalize_mac(raw_mac)
    if mac is None:
        raise InvalidMac(f"Invalid MAC address '{raw_mac}'")
    rows = gateway.query("user", {"raspiMac": mac}, 1)
    return rows[0] if rows else None


def require_user_for_mac(gateway: EntryGateway, raw_mac: str) -> dict:
    user = user_for_mac(gateway, raw_mac)
    if user is None:
        raise NotFound(f"No user paired with device {raw_mac}")
    return user


def duration_minutes(time_on: str, time_off: str) -> int:
    """Minutes between two "HH:MM" times on the same day."""
    return clock_minutes(time_off) - clock_minutes(time_on)


def clock_minutes(value: str) -> int:
    try:
        hours, minutes = (int(part) for part in str(value).split(":")[:2])
    except ValueError:
        raise InvalidSchedule(f"Invalid schedule time '{value}', expected HH:MM")
    return hours * 60 + minutes


@router.get("/{mac}/pairingStatus")
def pairing_status(mac: str, gateway: EntryGateway = Depends(get_gateway)):
    user = user_for_mac(gateway, mac)
    if user is None:
        return {"success": True, "paired": False, "message": "No user found with this MAC address"}
    return {"success": True, "paired": True, "user": user["id"]}


@router.post("/{mac}/sensorReadings")
def post_sensor_readings(
    mac: str,
    batch: SensorReadingsBatch,
    gateway: EntryGateway = Depends(get_gateway),
):
    """Store the whole batch or, if any reading is rejected, none of it."""
    user = require_user_for_mac(gateway, mac)

    rows = gateway.insert_many(
        "tempAndHumidity",
        [{"userId": user["id"], "type": reading.type, "value": reading.value} for reading in batch.readings],
    )
    inserted = len(rows)

    logger.info(f"🌡️  {inserted} readings stored for device {mac}")
    return {"success": True, "inserted": inserted}


@router.get("/{mac}/pinActionTable")
def pin_action_table(mac: str, gateway: EntryGateway = Depends(get_gateway)):
    """
    Build the schedule the device runs locally: one fan entry and up
    to three water entries, each bound to its GPIO pin. Water
    schedules are assigned to pins in order of their `type`.
    """
    user = require_user_for_mac(gateway, mac)

    actions = []

    fan_schedules = gateway.query("fanSchedule", {"userId": user["id"]}, 1)
    if fan_schedules:
        fan = fan_schedules[0]
        try:
            duration = duration_minutes(fan["timeOn"], fan["timeOff"])
        except InvalidSchedule as e:
            raise InvalidSchedule(f"fanSchedule {fan['id']}: {e.message}")
        actions.append({
            "type": "fan",
            "pin": FAN_PIN,
            "time": fan["timeOn"],
            "duration": duration,
        })

    water_schedules = gateway.query("waterSchedule", {"userId": user["id"]}, len(WATER_PINS), order_by="type")
    for number, (pin, schedule) in enumerate(zip(WATER_PINS, water_schedules), start=1):
        actions.append({
            "type": f"water{number}",
            "pin": pin,
            "time": schedule["time"],
            "duration": schedule["duration"],
        })

    return {"success": True, "data": actions}
