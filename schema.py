# ─────────────────────────────────────────────────────────────────
# schema.py - Table Declarations
#
# Single source of truth for every table the API can touch.
# Declared once at import time on one MetaData object; registry.py
# reads them to build the Schema Registry.
#
# Column keys are the camelCase field names the API speaks
# (e.g. "firstName"); the storage column names are snake_case.
#
# Table.info carries two per-table options:
#   required → fields a PUT body must contain
#   order_by → column every query sorts by, most recent first
# ─────────────────────────────────────────────────────────────────

import uuid

from sqlalchemy import Column, Enum, ForeignKey, Integer, MetaData, String, Table, text

metadata = MetaData()

CURRENT_TIMESTAMP = text("CURRENT_TIMESTAMP")

TEMP_AND_HUMIDITY_TYPES = ("humidity", "temperature")
ALERT_SEVERITIES = ("low", "medium", "high", "error")
ALERT_STATUSES = ("handled", "unhandled", "error")
YES_NO = ("Y", "N")


def new_id() -> str:
    return str(uuid.uuid4())


def id_column() -> Column:
    return Column("id", String, primary_key=True, default=new_id)


def created_at_column(name: str, key: str) -> Column:
    return Column(name, String, key=key, nullable=False, server_default=CURRENT_TIMESTAMP)


def enum_type(values, name: str) -> Enum:
    return Enum(*values, name=name, native_enum=False, create_constraint=False)


# Master list of authenticated users. The id is the identity provider's uid.
user = Table(
    "user",
    metadata,
    id_column(),
    created_at_column("created_at", "createdAt"),
    Column("location", String),
    Column("email", String, nullable=False),
    Column("first_name", String, key="firstName"),
    Column("last_name", String, key="lastName"),
    Column("raspi_mac", String, key="raspiMac"),
    Column("profile_image", String, key="profileImage"),
    Column("notifications_for_green_alerts", enum_type(YES_NO, "yes_no"), key="notificationsForGreenAlerts", default="N"),
    Column("notifications_for_blue_alerts", enum_type(YES_NO, "yes_no"), key="notificationsForBlueAlerts", default="N"),
    Column("notifications_for_red_alerts", enum_type(YES_NO, "yes_no"), key="notificationsForRedAlerts", default="Y"),
    info={"required": ["email", "firstName", "lastName"]},
)

# User-defined growing zones
zone = Table(
    "zone",
    metadata,
    id_column(),
    Column("user_id", String, ForeignKey("user.id"), key="userId", nullable=False),
    Column("zone_name", String, key="zoneName", nullable=False),
    created_at_column("created_at", "createdAt"),
    Column("description", String),
    info={"required": ["userId", "zoneName"]},
)

# Raw temperature / humidity readings pushed by the Raspberry Pi
temp_and_humidity = Table(
    "tempAndHumidity",
    metadata,
    id_column(),
    Column("userID", String, ForeignKey("user.id"), key="userId", nullable=False),
    Column("type", enum_type(TEMP_AND_HUMIDITY_TYPES, "temp_and_humidity_type"), nullable=False),
    created_at_column("received_at", "receivedAt"),
    Column("value", String, nullable=False),
    info={"required": ["userId", "type", "value"], "order_by": "receivedAt"},
)

water_schedule = Table(
    "waterSchedule",
    metadata,
    id_column(),
    Column("type", String),
    Column("userID", String, ForeignKey("user.id"), key="userId"),
    Column("scheduled_time", String, key="time", nullable=False),
    Column("duration", String),
    info={"required": ["userId", "time", "duration"]},
)

fan_schedule = Table(
    "fanSchedule",
    metadata,
    id_column(),
    Column("userID", String, ForeignKey("user.id"), key="userId"),
    Column("scheduled_time_on", String, key="timeOn", nullable=False),
    Column("scheduled_time_off", String, key="timeOff", nullable=False),
    Column("duration", String),
    info={"required": ["userId", "timeOn", "timeOff"]},
)

# Confirmations that a scheduled watering actually happened
water_log = Table(
    "waterLog",
    metadata,
    id_column(),
    Column("schedule_instance", String, ForeignKey("waterSchedule.id"), key="scheduleInstance"),
    Column("userID", String, ForeignKey("user.id"), key="userId"),
    Column("scheduled_time_on_confirm", String, key="timeOnConfirm", nullable=False),
    created_at_column("confirmed_at", "timeConfirmed"),
    info={"required": ["scheduleInstance", "timeOnConfirm"]},
)

fan_log = Table(
    "fanLog",
    metadata,
    id_column(),
    Column("schedule_instance", String, ForeignKey("fanSchedule.id"), key="scheduleInstance"),
    Column("userID", String, ForeignKey("user.id"), key="userId"),
    Column("scheduled_time_on_confirm", String, key="timeOnConfirm", nullable=False),
    Column("scheduled_time_off_confirm", String, key="timeOff", nullable=False),
    created_at_column("confirmed_at", "timeConfirmed"),
    info={"required": ["scheduleInstance", "timeOnConfirm", "timeOff"]},
)

# User-facing alerts; unhandled ones are emailed by timer.py
alert = Table(
    "alert",
    metadata,
    id_column(),
    Column("user_id", String, ForeignKey("user.id"), key="userId", nullable=False),
    Column("message", String, nullable=False),
    Column("severity", enum_type(ALERT_SEVERITIES, "alert_severity"), nullable=False),
    Column("status", enum_type(ALERT_STATUSES, "alert_status"), nullable=False),
    info={"required": ["userId", "message", "severity", "status"]},
)

plant_inventory = Table(
    "plantInventory",
    metadata,
    id_column(),
    Column("user_id", String, ForeignKey("user.id"), key="userId", nullable=False),
    Column("plant_type", String, key="plantType"),
    Column("plant_name", String, key="plantName"),
    Column("zone_id", String, ForeignKey("zone.id"), key="zoneId", nullable=False),
    Column("quantity", Integer),
    info={"required": ["userId", "zoneId", "plantName", "quantity"]},
)
