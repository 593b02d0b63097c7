# ─────────────────────────────────────────────────────────────────
# models.py - Data Models (Pydantic Schemas)
#
# Two kinds of shapes live here:
#   1. Table metadata (TableDescriptor / ColumnDescriptor) that the
#      Schema Registry hands out. Frozen: nothing may edit a table
#      description after startup.
#   2. Request bodies for the hand-written routes (login, zones,
#      pairing, sensor readings, email). The generic /api/data routes
#      take free-form JSON and validate it against a TableDescriptor
#      instead.
# ─────────────────────────────────────────────────────────────────

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class SemanticType(str, Enum):
    TEXT = "text"
    INTEGER = "integer"
    TIMESTAMP = "timestamp"
    ENUM = "enum"


class DefaultKind(str, Enum):
    NONE = "none"
    STATIC = "static"
    CONSTANT_TIMESTAMP = "constant-timestamp"
    RANDOM_IDENTIFIER = "random-identifier"


class ForeignKeyRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    table: str
    column: str


class ColumnDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: SemanticType
    nullable: bool = True
    default: DefaultKind = DefaultKind.NONE
    static_default: Optional[Any] = None
    enum_values: tuple[str, ...] = ()
    foreign_key: Optional[ForeignKeyRef] = None


class TableDescriptor(BaseModel):
    """
    Structural description of one table.

    `columns` keeps declaration order. `primary_key` names the column
    update/delete match on. `required_fields` is what a PUT body must
    contain. `order_by` is the column queries sort by (descending)
    when the caller does not ask for another one.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    columns: tuple[ColumnDescriptor, ...]
    primary_key: str = "id"
    required_fields: tuple[str, ...] = ()
    order_by: Optional[str] = None

    @property
    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]

    def column(self, name: str) -> Optional[ColumnDescriptor]:
        for c in self.columns:
            if c.name == name:
                return c
        return None

    def has_column(self, name: str) -> bool:
        return self.column(name) is not None


class BatchResult(BaseModel):
    """Tally returned by a best-effort batch update."""

    valid_count: int = 0
    invalid_entries: list[dict[str, Any]] = Field(default_factory=list)

    def to_response(self) -> dict[str, Any]:
        return {
            "success": True,
            "validCount": self.valid_count,
            "invalidEntries": self.invalid_entries,
        }


class LoginRequest(BaseModel):
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    location: Optional[str] = None
    profileImage: Optional[str] = None


class ZoneCreate(BaseModel):
    """
    Body for POST /api/zones
    {
        "zoneName": "Back yard",
        "description": "Tomatoes and peppers"
    }
    """

    zoneName: str = Field(min_length=1)
    description: Optional[str] = None


class PairingRequest(BaseModel):
    raspiMac: str
    firstName: Optional[str] = None
    lastName: Optional[str] = None


class SensorReading(BaseModel):
    type: str
    value: Any


class SensorReadingsBatch(BaseModel):
    readings: list[SensorReading] = Field(min_length=1)


class EmailRequest(BaseModel):
    """Body for POST /api/sendEmail. `sender` falls back to the configured default."""

    recipient: str = Field(min_length=1)
    subject: str = Field(min_length=1)
    message: str = Field(min_length=1)
    sender: Optional[str] = None
