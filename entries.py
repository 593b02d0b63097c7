# ─────────────────────────────────────────────────────────────────
# entries.py - Entry Validation
#
# An Entry is one candidate row: {field: value}. Before any write,
# the gateway runs the raw JSON body through build_entry() so that
# unknown fields, non-integer values for integer columns and
# impossible enum values are refused up front. (Conditions are
# looser: an unparseable integer filter simply matches nothing.)
#
# Route policies:
#   POST  → permissive, only known columns are enforced
#   PATCH → permissive, partial entries are fine
#   PUT   → strict, every required field must be present
# ─────────────────────────────────────────────────────────────────

from typing import Any, Iterable, Mapping, Sequence

from conditions import coerce_value
from errors import AgroGoError, IncompleteEntry, InvalidValue, UnknownColumn
from models import SemanticType, TableDescriptor

Entry = dict[str, Any]


def build_entry(descriptor: TableDescriptor, data: Any) -> Entry:
    if not isinstance(data, Mapping):
        raise AgroGoError(f"Entry for table {descriptor.name} must be a JSON object")

    entry: Entry = {}
    for key, value in data.items():
        column = descriptor.column(key)
        if column is None:
            raise UnknownColumn(descriptor.name, key)

        value = coerce_value(column, value)
        if column.type == SemanticType.INTEGER and value is not None and not isinstance(value, int):
            raise InvalidValue(f"Invalid value '{value}' for {descriptor.name}.{key}, expected an integer")
        if column.type == SemanticType.ENUM and value is not None and value not in column.enum_values:
            raise InvalidValue(
                f"Invalid value '{value}' for {descriptor.name}.{key}",
                {"allowed": list(column.enum_values)},
            )
        entry[key] = value
    return entry


def missing_fields(entry: Mapping[str, Any], required: Iterable[str]) -> list[str]:
    return [field for field in required if field not in entry]


def require_fields(entries: Sequence[Mapping[str, Any]], required: Iterable[str], *, batch: bool = False) -> None:
    """
    Raise IncompleteEntry unless every entry carries every required field.

    A single entry reports `missingFields`; a batch reports every
    offending entry under `invalidEntries` so nothing is written.
    """
    required = list(required)
    invalid = []
    for entry in entries:
        missing = missing_fields(entry, required)
        if missing:
            invalid.append({"entry": entry, "missing": missing})

    if not invalid:
        return

    if not batch:
        raise IncompleteEntry(
            f"Missing required fields: {', '.join(invalid[0]['missing'])}",
            {"missingFields": invalid[0]["missing"]},
        )

    raise IncompleteEntry(
        f"{len(invalid)} of {len(entries)} entries are missing required fields",
        {"invalidEntries": invalid},
    )
