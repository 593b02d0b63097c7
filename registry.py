# ─────────────────────────────────────────────────────────────────
# registry.py - Schema Registry
#
# Maps a table name (as it appears in the URL) to:
#   - a TableDescriptor, the structural metadata routes validate against
#   - the SQLAlchemy Table the gateway queries
#
# Built once from schema.metadata. There is no way to add or remove
# a table afterwards; an unknown name simply yields None so routes
# can answer 404.
# ─────────────────────────────────────────────────────────────────

import logging
from types import MappingProxyType
from typing import Optional

from sqlalchemy import Enum, Integer, MetaData, Table

from models import ColumnDescriptor, DefaultKind, ForeignKeyRef, SemanticType, TableDescriptor

logger = logging.getLogger("registry")


def describe_column(column) -> ColumnDescriptor:
    semantic = SemanticType.TEXT
    enum_values: tuple[str, ...] = ()
    default = DefaultKind.NONE
    static_default = None

    if isinstance(column.type, Enum):
        semantic = SemanticType.ENUM
        enum_values = tuple(column.type.enums)
    elif isinstance(column.type, Integer):
        semantic = SemanticType.INTEGER

    if column.server_default is not None:
        # Only "created at" style columns carry a server default
        semantic = SemanticType.TIMESTAMP
        default = DefaultKind.CONSTANT_TIMESTAMP
    elif column.default is not None:
        if column.default.is_callable:
            default = DefaultKind.RANDOM_IDENTIFIER
        else:
            default = DefaultKind.STATIC
            static_default = column.default.arg

    foreign_key = None
    for fk in column.foreign_keys:
        target_table, target_column = fk.target_fullname.rsplit(".", 1)
        foreign_key = ForeignKeyRef(table=target_table, column=target_column)

    return ColumnDescriptor(
        name=column.key,
        type=semantic,
        nullable=bool(column.nullable) and not column.primary_key,
        default=default,
        static_default=static_default,
        enum_values=enum_values,
        foreign_key=foreign_key,
    )


def describe_table(table: Table) -> TableDescriptor:
    primary_keys = [c.key for c in table.primary_key.columns]
    if len(primary_keys) != 1:
        raise ValueError(f"Table {table.name} must declare exactly one primary key column")

    return TableDescriptor(
        name=table.name,
        columns=tuple(describe_column(c) for c in table.columns),
        primary_key=primary_keys[0],
        required_fields=tuple(table.info.get("required", ())),
        order_by=table.info.get("order_by"),
    )


class SchemaRegistry:
    """Read-only lookup of table descriptors by name."""

    def __init__(self, metadata: MetaData):
        descriptors = {}
        tables = {}
        for table in metadata.sorted_tables:
            descriptors[table.name] = describe_table(table)
            tables[table.name] = table

        self._descriptors = MappingProxyType(descriptors)
        self._tables = MappingProxyType(tables)

        logger.info(f"📚 Schema registry loaded with {len(descriptors)} tables: {', '.join(self.list_tables())}")

    def describe(self, table_name: str) -> Optional[TableDescriptor]:
        return self._descriptors.get(table_name)

    def table(self, table_name: str) -> Optional[Table]:
        return self._tables.get(table_name)

    def list_tables(self) -> list[str]:
        return sorted(self._descriptors)

    def __contains__(self, table_name: str) -> bool:
        return table_name in self._descriptors
