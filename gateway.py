# ─────────────────────────────────────────────────────────────────
# gateway.py - Entry Gateway
#
# The ONLY module that talks to the database. Routes and the email
# job go through these operations:
#
#   insert                  → add one row, return it with defaults filled
#   insert_many             → add several rows, all or nothing
#   query                   → equality-filtered select, limited
#   query_all               → same filter, every matching row
#   update_by_primary_key   → patch exactly one row, return its new state
#   delete_by_primary_key   → remove exactly one row, return what it was
#   update_many             → best-effort batch of updates with a tally
#
# Update and delete first look up rows matching the key and refuse
# to touch anything unless exactly ONE row matches. The lookup and
# the write are not isolated from other requests: two concurrent
# updates to the same row resolve as last-write-wins.
# ─────────────────────────────────────────────────────────────────

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional

from sqlalchemy import Table, select
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from conditions import Condition, build_condition, coerce_value, where_clause
from entries import Entry, build_entry
from errors import (
    AgroGoError,
    AmbiguousMatch,
    InsertFailed,
    InvalidLimit,
    MissingPrimaryKey,
    NoMatch,
    NotFound,
    UnknownColumn,
)
from models import BatchResult, DefaultKind, TableDescriptor
from registry import SchemaRegistry
from schema import new_id

logger = logging.getLogger("gateway")

DEFAULT_LIMIT = 100

REASON_MISSING_PRIMARY_KEY = "missing primary key"
REASON_NO_MATCH = "no match"
REASON_AMBIGUOUS = "ambiguous match"


def current_timestamp() -> str:
    # Same text format SQLite's CURRENT_TIMESTAMP produces
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


class EntryGateway:
    def __init__(self, engine: Engine, registry: SchemaRegistry):
        self.engine = engine
        self.registry = registry

    # ── helpers ───────────────────────────────────────────────────

    def _resolve(self, table_name: str) -> tuple[TableDescriptor, Table]:
        descriptor = self.registry.describe(table_name)
        table = self.registry.table(table_name)
        if descriptor is None or table is None:
            raise NotFound(f"Table {table_name} not found")
        return descriptor, table

    @staticmethod
    def _to_dict(table: Table, row) -> dict[str, Any]:
        return {column.key: row._mapping[column] for column in table.columns}

    @staticmethod
    def _apply_defaults(descriptor: TableDescriptor, entry: Entry) -> Entry:
        materialized = dict(entry)
        for column in descriptor.columns:
            if materialized.get(column.name) is not None:
                continue
            if column.default == DefaultKind.RANDOM_IDENTIFIER:
                materialized[column.name] = new_id()
            elif column.default == DefaultKind.CONSTANT_TIMESTAMP:
                materialized[column.name] = current_timestamp()
            elif column.default == DefaultKind.STATIC and column.name not in materialized:
                materialized[column.name] = column.static_default
        return materialized

    def _fetch_matches(self, conn: Connection, table: Table, key: str, value: Any) -> list:
        # Two rows are enough to tell "exactly one" from "ambiguous"
        stmt = select(table).where(table.c[key] == value).limit(2)
        return conn.execute(stmt).all()

    def _match_key(self, descriptor: TableDescriptor, primary_key: Optional[str]) -> str:
        key = primary_key or descriptor.primary_key
        if not descriptor.has_column(key):
            raise UnknownColumn(descriptor.name, key)
        return key

    def _single_match(self, conn: Connection, descriptor: TableDescriptor, table: Table, key: str, value: Any):
        matches = self._fetch_matches(conn, table, key, value)
        if not matches:
            raise NoMatch(f"No {descriptor.name} entry matches {key}={value}", {"reason": REASON_NO_MATCH})
        if len(matches) > 1:
            logger.error(f"🚨 {descriptor.name}.{key}={value} matched more than one row")
            raise AmbiguousMatch(
                f"More than one {descriptor.name} entry matches {key}={value}",
                {"reason": REASON_AMBIGUOUS},
            )
        return matches[0]

    def _select(
        self,
        descriptor: TableDescriptor,
        table: Table,
        params: Optional[Mapping[str, Any]],
        order_by: Optional[str],
    ):
        condition: Condition = build_condition(descriptor, params)

        stmt = select(table)
        clause = where_clause(table, condition)
        if clause is not None:
            stmt = stmt.where(clause)

        if order_by:
            descending = order_by.startswith("-")
            column_name = order_by.lstrip("-")
            if not descriptor.has_column(column_name):
                raise UnknownColumn(descriptor.name, column_name)
            column = table.c[column_name]
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        elif descriptor.order_by:
            stmt = stmt.order_by(table.c[descriptor.order_by].desc())

        return stmt

    # ── operations ────────────────────────────────────────────────

    def insert(self, table_name: str, data: Mapping[str, Any]) -> dict[str, Any]:
        """
        Insert one entry and return the stored row.

        Omitted columns that declare a default get it here (random ids,
        "created at" timestamps, static values) so the caller receives
        the fully materialized row.
        """
        return self.insert_many(table_name, [data])[0]

    def insert_many(self, table_name: str, rows: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
        """
        Insert several entries in ONE transaction: either every entry
        is stored or none is. Every entry is validated before the
        first write.
        """
        descriptor, table = self._resolve(table_name)
        entries = [self._apply_defaults(descriptor, build_entry(descriptor, data)) for data in rows]
        pk = descriptor.primary_key

        stored = []
        try:
            with self.engine.begin() as conn:
                for entry in entries:
                    conn.execute(table.insert().values({table.c[k]: v for k, v in entry.items()}))
                    stored.append(conn.execute(select(table).where(table.c[pk] == entry[pk])).one())
        except IntegrityError as e:
            logger.exception(f"❌ Insert into {table_name} rejected by the store: {e.orig}")
            raise InsertFailed(table_name) from e

        if len(entries) == 1:
            logger.info(f"➕ Inserted {table_name} row {pk}={entries[0][pk]}")
        else:
            logger.info(f"➕ Inserted {len(entries)} {table_name} rows")
        return [self._to_dict(table, row) for row in stored]

    def query(
        self,
        table_name: str,
        condition: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
        order_by: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        """
        Select rows equal to every key/value of `condition`.

        `limit` defaults to 100. `order_by` names a column, prefixed
        with "-" for descending; without it the table's own sort column
        (if any) is used, newest first, otherwise store order.
        """
        if limit is None:
            limit = DEFAULT_LIMIT
        if limit <= 0:
            raise InvalidLimit(f"limit must be a positive integer, got {limit}")

        descriptor, table = self._resolve(table_name)
        stmt = self._select(descriptor, table, condition, order_by).limit(limit)

        with self.engine.connect() as conn:
            rows = conn.execute(stmt).all()

        return [self._to_dict(table, row) for row in rows]

    def query_all(
        self,
        table_name: str,
        condition: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        """Same as query() without a row limit."""
        descriptor, table = self._resolve(table_name)
        stmt = self._select(descriptor, table, condition, order_by)

        with self.engine.connect() as conn:
            rows = conn.execute(stmt).all()

        return [self._to_dict(table, row) for row in rows]

    def update_by_primary_key(
        self,
        table_name: str,
        data: Mapping[str, Any],
        primary_key: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Update the single row whose key equals the entry's key value.

        Flow:
        1. Entry must carry a non-null key → MissingPrimaryKey
        2. Look up matches → NoMatch (0) / AmbiguousMatch (>1)
        3. Apply the remaining fields
        4. Re-read and return the row as stored
        """
        descriptor, table = self._resolve(table_name)
        entry = build_entry(descriptor, data)
        key = self._match_key(descriptor, primary_key)

        key_value = entry.get(key)
        if key_value is None or key_value == "":
            raise MissingPrimaryKey(table_name, key)

        changes = {table.c[k]: v for k, v in entry.items() if k != key}
        pk_column = table.c[descriptor.primary_key]

        with self.engine.begin() as conn:
            match = self._single_match(conn, descriptor, table, key, key_value)
            row_id = match._mapping[pk_column]

            if changes:
                conn.execute(table.update().where(pk_column == row_id).values(changes))

            row = conn.execute(select(table).where(pk_column == row_id)).one()

        logger.info(f"✏️  Updated {table_name} row {descriptor.primary_key}={row_id} ({len(changes)} fields)")
        return self._to_dict(table, row)

    def delete_by_primary_key(self, table_name: str, row_id: Any) -> dict[str, Any]:
        descriptor, table = self._resolve(table_name)
        key = descriptor.primary_key
        if row_id is None or row_id == "":
            raise MissingPrimaryKey(table_name, key)

        row_id = coerce_value(descriptor.column(key), row_id)

        with self.engine.begin() as conn:
            match = self._single_match(conn, descriptor, table, key, row_id)
            conn.execute(table.delete().where(table.c[key] == row_id))

        logger.info(f"🗑️  Deleted {table_name} row {key}={row_id}")
        return self._to_dict(table, match)

    def update_many(
        self,
        table_name: str,
        entries: Iterable[Mapping[str, Any]],
        primary_key: Optional[str] = None,
    ) -> BatchResult:
        """
        Apply update_by_primary_key to every entry independently.

        There is no surrounding transaction: entries that succeed stay
        applied even when others fail. Failures are itemized as
        {"entry": ..., "reason": ...} in the returned tally.
        """
        self._resolve(table_name)
        result = BatchResult()

        for entry in entries:
            try:
                self.update_by_primary_key(table_name, entry, primary_key=primary_key)
            except MissingPrimaryKey:
                result.invalid_entries.append({"entry": entry, "reason": REASON_MISSING_PRIMARY_KEY})
            except NoMatch:
                result.invalid_entries.append({"entry": entry, "reason": REASON_NO_MATCH})
            except AmbiguousMatch:
                result.invalid_entries.append({"entry": entry, "reason": REASON_AMBIGUOUS})
            except UnknownColumn as e:
                result.invalid_entries.append({"entry": entry, "reason": f"unknown column: {e.column}"})
            except AgroGoError as e:
                result.invalid_entries.append({"entry": entry, "reason": e.message})
            except SQLAlchemyError:
                logger.exception(f"❌ Batch update of {table_name} failed for one entry")
                result.invalid_entries.append({"entry": entry, "reason": "update failed"})
            else:
                result.valid_count += 1

        logger.info(
            f"📦 Batch update on {table_name}: {result.valid_count} applied, "
            f"{len(result.invalid_entries)} rejected"
        )
        return result
