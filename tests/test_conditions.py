import pytest

from conditions import build_condition, where_clause
from entries import build_entry, require_fields
from errors import IncompleteEntry, InvalidValue, UnknownColumn
from schema import alert, user


def test_empty_params_match_everything(registry):
    condition = build_condition(registry.describe("user"), {})

    assert condition == {}
    assert where_clause(user, condition) is None


def test_unknown_key_is_rejected(registry):
    with pytest.raises(UnknownColumn) as exc:
        build_condition(registry.describe("user"), {"email": "a@b.com", "age": "3"})

    assert exc.value.column == "age"


def test_values_are_coerced_to_column_type(registry):
    condition = build_condition(registry.describe("plantInventory"), {"quantity": "7", "plantName": 12})

    assert condition == {"quantity": 7, "plantName": "12"}


def test_unparseable_integer_is_passed_through(registry):
    condition = build_condition(registry.describe("plantInventory"), {"quantity": "lots"})

    assert condition == {"quantity": "lots"}


def test_single_clause_is_not_wrapped_in_and():
    clause = where_clause(alert, {"status": "unhandled"})

    assert " AND " not in str(clause)
    assert "status" in str(clause)


def test_multiple_clauses_are_joined_with_and():
    clause = where_clause(alert, {"status": "unhandled", "severity": "high"})

    sql = str(clause)
    assert " AND " in sql
    assert " OR " not in sql


def test_none_value_becomes_is_null():
    assert "IS NULL" in str(where_clause(user, {"raspiMac": None}))


def test_build_entry_rejects_bad_enum_value(registry):
    with pytest.raises(InvalidValue) as exc:
        build_entry(registry.describe("alert"), {"severity": "apocalyptic"})

    assert exc.value.details["allowed"] == ["low", "medium", "high", "error"]


def test_require_fields_single_entry_lists_missing_fields():
    with pytest.raises(IncompleteEntry) as exc:
        require_fields([{"email": "a@b.com", "firstName": "A"}], ["email", "firstName", "lastName"])

    assert exc.value.details == {"missingFields": ["lastName"]}


def test_require_fields_batch_itemizes_entries():
    good = {"email": "a@b.com"}
    bad = {"firstName": "A"}

    with pytest.raises(IncompleteEntry) as exc:
        require_fields([good, bad], ["email"], batch=True)

    assert exc.value.details["invalidEntries"] == [{"entry": bad, "missing": ["email"]}]


def test_build_entry_rejects_non_integer_for_integer_column(registry):
    descriptor = registry.describe("plantInventory")

    assert build_entry(descriptor, {"quantity": "12"}) == {"quantity": 12}
    with pytest.raises(InvalidValue):
        build_entry(descriptor, {"quantity": "lots"})
    with pytest.raises(InvalidValue):
        build_entry(descriptor, {"quantity": 2.5})


def test_booleans_use_json_spelling_for_text_columns(registry):
    condition = build_condition(registry.describe("user"), {"location": True, "firstName": False})

    assert condition == {"location": "true", "firstName": "false"}
