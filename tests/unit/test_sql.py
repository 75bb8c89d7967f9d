from __future__ import annotations

import json
from datetime import datetime
from decimal import Decimal

import pytest
from psycopg.types.json import Jsonb

from dbmapping import PK_MARKER, Column, FlatRecord, OrderByClause, UInt, WhereClause
from dbmapping.errors import InvalidClauseError, NoPrimaryKeyError, StorageError, UnknownFieldError
from dbmapping.storage import sql
from dbmapping.storage.hydrate import hydrate

TABLE = "users"
COLUMNS = {
    column.name: column
    for column in [
        Column(name="id", type="BIGINT", primary_key=True),
        Column(name="name", type="VARCHAR(255)", comment="Display name"),
        Column(name="age", type="INTEGER", null=True, default="0"),
        Column(name="delivery_address", type="JSONB", null=True),
        Column(name="phones", type="TEXT[]", null=True),
    ]
}


@pytest.mark.parametrize(
    ("column_type", "category"),
    [
        ("VARCHAR(64)", sql.STRING),
        ("text", sql.STRING),
        ("BIGINT", sql.INTEGER),
        ("INTEGER", sql.INTEGER),
        ("NUMERIC(10,2)", sql.NUMERIC),
        ("DOUBLE PRECISION", sql.FLOAT),
        ("BOOLEAN", sql.BOOLEAN),
        ("TIMESTAMPTZ", sql.TEMPORAL),
        ("JSONB", sql.JSON),
        ("UUID", sql.UUID),
        ("TEXT[]", sql.ARRAY),
        ("GEOMETRY", sql.UNKNOWN),
    ],
)
def test_type_category(column_type, category):
    assert sql.type_category(column_type) == category


def test_create_table_sql():
    statements = sql.create_table_sql(TABLE, COLUMNS)

    assert statements[0] == (
        "CREATE TABLE IF NOT EXISTS users ("
        "id BIGINT NOT NULL, "
        "name VARCHAR(255) NOT NULL, "
        "age INTEGER NULL DEFAULT 0, "
        "delivery_address JSONB NULL, "
        "phones TEXT[] NULL, "
        "PRIMARY KEY (id))"
    )
    assert statements[1] == "COMMENT ON COLUMN users.name IS 'Display name'"


def test_create_table_requires_primary_key():
    columns = {"name": Column(name="name", type="TEXT")}

    with pytest.raises(NoPrimaryKeyError):
        sql.create_table_sql(TABLE, columns)


def test_insert_sql_skips_marker_and_wraps_json():
    doc = FlatRecord(
        id=1,
        name="Guilherme",
        delivery_address=FlatRecord({"id": 2, "city": "Berlin", PK_MARKER: "id"}),
    )
    doc[PK_MARKER] = "id"

    statement, params = sql.insert_sql(TABLE, COLUMNS, doc)

    assert statement == "INSERT INTO users (id, name, delivery_address) VALUES (%s, %s, %s)"
    assert params[:2] == [1, "Guilherme"]
    assert isinstance(params[2], Jsonb)
    assert params[2].obj == {"id": 2, "city": "Berlin"}


def test_insert_sql_upsert():
    statement, params = sql.insert_sql(TABLE, COLUMNS, {"id": 1, "name": "a"}, upsert=True)

    assert statement == (
        "INSERT INTO users (id, name) VALUES (%s, %s) "
        "ON CONFLICT (id) DO UPDATE SET name = EXCLUDED.name"
    )
    assert params == [1, "a"]


def test_insert_sql_upsert_with_only_key_does_nothing_on_conflict():
    statement, _ = sql.insert_sql(TABLE, COLUMNS, {"id": 1}, upsert=True)

    assert statement.endswith("ON CONFLICT (id) DO NOTHING")


def test_insert_sql_rejects_unknown_field():
    with pytest.raises(UnknownFieldError) as excinfo:
        sql.insert_sql(TABLE, COLUMNS, {"id": 1, "admin": True})

    assert excinfo.value.field == "admin"
    assert str(excinfo.value) == "Trying to add unknown field[admin]"


def test_insert_sql_rejects_empty_record():
    with pytest.raises(StorageError):
        sql.insert_sql(TABLE, COLUMNS, {PK_MARKER: "id"})


def test_update_sql_partitions_primary_key():
    doc = {"name": "b", "id": 7, "age": 30, PK_MARKER: "id"}

    statement, params = sql.update_sql(TABLE, COLUMNS, doc)

    assert statement == "UPDATE users SET name = %s, age = %s WHERE id = %s"
    assert params == ["b", 30, 7]


def test_update_sql_requires_key_and_assignments():
    with pytest.raises(StorageError, match="no primary key"):
        sql.update_sql(TABLE, COLUMNS, {"name": "b"})
    with pytest.raises(StorageError, match="nothing to assign"):
        sql.update_sql(TABLE, COLUMNS, {"id": 1})
    with pytest.raises(UnknownFieldError):
        sql.update_sql(TABLE, COLUMNS, {"id": 1, "email": "x"})


def test_select_sql_defaults_to_all_columns():
    statement, fields, params = sql.select_sql(TABLE, COLUMNS)

    assert statement == "SELECT id, name, age, delivery_address, phones FROM users"
    assert fields == list(COLUMNS)
    assert params == []


def test_select_sql_with_clauses():
    statement, fields, params = sql.select_sql(
        TABLE,
        COLUMNS,
        fields=["id", "name"],
        where=[WhereClause(field="age", operator=">=", value=18), WhereClause(field="name", value="x")],
        sort=[OrderByClause(field="age", direction="desc"), OrderByClause(field="id")],
        limit=10,
        offset=20,
    )

    assert statement == (
        "SELECT id, name FROM users WHERE age >= %s AND name = %s "
        "ORDER BY age DESC, id ASC LIMIT %s OFFSET %s"
    )
    assert fields == ["id", "name"]
    assert params == [18, "x", 10, 20]


@pytest.mark.parametrize(
    ("kwargs", "error"),
    [
        ({"fields": ["email"]}, UnknownFieldError),
        ({"where": [WhereClause(field="email", value=1)]}, UnknownFieldError),
        ({"where": [WhereClause(field="id", operator="LIKE", value=1)]}, InvalidClauseError),
        ({"sort": [OrderByClause(field="email")]}, UnknownFieldError),
        ({"sort": [OrderByClause(field="id", direction="SIDEWAYS")]}, InvalidClauseError),
        ({"limit": -1}, InvalidClauseError),
    ],
)
def test_select_sql_rejects_invalid_input(kwargs, error):
    with pytest.raises(error):
        sql.select_sql(TABLE, COLUMNS, **kwargs)


def test_hydrate_drops_nulls_and_restores_marker():
    doc = hydrate(COLUMNS, ["id", "name", "age"], (1, "a", None))

    assert doc == {"id": 1, "name": "a", PK_MARKER: "id"}
    assert doc.primary_key == "id"


def test_hydrate_rejects_unreadable_types():
    columns = {"shape": Column(name="shape", type="GEOMETRY")}

    with pytest.raises(StorageError, match=r"Cannot read type\[GEOMETRY\]"):
        hydrate(columns, ["shape"], ("POINT(0 0)",))


def test_insert_sql_json_column_serializes_rich_scalars():
    recorded_at = datetime(2024, 5, 1, 12, 30)
    doc = FlatRecord(
        id=1,
        delivery_address=FlatRecord(
            {"id": UInt(2), "updated_at": recorded_at, "fee": Decimal("4.50"), PK_MARKER: "id"}
        ),
    )

    _, params = sql.insert_sql(TABLE, COLUMNS, doc)
    wrapped = params[1]

    assert json.loads(wrapped.dumps(wrapped.obj)) == {
        "id": 2,
        "updated_at": "2024-05-01T12:30:00",
        "fee": "4.50",
    }
