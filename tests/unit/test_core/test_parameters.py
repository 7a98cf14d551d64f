"""Unit tests for parameter storage and literal rendering."""

from datetime import date, datetime, time
from decimal import Decimal

import pytest

from elasticsql.core.parameters import (
    Parameter,
    ParameterKind,
    ParameterStore,
    format_temporal,
    infer_parameter_kind,
    render_literal,
)
from elasticsql.exceptions import ParameterError


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (True, ParameterKind.BOOLEAN),
        (42, ParameterKind.BIGINT),
        (2**64, ParameterKind.DECIMAL),
        (1.5, ParameterKind.DOUBLE),
        (Decimal("1.10"), ParameterKind.DECIMAL),
        ("text", ParameterKind.STRING),
        (datetime(2024, 1, 2, 3, 4, 5), ParameterKind.TIMESTAMP),
        (date(2024, 1, 2), ParameterKind.DATE),
        (time(3, 4, 5), ParameterKind.TIME),
        (None, ParameterKind.NULL),
        (["a", "b"], ParameterKind.OBJECT),
    ],
)
def test_infer_parameter_kind(value: object, expected: ParameterKind) -> None:
    assert infer_parameter_kind(value) is expected


def test_snapshot_is_ordered_by_index_regardless_of_setter_order() -> None:
    store = ParameterStore()
    store.set_string(3, "c")
    store.set_int(1, 10)
    store.set_boolean(2, True)

    assert [p.index for p in store.snapshot()] == [1, 2, 3]
    assert store.values() == (10, True, "c")


def test_resetting_an_index_overwrites_it() -> None:
    store = ParameterStore()
    store.set_int(1, 10)
    store.set_string(1, "replaced")

    assert len(store) == 1
    assert store.get(1) == Parameter(1, ParameterKind.STRING, "replaced")


def test_snapshot_is_not_affected_by_later_changes() -> None:
    store = ParameterStore()
    store.set_int(1, 10)
    snapshot = store.snapshot()

    store.set_int(1, 20)
    store.set_int(2, 30)

    assert snapshot == (Parameter(1, ParameterKind.INTEGER, 10),)


def test_clear_removes_every_parameter() -> None:
    store = ParameterStore()
    store.set(1, "a")
    store.set(2, "b")
    store.clear()

    assert len(store) == 0
    assert 1 not in store
    assert store.snapshot() == ()


@pytest.mark.parametrize("index", [0, -1, True, "1", 1.0])
def test_invalid_index_is_rejected(index: object) -> None:
    store = ParameterStore()
    with pytest.raises(ParameterError, match="positive integer"):
        store.set(index, "x")  # type: ignore[arg-type]


@pytest.mark.parametrize(
    ("setter", "value"),
    [
        ("set_byte", 128),
        ("set_byte", -129),
        ("set_short", 2**15),
        ("set_int", 2**31),
        ("set_long", 2**63),
    ],
)
def test_integer_setters_check_their_width(setter: str, value: int) -> None:
    store = ParameterStore()
    with pytest.raises(ParameterError, match="out of range") as exc_info:
        getattr(store, setter)(4, value)

    assert exc_info.value.index == 4
    assert "(parameter index: 4)" in str(exc_info.value)


def test_integer_setter_rejects_non_integers() -> None:
    store = ParameterStore()
    with pytest.raises(ParameterError):
        store.set_int(1, True)
    with pytest.raises(ParameterError):
        store.set_int(1, 1.5)  # type: ignore[arg-type]


@pytest.mark.parametrize(
    ("setter", "value"),
    [
        ("set_float", float("nan")),
        ("set_double", float("inf")),
        ("set_double", float("-inf")),
        ("set", float("nan")),
        ("set_decimal", Decimal("NaN")),
        ("set", Decimal("Infinity")),
    ],
)
def test_non_finite_numbers_are_rejected(setter: str, value: object) -> None:
    store = ParameterStore()
    with pytest.raises(ParameterError, match="non-finite") as exc_info:
        getattr(store, setter)(2, value)

    assert exc_info.value.index == 2
    assert len(store) == 0


def test_typed_setters_tag_their_kind() -> None:
    store = ParameterStore()
    store.set_byte(1, 1)
    store.set_short(2, 2)
    store.set_int(3, 3)
    store.set_long(4, 4)
    store.set_float(5, 5)
    store.set_double(6, 6)
    store.set_decimal(7, "7.5")
    store.set_null(8)

    kinds = [p.kind for p in store.snapshot()]
    assert kinds == [
        ParameterKind.TINYINT,
        ParameterKind.SMALLINT,
        ParameterKind.INTEGER,
        ParameterKind.BIGINT,
        ParameterKind.FLOAT,
        ParameterKind.DOUBLE,
        ParameterKind.DECIMAL,
        ParameterKind.NULL,
    ]
    assert store.get(7).value == Decimal("7.5")  # type: ignore[union-attr]


def test_set_decimal_rejects_garbage() -> None:
    store = ParameterStore()
    with pytest.raises(ParameterError, match="decimal"):
        store.set_decimal(1, "not a number")


def test_set_string_none_is_null() -> None:
    store = ParameterStore()
    store.set_string(1, None)  # type: ignore[arg-type]
    assert store.get(1).kind is ParameterKind.NULL  # type: ignore[union-attr]


def test_temporal_setters_check_types() -> None:
    store = ParameterStore()
    with pytest.raises(ParameterError):
        store.set_date(1, "2024-01-01")  # type: ignore[arg-type]
    with pytest.raises(ParameterError):
        store.set_time(1, "10:00")  # type: ignore[arg-type]
    with pytest.raises(ParameterError):
        store.set_timestamp(1, 0)  # type: ignore[arg-type]


# Literal rendering
@pytest.mark.parametrize(
    ("kind", "value", "expected"),
    [
        (ParameterKind.BOOLEAN, True, "true"),
        (ParameterKind.BOOLEAN, False, "false"),
        (ParameterKind.TINYINT, 7, "7"),
        (ParameterKind.BIGINT, -9000000000, "-9000000000"),
        (ParameterKind.DOUBLE, 1.5, "1.5"),
        (ParameterKind.FLOAT, 0.1, "0.1"),
        (ParameterKind.DECIMAL, Decimal("1E+3"), "1000"),
        (ParameterKind.DECIMAL, Decimal("12.50"), "12.50"),
        (ParameterKind.STRING, "abc", "'abc'"),
        (ParameterKind.NULL, None, "NULL"),
        (ParameterKind.OBJECT, ["a"], "['a']"),
    ],
)
def test_render_literal(kind: ParameterKind, value: object, expected: str) -> None:
    assert render_literal(Parameter(1, kind, value)) == expected


def test_render_string_does_not_escape_quotes_by_default() -> None:
    assert render_literal(Parameter(1, ParameterKind.STRING, "O'Brien")) == "'O'Brien'"


def test_render_string_doubles_quotes_when_escaping() -> None:
    parameter = Parameter(1, ParameterKind.STRING, "O'Brien")
    assert render_literal(parameter, escape_strings=True) == "'O''Brien'"


def test_render_temporal_values_share_one_pattern() -> None:
    assert render_literal(Parameter(1, ParameterKind.DATE, date(2024, 3, 9))) == "'2024-03-09 00:00:00'"
    assert render_literal(Parameter(1, ParameterKind.TIME, time(13, 5, 1))) == "'1970-01-01 13:05:01'"
    assert (
        render_literal(Parameter(1, ParameterKind.TIMESTAMP, datetime(2024, 3, 9, 13, 5, 1)))
        == "'2024-03-09 13:05:01'"
    )


def test_render_temporal_honours_custom_format() -> None:
    parameter = Parameter(1, ParameterKind.DATE, date(2024, 3, 9))
    assert render_literal(parameter, date_format="%d/%m/%Y") == "'09/03/2024'"


def test_set_date_and_set_object_render_identically() -> None:
    store = ParameterStore()
    value = date(2023, 12, 31)
    store.set_date(1, value)
    store.set_object(2, value)

    first, second = store.snapshot()
    assert render_literal(first) == render_literal(second)


def test_set_timestamp_and_set_object_render_identically() -> None:
    store = ParameterStore()
    value = datetime(2023, 12, 31, 23, 59, 58)
    store.set_timestamp(1, value)
    store.set_object(2, value)

    first, second = store.snapshot()
    assert render_literal(first) == render_literal(second)


def test_format_temporal_without_quotes() -> None:
    assert format_temporal(date(2020, 2, 29)) == "2020-02-29 00:00:00"


def test_every_kind_renders() -> None:
    samples = {
        ParameterKind.BOOLEAN: True,
        ParameterKind.TINYINT: 1,
        ParameterKind.SMALLINT: 1,
        ParameterKind.INTEGER: 1,
        ParameterKind.BIGINT: 1,
        ParameterKind.FLOAT: 1.0,
        ParameterKind.DOUBLE: 1.0,
        ParameterKind.DECIMAL: Decimal(1),
        ParameterKind.STRING: "s",
        ParameterKind.DATE: date(2000, 1, 1),
        ParameterKind.TIME: time(0, 0),
        ParameterKind.TIMESTAMP: datetime(2000, 1, 1),
        ParameterKind.NULL: None,
        ParameterKind.OBJECT: object(),
    }
    assert set(samples) == set(ParameterKind)
    for kind, value in samples.items():
        assert isinstance(render_literal(Parameter(1, kind, value)), str)
