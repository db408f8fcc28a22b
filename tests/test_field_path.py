import pytest

from finboard.field_path import EMPTY, project, resolve, split_path, value_at

DOC = {
    "data": {"price": 42.5, "symbol": "BTC", "meta": {"open": True, "note": None}},
    "items": [{"id": 1, "name": "x"}, {"id": 2, "name": "y"}],
    "empty": [],
    "tags": ["a", "b"],
}


def test_resolve_nested_key():
    assert resolve({"a": {"b": 5}}, "a.b") == 5


def test_resolve_array_marker_takes_first_element():
    assert resolve(DOC, "items[].id") == 1
    assert resolve(DOC, "items[].name") == "x"


def test_resolve_missing_returns_empty_marker():
    assert resolve(DOC, "data.volume") == EMPTY
    assert resolve(DOC, "nothing.here.at.all") == EMPTY


def test_resolve_keeps_json_null_distinct_from_missing():
    assert resolve(DOC, "data.meta.note") is None
    assert resolve(DOC, "data.meta.note.deeper") == EMPTY


def test_empty_segments_are_skipped():
    assert resolve({"a": {"b": 5}}, ".a..b.") == 5
    assert split_path("..a...b.") == ["a", "b"]


def test_array_without_marker_is_opaque():
    assert resolve(DOC, "items") == DOC["items"]
    assert resolve(DOC, "items.id") == EMPTY


def test_marker_on_empty_array_leaves_value_unchanged():
    assert resolve(DOC, "empty[]") == []
    assert resolve(DOC, "empty[].id") == EMPTY


def test_marker_on_non_array_leaves_value_unchanged():
    assert resolve(DOC, "data[].price") == 42.5


def test_bare_marker_applies_to_root_array():
    doc = [{"id": 7}, {"id": 8}]
    assert resolve(doc, "[].id") == 7
    assert resolve(doc, "[]") == {"id": 7}


def test_digit_segment_outside_ascii_or_int_range_misses():
    doc = {"items": [1, 2]}
    assert resolve(doc, "items.1") == 2
    assert resolve(doc, "items.\u00b2") == EMPTY
    assert resolve(doc, "items." + "9" * 5000) == EMPTY
    assert project(doc, ["items.\u00b2"]) == {"items.\u00b2": EMPTY}


@pytest.mark.parametrize("document", [None, 0, 1.5, "text", True, [], {}, [1, 2], {"a": None}, {"a": [None]}, DOC])
@pytest.mark.parametrize("path", ["", ".", "a", "a.b", "a[]", "[]", "[].x", "a..b", "0", "a[].b[].c", "[][]", "data.price.x", "tags[].x", "a.\u00b2", "tags.\u0663", "tags." + "9" * 5000])
def test_resolution_never_raises(document, path):
    resolve(document, path)
    assert isinstance(value_at(document, path), str)


def test_value_at_serializes_for_display():
    assert value_at(DOC, "data.meta") == '{"open":true,"note":null}'
    assert value_at(DOC, "tags") == '["a","b"]'
    assert value_at(DOC, "data.meta.note") == "null"
    assert value_at(DOC, "data.meta.open") == "true"
    assert value_at(DOC, "data.price") == "42.5"
    assert value_at({"n": 5.0}, "n") == "5"
    assert value_at(DOC, "data.symbol") == "BTC"
    assert value_at(DOC, "data.missing") == ""


def test_project_builds_flat_record_in_field_order():
    record = project(DOC, ["data.symbol", "items[].id", "data.gone"])
    assert list(record) == ["data.symbol", "items[].id", "data.gone"]
    assert record == {"data.symbol": "BTC", "items[].id": 1, "data.gone": EMPTY}


def test_project_on_differently_shaped_document():
    assert project([1, 2, 3], ["data.symbol"]) == {"data.symbol": EMPTY}
