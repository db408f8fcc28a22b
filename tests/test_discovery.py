import httpx
import pytest

from finboard.discovery import discover, enumerate_fields
from finboard.field_path import resolve, split_path


def test_leaf_paths_round_trip():
    doc = {"a": {"b": 5}}
    fields = enumerate_fields(doc)
    assert "a.b" in fields
    assert resolve(doc, "a.b") == 5


def test_array_of_objects_uses_marker():
    doc = {"items": [{"id": 1, "name": "x"}, {"id": 2, "name": "y"}]}
    assert enumerate_fields(doc) == ["items[].id", "items[].name"]
    assert resolve(doc, "items[].id") == 1


def test_scalars_and_empty_containers_are_leaves():
    doc = {"n": 1, "s": "x", "none": None, "empty_list": [], "empty_obj": {}, "tags": ["a", "b"], "grid": [[1, 2]]}
    assert enumerate_fields(doc) == ["n", "s", "none", "empty_list", "empty_obj", "tags", "grid"]


def test_nested_arrays_under_array_elements():
    doc = {"orders": [{"fills": [{"px": 10.5, "qty": 2}], "side": "buy"}]}
    fields = enumerate_fields(doc)
    assert fields == ["orders[].fills[].px", "orders[].fills[].qty", "orders[].side"]
    assert resolve(doc, "orders[].fills[].px") == 10.5


def test_root_array():
    doc = [{"symbol": "AAPL", "price": 190.1}]
    assert enumerate_fields(doc) == ["[].symbol", "[].price"]
    assert resolve(doc, "[].price") == 190.1


def test_root_scalar_has_no_fields():
    assert enumerate_fields(42) == []
    assert enumerate_fields(None) == []


def test_depth_bound_terminates_and_caps_path_length():
    doc = current = {}
    for i in range(200):
        child = {}
        current[f"l{i}"] = child
        current = child
    current["leaf"] = 1

    fields = enumerate_fields(doc, max_depth=4)
    assert fields == ["l0.l1.l2.l3"]
    assert all(len(split_path(f)) <= 4 for f in fields)


def test_depth_bound_counts_array_segments():
    doc = {"a": [{"b": {"c": {"d": {"e": 1}}}}]}
    fields = enumerate_fields(doc, max_depth=3)
    assert fields == ["a[].b.c"]
    # 超出上限的分支仍然可以解析为不透明的值
    assert resolve(doc, "a[].b.c") == {"d": {"e": 1}}


def test_duplicates_removed_keeping_first_position():
    doc = {"a.b": 1, "x": 2, "a": {"b": 3}}
    fields = enumerate_fields(doc)
    assert fields == ["a.b", "x"]
    assert enumerate_fields(doc) == fields


def test_max_fields_truncates_wide_objects():
    doc = {f"k{i}": i for i in range(10)}
    assert enumerate_fields(doc, max_fields=3) == ["k0", "k1", "k2"]
    assert len(enumerate_fields(doc)) == 10


# ── discover ──────────────────────────────────────────

@pytest.mark.asyncio
async def test_discover_success(mock_client):
    def handler(request):
        return httpx.Response(200, json={"data": {"rates": {"USD": "64000.1"}}, "items": [{"id": 1}]})

    async with mock_client(handler) as client:
        result = await discover("https://api.example.com/rates", client=client)

    assert result.success
    assert result.fields == ["data.rates.USD", "items[].id"]
    assert result.data["items"][0]["id"] == 1
    assert result.error is None


@pytest.mark.asyncio
async def test_discover_empty_url_fails_without_request(mock_client):
    def handler(request):
        raise AssertionError("no request expected")

    async with mock_client(handler) as client:
        result = await discover("   ", client=client)
        malformed = await discover("not a url", client=client)

    assert not result.success
    assert result.error == "Please enter an API URL"
    assert result.fields == []
    assert not malformed.success
    assert malformed.error.startswith("Invalid API URL")


@pytest.mark.asyncio
async def test_discover_http_error_status(mock_client):
    async with mock_client(lambda request: httpx.Response(404)) as client:
        result = await discover("https://api.example.com/missing", client=client)

    assert not result.success
    assert result.error == "HTTP 404 Not Found"
    assert result.fields == []
    assert result.data is None


@pytest.mark.asyncio
async def test_discover_invalid_json(mock_client):
    async with mock_client(lambda request: httpx.Response(200, text="<html>nope</html>")) as client:
        result = await discover("https://api.example.com/page", client=client)

    assert not result.success
    assert result.error.startswith("Response is not valid JSON")


@pytest.mark.asyncio
async def test_discover_timeout(mock_client):
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    async with mock_client(handler) as client:
        result = await discover("https://api.example.com/slow", client=client, timeout=2.5)

    assert not result.success
    assert result.error == "Request timed out after 2.5s"


@pytest.mark.asyncio
async def test_discover_connection_error(mock_client):
    def handler(request):
        raise httpx.ConnectError("Name or service not known", request=request)

    async with mock_client(handler) as client:
        result = await discover("https://nowhere.invalid/api", client=client)

    assert not result.success
    assert result.error == "Request failed: Name or service not known"
