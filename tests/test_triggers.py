"""
HTTP trigger tests: parameter extraction, response bodies and status mapping.
"""

import json

import azure.functions as func
import pytest

from sat_search.exceptions import StoreError
from sat_search.triggers import (
    CountSearchTrigger,
    GeoJSONSearchTrigger,
    LegacySearchTrigger,
    SimpleSearchTrigger,
    get_search_triggers
)


def make_request(route="search", params=None, body=None, method="GET"):
    return func.HttpRequest(
        method=method,
        url=f"http://localhost:7071/api/{route}",
        params=params or {},
        body=json.dumps(body).encode("utf-8") if body is not None else b""
    )


def json_body(response):
    return json.loads(response.get_body())


class TestRegistry:

    def test_routes(self):
        triggers = get_search_triggers()

        assert [t['route'] for t in triggers] == ['search', 'search/geojson', 'search/count', 'search/legacy']
        assert all(t['methods'] == ['GET', 'POST'] for t in triggers)
        assert all(callable(t['handler']) for t in triggers)


class TestParameters:

    def test_query_string(self, make_store):
        store = make_store()

        response = SimpleSearchTrigger(store).handle(make_request(params={"sensor": "landsat"}))

        assert response.status_code == 200
        must = store.requests[0].body["query"]["bool"]["must"]
        assert must[0]["match"]["satellite_name"]["query"] == "landsat"

    def test_json_body_when_query_string_empty(self, make_store, unit_square):
        store = make_store()

        response = SimpleSearchTrigger(store).handle(
            make_request(method="POST", body={"intersects": unit_square, "limit": 3})
        )

        assert response.status_code == 200
        assert store.requests[0].size == 3
        assert "bool" in store.requests[0].body["query"]

    def test_query_string_wins_over_body(self, make_store):
        store = make_store()

        SimpleSearchTrigger(store).handle(
            make_request(method="POST", params={"limit": "4"}, body={"limit": 9})
        )

        assert store.requests[0].size == 4

    def test_missing_or_non_object_body_means_no_params(self, make_store):
        store = make_store()
        trigger = SimpleSearchTrigger(store)

        assert trigger.handle(make_request(method="POST")).status_code == 200
        assert trigger.handle(make_request(method="POST", body=[1, 2])).status_code == 200
        assert all(r.body["query"] == {"match_all": {}} for r in store.requests)


class TestResponses:

    def test_simple_body(self, make_store, make_scene):
        store = make_store(documents=[make_scene("LC81")])

        body = json_body(SimpleSearchTrigger(store).handle(make_request()))

        assert body["meta"]["found"] == 1
        assert body["meta"]["limit"] == 1
        assert body["results"][0]["scene_id"] == "LC81"
        assert body["results"][0]["cloudCoverFull"] == 10.0

    def test_geojson_body(self, make_store, make_scene, unit_square):
        store = make_store(documents=[make_scene("LC81", unit_square)])

        response = GeoJSONSearchTrigger(store).handle(make_request("search/geojson"))
        body = json_body(response)

        assert response.mimetype == "application/json"
        assert body["type"] == "FeatureCollection"
        assert body["features"][0]["geometry"] == unit_square

    def test_count_body(self, make_store):
        aggregations = {"terms_satellite_name": {"buckets": []}}
        store = make_store(total=3, aggregations=aggregations)

        body = json_body(CountSearchTrigger(store).handle(
            make_request("search/count", params={"fields": "satellite_name"})
        ))

        assert body["meta"]["found"] == 3
        assert body["counts"] == aggregations

    def test_legacy_body(self, make_store, make_scene):
        store = make_store(documents=[make_scene("LC81")])

        body = json_body(LegacySearchTrigger(store).handle(make_request("search/legacy")))

        assert body["meta"]["results"] == {"skip": 0, "limit": 1, "total": 1}
        assert body["meta"]["author"] == "Development Seed"


class TestErrorMapping:

    @pytest.mark.parametrize("params", [
        {"contains": "999,45"},
        {"intersects": "{broken"},
        {"intersects": json.dumps({"type": "Polygon", "coordinates": [[[0, 0], [1, 1], [1, 0], [0, 1], [0, 0]]]})},
        {"page": "abc"},
        {"limit": "0"},
    ])
    def test_bad_request(self, make_store, params):
        store = make_store()

        response = SimpleSearchTrigger(store).handle(make_request(params=params))

        assert response.status_code == 400
        assert json_body(response)["code"] == "BadRequest"
        assert store.requests == []

    def test_zero_area_aoi_is_configuration_error(self, make_store, make_scene):
        flat = {"type": "Polygon", "coordinates": [[[0, 0], [1, 0], [2, 0], [0, 0]]]}
        store = make_store(documents=[make_scene("LC81")])

        response = SimpleSearchTrigger(store).handle(make_request(
            params={"intersects": json.dumps(flat), "aoi_coverage_percentage": "10"}
        ))

        assert response.status_code == 400
        assert json_body(response)["code"] == "ConfigurationError"

    def test_store_error_is_bad_gateway(self, make_store):
        store = make_store(error=StoreError("connection refused"))

        response = SimpleSearchTrigger(store).handle(make_request())

        assert response.status_code == 502
        assert json_body(response) == {
            "code": "BadGateway",
            "description": "Search backend request failed"
        }

    def test_unexpected_error_is_internal(self, make_store):
        store = make_store(error=KeyError("hits"))

        response = CountSearchTrigger(store).handle(make_request("search/count"))

        assert response.status_code == 500
        assert json_body(response)["code"] == "InternalServerError"
