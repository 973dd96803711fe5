"""
Aggregation builder tests.
"""

from sat_search.aggregations import TERMS_FIELDS, compile_aggregation, date_histogram, terms


class TestAggregationBuilders:

    def test_date_histogram_shape(self):
        assert date_histogram("date") == {
            "date_histogram": {
                "date_histogram": {
                    "field": "date",
                    "calendar_interval": "day",
                    "format": "yyyy-MM-dd",
                    "order": {"_key": "desc"}
                }
            }
        }

    def test_terms_shape(self):
        assert terms("utm_zone") == {"terms_utm_zone": {"terms": {"field": "utm_zone"}}}


class TestCompileAggregation:

    def test_satellite_name_and_date(self, sat_config):
        plan = compile_aggregation({"fields": "satellite_name,date"}, config=sat_config)

        assert set(plan.aggregations) == {"terms_satellite_name", "date_histogram"}
        assert plan.size == 0

    def test_every_recognized_field(self, sat_config):
        fields = ",".join(("date",) + TERMS_FIELDS)
        plan = compile_aggregation({"fields": fields}, config=sat_config)

        assert len(plan.aggregations) == len(TERMS_FIELDS) + 1

    def test_unknown_fields_ignored(self, sat_config):
        plan = compile_aggregation({"fields": "cloud_coverage,satellite_name,bogus"}, config=sat_config)
        assert list(plan.aggregations) == ["terms_satellite_name"]

    def test_without_fields_no_aggs_key(self, sat_config):
        plan = compile_aggregation({}, config=sat_config)

        assert plan.aggregations == {}
        assert plan.to_body() == {"query": {"match_all": {}}}

    def test_remaining_params_compiled_without_sort(self, sat_config):
        plan = compile_aggregation({"fields": "date", "sensor": "landsat"}, config=sat_config)
        body = plan.to_body()

        assert "sort" not in body
        assert body["query"] == {
            "bool": {"must": [{
                "match": {"satellite_name": {"query": "landsat", "lenient": False, "zero_terms_query": "none"}}
            }]}
        }
        assert "date_histogram" in body["aggs"]
