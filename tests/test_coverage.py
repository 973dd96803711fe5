"""
AOI coverage filter tests.
"""

import json

import pytest

from sat_search.coverage import coverage_percentage, filter_by_aoi_coverage
from sat_search.exceptions import ConfigurationError, InvalidGeoJson
from sat_search.geometry import GeometryOperations
from sat_search.models import AoiCoverageSpec


@pytest.fixture
def ops():
    return GeometryOperations()


@pytest.fixture
def scenes(make_scene, make_box):
    """Scenes covering 100%, ~50%, ~25% and 0% of the unit square, plus one without footprint."""
    return [
        make_scene("full", make_box(-1, -1, 2, 2)),
        make_scene("half", make_box(0.5, -1, 2, 2)),
        make_scene("quarter", make_box(0.5, 0.5, 2, 2)),
        make_scene("outside", make_box(10, 10, 11, 11)),
        make_scene("no-footprint", None),
    ]


def scene_ids(results):
    return [result["scene_id"] for result in results]


class TestCoveragePercentage:

    def test_full_and_partial_cover(self, ops, unit_square, make_box):
        aoi_area = ops.area(unit_square)

        assert coverage_percentage([unit_square], make_box(-1, -1, 2, 2), aoi_area, ops) == pytest.approx(100)
        assert coverage_percentage([unit_square], make_box(0.5, -1, 2, 2), aoi_area, ops) == pytest.approx(50)

    def test_disjoint_and_missing_footprint_score_zero(self, ops, unit_square, make_box):
        aoi_area = ops.area(unit_square)

        assert coverage_percentage([unit_square], make_box(5, 5, 6, 6), aoi_area, ops) == 0
        assert coverage_percentage([unit_square], None, aoi_area, ops) == 0

    def test_components_are_summed(self, ops, make_box):
        left, right = make_box(0, 0, 0.5, 1), make_box(0.5, 0, 1, 1)
        aoi_area = ops.area(left) + ops.area(right)

        percentage = coverage_percentage([left, right], make_box(-1, -1, 2, 2), aoi_area, ops)

        assert percentage == pytest.approx(100)


class TestFilterByAoiCoverage:

    def test_absent_spec_is_identity(self, scenes):
        assert filter_by_aoi_coverage(scenes, None) is scenes

    def test_threshold_filters_and_preserves_order(self, ops, scenes, unit_square):
        spec = AoiCoverageSpec(threshold=40, geometry=unit_square)

        kept = filter_by_aoi_coverage(scenes, spec, geometry_ops=ops)

        assert scene_ids(kept) == ["full", "half"]

    @pytest.mark.parametrize("aoi_box", [(0, 0, 1, 1), (10, 40, 11, 41), (-75, 60, -73, 62)])
    def test_half_cover_meets_threshold_of_fifty(self, ops, make_scene, make_box, aoi_box):
        west, south, east, north = aoi_box
        middle = (west + east) / 2
        scene = make_scene("half", make_box(middle, south, east + 1, north))
        spec = AoiCoverageSpec(threshold=50, geometry=make_box(*aoi_box))

        assert scene_ids(filter_by_aoi_coverage([scene], spec, geometry_ops=ops)) == ["half"]

    def test_zero_threshold_keeps_everything(self, ops, scenes, unit_square):
        spec = AoiCoverageSpec(threshold=0, geometry=unit_square)
        assert scene_ids(filter_by_aoi_coverage(scenes, spec, geometry_ops=ops)) == scene_ids(scenes)

    def test_idempotent(self, ops, scenes, unit_square):
        spec = AoiCoverageSpec(threshold=20, geometry=unit_square)

        once = filter_by_aoi_coverage(scenes, spec, geometry_ops=ops)
        twice = filter_by_aoi_coverage(once, spec, geometry_ops=ops)

        assert twice == once

    def test_geometry_as_json_string(self, ops, scenes, unit_square):
        spec = AoiCoverageSpec(threshold=90, geometry=json.dumps(unit_square))
        assert scene_ids(filter_by_aoi_coverage(scenes, spec, geometry_ops=ops)) == ["full"]

    def test_feature_collection_aoi(self, ops, scenes, make_box):
        collection = {
            "type": "FeatureCollection",
            "features": [
                {"type": "Feature", "properties": {}, "geometry": make_box(0, 0, 0.5, 1)},
                {"type": "Feature", "properties": {}, "geometry": make_box(0.5, 0, 1, 1)}
            ]
        }
        spec = AoiCoverageSpec(threshold=90, geometry=collection)

        assert scene_ids(filter_by_aoi_coverage(scenes, spec, geometry_ops=ops)) == ["full"]

    def test_custom_footprint_field(self, ops, make_box, unit_square):
        results = [{"scene_id": "a", "footprint": make_box(-1, -1, 2, 2)}]
        spec = AoiCoverageSpec(threshold=50, geometry=unit_square)

        kept = filter_by_aoi_coverage(results, spec, footprint_field="footprint", geometry_ops=ops)

        assert scene_ids(kept) == ["a"]

    def test_zero_area_aoi_is_configuration_error(self, ops, scenes):
        flat = {"type": "Polygon", "coordinates": [[[0, 0], [1, 0], [2, 0], [0, 0]]]}
        spec = AoiCoverageSpec(threshold=10, geometry=flat)

        with pytest.raises(ConfigurationError):
            filter_by_aoi_coverage(scenes, spec, geometry_ops=ops)

    def test_invalid_aoi_geometry(self, ops, scenes):
        spec = AoiCoverageSpec(threshold=10, geometry="{broken")

        with pytest.raises(InvalidGeoJson):
            filter_by_aoi_coverage(scenes, spec, geometry_ops=ops)
