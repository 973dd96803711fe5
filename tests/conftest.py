"""
Root conftest.py: sys.path, env vars, shared fixtures.

Sets up the test environment so all production code can be imported and
exercised without an Elasticsearch cluster or Azure credentials.
"""

import os
import sys

import pytest

# Add project root to sys.path so 'sat_search', 'config', etc. are importable
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from sat_search.config import SatSearchConfig  # noqa: E402
from sat_search.store import DocumentStore  # noqa: E402


@pytest.fixture(autouse=True, scope="session")
def set_minimal_env_vars():
    """
    Set minimal environment variables so configuration resolves offline.
    """
    defaults = {
        "ES_HOST": "http://localhost:9200",
        "ES_INDEX": "sat-api",
        "NAME": "sat-api",
    }
    for key, value in defaults.items():
        os.environ.setdefault(key, value)


@pytest.fixture(autouse=True)
def reset_config_singletons():
    """Drop cached configuration so env changes in one test never leak."""
    import config
    import sat_search.config

    sat_search.config._config_cache = None
    config.get_app_config.cache_clear()
    config._get_base_client.cache_clear()
    config._get_managed_identity_token.cache_clear()
    yield
    sat_search.config._config_cache = None
    config.get_app_config.cache_clear()
    config._get_base_client.cache_clear()
    config._get_managed_identity_token.cache_clear()


# ============================================================================
# Document store double
# ============================================================================

class FakeDocumentStore(DocumentStore):
    """
    In-memory document store recording every request.

    Documents are paged with the request offset/size; `total` overrides the
    reported hit count and `total_as_object` switches to the
    `{"value", "relation"}` form.
    """

    def __init__(
        self,
        documents=None,
        total=None,
        aggregations=None,
        error=None,
        total_as_object=False,
        reachable=True,
        indices=("sat-api",)
    ):
        self.documents = list(documents or [])
        self.total = len(self.documents) if total is None else total
        self.aggregations = aggregations
        self.error = error
        self.total_as_object = total_as_object
        self.reachable = reachable
        self.indices = set(indices)
        self.requests = []

    def search(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error

        page = self.documents[request.offset:request.offset + request.size]
        total = {"value": self.total, "relation": "eq"} if self.total_as_object else self.total

        response = {"hits": {"total": total, "hits": [{"_source": dict(doc)} for doc in page]}}
        if self.aggregations is not None:
            response["aggregations"] = self.aggregations
        return response

    def ping(self):
        return self.reachable

    def index_exists(self, index):
        return index in self.indices

    def count(self, index):
        return len(self.documents)


@pytest.fixture
def make_store():
    """Factory fixture: FakeDocumentStore with the given options."""
    def _make(**kwargs) -> FakeDocumentStore:
        return FakeDocumentStore(**kwargs)
    return _make


@pytest.fixture
def sat_config():
    """Explicit configuration matching the environment defaults."""
    return SatSearchConfig(
        index="sat-api",
        api_name="sat-api",
        api_license="CC0-1.0",
        website="https://api.developmentseed.org/satellites/",
        author="Development Seed",
        date_field="date",
        footprint_field="data_geometry",
        default_limit=1,
        legacy_filter="satellite_name:landsat",
        found_short_page_correction=True
    )


# ============================================================================
# Geometry fixtures
# ============================================================================

def box(min_x, min_y, max_x, max_y):
    """Counter-clockwise rectangular GeoJSON polygon."""
    return {
        "type": "Polygon",
        "coordinates": [[
            [min_x, min_y], [max_x, min_y], [max_x, max_y], [min_x, max_y], [min_x, min_y]
        ]]
    }


@pytest.fixture
def make_box():
    """Factory fixture: rectangular polygon from bounds."""
    return box


@pytest.fixture
def unit_square():
    return box(0, 0, 1, 1)


@pytest.fixture
def bowtie():
    """Polygon whose first and third edges cross at (0.5, 0.5)."""
    return {
        "type": "Polygon",
        "coordinates": [[[0, 0], [1, 1], [1, 0], [0, 1], [0, 0]]]
    }


@pytest.fixture
def make_scene():
    """Factory fixture: scene document with a footprint."""
    def _make(scene_id, footprint=None, cloud_coverage=10.0, **extra):
        scene = {
            "scene_id": scene_id,
            "satellite_name": "landsat-8",
            "cloud_coverage": cloud_coverage,
            "date": "2016-05-01",
            "thumbnail": f"https://example.com/{scene_id}.jpg",
            "data_geometry": footprint,
        }
        scene.update(extra)
        return scene
    return _make
