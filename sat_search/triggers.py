# ============================================================================
# CONTEXT - SATELLITE SEARCH TRIGGERS
# ============================================================================
# STATUS: Standalone HTTP Triggers - Satellite search endpoints
# PURPOSE: Azure Functions HTTP triggers for the four search modes
# EXPORTS: get_search_triggers (returns list of trigger configurations)
# INTERFACES: Azure Functions HttpRequest/HttpResponse
# DEPENDENCIES: azure.functions, pydantic, sat_search.service, util_logger
# SOURCE: HTTP requests from clients (browsers, scripts, curl)
# SCOPE: HTTP endpoint handlers for the satellite search API
# VALIDATION: Typed search errors and Pydantic validation mapped to status codes
# PATTERNS: Trigger Pattern, Factory Pattern (get_search_triggers)
# ENTRY_POINTS: Function App route registration via get_search_triggers()
# ============================================================================

"""
Satellite Search HTTP Triggers - Azure Functions Handlers

Endpoints (GET and POST):
- /api/search          - Flat list of scenes
- /api/search/geojson  - FeatureCollection of scene footprints
- /api/search/count    - Totals and aggregation buckets
- /api/search/legacy   - Landsat-only free-text search

Parameters are read from the query string; when it is empty, the JSON body
is used instead.

Error mapping:
    InvalidGeoJson, SelfIntersectingPolygon, InvalidCoordinates,
    invalid page/limit/skip                    -> 400 BadRequest
    ConfigurationError                         -> 400 ConfigurationError
    StoreError                                 -> 502 BadGateway
    anything else                              -> 500 InternalServerError

Integration:
    In function_app.py:

    from sat_search import get_search_triggers

    for trigger in get_search_triggers():
        app.route(
            route=trigger['route'],
            methods=trigger['methods'],
            auth_level=func.AuthLevel.ANONYMOUS
        )(trigger['handler'])
"""

import azure.functions as func
import json
from typing import Dict, Any, List, Optional

from pydantic import ValidationError

from util_logger import LoggerFactory, ComponentType

from .config import get_sat_config
from .exceptions import (
    InvalidGeoJson,
    SelfIntersectingPolygon,
    InvalidCoordinates,
    ConfigurationError,
    StoreError
)
from .service import SatSearch
from .store import DocumentStore

INPUT_ERRORS = (InvalidGeoJson, SelfIntersectingPolygon, InvalidCoordinates)


# ============================================================================
# TRIGGER REGISTRY FUNCTION
# ============================================================================

def get_search_triggers(store: Optional[DocumentStore] = None) -> List[Dict[str, Any]]:
    """
    Get list of search trigger configurations for function_app.py.

    Args:
        store: Document store shared by the triggers (process-wide store if not provided)

    Returns:
        List of dicts with keys:
        - route: URL route pattern
        - methods: List of HTTP methods
        - handler: Callable trigger handler
    """
    return [
        {
            'route': 'search',
            'methods': ['GET', 'POST'],
            'handler': SimpleSearchTrigger(store).handle
        },
        {
            'route': 'search/geojson',
            'methods': ['GET', 'POST'],
            'handler': GeoJSONSearchTrigger(store).handle
        },
        {
            'route': 'search/count',
            'methods': ['GET', 'POST'],
            'handler': CountSearchTrigger(store).handle
        },
        {
            'route': 'search/legacy',
            'methods': ['GET', 'POST'],
            'handler': LegacySearchTrigger(store).handle
        }
    ]


# ============================================================================
# BASE TRIGGER CLASS
# ============================================================================

class BaseSearchTrigger:
    """
    Base class for search triggers.

    Subclasses set `mode` and implement `run(search)`; parameter extraction,
    response formatting and error mapping live here.
    """

    mode = "simple"

    def __init__(self, store: Optional[DocumentStore] = None):
        """Initialize trigger with configuration and an optional store."""
        self.config = get_sat_config()
        self.store = store
        self.logger = LoggerFactory.create_with_context(
            ComponentType.TRIGGER,
            self.__class__.__name__,
            search_mode=self.mode,
            index=self.config.index
        )

    def run(self, search: SatSearch):
        raise NotImplementedError

    def handle(self, req: func.HttpRequest) -> func.HttpResponse:
        """
        Handle a search request.

        Args:
            req: Azure Functions HTTP request

        Returns:
            HttpResponse with the search result or an error body
        """
        try:
            params = self._get_params(req)
            self.logger.info(f"{self.mode} search requested with {len(params)} parameters")

            search = SatSearch(params, store=self.store, config=self.config)
            result = self.run(search)

            return self._json_response(result)

        except INPUT_ERRORS as e:
            self.logger.warning(f"Rejected {self.mode} search: {e}")
            return self._error_response(str(e), status_code=400, error_type="BadRequest")

        except ValidationError as e:
            self.logger.warning(f"Invalid {self.mode} search parameters: {e}")
            return self._error_response(
                f"Invalid parameters: {e}",
                status_code=400,
                error_type="BadRequest"
            )

        except ConfigurationError as e:
            self.logger.warning(f"Unsatisfiable {self.mode} search: {e}")
            return self._error_response(str(e), status_code=400, error_type="ConfigurationError")

        except StoreError as e:
            self.logger.error(f"Document store failure during {self.mode} search: {e}")
            return self._error_response(
                "Search backend request failed",
                status_code=502,
                error_type="BadGateway"
            )

        except Exception as e:
            self.logger.error(f"Error handling {self.mode} search: {e}", exc_info=True)
            return self._error_response(
                f"Internal server error: {str(e)}",
                status_code=500,
                error_type="InternalServerError"
            )

    def _get_params(self, req: func.HttpRequest) -> Dict[str, Any]:
        """
        Request parameters: query string, or the JSON body when it is empty.

        A missing, unparseable or non-object body yields no parameters.
        """
        params = dict(req.params)
        if params:
            return params

        try:
            body = req.get_json()
        except ValueError:
            return {}

        return dict(body) if isinstance(body, dict) else {}

    def _json_response(
        self,
        data: Any,
        status_code: int = 200,
        content_type: str = "application/json"
    ) -> func.HttpResponse:
        """
        Create JSON HTTP response.

        Args:
            data: Data to serialize (dict or Pydantic model)
            status_code: HTTP status code
            content_type: Response content type

        Returns:
            Azure Functions HttpResponse
        """
        if hasattr(data, 'model_dump'):
            data = data.model_dump(mode='json')

        return func.HttpResponse(
            body=json.dumps(data, default=str),
            status_code=status_code,
            mimetype=content_type
        )

    def _error_response(
        self,
        message: str,
        status_code: int = 400,
        error_type: str = "BadRequest"
    ) -> func.HttpResponse:
        """
        Create error response.

        Args:
            message: Error message
            status_code: HTTP status code
            error_type: Error type string

        Returns:
            Azure Functions HttpResponse with error JSON
        """
        error_body = {
            "code": error_type,
            "description": message
        }
        return func.HttpResponse(
            body=json.dumps(error_body, indent=2),
            status_code=status_code,
            mimetype="application/json"
        )


# ============================================================================
# ENDPOINT TRIGGERS
# ============================================================================

class SimpleSearchTrigger(BaseSearchTrigger):
    """
    Flat list trigger.

    Endpoint: GET|POST /api/search
    """

    mode = "simple"

    def run(self, search: SatSearch):
        return search.simple()


class GeoJSONSearchTrigger(BaseSearchTrigger):
    """
    GeoJSON trigger.

    Endpoint: GET|POST /api/search/geojson
    """

    mode = "geojson"

    def run(self, search: SatSearch):
        return search.geojson()


class CountSearchTrigger(BaseSearchTrigger):
    """
    Aggregation trigger.

    Endpoint: GET|POST /api/search/count
    """

    mode = "count"

    def run(self, search: SatSearch):
        return search.count()


class LegacySearchTrigger(BaseSearchTrigger):
    """
    Landsat-only trigger.

    Endpoint: GET|POST /api/search/legacy
    """

    mode = "legacy"

    def run(self, search: SatSearch):
        return search.legacy()
