# ============================================================================
# CONTEXT - AZURE FUNCTIONS ENTRY POINT
# ============================================================================
# STATUS: Core Infrastructure - Function App Entry Point
# PURPOSE: Main entry point for Azure Functions runtime with the satellite search API
# EXPORTS: app (FunctionApp instance)
# DEPENDENCIES: azure-functions, sat_search, health
# ============================================================================

"""
Azure Functions Entry Point for the satellite search API

This module serves as the main entry point for the Azure Functions runtime.
It registers all HTTP triggers for the search API and the health checks.

Architecture:
    - Search API: 4 endpoints (GET and POST) over the scene metadata index
    - Health checks: 2 endpoints for monitoring and APIM integration
        - /api/health - Public (minimal response for external callers)
        - /api/health/detailed - Internal (full metrics for APIM probes)

Total: 6 HTTP endpoints (4 API + 2 health check)

Deployment:
    - Local: func start
    - Azure: func azure functionapp publish <app-name> --python --build remote
"""

import azure.functions as func
import json
import logging

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Initialize Azure Function App
app = func.FunctionApp()

# ============================================================================
# Search API - 4 Endpoints
# ============================================================================

try:
    from sat_search import get_search_triggers

    logger.info("Registering satellite search endpoints...")

    search_triggers = get_search_triggers()

    # Flat list of scenes
    @app.route(route="search", methods=["GET", "POST"], auth_level=func.AuthLevel.ANONYMOUS)
    def search_simple(req: func.HttpRequest) -> func.HttpResponse:
        return search_triggers[0]['handler'](req)

    # GeoJSON FeatureCollection
    @app.route(route="search/geojson", methods=["GET", "POST"], auth_level=func.AuthLevel.ANONYMOUS)
    def search_geojson(req: func.HttpRequest) -> func.HttpResponse:
        return search_triggers[1]['handler'](req)

    # Totals and aggregations
    @app.route(route="search/count", methods=["GET", "POST"], auth_level=func.AuthLevel.ANONYMOUS)
    def search_count(req: func.HttpRequest) -> func.HttpResponse:
        return search_triggers[2]['handler'](req)

    # Landsat-only legacy search
    @app.route(route="search/legacy", methods=["GET", "POST"], auth_level=func.AuthLevel.ANONYMOUS)
    def search_legacy(req: func.HttpRequest) -> func.HttpResponse:
        return search_triggers[3]['handler'](req)

    logger.info("✅ Search API registered successfully (4 endpoints)")

except ImportError as e:
    logger.warning(f"⚠️ Search module not available: {e}")
    logger.warning("Search API will not be available")

# ============================================================================
# Health Check Endpoints - 2 Endpoints (Public + Detailed)
# ============================================================================

@app.route(route="health", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def health_check(req: func.HttpRequest) -> func.HttpResponse:
    """
    Public health check endpoint - minimal response for external callers.

    Always returns 200 - status in body indicates health.

    Returns:
        JSON: {"status": "healthy|unhealthy", "timestamp": "..."}
    """
    from health import get_public_health

    result = get_public_health()

    return func.HttpResponse(
        json.dumps(result, default=str),
        mimetype="application/json",
        status_code=200,
        headers={"Cache-Control": "no-cache, no-store, must-revalidate"}
    )


@app.route(route="health/detailed", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def health_detailed(req: func.HttpRequest) -> func.HttpResponse:
    """
    Detailed health check endpoint - for APIM probes and operations.

    Returns 503 if unhealthy, 200 otherwise.

    SECURITY: Block this endpoint from external access via APIM policy.

    Returns:
        JSON with full health metrics including:
        - Search cluster connectivity and latency
        - Search index existence and document count
        - API module availability
    """
    from health import get_detailed_health, HealthStatus

    result = get_detailed_health()

    # Return 503 if unhealthy, 200 otherwise (healthy or degraded)
    status_code = 503 if result["status"] == HealthStatus.UNHEALTHY.value else 200

    return func.HttpResponse(
        json.dumps(result, default=str, indent=2),
        mimetype="application/json",
        status_code=status_code,
        headers={"Cache-Control": "no-cache, no-store, must-revalidate"}
    )

# ============================================================================
# Application Startup
# ============================================================================

from health import get_app_identity
_app_identity = get_app_identity()

logger.info("="*60)
logger.info(f"{_app_identity['name']} - {_app_identity['description']}")
logger.info("="*60)
logger.info("Function App initialized successfully")
logger.info("Available endpoints:")
logger.info("  - GET /api/health - Public health check (minimal)")
logger.info("  - GET /api/health/detailed - Detailed health (APIM only)")
logger.info("")
logger.info("Search API (4 endpoints):")
logger.info("  - GET/POST /api/search - Flat list of scenes")
logger.info("  - GET/POST /api/search/geojson - Scene footprints as GeoJSON")
logger.info("  - GET/POST /api/search/count - Totals and aggregations")
logger.info("  - GET/POST /api/search/legacy - Landsat-only search")
logger.info("="*60)
