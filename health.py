# ============================================================================
# CONTEXT - HEALTH CHECK MODULE
# ============================================================================
# STATUS: Core Infrastructure - Health Monitoring
# PURPOSE: Production-grade health checks for APIM integration and monitoring
# EXPORTS: get_public_health, get_detailed_health, get_app_identity, HealthStatus
# DEPENDENCIES: config, sat_search, util_logger
# PATTERNS: Two-tier health checks (public/detailed) for APIM
# ============================================================================

"""
Health Check Module for the satellite search API

Provides two-tier health monitoring optimized for Azure APIM integration:

1. Public Health (/api/health):
   - Minimal response for external callers
   - Returns only status and timestamp
   - Always returns 200 (status in body indicates health)

2. Detailed Health (/api/health/detailed):
   - Full metrics for APIM probes and operations teams
   - Search cluster connectivity with latency metrics
   - Search index existence and document count
   - API module status
   - Returns 503 if unhealthy

Usage:
    from health import get_public_health, get_detailed_health

    result = get_public_health()
    # {"status": "healthy", "timestamp": "2026-10-18T12:00:00Z"}

    result = get_detailed_health()
    # Full metrics with latency, counts, etc.
"""

import time
import uuid
from enum import Enum
from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Optional, Dict, Any

from config import get_app_config
from sat_search.config import get_sat_config
from sat_search.store import DocumentStore
from util_logger import LoggerFactory, ComponentType

# Create module logger
logger = LoggerFactory.create_logger(ComponentType.ADAPTER, "HealthService")

APP_NAME = "sat-search-api"
APP_DESCRIPTION = "Satellite Imagery Metadata Search API"


# ============================================================================
# Health Status Enum
# ============================================================================

class HealthStatus(str, Enum):
    """Health status values."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"      # Non-critical components failing
    UNHEALTHY = "unhealthy"    # Critical components failing


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class CheckResult:
    """Result of a single health check."""
    status: str              # "pass" or "fail"
    latency_ms: float        # Time taken for check
    message: str             # Human-readable status message
    details: Optional[Dict[str, Any]] = None  # Additional details

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, excluding None values."""
        result = {
            "status": self.status,
            "latency_ms": round(self.latency_ms, 2),
            "message": self.message
        }
        if self.details:
            result["details"] = self.details
        return result


def get_app_identity() -> Dict[str, str]:
    """Name and description used in startup logs and health responses."""
    return {
        "name": get_sat_config().api_name or APP_NAME,
        "description": APP_DESCRIPTION
    }


def _resolve_store(store: Optional[DocumentStore]) -> DocumentStore:
    if store is not None:
        return store
    from infrastructure import get_document_store
    return get_document_store()


# ============================================================================
# Health Check Functions
# ============================================================================

def check_store_connectivity(store: Optional[DocumentStore] = None) -> CheckResult:
    """
    Check search cluster connectivity.

    Pings the cluster to verify it is reachable.
    This is a critical check - failure means UNHEALTHY status.

    Returns:
        CheckResult with connection status and latency
    """
    start_time = time.perf_counter()

    try:
        config = get_app_config()
        reachable = _resolve_store(store).ping()
        latency_ms = (time.perf_counter() - start_time) * 1000

        if not reachable:
            return CheckResult(
                status="fail",
                latency_ms=latency_ms,
                message="Search cluster did not answer ping",
                details={"host": config.es_host}
            )

        if config.es_use_managed_identity:
            auth_mode = "managed_identity"
        elif config.es_api_key:
            auth_mode = "api_key"
        else:
            auth_mode = "none"

        return CheckResult(
            status="pass",
            latency_ms=latency_ms,
            message="Search cluster connection successful",
            details={
                "host": config.es_host,
                "auth_mode": auth_mode
            }
        )

    except Exception as e:
        latency_ms = (time.perf_counter() - start_time) * 1000
        logger.error(f"Search cluster connectivity check failed: {e}")

        return CheckResult(
            status="fail",
            latency_ms=latency_ms,
            message=f"Search cluster connection failed: {type(e).__name__}",
            details={"error": str(e)}
        )


def check_search_index(store: Optional[DocumentStore] = None) -> CheckResult:
    """
    Check the scene index used by the search endpoints.

    Verifies the index exists and counts its documents.
    This is a critical check - failure means UNHEALTHY status.

    Returns:
        CheckResult with index status and document count
    """
    start_time = time.perf_counter()
    index = get_sat_config().index

    try:
        store = _resolve_store(store)

        if not store.index_exists(index):
            latency_ms = (time.perf_counter() - start_time) * 1000
            return CheckResult(
                status="fail",
                latency_ms=latency_ms,
                message=f"Index '{index}' does not exist",
                details={"index": index, "exists": False}
            )

        document_count = store.count(index)
        latency_ms = (time.perf_counter() - start_time) * 1000

        return CheckResult(
            status="pass",
            latency_ms=latency_ms,
            message=f"{document_count} scenes indexed",
            details={
                "index": index,
                "document_count": document_count
            }
        )

    except Exception as e:
        latency_ms = (time.perf_counter() - start_time) * 1000
        logger.error(f"Search index check failed: {e}")

        return CheckResult(
            status="fail",
            latency_ms=latency_ms,
            message=f"Search index check failed: {type(e).__name__}",
            details={"index": index, "error": str(e)}
        )


def check_api_modules() -> CheckResult:
    """
    Check API module availability.

    Verifies the sat_search module can be imported and its triggers built.
    This is a non-critical check - failure means DEGRADED status.

    Returns:
        CheckResult with module availability status
    """
    start_time = time.perf_counter()

    try:
        from sat_search import get_search_triggers
        triggers = get_search_triggers()
        search_status = {
            "available": True,
            "endpoints": len(triggers),
            "index": get_sat_config().index
        }
        status = "pass"
        message = "All modules loaded"
    except Exception as e:
        search_status = {"available": False, "endpoints": 0, "error": str(e)}
        status = "fail"
        message = "No API modules available"

    latency_ms = (time.perf_counter() - start_time) * 1000

    return CheckResult(
        status=status,
        latency_ms=latency_ms,
        message=message,
        details={"sat_search": search_status}
    )


# ============================================================================
# Main Entry Points
# ============================================================================

def get_public_health(store: Optional[DocumentStore] = None) -> Dict[str, Any]:
    """
    Get minimal health status for public endpoint.

    Returns only status and timestamp - no internal details.

    Returns:
        Dict with status and timestamp only
    """
    start_time = time.perf_counter()

    store_result = check_store_connectivity(store)

    if store_result.status == "pass":
        status = HealthStatus.HEALTHY
    else:
        status = HealthStatus.UNHEALTHY

    total_duration = (time.perf_counter() - start_time) * 1000

    logger.info("Public health check completed", extra={
        'custom_dimensions': {
            'status': status.value,
            'duration_ms': round(total_duration, 2),
            'check_type': 'public'
        }
    })

    return {
        "status": status.value,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


def get_detailed_health(store: Optional[DocumentStore] = None) -> Dict[str, Any]:
    """
    Get detailed health status for APIM probes and operations.

    SECURITY NOTE: Block this endpoint from external access via APIM policy.

    Returns:
        Dict with full health metrics
    """
    start_time = time.perf_counter()
    request_id = str(uuid.uuid4())[:8]

    checks = {}
    critical_failures = []
    non_critical_failures = []

    # Critical: cluster connectivity
    store_result = check_store_connectivity(store)
    checks["search_cluster"] = store_result.to_dict()
    if store_result.status == "fail":
        critical_failures.append("search_cluster")

    # Critical: scene index
    index_result = check_search_index(store)
    checks["search_index"] = index_result.to_dict()
    if index_result.status == "fail":
        critical_failures.append("search_index")

    # Non-critical: API modules
    modules_result = check_api_modules()
    checks["api_modules"] = modules_result.to_dict()
    if modules_result.status == "fail":
        non_critical_failures.append("api_modules")

    if critical_failures:
        status = HealthStatus.UNHEALTHY
    elif non_critical_failures:
        status = HealthStatus.DEGRADED
    else:
        status = HealthStatus.HEALTHY

    total_duration = (time.perf_counter() - start_time) * 1000

    logger.info("Detailed health check completed", extra={
        'custom_dimensions': {
            'status': status.value,
            'duration_ms': round(total_duration, 2),
            'check_type': 'detailed',
            'request_id': request_id,
            'critical_failures': critical_failures,
            'non_critical_failures': non_critical_failures,
            'store_latency_ms': store_result.latency_ms
        }
    })

    identity = get_app_identity()

    return {
        "status": status.value,
        "app": identity["name"],
        "description": identity["description"],
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "request_id": request_id,
        "checks": checks,
        "total_duration_ms": round(total_duration, 2)
    }
