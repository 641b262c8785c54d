# Copyright (c) 2026 Region Inventory contributors.
# Licensed under the Apache License, Version 2.0.

"""FastAPI application entry point for the Region Inventory server.

This module creates the FastAPI application, wires the ServiceContainer
into its lifespan, and maps classified errors to JSON responses.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from . import __version__
from .config import settings
from .container import ServiceContainer
from .models import (
    ConfigComparison,
    DiscoveryOutcome,
    HealthStatus,
    InventoryReport,
    StatusReport,
)
from .models.enums import ErrorCode
from .services.region_inventory_service import RegionInventoryService
from .utils.error_handling import ClassifiedError, log_error
from .utils.error_sanitization import mask_sensitive, sanitize_error_response

logger = logging.getLogger(__name__)

# Global container instance
container: Optional[ServiceContainer] = None

# Classified errors caused by the caller's input
CLIENT_ERROR_CODES = frozenset([ErrorCode.INVALID_REGION])


class RegionActionRequest(BaseModel):
    """Request body for POST /regions."""

    action: str = Field(..., description="'discover' or 'status'")


class RegionCompareRequest(BaseModel):
    """Request body for POST /regions/compare."""

    regions: list[str] = Field(default_factory=list)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle - startup and shutdown.

    Builds the ServiceContainer from settings on startup and releases it
    on shutdown.
    """
    global container

    logger.info("Starting Region Inventory server")
    app_settings = settings()

    container = ServiceContainer(settings=app_settings)
    await container.initialize()

    logger.info(f"Region Inventory server v{__version__} started on port {app_settings.port}")

    yield

    logger.info("Shutting down Region Inventory server")
    await container.shutdown()
    container = None
    logger.info("Shutdown complete")


app = FastAPI(
    title="Region Inventory Server",
    description=(
        "Discovers the AWS regions in use (at most once per day), keeps the "
        "configured region set in sync, and inventories EC2, Lambda and RDS "
        "resources across regions."
    ),
    version=__version__,
    lifespan=lifespan,
)


def get_inventory_service() -> RegionInventoryService:
    """Dependency returning the initialized service, or 503."""
    if container is None or container.inventory_service is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return container.inventory_service


@app.exception_handler(ClassifiedError)
async def classified_error_handler(request: Request, exc: ClassifiedError):
    """Render a classified error with its remediation."""
    descriptor = exc.descriptor
    status_code = 400 if descriptor.code in CLIENT_ERROR_CODES else 500

    content = descriptor.to_response()
    for attribute in ("charge_incurred", "config_updated", "recorded"):
        value = getattr(exc, attribute, None)
        if value is not None:
            content[attribute] = value

    logger.warning(
        f"{request.method} {request.url.path} failed with {descriptor.code.value}: "
        f"{mask_sensitive(str(exc))}"
    )
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler for unhandled errors.

    Logs the error and returns a sanitized error response.
    """
    log_error(exc, {"method": request.method, "path": request.url.path}, logger)
    return JSONResponse(status_code=500, content=sanitize_error_response(exc, 500))


@app.get("/health", response_model=HealthStatus)
async def health_check() -> HealthStatus:
    """
    Health check endpoint for monitoring server status.

    The server is degraded when it is not initialized or the region
    configuration cannot be written.
    """
    if container is None or container.config_store is None:
        return HealthStatus(status="degraded", version=__version__, config_writable=False)

    config_store = container.config_store
    writable = config_store.check_write_permission()
    return HealthStatus(
        status="healthy" if writable else "degraded",
        version=__version__,
        configured_regions=len(config_store.read()),
        config_writable=writable,
    )


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Region Inventory Server",
        "version": __version__,
        "health_check": "/health",
        "endpoints": {
            "regions": "/regions",
            "region_status": "/regions/status",
            "region_compare": "/regions/compare",
            "resources": "/resources",
        },
    }


@app.post("/regions")
async def regions_action(
    request: RegionActionRequest,
    service: RegionInventoryService = Depends(get_inventory_service),
):
    """
    Run region discovery or report discovery status.

    Discovery calls the billed Cost Explorer API at most once per day;
    later requests on the same day are served from the discovery cache.
    """
    if request.action == "status":
        return service.status()

    if request.action == "discover":
        outcome: DiscoveryOutcome = await service.discover()
        return outcome

    return JSONResponse(
        status_code=400,
        content={"error": "invalid_action", "message": 'Invalid action. Use "discover" or "status".'},
    )


@app.get("/regions/status", response_model=StatusReport)
async def regions_status(service: RegionInventoryService = Depends(get_inventory_service)) -> StatusReport:
    return service.status()


@app.post("/regions/compare", response_model=ConfigComparison)
async def regions_compare(
    request: RegionCompareRequest,
    service: RegionInventoryService = Depends(get_inventory_service),
) -> ConfigComparison:
    """Diff a candidate region set against the configuration without writing."""
    return service.compare_config(request.regions)


@app.get("/resources", response_model=InventoryReport)
async def resources(
    refresh: bool = Query(default=False, description="Fetch live data instead of the saved snapshot"),
    regions: Optional[str] = Query(default=None, description="Comma-separated region override"),
    service: RegionInventoryService = Depends(get_inventory_service),
) -> InventoryReport:
    """
    Multi-region resource inventory.

    Without ``refresh`` the last saved snapshot is returned and no AWS call
    is made.
    """
    return await service.fetch_inventory(regions=regions, refresh=refresh)
