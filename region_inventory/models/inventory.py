# Copyright (c) 2026 Region Inventory contributors.
# Licensed under the Apache License, Version 2.0.

"""Multi-region inventory data models.

This module contains Pydantic models for the multi-region inventory fetch,
including per-region outcomes, merged items and derived statistics.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from .enums import InventoryKind
from .errors import ErrorDescriptor


# Statuses counted as "active" when filtering an inventory (compared lower-cased)
ACTIVE_STATUSES: frozenset[str] = frozenset([
    "running",
    "active",
    "available",
    "in-use",
])


class InventoryItem(BaseModel):
    """A single live resource observed in one region.

    ``cross_region_key`` is unique across the merged inventory even when the
    provider's raw ids collide between regions.
    """

    id: str = Field(..., description="Provider id of the resource within its region")
    display_name: str = Field(..., description="Name tag or provider name")
    kind: InventoryKind = Field(..., description="Resource kind")
    status: str = Field(..., description="Provider lifecycle status")
    region: str = Field(..., description="AWS region code")
    region_display_name: str = Field(..., description="Human-readable region name")
    cross_region_key: str = Field(..., description="Key unique over (kind, region, id)")
    availability_zone: str | None = Field(default=None, description="Placement zone, if any")
    last_observed_at: datetime | None = Field(default=None, description="When the fetch saw it")
    external_ref: str | None = Field(default=None, description="ARN, if available")
    details: str | None = Field(
        default=None,
        description="Kind-specific detail (instance type, runtime, engine)",
    )


class RegionFetchOutcome(BaseModel):
    """Result from fetching one region's inventory.

    Exactly one outcome is produced per region per aggregation call. A failed
    region carries the classified error and no items.
    """

    region: str = Field(..., description="AWS region code")
    items: list[InventoryItem] = Field(default_factory=list)
    error: ErrorDescriptor | None = Field(default=None, description="Failure, if any")
    duration_ms: int = Field(default=0, ge=0, description="Fetch duration in milliseconds")

    @property
    def succeeded(self) -> bool:
        return self.error is None


class InventoryStats(BaseModel):
    """Counts over a merged inventory."""

    total_count: int = Field(default=0, ge=0)
    count_by_region: dict[str, int] = Field(default_factory=dict)
    count_by_kind: dict[str, int] = Field(default_factory=dict)
    count_by_status: dict[str, int] = Field(default_factory=dict)


class RegionFailure(BaseModel):
    """A region that could not be inventoried."""

    region: str
    error: ErrorDescriptor


class InventoryReport(BaseModel):
    """Merged inventory returned to API callers."""

    items: list[InventoryItem] = Field(default_factory=list)
    stats: InventoryStats = Field(default_factory=InventoryStats)
    regions: list[str] = Field(default_factory=list, description="Regions that were queried")
    region_count: int = Field(default=0, ge=0)
    failed_regions: list[RegionFailure] = Field(default_factory=list)
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    source: str = Field(default="api", description="api, cache or empty_cache")
