# Copyright (c) 2026 Region Inventory contributors.
# Licensed under the Apache License, Version 2.0.

"""Discovery cache, discovery outcome and status data models."""

from datetime import datetime

from pydantic import BaseModel, Field


class DiscoveryRecord(BaseModel):
    """The single persisted record of today's paid discovery run."""

    date_key: str = Field(..., description="UTC calendar date of the run (YYYY-MM-DD)")
    timestamp: datetime = Field(..., description="UTC time the run was recorded")
    regions: list[str] = Field(default_factory=list, description="Regions discovered by the run")
    execution_time_ms: int = Field(..., ge=0)
    cost_incurred: float = Field(..., ge=0.0)
    request_count: int = Field(default=1, ge=1, description="Discovery requests seen today")


class CacheStats(BaseModel):
    """Statistics over the discovery cache slot."""

    total_executions: int = Field(default=0, ge=0, le=1)
    total_cost: float = Field(default=0.0, ge=0.0)
    average_execution_time_ms: float = Field(default=0.0, ge=0.0)
    prevented_duplicates: int = Field(default=0, ge=0)
    last_execution_timestamp: datetime | None = None


class ValidationReport(BaseModel):
    """Result of a structural validation check."""

    is_valid: bool
    issues: list[str] = Field(default_factory=list)


class DiscoveryOutcome(BaseModel):
    """What a discovery request did, as returned to API callers."""

    discovered_regions: list[str] = Field(default_factory=list)
    previous_regions: list[str] = Field(default_factory=list)
    new_regions: list[str] = Field(default_factory=list)
    removed_regions: list[str] = Field(default_factory=list)
    updated_config: bool = False
    cost: float = 0.0
    from_cache: bool = False
    request_count: int = 1
    last_discovery: str | None = None
    execution_time_ms: int | None = None
    message: str | None = None


class StatusReport(BaseModel):
    """Current region configuration plus discovery cache state."""

    configured_regions: list[str] = Field(default_factory=list)
    cache_stats: CacheStats = Field(default_factory=CacheStats)
    last_discovery: str | None = None
    discovered_today: bool = False
    cache_validation: ValidationReport = Field(
        default_factory=lambda: ValidationReport(is_valid=True)
    )
