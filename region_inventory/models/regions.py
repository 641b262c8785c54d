# Copyright (c) 2026 Region Inventory contributors.
# Licensed under the Apache License, Version 2.0.

"""Region configuration and detection data models."""

from pydantic import BaseModel, Field

from .errors import RetryPolicy


DEFAULT_DETECTION_RETRY_POLICY = RetryPolicy(
    max_retries=2,
    base_delay_ms=1000,
    max_delay_ms=5000,
    backoff_multiplier=2.0,
)


class ConfigComparison(BaseModel):
    """Difference between the configured region set and a candidate set."""

    previous: list[str] = Field(default_factory=list, description="Currently configured regions")
    new: list[str] = Field(default_factory=list, description="Valid regions of the candidate")
    added: list[str] = Field(default_factory=list, description="In the candidate, not configured")
    removed: list[str] = Field(default_factory=list, description="Configured, not in the candidate")
    unchanged: list[str] = Field(default_factory=list, description="In both sets")

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed)


class DetectionConfig(BaseModel):
    """Settings for one region detection run."""

    time_period_months: int = Field(default=1, ge=1, description="Months of usage to inspect")
    include_current_month: bool = Field(
        default=True,
        description="Inspect the current month to date instead of the previous month",
    )
    filter_invalid_regions: bool = Field(
        default=True,
        description="Log a warning for each token dropped as an invalid region",
    )
    retry_policy: RetryPolicy = Field(default=DEFAULT_DETECTION_RETRY_POLICY)


class RegionDetectionResult(BaseModel):
    """Outcome of a Cost Explorer region detection call."""

    active_regions: list[str] = Field(default_factory=list)
    invalid_regions: list[str] = Field(default_factory=list)
    total_found: int = Field(default=0, ge=0)
    execution_time_ms: int = Field(default=0)
    cost_incurred: float = Field(default=0.0)


class RegionFrequency(BaseModel):
    """How often a region appeared across several detection runs."""

    region: str
    frequency: int = Field(..., ge=1)


class DetectionStats(BaseModel):
    """Aggregate view over several detection results."""

    total_executions: int = 0
    average_execution_time_ms: float = 0.0
    total_cost: float = 0.0
    unique_regions_found: list[str] = Field(default_factory=list)
    most_common_regions: list[RegionFrequency] = Field(default_factory=list)
