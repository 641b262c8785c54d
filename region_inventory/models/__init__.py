"""Data models for the region inventory service."""

from .enums import ErrorCategory, ErrorCode, InventoryKind
from .errors import ErrorDescriptor, RetryPolicy
from .regions import (
    ConfigComparison,
    DetectionConfig,
    DetectionStats,
    RegionDetectionResult,
    RegionFrequency,
)
from .discovery import (
    CacheStats,
    DiscoveryOutcome,
    DiscoveryRecord,
    StatusReport,
    ValidationReport,
)
from .inventory import (
    ACTIVE_STATUSES,
    InventoryItem,
    InventoryReport,
    InventoryStats,
    RegionFailure,
    RegionFetchOutcome,
)
from .health import HealthStatus

__all__ = [
    "ErrorCategory",
    "ErrorCode",
    "InventoryKind",
    "ErrorDescriptor",
    "RetryPolicy",
    "ConfigComparison",
    "DetectionConfig",
    "DetectionStats",
    "RegionDetectionResult",
    "RegionFrequency",
    "CacheStats",
    "DiscoveryOutcome",
    "DiscoveryRecord",
    "StatusReport",
    "ValidationReport",
    "ACTIVE_STATUSES",
    "InventoryItem",
    "InventoryReport",
    "InventoryStats",
    "RegionFailure",
    "RegionFetchOutcome",
    "HealthStatus",
]
