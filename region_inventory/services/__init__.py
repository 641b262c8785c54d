"""Business logic services for the region inventory service."""

from .config_store import ConfigFileError, ConfigStore
from .multi_region_aggregator import (
    MultiRegionAggregator,
    compute_inventory_stats,
    filter_active_items,
    filter_items_by_region,
)
from .region_detector import RegionDetector, calculate_time_period
from .region_inventory_service import (
    DiscoveryError,
    DiscoveryPersistenceError,
    InventoryFetchError,
    RegionInventoryService,
    RegionSelectionError,
)

__all__ = [
    "ConfigFileError",
    "ConfigStore",
    "MultiRegionAggregator",
    "compute_inventory_stats",
    "filter_active_items",
    "filter_items_by_region",
    "RegionDetector",
    "calculate_time_period",
    "DiscoveryError",
    "DiscoveryPersistenceError",
    "InventoryFetchError",
    "RegionInventoryService",
    "RegionSelectionError",
]
