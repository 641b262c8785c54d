"""Utility functions for the region inventory service."""

from .error_handling import (
    ClassifiedError,
    classify_config_error,
    classify_discovery_error,
    classify_error,
    classify_inventory_error,
    log_error,
    summarize_errors,
)
from .error_sanitization import mask_sensitive, sanitize_error_response
from .region_validation import (
    format_region_list,
    get_region_display_name,
    is_valid_region,
    parse_region_list,
    partition_regions,
    validate_regions,
)
from .retry import with_retry

__all__ = [
    "ClassifiedError",
    "classify_config_error",
    "classify_discovery_error",
    "classify_error",
    "classify_inventory_error",
    "log_error",
    "summarize_errors",
    "mask_sensitive",
    "sanitize_error_response",
    "format_region_list",
    "get_region_display_name",
    "is_valid_region",
    "parse_region_list",
    "partition_regions",
    "validate_regions",
    "with_retry",
]
