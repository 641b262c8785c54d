"""Enumerations for error codes, error categories and inventory kinds."""

from enum import Enum


class ErrorCategory(str, Enum):
    """Operation family an error was raised from."""

    DISCOVERY = "discovery"
    INVENTORY = "inventory"
    CONFIG = "config"


class ErrorCode(str, Enum):
    """Machine-readable error codes surfaced to API callers."""

    PERMISSION_DENIED = "permission_denied"
    CREDENTIALS_MISSING = "credentials_missing"
    RATE_LIMITED = "rate_limited"
    TIMEOUT = "timeout"
    NETWORK_UNREACHABLE = "network_unreachable"
    INVALID_REGION = "invalid_region"
    CONFIG_FILE_PERMISSION = "config_file_permission"
    CONFIG_FILE_MISSING = "config_file_missing"
    DISK_FULL = "disk_full"
    UNCLASSIFIED = "unclassified"
    MULTIPLE_ERRORS = "multiple_errors"


class InventoryKind(str, Enum):
    """Resource kinds the inventory fetch knows how to enumerate."""

    EC2_INSTANCE = "ec2"
    LAMBDA_FUNCTION = "lambda"
    RDS_INSTANCE = "rds"
