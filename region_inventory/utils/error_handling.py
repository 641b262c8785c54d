# Copyright (c) 2026 Region Inventory contributors.
# Licensed under the Apache License, Version 2.0.

"""Error classification for discovery, inventory and config-storage failures.

Classification is a pure function from an exception (its kind tags and its
message) and an operation category to an ErrorDescriptor. Each category has
an ordered matcher table; the first matching entry wins and unmatched errors
fall through to the category's generic descriptor.
"""

import errno
import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from ..models.enums import ErrorCategory, ErrorCode
from ..models.errors import ErrorDescriptor
from .error_sanitization import mask_sensitive

logger = logging.getLogger(__name__)

DISCOVERY_RATE_LIMIT_RETRY_AFTER_SECONDS = 60
INVENTORY_RATE_LIMIT_RETRY_AFTER_SECONDS = 30


class ClassifiedError(Exception):
    """Base class for errors that carry a structured ErrorDescriptor."""

    def __init__(self, descriptor: ErrorDescriptor, message: str | None = None):
        super().__init__(message or descriptor.message)
        self.descriptor = descriptor


@dataclass(frozen=True)
class _Matcher:
    """One row of a classification table."""

    kinds: frozenset[str]
    substrings: tuple[str, ...]
    build: Callable[[str, str | None], ErrorDescriptor]

    def matches(self, kinds: set[str], message: str) -> bool:
        if self.kinds & kinds:
            return True
        return any(s in message for s in self.substrings)


def error_kinds(exc: BaseException) -> set[str]:
    """
    Collect the kind tags of an exception.

    Tags are the class names in the exception's MRO, a provider error code
    (``error_code`` attribute or botocore ``response['Error']['Code']``), and
    the symbolic errno name for OS errors.
    """
    kinds = {cls.__name__ for cls in type(exc).__mro__ if cls not in (object, BaseException)}

    code = getattr(exc, "error_code", None)
    if not code:
        response = getattr(exc, "response", None)
        if isinstance(response, dict):
            code = response.get("Error", {}).get("Code")
    if code:
        kinds.add(str(code))

    exc_errno = getattr(exc, "errno", None)
    if isinstance(exc_errno, int) and exc_errno in errno.errorcode:
        kinds.add(errno.errorcode[exc_errno])

    return kinds


def _region_suffix(region: str | None) -> str:
    return f" (region: {region})" if region else ""


# =============================================================================
# Shared descriptor builders
# =============================================================================

def _credentials_missing(category: ErrorCategory) -> Callable[[str, str | None], ErrorDescriptor]:
    def build(message: str, region: str | None) -> ErrorDescriptor:
        return ErrorDescriptor(
            code=ErrorCode.CREDENTIALS_MISSING,
            category=category,
            message=f"AWS credentials are not configured{_region_suffix(region)}",
            remediation=(
                "Set AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY, or run with an "
                "instance profile or role that provides credentials."
            ),
            recoverable=True,
            retryable=False,
        )
    return build


def _timeout(category: ErrorCategory, api_name: str) -> Callable[[str, str | None], ErrorDescriptor]:
    def build(message: str, region: str | None) -> ErrorDescriptor:
        return ErrorDescriptor(
            code=ErrorCode.TIMEOUT,
            category=category,
            message=f"The connection to the {api_name} timed out{_region_suffix(region)}",
            remediation="Check network connectivity and try again.",
            recoverable=True,
            retryable=True,
        )
    return build


def _network(category: ErrorCategory) -> Callable[[str, str | None], ErrorDescriptor]:
    def build(message: str, region: str | None) -> ErrorDescriptor:
        return ErrorDescriptor(
            code=ErrorCode.NETWORK_UNREACHABLE,
            category=category,
            message=f"A network connection error occurred{_region_suffix(region)}",
            remediation="Check the internet connection, proxy and firewall settings.",
            recoverable=True,
            retryable=True,
        )
    return build


_CREDENTIAL_KINDS = frozenset(["NoCredentialsError", "PartialCredentialsError"])
_CREDENTIAL_SUBSTRINGS = ("unable to locate credentials", "partial credentials")

_PERMISSION_KINDS = frozenset([
    "UnauthorizedOperation",
    "AccessDenied",
    "AccessDeniedException",
    "UnrecognizedClientException",
])
_PERMISSION_SUBSTRINGS = ("unauthorized", "access denied", "not authorized")

_THROTTLE_KINDS = frozenset([
    "Throttling",
    "ThrottlingException",
    "RequestLimitExceeded",
    "TooManyRequestsException",
    "LimitExceededException",
])
_THROTTLE_SUBSTRINGS = ("throttl", "rate exceeded", "quota exceeded")

_TIMEOUT_KINDS = frozenset([
    "TimeoutError",
    "ConnectTimeoutError",
    "ReadTimeoutError",
    "ETIMEDOUT",
])
_TIMEOUT_SUBSTRINGS = ("timeout", "timed out")

_NETWORK_KINDS = frozenset([
    "ConnectionError",
    "EndpointConnectionError",
    "ECONNREFUSED",
    "ECONNRESET",
])
_NETWORK_SUBSTRINGS = ("network", "connection", "enotfound", "could not connect")


# =============================================================================
# Discovery (Cost Explorer) table
# =============================================================================

def _discovery_permission(message: str, region: str | None) -> ErrorDescriptor:
    return ErrorDescriptor(
        code=ErrorCode.PERMISSION_DENIED,
        category=ErrorCategory.DISCOVERY,
        message="Missing permission for the Cost Explorer API",
        remediation=(
            "Grant the IAM user or role the ce:GetDimensionValues permission, "
            "then retry."
        ),
        recoverable=True,
        retryable=False,
    )


def _discovery_rate_limit(message: str, region: str | None) -> ErrorDescriptor:
    return ErrorDescriptor(
        code=ErrorCode.RATE_LIMITED,
        category=ErrorCategory.DISCOVERY,
        message="The Cost Explorer API rate limit was reached",
        remediation="Wait a minute and try again.",
        recoverable=True,
        retryable=True,
        retry_after_seconds=DISCOVERY_RATE_LIMIT_RETRY_AFTER_SECONDS,
    )


def _discovery_unknown(message: str, region: str | None) -> ErrorDescriptor:
    return ErrorDescriptor(
        code=ErrorCode.UNCLASSIFIED,
        category=ErrorCategory.DISCOVERY,
        message=f"Cost Explorer API error: {message}",
        remediation=(
            "Check the AWS credentials and network connection. If the problem "
            "persists, check the AWS service health dashboard."
        ),
        recoverable=True,
        retryable=True,
    )


_DISCOVERY_MATCHERS: list[_Matcher] = [
    _Matcher(_CREDENTIAL_KINDS, _CREDENTIAL_SUBSTRINGS, _credentials_missing(ErrorCategory.DISCOVERY)),
    _Matcher(_PERMISSION_KINDS, _PERMISSION_SUBSTRINGS, _discovery_permission),
    _Matcher(_THROTTLE_KINDS, _THROTTLE_SUBSTRINGS, _discovery_rate_limit),
    _Matcher(_TIMEOUT_KINDS, _TIMEOUT_SUBSTRINGS, _timeout(ErrorCategory.DISCOVERY, "Cost Explorer API")),
    _Matcher(_NETWORK_KINDS, _NETWORK_SUBSTRINGS, _network(ErrorCategory.DISCOVERY)),
]


# =============================================================================
# Inventory (per-region resource APIs) table
# =============================================================================

def _inventory_permission(message: str, region: str | None) -> ErrorDescriptor:
    return ErrorDescriptor(
        code=ErrorCode.PERMISSION_DENIED,
        category=ErrorCategory.INVENTORY,
        message=f"Missing permission for the resource APIs{_region_suffix(region)}",
        remediation="Attach the ReadOnlyAccess policy to the IAM user or role.",
        recoverable=True,
        retryable=False,
    )


def _inventory_invalid_region(message: str, region: str | None) -> ErrorDescriptor:
    return ErrorDescriptor(
        code=ErrorCode.INVALID_REGION,
        category=ErrorCategory.INVENTORY,
        message=f"An invalid region was specified: {region or 'unknown'}",
        remediation="Check that the region name is a valid AWS region.",
        recoverable=False,
        retryable=False,
    )


def _inventory_rate_limit(message: str, region: str | None) -> ErrorDescriptor:
    return ErrorDescriptor(
        code=ErrorCode.RATE_LIMITED,
        category=ErrorCategory.INVENTORY,
        message=f"The API rate limit was reached{_region_suffix(region)}",
        remediation="Wait a little and try again.",
        recoverable=True,
        retryable=True,
        retry_after_seconds=INVENTORY_RATE_LIMIT_RETRY_AFTER_SECONDS,
    )


def _inventory_unknown(message: str, region: str | None) -> ErrorDescriptor:
    return ErrorDescriptor(
        code=ErrorCode.UNCLASSIFIED,
        category=ErrorCategory.INVENTORY,
        message=f"Failed to fetch resources{_region_suffix(region)}: {message}",
        remediation="Check the AWS credentials and region configuration.",
        recoverable=True,
        retryable=True,
    )


def _is_region_not_supported(message: str) -> bool:
    return "region" in message and "not supported" in message


_INVENTORY_MATCHERS: list[_Matcher] = [
    _Matcher(_CREDENTIAL_KINDS, _CREDENTIAL_SUBSTRINGS, _credentials_missing(ErrorCategory.INVENTORY)),
    _Matcher(_PERMISSION_KINDS, _PERMISSION_SUBSTRINGS, _inventory_permission),
    _Matcher(
        frozenset(["InvalidRegion", "InvalidRegionError", "UnknownRegionError"]),
        ("invalid region", "region not found"),
        _inventory_invalid_region,
    ),
    _Matcher(_THROTTLE_KINDS, _THROTTLE_SUBSTRINGS, _inventory_rate_limit),
    _Matcher(_TIMEOUT_KINDS, _TIMEOUT_SUBSTRINGS, _timeout(ErrorCategory.INVENTORY, "resource APIs")),
    _Matcher(_NETWORK_KINDS, _NETWORK_SUBSTRINGS, _network(ErrorCategory.INVENTORY)),
]


# =============================================================================
# Config storage table
# =============================================================================

def _config_permission(message: str, region: str | None) -> ErrorDescriptor:
    return ErrorDescriptor(
        code=ErrorCode.CONFIG_FILE_PERMISSION,
        category=ErrorCategory.CONFIG,
        message="No permission to write the region configuration file",
        remediation="Make the configuration file and its directory writable by this process.",
        recoverable=True,
        retryable=False,
    )


def _config_disk_full(message: str, region: str | None) -> ErrorDescriptor:
    return ErrorDescriptor(
        code=ErrorCode.DISK_FULL,
        category=ErrorCategory.CONFIG,
        message="Not enough disk space to write the region configuration",
        remediation="Free up disk space and try again.",
        recoverable=True,
        retryable=False,
    )


def _config_missing(message: str, region: str | None) -> ErrorDescriptor:
    return ErrorDescriptor(
        code=ErrorCode.CONFIG_FILE_MISSING,
        category=ErrorCategory.CONFIG,
        message="The region configuration file was not found",
        remediation="Create the configuration file (or its directory) in the project root.",
        recoverable=True,
        retryable=False,
    )


def _config_unknown(message: str, region: str | None) -> ErrorDescriptor:
    return ErrorDescriptor(
        code=ErrorCode.UNCLASSIFIED,
        category=ErrorCategory.CONFIG,
        message=f"Configuration file error: {message}",
        remediation="Check that the configuration file exists and is writable.",
        recoverable=True,
        retryable=False,
    )


_CONFIG_MATCHERS: list[_Matcher] = [
    _Matcher(
        frozenset(["PermissionError", "EACCES", "EPERM"]),
        ("permission denied", "eacces"),
        _config_permission,
    ),
    _Matcher(frozenset(["ENOSPC"]), ("no space", "enospc"), _config_disk_full),
    _Matcher(
        frozenset(["FileNotFoundError", "ENOENT"]),
        ("no such file", "enoent"),
        _config_missing,
    ),
]


_TABLES: dict[ErrorCategory, tuple[list[_Matcher], Callable[[str, str | None], ErrorDescriptor]]] = {
    ErrorCategory.DISCOVERY: (_DISCOVERY_MATCHERS, _discovery_unknown),
    ErrorCategory.INVENTORY: (_INVENTORY_MATCHERS, _inventory_unknown),
    ErrorCategory.CONFIG: (_CONFIG_MATCHERS, _config_unknown),
}


# =============================================================================
# Public API
# =============================================================================

def classify_error(
    exc: BaseException,
    category: ErrorCategory,
    region: str | None = None,
) -> ErrorDescriptor:
    """
    Classify an exception into an ErrorDescriptor.

    Errors that already carry a descriptor (ClassifiedError) are returned
    as-is. The raw message is masked before being interpolated.

    Args:
        exc: The failure to classify
        category: Operation family the failure came from
        region: Region to mention in inventory messages

    Returns:
        Structured descriptor of the failure
    """
    if isinstance(exc, ClassifiedError):
        return exc.descriptor

    raw_message = str(exc) or type(exc).__name__
    lowered = raw_message.lower()
    kinds = error_kinds(exc)
    safe_message = mask_sensitive(raw_message)

    matchers, fallback = _TABLES[category]
    for matcher in matchers:
        if matcher.matches(kinds, lowered):
            return matcher.build(safe_message, region)

    return fallback(safe_message, region)


def classify_discovery_error(exc: BaseException) -> ErrorDescriptor:
    """Classify a failure of the Cost Explorer discovery call."""
    return classify_error(exc, ErrorCategory.DISCOVERY)


def classify_inventory_error(exc: BaseException, region: str | None = None) -> ErrorDescriptor:
    """Classify a failure of a per-region resource API call."""
    return classify_error(exc, ErrorCategory.INVENTORY, region=region)


def classify_config_error(exc: BaseException) -> ErrorDescriptor:
    """Classify a failure of the region configuration storage."""
    return classify_error(exc, ErrorCategory.CONFIG)


def is_retryable(exc: BaseException, category: ErrorCategory, region: str | None = None) -> bool:
    """Whether an automatic retry of the failed operation may succeed."""
    return classify_error(exc, category, region=region).retryable


def summarize_errors(
    failures: Iterable[tuple[str | None, ErrorDescriptor]],
    category: ErrorCategory = ErrorCategory.INVENTORY,
) -> ErrorDescriptor:
    """
    Merge several region failures into one descriptor.

    Args:
        failures: (region, descriptor) pairs
        category: Category to report for the merged descriptor

    Returns:
        The single failure's descriptor, a generic descriptor when there is
        none, or a MULTIPLE_ERRORS descriptor with per-code counts
    """
    failures = list(failures)

    if not failures:
        return ErrorDescriptor(
            code=ErrorCode.UNCLASSIFIED,
            category=category,
            message="An unknown error occurred",
            remediation="Contact the system administrator.",
            recoverable=False,
            retryable=False,
        )

    if len(failures) == 1:
        return failures[0][1]

    counts = Counter(descriptor.code.value for _, descriptor in failures)
    breakdown = ", ".join(f"{code}: {count}" for code, count in counts.most_common())

    return ErrorDescriptor(
        code=ErrorCode.MULTIPLE_ERRORS,
        category=category,
        message=f"Errors occurred in multiple regions ({len(failures)})",
        remediation=(
            f"Error breakdown: {breakdown}. "
            "Check the configuration and permissions of each region."
        ),
        recoverable=any(descriptor.recoverable for _, descriptor in failures),
        retryable=any(descriptor.retryable for _, descriptor in failures),
    )


def log_error(
    error: BaseException,
    context: dict[str, Any] | None = None,
    logger_instance: logging.Logger | None = None,
) -> None:
    """
    Log an error with its context as a structured record.

    Args:
        error: Exception to log
        context: Additional context (region, operation, ...)
        logger_instance: Logger to use (defaults to module logger)
    """
    if logger_instance is None:
        logger_instance = logger

    logger_instance.error(
        f"Error occurred: {type(error).__name__}: {mask_sensitive(str(error))}",
        exc_info=error,
        extra={"error_context": context or {}},
    )
