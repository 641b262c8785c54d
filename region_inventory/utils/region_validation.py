# Copyright (c) 2026 Region Inventory contributors.
# Licensed under the Apache License, Version 2.0.

"""Region identifier validation, parsing and formatting.

Every function here is pure and never raises. Invalid tokens are dropped
silently; callers treat the returned list as the accepted subset of their
input.
"""

import re
from collections.abc import Iterable

# Shape of a commercial AWS region code, e.g. "us-east-1", "ap-northeast-3"
REGION_PATTERN = re.compile(r"^[a-z]{2,3}-[a-z]+-\d+$")

DEFAULT_SEPARATOR = ","

# Regions this service accepts. GovCloud codes ("us-gov-west-1") do not fit
# REGION_PATTERN and are not listed.
KNOWN_REGIONS: frozenset[str] = frozenset([
    # US
    "us-east-1", "us-east-2", "us-west-1", "us-west-2",
    # Europe
    "eu-west-1", "eu-west-2", "eu-west-3",
    "eu-central-1", "eu-central-2",
    "eu-north-1", "eu-south-1", "eu-south-2",
    # Asia Pacific
    "ap-northeast-1", "ap-northeast-2", "ap-northeast-3",
    "ap-southeast-1", "ap-southeast-2", "ap-southeast-3", "ap-southeast-4",
    "ap-south-1", "ap-south-2", "ap-east-1",
    # Americas, Africa, Middle East
    "ca-central-1", "ca-west-1",
    "sa-east-1",
    "af-south-1",
    "me-south-1", "me-central-1",
    "il-central-1",
    # China
    "cn-north-1", "cn-northwest-1",
])

REGION_DISPLAY_NAMES: dict[str, str] = {
    "us-east-1": "US East (N. Virginia)",
    "us-east-2": "US East (Ohio)",
    "us-west-1": "US West (N. California)",
    "us-west-2": "US West (Oregon)",
    "eu-west-1": "Europe (Ireland)",
    "eu-west-2": "Europe (London)",
    "eu-west-3": "Europe (Paris)",
    "eu-central-1": "Europe (Frankfurt)",
    "eu-central-2": "Europe (Zurich)",
    "eu-north-1": "Europe (Stockholm)",
    "eu-south-1": "Europe (Milan)",
    "eu-south-2": "Europe (Spain)",
    "ap-northeast-1": "Asia Pacific (Tokyo)",
    "ap-northeast-2": "Asia Pacific (Seoul)",
    "ap-northeast-3": "Asia Pacific (Osaka)",
    "ap-southeast-1": "Asia Pacific (Singapore)",
    "ap-southeast-2": "Asia Pacific (Sydney)",
    "ap-southeast-3": "Asia Pacific (Jakarta)",
    "ap-southeast-4": "Asia Pacific (Melbourne)",
    "ap-south-1": "Asia Pacific (Mumbai)",
    "ap-south-2": "Asia Pacific (Hyderabad)",
    "ap-east-1": "Asia Pacific (Hong Kong)",
    "ca-central-1": "Canada (Central)",
    "ca-west-1": "Canada West (Calgary)",
    "sa-east-1": "South America (São Paulo)",
    "af-south-1": "Africa (Cape Town)",
    "me-south-1": "Middle East (Bahrain)",
    "me-central-1": "Middle East (UAE)",
    "il-central-1": "Israel (Tel Aviv)",
    "cn-north-1": "China (Beijing)",
    "cn-northwest-1": "China (Ningxia)",
}


def is_valid_region(token: object) -> bool:
    """
    Check whether a token is an accepted region code.

    A token is valid when it matches REGION_PATTERN exactly (no surrounding
    whitespace) and appears in KNOWN_REGIONS.

    Args:
        token: Candidate region code

    Returns:
        True if the token is a known, well-formed region code
    """
    if not isinstance(token, str):
        return False
    return bool(REGION_PATTERN.match(token)) and token in KNOWN_REGIONS


def validate_regions(candidates: Iterable[object] | None) -> list[str]:
    """
    Keep the valid region codes of an iterable, deduplicated in input order.

    Args:
        candidates: Any iterable of candidate tokens (None is treated as empty)

    Returns:
        Valid, unique region codes, first occurrence first
    """
    if candidates is None:
        return []

    seen: set[str] = set()
    valid: list[str] = []
    for candidate in candidates:
        if is_valid_region(candidate) and candidate not in seen:
            seen.add(candidate)
            valid.append(candidate)
    return valid


def parse_region_list(raw_text: str | None, separator: str = DEFAULT_SEPARATOR) -> list[str]:
    """
    Parse a separator-delimited region list.

    Splits on the separator, trims each token, drops empty and invalid
    tokens, and deduplicates.

    Args:
        raw_text: Text such as "us-east-1, eu-west-1"
        separator: Token separator (default ",")

    Returns:
        Valid, unique region codes in input order

    Example:
        >>> parse_region_list("us-east-1, ,us-east-1,invalid-token")
        ['us-east-1']
    """
    if not isinstance(raw_text, str) or not raw_text.strip():
        return []

    tokens = (token.strip() for token in raw_text.split(separator))
    return validate_regions(token for token in tokens if token)


def format_region_list(regions: Iterable[object] | None, separator: str = DEFAULT_SEPARATOR) -> str:
    """
    Format regions as a separator-delimited string.

    Invalid tokens are dropped and duplicates removed, so that
    ``parse_region_list(format_region_list(regions))`` returns the valid,
    unique subset of ``regions``.

    Args:
        regions: Region codes to format
        separator: Token separator (default ",")

    Returns:
        Delimited string, empty if nothing is valid
    """
    return separator.join(validate_regions(regions))


def partition_regions(tokens: Iterable[str]) -> tuple[list[str], list[str]]:
    """
    Split raw tokens into valid and invalid region codes.

    Both partitions are deduplicated and keep input order. Tokens are not
    trimmed: provider responses are taken verbatim.

    Args:
        tokens: Raw tokens, e.g. Cost Explorer dimension values

    Returns:
        Tuple of (valid regions, invalid tokens)
    """
    valid: list[str] = []
    invalid: list[str] = []
    seen: set[str] = set()

    for token in tokens:
        if token in seen:
            continue
        seen.add(token)
        if is_valid_region(token):
            valid.append(token)
        else:
            invalid.append(token)

    return valid, invalid


def get_region_display_name(region: str) -> str:
    """Human-readable name for a region code, or the code itself if unknown."""
    return REGION_DISPLAY_NAMES.get(region, region)
