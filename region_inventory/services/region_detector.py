# Copyright (c) 2026 Region Inventory contributors.
# Licensed under the Apache License, Version 2.0.

"""Active region detection through the Cost Explorer API.

Each detection issues one billed GetDimensionValues request (plus one per
extra result page). Callers are expected to gate it behind DiscoveryCache.
"""

import logging
import time
from collections import Counter
from datetime import date, datetime, timezone
from typing import Callable

from ..clients.aws_client import AWSClient
from ..models.discovery import ValidationReport
from ..models.enums import ErrorCategory
from ..models.regions import (
    DetectionConfig,
    DetectionStats,
    RegionDetectionResult,
    RegionFrequency,
)
from ..utils.region_validation import partition_regions
from ..utils.retry import with_retry

logger = logging.getLogger(__name__)

# Cost Explorer charges per API request
DISCOVERY_COST_USD = 0.01


def _first_of_month(day: date, months_back: int = 0) -> date:
    month_index = day.year * 12 + (day.month - 1) - months_back
    return date(month_index // 12, month_index % 12 + 1, 1)


def calculate_time_period(config: DetectionConfig, today: date) -> tuple[str, str]:
    """
    Compute the Cost Explorer window for a detection run.

    The end date is exclusive. With ``include_current_month`` the window runs
    from the 1st of this month to today; on the 1st itself that would be
    empty, so it starts on the 1st of the previous month instead. Without it,
    the window is the whole previous month. Each extra month in
    ``time_period_months`` moves the start back one month.

    Args:
        config: Detection settings
        today: Current UTC date

    Returns:
        (start, end) as ISO date strings
    """
    if config.include_current_month:
        end = today
        start = _first_of_month(today)
        if start == end:
            start = _first_of_month(today, months_back=1)
    else:
        end = _first_of_month(today)
        start = _first_of_month(today, months_back=1)

    if config.time_period_months > 1:
        start = _first_of_month(start, months_back=config.time_period_months - 1)

    return start.isoformat(), end.isoformat()


class RegionDetector:
    """
    Detects regions with recent billing activity.

    Raw dimension values are split into valid regions and invalid tokens.
    Failures propagate to the caller after the configured retries; there is
    no fallback region list.
    """

    def __init__(self, aws_client: AWSClient, clock: Callable[[], datetime] | None = None):
        """
        Args:
            aws_client: Client whose Cost Explorer handle is used
            clock: Callable returning the current aware UTC datetime
        """
        self.aws_client = aws_client
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def detect_active_regions(
        self, config: DetectionConfig | None = None
    ) -> RegionDetectionResult:
        """
        Detect active regions.

        Args:
            config: Detection settings (defaults to DetectionConfig())

        Returns:
            Detection result with valid and invalid tokens deduplicated
        """
        config = config or DetectionConfig()
        started = time.monotonic()

        start, end = calculate_time_period(config, self._clock().date())

        raw_values = await with_retry(
            lambda: self.aws_client.get_region_dimension_values(start, end),
            policy=config.retry_policy,
            category=ErrorCategory.DISCOVERY,
        )

        active, invalid = partition_regions(raw_values)
        if config.filter_invalid_regions:
            for token in invalid:
                logger.warning(f"Filtered out invalid region token: {token}")

        execution_time_ms = int((time.monotonic() - started) * 1000)

        logger.info(
            f"Region detection finished: {len(active)} valid, {len(invalid)} invalid "
            f"({execution_time_ms}ms)"
        )

        return RegionDetectionResult(
            active_regions=active,
            invalid_regions=invalid,
            total_found=len(active) + len(invalid),
            execution_time_ms=execution_time_ms,
            cost_incurred=DISCOVERY_COST_USD,
        )

    @staticmethod
    def validate_detection_result(result: RegionDetectionResult) -> ValidationReport:
        issues: list[str] = []

        if not result.active_regions and not result.invalid_regions:
            issues.append("No region was detected")

        if result.execution_time_ms < 0:
            issues.append("Execution time is negative")

        if result.cost_incurred < 0:
            issues.append("Cost is negative")

        if result.total_found != len(result.active_regions) + len(result.invalid_regions):
            issues.append("Total found does not match valid plus invalid counts")

        tokens = result.active_regions + result.invalid_regions
        if len(tokens) != len(set(tokens)):
            issues.append("Duplicate region tokens")

        return ValidationReport(is_valid=not issues, issues=issues)

    @staticmethod
    def get_detection_stats(results: list[RegionDetectionResult]) -> DetectionStats:
        """Aggregate several detection results; regions sorted by frequency."""
        if not results:
            return DetectionStats()

        all_regions = [region for result in results for region in result.active_regions]
        frequency = Counter(all_regions)

        return DetectionStats(
            total_executions=len(results),
            average_execution_time_ms=sum(r.execution_time_ms for r in results) / len(results),
            total_cost=sum(r.cost_incurred for r in results),
            unique_regions_found=list(dict.fromkeys(all_regions)),
            most_common_regions=[
                RegionFrequency(region=region, frequency=count)
                for region, count in frequency.most_common()
            ],
        )
