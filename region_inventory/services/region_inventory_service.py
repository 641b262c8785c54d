# Copyright (c) 2026 Region Inventory contributors.
# Licensed under the Apache License, Version 2.0.

"""Region inventory service.

Orchestrates the daily region discovery (dedup cache, Cost Explorer
detection, configuration reconciliation) and the multi-region inventory
fetch with its cached snapshot.
"""

import logging
from datetime import datetime, timezone

from pydantic import ValidationError

from ..clients.discovery_cache import DiscoveryCache
from ..clients.json_store import RESOURCES_SLOT, JsonDocumentStore
from ..models.discovery import DiscoveryOutcome, DiscoveryRecord, StatusReport
from ..models.enums import ErrorCategory, ErrorCode
from ..models.errors import ErrorDescriptor
from ..models.inventory import InventoryReport, RegionFailure, RegionFetchOutcome
from ..models.regions import ConfigComparison, DetectionConfig, RegionDetectionResult
from ..utils.error_handling import (
    ClassifiedError,
    classify_config_error,
    classify_discovery_error,
    summarize_errors,
)
from ..utils.region_validation import parse_region_list, validate_regions
from .config_store import ConfigFileError, ConfigStore
from .multi_region_aggregator import (
    MultiRegionAggregator,
    compute_inventory_stats,
    merge_outcomes,
)
from .region_detector import RegionDetector

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 30


class DiscoveryError(ClassifiedError):
    """Region discovery failed before producing a result.

    No configuration or cache change was made, and no successful billed
    request was recorded.
    """

    charge_incurred = False

    def __init__(self, descriptor: ErrorDescriptor):
        super().__init__(
            descriptor,
            f"{descriptor.message}. No charge-bearing change was made.",
        )


class DiscoveryPersistenceError(ClassifiedError):
    """The billed discovery call succeeded but a local write failed.

    ``result`` holds what was discovered. ``config_updated`` tells whether the
    region configuration was rewritten; ``recorded`` tells whether the run
    reached the discovery cache. When it did, the call is not repeated today.
    """

    charge_incurred = True

    def __init__(
        self,
        descriptor: ErrorDescriptor,
        result: RegionDetectionResult,
        config_updated: bool = False,
        recorded: bool = True,
    ):
        super().__init__(descriptor)
        self.result = result
        self.config_updated = config_updated
        self.recorded = recorded


class InventoryFetchError(ClassifiedError):
    """Every requested region failed to return its inventory."""

    def __init__(self, descriptor: ErrorDescriptor, outcomes: list[RegionFetchOutcome]):
        super().__init__(descriptor)
        self.outcomes = outcomes


class RegionSelectionError(ClassifiedError):
    """An explicit region selection contained no valid region."""

    pass


class RegionInventoryService:
    """
    Entry point for discovery, status, inventory and configuration diffs.

    This is the only component holding both the configuration store and the
    discovery cache.
    """

    def __init__(
        self,
        config_store: ConfigStore,
        discovery_cache: DiscoveryCache,
        region_detector: RegionDetector,
        aggregator: MultiRegionAggregator,
        document_store: JsonDocumentStore,
        default_region: str = "us-east-1",
        detection_config: DetectionConfig | None = None,
        retention_days: int = DEFAULT_RETENTION_DAYS,
    ):
        self.config_store = config_store
        self.discovery_cache = discovery_cache
        self.region_detector = region_detector
        self.aggregator = aggregator
        self.document_store = document_store
        self.default_region = default_region
        self.detection_config = detection_config or DetectionConfig()
        self.retention_days = retention_days

    async def discover(self) -> DiscoveryOutcome:
        """
        Run region discovery at most once per UTC day.

        Returns:
            The outcome; ``from_cache`` is True when today's earlier run was
            reused and no external call was made

        Raises:
            DiscoveryError: Detection failed; nothing was changed
            DiscoveryPersistenceError: Detection succeeded (and was billed),
                but the configuration or the discovery record could not be
                written
        """
        self.discovery_cache.cleanup_old(self.retention_days)

        cached = self.discovery_cache.check_today_execution()
        if cached is not None:
            current = self.config_store.read()
            return DiscoveryOutcome(
                discovered_regions=current,
                previous_regions=current,
                updated_config=False,
                cost=0.0,
                from_cache=True,
                request_count=cached.request_count,
                last_discovery=cached.date_key,
                message=(
                    f"Region discovery already ran today (request #{cached.request_count}). "
                    "It is limited to once per day to prevent duplicate Cost Explorer charges."
                ),
            )

        try:
            result = await self.region_detector.detect_active_regions(self.detection_config)
        except Exception as e:
            descriptor = classify_discovery_error(e)
            logger.error(f"Region discovery failed ({descriptor.code.value}): {descriptor.message}")
            raise DiscoveryError(descriptor) from e

        discovered = result.active_regions
        comparison = self.config_store.compare(discovered)

        try:
            updated = self.config_store.update(discovered)
        except ConfigFileError as e:
            self._record_run(result, config_updated=False)
            raise DiscoveryPersistenceError(e.descriptor, result) from e

        record = self._record_run(result, config_updated=updated)

        message = None
        if not updated:
            message = "No valid region was discovered; the configuration was left unchanged."

        return DiscoveryOutcome(
            discovered_regions=discovered,
            previous_regions=comparison.previous,
            new_regions=comparison.added,
            removed_regions=comparison.removed,
            updated_config=updated,
            cost=result.cost_incurred,
            from_cache=False,
            request_count=record.request_count,
            last_discovery=record.date_key,
            execution_time_ms=result.execution_time_ms,
            message=message,
        )

    def _record_run(self, result: RegionDetectionResult, config_updated: bool) -> DiscoveryRecord:
        """
        Save a billed run to the discovery cache.

        Raises:
            DiscoveryPersistenceError: The cache could not be written
        """
        try:
            return self.discovery_cache.save_execution(
                result.active_regions, result.execution_time_ms, result.cost_incurred
            )
        except OSError as e:
            descriptor = classify_config_error(e)
            config_state = "was updated" if config_updated else "was not updated"
            message = (
                f"Region discovery succeeded and was charged, but the run could not be "
                f"recorded ({descriptor.message}). The region configuration {config_state}; "
                "another discovery today will be charged again"
            )
            logger.error(message)
            raise DiscoveryPersistenceError(
                descriptor.model_copy(update={"message": message}),
                result,
                config_updated=config_updated,
                recorded=False,
            ) from e

    def status(self) -> StatusReport:
        """Configured regions and discovery cache state, without counting a request."""
        stats = self.discovery_cache.stats()
        last = stats.last_execution_timestamp

        return StatusReport(
            configured_regions=self.config_store.read(),
            cache_stats=stats,
            last_discovery=last.date().isoformat() if last else None,
            discovered_today=self.discovery_cache.peek_today_execution() is not None,
            cache_validation=self.discovery_cache.validate(),
        )

    def compare_config(self, candidate: list[str]) -> ConfigComparison:
        return self.config_store.compare(candidate)

    def _resolve_regions(self, regions: str | list[str] | None) -> list[str]:
        if regions is not None:
            if isinstance(regions, str):
                selected = parse_region_list(regions)
            else:
                selected = validate_regions(regions)
            if not selected:
                raise RegionSelectionError(
                    ErrorDescriptor(
                        code=ErrorCode.INVALID_REGION,
                        category=ErrorCategory.INVENTORY,
                        message=f"No valid AWS region in the selection: {regions}",
                        remediation="Pass region codes such as us-east-1 or eu-west-1.",
                        recoverable=False,
                        retryable=False,
                    )
                )
            return selected

        configured = self.config_store.read()
        if configured:
            return configured

        logger.info(f"No region configured, using default region {self.default_region}")
        return [self.default_region]

    def cached_inventory(self) -> InventoryReport:
        """Last saved inventory snapshot, or an empty report if there is none."""
        raw = self.document_store.get(RESOURCES_SLOT)
        if raw is not None:
            try:
                report = InventoryReport.model_validate(raw)
                return report.model_copy(update={"source": "cache"})
            except ValidationError as e:
                logger.warning(f"Ignoring malformed inventory snapshot: {e.error_count()} issue(s)")

        return InventoryReport(source="empty_cache")

    async def fetch_inventory(
        self,
        regions: str | list[str] | None = None,
        refresh: bool = True,
    ) -> InventoryReport:
        """
        Fetch the merged inventory of the selected regions.

        Args:
            regions: Explicit selection (list or comma-separated text);
                defaults to the configured regions, then the default region
            refresh: When False, return the saved snapshot without any
                AWS call

        Returns:
            Merged inventory with per-region failures listed

        Raises:
            RegionSelectionError: An explicit selection had no valid region
            InventoryFetchError: Every selected region failed
        """
        if not refresh:
            return self.cached_inventory()

        selected = self._resolve_regions(regions)
        logger.info(f"Fetching inventory from {len(selected)} region(s): {', '.join(selected)}")

        outcomes = await self.aggregator.fetch_all_regions(selected)
        failures = [outcome for outcome in outcomes if not outcome.succeeded]

        if len(failures) == len(outcomes):
            descriptor = summarize_errors(
                (outcome.region, outcome.error) for outcome in failures
            )
            raise InventoryFetchError(descriptor, outcomes)

        items = merge_outcomes(outcomes)
        report = InventoryReport(
            items=items,
            stats=compute_inventory_stats(items),
            regions=selected,
            region_count=len(selected),
            failed_regions=[
                RegionFailure(region=outcome.region, error=outcome.error) for outcome in failures
            ],
            last_updated=datetime.now(timezone.utc),
            source="api",
        )

        try:
            self.document_store.set(RESOURCES_SLOT, report.model_dump(mode="json"))
        except OSError as e:
            logger.warning(f"Failed to save inventory snapshot: {e}")

        logger.info(f"Inventory fetch complete: {len(items)} item(s), {len(failures)} failed region(s)")
        return report
