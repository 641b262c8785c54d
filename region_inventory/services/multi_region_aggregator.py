# Copyright (c) 2026 Region Inventory contributors.
# Licensed under the Apache License, Version 2.0.

"""Multi-region inventory aggregator.

This module provides the MultiRegionAggregator class that fetches live
resources from several AWS regions in parallel, tolerates individual region
failures, and merges the successful results into one inventory.
"""

import asyncio
import logging
import time
from collections import Counter
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from ..clients.aws_client import AWSClient
from ..clients.regional_client_factory import RegionalClientFactory
from ..models.enums import ErrorCategory, InventoryKind
from ..models.errors import RetryPolicy
from ..models.inventory import (
    ACTIVE_STATUSES,
    InventoryItem,
    InventoryStats,
    RegionFetchOutcome,
)
from ..utils.error_handling import classify_inventory_error
from ..utils.inventory_mapping import map_records
from ..utils.retry import with_retry

logger = logging.getLogger(__name__)

DEFAULT_KINDS: tuple[InventoryKind, ...] = (
    InventoryKind.EC2_INSTANCE,
    InventoryKind.LAMBDA_FUNCTION,
    InventoryKind.RDS_INSTANCE,
)

DEFAULT_MAX_CONCURRENT_REGIONS = 5

# AWSClient method listing the raw records of each kind
KIND_FETCHERS: dict[InventoryKind, str] = {
    InventoryKind.EC2_INSTANCE: "list_ec2_instances",
    InventoryKind.LAMBDA_FUNCTION: "list_lambda_functions",
    InventoryKind.RDS_INSTANCE: "list_rds_instances",
}


class MultiRegionAggregator:
    """
    Fetches and merges inventory across regions.

    Each region is fetched by its own task with its own client. A failing
    region yields a failed RegionFetchOutcome and never aborts the others;
    deciding what to do when every region fails is left to the caller.
    """

    def __init__(
        self,
        client_factory: RegionalClientFactory,
        retry_policy: RetryPolicy | None = None,
        kinds: Iterable[InventoryKind] = DEFAULT_KINDS,
        max_concurrent_regions: int = DEFAULT_MAX_CONCURRENT_REGIONS,
    ):
        """
        Initialize with dependencies and configuration.

        Args:
            client_factory: Factory for creating regional AWS clients
            retry_policy: Backoff applied to each per-kind fetch
            kinds: Resource kinds to enumerate, in merge order
            max_concurrent_regions: Maximum regions fetched in parallel
        """
        self.client_factory = client_factory
        self.retry_policy = retry_policy
        self.kinds = tuple(kinds)
        self.max_concurrent_regions = max(1, max_concurrent_regions)

        logger.info(
            f"MultiRegionAggregator initialized: kinds={[k.value for k in self.kinds]}, "
            f"max_concurrent={self.max_concurrent_regions}"
        )

    async def get_resources_from_all_regions(self, regions: list[str]) -> list[InventoryItem]:
        """
        Fetch and concatenate the items of every region that succeeds.

        Args:
            regions: Region codes, in the order their items should appear

        Returns:
            Items of successful regions in region-input order ([] for no
            regions, without touching any client)
        """
        if not regions:
            return []

        outcomes = await self.fetch_all_regions(regions)
        return merge_outcomes(outcomes)

    async def fetch_all_regions(self, regions: list[str]) -> list[RegionFetchOutcome]:
        """
        Fetch every region concurrently.

        Returns:
            One outcome per input region, in input order
        """
        if not regions:
            return []

        semaphore = asyncio.Semaphore(self.max_concurrent_regions)

        async def fetch_with_semaphore(region: str) -> RegionFetchOutcome:
            async with semaphore:
                return await self.fetch_region(region)

        started = time.time()
        results = await asyncio.gather(
            *(fetch_with_semaphore(region) for region in regions),
            return_exceptions=True,
        )

        outcomes: list[RegionFetchOutcome] = []
        for region, result in zip(regions, results):
            if isinstance(result, BaseException):
                logger.error(f"Region {region} fetch failed with exception: {result}")
                outcomes.append(
                    RegionFetchOutcome(region=region, error=classify_inventory_error(result, region))
                )
            else:
                outcomes.append(result)

        failed = [outcome for outcome in outcomes if not outcome.succeeded]
        logger.info(
            f"Fetched {len(regions)} region(s) in {int((time.time() - started) * 1000)}ms: "
            f"{len(regions) - len(failed)} succeeded, {len(failed)} failed"
        )
        return outcomes

    async def fetch_region(self, region: str) -> RegionFetchOutcome:
        """
        Fetch every configured kind from one region.

        Kinds are fetched concurrently, each with its own retries. If any
        kind fails, the region fails and carries the first failure (in kind
        order) as a classified, masked descriptor.
        """
        started = time.time()

        try:
            client = self.client_factory.get_client(region)
            observed_at = datetime.now(timezone.utc)
            results = await asyncio.gather(
                *(self._fetch_kind(client, region, kind) for kind in self.kinds),
                return_exceptions=True,
            )
            errors = [r for r in results if isinstance(r, BaseException)]
            if errors:
                raise errors[0]

        except Exception as e:
            descriptor = classify_inventory_error(e, region)
            logger.warning(
                f"Region {region} failed ({descriptor.code.value}): {descriptor.message}. "
                f"Hint: {descriptor.remediation}"
            )
            return RegionFetchOutcome(
                region=region,
                error=descriptor,
                duration_ms=int((time.time() - started) * 1000),
            )

        items: list[InventoryItem] = []
        for kind, records in zip(self.kinds, results):
            items.extend(map_records(kind, records, region, observed_at))

        duration_ms = int((time.time() - started) * 1000)
        logger.debug(f"Region {region}: {len(items)} item(s) in {duration_ms}ms")
        return RegionFetchOutcome(region=region, items=items, duration_ms=duration_ms)

    async def _fetch_kind(
        self, client: AWSClient, region: str, kind: InventoryKind
    ) -> list[dict[str, Any]]:
        fetch = getattr(client, KIND_FETCHERS[kind])
        return await with_retry(
            fetch,
            policy=self.retry_policy,
            category=ErrorCategory.INVENTORY,
            region=region,
        )


def merge_outcomes(outcomes: Iterable[RegionFetchOutcome]) -> list[InventoryItem]:
    """Concatenate the items of successful outcomes, in outcome order."""
    items: list[InventoryItem] = []
    for outcome in outcomes:
        if outcome.succeeded:
            items.extend(outcome.items)
    return items


def compute_inventory_stats(items: list[InventoryItem]) -> InventoryStats:
    return InventoryStats(
        total_count=len(items),
        count_by_region=dict(Counter(item.region for item in items)),
        count_by_kind=dict(Counter(item.kind.value for item in items)),
        count_by_status=dict(Counter(item.status for item in items)),
    )


def filter_active_items(
    items: list[InventoryItem],
    active_statuses: Iterable[str] = ACTIVE_STATUSES,
) -> list[InventoryItem]:
    """Items whose status is one of the active statuses (case-insensitive)."""
    wanted = {status.lower() for status in active_statuses}
    return [item for item in items if item.status.lower() in wanted]


def filter_items_by_region(items: list[InventoryItem], region: str) -> list[InventoryItem]:
    return [item for item in items if item.region == region]
