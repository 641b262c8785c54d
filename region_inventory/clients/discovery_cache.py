# Copyright (c) 2026 Region Inventory contributors.
# Licensed under the Apache License, Version 2.0.

"""Once-per-day record of the paid region discovery call."""

import logging
import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable

from pydantic import ValidationError

from ..models.discovery import CacheStats, DiscoveryRecord, ValidationReport
from .json_store import DISCOVERY_SLOT, JsonDocumentStore

logger = logging.getLogger(__name__)

DATE_KEY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DiscoveryCache:
    """
    Single-slot, date-keyed record of today's discovery run.

    At most one record exists. A record whose date is not today (UTC) is
    treated as absent but is left on disk until it is overwritten or cleaned
    up.
    """

    def __init__(self, store: JsonDocumentStore, clock: Clock | None = None):
        """
        Args:
            store: JSON document store holding the ``region_discovery`` slot
            clock: Callable returning the current aware UTC datetime
        """
        self._store = store
        self._clock = clock or utc_now

    def _today_key(self) -> str:
        return self._clock().date().isoformat()

    def _load_raw(self) -> Any | None:
        return self._store.get(DISCOVERY_SLOT)

    def _load(self) -> DiscoveryRecord | None:
        raw = self._load_raw()
        if raw is None:
            return None
        try:
            return DiscoveryRecord.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed discovery cache record: {e.error_count()} issue(s)")
            return None

    def _save(self, record: DiscoveryRecord) -> None:
        self._store.set(DISCOVERY_SLOT, record.model_dump(mode="json"))

    def peek_today_execution(self) -> DiscoveryRecord | None:
        """Today's record, if any, without counting the lookup."""
        record = self._load()
        if record is not None and record.date_key == self._today_key():
            return record
        return None

    def check_today_execution(self) -> DiscoveryRecord | None:
        """
        Look up today's record and count the lookup as a discovery request.

        Returns:
            The record with ``request_count`` incremented and persisted (or
            the stored record unchanged if that write fails), or None when
            no run happened today (nothing is written then)
        """
        record = self.peek_today_execution()
        if record is None:
            return None

        counted = record.model_copy(update={"request_count": record.request_count + 1})
        try:
            self._save(counted)
        except OSError as e:
            # the stored count is what later lookups will see
            logger.warning(f"Failed to persist discovery request count: {e}")
            return record
        record = counted

        logger.info(
            f"Discovery already ran on {record.date_key}: "
            f"request #{record.request_count} served from cache"
        )
        return record

    def save_execution(
        self,
        regions: list[str],
        execution_time_ms: int,
        cost: float,
    ) -> DiscoveryRecord:
        """
        Record a fresh discovery run for today, replacing any previous record.

        Raises:
            OSError: If the cache file cannot be written
        """
        now = self._clock()
        record = DiscoveryRecord(
            date_key=now.date().isoformat(),
            timestamp=now,
            regions=list(regions),
            execution_time_ms=max(0, int(execution_time_ms)),
            cost_incurred=cost,
            request_count=1,
        )
        self._save(record)
        logger.info(f"Saved discovery run for {record.date_key}: {len(record.regions)} region(s)")
        return record

    def stats(self) -> CacheStats:
        record = self._load()
        if record is None:
            return CacheStats()

        return CacheStats(
            total_executions=1,
            total_cost=record.cost_incurred,
            average_execution_time_ms=float(record.execution_time_ms),
            prevented_duplicates=max(0, record.request_count - 1),
            last_execution_timestamp=record.timestamp,
        )

    def exists(self) -> bool:
        return self._store.has(DISCOVERY_SLOT)

    def clear(self) -> bool:
        """Remove the record. Returns True if one was present."""
        removed = self._store.delete(DISCOVERY_SLOT)
        if removed:
            logger.info("Discovery cache cleared")
        return removed

    def cleanup_old(self, days_to_keep: int = 30) -> bool:
        """
        Remove the record if its date is older than the retention window.

        Returns:
            True if a record was removed
        """
        record = self._load()
        if record is None:
            return False

        try:
            record_date = date.fromisoformat(record.date_key)
        except ValueError:
            logger.warning(f"Discovery cache has an unparsable date: {record.date_key}")
            return False

        cutoff = self._clock().date() - timedelta(days=days_to_keep)
        if record_date >= cutoff:
            return False

        try:
            self._store.delete(DISCOVERY_SLOT)
        except OSError as e:
            logger.warning(f"Failed to remove old discovery cache record: {e}")
            return False

        logger.info(f"Removed discovery cache record from {record.date_key}")
        return True

    def validate(self) -> ValidationReport:
        """
        Check the stored record's structure.

        The raw stored value is inspected so that every problem is reported,
        not just the first one a model validation would hit. No record is
        valid.
        """
        raw = self._load_raw()
        if raw is None:
            return ValidationReport(is_valid=True)
        if not isinstance(raw, dict):
            return ValidationReport(is_valid=False, issues=["Record is not an object"])

        issues: list[str] = []

        date_key = raw.get("date_key")
        if not isinstance(date_key, str) or not DATE_KEY_PATTERN.match(date_key):
            issues.append("Invalid date format")

        timestamp = raw.get("timestamp")
        try:
            datetime.fromisoformat(str(timestamp).replace("Z", "+00:00"))
        except ValueError:
            issues.append("Invalid timestamp")

        if not isinstance(raw.get("regions"), list):
            issues.append("Region list is not an array")

        for field, label in (("execution_time_ms", "execution time"), ("cost_incurred", "cost")):
            value = raw.get(field)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                issues.append(f"Invalid {label}")

        request_count = raw.get("request_count")
        if isinstance(request_count, bool) or not isinstance(request_count, int) or request_count < 1:
            issues.append("Invalid request count")

        return ValidationReport(is_valid=not issues, issues=issues)
