"""Unit tests for RegionInventoryService."""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from region_inventory.clients.aws_client import AWSAPIError
from region_inventory.clients.json_store import RESOURCES_SLOT
from region_inventory.models.enums import ErrorCategory, ErrorCode, InventoryKind
from region_inventory.models.errors import ErrorDescriptor
from region_inventory.models.inventory import RegionFetchOutcome
from region_inventory.models.regions import RegionDetectionResult
from region_inventory.services.config_store import ConfigFileError
from region_inventory.services.multi_region_aggregator import MultiRegionAggregator
from region_inventory.services.region_detector import RegionDetector
from region_inventory.services.region_inventory_service import (
    DiscoveryError,
    DiscoveryPersistenceError,
    InventoryFetchError,
    RegionInventoryService,
    RegionSelectionError,
)
from region_inventory.utils.inventory_mapping import map_records


def detection(active, invalid=()):
    return RegionDetectionResult(
        active_regions=list(active),
        invalid_regions=list(invalid),
        total_found=len(active) + len(invalid),
        execution_time_ms=420,
        cost_incurred=0.01,
    )


def ok_outcome(region, clock, *instance_ids):
    records = [{"InstanceId": i, "State": {"Name": "running"}} for i in instance_ids]
    return RegionFetchOutcome(
        region=region,
        items=map_records(InventoryKind.EC2_INSTANCE, records, region, clock.now),
    )


def failed_outcome(region, code=ErrorCode.PERMISSION_DENIED):
    return RegionFetchOutcome(
        region=region,
        error=ErrorDescriptor(
            code=code,
            category=ErrorCategory.INVENTORY,
            message=f"failed (region: {region})",
            remediation="fix it",
            recoverable=True,
            retryable=False,
        ),
    )


@pytest.fixture
def detector():
    mock = MagicMock(spec=RegionDetector)
    mock.detect_active_regions = AsyncMock(return_value=detection(["us-east-1", "eu-west-1"]))
    return mock


@pytest.fixture
def aggregator():
    mock = MagicMock(spec=MultiRegionAggregator)
    mock.fetch_all_regions = AsyncMock(return_value=[])
    return mock


@pytest.fixture
def service(config_store, discovery_cache, detector, aggregator, document_store):
    return RegionInventoryService(
        config_store=config_store,
        discovery_cache=discovery_cache,
        region_detector=detector,
        aggregator=aggregator,
        document_store=document_store,
        default_region="us-west-2",
    )


class TestDiscover:
    """Tests for discover."""

    @pytest.mark.asyncio
    async def test_first_run_updates_config_and_records(self, service, config_path, discovery_cache, detector):
        config_path.write_text("AWS_REGION=us-east-1,ap-northeast-1\n", encoding="utf-8")

        outcome = await service.discover()

        assert outcome.from_cache is False
        assert outcome.updated_config is True
        assert outcome.discovered_regions == ["us-east-1", "eu-west-1"]
        assert outcome.previous_regions == ["us-east-1", "ap-northeast-1"]
        assert outcome.new_regions == ["eu-west-1"]
        assert outcome.removed_regions == ["ap-northeast-1"]
        assert outcome.cost == 0.01
        assert outcome.request_count == 1
        assert outcome.last_discovery == "2026-03-15"
        assert config_path.read_text(encoding="utf-8") == "AWS_REGION=us-east-1,eu-west-1\n"
        assert discovery_cache.peek_today_execution().regions == ["us-east-1", "eu-west-1"]
        detector.detect_active_regions.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_second_run_same_day_is_served_from_cache(self, service, detector, config_store):
        await service.discover()

        outcome = await service.discover()

        assert outcome.from_cache is True
        assert outcome.cost == 0
        assert outcome.updated_config is False
        assert outcome.request_count == 2
        assert outcome.discovered_regions == config_store.read()
        assert "request #2" in outcome.message
        assert "once per day" in outcome.message
        assert detector.detect_active_regions.await_count == 1

    @pytest.mark.asyncio
    async def test_next_day_runs_again(self, service, detector, clock):
        await service.discover()
        clock.now = clock.now + timedelta(days=1)

        outcome = await service.discover()

        assert outcome.from_cache is False
        assert detector.detect_active_regions.await_count == 2

    @pytest.mark.asyncio
    async def test_detection_failure_changes_nothing(self, service, detector, config_path, discovery_cache):
        config_path.write_text("AWS_REGION=us-east-1\n", encoding="utf-8")
        detector.detect_active_regions.side_effect = AWSAPIError(
            "not authorized", error_code="AccessDeniedException"
        )

        with pytest.raises(DiscoveryError) as exc_info:
            await service.discover()

        assert exc_info.value.descriptor.code == ErrorCode.PERMISSION_DENIED
        assert exc_info.value.charge_incurred is False
        assert "No charge-bearing change was made" in str(exc_info.value)
        assert config_path.read_text(encoding="utf-8") == "AWS_REGION=us-east-1\n"
        assert discovery_cache.exists() is False

    @pytest.mark.asyncio
    async def test_failed_config_write_still_records_the_run(self, service, config_store, discovery_cache):
        error = ConfigFileError(
            ErrorDescriptor(
                code=ErrorCode.CONFIG_FILE_PERMISSION,
                category=ErrorCategory.CONFIG,
                message="Permission denied writing the configuration file",
                remediation="Check file permissions",
                recoverable=True,
                retryable=False,
            )
        )

        with patch.object(config_store, "update", side_effect=error):
            with pytest.raises(DiscoveryPersistenceError) as exc_info:
                await service.discover()

        assert exc_info.value.charge_incurred is True
        assert exc_info.value.descriptor.code == ErrorCode.CONFIG_FILE_PERMISSION
        assert exc_info.value.result.active_regions == ["us-east-1", "eu-west-1"]
        assert discovery_cache.peek_today_execution() is not None

        outcome = await service.discover()
        assert outcome.from_cache is True

    @pytest.mark.asyncio
    async def test_failed_cache_write_after_config_update(
        self, service, config_store, config_path, discovery_cache
    ):
        config_path.write_text("AWS_REGION=us-east-1\n", encoding="utf-8")

        with patch.object(
            discovery_cache, "save_execution", side_effect=OSError(28, "No space left on device")
        ):
            with pytest.raises(DiscoveryPersistenceError) as exc_info:
                await service.discover()

        error = exc_info.value
        assert error.charge_incurred is True
        assert error.recorded is False
        assert error.config_updated is True
        assert error.descriptor.code == ErrorCode.DISK_FULL
        assert "was updated" in error.descriptor.message
        assert "charged again" in error.descriptor.message
        assert error.result.active_regions == ["us-east-1", "eu-west-1"]
        assert config_store.read() == ["us-east-1", "eu-west-1"]
        assert discovery_cache.exists() is False

    @pytest.mark.asyncio
    async def test_failed_config_and_cache_writes(self, service, config_store, discovery_cache):
        config_error = ConfigFileError(
            ErrorDescriptor(
                code=ErrorCode.CONFIG_FILE_PERMISSION,
                category=ErrorCategory.CONFIG,
                message="Permission denied writing the configuration file",
                remediation="Check file permissions",
                recoverable=True,
                retryable=False,
            )
        )

        with patch.object(config_store, "update", side_effect=config_error), patch.object(
            discovery_cache, "save_execution", side_effect=OSError(28, "No space left on device")
        ):
            with pytest.raises(DiscoveryPersistenceError) as exc_info:
                await service.discover()

        error = exc_info.value
        assert error.charge_incurred is True
        assert error.recorded is False
        assert error.config_updated is False
        assert "was not updated" in error.descriptor.message
        assert discovery_cache.exists() is False

    @pytest.mark.asyncio
    async def test_nothing_valid_discovered_keeps_config(self, service, detector, config_path):
        config_path.write_text("AWS_REGION=us-east-1\n", encoding="utf-8")
        detector.detect_active_regions.return_value = detection([], invalid=["global"])

        outcome = await service.discover()

        assert outcome.updated_config is False
        assert outcome.discovered_regions == []
        assert outcome.message is not None
        assert config_path.read_text(encoding="utf-8") == "AWS_REGION=us-east-1\n"

    @pytest.mark.asyncio
    async def test_stale_record_is_cleaned_up(self, service, discovery_cache, clock):
        discovery_cache.save_execution(["us-east-1"], 100, 0.01)
        clock.now = clock.now + timedelta(days=45)

        await service.discover()

        assert discovery_cache.peek_today_execution().date_key == "2026-04-29"


class TestStatus:
    """Tests for status and compare_config."""

    def test_status_without_discovery(self, service):
        report = service.status()

        assert report.configured_regions == []
        assert report.discovered_today is False
        assert report.last_discovery is None
        assert report.cache_validation.is_valid is True

    @pytest.mark.asyncio
    async def test_status_does_not_count_requests(self, service):
        await service.discover()

        service.status()
        report = service.status()

        assert report.discovered_today is True
        assert report.last_discovery == "2026-03-15"
        assert report.configured_regions == ["us-east-1", "eu-west-1"]
        assert report.cache_stats.prevented_duplicates == 0

    def test_compare_config(self, service, config_path):
        config_path.write_text("AWS_REGION=us-east-1\n", encoding="utf-8")

        comparison = service.compare_config(["us-east-1", "sa-east-1"])

        assert comparison.added == ["sa-east-1"]
        assert comparison.unchanged == ["us-east-1"]


class TestFetchInventory:
    """Tests for fetch_inventory and cached_inventory."""

    @pytest.mark.asyncio
    async def test_uses_configured_regions(self, service, aggregator, config_path, clock):
        config_path.write_text("AWS_REGION=eu-west-1,us-east-1\n", encoding="utf-8")
        aggregator.fetch_all_regions.return_value = [
            ok_outcome("eu-west-1", clock, "i-1"),
            ok_outcome("us-east-1", clock, "i-2", "i-3"),
        ]

        report = await service.fetch_inventory()

        aggregator.fetch_all_regions.assert_awaited_once_with(["eu-west-1", "us-east-1"])
        assert [item.id for item in report.items] == ["i-1", "i-2", "i-3"]
        assert report.region_count == 2
        assert report.stats.count_by_region == {"eu-west-1": 1, "us-east-1": 2}
        assert report.failed_regions == []
        assert report.source == "api"

    @pytest.mark.asyncio
    async def test_falls_back_to_default_region(self, service, aggregator, clock):
        aggregator.fetch_all_regions.return_value = [ok_outcome("us-west-2", clock)]

        report = await service.fetch_inventory()

        aggregator.fetch_all_regions.assert_awaited_once_with(["us-west-2"])
        assert report.regions == ["us-west-2"]

    @pytest.mark.asyncio
    async def test_explicit_selection_as_text(self, service, aggregator, clock):
        aggregator.fetch_all_regions.return_value = [ok_outcome("ap-south-1", clock)]

        await service.fetch_inventory(regions="ap-south-1, bogus")

        aggregator.fetch_all_regions.assert_awaited_once_with(["ap-south-1"])

    @pytest.mark.asyncio
    async def test_selection_without_valid_region(self, service, aggregator):
        with pytest.raises(RegionSelectionError) as exc_info:
            await service.fetch_inventory(regions=["bogus", "US-EAST-1"])

        assert exc_info.value.descriptor.code == ErrorCode.INVALID_REGION
        aggregator.fetch_all_regions.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_partial_failure_is_reported(self, service, aggregator, clock):
        aggregator.fetch_all_regions.return_value = [
            ok_outcome("us-east-1", clock, "i-1"),
            failed_outcome("eu-west-1"),
        ]

        report = await service.fetch_inventory(regions=["us-east-1", "eu-west-1"])

        assert [item.id for item in report.items] == ["i-1"]
        assert [failure.region for failure in report.failed_regions] == ["eu-west-1"]

    @pytest.mark.asyncio
    async def test_every_region_failing_raises(self, service, aggregator, document_store):
        aggregator.fetch_all_regions.return_value = [
            failed_outcome("us-east-1"),
            failed_outcome("eu-west-1", ErrorCode.TIMEOUT),
        ]

        with pytest.raises(InventoryFetchError) as exc_info:
            await service.fetch_inventory(regions=["us-east-1", "eu-west-1"])

        descriptor = exc_info.value.descriptor
        assert descriptor.code == ErrorCode.MULTIPLE_ERRORS
        assert "(2)" in descriptor.message
        assert len(exc_info.value.outcomes) == 2
        assert document_store.get(RESOURCES_SLOT) is None

    @pytest.mark.asyncio
    async def test_single_region_failure_keeps_its_descriptor(self, service, aggregator):
        aggregator.fetch_all_regions.return_value = [failed_outcome("us-east-1")]

        with pytest.raises(InventoryFetchError) as exc_info:
            await service.fetch_inventory(regions=["us-east-1"])

        assert exc_info.value.descriptor.code == ErrorCode.PERMISSION_DENIED

    @pytest.mark.asyncio
    async def test_snapshot_is_saved_and_served(self, service, aggregator, clock):
        aggregator.fetch_all_regions.return_value = [ok_outcome("us-east-1", clock, "i-1")]
        fetched = await service.fetch_inventory(regions=["us-east-1"])

        cached = await service.fetch_inventory(refresh=False)

        assert cached.source == "cache"
        assert [item.id for item in cached.items] == ["i-1"]
        assert cached.last_updated == fetched.last_updated
        assert aggregator.fetch_all_regions.await_count == 1

    @pytest.mark.asyncio
    async def test_no_snapshot_yet(self, service, aggregator):
        report = await service.fetch_inventory(refresh=False)

        assert report.source == "empty_cache"
        assert report.items == []
        aggregator.fetch_all_regions.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_snapshot_write_failure_is_not_fatal(self, service, aggregator, document_store, clock):
        aggregator.fetch_all_regions.return_value = [ok_outcome("us-east-1", clock, "i-1")]

        with patch.object(document_store, "set", side_effect=OSError("disk full")):
            report = await service.fetch_inventory(regions=["us-east-1"])

        assert len(report.items) == 1

    def test_malformed_snapshot_reads_as_empty(self, service, document_store):
        document_store.set(RESOURCES_SLOT, {"items": "not a list"})
        assert service.cached_inventory().source == "empty_cache"
