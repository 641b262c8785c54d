"""Unit tests for the retry executor."""

from unittest.mock import AsyncMock, patch

import pytest
from botocore.exceptions import ClientError

from region_inventory.clients.aws_client import AWSAPIError
from region_inventory.models.enums import ErrorCategory
from region_inventory.models.errors import RetryPolicy
from region_inventory.utils.retry import compute_delay_ms, with_retry


def throttled() -> AWSAPIError:
    return AWSAPIError("Rate exceeded", error_code="Throttling")


@pytest.fixture
def sleep_mock():
    with patch("region_inventory.utils.retry.asyncio.sleep", new_callable=AsyncMock) as mock:
        yield mock


class TestWithRetry:
    """Tests for with_retry."""

    @pytest.mark.asyncio
    async def test_returns_first_success_without_sleeping(self, sleep_mock):
        operation = AsyncMock(return_value="ok")

        assert await with_retry(operation) == "ok"
        assert operation.await_count == 1
        sleep_mock.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_always_failing_operation_is_called_max_retries_plus_one_times(self, sleep_mock):
        error = throttled()
        operation = AsyncMock(side_effect=error)
        policy = RetryPolicy(max_retries=2, base_delay_ms=1000, max_delay_ms=5000)

        with pytest.raises(AWSAPIError) as exc_info:
            await with_retry(operation, policy=policy)

        assert exc_info.value is error
        assert operation.await_count == 3
        assert sleep_mock.await_count == 2

    @pytest.mark.asyncio
    async def test_backoff_delays_grow_and_are_capped(self, sleep_mock):
        operation = AsyncMock(side_effect=throttled())
        policy = RetryPolicy(max_retries=4, base_delay_ms=1000, max_delay_ms=5000, backoff_multiplier=2.0)

        with pytest.raises(AWSAPIError):
            await with_retry(operation, policy=policy)

        delays = [call.args[0] for call in sleep_mock.await_args_list]
        assert delays == [1.0, 2.0, 4.0, 5.0]

    @pytest.mark.asyncio
    async def test_invalid_region_error_is_not_retried(self, sleep_mock):
        operation = AsyncMock(side_effect=AWSAPIError("bad region", error_code="InvalidRegion"))

        with pytest.raises(AWSAPIError):
            await with_retry(operation, policy=RetryPolicy(max_retries=3), region="xx-bad-1")

        assert operation.await_count == 1
        sleep_mock.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_permission_error_is_not_retried_for_discovery(self, sleep_mock):
        error = ClientError(
            {"Error": {"Code": "AccessDeniedException", "Message": "no"}}, "GetDimensionValues"
        )
        operation = AsyncMock(side_effect=error)

        with pytest.raises(ClientError):
            await with_retry(operation, category=ErrorCategory.DISCOVERY)

        assert operation.await_count == 1

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failures(self, sleep_mock):
        operation = AsyncMock(side_effect=[throttled(), TimeoutError("timed out"), "done"])

        result = await with_retry(operation, policy=RetryPolicy(max_retries=2))

        assert result == "done"
        assert operation.await_count == 3

    @pytest.mark.asyncio
    async def test_zero_retries_means_single_attempt(self, sleep_mock):
        operation = AsyncMock(side_effect=throttled())

        with pytest.raises(AWSAPIError):
            await with_retry(operation, policy=RetryPolicy(max_retries=0))

        assert operation.await_count == 1
        sleep_mock.assert_not_awaited()


class TestComputeDelay:
    """Tests for compute_delay_ms."""

    def test_without_jitter(self):
        policy = RetryPolicy(base_delay_ms=100, max_delay_ms=10_000, backoff_multiplier=3.0)
        assert [compute_delay_ms(policy, attempt) for attempt in range(3)] == [100, 300, 900]

    def test_jitter_adds_at_most_a_quarter(self):
        policy = RetryPolicy(base_delay_ms=1000, max_delay_ms=10_000, jitter=True)
        for _ in range(50):
            delay = compute_delay_ms(policy, 0)
            assert 1000 <= delay <= 1250

    def test_jitter_never_exceeds_max_delay(self):
        policy = RetryPolicy(base_delay_ms=1000, max_delay_ms=4000, jitter=True)
        for attempt in range(2, 6):
            for _ in range(20):
                assert compute_delay_ms(policy, attempt) <= 4000
