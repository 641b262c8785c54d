"""Pytest configuration and shared fixtures."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from region_inventory.clients.aws_client import AWSClient
from region_inventory.clients.discovery_cache import DiscoveryCache
from region_inventory.clients.json_store import JsonDocumentStore
from region_inventory.clients.regional_client_factory import RegionalClientFactory
from region_inventory.models.errors import RetryPolicy
from region_inventory.services.config_store import ConfigStore


@pytest.fixture
def anyio_backend():
    """Configure anyio backend for async tests."""
    return "asyncio"


# =============================================================================
# Environment and Configuration Fixtures
# =============================================================================

@pytest.fixture
def test_env(monkeypatch):
    """Set up test environment variables."""
    test_vars = {
        "AWS_DEFAULT_REGION": "us-east-1",
        "LOG_LEVEL": "DEBUG",
        "ENVIRONMENT": "test",
    }
    for key, value in test_vars.items():
        monkeypatch.setenv(key, value)
    return test_vars


@pytest.fixture
def aws_credentials(monkeypatch):
    """Fake credentials so moto-backed boto3 clients never reach AWS."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def no_delay_policy():
    """Retry policy with zero backoff."""
    return RetryPolicy(max_retries=2, base_delay_ms=0, max_delay_ms=0)


# =============================================================================
# Store Fixtures
# =============================================================================

class FixedClock:
    """Settable clock returning an aware UTC datetime."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 3, 15, 9, 30, tzinfo=timezone.utc))


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / ".env.local"


@pytest.fixture
def config_store(config_path):
    return ConfigStore(config_path)


@pytest.fixture
def document_store(tmp_path):
    return JsonDocumentStore(tmp_path / "data" / "cache.json")


@pytest.fixture
def discovery_cache(document_store, clock):
    return DiscoveryCache(document_store, clock=clock)


# =============================================================================
# AWS Mocks
# =============================================================================

@pytest.fixture
def mock_aws_client():
    """Create a mock AWSClient returning empty listings."""
    client = MagicMock(spec=AWSClient)
    client.list_ec2_instances = AsyncMock(return_value=[])
    client.list_lambda_functions = AsyncMock(return_value=[])
    client.list_rds_instances = AsyncMock(return_value=[])
    client.get_region_dimension_values = AsyncMock(return_value=[])
    return client


@pytest.fixture
def mock_client_factory(mock_aws_client):
    """Create a mock RegionalClientFactory handing out mock_aws_client."""
    factory = MagicMock(spec=RegionalClientFactory)
    factory.get_client.return_value = mock_aws_client
    return factory


# =============================================================================
# Test Data Fixtures
# =============================================================================

@pytest.fixture
def sample_resource_data():
    """Provide sample raw AWS records for testing."""
    return {
        "ec2_instance": {
            "InstanceId": "i-1234567890abcdef0",
            "InstanceType": "t3.medium",
            "State": {"Name": "running"},
            "Placement": {"AvailabilityZone": "us-east-1a"},
            "Tags": [
                {"Key": "Name", "Value": "web-server"},
                {"Key": "Environment", "Value": "production"},
            ],
            "Arn": "arn:aws:ec2:us-east-1:123456789012:instance/i-1234567890abcdef0",
        },
        "lambda_function": {
            "FunctionName": "process-orders",
            "FunctionArn": "arn:aws:lambda:us-east-1:123456789012:function:process-orders",
            "Runtime": "python3.12",
        },
        "rds_instance": {
            "DBInstanceIdentifier": "orders-db",
            "DBInstanceStatus": "available",
            "Engine": "postgres",
            "AvailabilityZone": "us-east-1b",
            "DBInstanceArn": "arn:aws:rds:us-east-1:123456789012:db:orders-db",
        },
    }


# =============================================================================
# Pytest Hooks for Test Reporting
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow running"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "property: marks tests as property-based tests"
    )


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark tests by directory
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "property" in str(item.fspath):
            item.add_marker(pytest.mark.property)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


def pytest_sessionstart(session):
    """Print test session information."""
    print("\n" + "=" * 70)
    print("Region Inventory Server - Test Suite")
    print("=" * 70)


def pytest_sessionfinish(session, exitstatus):
    """Print test session summary."""
    print("\n" + "=" * 70)
    if exitstatus == 0:
        print("PASS: All tests passed!")
    else:
        print(f"FAIL: Tests failed with exit status: {exitstatus}")
    print("=" * 70)
