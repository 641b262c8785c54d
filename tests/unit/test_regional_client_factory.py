"""Unit tests for RegionalClientFactory."""

from unittest.mock import patch

import pytest

from region_inventory.clients.aws_client import AWSClient
from region_inventory.clients.regional_client_factory import RegionalClientFactory


@pytest.fixture
def factory():
    return RegionalClientFactory(default_region="us-east-1")


@pytest.fixture(autouse=True)
def no_boto_clients():
    with patch.object(AWSClient, "__init__", return_value=None) as init:
        yield init


class TestGetClient:
    """Tests for get_client."""

    def test_defaults_to_default_region(self, factory, no_boto_clients):
        factory.get_client()

        no_boto_clients.assert_called_once_with(
            region="us-east-1", credentials=None, boto_config=None
        )
        assert factory.cached_regions == ["us-east-1"]

    def test_reuses_client_per_region(self, factory, no_boto_clients):
        first = factory.get_client("eu-west-1")
        second = factory.get_client("eu-west-1")

        assert first is second
        assert no_boto_clients.call_count == 1

    def test_separate_clients_per_region(self, factory):
        assert factory.get_client("us-east-1") is not factory.get_client("us-west-2")
        assert factory.get_client_count() == 2
        assert factory.has_client("us-west-2")
        assert not factory.has_client("ap-south-1")

    def test_passes_credentials(self, no_boto_clients):
        credentials = {"aws_access_key_id": "AKIAEXAMPLE", "aws_secret_access_key": "secret"}
        factory = RegionalClientFactory("eu-central-1", credentials=credentials)

        factory.get_client()

        no_boto_clients.assert_called_once_with(
            region="eu-central-1", credentials=credentials, boto_config=None
        )


def test_clear_clients(factory):
    original = factory.get_client("us-east-1")

    factory.clear_clients()

    assert factory.get_client_count() == 0
    assert factory.get_client("us-east-1") is not original
