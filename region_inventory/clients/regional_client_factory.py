# Copyright (c) 2026 Region Inventory contributors.
# Licensed under the Apache License, Version 2.0.

"""Factory for creating and caching regional AWS clients."""

import logging

from botocore.config import Config

from .aws_client import AWSClient

logger = logging.getLogger(__name__)


class RegionalClientFactory:
    """
    Factory for creating and caching regional AWS clients.

    Each region gets its own AWSClient, created on first use and reused
    afterwards. The same credentials and boto3 configuration are applied
    to every client.
    """

    def __init__(
        self,
        default_region: str = "us-east-1",
        credentials: dict[str, str] | None = None,
        boto_config: Config | None = None,
    ):
        """
        Initialize with default region, credentials and boto3 config.

        Args:
            default_region: Default AWS region code (e.g., "us-east-1")
            credentials: Optional explicit credentials passed to every client
            boto_config: Optional boto3 Config to apply to all clients.
                        If None, each client uses its default config.
        """
        self._default_region = default_region
        self._credentials = credentials
        self._boto_config = boto_config
        self._clients: dict[str, AWSClient] = {}

        logger.debug(
            f"RegionalClientFactory initialized with default_region={default_region}"
        )

    @property
    def default_region(self) -> str:
        """Get the default region."""
        return self._default_region

    @property
    def cached_regions(self) -> list[str]:
        """Get list of regions with cached clients."""
        return list(self._clients.keys())

    def get_client(self, region: str | None = None) -> AWSClient:
        """
        Get or create an AWS client for the specified region.

        Args:
            region: AWS region code (defaults to the factory's default region)

        Returns:
            AWSClient configured for the region. Repeated calls with the same
            region return the same instance.
        """
        region = region or self._default_region

        if region in self._clients:
            logger.debug(f"Reusing cached client for region {region}")
            return self._clients[region]

        logger.info(f"Creating new AWS client for region {region}")
        client = AWSClient(
            region=region,
            credentials=self._credentials,
            boto_config=self._boto_config,
        )
        self._clients[region] = client

        return client

    def clear_clients(self) -> None:
        """Drop all cached clients; later calls create new instances."""
        client_count = len(self._clients)
        self._clients.clear()
        logger.info(f"Cleared {client_count} cached regional clients")

    def get_client_count(self) -> int:
        return len(self._clients)

    def has_client(self, region: str) -> bool:
        return region in self._clients
