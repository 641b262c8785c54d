# Copyright (c) 2026 Region Inventory contributors.
# Licensed under the Apache License, Version 2.0.

"""Service container for dependency wiring and lifecycle management.

The container builds every component from Settings and holds the
instances. It is protocol-agnostic: the HTTP app uses it, and so can a CLI
or a test.
"""

import logging
from typing import Optional

from .clients.discovery_cache import DiscoveryCache
from .clients.json_store import JsonDocumentStore
from .clients.regional_client_factory import RegionalClientFactory
from .config import Settings, settings as get_default_settings
from .services.config_store import ConfigStore
from .services.multi_region_aggregator import MultiRegionAggregator
from .services.region_detector import RegionDetector
from .services.region_inventory_service import RegionInventoryService

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Wires together all services with proper dependency injection.

    Usage::

        container = ServiceContainer()          # uses default settings
        await container.initialize()

        outcome = await container.inventory_service.discover()

        await container.shutdown()
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        """
        Create a ServiceContainer.

        Args:
            settings: Application settings. If None, loads from environment
                      variables / .env file via the default ``settings()``
                      helper.
        """
        self._settings: Settings = settings or get_default_settings()
        self._initialized = False

        # Service instances (populated by initialize())
        self._config_store: Optional[ConfigStore] = None
        self._document_store: Optional[JsonDocumentStore] = None
        self._discovery_cache: Optional[DiscoveryCache] = None
        self._client_factory: Optional[RegionalClientFactory] = None
        self._region_detector: Optional[RegionDetector] = None
        self._aggregator: Optional[MultiRegionAggregator] = None
        self._inventory_service: Optional[RegionInventoryService] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """
        Initialize all services in dependency order.

        Construction touches no network and no file, so errors here are
        configuration errors and propagate.
        """
        if self._initialized:
            logger.warning("ServiceContainer.initialize() called more than once")
            return

        s = self._settings
        logger.info("ServiceContainer: initializing services")

        # 1. Local stores
        self._config_store = ConfigStore(s.region_config_path, key=s.region_config_key)
        self._document_store = JsonDocumentStore(s.cache_file_path)
        self._discovery_cache = DiscoveryCache(self._document_store)
        logger.info(
            f"ServiceContainer: stores initialized "
            f"(config={s.region_config_path}, cache={s.cache_file_path})"
        )

        # 2. AWS clients
        self._client_factory = RegionalClientFactory(
            default_region=s.aws_region,
            credentials=s.credentials,
        )
        logger.info(f"ServiceContainer: client factory initialized (default region={s.aws_region})")

        # 3. Detector and aggregator
        self._region_detector = RegionDetector(self._client_factory.get_client())
        self._aggregator = MultiRegionAggregator(
            client_factory=self._client_factory,
            retry_policy=s.retry_policy,
            kinds=s.kinds,
        )

        # 4. Facade
        self._inventory_service = RegionInventoryService(
            config_store=self._config_store,
            discovery_cache=self._discovery_cache,
            region_detector=self._region_detector,
            aggregator=self._aggregator,
            document_store=self._document_store,
            default_region=s.aws_region,
            detection_config=s.detection_config,
            retention_days=s.discovery_retention_days,
        )

        self._initialized = True
        logger.info("ServiceContainer: all services initialized")

    async def shutdown(self) -> None:
        """Release cached clients."""
        logger.info("ServiceContainer: shutting down")
        if self._client_factory:
            self._client_factory.clear_clients()
        self._initialized = False
        logger.info("ServiceContainer: shutdown complete")

    # ------------------------------------------------------------------
    # Accessor properties
    # ------------------------------------------------------------------

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def config_store(self) -> Optional[ConfigStore]:
        return self._config_store

    @property
    def discovery_cache(self) -> Optional[DiscoveryCache]:
        return self._discovery_cache

    @property
    def client_factory(self) -> Optional[RegionalClientFactory]:
        return self._client_factory

    @property
    def aggregator(self) -> Optional[MultiRegionAggregator]:
        return self._aggregator

    @property
    def inventory_service(self) -> Optional[RegionInventoryService]:
        return self._inventory_service
