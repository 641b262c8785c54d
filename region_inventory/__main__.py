# Copyright (c) 2026 Region Inventory contributors.
# Licensed under the Apache License, Version 2.0.

"""
Run the Region Inventory server.

Usage:
    python -m region_inventory

Or with uvicorn directly:
    uvicorn region_inventory.main:app --host 0.0.0.0 --port 8080
"""

import logging
import sys

import uvicorn
from dotenv import load_dotenv

from . import __version__
from .config import Settings, settings


def configure_logging(log_level: str) -> None:
    """
    Configure logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )

    # Set uvicorn loggers to the same level
    logging.getLogger("uvicorn").setLevel(numeric_level)
    logging.getLogger("uvicorn.access").setLevel(numeric_level)
    logging.getLogger("uvicorn.error").setLevel(numeric_level)

    # botocore is chatty at DEBUG
    if numeric_level < logging.INFO:
        logging.getLogger("botocore").setLevel(logging.INFO)


def print_startup_banner(config: Settings) -> None:
    """Print startup banner with configuration information."""
    banner = f"""
==================================================================
  Region Inventory Server v{__version__}
------------------------------------------------------------------
  Host:            {config.host}
  Port:            {config.port}
  Environment:     {config.environment}
  Log Level:       {config.log_level}
  Default Region:  {config.aws_region}
  Region Config:   {config.region_config_path} ({config.region_config_key})
  Cache File:      {config.cache_file_path}
  Inventory Kinds: {config.inventory_kinds}
------------------------------------------------------------------
  Health:     http://{config.host}:{config.port}/health
  Regions:    http://{config.host}:{config.port}/regions
  Resources:  http://{config.host}:{config.port}/resources
==================================================================
"""
    print(banner)


def main() -> None:
    """
    Main entry point for the server.

    Loads configuration, configures logging, and starts uvicorn.
    """
    load_dotenv()

    config = settings()
    configure_logging(config.log_level)

    logger = logging.getLogger(__name__)

    print_startup_banner(config)

    logger.info("Starting Region Inventory server...")
    logger.info(f"Server will listen on {config.host}:{config.port}")

    try:
        uvicorn.run(
            "region_inventory.main:app",
            host=config.host,
            port=config.port,
            log_level=config.log_level.lower(),
            access_log=True,
        )
    except KeyboardInterrupt:
        logger.info("Server shutdown requested")
    except Exception as e:
        logger.error(f"Server failed to start: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
