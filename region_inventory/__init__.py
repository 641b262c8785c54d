"""Region Inventory: AWS region discovery and multi-region resource inventory."""

__version__ = "0.1.0"
