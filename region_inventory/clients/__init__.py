"""AWS client wrappers and local file stores."""

from .aws_client import AWSClient, AWSAPIError
from .discovery_cache import DiscoveryCache
from .json_store import JsonDocumentStore
from .regional_client_factory import RegionalClientFactory

__all__ = [
    "AWSClient",
    "AWSAPIError",
    "DiscoveryCache",
    "JsonDocumentStore",
    "RegionalClientFactory",
]
