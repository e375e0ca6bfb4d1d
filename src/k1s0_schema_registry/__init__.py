"""k1s0 schema_registry library."""

from .cached_client import CachedSchemaRegistryClient
from .client import SchemaRegistryClient
from .codec import Codec
from .config import load_config
from .exceptions import (
    DecodeError,
    RegistryError,
    SchemaNotFoundError,
    SchemaRegistryError,
    SchemaRegistryErrorCodes,
    TransportError,
)
from .http_client import HttpSchemaRegistryClient
from .models import CONTENT_TYPE, LATEST_VERSION, SchemaRegistryConfig, SchemaVersion
from .rwlock import ReadWriteLock

__all__ = [
    "SchemaRegistryClient",
    "HttpSchemaRegistryClient",
    "CachedSchemaRegistryClient",
    "Codec",
    "ReadWriteLock",
    "SchemaRegistryConfig",
    "SchemaVersion",
    "CONTENT_TYPE",
    "LATEST_VERSION",
    "load_config",
    "SchemaRegistryError",
    "SchemaRegistryErrorCodes",
    "TransportError",
    "RegistryError",
    "SchemaNotFoundError",
    "DecodeError",
]
