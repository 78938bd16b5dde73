"""
Package exports
"""

# Local
from . import config
from .exceptions import (
    AlreadyExistsError,
    ErrorKind,
    InvalidConfigError,
    KeyNotFoundError,
    StorageError,
    TransportError,
)
from .provisioner import Provisioner
from .resource_type import ResourceType
from .storage import Storage
from .store_client import (
    DryRunStoreClient,
    OpenshiftStoreClient,
    ResourceRegistrarBase,
    StoreClientBase,
)
