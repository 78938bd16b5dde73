"""
The store client module holds the backends that carry out the actual
round trips for a Storage
"""

# Local
from .base import ResourceRegistrarBase, StoreClientBase
from .dry_run_store_client import DryRunStoreClient
from .openshift_store_client import OpenshiftStoreClient
