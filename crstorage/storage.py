"""
The Storage is the key-value facade over a single storage object. Keys and
values live in the object's data map. Writes are JSON merge patches so that
any number of Storage instances can share one object, and every read fetches
the object fresh from the server.
"""

# Standard
from typing import Dict, List, Optional

# First Party
import alog

# Local
from . import config, constants
from .exceptions import KeyNotFoundError, TransportError, assert_config, mask
from .provisioner import Provisioner
from .resource_type import ResourceType
from .store_client import (
    DryRunStoreClient,
    OpenshiftStoreClient,
    ResourceRegistrarBase,
    StoreClientBase,
)

log = alog.use_channel("STORE")


class Storage:
    """A flat string-to-string key-value map held in one custom resource"""

    def __init__(  # pylint: disable=too-many-arguments
        self,
        store_client: StoreClientBase,
        object_name: str,
        namespace: Optional[str] = None,
        resource_type: Optional[ResourceType] = None,
        registrar: Optional[ResourceRegistrarBase] = None,
        timeout: Optional[float] = None,
    ):
        """Validate the addressing and provision the storage object.

        Args:
            store_client:  StoreClientBase
                The client used for every read and write
            object_name:  str
                Name of the storage object. Instances sharing a name share keys.
            namespace:  Optional[str]
                Namespace of the storage object. If None, the configured
                namespace is used. An empty string means "default".
            resource_type:  Optional[ResourceType]
                The custom resource kind of the storage object. If None, the
                configured resource type is used.
            registrar:  Optional[ResourceRegistrarBase]
                Used to register the resource type and namespace. If None, the
                store client is used when it is also a registrar.
            timeout:  Optional[float]
                Bound in seconds on each provisioning round trip

        Raises:
            InvalidConfigError: A required parameter is missing or empty
            StorageError: Provisioning failed
        """
        assert_config(
            isinstance(store_client, StoreClientBase), "store_client is not set"
        )
        if registrar is None and isinstance(store_client, ResourceRegistrarBase):
            registrar = store_client
        assert_config(
            isinstance(registrar, ResourceRegistrarBase), "registrar is not set"
        )
        assert_config(object_name, "object_name is empty")
        if resource_type is None:
            resource_type = ResourceType.from_config()
        if namespace is None:
            namespace = config.storage_object.namespace
        namespace = namespace or constants.DEFAULT_NAMESPACE

        self._store_client = store_client
        self._resource_type = resource_type
        self._namespace = namespace
        self._object_name = object_name
        self._log_extra = {"storage": self.describe()}

        provisioner = Provisioner(
            store_client=store_client,
            registrar=registrar,
            resource_type=resource_type,
            namespace=namespace,
            object_name=object_name,
        )
        self._endpoint = provisioner.object_endpoint
        log.debug("Provisioning storage object", extra=self._log_extra)
        provisioner.provision(timeout=timeout)

    @classmethod
    def from_config(cls, object_name: Optional[str] = None, **kwargs) -> "Storage":
        """Construct with the backend and addressing from the library config"""
        store_client = DryRunStoreClient() if config.dry_run else OpenshiftStoreClient()
        return cls(
            store_client=store_client,
            object_name=object_name or config.storage_object.name,
            **kwargs,
        )

    ## Properties ##############################################################

    @property
    def resource_type(self) -> ResourceType:
        return self._resource_type

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def object_name(self) -> str:
        return self._object_name

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def describe(self) -> dict:
        """Identifying fields for this storage, used for structured logging"""
        return {
            "resourceType": self._resource_type.name,
            "resourceVersion": self._resource_type.version,
            "objectName": self._object_name,
            "objectNamespace": self._namespace,
        }

    ## Writes ##################################################################

    def put(self, key: str, value: str, timeout: Optional[float] = None):
        """Set the value for the key, leaving all other keys untouched"""
        self._check_str("key", key)
        self._check_str("value", value)
        log.debug2("Putting key [%s]", key, extra=self._log_extra)
        self._patch_data({key: value}, f"putting key={key}", timeout)

    def create(self, key: str, value: str, timeout: Optional[float] = None):
        """Alias for put. No check for an existing value is made."""
        self.put(key, value, timeout=timeout)

    def delete(self, key: str, timeout: Optional[float] = None):
        """Remove the key. Removing an absent key is not an error."""
        self._check_str("key", key)
        log.debug2("Deleting key [%s]", key, extra=self._log_extra)
        self._patch_data({key: None}, f"deleting key={key}", timeout)

    ## Reads ###################################################################

    def exists(self, key: str, timeout: Optional[float] = None) -> bool:
        """Whether the exact key is present"""
        self._check_str("key", key)
        return key in self._get_data(f"checking existence key={key}", timeout)

    def search(self, key: str, timeout: Optional[float] = None) -> str:
        """Get the value for the exact key

        Raises:
            KeyNotFoundError: The key is not present
        """
        self._check_str("key", key)
        context = f"searching for key={key}"
        data = self._get_data(context, timeout)
        if key not in data:
            raise KeyNotFoundError(f"key [{key}] not found", context=[context])
        return data[key]

    def list(self, key: str, timeout: Optional[float] = None) -> List[str]:
        """List the keys under the given key relative to it.

        Matching is segment-aware: for key /foo, /foo/bar is listed as "bar"
        but /foobar is not listed. A stored key equal to the given key is
        listed as "". The result is sorted.
        """
        self._check_str("key", key)
        data = self._get_data(f"listing key={key}", timeout)
        sub_prefix = key + constants.KEY_DELIM
        return sorted(
            "" if stored_key == key else stored_key[len(sub_prefix) :]
            for stored_key in data
            if stored_key == key or stored_key.startswith(sub_prefix)
        )

    ## Implementation Helpers ##################################################

    @staticmethod
    def _check_str(name: str, value: str):
        if not isinstance(value, str):
            raise ValueError(f"{name} must be a str, got {type(value)}")

    def _timeout(self, timeout: Optional[float]) -> float:
        return config.request_timeout if timeout is None else timeout

    def _patch_data(self, data: Dict[str, Optional[str]], context: str, timeout):
        patch = {"data": data}
        try:
            self._store_client.patch(
                self._endpoint, patch, timeout=self._timeout(timeout)
            )
        except Exception as err:  # pylint: disable=broad-except
            raise mask(err, f"{context}, patch={patch}")

    def _get_data(self, context: str, timeout) -> Dict[str, str]:
        """Fetch the storage object and decode its data map"""
        try:
            content = self._store_client.get(
                self._endpoint, timeout=self._timeout(timeout)
            )
        except Exception as err:  # pylint: disable=broad-except
            raise mask(err, context)

        data = content.get("data") or {}
        if not isinstance(data, dict) or not all(
            isinstance(val, str) for val in data.values()
        ):
            raise TransportError(
                f"storage object [{self._endpoint}] has malformed data",
                context=[context],
            )
        log.debug3("Fetched %d keys", len(data), extra=self._log_extra)
        return data
