"""
The Provisioner makes sure that the resource type, namespace, and storage
object exist before any key is read or written. Every step is safe to re-run:
an "already exists" answer from the server is success.
"""

# Standard
from typing import Callable, Optional

# First Party
import alog

# Local
from . import constants
from .exceptions import is_already_exists, mask
from .resource_type import ResourceType
from .store_client import ResourceRegistrarBase, StoreClientBase

log = alog.use_channel("PROV")


class Provisioner:
    __doc__ = __doc__

    def __init__(
        self,
        store_client: StoreClientBase,
        registrar: ResourceRegistrarBase,
        resource_type: ResourceType,
        namespace: str,
        object_name: str,
    ):
        self.store_client = store_client
        self.registrar = registrar
        self.resource_type = resource_type
        self.namespace = namespace
        self.object_name = object_name

    @property
    def collection_endpoint(self) -> str:
        return self.resource_type.endpoint(self.namespace)

    @property
    def object_endpoint(self) -> str:
        return f"{self.collection_endpoint}/{self.object_name}"

    def storage_object(self) -> dict:
        """The initial body of the storage object. The data map is present but
        empty so that merge patches always have a map to merge into.
        """
        return {
            "kind": self.resource_type.kind,
            "apiVersion": self.resource_type.api_version,
            "metadata": {
                "name": self.object_name,
                "namespace": self.namespace,
                "annotations": {
                    constants.DO_NOT_OMIT_EMPTY_ANNOTATION_NAME: (
                        constants.DO_NOT_OMIT_EMPTY_ANNOTATION_VALUE
                    ),
                },
            },
            "data": {},
        }

    @alog.logged_function(log.debug2)
    def provision(self, timeout: Optional[float] = None):
        """Run all bootstrap steps in order. Any error other than "already
        exists" stops provisioning and is raised with the failing step attached.
        """
        self._idempotent_step(
            f"registering resource type {self.resource_type.crd_name}",
            lambda: self.registrar.register_resource_type(
                self.resource_type, timeout=timeout
            ),
        )
        self._idempotent_step(
            f"creating namespace {self.namespace}",
            lambda: self.registrar.create_namespace(self.namespace, timeout=timeout),
        )
        self._idempotent_step(
            f"creating storage object {self.namespace}/{self.object_name}",
            lambda: self.store_client.post(
                self.collection_endpoint, self.storage_object(), timeout=timeout
            ),
        )

    @staticmethod
    def _idempotent_step(description: str, step: Callable[[], None]):
        try:
            step()
        except Exception as err:  # pylint: disable=broad-except
            if is_already_exists(err):
                log.debug("Already done: %s", description)
                return
            raise mask(err, description)
        log.info("Done: %s", description)
