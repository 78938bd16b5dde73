"""
The DryRunStoreClient implements the store client and registrar interfaces but
does not actually interact with the cluster and instead holds the state of the
cluster in a local map.
"""

# Standard
from threading import RLock
from typing import Dict, Optional, Set, Tuple
import copy
import json
import uuid

# First Party
import alog

# Local
from .. import constants
from ..exceptions import AlreadyExistsError, TransportError
from ..resource_type import ResourceType
from ..utils import merge_patch
from .base import ResourceRegistrarBase, StoreClientBase

log = alog.use_channel("DRY-RUN")


class DryRunStoreClient(StoreClientBase, ResourceRegistrarBase):
    """
    Store client which doesn't actually talk to a server!

    Objects are keyed by their item path. Posting to a collection is only
    allowed once the owning resource type and namespace are registered, so the
    same ordering rules as a real server apply.
    """

    def __init__(self):
        self._lock = RLock()
        self._resource_types: Dict[str, dict] = {}
        self._namespaces: Set[str] = set()
        self._objects: Dict[str, dict] = {}
        self._resource_version = 0

    ## Registrar ###############################################################

    def register_resource_type(
        self,
        resource_type: ResourceType,
        timeout: Optional[float] = None,
    ):
        log.info("DRY RUN register_resource_type [%s]", resource_type.crd_name)
        with self._lock:
            if resource_type.crd_name in self._resource_types:
                raise AlreadyExistsError(
                    f"{constants.CRD_KIND} [{resource_type.crd_name}] already exists"
                )
            self._resource_types[resource_type.crd_name] = resource_type.to_crd()

    def create_namespace(self, name: str, timeout: Optional[float] = None):
        log.info("DRY RUN create_namespace [%s]", name)
        with self._lock:
            if name in self._namespaces:
                raise AlreadyExistsError(f"Namespace [{name}] already exists")
            self._namespaces.add(name)

    ## Store Client ############################################################

    def get(self, path: str, timeout: Optional[float] = None) -> dict:
        log.debug2("DRY RUN get [%s]", path)
        with self._lock:
            content = self._objects.get(path)
            if content is None:
                raise self._not_found(path)
            return copy.deepcopy(content)

    def post(self, path: str, body: dict, timeout: Optional[float] = None) -> dict:
        log.debug2("DRY RUN post [%s]", path)
        body = self._round_trip(body)
        name = body.get("metadata", {}).get("name")
        if not name:
            raise TransportError(f"Cannot create object without a name at [{path}]")
        with self._lock:
            self._check_collection(path)
            item_path = f"{path}/{name}"
            if item_path in self._objects:
                raise AlreadyExistsError(f"Object [{item_path}] already exists")
            metadata = body["metadata"]
            metadata["uid"] = str(uuid.uuid4())
            metadata["resourceVersion"] = self._next_resource_version()
            self._objects[item_path] = body
            return copy.deepcopy(body)

    def patch(self, path: str, body: dict, timeout: Optional[float] = None) -> dict:
        log.debug2("DRY RUN patch [%s]", path)
        log.debug3("Patch: %s", body)
        body = self._round_trip(body)
        with self._lock:
            current = self._objects.get(path)
            if current is None:
                raise self._not_found(path)
            updated = merge_patch(current, body)
            updated.setdefault("metadata", {})[
                "resourceVersion"
            ] = self._next_resource_version()
            self._objects[path] = updated
            return copy.deepcopy(updated)

    ## Implementation Helpers ##################################################

    @staticmethod
    def _round_trip(body: dict) -> dict:
        """Serialize and parse the body as it would be on the wire"""
        try:
            return json.loads(json.dumps(body))
        except (TypeError, ValueError) as err:
            raise TransportError(f"Cannot serialize body: {err}") from err

    @staticmethod
    def _not_found(path: str) -> TransportError:
        return TransportError(
            f"the server could not find the requested resource [{path}] (404)"
        )

    def _next_resource_version(self) -> str:
        self._resource_version += 1
        return str(self._resource_version)

    def _served_collection(self, path: str) -> Tuple[str, str]:
        """Parse a namespaced collection path into (namespace, crd name)"""
        parts = path.strip("/").split("/")
        if (
            len(parts) != 6
            or parts[0] != "apis"
            or parts[3] != "namespaces"
        ):
            raise self._not_found(path)
        _, group, version, _, namespace, plural = parts
        crd_name = f"{plural}.{group}"
        crd = self._resource_types.get(crd_name)
        if crd is None or version not in [
            entry["name"] for entry in crd["spec"]["versions"]
        ]:
            raise self._not_found(path)
        return namespace, crd_name

    def _check_collection(self, path: str):
        namespace, _ = self._served_collection(path)
        if namespace not in self._namespaces:
            raise TransportError(f"namespaces [{namespace}] not found (404)")
