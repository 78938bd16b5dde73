"""
This store client is responsible for delegating cluster operations to the
openshift library. It is the one that will be used when running in the cluster
or outside the cluster against a live API server.
"""

# Standard
from typing import Optional
import json
import time

# Third Party
from openshift.dynamic import DynamicClient
from openshift.dynamic.exceptions import (
    ConflictError,
    DynamicApiError,
    ResourceNotFoundError,
    ResourceNotUniqueError,
)
from openshift.dynamic.resource import Resource
import kubernetes
import urllib3

# First Party
import alog

# Local
from .. import config, constants
from ..exceptions import AlreadyExistsError, TransportError
from ..resource_type import ResourceType
from .base import ResourceRegistrarBase, StoreClientBase

log = alog.use_channel("OSFTC")


class OpenshiftStoreClient(StoreClientBase, ResourceRegistrarBase):
    """This store client uses the openshift DynamicClient to interact with the
    cluster
    """

    def __init__(self):
        log.debug("Initializing openshift client")
        self._client = None

    @property
    def client(self) -> DynamicClient:
        """Lazy property access to the client"""
        if self._client is None:
            self._client = self._setup_client()
        return self._client

    ## Store Client ############################################################

    def get(self, path: str, timeout: Optional[float] = None) -> dict:
        log.debug2("Getting [%s]", path)
        return self._request("get", path, timeout=timeout)

    def post(self, path: str, body: dict, timeout: Optional[float] = None) -> dict:
        log.debug2("Posting to [%s]", path)
        return self._request("post", path, body=body, timeout=timeout)

    def patch(self, path: str, body: dict, timeout: Optional[float] = None) -> dict:
        log.debug2("Patching [%s]", path)
        log.debug3("Patch: %s", body)
        return self._request(
            "patch",
            path,
            body=body,
            timeout=timeout,
            content_type=constants.MERGE_PATCH_CONTENT_TYPE,
        )

    ## Registrar ###############################################################

    def register_resource_type(
        self,
        resource_type: ResourceType,
        timeout: Optional[float] = None,
    ):
        """Create the CustomResourceDefinition for the type and wait for the
        server to report it as Established
        """
        resource_handle = self._get_resource_handle(
            constants.CRD_KIND, constants.CRD_API_VERSION
        )
        log.debug2("Creating %s [%s]", constants.CRD_KIND, resource_type.crd_name)
        self._create(resource_handle, resource_type.to_crd(), timeout)
        self._wait_for_established(resource_handle, resource_type.crd_name, timeout)

    def create_namespace(self, name: str, timeout: Optional[float] = None):
        resource_handle = self._get_resource_handle("Namespace", "v1")
        log.debug2("Creating Namespace [%s]", name)
        self._create(
            resource_handle,
            {"apiVersion": "v1", "kind": "Namespace", "metadata": {"name": name}},
            timeout,
        )

    ## Implementation Helpers ##################################################

    @staticmethod
    def _setup_client():
        """Create a DynamicClient that will work based on where the process is
        running
        """
        # Try in-cluster config
        try:
            log.debug2("Running with in-cluster config")
            kube_config = kubernetes.client.Configuration()
            kubernetes.config.load_incluster_config(client_configuration=kube_config)
            api_client = kubernetes.client.ApiClient(kube_config)
            return DynamicClient(api_client)

        # Fall back to out-of-cluster config
        except kubernetes.config.ConfigException:
            log.debug2("Running with out-of-cluster config")
            return DynamicClient(kubernetes.config.new_client_from_config())

    @staticmethod
    def _timeout(timeout: Optional[float]) -> float:
        return config.request_timeout if timeout is None else timeout

    @staticmethod
    def _status_reason(err: DynamicApiError) -> Optional[str]:
        """Pull the machine-readable reason out of a Status response body"""
        try:
            return json.loads(err.body).get("reason")
        except (TypeError, ValueError, AttributeError):
            return None

    @classmethod
    def _translate_error(cls, err: Exception, method: str, path: str):
        """Convert a client-level error into the matching StorageError"""
        if isinstance(err, ConflictError) and method == "post":
            if cls._status_reason(err) in [None, "AlreadyExists"]:
                return AlreadyExistsError(f"[{path}]: {err.summary()}")
        if isinstance(err, DynamicApiError):
            return TransportError(f"{method.upper()} [{path}]: {err.summary()}")
        return TransportError(f"{method.upper()} [{path}]: {err}")

    def _request(
        self,
        method: str,
        path: str,
        body: Optional[dict] = None,
        timeout: Optional[float] = None,
        **kwargs,
    ) -> dict:
        """Shared wrapper for a raw request against an absolute path"""
        try:
            response = self.client.request(
                method,
                path,
                body=body,
                serialize=False,
                _request_timeout=self._timeout(timeout),
                **kwargs,
            )
        except (DynamicApiError, urllib3.exceptions.HTTPError) as err:
            log.debug2("Caught error from [%s %s]: %s", method, path, err)
            raise self._translate_error(err, method, path) from err

        try:
            content = json.loads(response.data)
        except (TypeError, ValueError) as err:
            raise TransportError(
                f"{method.upper()} [{path}]: malformed response: {err}"
            ) from err
        if not isinstance(content, dict):
            raise TransportError(
                f"{method.upper()} [{path}]: unexpected response type {type(content)}"
            )
        return content

    def _create(self, resource_handle: Resource, body: dict, timeout: Optional[float]):
        try:
            resource_handle.create(body=body, _request_timeout=self._timeout(timeout))
        except (DynamicApiError, urllib3.exceptions.HTTPError) as err:
            name = body["metadata"]["name"]
            raise self._translate_error(
                err, "post", f"{body['kind']}/{name}"
            ) from err

    def _get_resource_handle(self, kind: str, api_version: str) -> Resource:
        """Get the openshift resource handle for a specified kind and api_version"""
        try:
            return self.client.resources.get(kind=kind, api_version=api_version)
        except (ResourceNotFoundError, ResourceNotUniqueError) as err:
            raise TransportError(
                f"Failed to fetch resource handle for [{api_version}/{kind}]: {err}"
            ) from err
        except (DynamicApiError, urllib3.exceptions.HTTPError) as err:
            raise self._translate_error(err, "get", f"{api_version}/{kind}") from err

    def _wait_for_established(
        self,
        resource_handle: Resource,
        crd_name: str,
        timeout: Optional[float],
    ):
        """Poll the definition until its Established condition is True"""
        deadline = time.monotonic() + config.crd_established_timeout
        while True:
            try:
                crd = resource_handle.get(
                    name=crd_name, _request_timeout=self._timeout(timeout)
                ).to_dict()
            except (DynamicApiError, urllib3.exceptions.HTTPError) as err:
                raise self._translate_error(
                    err, "get", f"{constants.CRD_KIND}/{crd_name}"
                ) from err

            conditions = (crd.get("status") or {}).get("conditions") or []
            if any(
                cond.get("type") == constants.CRD_ESTABLISHED_CONDITION
                and cond.get("status") == "True"
                for cond in conditions
            ):
                log.debug2("%s [%s] established", constants.CRD_KIND, crd_name)
                return

            if time.monotonic() >= deadline:
                raise TransportError(
                    f"{constants.CRD_KIND} [{crd_name}] not established after "
                    f"{config.crd_established_timeout}s"
                )
            log.debug3("Waiting for %s [%s]", constants.CRD_KIND, crd_name)
            time.sleep(config.crd_established_poll_interval)
