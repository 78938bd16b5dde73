"""
This module implements a mock of the kubernetes api client which serves
discovery, namespaces, CustomResourceDefinitions, and custom objects from an
in-memory cluster state. It is meant to sit underneath an openshift
DynamicClient so that the OpenshiftStoreClient can be tested end to end.

We attempt to emulate the internals of the kubernetes api_client, but this is
based on code inspection of the current implementation and is certainly subject
to change!
"""

# Standard
from contextlib import contextmanager
from dataclasses import dataclass
from threading import RLock
from typing import Any, Dict, Optional, Tuple
from unittest import mock
import base64
import copy
import json
import urllib.parse

# Third Party
import kubernetes

# First Party
import aconfig
import alog

# Local
from crstorage import constants
from crstorage.utils import merge_patch

log = alog.use_channel("TEST")

# Status reasons by code for failure responses
_STATUS_REASONS = {
    404: "NotFound",
    405: "MethodNotAllowed",
    409: "AlreadyExists",
    500: "InternalError",
    503: "ServiceUnavailable",
}


_HTTP_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


@dataclass
class MockRequest:
    """A single request received by the mock client"""

    method: str
    path: str
    header_params: dict
    body: Any
    timeout: Any


class MockKubRestResponse(kubernetes.client.rest.RESTResponse):
    @staticmethod
    def getheaders():
        return {}


class MockKubClient(kubernetes.client.ApiClient):
    """Mocked version of kubernetes.client.ApiClient which swaps out the
    implementation of call_api() to serve requests from a local cluster state

    The cluster state is laid out as {namespace: {kind: {api_version: {name:
    obj}}}} with "" as the namespace for cluster-scoped objects.
    """

    def __init__(
        self,
        cluster_state: Optional[dict] = None,
        failures: Optional[Dict[Tuple[str, str], int]] = None,
        establish_crds: bool = True,
        *args,
        **kwargs,
    ):
        """
        Args:
            cluster_state:  Optional[dict]
                Pre-existing objects
            failures:  Optional[Dict[Tuple[str, str], int]]
                Map from (METHOD, path) to a status code that request will
                fail with
            establish_crds:  bool
                If False, created CustomResourceDefinitions never report the
                Established condition
        """
        super().__init__(*args, **kwargs)
        self._cluster_state = copy.deepcopy(cluster_state or {})
        self.failures = dict(failures or {})
        self.establish_crds = establish_crds
        self.requests = []
        self._lock = RLock()

        # {group: {version: {plural: (kind, namespaced)}}} with None as the
        # core group
        self._api_group_kinds = {}
        self._add_kind(None, "v1", "Namespace", "namespaces", namespaced=False)
        self._add_kind(
            "apiextensions.k8s.io",
            "v1",
            constants.CRD_KIND,
            "customresourcedefinitions",
            namespaced=False,
        )
        for crd in self._cluster_state.get("", {}).get(constants.CRD_KIND, {}).get(
            constants.CRD_API_VERSION, {}
        ).values():
            self._add_crd_kind(crd)

    def call_api(self, *args, **kwargs):
        """Mocked out call function to return preconfigured responses

        NOTE: DynamicClient calls self.client.call_api in one of two forms
            depending on the kubernetes release:

            older:  call_api(resource_path, method, path_params, query_params,
                        header_params, body=..., _request_timeout=...)
            newer:  call_api(method, url, header_params, body, post_params,
                        _request_timeout=...) with the url holding the host
        """
        request = self._parse_call(args, kwargs)
        method, resource_path, body = request.method, request.path, request.body
        log.debug2("Mock [%s] request to [%s]", method, resource_path)
        log.debug4("Header Params: %s", request.header_params)
        log.debug4("Body: %s", body)
        self.requests.append(request)

        status_code = self.failures.get((method, resource_path))
        if status_code is not None:
            return self._status_response(status_code, "injected failure")

        with self._lock:
            if resource_path == "/version":
                return self._make_response({})
            if resource_path == "/apis":
                return self.apis()
            discovery = self._discovery_response(resource_path)
            if discovery is not None:
                return self._make_response(discovery)
            return self._handle_resource(resource_path, method, body)

    ## Inspection ##############################################################

    def get_object(self, namespace, kind, api_version, name) -> Optional[dict]:
        return copy.deepcopy(
            self._cluster_state.get(namespace, {})
            .get(kind, {})
            .get(api_version, {})
            .get(name)
        )

    ## Implementation Helpers ##################################################

    @staticmethod
    def _parse_call(args, kwargs) -> MockRequest:
        """Normalize either call_api form into a MockRequest"""
        if args and args[0] in _HTTP_METHODS:
            args = list(args) + [None] * (4 - len(args))
            method, url, header_params, body = args[:4]
            path = urllib.parse.urlsplit(url).path
        else:
            path, method = args[0], args[1]
            header_params = (
                args[4] if len(args) > 4 else kwargs.get("header_params")
            )
            body = args[5] if len(args) > 5 else kwargs.get("body")
        if isinstance(body, bytes):
            body = body.decode("utf-8")
        if isinstance(body, str):
            body = json.loads(body)
        return MockRequest(
            method=method,
            path=path,
            header_params=dict(header_params or {}),
            body=copy.deepcopy(body),
            timeout=kwargs.get("_request_timeout"),
        )

    @staticmethod
    def _make_response(body, status_code=200):
        log.debug2("Making response with code: %d", status_code)
        data = json.dumps(body).encode("utf8")
        resp = MockKubRestResponse(
            aconfig.Config({"status": status_code, "reason": "MOCK", "data": data})
        )
        # Newer RESTResponse only fills data on read()
        resp.data = data
        if not 200 <= status_code <= 299:
            raise kubernetes.client.rest.ApiException(http_resp=resp)
        return resp

    @classmethod
    def _status_response(cls, status_code, message):
        return cls._make_response(
            {
                "kind": "Status",
                "apiVersion": "v1",
                "metadata": {},
                "status": "Failure",
                "message": message,
                "reason": _STATUS_REASONS.get(status_code, "Unknown"),
                "details": {},
                "code": status_code,
            },
            status_code,
        )

    @classmethod
    def not_found(cls, resource_path=""):
        log.debug3("Not Found")
        return cls._status_response(
            404, f"the server could not find the requested resource {resource_path}"
        )

    def _add_kind(self, group, version, kind, plural, namespaced):
        self._api_group_kinds.setdefault(group, {}).setdefault(version, {})[
            plural
        ] = (kind, namespaced)

    def _add_crd_kind(self, crd):
        spec = crd["spec"]
        for version in spec["versions"]:
            self._add_kind(
                spec["group"],
                version["name"],
                spec["names"]["kind"],
                spec["names"]["plural"],
                namespaced=spec.get("scope") == "Namespaced",
            )

    def _lookup_kind(self, group, version, plural):
        return self._api_group_kinds.get(group, {}).get(version, {}).get(plural)

    ## Discovery ###############################################################

    def apis(self):
        api_group_list = {"kind": "APIGroupList", "apiVersion": "v1", "groups": []}
        for group_name, api_versions in self._api_group_kinds.items():
            if group_name is None:
                continue
            group = {"name": group_name, "versions": []}
            for api_version in api_versions:
                group["versions"].append(
                    {
                        "groupVersion": f"{group_name}/{api_version}",
                        "version": api_version,
                    }
                )
            group["preferredVersion"] = group["versions"][0]
            api_group_list["groups"].append(group)
        return self._make_response(api_group_list)

    def _discovery_response(self, resource_path) -> Optional[dict]:
        """If the path is a group/version root, build its APIResourceList"""
        parts = resource_path.strip("/").split("/")
        if parts == ["api", "v1"]:
            group, version = None, "v1"
        elif len(parts) == 3 and parts[0] == "apis":
            group, version = parts[1], parts[2]
        else:
            return None
        resource_list = {
            "kind": "APIResourceList",
            "apiVersion": "v1",
            "groupVersion": f"{group}/{version}" if group else version,
            "resources": [],
        }
        for plural, (kind, namespaced) in (
            self._api_group_kinds.get(group, {}).get(version, {}).items()
        ):
            resource_list["resources"].append(
                {
                    "name": plural,
                    "singularName": kind.lower(),
                    "namespaced": namespaced,
                    "kind": kind,
                    "verbs": ["create", "delete", "get", "list", "patch", "update"],
                    "storageVersionHash": base64.b64encode(kind.encode("utf-8")).decode(
                        "utf-8"
                    ),
                }
            )
        return resource_list

    ## Resources ###############################################################

    def _parse_path(self, resource_path):
        """Split a resource path into (group, version, namespace, plural, name).
        Returns None if the path is not a resource path.
        """
        parts = resource_path.strip("/").split("/")
        if parts[0] == "api" and len(parts) >= 3:
            group, version, rest = None, parts[1], parts[2:]
        elif parts[0] == "apis" and len(parts) >= 4:
            group, version, rest = parts[1], parts[2], parts[3:]
        else:
            return None

        namespace = ""
        if rest[0] == "namespaces" and len(rest) >= 3:
            namespace, rest = rest[1], rest[2:]
        if len(rest) > 2:
            return None
        plural = rest[0]
        name = rest[1] if len(rest) == 2 else None
        return group, version, namespace, plural, name

    def _handle_resource(self, resource_path, method, body):
        parsed = self._parse_path(resource_path)
        if parsed is None:
            return self.not_found(resource_path)
        group, version, namespace, plural, name = parsed
        kind_info = self._lookup_kind(group, version, plural)
        if kind_info is None:
            return self.not_found(resource_path)
        kind, _ = kind_info
        api_version = f"{group}/{version}" if group else version
        entries = self._cluster_state.get(namespace, {}).get(kind, {}).get(api_version, {})

        if method == "GET" and name:
            if name not in entries:
                return self.not_found(resource_path)
            return self._make_response(entries[name])

        if method == "GET":
            return self._make_response(
                {"apiVersion": "v1", "kind": "List", "items": list(entries.values())}
            )

        if method == "POST" and not name:
            return self._create(namespace, kind, api_version, body)

        if method == "PATCH" and name:
            if name not in entries:
                return self.not_found(resource_path)
            entries[name] = merge_patch(entries[name], body)
            return self._make_response(entries[name])

        return self._status_response(405, f"{method} not allowed on {resource_path}")

    def _create(self, namespace, kind, api_version, body):
        body = copy.deepcopy(body)
        name = body.get("metadata", {}).get("name")
        if namespace and namespace not in self._cluster_state.get("", {}).get(
            "Namespace", {}
        ).get("v1", {}):
            return self._status_response(404, f'namespaces "{namespace}" not found')

        entries = (
            self._cluster_state.setdefault(namespace, {})
            .setdefault(kind, {})
            .setdefault(api_version, {})
        )
        if name in entries:
            return self._status_response(409, f'{kind} "{name}" already exists')

        body["apiVersion"] = api_version
        body["kind"] = kind
        if namespace:
            body["metadata"]["namespace"] = namespace
        if kind == constants.CRD_KIND:
            self._add_crd_kind(body)
            if self.establish_crds:
                body["status"] = {
                    "conditions": [
                        {"type": constants.CRD_ESTABLISHED_CONDITION, "status": "True"}
                    ]
                }
        entries[name] = body
        log.debug2("Created [%s/%s] in [%s]", kind, name, namespace)
        return self._make_response(body, 201)


@contextmanager
def mock_kub_client_constructor(*args, **kwargs):
    """Context manager to patch the api client"""
    client = MockKubClient(*args, **kwargs)
    with mock.patch(
        "kubernetes.config.new_client_from_config",
        return_value=client,
    ):
        yield client
