"""
This module holds common helper functions for making testing easy
"""

# Standard
from contextlib import contextmanager
from typing import Optional
import os

# Third Party
from openshift.dynamic import DynamicClient

# First Party
import alog

# Local
from crstorage import constants
from crstorage.config import library_config
from crstorage.resource_type import ResourceType
from crstorage.storage import Storage
from crstorage.store_client import DryRunStoreClient, OpenshiftStoreClient
from crstorage.test_helpers.kub_mock import MockKubClient

log = alog.use_channel("TEST")


def configure_logging():
    alog.configure(
        os.environ.get("LOG_LEVEL", "off"),
        os.environ.get("LOG_FILTERS", ""),
        formatter="json"
        if os.environ.get("LOG_JSON", "").lower() == "true"
        else "pretty",
        thread_id=os.environ.get("LOG_THREAD_ID", "").lower() == "true",
    )


configure_logging()

TEST_NAMESPACE = "test"
TEST_OBJECT_NAME = "test-storage"
TEST_RESOURCE_TYPE = ResourceType(
    name="test-storage.crstorage.io",
    version="v1",
    description="Storage for unit tests",
)


def setup_storage(
    store_client=None,
    object_name=TEST_OBJECT_NAME,
    namespace=TEST_NAMESPACE,
    resource_type=TEST_RESOURCE_TYPE,
    **kwargs,
) -> Storage:
    """Set up a Storage against an in-memory store client unless one is given"""
    return Storage(
        store_client=store_client or DryRunStoreClient(),
        object_name=object_name,
        namespace=namespace,
        resource_type=resource_type,
        **kwargs,
    )


def storage_object_path(
    object_name=TEST_OBJECT_NAME,
    namespace=TEST_NAMESPACE,
    resource_type=TEST_RESOURCE_TYPE,
) -> str:
    return f"{resource_type.endpoint(namespace)}/{object_name}"


def make_storage_object(
    data: Optional[dict] = None,
    object_name=TEST_OBJECT_NAME,
    namespace=TEST_NAMESPACE,
    resource_type=TEST_RESOURCE_TYPE,
) -> dict:
    """Make a storage object as it would be stored on the server"""
    obj = {
        "apiVersion": resource_type.api_version,
        "kind": resource_type.kind,
        "metadata": {
            "name": object_name,
            "namespace": namespace,
            "annotations": {
                constants.DO_NOT_OMIT_EMPTY_ANNOTATION_NAME: (
                    constants.DO_NOT_OMIT_EMPTY_ANNOTATION_VALUE
                ),
            },
        },
    }
    if data is not None:
        obj["data"] = data
    return obj


def make_cluster_state(
    data: Optional[dict] = None,
    object_name=TEST_OBJECT_NAME,
    namespace=TEST_NAMESPACE,
    resource_type=TEST_RESOURCE_TYPE,
) -> dict:
    """Make a mock cluster state that already holds the resource type,
    namespace, and storage object
    """
    crd = resource_type.to_crd()
    crd["status"] = {
        "conditions": [{"type": constants.CRD_ESTABLISHED_CONDITION, "status": "True"}]
    }
    return {
        "": {
            "Namespace": {"v1": {namespace: {"metadata": {"name": namespace}}}},
            constants.CRD_KIND: {
                constants.CRD_API_VERSION: {resource_type.crd_name: crd},
            },
        },
        namespace: {
            resource_type.kind: {
                resource_type.api_version: {
                    object_name: make_storage_object(
                        data=data,
                        object_name=object_name,
                        namespace=namespace,
                        resource_type=resource_type,
                    )
                }
            }
        },
    }


class MockedOpenshiftStoreClient(OpenshiftStoreClient):
    """Override class that uses the mocked client"""

    def __init__(self, *args, **kwargs):
        self._mock_args = args
        self._mock_kwargs = kwargs
        self.mock_client = None
        super().__init__()

    def _setup_client(self):
        self.mock_client = MockKubClient(*self._mock_args, **self._mock_kwargs)
        client = DynamicClient(self.mock_client)
        client.resources.invalidate_cache()
        return client


def _config_snapshot(config_obj) -> dict:
    return {
        key: _config_snapshot(val) if isinstance(val, dict) else val
        for key, val in config_obj.items()
    }


def _config_apply(config_obj, values: dict):
    """Set values into the config in place, descending into nested sections"""
    for key, val in values.items():
        if isinstance(val, dict) and isinstance(config_obj.get(key), dict):
            _config_apply(config_obj[key], val)
        else:
            config_obj[key] = val


@contextmanager
def library_config_overrides(**overrides):
    """Temporarily override library config values. Nested sections are given
    as dicts and only the given keys are changed.
    """
    original = _config_snapshot(library_config)
    try:
        _config_apply(library_config, overrides)
        yield library_config
    finally:
        _config_apply(library_config, original)
