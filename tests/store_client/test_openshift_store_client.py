"""
Tests for the OpenshiftStoreClient against a mocked api client
"""

# Standard
from unittest import mock
import json

# Third Party
import kubernetes
import pytest
import urllib3

# First Party
import alog

# Local
from crstorage import constants
from crstorage.exceptions import AlreadyExistsError, TransportError
from crstorage.storage import Storage
from crstorage.store_client import OpenshiftStoreClient
from crstorage.test_helpers import storage_suite
from crstorage.test_helpers.helpers import (
    TEST_NAMESPACE,
    TEST_OBJECT_NAME,
    TEST_RESOURCE_TYPE,
    MockedOpenshiftStoreClient,
    library_config_overrides,
    make_cluster_state,
    make_storage_object,
    setup_storage,
    storage_object_path,
)
from crstorage.test_helpers.kub_mock import MockKubClient, mock_kub_client_constructor

log = alog.use_channel("TEST")

## Helpers #####################################################################


def get_stored_object(store_client, object_name=TEST_OBJECT_NAME):
    return store_client.mock_client.get_object(
        TEST_NAMESPACE,
        TEST_RESOURCE_TYPE.kind,
        TEST_RESOURCE_TYPE.api_version,
        object_name,
    )


## Store Client ################################################################


def test_get():
    """Make sure get returns the decoded object"""
    store_client = MockedOpenshiftStoreClient(make_cluster_state(data={"/a": "b"}))
    obj = store_client.get(storage_object_path())
    assert obj["data"] == {"/a": "b"}
    assert obj["kind"] == TEST_RESOURCE_TYPE.kind


def test_get_missing_is_transport_error():
    """Make sure a 404 on the object is a TransportError"""
    store_client = MockedOpenshiftStoreClient(make_cluster_state())
    with pytest.raises(TransportError) as exc_info:
        store_client.get(storage_object_path(object_name="other"))
    assert "GET" in str(exc_info.value)


def test_post_conflict_is_already_exists():
    """Make sure a 409 on create is an AlreadyExistsError"""
    store_client = MockedOpenshiftStoreClient(make_cluster_state(data={}))
    with pytest.raises(AlreadyExistsError):
        store_client.post(
            TEST_RESOURCE_TYPE.endpoint(TEST_NAMESPACE), make_storage_object(data={})
        )


def test_post_creates():
    """Make sure post creates a new object"""
    store_client = MockedOpenshiftStoreClient(make_cluster_state())
    created = store_client.post(
        TEST_RESOURCE_TYPE.endpoint(TEST_NAMESPACE),
        make_storage_object(data={}, object_name="other"),
    )
    assert created["metadata"]["name"] == "other"
    assert get_stored_object(store_client, "other")["data"] == {}


def test_patch_uses_merge_patch():
    """Make sure patches are sent as merge patches with the request timeout"""
    store_client = MockedOpenshiftStoreClient(make_cluster_state(data={"/a": "b"}))
    store_client.patch(storage_object_path(), {"data": {"/a": None}}, timeout=4)
    request = store_client.mock_client.requests[-1]
    assert request.method == "PATCH"
    assert request.path == storage_object_path()
    assert request.header_params["Content-Type"] == constants.MERGE_PATCH_CONTENT_TYPE
    assert request.body == {"data": {"/a": None}}
    assert request.timeout == 4
    assert get_stored_object(store_client)["data"] == {}


def test_default_timeout_from_config():
    """Make sure the configured request timeout is used by default"""
    store_client = MockedOpenshiftStoreClient(make_cluster_state(data={}))
    with library_config_overrides(request_timeout=11):
        store_client.get(storage_object_path())
    assert store_client.mock_client.requests[-1].timeout == 11


def test_server_error_is_transport_error():
    """Make sure any other status is a TransportError"""
    path = storage_object_path()
    store_client = MockedOpenshiftStoreClient(
        make_cluster_state(data={}), failures={("PATCH", path): 503}
    )
    with pytest.raises(TransportError, match="PATCH"):
        store_client.patch(path, {"data": {"a": "b"}})


def test_post_server_error_is_not_already_exists():
    """Make sure only a conflict counts as already existing"""
    path = TEST_RESOURCE_TYPE.endpoint(TEST_NAMESPACE)
    store_client = MockedOpenshiftStoreClient(
        make_cluster_state(), failures={("POST", path): 500}
    )
    with pytest.raises(TransportError):
        store_client.post(path, make_storage_object(data={}, object_name="other"))


def test_connection_error_is_transport_error():
    """Make sure urllib3 errors (e.g. timeouts) are TransportErrors"""
    store_client = MockedOpenshiftStoreClient(make_cluster_state(data={}))
    with mock.patch.object(
        store_client.client.client,
        "call_api",
        side_effect=urllib3.exceptions.ReadTimeoutError(None, "/", "timed out"),
    ):
        with pytest.raises(TransportError, match="timed out"):
            store_client.get(storage_object_path())


def test_malformed_response_is_transport_error():
    """Make sure a non-JSON response body is a TransportError"""
    store_client = MockedOpenshiftStoreClient(make_cluster_state(data={}))
    with mock.patch.object(
        store_client.client, "request", return_value=mock.Mock(data=b"not json")
    ):
        with pytest.raises(TransportError, match="malformed"):
            store_client.get(storage_object_path())


## Registrar ###################################################################


def test_register_resource_type():
    """Make sure the CRD is created and the kind becomes servable"""
    store_client = MockedOpenshiftStoreClient()
    store_client.register_resource_type(TEST_RESOURCE_TYPE)
    crd = store_client.mock_client.get_object(
        "", constants.CRD_KIND, constants.CRD_API_VERSION, TEST_RESOURCE_TYPE.crd_name
    )
    assert crd["spec"]["names"]["kind"] == TEST_RESOURCE_TYPE.kind


def test_register_resource_type_twice():
    """Make sure registering an existing type is an AlreadyExistsError"""
    store_client = MockedOpenshiftStoreClient(make_cluster_state())
    with pytest.raises(AlreadyExistsError):
        store_client.register_resource_type(TEST_RESOURCE_TYPE)


def test_register_resource_type_not_established():
    """Make sure waiting for the CRD gives up after the configured timeout"""
    store_client = MockedOpenshiftStoreClient(establish_crds=False)
    with library_config_overrides(
        crd_established_timeout=0, crd_established_poll_interval=0
    ):
        with pytest.raises(TransportError, match="not established"):
            store_client.register_resource_type(TEST_RESOURCE_TYPE)


def test_wait_for_established_null_status():
    """Make sure a definition reported with a null status is treated as not yet
    established rather than crashing
    """
    crd = mock.Mock()
    crd.to_dict.return_value = {"metadata": {"name": "x"}, "status": None}
    resource_handle = mock.Mock()
    resource_handle.get.return_value = crd
    store_client = MockedOpenshiftStoreClient()
    with library_config_overrides(
        crd_established_timeout=0, crd_established_poll_interval=0
    ):
        with pytest.raises(TransportError, match="not established"):
            store_client._wait_for_established(resource_handle, "x", None)


def test_create_namespace():
    """Make sure namespaces are created and a second create conflicts"""
    store_client = MockedOpenshiftStoreClient()
    store_client.create_namespace("new")
    assert store_client.mock_client.get_object("", "Namespace", "v1", "new")
    with pytest.raises(AlreadyExistsError):
        store_client.create_namespace("new")


## Mock client #################################################################


def test_mock_call_api_path_first():
    """Make sure the mock serves calls that lead with the resource path"""
    mock_client = MockKubClient(make_cluster_state(data={"/a": "b"}))
    resp = mock_client.call_api(
        storage_object_path(),
        "GET",
        {},
        [],
        {"Accept": "application/json"},
        body=None,
        _request_timeout=3,
    )
    assert json.loads(resp.data)["data"] == {"/a": "b"}
    assert mock_client.requests[-1].timeout == 3


def test_mock_call_api_method_first():
    """Make sure the mock serves calls that lead with the method and a full url
    holding the host, with a serialized body
    """
    mock_client = MockKubClient(make_cluster_state(data={"/a": "b"}))
    url = f"https://cluster.example:6443{storage_object_path()}?pretty=true"
    resp = mock_client.call_api(
        "PATCH",
        url,
        {"Content-Type": constants.MERGE_PATCH_CONTENT_TYPE},
        json.dumps({"data": {"/c": "d"}}).encode("utf-8"),
        [],
        _request_timeout=5,
    )
    assert json.loads(resp.data)["data"] == {"/a": "b", "/c": "d"}
    request = mock_client.requests[-1]
    assert request.method == "PATCH"
    assert request.path == storage_object_path()
    assert request.body == {"data": {"/c": "d"}}
    assert request.timeout == 5


def test_mock_call_api_method_first_not_found():
    """Make sure a missing object is a 404 in the method-first form"""
    mock_client = MockKubClient(make_cluster_state())
    with pytest.raises(kubernetes.client.rest.ApiException) as exc_info:
        mock_client.call_api(
            "GET", f"http://localhost{storage_object_path(object_name='other')}", {}
        )
    assert exc_info.value.status == 404


## Setup #######################################################################


def test_client_out_of_cluster():
    """Make sure the kubeconfig is used when not running in a cluster"""
    with mock_kub_client_constructor() as api_client:
        store_client = OpenshiftStoreClient()
        assert store_client.client.client is api_client


## Storage #####################################################################


def test_storage_suite():
    """Make sure a Storage over an empty mock cluster passes the full suite"""
    store_client = MockedOpenshiftStoreClient()
    storage = setup_storage(store_client)
    assert get_stored_object(store_client)["data"] == {}
    storage_suite.run_storage_suite(storage)


def test_storage_existing_cluster_state():
    """Make sure provisioning against an existing object keeps its data"""
    store_client = MockedOpenshiftStoreClient(make_cluster_state(data={"/a": "b"}))
    storage = setup_storage(store_client)
    assert storage.search("/a") == "b"


def test_storage_disjoint_writers():
    """Make sure two storages on one mock cluster keep each other's keys"""
    store_client = MockedOpenshiftStoreClient()
    storage_suite.check_disjoint_writers(
        setup_storage(store_client), setup_storage(store_client)
    )


def test_storage_provision_failure():
    """Make sure a failed namespace create surfaces from the constructor"""
    store_client = MockedOpenshiftStoreClient(
        failures={("POST", "/api/v1/namespaces"): 403}
    )
    with pytest.raises(TransportError, match=f"creating namespace {TEST_NAMESPACE}"):
        Storage(
            store_client=store_client,
            object_name=TEST_OBJECT_NAME,
            namespace=TEST_NAMESPACE,
            resource_type=TEST_RESOURCE_TYPE,
        )
