"""
Tests for the Provisioner bootstrap steps
"""

# Standard
from unittest import mock

# Third Party
import pytest

# Local
from crstorage import constants
from crstorage.exceptions import (
    AlreadyExistsError,
    ErrorKind,
    InvalidConfigError,
    TransportError,
)
from crstorage.provisioner import Provisioner
from crstorage.store_client import DryRunStoreClient
from crstorage.test_helpers.helpers import (
    TEST_NAMESPACE,
    TEST_OBJECT_NAME,
    TEST_RESOURCE_TYPE,
    storage_object_path,
)

## Helpers #####################################################################


def make_provisioner(store_client=None, registrar=None):
    store_client = store_client or DryRunStoreClient()
    return Provisioner(
        store_client=store_client,
        registrar=registrar or store_client,
        resource_type=TEST_RESOURCE_TYPE,
        namespace=TEST_NAMESPACE,
        object_name=TEST_OBJECT_NAME,
    )


## Tests #######################################################################


def test_provision_creates_everything():
    """Make sure a fresh provision creates the storage object with an empty,
    present data map and the retention annotation
    """
    store_client = DryRunStoreClient()
    make_provisioner(store_client).provision()
    obj = store_client.get(storage_object_path())
    assert obj["kind"] == TEST_RESOURCE_TYPE.kind
    assert obj["apiVersion"] == TEST_RESOURCE_TYPE.api_version
    assert obj["metadata"]["name"] == TEST_OBJECT_NAME
    assert obj["metadata"]["namespace"] == TEST_NAMESPACE
    assert obj["metadata"]["annotations"] == {
        constants.DO_NOT_OMIT_EMPTY_ANNOTATION_NAME: (
            constants.DO_NOT_OMIT_EMPTY_ANNOTATION_VALUE
        )
    }
    assert obj["data"] == {}


def test_provision_twice_is_noop():
    """Make sure provisioning a second time succeeds and keeps existing data"""
    store_client = DryRunStoreClient()
    make_provisioner(store_client).provision()
    store_client.patch(storage_object_path(), {"data": {"/key": "value"}})
    make_provisioner(store_client).provision()
    assert store_client.get(storage_object_path())["data"] == {"/key": "value"}


def test_provision_endpoints():
    """Make sure the collection and object endpoints line up"""
    provisioner = make_provisioner()
    assert provisioner.collection_endpoint == TEST_RESOURCE_TYPE.endpoint(
        TEST_NAMESPACE
    )
    assert provisioner.object_endpoint == storage_object_path()


@pytest.mark.parametrize(
    "step",
    ["register_resource_type", "create_namespace"],
)
def test_provision_registrar_already_exists(step):
    """Make sure an "already exists" answer from any registrar step is success"""
    store_client = DryRunStoreClient()
    with mock.patch.object(
        store_client, step, side_effect=AlreadyExistsError("exists")
    ):
        # The dry run client still needs the real registration to accept the
        # object, so register first
        DryRunStoreClient.register_resource_type(store_client, TEST_RESOURCE_TYPE)
        DryRunStoreClient.create_namespace(store_client, TEST_NAMESPACE)
        make_provisioner(store_client).provision()
    assert store_client.get(storage_object_path())["data"] == {}


def test_provision_failure_has_context():
    """Make sure a non-conflict failure stops provisioning with the step named"""
    store_client = DryRunStoreClient()
    with mock.patch.object(
        store_client, "create_namespace", side_effect=TransportError("forbidden")
    ):
        with pytest.raises(TransportError) as exc_info:
            make_provisioner(store_client).provision()
    assert exc_info.value.kind == ErrorKind.TRANSPORT
    assert str(exc_info.value) == f"creating namespace {TEST_NAMESPACE}: forbidden"


def test_provision_foreign_failure_is_transport():
    """Make sure an unexpected exception type is converted to a TransportError"""
    store_client = DryRunStoreClient()
    with mock.patch.object(store_client, "post", side_effect=ConnectionError("down")):
        with pytest.raises(TransportError) as exc_info:
            make_provisioner(store_client).provision()
    assert isinstance(exc_info.value.__cause__, ConnectionError)
    assert "creating storage object" in str(exc_info.value)


def test_provision_stops_at_first_failure():
    """Make sure later steps are not attempted after a failure"""
    store_client = DryRunStoreClient()
    with mock.patch.object(
        store_client,
        "register_resource_type",
        side_effect=InvalidConfigError("bad type"),
    ), mock.patch.object(store_client, "create_namespace") as create_namespace:
        with pytest.raises(InvalidConfigError):
            make_provisioner(store_client).provision()
    create_namespace.assert_not_called()


def test_provision_separate_registrar():
    """Make sure the registrar can be a different object than the store client"""
    store_client = DryRunStoreClient()
    registrar = mock.Mock()
    registrar.register_resource_type.side_effect = AlreadyExistsError()
    DryRunStoreClient.register_resource_type(store_client, TEST_RESOURCE_TYPE)
    DryRunStoreClient.create_namespace(store_client, TEST_NAMESPACE)
    make_provisioner(store_client, registrar=registrar).provision(timeout=3)
    registrar.register_resource_type.assert_called_once_with(
        TEST_RESOURCE_TYPE, timeout=3
    )
    registrar.create_namespace.assert_called_once_with(TEST_NAMESPACE, timeout=3)
