"""
Shared test config
"""
# Standard
from unittest import mock

# Third Party
import pytest

# Local
from crstorage.test_helpers.helpers import configure_logging, library_config_overrides

configure_logging()


@pytest.fixture(autouse=True)
def no_local_kubeconfig():
    """This fixture makes sure the tests run as if KUBECONFIG is not exported in
    the environment, even if it is
    """
    with mock.patch(
        "kubernetes.config.new_client_from_config", side_effect=RuntimeError
    ):
        yield


@pytest.fixture(autouse=True)
def restore_library_config():
    """Undo any library config changes a test (or the CLI) makes"""
    with library_config_overrides():
        yield
