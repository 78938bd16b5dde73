"""
Tests for the error taxonomy
"""

# Standard
import socket

# Third Party
import pytest

# Local
from crstorage import exceptions
from crstorage.exceptions import ErrorKind


def test_assert_config_pass():
    """Make sure that no exception is thrown by assert_config when it passes"""
    exceptions.assert_config(True)


def test_assert_config_fail():
    """Make sure the right exception is thrown by assert_config when it fails"""
    exception_msg = "error message"
    with pytest.raises(exceptions.InvalidConfigError, match=exception_msg):
        exceptions.assert_config(False, exception_msg)


@pytest.mark.parametrize(
    ["error_class", "kind"],
    [
        (exceptions.InvalidConfigError, ErrorKind.INVALID_CONFIG),
        (exceptions.AlreadyExistsError, ErrorKind.ALREADY_EXISTS),
        (exceptions.KeyNotFoundError, ErrorKind.NOT_FOUND),
        (exceptions.TransportError, ErrorKind.TRANSPORT),
    ],
)
def test_error_kinds(error_class, kind):
    """Make sure each error carries its kind tag and derives from the base"""
    err = error_class("message")
    assert err.kind == kind
    assert isinstance(err, exceptions.StorageError)


def test_context_chain_rendering():
    """Make sure context is rendered outermost first"""
    err = exceptions.KeyNotFoundError("key [/a] not found", context=["inner"])
    err.add_context("outer")
    assert err.context == ["outer", "inner"]
    assert str(err) == "outer: inner: key [/a] not found"


def test_mask_storage_error_keeps_identity():
    """Make sure masking a StorageError adds context without changing kind"""
    err = exceptions.AlreadyExistsError("exists")
    masked = exceptions.mask(err, "creating thing")
    assert masked is err
    assert masked.kind == ErrorKind.ALREADY_EXISTS
    assert str(masked) == "creating thing: exists"


def test_mask_foreign_error_is_transport():
    """Make sure any other exception becomes a TransportError with the original
    as its cause
    """
    original = socket.timeout("timed out")
    masked = exceptions.mask(original, "getting object")
    assert isinstance(masked, exceptions.TransportError)
    assert masked.__cause__ is original
    assert "getting object" in str(masked)
    assert "timed out" in str(masked)


def test_predicates():
    """Make sure the kind predicates only match their kind"""
    assert exceptions.is_already_exists(exceptions.AlreadyExistsError())
    assert not exceptions.is_already_exists(exceptions.TransportError())
    assert not exceptions.is_already_exists(ValueError())
    assert exceptions.is_not_found(exceptions.KeyNotFoundError())
    assert not exceptions.is_not_found(exceptions.TransportError("404"))
