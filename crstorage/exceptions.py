"""
This module implements the error taxonomy for crstorage. Every error carries a
kind tag so that callers can branch on it, and a chain of context messages
describing where in the stack it passed through.
"""

# Standard
from enum import Enum
from typing import List, Optional

## Base Error ##################################################################


class ErrorKind(Enum):
    INVALID_CONFIG = "InvalidConfig"
    ALREADY_EXISTS = "AlreadyExists"
    NOT_FOUND = "NotFound"
    TRANSPORT = "Transport"


class StorageError(Exception):
    """Base class for all crstorage exceptions"""

    # Set statically on each child
    KIND: ErrorKind = None

    def __init__(self, message: str = "", context: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.context = list(context or [])

    @property
    def kind(self) -> ErrorKind:
        return self.KIND

    def add_context(self, context: str) -> "StorageError":
        """Push a context message onto the front of the chain. The same error
        is returned so that it can be re-raised inline.
        """
        self.context.insert(0, context)
        return self

    def __str__(self):
        return ": ".join(self.context + [self.message])


class InvalidConfigError(StorageError):
    """A required construction parameter is missing or malformed"""

    KIND = ErrorKind.INVALID_CONFIG


class AlreadyExistsError(StorageError):
    """The server already holds the resource being created"""

    KIND = ErrorKind.ALREADY_EXISTS


class KeyNotFoundError(StorageError):
    """A looked-up key is not present in the storage object"""

    KIND = ErrorKind.NOT_FOUND


class TransportError(StorageError):
    """Any other failure talking to the server, including malformed responses"""

    KIND = ErrorKind.TRANSPORT


## Helpers #####################################################################


def mask(err: Exception, context: str) -> StorageError:
    """Attach context to an error on its way up the stack.

    A StorageError gets the context pushed onto its chain. Anything else is
    converted to a TransportError with the original as its __cause__.

    Args:
        err:  Exception
            The caught exception
        context:  str
            Description of the operation that failed

    Returns:
        error:  StorageError
            The error to raise
    """
    if isinstance(err, StorageError):
        return err.add_context(context)
    wrapped = TransportError(f"{type(err).__name__}: {err}", context=[context])
    wrapped.__cause__ = err
    return wrapped


def is_already_exists(err: Exception) -> bool:
    return isinstance(err, StorageError) and err.kind == ErrorKind.ALREADY_EXISTS


def is_not_found(err: Exception) -> bool:
    return isinstance(err, StorageError) and err.kind == ErrorKind.NOT_FOUND


## Assertions ##################################################################


def assert_config(condition: bool, message: str = ""):
    """Replacement for assert() which will throw an InvalidConfigError. This
    should be used to validate construction parameters.
    """
    if not condition:
        raise InvalidConfigError(message)
