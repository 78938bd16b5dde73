"""
This defines the base classes for the two capabilities a storage backend
provides: raw object access by API path, and registration of the resources
that must exist before storage objects can be created.
"""

# Standard
from typing import Optional
import abc

# Local
from ..resource_type import ResourceType


class StoreClientBase(abc.ABC):
    """
    Base class for clients that read and write objects by absolute API path.
    Every method raises a StorageError subclass on failure.
    """

    @abc.abstractmethod
    def get(self, path: str, timeout: Optional[float] = None) -> dict:
        """Fetch the object at the given path

        Args:
            path:  str
                Absolute API path of the object
            timeout:  Optional[float]
                Bound in seconds on the round trip

        Returns:
            content:  dict
                The decoded JSON body of the object
        """

    @abc.abstractmethod
    def post(self, path: str, body: dict, timeout: Optional[float] = None) -> dict:
        """Create an object in the collection at the given path

        Args:
            path:  str
                Absolute API path of the collection
            body:  dict
                The full object to create
            timeout:  Optional[float]
                Bound in seconds on the round trip

        Returns:
            content:  dict
                The created object as returned by the server

        Raises:
            AlreadyExistsError: An object with the same name is present
        """

    @abc.abstractmethod
    def patch(self, path: str, body: dict, timeout: Optional[float] = None) -> dict:
        """Apply a JSON merge patch to the object at the given path

        Args:
            path:  str
                Absolute API path of the object
            body:  dict
                The merge patch document. Keys mapped to None are removed.
            timeout:  Optional[float]
                Bound in seconds on the round trip

        Returns:
            content:  dict
                The patched object as returned by the server
        """


class ResourceRegistrarBase(abc.ABC):
    """
    Base class for registering resource types and namespaces. Both operations
    raise AlreadyExistsError when the resource is already present.
    """

    @abc.abstractmethod
    def register_resource_type(
        self,
        resource_type: ResourceType,
        timeout: Optional[float] = None,
    ):
        """Register the resource type and wait until the server serves it

        Args:
            resource_type:  ResourceType
                The type to register
            timeout:  Optional[float]
                Bound in seconds on each round trip
        """

    @abc.abstractmethod
    def create_namespace(self, name: str, timeout: Optional[float] = None):
        """Create the namespace

        Args:
            name:  str
                The namespace to create
            timeout:  Optional[float]
                Bound in seconds on the round trip
        """
