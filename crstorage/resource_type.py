"""
The ResourceType describes the custom resource kind under which storage objects
are held and derives every name and endpoint the server needs from it.
"""

# Standard
from typing import Optional
import re

# First Party
import aconfig

# Local
from . import config, constants
from .exceptions import assert_config

# The first label of a resource type name becomes the kind, so it must be a
# lowercase DNS-1123 label
_KIND_LABEL_EXPR = re.compile(r"^[a-z]([-a-z0-9]*[a-z0-9])?$")


class ResourceType:
    """Identity of a storage resource kind.

    The name has the form <hyphenated-kind>.<group>. For the name
    kv-storage.crstorage.io and version v1:

        kind:         KvStorage
        plural:       kvstorages
        api_version:  crstorage.io/v1
        crd_name:     kvstorages.crstorage.io
    """

    def __init__(self, name: str, version: str, description: str = ""):
        assert_config(name, "resource type name is empty")
        assert_config(version, "resource type version is empty")
        label, _, group = name.partition(".")
        assert_config(group, f"resource type name [{name}] has no group")
        assert_config(
            _KIND_LABEL_EXPR.match(label),
            f"resource type name [{name}] must start with a lowercase label",
        )
        self.name = name
        self.version = version
        self.description = description or ""
        self._label = label
        self._group = group

    @classmethod
    def from_config(cls, type_config: Optional[aconfig.Config] = None):
        """Construct from a resource_type config section (default: library
        config)
        """
        type_config = type_config or config.resource_type
        return cls(
            name=type_config.name,
            version=type_config.version,
            description=type_config.get("description"),
        )

    ## Derived names ###########################################################

    @property
    def group(self) -> str:
        return self._group

    @property
    def kind(self) -> str:
        return "".join(part.capitalize() for part in self._label.split("-"))

    @property
    def singular(self) -> str:
        return self._label.replace("-", "")

    @property
    def plural(self) -> str:
        return f"{self.singular}s"

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}"

    @property
    def crd_name(self) -> str:
        return f"{self.plural}.{self.group}"

    def endpoint(self, namespace: str) -> str:
        """The collection endpoint for objects of this type in a namespace"""
        return f"/apis/{self.group}/{self.version}/namespaces/{namespace}/{self.plural}"

    ## Manifests ###############################################################

    def to_crd(self) -> dict:
        """Build the CustomResourceDefinition that registers this type"""
        schema = {
            "type": "object",
            "properties": {
                "data": {
                    "type": "object",
                    "additionalProperties": {"type": "string"},
                },
            },
        }
        if self.description:
            schema["description"] = self.description
        return {
            "apiVersion": constants.CRD_API_VERSION,
            "kind": constants.CRD_KIND,
            "metadata": {
                "name": self.crd_name,
                "annotations": {
                    constants.DESCRIPTION_ANNOTATION_NAME: self.description,
                },
            },
            "spec": {
                "group": self.group,
                "scope": "Namespaced",
                "names": {
                    "kind": self.kind,
                    "singular": self.singular,
                    "plural": self.plural,
                    "listKind": f"{self.kind}List",
                },
                "versions": [
                    {
                        "name": self.version,
                        "served": True,
                        "storage": True,
                        "schema": {"openAPIV3Schema": schema},
                    }
                ],
            },
        }

    def __eq__(self, other):
        return isinstance(other, ResourceType) and (self.name, self.version) == (
            other.name,
            other.version,
        )

    def __hash__(self):
        return hash((self.name, self.version))

    def __repr__(self):
        return f"ResourceType({self.name}/{self.version})"
