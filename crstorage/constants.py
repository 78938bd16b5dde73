"""
Shared module to hold constant values for the library
"""

# Delimiter for nested config keys (e.g. resource_type.name)
NESTED_DICT_DELIM = "."

# Delimiter between segments of a hierarchical storage key
KEY_DELIM = "/"

# Annotation set on every storage object so that the server keeps an empty
# data map instead of omitting it
DO_NOT_OMIT_EMPTY_ANNOTATION_NAME = "crstorage.io/do-not-omit-empty"
DO_NOT_OMIT_EMPTY_ANNOTATION_VALUE = "non-empty"

# Annotation on the CustomResourceDefinition carrying the type description
DESCRIPTION_ANNOTATION_NAME = "crstorage.io/description"

# Namespace used when an empty namespace is given explicitly
DEFAULT_NAMESPACE = "default"

# Content type for JSON merge patches (RFC 7386)
MERGE_PATCH_CONTENT_TYPE = "application/merge-patch+json"

# apiextensions group used to register storage resource types
CRD_API_VERSION = "apiextensions.k8s.io/v1"
CRD_KIND = "CustomResourceDefinition"
CRD_ESTABLISHED_CONDITION = "Established"
