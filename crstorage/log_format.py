"""
Custom logging format that adds the identity of the storage object to json logs
"""

# First Party
from alog import AlogJsonFormatter


class StorageJsonFormatter(AlogJsonFormatter):
    """Extends AlogJsonFormatter with the fields identifying the storage object
    a log line is about. They are taken from a "storage" attribute on the
    record (pass extra={"storage": storage.describe()}) or from the dict given
    at construction.
    """

    _STORAGE_FIELDS = [
        "resourceType",
        "resourceVersion",
        "objectName",
        "objectNamespace",
    ]

    _FIELDS_TO_PRINT = (
        AlogJsonFormatter._FIELDS_TO_PRINT + ["process", "thread"] + _STORAGE_FIELDS
    )

    def __init__(self, storage=None):
        super().__init__()
        self.storage = storage

    def format(self, record):
        if storage := getattr(record, "storage", self.storage):
            for field in self._STORAGE_FIELDS:
                setattr(record, field, storage.get(field))
        return super().format(record)
