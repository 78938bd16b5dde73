"""
Behavioral checks that any Storage must pass regardless of the store client
behind it. Each check uses its own key prefix so that all of them can run
against one storage object.
"""

# Third Party
import pytest

# First Party
import alog

# Local
from crstorage import ErrorKind, KeyNotFoundError, Storage

log = alog.use_channel("TEST")


def check_put_search(storage: Storage):
    """A put value can be searched and exists"""
    storage.put("/put-search/key", "value")
    assert storage.search("/put-search/key") == "value"
    assert storage.exists("/put-search/key")


def check_put_overwrites(storage: Storage):
    """A second put replaces the value"""
    storage.put("/overwrite/key", "one")
    storage.put("/overwrite/key", "two")
    assert storage.search("/overwrite/key") == "two"


def check_create_is_put(storage: Storage):
    """Create is an upsert and does not fail for an existing key"""
    storage.create("/create/key", "one")
    storage.create("/create/key", "two")
    assert storage.search("/create/key") == "two"


def check_search_missing(storage: Storage):
    """Searching a never-written key is a not-found error, not an empty value"""
    with pytest.raises(KeyNotFoundError) as exc_info:
        storage.search("/search-missing/key")
    assert exc_info.value.kind == ErrorKind.NOT_FOUND
    assert not storage.exists("/search-missing/key")


def check_delete(storage: Storage):
    """A deleted key no longer exists and is not found"""
    storage.put("/delete/key", "value")
    storage.delete("/delete/key")
    assert not storage.exists("/delete/key")
    with pytest.raises(KeyNotFoundError):
        storage.search("/delete/key")


def check_delete_missing(storage: Storage):
    """Deleting an absent key succeeds"""
    storage.delete("/delete-missing/key")
    storage.delete("/delete-missing/key")
    assert not storage.exists("/delete-missing/key")


def check_exists_is_exact(storage: Storage):
    """Exists does not match prefixes"""
    storage.put("/exists-exact/parent/child", "value")
    assert not storage.exists("/exists-exact/parent")
    assert not storage.exists("/exists-exact/parent/chi")


def check_list(storage: Storage):
    """List is segment-aware and returns keys relative to the listed key"""
    storage.put("/list/foo", "a")
    storage.put("/list/foo/bar", "b")
    storage.put("/list/foo/baz/bat", "c")
    storage.put("/list/foobar", "d")
    assert storage.list("/list/foo") == ["", "bar", "baz/bat"]
    assert storage.list("/list/foo/baz") == ["bat"]
    assert storage.list("/list/nothing") == []


def check_disjoint_writers(storage: Storage, other: Storage):
    """Two storages on the same object do not clobber each other's keys"""
    storage.put("/disjoint/one", "1")
    other.put("/disjoint/two", "2")
    storage.put("/disjoint/three", "3")
    for reader in [storage, other]:
        assert reader.list("/disjoint") == ["one", "three", "two"]
        assert reader.search("/disjoint/two") == "2"


def check_delete_last_key(storage: Storage):
    """Removing every key leaves a usable storage"""
    for key in storage.list(""):
        storage.delete(f"/{key}")
    assert storage.list("") == []
    storage.put("/last-key/key", "value")
    assert storage.search("/last-key/key") == "value"


ALL_CHECKS = [
    check_put_search,
    check_put_overwrites,
    check_create_is_put,
    check_search_missing,
    check_delete,
    check_delete_missing,
    check_exists_is_exact,
    check_list,
    check_delete_last_key,
]


def run_storage_suite(storage: Storage):
    """Run every single-storage check in order"""
    for check in ALL_CHECKS:
        log.debug("Running %s", check.__name__)
        check(storage)
