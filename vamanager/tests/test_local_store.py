import os
import stat
import pytest
from vamanager.local_store import (
    LocalStore,
    ACTIVE_ORGANIZATION_KEY,
    get_active_organization_id,
    set_active_organization_id,
)

def test_values_persist_across_instances(store):
    store.set("answer", {"value": 42})
    assert LocalStore(store.path).get("answer") == {"value": 42}
    assert store.keys() == ["answer"]

def test_missing_key_returns_default(store):
    assert store.get("nothing") is None
    assert store.get("nothing", []) == []

def test_remove(store):
    store.set("a", 1)
    store.set("b", 2)
    store.remove("a")
    store.remove("never-set")
    assert store.keys() == ["b"]

def test_file_is_private(store):
    store.set("secret", "value")
    mode = stat.S_IMODE(os.stat(store.path).st_mode)
    assert mode == 0o600

def test_empty_file_reads_as_empty(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("")
    assert LocalStore(str(path)).get("anything") is None

def test_non_object_file_is_rejected(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("[1, 2, 3]")
    with pytest.raises(ValueError):
        LocalStore(str(path)).get("anything")

def test_active_organization_selector(store):
    assert get_active_organization_id(store) is None
    set_active_organization_id(store, "7")
    assert get_active_organization_id(store) == 7

def test_invalid_active_organization_is_dropped(store):
    store.set(ACTIVE_ORGANIZATION_KEY, "not-a-number")
    assert get_active_organization_id(store) is None
    assert ACTIVE_ORGANIZATION_KEY not in store.keys()
