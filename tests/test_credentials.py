import json
import os
import stat
import sys

import pytest

from generation.credentials import ChainedCredentialStore, EnvCredentialStore, FileCredentialStore


def test_file_store_round_trip(tmp_path):
    store = FileCredentialStore(tmp_path / "nested" / "credentials.json")
    assert store.get() is None
    store.set("sk-test")
    assert store.get() == "sk-test"
    assert json.loads(store.path.read_text()) == {"api_key": "sk-test"}


@pytest.mark.skipif(sys.platform.startswith("win"), reason="posix permissions")
def test_file_store_restricts_permissions(tmp_path):
    store = FileCredentialStore(tmp_path / "credentials.json")
    store.set("sk-test")
    assert stat.S_IMODE(os.stat(store.path).st_mode) == 0o600


def test_file_store_keeps_other_keys(tmp_path):
    path = tmp_path / "credentials.json"
    path.write_text(json.dumps({"other": "value"}))
    FileCredentialStore(path).set("sk-test")
    assert json.loads(path.read_text()) == {"other": "value", "api_key": "sk-test"}


def test_corrupt_file_reads_as_missing(tmp_path):
    path = tmp_path / "credentials.json"
    path.write_text("{not json")
    assert FileCredentialStore(path).get() is None


def test_env_store(monkeypatch):
    monkeypatch.delenv("CANVAS_TEST_KEY", raising=False)
    store = EnvCredentialStore("CANVAS_TEST_KEY")
    assert store.get() is None
    monkeypatch.setenv("CANVAS_TEST_KEY", "sk-env")
    assert store.get() == "sk-env"


def test_chained_store_first_value_wins(tmp_path, monkeypatch):
    monkeypatch.setenv("CANVAS_TEST_KEY", "sk-env")
    file_store = FileCredentialStore(tmp_path / "credentials.json")
    file_store.set("sk-file")
    chained = ChainedCredentialStore([EnvCredentialStore("CANVAS_TEST_KEY"), file_store])
    assert chained.get() == "sk-env"

    monkeypatch.delenv("CANVAS_TEST_KEY")
    assert chained.get() == "sk-file"

    chained.set("sk-new")
    assert file_store.get() == "sk-new"


def test_chained_store_needs_a_store():
    with pytest.raises(ValueError):
        ChainedCredentialStore([])
