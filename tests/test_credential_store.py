"""
Tests for app/services/credential_store.py.
"""

from __future__ import annotations

import json

from app.services.credential_store import CredentialStore


class TestCredentialStore:

    def test_missing_file_is_empty(self, credential_store):
        assert credential_store.load() == []

    def test_save_and_load_keep_order(self, credential_store):
        credential_store.save([" k1 ", "k2", "", "k3"])
        assert credential_store.load() == ["k1", "k2", "k3"]

    def test_file_layout(self, credential_store):
        credential_store.save(["k1"])
        data = json.loads(credential_store.path.read_text(encoding="utf-8"))
        assert data == {"gemini-api-keys": ["k1"]}

    def test_other_file_entries_survive(self, credential_store):
        credential_store.path.write_text(json.dumps({"theme": "dark"}), encoding="utf-8")
        credential_store.save(["k1"])
        data = json.loads(credential_store.path.read_text(encoding="utf-8"))
        assert data == {"theme": "dark", "gemini-api-keys": ["k1"]}

    def test_save_replaces_previous_list(self, credential_store):
        credential_store.save(["k1", "k2", "k3"])
        assert credential_store.save(["k3", "k1"]) == ["k3", "k1"]
        assert credential_store.load() == ["k3", "k1"]

    def test_duplicates_are_kept(self, credential_store):
        assert credential_store.save(["k1", "k1"]) == ["k1", "k1"]

    def test_corrupt_file_is_ignored(self, credential_store):
        credential_store.path.write_text("{not json", encoding="utf-8")
        assert credential_store.load() == []

    def test_non_list_value_is_ignored(self, credential_store):
        credential_store.path.write_text(json.dumps({"gemini-api-keys": "k1"}), encoding="utf-8")
        assert credential_store.load() == []

    def test_seed_only_when_empty(self, credential_store):
        assert credential_store.load_or_seed(["s1", "s2"]) == ["s1", "s2"]
        assert credential_store.load_or_seed(["other"]) == ["s1", "s2"]

    def test_nested_path_is_created(self, tmp_path):
        store = CredentialStore(path=str(tmp_path / "conf" / "keys.json"), key="k")
        store.save(["a"])
        assert store.load() == ["a"]
