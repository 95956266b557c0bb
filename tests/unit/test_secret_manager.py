# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Unit tests for secret operations on the current context.
"""
import pytest
from dx.MANAGERS.secret_manager import SecretManager
from dx.MODELS.config import Secret
from dx.errors import DxError, MissingSecretError, SecretConflictError, SecretNotFoundError


@pytest.fixture
def manager(resolver, secret_store, write_config, make_service):
    write_config({"contexts": [{
        "name": "acme",
        "scripts": {"deploy": "{{.Secrets.DB_PASSWORD}} {{.Secrets.API_KEY}}"},
        "services": [make_service("api")],
    }]}, current="acme")
    return SecretManager(resolver, secret_store)


class TestSetGetDelete:
    """Tests for set, get, list and delete."""

    def test_set_and_get(self, manager):
        manager.set("TOKEN", "abc")
        assert manager.get("TOKEN") == "abc"

    def test_set_updates_in_place(self, manager, secret_store):
        manager.set("A", "1")
        manager.set("B", "2")
        manager.set("A", "3")
        assert [(s.key, s.value) for s in secret_store.load("acme")] == [("A", "3"), ("B", "2")]

    def test_set_rejects_conflict(self, manager, secret_store):
        manager.set("db", "x")
        with pytest.raises(SecretConflictError) as exc_info:
            manager.set("db.password", "y")
        assert exc_info.value.conflicting_key == "db"
        assert "dx secret delete db" in str(exc_info.value)
        assert [s.key for s in secret_store.load("acme")] == ["db"]

    def test_set_allows_non_boundary_prefix(self, manager):
        manager.set("db", "x")
        manager.set("db_host", "y")
        assert manager.list_keys() == ["db", "db_host"]

    def test_set_empty_value(self, manager):
        with pytest.raises(DxError, match="empty"):
            manager.set("A", "")

    def test_update_of_legacy_conflicting_key(self, manager, secret_store):
        secret_store.save([Secret(key="db", value="1"), Secret(key="db.password", value="2")], "acme")
        manager.set("db.password", "3")
        assert manager.get("db.password") == "3"

    def test_get_missing(self, manager):
        with pytest.raises(SecretNotFoundError):
            manager.get("NOPE")

    def test_list_sorted(self, manager):
        manager.set("b", "1")
        manager.set("a", "2")
        assert manager.list_keys() == ["a", "b"]

    def test_delete(self, manager):
        manager.set("a", "1")
        manager.set("b", "2")
        manager.delete("a")
        assert manager.list_keys() == ["b"]


class TestConfigure:
    """Tests for configure."""

    def test_check_only_reports_all_missing(self, manager):
        with pytest.raises(MissingSecretError) as exc_info:
            manager.configure(check_only=True)
        assert exc_info.value.missing == ["API_KEY", "DB_PASSWORD"]
        assert len(exc_info.value.missing) == 2

    def test_check_only_partial(self, manager):
        manager.set("API_KEY", "k")
        with pytest.raises(MissingSecretError) as exc_info:
            manager.configure(check_only=True)
        assert exc_info.value.missing == ["DB_PASSWORD"]

    def test_all_configured(self, manager):
        manager.set("API_KEY", "k")
        manager.set("DB_PASSWORD", "p")
        report = manager.configure(check_only=True)
        assert report.expected == ["API_KEY", "DB_PASSWORD"]
        assert report.missing == []

    def test_without_prompt_fails_fast(self, manager, secret_store):
        with pytest.raises(MissingSecretError):
            manager.configure(prompt=None)
        assert secret_store.load("acme") == []

    def test_interactive(self, manager):
        answers = {"API_KEY": "k", "DB_PASSWORD": ""}
        report = manager.configure(prompt=answers.__getitem__)
        assert report.added == ["API_KEY"]
        assert report.skipped == [("DB_PASSWORD", "empty value")]
        assert manager.get("API_KEY") == "k"

    def test_interactive_skips_conflicts(self, manager, secret_store):
        secret_store.save([Secret(key="API_KEY.v1", value="old")], "acme")
        report = manager.configure(prompt=lambda key: "value")
        assert report.added == ["DB_PASSWORD"]
        assert report.skipped[0][0] == "API_KEY"
        assert "API_KEY.v1" in report.skipped[0][1]

    def test_nothing_added_nothing_saved(self, manager, key_vault):
        manager.configure(prompt=lambda key: "")
        assert not key_vault.has_key("acme-encryption-key")

    def test_no_references(self, resolver, secret_store, write_config):
        write_config({"contexts": [{"name": "plain", "scripts": {"x": "echo hi"}}]}, current="plain")
        report = SecretManager(resolver, secret_store).configure(check_only=True)
        assert report.expected == []
