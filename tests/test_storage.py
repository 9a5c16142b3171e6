import json
import os
import platform
import threading

import pytest

from minecraft_auth import Session
from utils.storage import SessionStore


SESSION = Session(
    username="Steve",
    account_id="069a79f444e94726a5befca90e38aaf5",
    access_token="mc-token",
    refresh_token="ms-refresh",
)


class TestSessionStore:
    """Tests for the persisted session record."""

    def test_round_trip(self, store):
        store.save(SESSION)

        loaded, found = store.load()

        assert found
        assert loaded == SESSION
        assert store.has_valid()

    def test_round_trip_through_new_instance(self, store):
        store.save(SESSION)

        loaded, found = SessionStore(str(store.config_file)).load()

        assert found
        assert loaded == SESSION

    def test_clear(self, store):
        store.save(SESSION)

        store.clear()

        assert not store.has_valid()
        assert store.load() == (None, False)
        data = json.loads(store.config_file.read_text())
        assert data["sessionRefreshToken"] == ""
        assert data["sessionUsername"] == ""

    def test_missing_file(self, store):
        assert store.load() == (None, False)
        assert not store.has_valid()

    @pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]", "", "\x00\xff"])
    def test_corrupt_file_is_absence(self, store, content):
        store.config_file.write_text(content)

        assert store.load() == (None, False)
        assert not store.has_valid()

    def test_persisted_field_names(self, store):
        store.save(SESSION)

        data = json.loads(store.config_file.read_text())

        assert data == {
            "sessionUsername": "Steve",
            "sessionUuid": "069a79f444e94726a5befca90e38aaf5",
            "sessionAccessToken": "mc-token",
            "sessionRefreshToken": "ms-refresh",
        }

    def test_preserves_host_config_keys(self, store):
        store.config_file.write_text(json.dumps({"memoryMax": 4096, "theme": "dark"}))

        store.save(SESSION)
        store.clear()

        data = json.loads(store.config_file.read_text())
        assert data["memoryMax"] == 4096
        assert data["theme"] == "dark"

    def test_session_without_refresh_token_is_not_valid(self, store):
        store.save(Session(username="Steve", account_id="id", access_token="mc-token", refresh_token=""))

        loaded, found = store.load()

        assert found
        assert loaded.access_token == "mc-token"
        assert not store.has_valid()

    def test_non_string_fields_are_ignored(self, store):
        store.config_file.write_text(json.dumps({"sessionUsername": 7, "sessionRefreshToken": "r"}))

        loaded, found = store.load()

        assert found
        assert loaded.username == ""
        assert loaded.refresh_token == "r"

    def test_no_temp_files_left_behind(self, store):
        store.save(SESSION)
        store.clear()

        assert os.listdir(store.config_file.parent) == [store.config_file.name]

    @pytest.mark.skipif(platform.system() == "Windows", reason="POSIX permissions")
    def test_file_is_private(self, store):
        store.save(SESSION)

        assert store.config_file.stat().st_mode & 0o777 == 0o600

    def test_concurrent_writes_never_tear(self, store):
        sessions = [
            Session(username=f"user{i}", account_id=f"id{i}", access_token=f"tok{i}", refresh_token=f"ref{i}")
            for i in range(20)
        ]

        def write(session):
            store.save(session)
            store.clear()
            store.save(session)

        threads = [threading.Thread(target=write, args=(s,)) for s in sessions]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        loaded, found = store.load()
        assert found
        assert loaded in sessions

    def test_status_hides_tokens(self, store):
        store.save(SESSION)

        status = store.get_status()

        assert status["has_session"]
        assert status["username"] == "Steve"
        assert "mc-token" not in json.dumps(status)
        assert "ms-refresh" not in json.dumps(status)
