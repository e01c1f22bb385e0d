"""Tests for credential persistence."""

import json
import os
import stat
import sys
from datetime import datetime, timedelta, timezone

import pytest

from pyshai.credentials import Credentials


def iso(delta: timedelta) -> str:
    return (datetime.now(timezone.utc) + delta).isoformat().replace("+00:00", "Z")


@pytest.fixture
def path(tmp_path):
    return tmp_path / "shai" / "credentials"


class TestCredentials:
    """Tests for Credentials."""

    def test_missing_file(self, path):
        credentials = Credentials(path)

        assert credentials.token is None
        assert not credentials.authenticated

    def test_save_and_reload(self, path):
        user = {"username": "alice", "display_name": "Alice"}
        Credentials(path).save("tok", iso(timedelta(days=30)), user)

        credentials = Credentials(path)

        assert credentials.token == "tok"
        assert credentials.username == "alice"
        assert credentials.display_name == "Alice"
        assert credentials.authenticated
        assert json.loads(path.read_text())["user"] == user

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_file_mode(self, path):
        Credentials(path).save("tok", iso(timedelta(days=1)), {})

        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_file_is_created_private(self, path):
        old_umask = os.umask(0)
        try:
            Credentials(path).save("tok", iso(timedelta(days=1)), {})
        finally:
            os.umask(old_umask)

        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_existing_file_mode_is_tightened(self, path):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("{}")
        os.chmod(path, 0o644)

        Credentials(path).save("tok", iso(timedelta(days=1)), {})

        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600

    def test_expired_token(self, path):
        Credentials(path).save("tok", iso(timedelta(hours=-1)), {"username": "a"})

        credentials = Credentials(path)

        assert credentials.expired
        assert not credentials.authenticated

    def test_missing_expiry_counts_as_expired(self, path):
        Credentials(path).save("tok", None, {})

        assert not Credentials(path).authenticated

    def test_malformed_file_is_cleared(self, path):
        path.parent.mkdir(parents=True)
        path.write_text("{not json")

        credentials = Credentials(path)

        assert credentials.token is None
        assert not path.exists()

    def test_non_mapping_file_is_cleared(self, path):
        path.parent.mkdir(parents=True)
        path.write_text("[1, 2]")

        Credentials(path)

        assert not path.exists()

    def test_clear(self, path):
        credentials = Credentials(path)
        credentials.save("tok", iso(timedelta(days=1)), {"username": "alice"})

        credentials.clear()

        assert credentials.token is None
        assert credentials.username is None
        assert not path.exists()
