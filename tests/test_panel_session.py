"""Tests for token storage and the dashboard view."""

import json
import os
import stat

import pytest

from authpanel.api import ApiError, ErrorKind
from authpanel.dashboard import Dashboard
from authpanel.session import FileSessionStore, MemorySessionStore, SessionStore


class TestFileSessionStore:
    def test_load_without_file(self, tmp_path):
        store = FileSessionStore(tmp_path / "session.json")
        assert store.load() is None
        assert not store.is_authenticated

    def test_token_survives_restart(self, tmp_path):
        path = tmp_path / "nested" / "session.json"
        FileSessionStore(path).set_token("abc")

        assert json.loads(path.read_text()) == {"token": "abc"}
        fresh = FileSessionStore(path)
        assert fresh.load() == "abc"
        assert fresh.is_authenticated

    @pytest.mark.skipif(os.name != "posix", reason="permission bits are POSIX only")
    def test_file_is_private(self, tmp_path):
        path = tmp_path / "session.json"
        FileSessionStore(path).set_token("abc")
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_clear_removes_file(self, tmp_path):
        path = tmp_path / "session.json"
        store = FileSessionStore(path)
        store.set_token("abc")
        store.clear()

        assert not path.exists()
        assert store.get_token() is None

    def test_corrupt_file_is_ignored(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text("{not json")
        assert FileSessionStore(path).load() is None

    def test_get_token_loads_lazily(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text(json.dumps({"token": "xyz"}))
        assert FileSessionStore(path).get_token() == "xyz"


class TestSessionStoreInterface:
    def test_incomplete_store_cannot_be_created(self):
        class TokenOnlyStore(SessionStore):
            def get_token(self):
                return None

        with pytest.raises(TypeError):
            TokenOnlyStore()

    def test_memory_store_round_trip(self):
        store = MemorySessionStore()
        assert not store.is_authenticated
        store.set_token("abc")
        assert store.is_authenticated
        store.clear()
        assert store.get_token() is None


class StubApi:
    def __init__(self, profile: dict | None = None, error: ApiError | None = None) -> None:
        self.profile = profile
        self.error = error
        self.tokens: list[str] = []

    def me(self, token: str) -> dict:
        self.tokens.append(token)
        if self.error:
            raise self.error
        return self.profile or {}


class TestDashboard:
    PROFILE = {"id": 7, "name": "Ann Lee", "email": "ann@example.com", "createdAt": "2026-01-02T03:04:05"}

    def test_no_token_is_unauthenticated(self):
        api = StubApi(self.PROFILE)
        view = Dashboard(api, MemorySessionStore()).load()
        assert not view.authenticated
        assert api.tokens == []

    def test_fetches_real_profile(self):
        api = StubApi(self.PROFILE)
        view = Dashboard(api, MemorySessionStore("abc")).load()

        assert view.authenticated
        assert api.tokens == ["abc"]
        assert view.user.name == "Ann Lee"
        assert view.user.email == "ann@example.com"
        assert view.user.member_since == "2026-01-02"

    def test_rejected_token_is_cleared(self):
        session = MemorySessionStore("stale")
        view = Dashboard(StubApi(error=ApiError(ErrorKind.AUTH, "Token is not valid", 401)), session).load()

        assert not view.authenticated
        assert session.get_token() is None

    def test_network_error_keeps_token(self):
        session = MemorySessionStore("abc")
        view = Dashboard(StubApi(error=ApiError(ErrorKind.TIMEOUT, "Request timed out. Please try again.")), session).load()

        assert view.authenticated
        assert view.user is None
        assert view.error == "Request timed out. Please try again."
        assert session.get_token() == "abc"

    def test_logout_clears_token(self):
        session = MemorySessionStore("abc")
        Dashboard(StubApi(), session).logout()
        assert session.get_token() is None
