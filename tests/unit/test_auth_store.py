"""Unit tests for the client-side auth store."""

import json

from client.auth_store import AuthStore


class TestAuthStore:
    """Tests for AuthStore persistence."""

    def test_save_then_load_in_new_store(self, tmp_path):
        path = tmp_path / "auth.json"
        AuthStore(path).save("tok-123", {"user_id": "u1", "role": "murid"})

        store = AuthStore(path)
        store.load()

        assert store.is_authenticated
        assert store.token == "tok-123"
        assert store.user == {"user_id": "u1", "role": "murid"}

    def test_load_without_file_stays_signed_out(self, tmp_path):
        store = AuthStore(tmp_path / "missing.json")
        store.load()

        assert not store.is_authenticated
        assert store.user is None

    def test_corrupt_file_is_ignored(self, tmp_path):
        path = tmp_path / "auth.json"
        path.write_text("{not json", encoding="utf-8")

        store = AuthStore(path)
        store.load()

        assert store.token is None

    def test_clear_removes_file(self, tmp_path):
        path = tmp_path / "auth.json"
        store = AuthStore(path)
        store.save("tok", None)

        store.clear()

        assert not path.exists()
        assert not store.is_authenticated

    def test_set_user_rewrites_saved_session(self, tmp_path):
        path = tmp_path / "nested" / "auth.json"
        store = AuthStore(path)
        store.save("tok", {"full_name": "Budi"})

        store.set_user({"full_name": "Budi Santoso"})

        saved = json.loads(path.read_text(encoding="utf-8"))
        assert saved == {"token": "tok", "user": {"full_name": "Budi Santoso"}}

    def test_set_user_without_token_does_not_write(self, tmp_path):
        path = tmp_path / "auth.json"
        store = AuthStore(path)

        store.set_user({"full_name": "Budi"})

        assert store.user == {"full_name": "Budi"}
        assert not path.exists()
