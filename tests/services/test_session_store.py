from __future__ import annotations

import json

from aurelane.services.session_store import TOKEN_KEY, USER_KEY, SessionStore


def test_in_memory_session():
    store = SessionStore()

    assert not store.is_authenticated
    store.save("jwt-1", {"name": "Asha"})

    assert store.is_authenticated
    assert store.get_token() == "jwt-1"
    assert store.get_user() == {"name": "Asha"}


def test_file_backed_session_survives_restart(tmp_path):
    path = tmp_path / "session" / "aurelane.json"
    SessionStore(path).save("jwt-2", {"name": "Ravi", "role": "seller"})

    restored = SessionStore(path)

    assert restored.get_token() == "jwt-2"
    assert restored.get_user() == {"name": "Ravi", "role": "seller"}
    assert json.loads(path.read_text()) == {
        TOKEN_KEY: "jwt-2",
        USER_KEY: {"name": "Ravi", "role": "seller"},
    }


def test_update_user_merges_fields(tmp_path):
    store = SessionStore(tmp_path / "s.json")
    store.save("jwt-3", {"name": "Asha", "role": "buyer"})

    merged = store.update_user(phoneNumber="9876543210")

    assert merged == {"name": "Asha", "role": "buyer", "phoneNumber": "9876543210"}
    assert SessionStore(tmp_path / "s.json").get_user() == merged


def test_clear_forgets_token_and_user(tmp_path):
    store = SessionStore(tmp_path / "s.json")
    store.save("jwt-4", {"name": "Asha"})

    store.clear()

    assert store.get_token() is None
    assert store.get_user() is None
    assert SessionStore(tmp_path / "s.json").get_token() is None


def test_unreadable_file_starts_empty(tmp_path, caplog):
    path = tmp_path / "s.json"
    path.write_text("{not json")

    store = SessionStore(path)

    assert store.get_token() is None
    assert "Ignoring unreadable session file" in caplog.text
