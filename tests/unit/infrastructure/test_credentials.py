import json

from crawl_dashboard.infrastructure.credentials import FileCredentialStore


def test_without_session_file_only_fallback_key_is_used(tmp_path):
    store = FileCredentialStore(tmp_path / "session.json", fallback_api_key="env-key")

    assert store.has_saved_session() is False
    assert store.bearer_token() is None
    assert store.api_key() == "env-key"


def test_session_file_values_take_priority(tmp_path):
    path = tmp_path / "session.json"
    path.write_text(json.dumps({"token": "jwt", "api_key": "file-key"}), encoding="utf-8")
    store = FileCredentialStore(path, fallback_api_key="env-key")

    assert store.bearer_token() == "jwt"
    assert store.api_key() == "file-key"


def test_session_changes_are_picked_up_without_restart(tmp_path):
    path = tmp_path / "session.json"
    store = FileCredentialStore(path)
    assert store.bearer_token() is None

    path.write_text(json.dumps({"token": "jwt"}), encoding="utf-8")
    assert store.bearer_token() == "jwt"

    path.unlink()
    assert store.bearer_token() is None


def test_corrupt_session_file_is_treated_as_logged_out(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("{broken", encoding="utf-8")
    store = FileCredentialStore(path, fallback_api_key="env-key")

    assert store.bearer_token() is None
    assert store.api_key() == "env-key"
