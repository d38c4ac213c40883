"""Tests for secret storage and the API key manager."""

import stat
from unittest.mock import patch

import pytest

from beacon.config import SecretsConfig
from beacon.secret_store import (
    ApiKeyManager,
    FileSecretStore,
    KeyringSecretStore,
    MemorySecretStore,
    create_secret_store,
)


def test_memory_store_roundtrip():
    store = MemorySecretStore()

    assert store.get("k") is None
    store.set("k", "v1")
    store.set("k", "v2")
    assert store.get("k") == "v2"
    store.delete("k")
    store.delete("k")
    assert store.get("k") is None


def test_file_store_writes_private_file(tmp_path):
    """Test secrets land in a 0o600 file under the configured directory."""
    store = FileSecretStore(tmp_path / "secrets")

    store.set("anthropic_api_key", "sk-abc")

    path = tmp_path / "secrets" / "anthropic_api_key.secret"
    assert path.read_text() == "sk-abc"
    assert stat.S_IMODE(path.stat().st_mode) == 0o600
    assert store.get("anthropic_api_key") == "sk-abc"


def test_file_store_sanitizes_key(tmp_path):
    store = FileSecretStore(tmp_path)

    store.set("../escape", "x")

    assert not (tmp_path.parent / "escape.secret").exists()
    assert store.get("../escape") == "x"


def test_file_store_delete_missing_is_noop(tmp_path):
    store = FileSecretStore(tmp_path)

    store.delete("nothing")

    assert store.get("nothing") is None


def test_create_secret_store_backends(tmp_path):
    assert isinstance(create_secret_store(SecretsConfig(backend="memory")), MemorySecretStore)
    assert isinstance(
        create_secret_store(SecretsConfig(backend="file", directory=tmp_path)),
        FileSecretStore,
    )
    assert isinstance(create_secret_store(SecretsConfig(backend="keyring")), KeyringSecretStore)


def test_create_secret_store_auto_falls_back_to_file(tmp_path):
    with patch("beacon.secret_store.keyring_available", return_value=False):
        store = create_secret_store(SecretsConfig(backend="auto", directory=tmp_path))

    assert isinstance(store, FileSecretStore)


def test_create_secret_store_rejects_unknown_backend():
    with pytest.raises(ValueError, match="Unsupported secret backend"):
        create_secret_store(SecretsConfig(backend="vault"))


def test_keyring_store_delegates_to_keyring():
    store = KeyringSecretStore("uk.baldlygo.beacon")

    with patch("beacon.secret_store.keyring") as mock_keyring:
        mock_keyring.get_password.return_value = "sk-abc"
        assert store.get("anthropic_api_key") == "sk-abc"
        store.set("anthropic_api_key", "sk-new")

    mock_keyring.get_password.assert_called_once_with("uk.baldlygo.beacon", "anthropic_api_key")
    mock_keyring.set_password.assert_called_once_with("uk.baldlygo.beacon", "anthropic_api_key", "sk-new")


def test_api_key_manager_states(api_keys):
    assert api_keys.has_api_key is False
    assert api_keys.masked() is None

    api_keys.save_api_key("  sk-ant-123456  ")

    assert api_keys.has_api_key is True
    assert api_keys.get_api_key() == "sk-ant-123456"
    assert api_keys.masked() == "*********3456"


def test_api_key_manager_saving_blank_removes_key(api_keys, secret_store):
    api_keys.save_api_key("sk-ant-123456")

    api_keys.save_api_key("   ")

    assert api_keys.has_api_key is False
    assert secret_store.get("anthropic_api_key") is None


def test_api_key_manager_last_write_wins():
    manager = ApiKeyManager(MemorySecretStore(), "k")

    manager.save_api_key("first")
    manager.save_api_key("second")

    assert manager.get_api_key() == "second"
    manager.remove_api_key()
    assert manager.get_api_key() is None
