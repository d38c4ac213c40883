"""Secret storage backends for the chat API key.

Provides a protocol for secret persistence with three implementations:
- KeyringSecretStore: System credential store via the `keyring` library
- FileSecretStore: Plaintext files with 0o600 permissions (fallback)
- MemorySecretStore: Process-local storage (tests, ephemeral sessions)

Every store serialises writes behind a lock, so the last completed write
wins and later reads observe it.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Protocol

import keyring
import keyring.errors
from keyring.backends import fail

from .config import SecretsConfig

logger = logging.getLogger(__name__)


class SecretStore(Protocol):
    """Protocol for named string secrets scoped to the application."""

    def get(self, key: str) -> str | None:
        """Return the secret, or None when absent."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store or overwrite the secret."""
        ...

    def delete(self, key: str) -> None:
        """Remove the secret. Deleting an absent secret is a no-op."""
        ...


class MemorySecretStore:
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._values[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._values.pop(key, None)


class FileSecretStore:
    """File-based secret storage with 0o600 permissions.

    Used when no functional system keyring is available.
    """

    def __init__(self, directory: Path) -> None:
        self._directory = directory
        self._lock = threading.Lock()

    def _path_for_key(self, key: str) -> Path:
        # Sanitize key to prevent directory traversal
        safe_key = key.replace("/", "_").replace("\\", "_").replace("..", "_")
        return self._directory / f"{safe_key}.secret"

    def get(self, key: str) -> str | None:
        path = self._path_for_key(key)
        with self._lock:
            if not path.exists():
                return None
            return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self._path_for_key(key)
        with self._lock:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.touch(mode=0o600, exist_ok=True)
            path.chmod(0o600)
            path.write_text(value, encoding="utf-8")

    def delete(self, key: str) -> None:
        path = self._path_for_key(key)
        with self._lock:
            path.unlink(missing_ok=True)


class KeyringSecretStore:
    """Secret storage in the system credential store, scoped by service name."""

    def __init__(self, service_name: str) -> None:
        self.service_name = service_name
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return keyring.get_password(self.service_name, key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            keyring.set_password(self.service_name, key, value)

    def delete(self, key: str) -> None:
        with self._lock:
            try:
                keyring.delete_password(self.service_name, key)
            except keyring.errors.PasswordDeleteError:
                logger.debug("No secret %s to delete in %s", key, self.service_name)


def keyring_available() -> bool:
    """True when keyring resolved a real backend rather than the fail backend."""
    return not isinstance(keyring.get_keyring(), fail.Keyring)


def create_secret_store(config: SecretsConfig) -> SecretStore:
    """Create the configured secret store.

    backend="auto" uses the system keyring when a functional backend exists
    and falls back to file-based storage otherwise.
    """
    backend = config.backend.lower()
    if backend == "memory":
        return MemorySecretStore()
    if backend == "file":
        return FileSecretStore(config.directory)
    if backend == "keyring":
        return KeyringSecretStore(config.service_name)
    if backend != "auto":
        raise ValueError(f"Unsupported secret backend: {config.backend}")

    if keyring_available():
        logger.debug("Using keyring secret storage")
        return KeyringSecretStore(config.service_name)
    logger.debug("Using file-based secret storage (keyring not available)")
    return FileSecretStore(config.directory)


class ApiKeyManager:
    """Reads and writes the chat API key in a SecretStore.

    A missing or blank key is a normal condition: has_api_key is False and
    get_api_key returns None.
    """

    def __init__(self, store: SecretStore, key_name: str = "anthropic_api_key"):
        self.store = store
        self.key_name = key_name

    @property
    def has_api_key(self) -> bool:
        return self.get_api_key() is not None

    def get_api_key(self) -> str | None:
        value = self.store.get(self.key_name)
        if value is None or not value.strip():
            return None
        return value

    def save_api_key(self, value: str) -> None:
        value = value.strip()
        if not value:
            self.remove_api_key()
            return
        self.store.set(self.key_name, value)
        logger.info("Saved API key %s", self.key_name)

    def remove_api_key(self) -> None:
        self.store.delete(self.key_name)
        logger.info("Removed API key %s", self.key_name)

    def masked(self) -> str | None:
        """The key with all but its last four characters hidden."""
        value = self.get_api_key()
        if value is None:
            return None
        if len(value) <= 4:
            return "*" * len(value)
        return "*" * (len(value) - 4) + value[-4:]
