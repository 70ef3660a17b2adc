import json
import os
from pathlib import Path
from typing import Any, Optional


class SecretsManager:
    """Load sweep service secrets from a JSON file pointed to by ``SECRETS_PATH``.

    Known keys: ``LEDGER_TOKEN`` (ledger gateway bearer token), ``API_TOKENS``
    (``{user: token}`` accepted by the HTTP API) and ``JWT_SECRET``.
    A key missing from the file falls back to the environment variable of the
    same name. Tests replace the in-memory cache via :meth:`set_override`.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(
            path or os.getenv("SECRETS_PATH", "/var/run/secrets/sweep.json")
        )
        self._cache: dict[str, Any] | None = None

    def _load(self) -> dict[str, Any]:
        if self._cache is None:
            try:
                with self._path.open("r", encoding="utf-8") as fh:
                    self._cache = json.load(fh)
            except FileNotFoundError:
                self._cache = {}
        return self._cache

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        """Return secret value for *key*, its env var, or *default*."""

        data = self._load()
        if key in data:
            return data[key]
        return os.getenv(key, default)

    def set_override(self, data: dict[str, Any]) -> None:
        """Replace the entire secret cache (test helper)."""

        self._cache = dict(data)


# Global default manager
secrets = SecretsManager()


def get_secret(key: str, default: Optional[Any] = None) -> Any:
    """Convenience wrapper around :class:`SecretsManager`."""

    return secrets.get(key, default)
