"""Credential persistence boundary for the generation service.

The key is an opaque string. ``EnvCredentialStore`` reads it from the
environment; ``FileCredentialStore`` keeps it in a small JSON key-value file.
``ChainedCredentialStore`` tries several stores in order.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional, Protocol, Sequence

from config import API_KEY_ENV, CREDENTIALS_PATH

logger = logging.getLogger(__name__)


class CredentialStore(Protocol):
    def get(self) -> Optional[str]: ...

    def set(self, value: str) -> None: ...


class EnvCredentialStore:
    def __init__(self, var: str = API_KEY_ENV) -> None:
        self.var = var

    def get(self) -> Optional[str]:
        return os.environ.get(self.var) or None

    def set(self, value: str) -> None:
        os.environ[self.var] = value


class FileCredentialStore:
    def __init__(self, path: str | os.PathLike = CREDENTIALS_PATH, key: str = "api_key") -> None:
        self.path = Path(path).expanduser()
        self.key = key

    def _load(self) -> dict:
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("could not read credentials file %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self) -> Optional[str]:
        value = self._load().get(self.key)
        return str(value) if value else None

    def set(self, value: str) -> None:
        data = self._load()
        data[self.key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2)
        try:
            os.chmod(self.path, 0o600)
        except OSError:
            logger.debug("could not restrict permissions on %s", self.path)


class ChainedCredentialStore:
    """First store with a value wins; ``set`` writes to the last store."""

    def __init__(self, stores: Sequence[CredentialStore]) -> None:
        if not stores:
            raise ValueError("at least one credential store is required")
        self.stores = list(stores)

    def get(self) -> Optional[str]:
        for store in self.stores:
            value = store.get()
            if value:
                return value
        return None

    def set(self, value: str) -> None:
        self.stores[-1].set(value)


def default_store() -> ChainedCredentialStore:
    return ChainedCredentialStore([EnvCredentialStore(), FileCredentialStore()])
