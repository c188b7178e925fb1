import os
import json
import tempfile
import logging
from typing import Any
from fastapi import Request

logger = logging.getLogger(__name__)

ENCRYPTION_KEY_STORAGE = "va_manager_encryption_key"
ACTIVE_ORGANIZATION_KEY = "active_organization_id"
BACKUP_INDEX_KEY = "va_manager_backups"

class LocalStore:
    """
    Small JSON-file key-value store kept next to the operator's session.

    Holds values that must never travel to the database: the exportable
    encryption key, the active organization selector and the backup index.
    """

    def __init__(self, path: str):
        self.path = path

    def _load(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            raw = f.read()
        if not raw.strip():
            return {}
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError(f"Local store {self.path} does not contain a JSON object")
        return data

    def _save(self, data: dict):
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".state-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, self.path)
        except Exception:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def set(self, key: str, value: Any):
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, key: str):
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)

    def keys(self) -> list[str]:
        return list(self._load().keys())

def get_active_organization_id(store: LocalStore) -> int | None:
    value = store.get(ACTIVE_ORGANIZATION_KEY)
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring invalid active organization selector: {value!r}")
        store.remove(ACTIVE_ORGANIZATION_KEY)
        return None

def set_active_organization_id(store: LocalStore, organization_id: int):
    store.set(ACTIVE_ORGANIZATION_KEY, int(organization_id))
    logger.info(f"Active organization set to {organization_id}")

def get_local_store(request: Request) -> LocalStore:
    return request.app.state.local_store
