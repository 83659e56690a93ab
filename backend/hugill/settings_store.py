"""
Key-value persistence for Hugill settings and workspace bindings.

Values are JSON-serializable and kept in a single JSON document on disk. Every
``set`` rewrites the whole document atomically (temp file + rename).
"""
import copy
import json
import logging
import os
import tempfile
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import TypeAdapter, ValidationError

from hugill.kube_types import WorkspaceBinding

logger = logging.getLogger(__name__)

NAMESPACE_KEY = "namespace"
POLL_INTERVAL_KEY = "poll_interval_msec"
WORKSPACES_KEY = "workspaces"

DEFAULT_POLL_INTERVAL_MSEC = 5000

_bindings_adapter = TypeAdapter(List[WorkspaceBinding])


class PersistenceError(Exception):
    """Raised when the backing store cannot be written."""


class JsonFileStore:
    """Atomic get/set of JSON values keyed by string, backed by a file."""

    def __init__(self, path: str):
        self.path = os.path.expanduser(path)
        self._lock = threading.Lock()
        self._data: Dict[str, Any] = self._read()

    def _read(self) -> Dict[str, Any]:
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning(f"⚠️ Could not read settings file {self.path}: {e}. Starting empty.")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"⚠️ Settings file {self.path} is not a JSON object. Starting empty.")
            return {}
        return data

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return copy.deepcopy(self._data.get(key))

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = dict(self._data)
            data[key] = copy.deepcopy(value)
            self._write(data)
            self._data = data

    def _write(self, data: Dict[str, Any]) -> None:
        directory = os.path.dirname(self.path) or "."
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".settings-", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"❌ Failed to write settings file {self.path}: {e}")
            raise PersistenceError(f"failed to write {self.path}: {e}") from e


def parse_bindings(value: Any) -> List[WorkspaceBinding]:
    """Deserialize a persisted binding list; anything invalid yields []."""
    if value is None:
        return []
    try:
        return _bindings_adapter.validate_python(value)
    except ValidationError as e:
        logger.warning(f"⚠️ Ignoring undeserializable workspaces entry: {e}")
        return []


@dataclass
class AppSettings:
    namespace: Optional[str] = None
    poll_interval_msec: int = DEFAULT_POLL_INTERVAL_MSEC
    workspaces: List[WorkspaceBinding] = field(default_factory=list)


class SettingsStore:
    """Typed view over the persisted settings keys."""

    def __init__(self, store: Any):
        self.store = store

    def app_settings(self, default_poll_interval_msec: int = DEFAULT_POLL_INTERVAL_MSEC) -> AppSettings:
        namespace = self.store.get(NAMESPACE_KEY)
        if not isinstance(namespace, str) or not namespace:
            namespace = None

        poll_interval_msec = self.store.get(POLL_INTERVAL_KEY)
        # bool is an int subclass
        if isinstance(poll_interval_msec, bool) or not isinstance(poll_interval_msec, int) or poll_interval_msec <= 0:
            poll_interval_msec = default_poll_interval_msec

        return AppSettings(
            namespace=namespace,
            poll_interval_msec=poll_interval_msec,
            workspaces=parse_bindings(self.store.get(WORKSPACES_KEY)),
        )

    def update_workspaces(self, workspaces: List[WorkspaceBinding]) -> None:
        self.store.set(WORKSPACES_KEY, [w.model_dump() for w in workspaces])
