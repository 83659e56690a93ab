"""
Workspace bindings: remembered workspace folders for pods.

A binding matches a pod when context, namespace and container name are equal
and every label stored on the binding is present with the same value on the
pod. Bindings are scanned in stored order and the first match wins, so when
two bindings overlap the one inserted earlier is used.
"""
import dataclasses
import logging
import threading
from typing import Any, Dict, List, Optional

from hugill.kube_types import PodSnapshot, WorkspaceBinding
from hugill.settings_store import WORKSPACES_KEY, PersistenceError, SettingsStore, parse_bindings

logger = logging.getLogger(__name__)

UNSTABLE_LABEL_SUFFIX = "-hash"


def filter_labels(labels: Dict[str, str]) -> Dict[str, str]:
    """Drop labels generated per rollout (``pod-template-hash`` and friends)."""
    return {key: value for key, value in labels.items() if not key.endswith(UNSTABLE_LABEL_SUFFIX)}


class BindingStore:
    """
    Ordered list of workspace bindings mirrored to a key-value store.

    Reads and the read-modify-persist sequence of ``upsert`` run under one
    exclusive lock, so a resolution never observes a half-applied upsert.
    """

    def __init__(self, persistence: Any):
        self.persistence = persistence
        self._settings = SettingsStore(persistence)
        self._lock = threading.Lock()
        self._bindings: List[WorkspaceBinding] = []

    @property
    def bindings(self) -> List[WorkspaceBinding]:
        with self._lock:
            return [b.model_copy(deep=True) for b in self._bindings]

    def load(self) -> List[WorkspaceBinding]:
        """Replace the in-memory list with the persisted one."""
        try:
            raw = self.persistence.get(WORKSPACES_KEY)
        except Exception as e:
            logger.warning(f"⚠️ Failed to read workspaces: {e}. Starting with no bindings.")
            raw = None
        bindings = parse_bindings(raw)
        with self._lock:
            self._bindings = bindings
        logger.info(f"Loaded {len(bindings)} workspace bindings")
        return self.bindings

    def _find_match(self, context: str, namespace: str, container_name: str, labels: Dict[str, str]) -> Optional[int]:
        for index, binding in enumerate(self._bindings):
            if binding.matches(context, namespace, container_name, labels):
                return index
        return None

    def find_match(self, context: str, namespace: str, container_name: str, labels: Dict[str, str]) -> Optional[int]:
        """Index of the first binding matching the identity and label subset."""
        with self._lock:
            return self._find_match(context, namespace, container_name, labels)

    def resolve_workspace_folder(self, context: str, namespace: str, container_name: str,
                                 labels: Dict[str, str]) -> Optional[str]:
        with self._lock:
            index = self._find_match(context, namespace, container_name, labels)
            if index is None:
                return None
            return self._bindings[index].workspace_folder

    def upsert(self, context: str, namespace: str, container_name: str, labels: Dict[str, str],
               workspace_folder: str) -> WorkspaceBinding:
        """
        Remember ``workspace_folder`` for a container and persist the full list.

        An existing match only gets its folder replaced; otherwise a new
        binding is appended with ``-hash`` labels removed. Raises
        PersistenceError when the write fails; the in-memory list keeps the
        change either way.
        """
        with self._lock:
            index = self._find_match(context, namespace, container_name, labels)
            if index is not None:
                binding = self._bindings[index]
                binding.workspace_folder = workspace_folder
                logger.info(f"Updated workspace binding for {context}/{namespace}/{container_name}: {workspace_folder}")
            else:
                binding = WorkspaceBinding(
                    context=context,
                    namespace=namespace,
                    container_name=container_name,
                    labels=filter_labels(labels),
                    workspace_folder=workspace_folder,
                )
                self._bindings.append(binding)
                logger.info(f"Added workspace binding for {context}/{namespace}/{container_name}: {workspace_folder}")
            try:
                self._settings.update_workspaces(self._bindings)
            except PersistenceError:
                raise
            except Exception as e:
                logger.error(f"❌ Failed to persist workspaces: {e}")
                raise PersistenceError(f"failed to persist workspaces: {e}") from e
            return binding.model_copy(deep=True)


class WorkspaceResolver:
    """Attach remembered workspace folders to pod snapshots."""

    def __init__(self, store: BindingStore):
        self.store = store

    def resolve(self, snapshot: PodSnapshot, context: str, namespace: str) -> PodSnapshot:
        if snapshot.container_name is None:
            return snapshot
        folder = self.store.resolve_workspace_folder(context, namespace, snapshot.container_name, snapshot.labels)
        return dataclasses.replace(snapshot, workspace_folder=folder)
