"""Shared fixtures for Hugill tests."""

import copy
from typing import Any, Dict, List, Optional
from unittest.mock import Mock

import pytest
from kubernetes import client

from hugill.workspaces import BindingStore, WorkspaceResolver


class MemoryStore:
    """In-memory key-value store with the JsonFileStore interface."""

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self.data = copy.deepcopy(data or {})
        self.writes: List[str] = []

    def get(self, key: str) -> Any:
        return copy.deepcopy(self.data.get(key))

    def set(self, key: str, value: Any) -> None:
        self.data[key] = copy.deepcopy(value)
        self.writes.append(key)


def make_pod(
    name: str = "p1",
    containers: Optional[List[str]] = None,
    labels: Optional[Dict[str, str]] = None,
    state: Optional[str] = "running",
    with_spec: bool = True,
) -> client.V1Pod:
    """Build a V1Pod; ``state`` is running|waiting|terminated|None for the first container."""
    containers = ["c1"] if containers is None else containers
    spec = client.V1PodSpec(containers=[client.V1Container(name=c) for c in containers]) if with_spec else None

    statuses = None
    if state is not None:
        container_state = client.V1ContainerState(
            running=client.V1ContainerStateRunning() if state == "running" else None,
            waiting=client.V1ContainerStateWaiting(reason="ContainerCreating") if state == "waiting" else None,
            terminated=client.V1ContainerStateTerminated(exit_code=0) if state == "terminated" else None,
        )
        statuses = [
            client.V1ContainerStatus(
                name=containers[0] if containers else "c",
                image="busybox",
                image_id="",
                ready=state == "running",
                restart_count=0,
                state=container_state,
            )
        ]

    return client.V1Pod(
        metadata=client.V1ObjectMeta(name=name, namespace="default", labels=labels),
        spec=spec,
        status=client.V1PodStatus(phase="Running", container_statuses=statuses),
    )


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def binding_store(memory_store):
    store = BindingStore(memory_store)
    store.load()
    return store


@pytest.fixture
def resolver(binding_store):
    return WorkspaceResolver(binding_store)


@pytest.fixture
def mock_kube():
    """Cluster collaborator with a loaded context and no pods."""
    kube = Mock()
    kube.load_config.return_value = "kind-dev"
    kube.current_context.return_value = "kind-dev"
    kube.default_namespace.return_value = "default"
    kube.list_pods.return_value = []
    return kube
