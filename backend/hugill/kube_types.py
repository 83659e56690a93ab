"""
Type definitions for watched pods, cluster snapshots and workspace bindings.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, Field


class PodStatus(str, Enum):
    """State of a pod's first container."""
    RUNNING = "Running"
    WAITING = "Waiting"
    TERMINATED = "Terminated"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class PodSnapshot:
    """Normalized view of a pod at one poll tick."""
    name: str
    container_name: Optional[str] = None
    status: PodStatus = PodStatus.UNKNOWN
    labels: Dict[str, str] = field(default_factory=dict)
    workspace_folder: Optional[str] = None

    def __hash__(self) -> int:
        # labels is a dict; hash its items instead
        return hash((self.name, self.container_name, self.status, frozenset(self.labels.items()),
                     self.workspace_folder))

    def to_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "container_name": self.container_name,
            "status": self.status.value,
            "labels": dict(self.labels),
            "workspace_folder": self.workspace_folder,
        }


@dataclass(frozen=True)
class ClusterStatus:
    """Pods of one namespace in cluster listing order."""
    context: str
    namespace: str
    pods: Tuple[PodSnapshot, ...] = ()

    def to_dict(self) -> Dict[str, object]:
        return {
            "context": self.context,
            "namespace": self.namespace,
            "pods": [pod.to_dict() for pod in self.pods],
        }


class WorkspaceBinding(BaseModel):
    """Remembered workspace folder for a container identity and label subset."""
    context: str
    namespace: str
    container_name: str
    labels: Dict[str, str] = Field(default_factory=dict)
    workspace_folder: str

    def matches(self, context: str, namespace: str, container_name: str, labels: Dict[str, str]) -> bool:
        if (self.context, self.namespace, self.container_name) != (context, namespace, container_name):
            return False
        return all(labels.get(key) == value for key, value in self.labels.items())
