"""
Mapping of raw Kubernetes pod records to pod snapshots.

Only the first container declared in the pod spec (and the first entry of the
container status list) is looked at. Missing or malformed fields degrade to
``None`` / ``PodStatus.UNKNOWN`` instead of failing.
"""
from typing import Any, Dict, Optional

from hugill.kube_types import PodSnapshot, PodStatus


def _first(items: Any) -> Any:
    if not items:
        return None
    try:
        return items[0]
    except (TypeError, IndexError, KeyError):
        return None


def container_status(status: Any) -> PodStatus:
    """Derive the state of a container from its V1ContainerStatus."""
    state = getattr(status, "state", None)
    if state is None:
        return PodStatus.UNKNOWN
    # running beats waiting beats terminated
    if getattr(state, "running", None) is not None:
        return PodStatus.RUNNING
    if getattr(state, "waiting", None) is not None:
        return PodStatus.WAITING
    if getattr(state, "terminated", None) is not None:
        return PodStatus.TERMINATED
    return PodStatus.UNKNOWN


def pod_to_snapshot(pod: Any) -> PodSnapshot:
    """Build a PodSnapshot from a V1Pod (or any object shaped like one)."""
    metadata = getattr(pod, "metadata", None)
    name = getattr(metadata, "name", None) or ""
    try:
        labels: Dict[str, str] = dict(getattr(metadata, "labels", None) or {})
    except (TypeError, ValueError):
        labels = {}

    spec = getattr(pod, "spec", None)
    container = _first(getattr(spec, "containers", None))
    container_name: Optional[str] = getattr(container, "name", None)

    pod_status = getattr(pod, "status", None)
    first_status = _first(getattr(pod_status, "container_statuses", None))

    return PodSnapshot(
        name=name,
        container_name=container_name,
        status=container_status(first_status),
        labels=labels,
    )
