"""
Kubernetes client for watching pods of a single namespace.
"""
import logging
from typing import Any, List, Optional

from kubernetes import client, config

logger = logging.getLogger(__name__)

IN_CLUSTER_CONTEXT = "in-cluster"
DEFAULT_NAMESPACE = "default"
SERVICE_NAMESPACE_FILENAME = "/var/run/secrets/kubernetes.io/serviceaccount/namespace"


class KubeClientError(Exception):
    """Raised when cluster configuration or connection fails."""


class KubeClient:
    """Cluster API collaborator used by the watcher."""

    def __init__(self, context: Optional[str] = None, in_cluster: bool = False, config_file: Optional[str] = None):
        """
        Initialize Kubernetes client.

        Args:
            context: Kubernetes context name (optional, current context if unset)
            in_cluster: Whether running inside cluster (default: False)
            config_file: Path to kubeconfig file (optional)
        """
        self.context = context
        self.in_cluster = in_cluster
        self.config_file = config_file
        self.v1: Optional[client.CoreV1Api] = None
        self._context_name: Optional[str] = None
        self._namespace: Optional[str] = None

    def load_config(self) -> str:
        """
        Load credentials for the active context.

        Returns:
            Name of the active context
        """
        try:
            if self.in_cluster:
                config.load_incluster_config()
                self._context_name = IN_CLUSTER_CONTEXT
                self._namespace = self._read_service_namespace()
            else:
                contexts, active = config.list_kube_config_contexts(config_file=self.config_file)
                if self.context:
                    active = next((c for c in contexts if c.get("name") == self.context), None)
                    if active is None:
                        raise KubeClientError(f"context '{self.context}' not found in kubeconfig")
                if not active:
                    raise KubeClientError("no active context in kubeconfig")
                config.load_kube_config(config_file=self.config_file, context=active["name"])
                self._context_name = active["name"]
                self._namespace = (active.get("context") or {}).get("namespace") or DEFAULT_NAMESPACE
        except KubeClientError as e:
            logger.error(f"❌ Failed to load Kubernetes configuration: {e}")
            raise
        except Exception as e:
            logger.error(f"❌ Failed to load Kubernetes configuration: {e}")
            raise KubeClientError(f"failed to load kubernetes configuration: {e}") from e

        logger.info(f"✅ Loaded Kubernetes context: {self._context_name}")
        return self._context_name

    def connect(self) -> None:
        """Create the CoreV1 API client for the loaded context."""
        if self._context_name is None:
            raise KubeClientError("configuration not loaded")
        try:
            self.v1 = client.CoreV1Api()
        except Exception as e:
            logger.error(f"❌ Failed to initialize Kubernetes client: {e}")
            raise KubeClientError(f"failed to create kubernetes client: {e}") from e
        logger.info(f"✅ Kubernetes client initialized for context: {self._context_name}")

    def current_context(self) -> str:
        if self._context_name is None:
            raise KubeClientError("configuration not loaded")
        return self._context_name

    def default_namespace(self) -> str:
        return self._namespace or DEFAULT_NAMESPACE

    def list_pods(self, namespace: str) -> List[Any]:
        """
        Get pods in a namespace.

        Args:
            namespace: Target Kubernetes namespace

        Returns:
            List of V1Pod objects in API listing order
        """
        if self.v1 is None:
            raise KubeClientError("client not connected")
        pods = self.v1.list_namespaced_pod(namespace=namespace)
        logger.debug(f"Retrieved {len(pods.items)} pods from namespace {namespace}")
        return list(pods.items)

    @staticmethod
    def _read_service_namespace() -> str:
        try:
            with open(SERVICE_NAMESPACE_FILENAME) as f:
                return f.read().strip() or DEFAULT_NAMESPACE
        except OSError:
            return DEFAULT_NAMESPACE
