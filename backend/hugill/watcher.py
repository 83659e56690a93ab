"""
Background pod watcher.

``ClusterWatcher.start()`` loads the cluster configuration and connects in the
caller's thread, then polls the namespace from a daemon thread until
``stop()`` is called. Every successful listing is emitted as a fresh
ClusterStatus, every failed one as an error string; failures never end the
loop.
"""
import logging
import threading
from enum import Enum
from typing import Any, Callable, Optional

from hugill.kube_types import ClusterStatus
from hugill.settings_store import DEFAULT_POLL_INTERVAL_MSEC
from hugill.snapshot import pod_to_snapshot
from hugill.workspaces import WorkspaceResolver

logger = logging.getLogger(__name__)

StatusSink = Callable[[ClusterStatus], None]
ErrorSink = Callable[[str], None]


class WatcherState(str, Enum):
    STARTING = "starting"
    CONNECTING = "connecting"
    POLLING = "polling"
    STOPPED = "stopped"


class WatcherStartupError(Exception):
    """Raised when the watcher cannot load its context or connect."""


def describe_error(error: BaseException) -> str:
    return str(error) or error.__class__.__name__


class ClusterWatcher:
    """Poll one namespace and report its pods with resolved workspaces."""

    def __init__(
        self,
        kube: Any,
        resolver: WorkspaceResolver,
        on_status: StatusSink,
        on_error: ErrorSink,
        namespace: Optional[str] = None,
        poll_interval_msec: int = DEFAULT_POLL_INTERVAL_MSEC,
    ):
        """
        Args:
            kube: Cluster API collaborator (see KubeClient)
            resolver: Resolver attaching workspace folders to snapshots
            on_status: Receives a ClusterStatus on every successful tick
            on_error: Receives a description of every failed tick or startup failure
            namespace: Namespace to watch (client default if unset)
            poll_interval_msec: Delay between two listings
        """
        if poll_interval_msec <= 0:
            raise ValueError("poll_interval_msec must be positive")
        self.kube = kube
        self.resolver = resolver
        self.on_status = on_status
        self.on_error = on_error
        self.namespace = namespace
        self.poll_interval = poll_interval_msec / 1000.0

        self.state = WatcherState.STARTING
        self.context: Optional[str] = None
        self.active_namespace: Optional[str] = None

        self._stop_event = threading.Event()
        # held while emitting so stop() cannot interleave with a sink call
        self._emit_lock = threading.RLock()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> "ClusterWatcher":
        """Load configuration, connect and spawn the poll loop."""
        if self._thread is not None or self._stop_event.is_set():
            raise RuntimeError("a watcher can only be started once")

        self.state = WatcherState.STARTING
        try:
            self.context = self.kube.load_config()
        except Exception as e:
            self._fail(f"failed to load cluster configuration: {describe_error(e)}", e)

        self.state = WatcherState.CONNECTING
        try:
            self.kube.connect()
            self.active_namespace = self.namespace or self.kube.default_namespace()
        except Exception as e:
            self._fail(f"failed to connect to cluster: {describe_error(e)}", e)

        self.state = WatcherState.POLLING
        self._thread = threading.Thread(target=self._run, name="hugill-watcher", daemon=True)
        self._thread.start()
        logger.info(f"✅ Watching pods in {self.context}/{self.active_namespace} every {self.poll_interval:g}s")
        return self

    def _fail(self, message: str, cause: BaseException) -> None:
        logger.error(f"❌ Watcher startup failed: {message}")
        self.state = WatcherState.STOPPED
        self._emit(self.on_error, message)
        self._stop_event.set()
        raise WatcherStartupError(message) from cause

    def stop(self, timeout: Optional[float] = None) -> None:
        """Cancel the loop; no emission happens once this returns."""
        with self._emit_lock:
            self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            if thread.is_alive():
                logger.warning("⚠️ Watcher thread still finishing an in-flight listing")
        self.state = WatcherState.STOPPED

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def poll_once(self) -> Optional[ClusterStatus]:
        """Run a single tick; returns the emitted status, or None on failure."""
        context = self.context or self.kube.current_context()
        namespace = self.active_namespace or self.namespace or self.kube.default_namespace()
        try:
            pods = self.kube.list_pods(namespace)
        except Exception as e:
            logger.error(f"❌ Failed to list pods in {namespace}: {e}")
            self._emit(self.on_error, describe_error(e))
            return None

        snapshots = tuple(
            self.resolver.resolve(pod_to_snapshot(pod), context, namespace)
            for pod in pods
        )
        status = ClusterStatus(context=context, namespace=namespace, pods=snapshots)
        logger.debug(f"Found {len(snapshots)} pods in {context}/{namespace}")
        self._emit(self.on_status, status)
        return status

    def _emit(self, sink: Callable[[Any], None], payload: Any) -> bool:
        with self._emit_lock:
            if self._stop_event.is_set():
                return False
            try:
                sink(payload)
            except Exception:
                logger.exception("Watcher sink raised")
            return True

    def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.poll_once()
            except Exception as e:
                logger.exception("Unexpected failure in poll tick")
                self._emit(self.on_error, describe_error(e))
            if self._stop_event.wait(self.poll_interval):
                break
        self.state = WatcherState.STOPPED
        logger.info(f"Watcher for {self.context}/{self.active_namespace} stopped")
