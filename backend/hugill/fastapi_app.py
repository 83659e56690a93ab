# fastapi_app.py
from __future__ import annotations

import asyncio
import logging
import threading
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from hugill.config import Settings, settings as default_settings
from hugill.kube_client import KubeClient
from hugill.kube_types import ClusterStatus
from hugill.remote import RemoteSessionOpener, SessionOpenError, SubprocessRunner, build_remote_uri
from hugill.settings_store import JsonFileStore, SettingsStore
from hugill.watcher import ClusterWatcher, WatcherStartupError
from hugill.workspaces import BindingStore, WorkspaceResolver

logger = logging.getLogger(__name__)


class StatusBoard:
    """Latest watcher output, written by the watcher thread."""

    def __init__(self):
        self._lock = threading.Lock()
        self.status: Optional[ClusterStatus] = None
        self.last_error: Optional[str] = None

    def on_status(self, status: ClusterStatus) -> None:
        with self._lock:
            self.status = status
            self.last_error = None

    def on_error(self, message: str) -> None:
        logger.warning(f"⚠️ Watcher error: {message}")
        with self._lock:
            self.last_error = message

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "status": self.status.to_dict() if self.status else None,
                "last_error": self.last_error,
            }


# -----------------------------------------------------------------------------
# Models
# -----------------------------------------------------------------------------
class OpenRemoteContainer(BaseModel):
    context: str
    namespace: str
    pod_name: str
    container_name: str
    labels: Dict[str, str] = Field(default_factory=dict)
    workspace_folder: str = Field(..., description="Folder to open inside the container")


def create_app(
    settings: Optional[Settings] = None,
    kube: Optional[Any] = None,
    runner: Optional[SubprocessRunner] = None,
    store: Optional[Any] = None,
) -> FastAPI:
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        persistence = store if store is not None else JsonFileStore(settings.SETTINGS_PATH)
        app_settings = SettingsStore(persistence).app_settings(settings.POLL_INTERVAL_MSEC)

        bindings = BindingStore(persistence)
        bindings.load()
        board = StatusBoard()
        watcher = ClusterWatcher(
            kube or KubeClient(context=settings.K8S_CONTEXT, in_cluster=settings.K8S_IN_CLUSTER),
            WorkspaceResolver(bindings),
            on_status=board.on_status,
            on_error=board.on_error,
            namespace=app_settings.namespace or settings.K8S_NAMESPACE,
            poll_interval_msec=app_settings.poll_interval_msec,
        )

        app.state.bindings = bindings
        app.state.board = board
        app.state.watcher = watcher
        app.state.opener = RemoteSessionOpener(bindings, runner=runner, executable=settings.EDITOR_EXECUTABLE)

        try:
            watcher.start()
        except WatcherStartupError as e:
            # keep serving; /api/status reports the failure
            logger.error(f"❌ Cluster watcher not started: {e}")
        try:
            yield
        finally:
            await asyncio.to_thread(watcher.stop)

    app = FastAPI(title="Hugill", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------------------------------
    # Routes
    # -------------------------------------------------------------------------
    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    @app.get("/api/status")
    async def api_status(request: Request) -> Dict[str, Any]:
        data = request.app.state.board.snapshot()
        data["watcher"] = request.app.state.watcher.state.value
        return data

    @app.get("/api/workspaces")
    async def api_workspaces(request: Request) -> List[Dict[str, Any]]:
        return [b.model_dump() for b in request.app.state.bindings.bindings]

    # sync route: runs in the threadpool while the editor process is up
    @app.post("/api/open-remote-container")
    def api_open_remote_container(body: OpenRemoteContainer, request: Request):
        opener: RemoteSessionOpener = request.app.state.opener
        try:
            binding = opener.open(
                context=body.context,
                namespace=body.namespace,
                pod_name=body.pod_name,
                container_name=body.container_name,
                labels=body.labels,
                workspace_folder=body.workspace_folder,
            )
        except SessionOpenError as e:
            raise HTTPException(502, f"Failed to open remote container: {e}")
        return {
            "success": True,
            "uri": build_remote_uri(
                body.context, body.namespace, body.pod_name, body.container_name, body.workspace_folder
            ),
            "binding": binding.model_dump(),
        }

    return app


app = create_app()
