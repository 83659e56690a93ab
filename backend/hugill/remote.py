"""
Opening pods in a remote-attached editor session.

The editor is launched with a ``vscode-remote://`` folder URI naming the pod's
container. When the editor exits cleanly the chosen workspace folder is
remembered in the binding store.
"""
import logging
import subprocess
from dataclasses import dataclass
from typing import Dict, List, Optional

from hugill.kube_types import WorkspaceBinding
from hugill.settings_store import PersistenceError
from hugill.workspaces import BindingStore

logger = logging.getLogger(__name__)

REMOTE_SCHEME = "vscode-remote://"
FOLDER_URI_FLAG = "--folder-uri"


class LaunchError(Exception):
    """Raised when the editor executable cannot be started."""


class SessionOpenError(Exception):
    """Raised when a remote session could not be opened or remembered."""


@dataclass
class ProcessResult:
    exit_code: int
    stdout: str = ""
    stderr: str = ""


class SubprocessRunner:
    """Runs an executable and waits for it to finish."""

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout

    def run(self, executable: str, args: List[str]) -> ProcessResult:
        try:
            result = subprocess.run(
                [executable, *args],
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (OSError, subprocess.SubprocessError) as e:
            raise LaunchError(f"failed to run {executable}: {e}") from e
        return ProcessResult(exit_code=result.returncode, stdout=result.stdout, stderr=result.stderr)


def percent_encode(value: str) -> str:
    """Percent-encode every byte that is not an ASCII letter or digit."""
    return "".join(
        chr(byte) if chr(byte).isascii() and chr(byte).isalnum() else f"%{byte:02X}"
        for byte in value.encode("utf-8")
    )


def encode_container_id(context: str, namespace: str, pod_name: str, container_name: str) -> str:
    container_id = f"k8s-container+context={context}+podname={pod_name}+namespace={namespace}+name={container_name}"
    return percent_encode(container_id)


def build_remote_uri(context: str, namespace: str, pod_name: str, container_name: str, workspace_folder: str) -> str:
    return f"{REMOTE_SCHEME}{encode_container_id(context, namespace, pod_name, container_name)}{workspace_folder}"


class RemoteSessionOpener:
    """Open a container in the editor and remember the workspace on success."""

    def __init__(self, store: BindingStore, runner: Optional[SubprocessRunner] = None, executable: str = "code"):
        self.store = store
        self.runner = runner or SubprocessRunner()
        self.executable = executable

    def open(
        self,
        context: str,
        namespace: str,
        pod_name: str,
        container_name: str,
        labels: Dict[str, str],
        workspace_folder: str,
    ) -> WorkspaceBinding:
        """
        Launch the editor attached to ``pod_name``/``container_name``.

        Returns:
            The stored binding for the opened workspace

        Raises:
            SessionOpenError: editor missing, non-zero exit, or the binding
                could not be persisted
        """
        uri = build_remote_uri(context, namespace, pod_name, container_name, workspace_folder)
        logger.info(f"Opening remote container: {uri}")

        try:
            result = self.runner.run(self.executable, [FOLDER_URI_FLAG, uri])
        except LaunchError as e:
            logger.error(f"❌ {e}")
            raise SessionOpenError(str(e)) from e

        if result.exit_code != 0:
            message = f"{self.executable} exited with code {result.exit_code}"
            if result.stderr:
                message = f"{message}: {result.stderr.strip()}"
            logger.error(f"❌ {message}")
            raise SessionOpenError(message)

        try:
            binding = self.store.upsert(context, namespace, container_name, labels, workspace_folder)
        except PersistenceError as e:
            raise SessionOpenError(f"session opened but workspace was not saved: {e}") from e

        logger.info(f"✅ Opened {pod_name}/{container_name} at {workspace_folder}")
        return binding
