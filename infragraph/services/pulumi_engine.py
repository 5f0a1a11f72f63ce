# infragraph/services/pulumi_engine.py
from __future__ import annotations
import logging
import os
import subprocess
from pathlib import Path
from typing import Callable, Dict, List

from pulumi import automation as auto

from infragraph.config import Settings
from infragraph.models import PreviewEvent, Session
from .events import event_from_metadata
from .naming import project_name_for, state_dir_for
from .program_writer import pulumi_yaml

logger = logging.getLogger(__name__)

STACK_NAME = "dev"
CLOUD_BACKEND_URL = "https://api.pulumi.com"

# Cloud credentials forwarded to deploys when the server has them; with an ESC
# environment attached Pulumi Cloud injects them instead.
PASSTHROUGH_ENV = (
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "AWS_REGION",
    "GOOGLE_CREDENTIALS",
    "GOOGLE_PROJECT",
    "GOOGLE_REGION",
)

LogSink = Callable[[str], None]


def check_subprocess_support(scratch_dir: Path) -> bool:
    """
    Whether the Pulumi CLI can be driven from this process at all.
    Creating a LocalWorkspace shells out to `pulumi version`; any failure
    (CLI missing, sandboxed subprocesses) means no.
    """
    try:
        scratch_dir = Path(scratch_dir)
        scratch_dir.mkdir(parents=True, exist_ok=True)
        (scratch_dir / "Pulumi.yaml").write_text(pulumi_yaml("smoke-test"), encoding="utf-8")
        auto.LocalWorkspace(work_dir=str(scratch_dir))
        return True
    except Exception as e:
        logger.info("Pulumi CLI unavailable: %s", e)
        return False


def bare_environment_name(esc_environment: str) -> str:
    """
    'my-org/my-project/aws-creds' -> 'aws-creds'. The org is implied by the
    access token, so only the last path segment is passed on.
    """
    return esc_environment.strip().strip("/").split("/")[-1]


class PulumiEngine:
    def __init__(self, settings: Settings):
        self.settings = settings

    def _preview_env(self, stack_id: str) -> Dict[str, str]:
        state_dir = state_dir_for(self.settings.state_root, stack_id).resolve()
        state_dir.mkdir(parents=True, exist_ok=True)
        return {
            "PULUMI_CONFIG_PASSPHRASE": self.settings.config_passphrase,
            "PULUMI_BACKEND_URL": "file://" + state_dir.as_posix(),
            # preview never talks to the cloud; placeholders satisfy the provider
            "AWS_ACCESS_KEY_ID": os.getenv("AWS_ACCESS_KEY_ID", "dummy"),
            "AWS_SECRET_ACCESS_KEY": os.getenv("AWS_SECRET_ACCESS_KEY", "dummy"),
            "AWS_REGION": os.getenv("AWS_REGION", "us-east-1"),
        }

    def _deploy_env(self, access_token: str) -> Dict[str, str]:
        env = {
            "PULUMI_ACCESS_TOKEN": access_token,
            "PULUMI_CONFIG_PASSPHRASE": self.settings.config_passphrase,
        }
        for key in PASSTHROUGH_ENV:
            value = os.getenv(key)
            if value:
                env[key] = value
        return env

    def install_dependencies(self, work_dir: Path) -> None:
        # blocking, no timeout
        subprocess.run(
            [self.settings.npm_command, "install", "--prefer-offline"],
            cwd=str(work_dir),
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            check=True,
        )

    def preview(self, stack_id: str, work_dir: Path) -> List[PreviewEvent]:
        """
        Dry-run the program in work_dir against a file backend private to this
        stack and return its resource pre-events. Raises on any failure.
        """
        stack = auto.create_or_select_stack(
            stack_name=STACK_NAME,
            work_dir=str(work_dir),
            opts=auto.LocalWorkspaceOptions(
                work_dir=str(work_dir),
                env_vars=self._preview_env(stack_id),
            ),
        )
        self.install_dependencies(work_dir)

        events: List[PreviewEvent] = []

        def on_event(event):
            pre = getattr(event, "resource_pre_event", None)
            if pre is None or pre.metadata is None:
                return
            e = event_from_metadata(pre.metadata)
            if e is not None:
                events.append(e)

        stack.preview(on_event=on_event)
        logger.debug("preview of %s produced %d resource events", stack_id, len(events))
        return events

    def deploy(self, work_dir: Path, stack_id: str, session: Session, on_log: LogSink) -> None:
        """
        Run a real `pulumi up` for work_dir using Pulumi Cloud as the state
        backend. Output lines go to on_log verbatim, diagnostics as
        "[severity] message". Exceptions propagate.
        """
        stack = auto.create_or_select_stack(
            stack_name=STACK_NAME,
            work_dir=str(work_dir),
            opts=auto.LocalWorkspaceOptions(
                work_dir=str(work_dir),
                project_settings=auto.ProjectSettings(
                    name=project_name_for(stack_id),
                    runtime="nodejs",
                    backend=auto.ProjectBackend(url=CLOUD_BACKEND_URL),
                ),
                env_vars=self._deploy_env(session.access_token),
            ),
        )

        if session.esc_environment:
            env_name = bare_environment_name(session.esc_environment)
            on_log(f"[info] Attaching ESC environment: {env_name}")
            stack.add_environments(env_name)

        on_log("[info] Installing dependencies...")
        self.install_dependencies(work_dir)

        def on_event(event):
            diag = getattr(event, "diagnostic_event", None)
            if diag is not None and diag.message:
                on_log(f"[{diag.severity or 'info'}] {diag.message}")

        stack.up(on_output=on_log, on_event=on_event)
