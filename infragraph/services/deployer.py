from __future__ import annotations
import logging
from pathlib import Path
from typing import List

from infragraph.models import DeployResponse
from .pulumi_engine import PulumiEngine
from .session_store import SessionStore
from .stack_store import StackStore

logger = logging.getLogger(__name__)

MAX_LOG_LINES = 80
MAX_LINE_LENGTH = 200
ELLIPSIS = "..."

CLI_MISSING_MESSAGE = (
    "Pulumi CLI is not available on this server. "
    "Install it with: curl -fsSL https://get.pulumi.com | sh"
)
CLI_MISSING_LOG = (
    "[error] Pulumi CLI not found. Run: curl -fsSL https://get.pulumi.com | sh, "
    "then restart the server."
)


def trim_logs(lines: List[str]) -> List[str]:
    """
    Keep deploy logs small enough to hand back in one response: drop
    [debug] lines, keep the last 80, cut long lines to 200 chars.
    """
    kept = [line for line in lines if not line.startswith("[debug]")][-MAX_LOG_LINES:]
    return [
        line if len(line) <= MAX_LINE_LENGTH else line[: MAX_LINE_LENGTH - len(ELLIPSIS)] + ELLIPSIS
        for line in kept
    ]


def count_created(lines: List[str]) -> int:
    return sum(1 for line in lines if "created" in line.lower() or "+" in line)


class Deployer:
    def __init__(
        self,
        stacks: StackStore,
        sessions: SessionStore,
        engine: PulumiEngine,
        subprocess_supported: bool,
    ):
        self.stacks = stacks
        self.sessions = sessions
        self.engine = engine
        self.subprocess_supported = subprocess_supported

    def deploy(self, stack_id: str) -> DeployResponse:
        record = self.stacks.get(stack_id)
        if record is None:
            return DeployResponse(status="failed", message=f'Stack "{stack_id}" not found', logs=[])

        session = self.sessions.get()
        if session is None:
            return DeployResponse(status="not_configured", message="Pulumi is not configured.", logs=[])

        if not self.subprocess_supported:
            return DeployResponse(status="failed", message=CLI_MISSING_MESSAGE, logs=[CLI_MISSING_LOG])

        logs: List[str] = []

        def on_log(line: str) -> None:
            logs.append(line.strip())

        self.stacks.put(record.model_copy(update={"deploy_status": "deploying"}))
        logger.info("deploying stack %s (org %s)", stack_id, session.org)
        try:
            self.engine.deploy(Path(record.work_dir), stack_id, session, on_log)
        except Exception as e:
            err = str(e)
            logs.append(f"[error] {err}")
            self.stacks.put(record.model_copy(update={"deploy_status": "failed"}))
            logger.warning("deploy of stack %s failed: %s", stack_id, err)
            return DeployResponse(status="failed", message=f"Deploy failed: {err}", logs=trim_logs(logs))

        self.stacks.put(record.model_copy(update={"deploy_status": "deployed"}))
        created = count_created(logs)
        logger.info("stack %s deployed", stack_id)
        return DeployResponse(
            status="deployed",
            message=f"Deployed successfully. ~{created} resources created.",
            logs=trim_logs(logs),
        )
