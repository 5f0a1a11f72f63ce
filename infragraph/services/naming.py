import re
import uuid
from pathlib import Path

STACK_ID_LENGTH = 10


def safe_name(name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9-]", "-", str(name))[:63].strip("-")


def new_stack_id() -> str:
    return uuid.uuid4().hex[:STACK_ID_LENGTH]


def work_dir_for(root: Path, stack_id: str) -> Path:
    return Path(root) / f"infra-{safe_name(stack_id)}"


def state_dir_for(root: Path, stack_id: str) -> Path:
    return Path(root) / f"pulumi-state-{safe_name(stack_id)}"


def project_name_for(stack_id: str) -> str:
    return safe_name(f"infra-{stack_id}")
