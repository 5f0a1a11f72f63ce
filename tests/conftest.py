from pathlib import Path
from typing import Callable, List, Optional

import pytest
from fastapi.testclient import TestClient

from infragraph.config import Settings
from infragraph.context import AppContext, build_context
from infragraph.main import create_app
from infragraph.models import PreviewEvent, Session
from infragraph.services.pulumi_cloud import TokenCheck

VPC_PROGRAM = """import * as aws from "@pulumi/aws";

vpc = new aws.ec2.Vpc("v", { cidrBlock: "10.0.0.0/16" });
subnet = new aws.ec2.Subnet("s", { vpcId: vpc.id, cidrBlock: "10.0.1.0/24" });
"""

BUCKET_PROGRAM = VPC_PROGRAM + """
const logs = new aws.s3.Bucket("logs", {});
"""


class FakeGenerator:
    def __init__(self, program: str = VPC_PROGRAM, updated: str = BUCKET_PROGRAM, error: Optional[Exception] = None):
        self.program = program
        self.updated = updated
        self.error = error
        self.calls: List[tuple] = []

    def generate(self, description: str) -> str:
        self.calls.append(("generate", description))
        if self.error:
            raise self.error
        return self.program

    def update(self, current_program: str, change_description: str) -> str:
        self.calls.append(("update", current_program, change_description))
        if self.error:
            raise self.error
        return self.updated


class FakeCloud:
    def __init__(self, check: Optional[TokenCheck] = None):
        self.check = check or TokenCheck(status="ok", display_name="Ada", status_code=200)
        self.tokens: List[str] = []

    def validate_token(self, access_token: str) -> TokenCheck:
        self.tokens.append(access_token)
        return self.check


class FakeEngine:
    """Stands in for PulumiEngine; preview fails unless events are given."""

    def __init__(self, preview_events: Optional[List[PreviewEvent]] = None,
                 deploy: Optional[Callable[[Path, str, Session, Callable[[str], None]], None]] = None):
        self.preview_events = preview_events
        self._deploy = deploy
        self.previews: List[str] = []
        self.deploys: List[str] = []

    def preview(self, stack_id: str, work_dir: Path) -> List[PreviewEvent]:
        self.previews.append(stack_id)
        if self.preview_events is None:
            raise RuntimeError("pulumi: command not found")
        return self.preview_events

    def deploy(self, work_dir: Path, stack_id: str, session: Session, on_log) -> None:
        self.deploys.append(stack_id)
        if self._deploy:
            self._deploy(work_dir, stack_id, session, on_log)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(work_root=tmp_path / "work", state_root=tmp_path / "state")


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def cloud() -> FakeCloud:
    return FakeCloud()


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def context(settings, generator, cloud, engine) -> AppContext:
    return build_context(settings, generator=generator, cloud=cloud, engine=engine, subprocess_supported=False)


@pytest.fixture
def client(context) -> TestClient:
    return TestClient(create_app(context))
