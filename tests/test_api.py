"""End-to-end tests for the HTTP operations, with fake collaborators."""

from pathlib import Path

from conftest import BUCKET_PROGRAM, FakeCloud, FakeEngine, FakeGenerator
from fastapi.testclient import TestClient

from infragraph.context import build_context
from infragraph.main import create_app
from infragraph.models import PreviewEvent
from infragraph.services.pulumi_cloud import TokenCheck

VPC_URN = "urn:pulumi:dev::infra::aws:ec2/vpc:Vpc::v"
SUBNET_URN = "urn:pulumi:dev::infra::aws:ec2/subnet:Subnet::s"


def _generate(client: TestClient) -> dict:
    response = client.post("/generate", json={"description": "a vpc with one subnet"})
    assert response.status_code == 200
    return response.json()


def test_health(client: TestClient) -> None:
    body = client.get("/health").json()
    assert body["status"] == "ok"
    assert body["subprocessSupported"] is False
    assert body["stacks"] == 0
    assert body["sessionConfigured"] is False


def test_generate_builds_graph_from_static_scan(client: TestClient, settings) -> None:
    body = _generate(client)

    assert body["status"] == "ok"
    assert body["extraction"] == "static"
    assert len(body["stackId"]) == 10
    nodes = body["graph"]["nodes"]
    edges = body["graph"]["edges"]
    assert [n["id"] for n in nodes] == [VPC_URN, SUBNET_URN]
    assert nodes[0]["shortType"] == "Vpc"
    assert nodes[0]["estimatedCost"] == 0.0
    assert [(e["source"], e["target"]) for e in edges] == [(VPC_URN, SUBNET_URN)]
    assert body["totalEstimatedCost"] == 0.0
    assert body["deployStatus"] == "idle"

    work_dir = Path(settings.work_root) / f"infra-{body['stackId']}"
    assert sorted(p.name for p in work_dir.iterdir()) == ["Pulumi.yaml", "index.ts", "package.json", "tsconfig.json"]


def test_unknown_cost_is_null_and_excluded(settings) -> None:
    program = """
const db = new aws.rds.Instance("db", {});
const gizmo = new acme.widgets.Gizmo("g", { db: db.id });
"""
    ctx = build_context(settings, generator=FakeGenerator(program), cloud=FakeCloud(),
                        engine=FakeEngine(), subprocess_supported=False)
    body = TestClient(create_app(ctx)).post("/generate", json={"description": "x"}).json()

    costs = [n["estimatedCost"] for n in body["graph"]["nodes"]]
    assert costs == [29.2, None]
    assert body["totalEstimatedCost"] == 29.2


def test_generate_falls_back_when_preview_fails(settings) -> None:
    engine = FakeEngine()
    ctx = build_context(settings, generator=FakeGenerator(), cloud=FakeCloud(),
                        engine=engine, subprocess_supported=True)
    body = TestClient(create_app(ctx)).post("/generate", json={"description": "x"}).json()

    assert engine.previews == [body["stackId"]]
    assert body["status"] == "ok"
    assert body["extraction"] == "static"
    assert len(body["graph"]["nodes"]) == 2


def test_generate_uses_preview_when_available(settings) -> None:
    engine = FakeEngine(preview_events=[
        PreviewEvent(urn="urn:pulumi:dev::infra-stack::pulumi:pulumi:Stack::infra-stack-dev",
                     resource_type="pulumi:pulumi:Stack"),
        PreviewEvent(urn="urn:pulumi:dev::infra-stack::aws:ec2/vpc:Vpc::v", resource_type="aws:ec2/vpc:Vpc"),
        PreviewEvent(urn="urn:pulumi:dev::infra-stack::aws:ec2/subnet:Subnet::s",
                     resource_type="aws:ec2/subnet:Subnet"),
    ])
    ctx = build_context(settings, generator=FakeGenerator(), cloud=FakeCloud(),
                        engine=engine, subprocess_supported=True)
    body = TestClient(create_app(ctx)).post("/generate", json={"description": "x"}).json()

    assert body["extraction"] == "preview"
    assert [n["label"] for n in body["graph"]["nodes"]] == ["v", "s"]
    edge = body["graph"]["edges"][0]
    assert edge["source"].endswith("aws:ec2/vpc:Vpc::v")
    assert edge["target"].endswith("aws:ec2/subnet:Subnet::s")


def test_generate_reports_generator_failure(settings) -> None:
    ctx = build_context(settings, generator=FakeGenerator(error=RuntimeError("model offline")),
                        cloud=FakeCloud(), engine=FakeEngine(), subprocess_supported=False)
    client = TestClient(create_app(ctx))
    response = client.post("/generate", json={"description": "x"})

    assert response.status_code == 200
    assert response.json()["status"] == "error"
    assert response.json()["message"] == "model offline"
    assert client.get("/health").json()["stacks"] == 0


def test_update_existing_stack(client: TestClient, generator, settings) -> None:
    stack_id = _generate(client)["stackId"]

    body = client.post("/update", json={"stackId": stack_id, "changeDescription": "add a log bucket"}).json()

    assert body["status"] == "ok"
    assert body["stackId"] == stack_id
    assert len(body["graph"]["nodes"]) == 3
    assert body["totalEstimatedCost"] == 2.3
    assert generator.calls[-1][0] == "update"
    assert generator.calls[-1][2] == "add a log bucket"

    stored = client.get(f"/stacks/{stack_id}").json()
    assert len(stored["graph"]["nodes"]) == 3

    index_ts = Path(settings.work_root) / f"infra-{stack_id}" / "index.ts"
    assert index_ts.read_text(encoding="utf-8") == BUCKET_PROGRAM


def test_update_unknown_stack(client: TestClient) -> None:
    body = client.post("/update", json={"stackId": "missing123", "changeDescription": "x"}).json()
    assert body["status"] == "not_found"
    assert client.get("/stacks/missing123").json()["status"] == "not_found"


def test_session_lifecycle(client: TestClient, cloud) -> None:
    body = client.post("/session", json={"accessToken": "pul-1", "org": "acme", "escEnvironment": "proj/aws"}).json()
    assert body["status"] == "configured"
    assert "Ada" in body["message"]
    assert cloud.tokens == ["pul-1"]

    status = client.get("/session").json()
    assert status["status"] == "configured"
    assert status["org"] == "acme"
    assert status["escEnvironment"] == "proj/aws"
    assert "accessToken" not in status

    assert client.delete("/session").json()["status"] == "cleared"
    assert client.get("/session").json()["status"] == "not_configured"


def test_invalid_token_is_not_stored(client: TestClient, cloud) -> None:
    cloud.check = TokenCheck(status="invalid", status_code=401)

    body = client.post("/session", json={"accessToken": "bad", "org": "acme"}).json()

    assert body["status"] == "invalid_token"
    assert body["statusCode"] == 401
    assert client.get("/session").json()["status"] == "not_configured"


def test_unreachable_identity_endpoint(client: TestClient, cloud) -> None:
    cloud.check = TokenCheck(status="network_error", error="connection refused")

    body = client.post("/session", json={"accessToken": "pul-1", "org": "acme"}).json()

    assert body["status"] == "network_error"
    assert "connection refused" in body["message"]


def test_deploy_unknown_stack(client: TestClient) -> None:
    body = client.post("/deploy", json={"stackId": "never-made"}).json()
    assert body["status"] == "failed"
    assert body["logs"] == []


def test_deploy_before_session(client: TestClient, engine) -> None:
    stack_id = _generate(client)["stackId"]

    body = client.post("/deploy", json={"stackId": stack_id}).json()

    assert body["status"] == "not_configured"
    assert body["logs"] == []
    assert engine.deploys == []


def test_deploy_end_to_end(settings) -> None:
    def run(work_dir, stack_id, session, on_log):
        on_log("+ aws:ec2/vpc:Vpc v created")

    engine = FakeEngine(deploy=run)
    ctx = build_context(settings, generator=FakeGenerator(), cloud=FakeCloud(),
                        engine=engine, subprocess_supported=True)
    client = TestClient(create_app(ctx))
    stack_id = _generate(client)["stackId"]
    client.post("/session", json={"accessToken": "pul-1", "org": "acme"})

    body = client.post("/deploy", json={"stackId": stack_id}).json()

    assert body["status"] == "deployed"
    assert body["logs"] == ["+ aws:ec2/vpc:Vpc v created"]
    assert client.get(f"/stacks/{stack_id}").json()["deployStatus"] == "deployed"


def test_unwritable_program_falls_back_to_static_scan(settings) -> None:
    # a lone surrogate can't be encoded as utf-8
    program = 'const db = new aws.rds.Instance("db", {});\n// \ud800\n'
    engine = FakeEngine()
    ctx = build_context(settings, generator=FakeGenerator(program), cloud=FakeCloud(),
                        engine=engine, subprocess_supported=True)
    body = TestClient(create_app(ctx)).post("/generate", json={"description": "x"}).json()

    assert body["status"] == "ok"
    assert body["extraction"] == "static"
    assert [n["label"] for n in body["graph"]["nodes"]] == ["db"]
    assert engine.previews == []


def test_lifespan_keeps_injected_context(settings, context) -> None:
    app = create_app(context)
    with TestClient(app) as client:
        assert app.state.context is context
        assert client.get("/health").json()["status"] == "ok"
