from __future__ import annotations
from datetime import datetime, timezone
from typing import List, Optional, Literal
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DeployStatus = Literal["idle", "deploying", "deployed", "failed"]


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class CamelModel(BaseModel):
    # snake_case in Python, camelCase on the wire
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PreviewEvent(CamelModel):
    urn: str
    resource_type: str
    operation: str = "create"
    dependencies: List[str] = Field(default_factory=list)


class Position(BaseModel):
    x: float = 0
    y: float = 0


class GraphNode(CamelModel):
    id: str
    label: str
    short_type: str
    provider: str
    resource_type: str
    position: Position = Field(default_factory=Position)
    estimated_cost: Optional[float] = None


class GraphEdge(CamelModel):
    id: str
    source: str
    target: str


class Graph(CamelModel):
    nodes: List[GraphNode] = Field(default_factory=list)
    edges: List[GraphEdge] = Field(default_factory=list)


class StackRecord(CamelModel):
    stack_id: str
    program: str
    work_dir: str
    nodes: List[GraphNode] = Field(default_factory=list)
    edges: List[GraphEdge] = Field(default_factory=list)
    deploy_status: DeployStatus = "idle"
    created_at: str = Field(default_factory=utcnow_iso)


class Session(CamelModel):
    access_token: str
    org: str
    esc_environment: Optional[str] = None
    configured_at: str = Field(default_factory=utcnow_iso)


# --- requests ---

class GenerateRequest(CamelModel):
    description: str


class UpdateRequest(CamelModel):
    stack_id: str
    change_description: str


class ConfigureSessionRequest(CamelModel):
    access_token: str
    org: str
    esc_environment: Optional[str] = None


class DeployRequest(CamelModel):
    stack_id: str


# --- responses ---

class GraphResponse(CamelModel):
    status: Literal["ok", "not_found", "error"]
    message: str
    stack_id: Optional[str] = None
    graph: Optional[Graph] = None
    total_estimated_cost: Optional[float] = None
    extraction: Optional[Literal["preview", "static"]] = None
    deploy_status: Optional[DeployStatus] = None


class SessionResponse(CamelModel):
    status: Literal["configured", "invalid_token", "network_error", "not_configured", "cleared"]
    message: str = ""
    status_code: Optional[int] = None
    org: Optional[str] = None
    esc_environment: Optional[str] = None
    configured_at: Optional[str] = None


class DeployResponse(CamelModel):
    status: Literal["deployed", "failed", "not_configured"]
    message: str
    logs: List[str] = Field(default_factory=list)
