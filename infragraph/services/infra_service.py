from __future__ import annotations
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from infragraph.models import (
    Graph,
    GraphResponse,
    PreviewEvent,
    SessionResponse,
    StackRecord,
)
from .cost_estimator import annotate_nodes, total_estimated_cost
from .extractors import Extractor, StaticExtractor
from .generator import ProgramGenerator
from .graph_builder import build_graph
from .naming import new_stack_id, work_dir_for
from .program_writer import write_program
from .pulumi_cloud import PulumiCloudClient
from .session_store import SessionStore
from .stack_store import StackStore

logger = logging.getLogger(__name__)


class InfraService:
    """generate / update / configure-session operations over the injected stores."""

    def __init__(
        self,
        work_root: Path,
        stacks: StackStore,
        sessions: SessionStore,
        generator: ProgramGenerator,
        cloud: PulumiCloudClient,
        extractors: Sequence[Extractor],
    ):
        self.work_root = Path(work_root)
        self.stacks = stacks
        self.sessions = sessions
        self.generator = generator
        self.cloud = cloud
        # tried in order; the static scan is always the last resort
        self.extractors: List[Extractor] = [e for e in extractors if not isinstance(e, StaticExtractor)]
        self.extractors.append(StaticExtractor())

    # --- graph ---

    def _extract(self, stack_id: str, work_dir: Path, program: str) -> Tuple[List[PreviewEvent], str]:
        try:
            write_program(work_dir, program)
            written = True
        except Exception as e:
            logger.warning("could not write program for %s: %s", stack_id, e)
            written = False

        for extractor in self.extractors[:-1] if written else []:
            try:
                return extractor.extract(stack_id, work_dir, program), extractor.name
            except Exception as e:
                logger.warning("%s extraction failed for %s, falling back: %s", extractor.name, stack_id, e)
        static = self.extractors[-1]
        return static.extract(stack_id, work_dir, program), static.name

    def _build(self, stack_id: str, work_dir: Path, program: str):
        events, extraction = self._extract(stack_id, work_dir, program)
        nodes, edges = build_graph(events)
        nodes = annotate_nodes(nodes)
        cost = total_estimated_cost(n.estimated_cost for n in nodes)
        return nodes, edges, cost, extraction

    @staticmethod
    def _graph_response(
        record: StackRecord, cost: float, message: str, extraction: Optional[str] = None
    ) -> GraphResponse:
        return GraphResponse(
            status="ok",
            message=message,
            stack_id=record.stack_id,
            graph=Graph(nodes=record.nodes, edges=record.edges),
            total_estimated_cost=cost,
            extraction=extraction,
            deploy_status=record.deploy_status,
        )

    def generate(self, description: str) -> GraphResponse:
        """Generator errors propagate to the caller unchanged."""
        stack_id = new_stack_id()
        work_dir = work_dir_for(self.work_root, stack_id)

        program = self.generator.generate(description)
        nodes, edges, cost, extraction = self._build(stack_id, work_dir, program)

        record = self.stacks.put(
            StackRecord(
                stack_id=stack_id,
                program=program,
                work_dir=str(work_dir),
                nodes=nodes,
                edges=edges,
                deploy_status="idle",
            )
        )
        logger.info("stack %s generated: %d resources via %s", stack_id, len(nodes), extraction)
        return self._graph_response(
            record,
            cost,
            f"Generated infrastructure with {len(nodes)} resources. "
            f"Estimated cost: ~${cost}/mo. Stack ID: {stack_id}",
            extraction,
        )

    def update(self, stack_id: str, change_description: str) -> GraphResponse:
        record = self.stacks.get(stack_id)
        if record is None:
            return GraphResponse(
                status="not_found",
                message=f'Stack "{stack_id}" not found. Generate the infrastructure first.',
                stack_id=stack_id,
            )

        program = self.generator.update(record.program, change_description)
        nodes, edges, cost, extraction = self._build(stack_id, Path(record.work_dir), program)

        record = self.stacks.put(
            record.model_copy(update={"program": program, "nodes": nodes, "edges": edges})
        )
        logger.info("stack %s updated: %d resources via %s", stack_id, len(nodes), extraction)
        return self._graph_response(
            record,
            cost,
            f"Updated infrastructure: {len(nodes)} resources, ~${cost}/mo. Stack ID: {stack_id}",
            extraction,
        )

    def get_stack(self, stack_id: str) -> GraphResponse:
        record = self.stacks.get(stack_id)
        if record is None:
            return GraphResponse(status="not_found", message=f'Stack "{stack_id}" not found', stack_id=stack_id)
        cost = total_estimated_cost(n.estimated_cost for n in record.nodes)
        return self._graph_response(record, cost, f"Stack {stack_id}: {len(record.nodes)} resources")

    # --- session ---

    def configure_session(
        self, access_token: str, org: str, esc_environment: Optional[str] = None
    ) -> SessionResponse:
        check = self.cloud.validate_token(access_token)
        if check.status == "network_error":
            return SessionResponse(status="network_error", message=f"Failed to reach Pulumi Cloud: {check.error}")
        if not check.ok:
            return SessionResponse(
                status="invalid_token",
                status_code=check.status_code,
                message=(
                    f"Invalid Pulumi access token (HTTP {check.status_code}). "
                    "Check your token at app.pulumi.com/account/tokens and try again."
                ),
            )

        session = self.sessions.configure(access_token, org, esc_environment)
        display = check.display_name or org
        if session.esc_environment:
            env_line = (
                f"ESC environment: {org}/{session.esc_environment}; "
                "credentials will be injected at deploy time."
            )
        else:
            env_line = "No ESC environment set. Credentials will be read from the server environment."
        logger.info("Pulumi session configured for org %s", org)
        return SessionResponse(
            status="configured",
            message=f"Pulumi connected, logged in as {display} (org: {org}). {env_line}",
            org=session.org,
            esc_environment=session.esc_environment,
            configured_at=session.configured_at,
        )

    def session_status(self) -> SessionResponse:
        session = self.sessions.get()
        if session is None:
            return SessionResponse(status="not_configured", message="Pulumi is not configured.")
        return SessionResponse(
            status="configured",
            org=session.org,
            esc_environment=session.esc_environment,
            configured_at=session.configured_at,
        )

    def clear_session(self) -> SessionResponse:
        self.sessions.clear()
        return SessionResponse(status="cleared", message="Pulumi session cleared.")
