from __future__ import annotations
from pathlib import Path
from typing import List

from infragraph.models import PreviewEvent
from .events import normalize_events, reconcile_dependencies
from .pulumi_engine import PulumiEngine
from .static_extractor import parse_resources_from_code


class Extractor:
    """Turns a written program into the canonical PreviewEvent list."""

    name = "base"

    def extract(self, stack_id: str, work_dir: Path, program: str) -> List[PreviewEvent]:
        raise NotImplementedError


class StaticExtractor(Extractor):
    name = "static"

    def extract(self, stack_id: str, work_dir: Path, program: str) -> List[PreviewEvent]:
        return normalize_events(parse_resources_from_code(program))


class DynamicExtractor(Extractor):
    """Pulumi preview. Raises whenever the engine can't produce events."""

    name = "preview"

    def __init__(self, engine: PulumiEngine):
        self.engine = engine

    def extract(self, stack_id: str, work_dir: Path, program: str) -> List[PreviewEvent]:
        events = normalize_events(self.engine.preview(stack_id, work_dir))
        # pre-events don't report dependencies; borrow the edges the text implies
        return normalize_events(reconcile_dependencies(events, parse_resources_from_code(program)))
