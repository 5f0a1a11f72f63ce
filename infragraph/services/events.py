from __future__ import annotations
from typing import Any, Dict, Iterable, List, Optional, Tuple

from infragraph.models import PreviewEvent

# Engine bookkeeping resources, not part of the user's infrastructure.
INTERNAL_TYPE_PREFIXES = ("pulumi:pulumi:Stack", "pulumi:providers:")


def urn_name(urn: str) -> str:
    return urn.rsplit("::", 1)[-1]


def _op_name(op: Any) -> str:
    # automation API hands back an OpType enum, tests and older SDKs plain strings
    value = getattr(op, "value", op)
    return str(value) if value else "create"


def event_from_metadata(metadata: Any) -> Optional[PreviewEvent]:
    """Build a PreviewEvent from a resource pre-event's StepEventMetadata."""
    urn = getattr(metadata, "urn", None)
    resource_type = getattr(metadata, "type", None)
    if not urn or not resource_type:
        return None
    deps = getattr(metadata, "dependencies", None) or []
    return PreviewEvent(
        urn=urn,
        resource_type=resource_type,
        operation=_op_name(getattr(metadata, "op", None)),
        dependencies=list(deps),
    )


def normalize_events(events: Iterable[PreviewEvent]) -> List[PreviewEvent]:
    """
    Canonical record list: first occurrence of each URN wins, engine-internal
    resources are dropped, and dependency lists only keep distinct URNs that
    are present in the list and differ from the event's own URN.
    """
    kept: List[PreviewEvent] = []
    seen = set()
    for e in events:
        if e.urn in seen or e.resource_type.startswith(INTERNAL_TYPE_PREFIXES):
            continue
        seen.add(e.urn)
        kept.append(e)

    out: List[PreviewEvent] = []
    for e in kept:
        deps: List[str] = []
        for d in e.dependencies:
            if d != e.urn and d in seen and d not in deps:
                deps.append(d)
        out.append(e.model_copy(update={"dependencies": deps}))
    return out


def _key(e: PreviewEvent) -> Tuple[str, str]:
    return e.resource_type.lower(), urn_name(e.urn)


def reconcile_dependencies(
    dynamic: List[PreviewEvent], static: List[PreviewEvent]
) -> List[PreviewEvent]:
    """
    Fill in dependencies for preview events that carry none, using the edges
    the static scan inferred for the same (type, name) resource.
    """
    static_by_key: Dict[Tuple[str, str], PreviewEvent] = {_key(e): e for e in static}
    dynamic_urn: Dict[str, str] = {}
    for e in dynamic:
        s = static_by_key.get(_key(e))
        if s is not None:
            dynamic_urn[s.urn] = e.urn

    out: List[PreviewEvent] = []
    for e in dynamic:
        s = static_by_key.get(_key(e))
        if e.dependencies or s is None:
            out.append(e)
            continue
        deps = [dynamic_urn[d] for d in s.dependencies if d in dynamic_urn]
        out.append(e.model_copy(update={"dependencies": deps}))
    return out
