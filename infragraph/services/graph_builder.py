from __future__ import annotations
from typing import Dict, List, Tuple

from infragraph.models import GraphEdge, GraphNode, Position, PreviewEvent
from .events import urn_name

COLUMN_WIDTH = 280
ROW_HEIGHT = 140


def split_resource_type(resource_type: str) -> Tuple[str, str]:
    """'aws:ec2/vpc:Vpc' -> ('aws', 'Vpc')"""
    parts = resource_type.split(":")
    return parts[0], parts[-1]


def build_graph(events: List[PreviewEvent]) -> Tuple[List[GraphNode], List[GraphEdge]]:
    """
    One node per distinct URN in first-appearance order, one edge per
    dependency entry (from the depended-upon resource to the dependent).

    Layout is layered left to right: a node sits one column right of the
    deepest dependency already placed, rows fill top-down per column.
    Cycles are not detected; they just render as drawn.
    """
    nodes: List[GraphNode] = []
    edges: List[GraphEdge] = []
    column_of: Dict[str, int] = {}
    rows_in_column: Dict[int, int] = {}

    for e in events:
        if e.urn in column_of:
            continue
        placed = [column_of[d] for d in e.dependencies if d in column_of]
        column = max(placed) + 1 if placed else 0
        row = rows_in_column.get(column, 0)
        rows_in_column[column] = row + 1
        column_of[e.urn] = column

        provider, kind = split_resource_type(e.resource_type)
        nodes.append(
            GraphNode(
                id=e.urn,
                label=urn_name(e.urn) or kind,
                short_type=kind,
                provider=provider,
                resource_type=e.resource_type,
                position=Position(x=column * COLUMN_WIDTH, y=row * ROW_HEIGHT),
            )
        )
        for dep in e.dependencies:
            edges.append(GraphEdge(id=f"{dep}->{e.urn}", source=dep, target=e.urn))

    return nodes, edges
