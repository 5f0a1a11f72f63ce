"""
Static resource extraction from Pulumi TypeScript program text.

Used when the Pulumi preview can't run (no CLI, sandboxed host, program that
doesn't compile). Declarations are found by pattern, not by parsing:

    const vpc = new aws.ec2.Vpc("main", {...})

Dependencies are inferred from the text between one declaration and the
next. That span approximates the declaration's scope; it is an intentional
simplification, not a lexical analysis. Quoted strings are blanked out first
so names inside them ("bucket-owner-full-control") don't count as references.
"""

from __future__ import annotations
import re
from dataclasses import dataclass
from typing import List

from infragraph.models import PreviewEvent

URN_PREFIX = "urn:pulumi:dev::infra::"

# `new pulumi.asset.FileArchive(...)` and friends are values, not resources
NON_RESOURCE_PROVIDERS = ("pulumi",)

# plain "..." and '...' literals; template literals are kept for their ${...} parts
STRING_LITERAL = re.compile(r"\"(?:\\.|[^\"\\\n])*\"|'(?:\\.|[^'\\\n])*'")

DECL_PATTERN = re.compile(
    r"(?:\b(?:const|let|var)\s+)?"
    r"\b([A-Za-z_]\w*)\s*=\s*new\s+"
    r"([A-Za-z_]\w*)\.(\w+)\.(\w+)\s*"
    r"\(\s*[\"'`]([^\"'`]+)[\"'`]"
)


@dataclass
class _Declaration:
    binding: str
    resource_type: str
    urn: str
    start: int


def resource_type_for(provider: str, module: str, kind: str) -> str:
    return f"{provider}:{module.lower()}/{kind.lower()}:{kind}"


def urn_for(resource_type: str, name: str) -> str:
    return f"{URN_PREFIX}{resource_type}::{name}"


def _find_declarations(code: str) -> List[_Declaration]:
    decls: List[_Declaration] = []
    seen = set()
    for m in DECL_PATTERN.finditer(code):
        binding, provider, module, kind, name = m.groups()
        if provider in NON_RESOURCE_PROVIDERS:
            continue
        resource_type = resource_type_for(provider, module, kind)
        urn = urn_for(resource_type, name)
        if urn in seen:
            continue
        seen.add(urn)
        decls.append(_Declaration(binding, resource_type, urn, m.start()))
    return decls


def _references(binding: str, body: str) -> bool:
    name = re.escape(binding)
    # vpc.id / subnet.arn
    if re.search(rf"(?<![\w.$]){name}\s*\.", body):
        return True
    # dependsOn: [vpc], bucket: bucket
    return re.search(rf"(?<![\w.$]){name}(?![\w$])", body) is not None


def parse_resources_from_code(code: str) -> List[PreviewEvent]:
    """
    Return one create event per distinct resource declared in code, in
    declaration order. A later declaration with the same URN is dropped.
    Each event depends only on resources declared strictly before it.
    Returns an empty list when nothing matches; never raises.
    """
    if not code:
        return []

    decls = _find_declarations(code)
    events: List[PreviewEvent] = []
    for i, decl in enumerate(decls):
        end = decls[i + 1].start if i + 1 < len(decls) else len(code)
        body = STRING_LITERAL.sub('""', code[decl.start:end])
        deps = [other.urn for other in decls[:i] if _references(other.binding, body)]
        events.append(
            PreviewEvent(
                urn=decl.urn,
                resource_type=decl.resource_type,
                operation="create",
                dependencies=deps,
            )
        )
    return events
