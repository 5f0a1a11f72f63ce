from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional

from infragraph.config import Settings
from infragraph.services.deployer import Deployer
from infragraph.services.extractors import DynamicExtractor
from infragraph.services.generator import ProgramGenerator
from infragraph.services.infra_service import InfraService
from infragraph.services.pulumi_cloud import PulumiCloudClient
from infragraph.services.pulumi_engine import PulumiEngine, check_subprocess_support
from infragraph.services.session_store import SessionStore
from infragraph.services.stack_store import StackStore

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    settings: Settings
    stacks: StackStore
    sessions: SessionStore
    infra: InfraService
    deployer: Deployer
    subprocess_supported: bool


def build_context(
    settings: Settings,
    generator: Optional[ProgramGenerator] = None,
    cloud: Optional[PulumiCloudClient] = None,
    engine: Optional[PulumiEngine] = None,
    subprocess_supported: Optional[bool] = None,
) -> AppContext:
    """Wire stores, engine and clients together. The CLI check runs once here."""
    engine = engine or PulumiEngine(settings)
    if subprocess_supported is None:
        subprocess_supported = check_subprocess_support(settings.work_root / "pulumi-smoke-test")
    logger.info(
        "Pulumi subprocess support: %s",
        "enabled" if subprocess_supported else "disabled (static parser fallback)",
    )

    stacks = StackStore()
    sessions = SessionStore()
    generator = generator or ProgramGenerator(
        settings.generator_base_url, settings.generator_model, settings.generator_api_key
    )
    cloud = cloud or PulumiCloudClient(settings.pulumi_api_url)
    extractors = [DynamicExtractor(engine)] if subprocess_supported else []

    return AppContext(
        settings=settings,
        stacks=stacks,
        sessions=sessions,
        infra=InfraService(settings.work_root, stacks, sessions, generator, cloud, extractors),
        deployer=Deployer(stacks, sessions, engine, subprocess_supported),
        subprocess_supported=subprocess_supported,
    )
