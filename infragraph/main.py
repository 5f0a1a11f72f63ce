from __future__ import annotations

import logging
import shutil
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from infragraph.config import Settings
from infragraph.context import AppContext, build_context
from infragraph.models import (
    ConfigureSessionRequest,
    DeployRequest,
    DeployResponse,
    GenerateRequest,
    GraphResponse,
    SessionResponse,
    UpdateRequest,
)

load_dotenv()

logger = logging.getLogger(__name__)


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def create_app(context: Optional[AppContext] = None) -> FastAPI:
    settings = context.settings if context else Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.context is None:
            app.state.context = build_context(settings)
        yield

    app = FastAPI(title="Infrastructure graph → Pulumi backend", version="1.0.0", lifespan=lifespan)
    app.state.context = context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health(ctx: AppContext = Depends(get_context)):
        return {
            "status": "ok",
            "pulumiOnPath": bool(shutil.which("pulumi")),
            "subprocessSupported": ctx.subprocess_supported,
            "stacks": len(ctx.stacks),
            "sessionConfigured": ctx.sessions.is_configured,
        }

    @app.post("/generate", response_model=GraphResponse)
    def generate(req: GenerateRequest, ctx: AppContext = Depends(get_context)):
        try:
            return ctx.infra.generate(req.description)
        except Exception as e:
            logger.warning("generation failed: %s", e)
            return GraphResponse(status="error", message=str(e))

    @app.post("/update", response_model=GraphResponse)
    def update(req: UpdateRequest, ctx: AppContext = Depends(get_context)):
        try:
            return ctx.infra.update(req.stack_id, req.change_description)
        except Exception as e:
            logger.warning("update of %s failed: %s", req.stack_id, e)
            return GraphResponse(status="error", message=str(e), stack_id=req.stack_id)

    @app.get("/stacks/{stack_id}", response_model=GraphResponse)
    def get_stack(stack_id: str, ctx: AppContext = Depends(get_context)):
        return ctx.infra.get_stack(stack_id)

    @app.post("/session", response_model=SessionResponse)
    def configure_session(req: ConfigureSessionRequest, ctx: AppContext = Depends(get_context)):
        return ctx.infra.configure_session(req.access_token, req.org, req.esc_environment)

    @app.get("/session", response_model=SessionResponse)
    def session_status(ctx: AppContext = Depends(get_context)):
        return ctx.infra.session_status()

    @app.delete("/session", response_model=SessionResponse)
    def clear_session(ctx: AppContext = Depends(get_context)):
        return ctx.infra.clear_session()

    @app.post("/deploy", response_model=DeployResponse)
    def deploy(req: DeployRequest, ctx: AppContext = Depends(get_context)):
        return ctx.deployer.deploy(req.stack_id)

    return app


app = create_app()
