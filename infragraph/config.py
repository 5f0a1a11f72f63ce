from __future__ import annotations
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List


def get_allowed_origins() -> List[str]:
    raw = os.getenv("CORS_ALLOW_ORIGINS", "*")
    if raw.strip() == "*":
        return ["*"]
    return [x.strip() for x in raw.split(",") if x.strip()]


@dataclass
class Settings:
    """Runtime settings, read from the environment (and .env via load_dotenv in main.py)."""

    work_root: Path = Path("/tmp")
    state_root: Path = Path("/tmp")
    config_passphrase: str = "hackathon"
    pulumi_api_url: str = "https://api.pulumi.com"
    npm_command: str = "npm"
    generator_base_url: str = "https://api.openai.com/v1"
    generator_model: str = "gpt-4o-mini"
    generator_api_key: str = ""
    log_level: str = "INFO"
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            work_root=Path(os.getenv("INFRAGRAPH_WORK_ROOT", "/tmp")),
            state_root=Path(os.getenv("PULUMI_STATE_DIR", "/tmp")),
            config_passphrase=os.getenv("PULUMI_CONFIG_PASSPHRASE", "hackathon"),
            pulumi_api_url=os.getenv("PULUMI_API_URL", "https://api.pulumi.com").rstrip("/"),
            npm_command=os.getenv("INFRAGRAPH_NPM_COMMAND", "npm"),
            generator_base_url=os.getenv("GENERATOR_BASE_URL", "https://api.openai.com/v1"),
            generator_model=os.getenv("GENERATOR_MODEL", "gpt-4o-mini"),
            generator_api_key=os.getenv("GENERATOR_API_KEY", ""),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            allowed_origins=get_allowed_origins(),
        )
