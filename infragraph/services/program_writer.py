from __future__ import annotations
import json
from pathlib import Path
from typing import Dict, Any

PROJECT_NAME = "infra-stack"

PACKAGE_JSON: Dict[str, Any] = {
    "name": PROJECT_NAME,
    "version": "1.0.0",
    "dependencies": {
        "@pulumi/pulumi": "^3.0.0",
        "@pulumi/aws": "^6.0.0",
        "@pulumi/gcp": "^8.0.0",
    },
}

TSCONFIG: Dict[str, Any] = {
    "compilerOptions": {
        "target": "ES2020",
        "module": "commonjs",
        "strict": True,
        "outDir": "bin",
        "rootDir": ".",
    },
    "exclude": ["node_modules"],
}


def pulumi_yaml(name: str = PROJECT_NAME) -> str:
    return f"name: {name}\nruntime: nodejs\ndescription: Generated infrastructure\n"


def write_program(work_dir: Path, program: str) -> Path:
    """
    Materialize a generated program plus its fixed scaffold into work_dir.
    All four files are overwritten on every call.
    """
    work_dir = Path(work_dir)
    work_dir.mkdir(parents=True, exist_ok=True)
    (work_dir / "index.ts").write_text(program, encoding="utf-8")
    (work_dir / "package.json").write_text(json.dumps(PACKAGE_JSON, indent=2), encoding="utf-8")
    (work_dir / "tsconfig.json").write_text(json.dumps(TSCONFIG, indent=2), encoding="utf-8")
    (work_dir / "Pulumi.yaml").write_text(pulumi_yaml(), encoding="utf-8")
    return work_dir
