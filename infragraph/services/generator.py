from __future__ import annotations
import re
from typing import Dict, List

import requests

SYSTEM_PROMPT = """You write Pulumi programs in TypeScript.
Rules:
- Output only the program, no prose.
- Import providers as `import * as aws from "@pulumi/aws";` (or gcp).
- Declare every resource as `const <name> = new <provider>.<module>.<Kind>("<resource-name>", { ... });`
- Reference other resources through their variables (e.g. `vpcId: vpc.id`) so dependencies are explicit.
- Use small, low-cost defaults suitable for a development environment.
"""


def strip_fences(content: str) -> str:
    content = re.sub(r"^```(?:\w+)?\s*", "", content.strip())
    content = re.sub(r"\s*```$", "", content.strip())
    return content.strip() + "\n"


class ProgramGenerator:
    """Client for an OpenAI-compatible chat-completions endpoint that writes Pulumi programs."""

    def __init__(self, base_url: str, model: str, api_key: str = "", temperature: float = 0.2):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.api_key = api_key
        self.temperature = temperature

    def _complete(self, messages: List[Dict[str, str]]) -> str:
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        response = requests.post(
            f"{self.base_url}/chat/completions",
            headers=headers,
            json={
                "model": self.model,
                "messages": messages,
                "temperature": self.temperature,
            },
        )
        response.raise_for_status()
        content = response.json()["choices"][0]["message"]["content"]
        return strip_fences(content)

    def generate(self, description: str) -> str:
        return self._complete([
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": f"Write a Pulumi program for: {description}"},
        ])

    def update(self, current_program: str, change_description: str) -> str:
        return self._complete([
            {"role": "system", "content": SYSTEM_PROMPT},
            {
                "role": "user",
                "content": (
                    "Here is the current program:\n\n"
                    f"{current_program}\n\n"
                    f"Apply this change and return the full updated program: {change_description}"
                ),
            },
        ])
