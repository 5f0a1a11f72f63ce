from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.pulumi.com"


@dataclass
class TokenCheck:
    status: str  # "ok" | "invalid" | "network_error"
    display_name: Optional[str] = None
    status_code: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


class PulumiCloudClient:
    def __init__(self, api_url: str = DEFAULT_API_URL):
        self.api_url = api_url.rstrip("/")

    def validate_token(self, access_token: str) -> TokenCheck:
        """Check an access token against the Pulumi Cloud user endpoint."""
        url = f"{self.api_url}/api/user"
        headers = {
            "Authorization": f"token {access_token}",
            "Accept": "application/vnd.pulumi+8",
        }
        try:
            response = requests.get(url, headers=headers)
        except requests.RequestException as e:
            logger.warning("Pulumi Cloud unreachable: %s", e)
            return TokenCheck(status="network_error", error=str(e))

        if not response.ok:
            return TokenCheck(status="invalid", status_code=response.status_code)

        try:
            user = response.json()
        except ValueError:
            user = {}
        display = user.get("name") or user.get("githubLogin")
        return TokenCheck(status="ok", display_name=display, status_code=response.status_code)
