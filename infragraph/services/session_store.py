from __future__ import annotations
import threading
from typing import Optional

from infragraph.models import Session


class SessionStore:
    """
    Single credential slot for deploys. One active session per process;
    configure() overwrites whatever is there. Nothing is persisted.
    """

    def __init__(self):
        self._session: Optional[Session] = None
        self._lock = threading.Lock()

    def configure(self, access_token: str, org: str, esc_environment: Optional[str] = None) -> Session:
        session = Session(access_token=access_token, org=org, esc_environment=esc_environment or None)
        with self._lock:
            self._session = session
        return session

    def get(self) -> Optional[Session]:
        """Current session, or None when unconfigured."""
        with self._lock:
            return self._session

    def clear(self) -> None:
        with self._lock:
            self._session = None

    @property
    def is_configured(self) -> bool:
        return self.get() is not None
