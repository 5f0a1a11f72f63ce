from __future__ import annotations
import threading
from typing import Dict, Optional

from infragraph.models import StackRecord


class StackStore:
    """
    In-memory registry: stack id -> latest StackRecord.

    Records are replaced wholesale and never evicted. The lock only keeps a
    single get/put consistent; concurrent generate/update/deploy calls on the
    same stack are not serialized, so the last write wins.
    """

    def __init__(self):
        self._records: Dict[str, StackRecord] = {}
        self._lock = threading.Lock()

    def get(self, stack_id: str) -> Optional[StackRecord]:
        with self._lock:
            return self._records.get(stack_id)

    def put(self, record: StackRecord) -> StackRecord:
        with self._lock:
            self._records[record.stack_id] = record
        return record

    def __contains__(self, stack_id: str) -> bool:
        with self._lock:
            return stack_id in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
