from __future__ import annotations

from collections import OrderedDict
from typing import Iterable

DEFAULT_CAPACITY = 500


class DedupLedger:
    """Bounded in-memory record of incident ids already announced in chat.

    Behaves as an ordered set: membership is O(1) and, once ``capacity`` is
    exceeded, the oldest id is evicted first. The ledger only suppresses
    duplicate chat notifications; losing it on restart is acceptable.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._seen: OrderedDict[str, None] = OrderedDict()

    def __contains__(self, incident_id: object) -> bool:
        return incident_id in self._seen

    def __len__(self) -> int:
        return len(self._seen)

    def add(self, incident_id: str) -> None:
        if not incident_id or incident_id in self._seen:
            return
        self._seen[incident_id] = None
        while len(self._seen) > self._capacity:
            self._seen.popitem(last=False)

    def add_all(self, incident_ids: Iterable[str]) -> None:
        for incident_id in incident_ids:
            self.add(incident_id)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def size(self) -> int:
        return len(self._seen)
