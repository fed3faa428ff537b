"""
Tenant Connection Registry

Keyed cache of live tenant engines and their usage metadata.
Holds no connection logic of its own.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterator, List, Optional, Tuple


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ConnectionEntry:
    """A cached tenant engine. The entry exclusively owns the engine."""

    tenant_id: str
    engine: Any
    last_used: datetime = field(default_factory=utcnow)
    is_connected: bool = True
    retry_count: int = 0

    def touch(self, now: Optional[datetime] = None) -> None:
        self.last_used = now or utcnow()

    def idle_for(self, now: Optional[datetime] = None) -> timedelta:
        return (now or utcnow()) - self.last_used


class ConnectionRegistry:
    """
    Process-wide map of tenant id -> ConnectionEntry.

    Built once at startup and handed to the components that need it.
    Only the tenant connection manager and the lifecycle sweeper write to it.
    """

    def __init__(self):
        self._entries: Dict[str, ConnectionEntry] = {}

    def get(self, tenant_id: str) -> Optional[ConnectionEntry]:
        return self._entries.get(tenant_id)

    def put(self, entry: ConnectionEntry) -> None:
        self._entries[entry.tenant_id] = entry

    def pop(self, tenant_id: str) -> Optional[ConnectionEntry]:
        return self._entries.pop(tenant_id, None)

    def clear(self) -> List[ConnectionEntry]:
        """Empty the registry and return the entries it held."""
        entries = list(self._entries.values())
        self._entries.clear()
        return entries

    def tenant_ids(self) -> List[str]:
        return list(self._entries.keys())

    def items(self) -> List[Tuple[str, ConnectionEntry]]:
        return list(self._entries.items())

    def __contains__(self, tenant_id: object) -> bool:
        return tenant_id in self._entries

    def __iter__(self) -> Iterator[ConnectionEntry]:
        return iter(list(self._entries.values()))

    def __len__(self) -> int:
        return len(self._entries)
