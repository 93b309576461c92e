"""Domain event primitives shared by the storefront modules.

Aggregates record what happened while a use case runs; the repository
hands the recorded events to the bus once the write is persisted, and
the bus defers delivery until the transaction commits.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List
from uuid import UUID, uuid4


@dataclass(frozen=True)
class DomainEvent:
    """Immutable record of a state change on one aggregate.

    ``data`` carries a small JSON-friendly snapshot (order number, status
    pair, ...) so handlers do not have to re-read the aggregate.
    """

    aggregate_id: UUID
    data: Dict[str, Any] = field(default_factory=dict)
    event_id: UUID = field(default_factory=uuid4)
    occurred_on: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_name: str = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "event_name", type(self).__name__)


class DomainEventMixin:
    """Lets a model instance buffer events until its repository flushes them.

    The buffer lives on the Python instance only; re-fetching the row
    from the database starts with an empty buffer.
    """

    def _event_buffer(self) -> List[DomainEvent]:
        buffer = self.__dict__.get("_domain_events")
        if buffer is None:
            buffer = self.__dict__["_domain_events"] = []
        return buffer

    def add_domain_event(self, event: DomainEvent) -> None:
        self._event_buffer().append(event)

    def pull_domain_events(self) -> List[DomainEvent]:
        """Return the buffered events and empty the buffer."""
        buffer = self._event_buffer()
        events, buffer[:] = list(buffer), []
        return events
