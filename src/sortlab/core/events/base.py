from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, ClassVar, TypeVar
from uuid import UUID, uuid4

E = TypeVar("E", bound="Event")


@dataclass(frozen=True, slots=True)
class Event:
    """
    Base class for everything published on the EventBus.

    - event_id: unique per event
    - timestamp_utc: wall clock at creation (diagnostics only)
    - ordinal: monotonic per session, defines delivery order
    """

    event_type: ClassVar[str] = "event"

    event_id: UUID
    timestamp_utc: datetime
    ordinal: int

    @classmethod
    def create(cls: type[E], *, ordinal: int, **fields: Any) -> E:
        if ordinal <= 0:
            raise ValueError("ordinal must be > 0")
        return cls(
            event_id=uuid4(),
            timestamp_utc=datetime.now(timezone.utc),
            ordinal=ordinal,
            **fields,
        )
