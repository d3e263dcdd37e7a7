from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass(slots=True)
class Notification:
    id: str
    type: str
    title: str
    message: str
    priority: str = "medium"
    data: dict[str, Any] = field(default_factory=dict)
    read: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    read_at: datetime | None = None

    @property
    def order_number(self) -> str | None:
        value = self.data.get("orderNumber")
        return str(value) if value is not None else None

    def mark_as_read(self, at: datetime | None = None) -> bool:
        """Flip to read once. Returns True when the record was unread."""
        if self.read:
            return False
        self.read = True
        self.read_at = at or datetime.now(timezone.utc)
        return True
