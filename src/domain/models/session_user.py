from __future__ import annotations

from dataclasses import dataclass

from src.domain.value_objects.role import Role


@dataclass(frozen=True, slots=True)
class SessionUser:
    id: str
    role: Role = Role.CUSTOMER
    name: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role.receives_admin_broadcasts()
