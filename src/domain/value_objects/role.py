from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    CUSTOMER = "customer"

    def receives_admin_broadcasts(self) -> bool:
        return self is Role.ADMIN
