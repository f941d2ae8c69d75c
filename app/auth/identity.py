"""Authenticated caller identity."""

from dataclasses import dataclass
from typing import Optional

ADMIN_ROLE = "admin"
USER_ROLE = "user"


@dataclass(frozen=True)
class Identity:
    """The caller a request acts on behalf of."""

    id: str
    role: str = USER_ROLE
    username: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE
