"""Caller identity supplied by the upstream authentication layer."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CallerIdentity:
    """Authenticated user making a request."""

    user_id: Optional[str]
    email: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)

    @property
    def normalized_email(self) -> str:
        return (self.email or "").strip().lower()
