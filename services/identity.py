from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AuthenticatedIdentity:
    """Who is making the current request; passed explicitly into views and services."""
    id: str
    username: str
