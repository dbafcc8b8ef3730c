"""Identity of the authenticated caller, produced by the bearer-token check."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CallerIdentity:
    user_id: int
    jti: str | None = None
