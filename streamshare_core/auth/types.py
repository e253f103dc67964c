from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CallerIdentity:
    uid: str
    email: str | None = None
    display_name: str | None = None
    photo_url: str | None = None
    claims: dict[str, object] | None = None
