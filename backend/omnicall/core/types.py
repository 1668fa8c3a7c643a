"""
OmniCall - Core Domain Types

Domain objects shared by the directory, the softphone and the API layer.

Design Notes:
- Dataclasses for internal use; the API layer converts these to/from
  Pydantic schemas for external communication.
- Timestamps are always aware UTC datetimes.
- Phone numbers are stored exactly as entered. No canonical form is
  assumed, which is why lookups go through the PhoneMatcher.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Aware UTC datetime; naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class Company:
    """A clinic or practice that agents and customers belong to."""
    id: int
    name: str
    created_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class Customer:
    """
    A customer (patient) record in the directory.
    
    Owned by the directory store; lookups only ever read snapshots.
    """
    id: int
    company_id: int
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    medical_aid_provider: Optional[str] = None
    medical_aid_number: Optional[str] = None
    medical_plan: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
