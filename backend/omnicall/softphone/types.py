"""
OmniCall - Softphone Types

Value types exchanged between the call session, the voice transport and
UI observers.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CallPhase(str, Enum):
    """Lifecycle phase of the softphone line."""
    IDLE = "idle"
    INCOMING = "incoming"
    OUTGOING = "outgoing"
    ACTIVE = "active"
    ENDED = "ended"


LIVE_PHASES = frozenset({CallPhase.INCOMING, CallPhase.OUTGOING, CallPhase.ACTIVE})
"""Phases in which a caller identity is shown and lookups may be merged."""


@dataclass(frozen=True)
class CallerInfo:
    """
    Identity shown for the other party.
    
    Starts as the raw number in both fields; a directory match replaces
    name and the two auxiliary lines, never the number.
    """
    name: str
    number: str
    line1: str = ""  # medical aid provider
    line2: str = ""  # plan, e.g. "(Comprehensive)"

    @classmethod
    def from_number(cls, number: str) -> "CallerInfo":
        return cls(name=number, number=number)


@dataclass(frozen=True)
class CallSnapshot:
    """Immutable view of the session delivered to observers."""
    phase: CallPhase
    caller: Optional[CallerInfo]
    duration: int
    failure: Optional[str] = None
    generation: int = 0


class TransportEventType(str, Enum):
    """Events emitted by the voice transport."""
    INBOUND_RING = "inbound_ring"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    DISCONNECTED = "disconnected"
    ERROR = "error"


@dataclass(frozen=True)
class TransportEvent:
    """A single transport event; number for rings, message for errors."""
    type: TransportEventType
    number: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def inbound_ring(cls, number: str) -> "TransportEvent":
        return cls(TransportEventType.INBOUND_RING, number=number)

    @classmethod
    def accepted(cls) -> "TransportEvent":
        return cls(TransportEventType.ACCEPTED)

    @classmethod
    def rejected(cls) -> "TransportEvent":
        return cls(TransportEventType.REJECTED)

    @classmethod
    def disconnected(cls) -> "TransportEvent":
        return cls(TransportEventType.DISCONNECTED)

    @classmethod
    def error(cls, message: str) -> "TransportEvent":
        return cls(TransportEventType.ERROR, message=message)
