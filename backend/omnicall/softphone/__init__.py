"""
OmniCall - Softphone

Call lifecycle for the agent's single line:
- session: CallSession state machine
- transport: Voice transport interface and a simulated implementation
- display: Duration and caller formatting for the UI
"""

from .types import (
    CallPhase,
    CallerInfo,
    CallSnapshot,
    TransportEvent,
    TransportEventType,
)
from .display import format_duration, caller_from_customer
from .transport import Transport, SimulatedTransport
from .session import CallSession, create_call_session

__all__ = [
    "CallPhase",
    "CallerInfo",
    "CallSnapshot",
    "TransportEvent",
    "TransportEventType",
    "format_duration",
    "caller_from_customer",
    "Transport",
    "SimulatedTransport",
    "CallSession",
    "create_call_session",
]
