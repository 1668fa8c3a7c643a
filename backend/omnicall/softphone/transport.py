"""
OmniCall - Softphone Voice Transport

Architecture:
    - Transport protocol: actions the call session invokes, plus an async
      event stream the session consumes
    - SimulatedTransport: in-process stand-in for development and tests;
      no audio, events are injected by hand or by the auto-answer timer

Real signalling and media (SIP/RTP, browser SDKs) live with the voice
provider; an adapter only has to satisfy the protocol below.
"""

from __future__ import annotations

import asyncio
import logging
from abc import abstractmethod
from typing import AsyncIterator, Awaitable, Callable, List, Optional, Protocol, Tuple, runtime_checkable

from omnicall.core.exceptions import TransportError
from omnicall.telephony.privacy import mask_phone_number
from .types import TransportEvent

logger = logging.getLogger(__name__)


# =============================================================================
# Protocol (Interface)
# =============================================================================

@runtime_checkable
class Transport(Protocol):
    """
    Protocol for the voice transport driving a softphone line.
    
    Actions raise TransportError when the provider refuses or fails.
    Asynchronous outcomes (remote answer, hangup, media failure) arrive
    through events().
    """

    @abstractmethod
    async def dial(self, number: str) -> None:
        """Start an outbound call."""
        ...

    @abstractmethod
    async def accept(self) -> None:
        """Answer the ringing inbound call."""
        ...

    @abstractmethod
    async def reject(self) -> None:
        """Refuse the ringing inbound call."""
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Hang up or cancel the current call."""
        ...

    @abstractmethod
    async def send_digit(self, digit: str) -> None:
        """Send one DTMF digit on the active call."""
        ...

    @abstractmethod
    def events(self) -> AsyncIterator[TransportEvent]:
        """Stream of transport events; ends when the transport closes."""
        ...


# =============================================================================
# Simulated Implementation
# =============================================================================

class SimulatedTransport:
    """
    In-process transport for development and tests.
    
    Records every action in ``actions`` and delivers events pushed with
    emit() or the helper methods. With ``auto_answer_after`` set, every
    successful dial is answered after that many seconds.
    
    Usage:
        transport = SimulatedTransport(auto_answer_after=2.0)
        session = CallSession(transport, directory)
        runner = asyncio.create_task(session.run())
        transport.ring("+15551234567")
    """

    def __init__(
        self,
        auto_answer_after: Optional[float] = None,
        dial_error: Optional[str] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            auto_answer_after: Seconds until a dialed call is answered (None = never)
            dial_error: If set, dial() raises TransportError with this message
            sleep: Coroutine used for the auto-answer delay
        """
        self.actions: List[Tuple[str, Optional[str]]] = []
        self.dial_error = dial_error
        self._auto_answer_after = auto_answer_after
        self._sleep = sleep
        self._queue: asyncio.Queue[Optional[TransportEvent]] = asyncio.Queue()
        self._answer_task: Optional[asyncio.Task] = None
        self._closed = False

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------

    async def dial(self, number: str) -> None:
        self.actions.append(("dial", number))
        if self.dial_error:
            raise TransportError(self.dial_error)
        
        logger.info("Simulated dial to %s", mask_phone_number(number))
        if self._auto_answer_after is not None:
            self._answer_task = asyncio.create_task(self._answer_later(self._auto_answer_after))

    async def accept(self) -> None:
        self.actions.append(("accept", None))

    async def reject(self) -> None:
        self.actions.append(("reject", None))

    async def disconnect(self) -> None:
        self.actions.append(("disconnect", None))
        if self._answer_task and not self._answer_task.done():
            self._answer_task.cancel()

    async def send_digit(self, digit: str) -> None:
        self.actions.append(("digit", digit))

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def emit(self, event: TransportEvent) -> None:
        """Queue an event for the session."""
        if self._closed:
            raise TransportError("Transport is closed")
        self._queue.put_nowait(event)

    def ring(self, number: str) -> None:
        self.emit(TransportEvent.inbound_ring(number))

    def answer(self) -> None:
        self.emit(TransportEvent.accepted())

    def remote_reject(self) -> None:
        self.emit(TransportEvent.rejected())

    def hangup(self) -> None:
        self.emit(TransportEvent.disconnected())

    def fail(self, message: str) -> None:
        self.emit(TransportEvent.error(message))

    async def events(self) -> AsyncIterator[TransportEvent]:
        while True:
            event = await self._queue.get()
            if event is None:
                return
            yield event

    def close(self) -> None:
        """End the event stream after already-queued events."""
        if self._closed:
            return
        self._closed = True
        if self._answer_task and not self._answer_task.done():
            self._answer_task.cancel()
        self._queue.put_nowait(None)

    def action_names(self) -> List[str]:
        return [name for name, _ in self.actions]

    async def _answer_later(self, delay: float) -> None:
        await self._sleep(delay)
        if not self._closed:
            self.answer()
