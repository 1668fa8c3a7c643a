"""
OmniCall - Call Session

State machine for the single line of an agent softphone.

    idle ──ring──▶ incoming ──accept──▶ active ──end/hangup──▶ ended ──grace──▶ idle
      │               └──decline/cancel──────────────────────▶ ended
      └──dial──▶ outgoing ──answered──▶ active
                    └──cancel/reject/error───────────────────▶ ended

Concurrency model:
    Everything runs on one asyncio event loop. Transitions happen in plain
    synchronous code, so a check of the phase followed by a write can never
    interleave with another transition.

    Caller lookups run as fire-and-forget tasks. They are never cancelled;
    instead each one carries the generation of the call it was issued for,
    and its result is dropped if the line has moved on to another call or
    left the live phases. Grace resets and the answer timeout follow the
    same rule. The duration ticker is the exception: it is cancelled as
    soon as the call leaves ``active``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace
from typing import Awaitable, Callable, List, Optional, Set

from omnicall.config import Settings
from omnicall.core.exceptions import InvalidDigitError, LineBusyError, TransportError
from omnicall.directory.matcher import to_dialable_number, validate_dial_string
from omnicall.directory.store import DirectoryProvider
from omnicall.telephony.privacy import mask_phone_number
from .display import caller_from_customer
from .transport import Transport
from .types import (
    LIVE_PHASES,
    CallerInfo,
    CallPhase,
    CallSnapshot,
    TransportEvent,
    TransportEventType,
)

logger = logging.getLogger(__name__)

Listener = Callable[[CallSnapshot], None]

DTMF_DIGITS = frozenset("0123456789*#")
UNKNOWN_CALLER = "Unknown"
NO_ANSWER_MESSAGE = "No answer"


class CallSession:
    """
    Lifecycle of the call on one softphone line.

    Attributes:
        transport: Voice transport receiving actions and emitting events
        directory: Provider used to enrich the caller display

    Usage:
        session = CallSession(transport, directory, country_code="27")
        unsubscribe = session.subscribe(render)
        runner = asyncio.create_task(session.run())

        await session.dial("067 296 6361")
        ...
        await session.end_call()
    """

    def __init__(
        self,
        transport: Transport,
        directory: DirectoryProvider,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        tick_interval: float = 1.0,
        ended_grace: float = 2.0,
        cancel_grace: float = 1.0,
        connect_timeout: Optional[float] = None,
        country_code: Optional[str] = None,
    ):
        """
        Args:
            transport: Voice transport implementation
            directory: Directory provider for caller identity
            clock: Monotonic time source in seconds
            sleep: Coroutine used for every timer
            tick_interval: Seconds between duration updates
            ended_grace: Seconds an ended call stays visible
            cancel_grace: Same, for outgoing calls that were never answered
            connect_timeout: Seconds to wait for an answer (None = forever)
            country_code: Dialing convention for national numbers
        """
        self._transport = transport
        self._directory = directory
        self._clock = clock
        self._sleep = sleep
        self._tick_interval = tick_interval
        self._ended_grace = ended_grace
        self._cancel_grace = cancel_grace
        self._connect_timeout = connect_timeout
        self._country_code = country_code

        self._phase = CallPhase.IDLE
        self._caller: Optional[CallerInfo] = None
        self._start_time: Optional[float] = None
        self._duration = 0
        self._failure: Optional[str] = None
        self._generation = 0

        self._listeners: List[Listener] = []
        self._ticker: Optional[asyncio.Task] = None
        self._reset_task: Optional[asyncio.Task] = None
        self._connect_task: Optional[asyncio.Task] = None
        self._lookups: Set[asyncio.Task] = set()

    # -------------------------------------------------------------------------
    # Observation
    # -------------------------------------------------------------------------

    @property
    def phase(self) -> CallPhase:
        return self._phase

    @property
    def caller(self) -> Optional[CallerInfo]:
        return self._caller

    @property
    def duration(self) -> int:
        return self._duration

    @property
    def start_time(self) -> Optional[float]:
        return self._start_time

    @property
    def generation(self) -> int:
        return self._generation

    def snapshot(self) -> CallSnapshot:
        return CallSnapshot(
            phase=self._phase,
            caller=self._caller,
            duration=self._duration,
            failure=self._failure,
            generation=self._generation,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener for every state change.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Call session listener failed")

    # -------------------------------------------------------------------------
    # Call setup
    # -------------------------------------------------------------------------

    def receive_call(self, raw_number: Optional[str]) -> bool:
        """
        Handle an inbound ring.

        Returns:
            False if the line is busy and the ring was ignored
        """
        if self._phase in LIVE_PHASES:
            logger.warning(
                "Inbound ring from %s ignored: line is %s",
                mask_phone_number(raw_number), self._phase.value,
            )
            return False

        number = (raw_number or "").strip()
        generation = self._begin(CallPhase.INCOMING, number or UNKNOWN_CALLER)
        logger.info("Incoming call from %s", mask_phone_number(number))

        if number:
            self._start_lookup(number, generation)
        return True

    async def dial(self, number: str) -> None:
        """
        Place an outbound call.

        The number is validated before anything changes. The session moves
        to ``outgoing`` immediately; the transport answer moves it on.

        Raises:
            InvalidPhoneNumberError: If the number is empty or malformed
            LineBusyError: If a call is already live
        """
        value = validate_dial_string(number)
        if self._phase in LIVE_PHASES:
            raise LineBusyError(f"Cannot dial while a call is {self._phase.value}")

        if self._country_code:
            target = to_dialable_number(value, self._country_code)
        else:
            target = value

        generation = self._begin(CallPhase.OUTGOING, target)
        logger.info("Dialing %s", mask_phone_number(target))

        self._start_lookup(target, generation)
        if self._connect_timeout is not None:
            self._connect_task = asyncio.create_task(self._expire_unanswered(generation))

        try:
            await self._transport.dial(target)
        except TransportError as e:
            if self._is_current(generation) and self._phase is CallPhase.OUTGOING:
                self._fail(e.message)

    def _begin(self, phase: CallPhase, number: str) -> int:
        self._cancel_timer("_reset_task")
        self._cancel_timer("_connect_task")
        self._stop_ticker()

        self._generation += 1
        self._phase = phase
        self._caller = CallerInfo.from_number(number)
        self._start_time = None
        self._duration = 0
        self._failure = None
        self._notify()
        return self._generation

    # -------------------------------------------------------------------------
    # User actions
    # -------------------------------------------------------------------------

    async def accept(self) -> None:
        """Answer the ringing inbound call."""
        if self._phase is not CallPhase.INCOMING:
            logger.warning("Accept ignored: line is %s", self._phase.value)
            return

        generation = self._generation
        self._activate()
        try:
            await self._transport.accept()
        except TransportError as e:
            if self._is_current(generation) and self._phase is CallPhase.ACTIVE:
                self._fail(e.message)

    async def decline(self) -> None:
        """Refuse the ringing inbound call."""
        if self._phase is not CallPhase.INCOMING:
            logger.warning("Decline ignored: line is %s", self._phase.value)
            return

        self._end(self._ended_grace)
        await self._quietly(self._transport.reject(), "reject")

    async def end_call(self) -> None:
        """Hang up the active call or cancel the outgoing one."""
        if self._phase is CallPhase.ACTIVE:
            self._end(self._ended_grace)
        elif self._phase is CallPhase.OUTGOING:
            self._end(self._cancel_grace)
        else:
            logger.warning("End ignored: line is %s", self._phase.value)
            return

        await self._quietly(self._transport.disconnect(), "disconnect")

    async def send_digit(self, digit: str) -> None:
        """
        Send a DTMF digit on the active call.

        Raises:
            InvalidDigitError: If digit is not one of 0-9, * or #
        """
        if digit not in DTMF_DIGITS:
            raise InvalidDigitError(f"Not a DTMF digit: {digit!r}")
        if self._phase is not CallPhase.ACTIVE:
            logger.warning("Digit ignored: line is %s", self._phase.value)
            return

        try:
            await self._transport.send_digit(digit)
        except TransportError as e:
            logger.warning("Sending DTMF digit failed: %s", e.message)

    # -------------------------------------------------------------------------
    # Transport events
    # -------------------------------------------------------------------------

    def handle_event(self, event: TransportEvent) -> None:
        """Apply one transport event to the state machine."""
        kind = event.type
        phase = self._phase

        if kind is TransportEventType.INBOUND_RING:
            self.receive_call(event.number)

        elif kind is TransportEventType.ACCEPTED:
            if phase is CallPhase.OUTGOING:
                logger.info("Outbound call answered")
                self._activate()
            # In ACTIVE this is the echo of our own accept()

        elif kind in (TransportEventType.REJECTED, TransportEventType.DISCONNECTED):
            if phase is CallPhase.OUTGOING:
                self._end(self._cancel_grace)
            elif phase in (CallPhase.INCOMING, CallPhase.ACTIVE):
                self._end(self._ended_grace)
            else:
                return
            logger.info("Call ended by remote party (%s)", kind.value)

        elif kind is TransportEventType.ERROR:
            if phase in LIVE_PHASES:
                self._fail(event.message or "Call failed")
            else:
                logger.warning("Transport error while %s: %s", phase.value, event.message)

    async def run(self) -> None:
        """Consume transport events until the transport's stream ends."""
        async for event in self._transport.events():
            self.handle_event(event)
        logger.info("Transport event stream closed")

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def _activate(self) -> None:
        self._cancel_timer("_connect_task")
        self._phase = CallPhase.ACTIVE
        self._start_time = self._clock()
        self._duration = 0
        self._ticker = asyncio.create_task(self._tick())
        self._notify()

    def _end(self, grace: float) -> None:
        self._stop_ticker()
        self._cancel_timer("_connect_task")
        self._phase = CallPhase.ENDED
        self._caller = None
        self._notify()
        self._reset_task = asyncio.create_task(self._reset_after(grace, self._generation))

    def _fail(self, message: str) -> None:
        logger.warning("Call failed: %s", message)
        self._failure = message
        self._end(self._ended_grace)

    def reset(self) -> None:
        """Return the line to idle immediately."""
        self._stop_ticker()
        self._cancel_timer("_connect_task")
        self._cancel_timer("_reset_task")
        self._phase = CallPhase.IDLE
        self._caller = None
        self._start_time = None
        self._duration = 0
        self._failure = None
        self._notify()

    # -------------------------------------------------------------------------
    # Background work
    # -------------------------------------------------------------------------

    def _start_lookup(self, query: str, generation: int) -> None:
        task = asyncio.create_task(self._enrich_caller(query, generation))
        self._lookups.add(task)
        task.add_done_callback(self._lookups.discard)

    async def _enrich_caller(self, query: str, generation: int) -> None:
        try:
            customer = await self._directory.lookup_by_phone(query)
        except Exception as e:
            # Lookup failures only cost the caller display
            logger.warning("Caller lookup failed for %s: %s", mask_phone_number(query), e)
            return

        if customer is None:
            logger.debug("No directory match for %s", mask_phone_number(query))
            return

        if not self._is_current(generation) or self._phase not in LIVE_PHASES:
            logger.debug("Discarding caller lookup for a call that is no longer live")
            return

        identity = caller_from_customer(customer, self._caller.number)
        self._caller = replace(
            self._caller,
            name=identity.name,
            line1=identity.line1,
            line2=identity.line2,
        )
        logger.info("Caller identified as customer %d", customer.id)
        self._notify()

    async def _tick(self) -> None:
        while self._phase is CallPhase.ACTIVE and self._start_time is not None:
            await self._sleep(self._tick_interval)
            if self._phase is not CallPhase.ACTIVE:
                return
            self._duration = int(self._clock() - self._start_time)
            self._notify()

    async def _reset_after(self, grace: float, generation: int) -> None:
        await self._sleep(grace)
        if self._is_current(generation) and self._phase is CallPhase.ENDED:
            self._reset_task = None
            self.reset()

    async def _expire_unanswered(self, generation: int) -> None:
        await self._sleep(self._connect_timeout)
        if self._is_current(generation) and self._phase is CallPhase.OUTGOING:
            self._connect_task = None
            self._fail(NO_ANSWER_MESSAGE)
            await self._quietly(self._transport.disconnect(), "disconnect")

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _stop_ticker(self) -> None:
        self._cancel_timer("_ticker")

    def _cancel_timer(self, attr: str) -> None:
        task = getattr(self, attr)
        setattr(self, attr, None)
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _quietly(self, action: Awaitable[None], name: str) -> None:
        # The call is already over locally; a failed teardown is only logged
        try:
            await action
        except TransportError as e:
            logger.warning("Transport %s failed after call ended: %s", name, e.message)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def close(self) -> None:
        """Cancel every session task and wait for them to finish."""
        tasks = [t for t in (self._ticker, self._reset_task, self._connect_task) if t is not None]
        tasks.extend(self._lookups)
        self._ticker = self._reset_task = self._connect_task = None

        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._lookups.clear()


# =============================================================================
# Factory Function
# =============================================================================

def create_call_session(
    settings: Settings,
    transport: Transport,
    directory: Optional[DirectoryProvider] = None,
) -> CallSession:
    """
    Build a CallSession from settings.

    Args:
        settings: Application settings (softphone timings, dialing code)
        transport: Voice transport for the line
        directory: Caller lookup (default: HTTP client for DIRECTORY_API_URL)
    """
    if directory is None:
        from omnicall.directory.client import create_directory_client
        directory = create_directory_client(settings)

    return CallSession(
        transport,
        directory,
        tick_interval=settings.duration_tick_seconds,
        ended_grace=settings.ended_grace_seconds,
        cancel_grace=settings.cancel_grace_seconds,
        connect_timeout=settings.call_connect_timeout_seconds,
        country_code=settings.default_country_code or None,
    )
