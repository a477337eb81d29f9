"""Tag session state machine and the process-wide guard around the radio.

A TagSession owns the radio for exactly one read or write:

    IDLE -> ACQUIRING -> ACTIVE -> COMPLETING -> IDLE
    ACQUIRING | ACTIVE -> CANCELLING -> IDLE
    any non-idle state -> FAILED -> IDLE        (radio stack error)

Release runs once on every path out of a run, including cancellation of the
awaiting task. RadioArbiter keeps the single "current session" slot; opening a
new session stops the one in flight first.
"""
import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, List, Optional, TypeVar

from gymtag.config import radio_timeout
from gymtag.core.errors import DecodeError, NotSupported, RadioError, SessionCancelled, TagError
from gymtag.core.ndef import NdefRecord
from gymtag.core.radio import NDEF_TECH, Radio

logger = logging.getLogger(__name__)

T = TypeVar("T")
Transaction = Callable[[Radio], Awaitable[T]]


class SessionState(str, Enum):
    IDLE = "idle"
    ACQUIRING = "acquiring"
    ACTIVE = "active"
    CANCELLING = "cancelling"
    COMPLETING = "completing"
    FAILED = "failed"


_TRANSITIONS = {
    SessionState.IDLE: {SessionState.ACQUIRING},
    SessionState.ACQUIRING: {SessionState.ACTIVE, SessionState.CANCELLING, SessionState.FAILED},
    SessionState.ACTIVE: {SessionState.COMPLETING, SessionState.CANCELLING, SessionState.FAILED},
    SessionState.CANCELLING: {SessionState.IDLE, SessionState.FAILED},
    SessionState.COMPLETING: {SessionState.IDLE, SessionState.FAILED},
    SessionState.FAILED: {SessionState.IDLE},
}

_IN_FLIGHT = (SessionState.ACQUIRING, SessionState.ACTIVE)


class _GuardedRadio:
    """Radio handed to a transaction: failures of the radio calls become RadioError.

    Exceptions raised by the transaction's own code are left alone, so a codec
    bug is not reported as a radio failure.
    """

    def __init__(self, radio: Radio) -> None:
        self._radio = radio

    async def _call(self, awaitable: Awaitable[T]) -> T:
        try:
            return await awaitable
        except TagError:
            raise
        except Exception as e:
            raise RadioError(f"radio stack error: {e}") from e

    async def is_supported(self) -> bool:
        return await self._call(self._radio.is_supported())

    async def start(self) -> None:
        await self._call(self._radio.start())

    async def request_exclusive_access(self, technology: str) -> None:
        await self._call(self._radio.request_exclusive_access(technology))

    async def read_message(self) -> Optional[List[NdefRecord]]:
        return await self._call(self._radio.read_message())

    async def write_message(self, data: bytes) -> None:
        await self._call(self._radio.write_message(data))

    async def cancel(self) -> None:
        await self._call(self._radio.cancel())

    async def release(self) -> None:
        await self._call(self._radio.release())


class TagSession:
    """Exclusive use of the radio for one transaction. Single use."""

    def __init__(self, radio: Radio, timeout: Optional[float] = None) -> None:
        self._radio = _GuardedRadio(radio)
        self._timeout = timeout
        self._state = SessionState.IDLE
        self._used = False
        self._released = False
        self._cancel_requested = False
        self._work: Optional[asyncio.Future] = None
        self._finished = asyncio.Event()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def busy(self) -> bool:
        """Holds the slot: opened and not yet finished (may not have started)."""
        return not self._finished.is_set()

    async def run(self, transaction: Transaction) -> T:
        """Acquire, run `transaction(radio)`, release. Raises a TagError subclass on failure."""
        if self._used:
            raise RuntimeError("TagSession is single use")
        self._used = True
        if self._cancel_requested:
            # Superseded before it ever touched the radio
            self._finished.set()
            raise SessionCancelled("operation cancelled")
        self._transition(SessionState.ACQUIRING)
        self._work = asyncio.ensure_future(self._acquire_and_run(transaction))
        try:
            try:
                result = await self._work
            except asyncio.CancelledError:
                caller_cancelled = asyncio.current_task().cancelling() > 0
                if self._work.cancelled() and self._cancel_requested and not caller_cancelled:
                    raise SessionCancelled("operation cancelled") from None
                # Caller's task is being cancelled: stop the radio, then propagate
                if not self._cancel_requested:
                    await self._abort_work()
                raise
            except DecodeError:
                if self._cancel_requested:
                    raise SessionCancelled("operation cancelled") from None
                self._transition(SessionState.COMPLETING)
                raise
            except RadioError:
                if self._cancel_requested:
                    raise SessionCancelled("operation cancelled") from None
                self._transition(SessionState.FAILED)
                raise
            except SessionCancelled:
                raise
            except Exception:
                # Bug in the transaction itself: not a radio failure, propagate as is
                if self._state in _IN_FLIGHT:
                    self._transition(SessionState.FAILED)
                raise
            if self._cancel_requested:
                # Result landed after the operation was superseded
                raise SessionCancelled("operation cancelled")
            self._transition(SessionState.COMPLETING)
            return result
        finally:
            await self._release()
            self._transition(SessionState.IDLE)
            self._finished.set()

    async def cancel(self) -> None:
        """Stop an in-flight operation and wait until the radio is released."""
        if not self._used:
            self._cancel_requested = True
            return
        if self._state in _IN_FLIGHT and not self._cancel_requested:
            await self._abort_work()
        await self._finished.wait()

    async def _acquire_and_run(self, transaction: Transaction) -> T:
        await self._bounded(self._radio.request_exclusive_access(NDEF_TECH))
        if self._cancel_requested:
            raise SessionCancelled("operation cancelled")
        self._transition(SessionState.ACTIVE)
        return await self._bounded(transaction(self._radio))

    async def _abort_work(self) -> None:
        self._cancel_requested = True
        if self._state in _IN_FLIGHT:
            self._transition(SessionState.CANCELLING)
        try:
            await self._bounded(self._radio.cancel())
        except RadioError as e:
            logger.warning("Radio cancel failed: %s", e)
        if self._work is not None and not self._work.done():
            self._work.cancel()

    async def _bounded(self, awaitable: Awaitable[T]) -> T:
        if self._timeout is None:
            return await awaitable
        try:
            return await asyncio.wait_for(awaitable, self._timeout)
        except asyncio.TimeoutError:
            raise RadioError(f"radio stack did not respond within {self._timeout:.1f}s") from None

    async def _release(self) -> None:
        if self._released:
            return
        self._released = True
        try:
            await self._bounded(self._radio.release())
        except RadioError as e:
            logger.warning("Radio release failed: %s", e)

    def _transition(self, new: SessionState) -> None:
        if new not in _TRANSITIONS[self._state]:
            raise RuntimeError(f"invalid tag session transition {self._state.value} -> {new.value}")
        logger.debug("Tag session %s -> %s", self._state.value, new.value)
        self._state = new


class RadioArbiter:
    """Owns the radio on behalf of the controllers; at most one session in flight."""

    def __init__(self, radio: Radio, timeout: Optional[float] = None) -> None:
        self._radio = radio
        self._timeout = radio_timeout() if timeout is None else (timeout or None)
        self._lock = asyncio.Lock()
        self._current: Optional[TagSession] = None
        self._supported: Optional[bool] = None
        self._started = False

    @property
    def radio(self) -> Radio:
        return self._radio

    @property
    def supported(self) -> Optional[bool]:
        return self._supported

    @property
    def started(self) -> bool:
        return self._started

    @property
    def current_state(self) -> SessionState:
        if self._current is None:
            return SessionState.IDLE
        return self._current.state

    async def ensure_supported(self) -> None:
        """Check NFC support once, start the radio once. Raises NotSupported."""
        async with self._lock:
            if self._supported is None:
                try:
                    self._supported = bool(await self._radio.is_supported())
                except Exception as e:
                    raise RadioError(f"could not query NFC support: {e}") from e
            if not self._supported:
                raise NotSupported("NFC is not supported on this device")
            if not self._started:
                try:
                    await self._radio.start()
                except Exception as e:
                    raise RadioError(f"could not start NFC radio: {e}") from e
                self._started = True
                logger.info("NFC radio started")

    async def open_session(self) -> TagSession:
        """New session for the caller; any session still in flight is cancelled first."""
        async with self._lock:
            previous = self._current
            if previous is not None and previous.busy:
                logger.info("Superseding in-flight tag session (%s)", previous.state.value)
                await previous.cancel()
            session = TagSession(self._radio, timeout=self._timeout)
            self._current = session
            return session

    async def cancel_current(self) -> bool:
        """Stop the in-flight session, if any. Returns True if one was cancelled."""
        async with self._lock:
            current = self._current
            if current is None or not current.busy:
                return False
            await current.cancel()
            return True

    async def run(self, transaction: Transaction) -> T:
        """Open a session (superseding any in flight) and run one transaction in it."""
        session = await self.open_session()
        return await session.run(transaction)
