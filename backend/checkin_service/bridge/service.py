"""Card-scan bridge - turns reader events into automatic check-ins.

The bridge owns one supervisor task per running instance. The supervisor
opens the reader channel, reads lines, and reconnects with exponential
backoff when the channel closes or fails. Each detected card is booked in
its own task so a slow check-in never holds up the next line from the
reader. Every per-scan failure is logged and dropped; nothing here stops
the server.
"""

import asyncio
import contextlib
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from checkin_service.bridge.channel import Channel
from checkin_service.bridge.protocol import (
    CardDetected,
    CardRemoved,
    DeviceError,
    DeviceStatus,
    decode_line,
    parse_line,
)
from checkin_service.core.errors import (
    CardNotFoundError,
    ChannelFailureError,
    CheckinNotActiveError,
    DuplicateCheckinError,
    NoActiveSessionError,
)
from checkin_service.services.attendee_directory import AttendeeDirectory
from checkin_service.services.checkin_ledger import CheckinLedger
from checkin_service.services.session_registry import SessionRegistry

logger = logging.getLogger(__name__)

MAX_FRAME_BYTES = 4096


class ConnectionState(str, Enum):
    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"
    ERROR = "ERROR"


_TRANSITIONS = {
    ConnectionState.DISCONNECTED: {ConnectionState.CONNECTING},
    ConnectionState.CONNECTING: {ConnectionState.CONNECTED, ConnectionState.DISCONNECTED},
    ConnectionState.CONNECTED: {ConnectionState.ERROR, ConnectionState.DISCONNECTED},
    ConnectionState.ERROR: {ConnectionState.CONNECTED, ConnectionState.DISCONNECTED},
}


class ScanOutcome(str, Enum):
    CHECKED_IN = "CHECKED_IN"
    UNKNOWN_CARD = "UNKNOWN_CARD"
    NO_ACTIVE_SESSION = "NO_ACTIVE_SESSION"
    DUPLICATE = "DUPLICATE"
    NOT_ACTIVE = "NOT_ACTIVE"
    FAILED = "FAILED"


@dataclass(frozen=True)
class BridgeStatus:
    state: ConnectionState
    channel_id: Optional[str]
    speed: Optional[int]
    last_error: Optional[str]
    scans_processed: int
    reconnect_attempts: int

    @property
    def connected(self) -> bool:
        return self.state == ConnectionState.CONNECTED


class DedupWindow:
    """
    Suppress repeat reads of the same card within a sliding window.
    A window of 0 lets everything through.
    """
    def __init__(self, window_sec: float, clock: Callable[[], float] = time.monotonic):
        self.window = float(window_sec)
        self._clock = clock
        self._last: dict[str, float] = {}

    def accept(self, card_identifier: str) -> bool:
        if self.window <= 0:
            return True
        now = self._clock()
        last = self._last.get(card_identifier)
        if last is not None and now - last < self.window:
            return False
        self._last[card_identifier] = now
        # forget cards that left the window
        self._last = {k: v for k, v in self._last.items() if now - v < self.window}
        return True

    def forget(self, card_identifier: str) -> None:
        self._last.pop(card_identifier, None)


class CardScanBridge:
    """Consumes card reader events and books check-ins for them."""

    def __init__(
        self,
        channel_factory: Callable[[], Channel],
        directory: AttendeeDirectory,
        registry: SessionRegistry,
        ledger: CheckinLedger,
        *,
        backoff_initial: float = 0.2,
        backoff_max: float = 5.0,
        max_retries: int = 0,
        dedup_window: float = 3.0,
    ) -> None:
        self._channel_factory = channel_factory
        self._directory = directory
        self._registry = registry
        self._ledger = ledger
        self._backoff_initial = backoff_initial
        self._backoff_max = backoff_max
        self._max_retries = max_retries
        self._dedup = DedupWindow(dedup_window)

        self._state = ConnectionState.DISCONNECTED
        self._channel: Optional[Channel] = None
        self._channel_id: Optional[str] = None
        self._speed: Optional[int] = None
        self._last_error: Optional[str] = None
        self._scans_processed = 0
        self._reconnect_attempts = 0
        self._supervisor: Optional[asyncio.Task] = None
        self._pending: set[asyncio.Task] = set()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def running(self) -> bool:
        return self._supervisor is not None and not self._supervisor.done()

    def status(self) -> BridgeStatus:
        return BridgeStatus(
            state=self._state,
            channel_id=self._channel_id,
            speed=self._speed,
            last_error=self._last_error,
            scans_processed=self._scans_processed,
            reconnect_attempts=self._reconnect_attempts,
        )

    def _transition(self, new_state: ConnectionState) -> None:
        old_state = self._state
        if new_state == old_state:
            return
        if new_state not in _TRANSITIONS[old_state]:
            raise RuntimeError(f"Illegal bridge transition {old_state.value} -> {new_state.value}")
        self._state = new_state
        logger.info(f"Bridge {old_state.value} -> {new_state.value}")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start the supervisor task; a running bridge is left alone."""
        if self.running:
            return
        self._reconnect_attempts = 0
        self._supervisor = asyncio.create_task(self._supervise(), name="card-scan-bridge")
        logger.info("📡 Card-scan bridge started")

    async def stop(self) -> None:
        """Stop reading, close the channel and let in-flight scans finish."""
        supervisor, self._supervisor = self._supervisor, None
        if supervisor is not None:
            supervisor.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await supervisor
        await self._close_channel()
        await self.wait_idle()
        self._transition(ConnectionState.DISCONNECTED)
        logger.info("Card-scan bridge stopped")

    async def wait_idle(self) -> None:
        """Wait until every scan handed to the pipeline has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    async def _close_channel(self) -> None:
        channel, self._channel = self._channel, None
        if channel is not None:
            await channel.close()

    async def _supervise(self) -> None:
        backoff = self._backoff_initial
        while True:
            channel = self._channel_factory()
            self._channel = channel
            self._channel_id = channel.channel_id
            self._speed = channel.speed
            self._transition(ConnectionState.CONNECTING)
            try:
                await channel.open()
            except ChannelFailureError as e:
                self._last_error = e.reason or e.message
                logger.warning(f"⚠️ Could not open reader {e.channel_id}: {self._last_error}")
                await self._close_channel()
                self._transition(ConnectionState.DISCONNECTED)
            else:
                self._transition(ConnectionState.CONNECTED)
                backoff = self._backoff_initial
                self._reconnect_attempts = 0
                try:
                    await self._read_loop(channel)
                    logger.info(f"Reader {channel.channel_id} closed the channel")
                except ChannelFailureError as e:
                    self._last_error = e.reason or e.message
                    self._transition(ConnectionState.ERROR)
                    logger.error(f"❌ Reader {e.channel_id} failed: {self._last_error}")
                except Exception as e:
                    self._last_error = "Unexpected bridge failure"
                    self._transition(ConnectionState.ERROR)
                    logger.error(f"❌ Bridge read loop crashed: {e}", exc_info=True)
                finally:
                    await self._close_channel()
                self._transition(ConnectionState.DISCONNECTED)

            self._reconnect_attempts += 1
            if self._max_retries and self._reconnect_attempts > self._max_retries:
                logger.error(
                    f"❌ Giving up on reader after {self._max_retries} reconnect attempts"
                )
                return
            logger.info(f"Reconnecting to reader in {backoff:.1f}s")
            await asyncio.sleep(backoff)
            backoff = min(backoff * 2.0, self._backoff_max)

    async def _read_loop(self, channel: Channel) -> None:
        # a read timeout can cut a frame in two, so only complete lines are dispatched
        buffer = b""
        while True:
            chunk = await channel.readline()
            if chunk is None:
                if buffer:
                    logger.debug(f"Dropping unterminated reader data: {buffer!r}")
                return
            if not chunk:
                # idle tick
                continue
            buffer += chunk
            *lines, buffer = buffer.split(b"\n")
            for raw in lines:
                line = decode_line(raw)
                if line:
                    self.handle_line(line)
            if len(buffer) > MAX_FRAME_BYTES:
                logger.warning(f"⚠️ Discarding {len(buffer)} bytes of reader data without a line break")
                buffer = b""

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def handle_line(self, line: str) -> None:
        """Dispatch one reader line. Never blocks and never raises."""
        event = parse_line(line)

        if isinstance(event, DeviceError):
            self._last_error = event.error
            logger.warning(f"⚠️ Reader reported error: {event.error}")
            if self._state == ConnectionState.CONNECTED:
                self._transition(ConnectionState.ERROR)
            return

        if self._state == ConnectionState.ERROR:
            # any well-formed frame means the reader is talking again
            if not isinstance(event, (CardDetected, CardRemoved, DeviceStatus)):
                logger.info(f"Reader: {line}")
                return
            self._transition(ConnectionState.CONNECTED)

        if isinstance(event, CardDetected):
            if not self._dedup.accept(event.card_identifier):
                logger.debug(f"Repeat read of card {event.card_identifier} suppressed")
                return
            self._spawn(self.process_scan(event.card_identifier))
        elif isinstance(event, CardRemoved):
            logger.debug("Card removed")
        elif isinstance(event, DeviceStatus):
            logger.info(f"Reader status: {event.status}")
        else:
            logger.info(f"Reader: {event.text}")

    def _spawn(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def process_scan(self, card_identifier: str) -> ScanOutcome:
        """Book one detected card against the active session."""
        try:
            attendee = await self._directory.find_by_card_identifier(card_identifier)
            session = await self._registry.find_active_session()
            await self._ledger.checkin(attendee.reg_number, session.id)
        except CardNotFoundError:
            logger.info(f"Unregistered card {card_identifier} ignored")
            outcome = ScanOutcome.UNKNOWN_CARD
        except NoActiveSessionError:
            logger.info(f"No session accepts check-ins; scan of card {card_identifier} dropped")
            outcome = ScanOutcome.NO_ACTIVE_SESSION
        except DuplicateCheckinError as e:
            logger.info(f"Attendee {e.attendee_id} already checked in to session {e.session_id}")
            outcome = ScanOutcome.DUPLICATE
        except CheckinNotActiveError as e:
            logger.info(f"Session {e.session_id} closed before card {card_identifier} was booked")
            outcome = ScanOutcome.NOT_ACTIVE
        except Exception as e:
            logger.error(f"❌ Check-in for card {card_identifier} failed: {e}", exc_info=True)
            outcome = ScanOutcome.FAILED
        else:
            outcome = ScanOutcome.CHECKED_IN
        if outcome not in (ScanOutcome.CHECKED_IN, ScanOutcome.DUPLICATE):
            # the scan never reached the ledger, so the next read must get through
            self._dedup.forget(card_identifier)
        self._scans_processed += 1
        return outcome
