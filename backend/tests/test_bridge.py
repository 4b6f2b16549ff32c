"""Tests for the card-scan bridge.

Run with: pytest tests/test_bridge.py -v
"""

import asyncio
import json
from datetime import timedelta

import pytest

from checkin_service.bridge import CardScanBridge, Channel, ConnectionState, ScanOutcome
from checkin_service.core.errors import ChannelFailureError, DuplicateCheckinError

pytestmark = pytest.mark.anyio


def card_line(card_identifier: str) -> bytes:
    return (json.dumps({"event": "card_detected", "uuid": card_identifier, "uid_hardware": "04:A2"}) + "\n").encode()


class FakeChannel(Channel):
    """Scripted reader: plays its lines, then idles until closed (or ends the stream)."""

    def __init__(self, lines=(), fail_open=False, end_of_stream=False):
        self._lines = list(lines)
        self.fail_open = fail_open
        self.end_of_stream = end_of_stream
        self.opened = False
        self.closed = asyncio.Event()
        self.drained = asyncio.Event()

    @property
    def channel_id(self) -> str:
        return "/dev/ttyFAKE0"

    @property
    def speed(self) -> int:
        return 115200

    async def open(self) -> None:
        if self.fail_open:
            raise ChannelFailureError(self.channel_id, "no such device")
        self.opened = True

    async def readline(self):
        if self._lines:
            item = self._lines.pop(0)
            if isinstance(item, Exception):
                raise item
            return item
        self.drained.set()
        if self.end_of_stream:
            return None
        await self.closed.wait()
        return None

    async def close(self) -> None:
        self.closed.set()


class ChannelSequence:
    """Channel factory handing out prepared channels, then idle ones."""

    def __init__(self, *channels):
        self.channels = list(channels)
        self.handed_out = []

    def __call__(self) -> FakeChannel:
        channel = self.channels.pop(0) if self.channels else FakeChannel()
        self.handed_out.append(channel)
        return channel


async def wait_until(predicate, timeout=2.0):
    async def poll():
        while not predicate():
            await asyncio.sleep(0.005)
    await asyncio.wait_for(poll(), timeout)


@pytest.fixture
def make_bridge(directory, registry, ledger):
    def factory(channel_factory, ledger_override=None, **kwargs):
        kwargs.setdefault("backoff_initial", 0.01)
        kwargs.setdefault("backoff_max", 0.02)
        kwargs.setdefault("dedup_window", 0)
        bridge = CardScanBridge(
            channel_factory, directory, registry, ledger_override or ledger, **kwargs
        )
        return bridge

    return factory


class TestProcessScan:
    """Tests for the per-scan pipeline."""

    async def test_registered_card_checks_in(self, make_bridge, ledger, ana, open_session):
        bridge = make_bridge(ChannelSequence())
        assert await bridge.process_scan("card-A") == ScanOutcome.CHECKED_IN
        [present] = await ledger.list_present(open_session.id)
        assert present.reg_number == ana.reg_number

    async def test_unknown_card_dropped(self, make_bridge, ledger, ana, open_session):
        bridge = make_bridge(ChannelSequence())
        assert await bridge.process_scan("card-Z") == ScanOutcome.UNKNOWN_CARD
        assert await ledger.list_present(open_session.id) == []

    async def test_no_active_session_dropped(self, make_bridge, ana):
        bridge = make_bridge(ChannelSequence())
        assert await bridge.process_scan("card-A") == ScanOutcome.NO_ACTIVE_SESSION

    async def test_repeat_scan_is_benign_duplicate(self, make_bridge, ana, open_session):
        bridge = make_bridge(ChannelSequence())
        await bridge.process_scan("card-A")
        assert await bridge.process_scan("card-A") == ScanOutcome.DUPLICATE

    async def test_gate_closed_between_lookup_and_checkin(self, make_bridge, registry, ana, open_session):
        """The gate is re-read by the ledger, so a pause mid-scan is honoured."""

        class PausingRegistry:
            async def find_active_session(self):
                session = await registry.find_active_session()
                await registry.set_gate(session.id, False)
                return session

        bridge = make_bridge(ChannelSequence())
        bridge._registry = PausingRegistry()
        assert await bridge.process_scan("card-A") == ScanOutcome.NOT_ACTIVE

    async def test_unexpected_failure_is_contained(self, make_bridge, ana, open_session):
        class BrokenLedger:
            async def checkin(self, attendee_id, session_id):
                raise RuntimeError("database went away")

        bridge = make_bridge(ChannelSequence(), ledger_override=BrokenLedger())
        assert await bridge.process_scan("card-A") == ScanOutcome.FAILED
        assert bridge.status().scans_processed == 1

    async def test_scan_races_manual_checkin(self, make_bridge, ledger, ana, open_session):
        """A scan and a manual check-in for the same pair leave one record."""
        bridge = make_bridge(ChannelSequence())
        outcome, manual = await asyncio.gather(
            bridge.process_scan("card-A"),
            ledger.checkin(ana.reg_number, open_session.id),
            return_exceptions=True,
        )
        assert len(await ledger.list_present(open_session.id)) == 1
        if outcome == ScanOutcome.CHECKED_IN:
            assert isinstance(manual, DuplicateCheckinError)
        else:
            assert outcome == ScanOutcome.DUPLICATE
            assert manual.attendee_id == ana.reg_number


class TestEventStream:
    """Tests for lines arriving through the channel."""

    async def test_unknown_card_then_valid_card(self, make_bridge, ledger, ana, open_session):
        channel = FakeChannel([card_line("card-Z"), card_line("card-A")])
        bridge = make_bridge(ChannelSequence(channel))
        await bridge.start()
        await asyncio.wait_for(channel.drained.wait(), 2)
        await bridge.wait_idle()

        assert [p.reg_number for p in await ledger.list_present(open_session.id)] == [1001]
        assert bridge.status().scans_processed == 2
        assert bridge.state == ConnectionState.CONNECTED
        await bridge.stop()

    async def test_malformed_lines_are_ignored(self, make_bridge, ledger, ana, open_session):
        channel = FakeChannel([
            b"RC522 boot v2\r\n",
            b'{"event": "card_detected", "uuid"\n',
            b"\xff\xfe\n",
            b"",
            b'{"event": "card_removed"}\n',
            card_line("card-A"),
        ])
        bridge = make_bridge(ChannelSequence(channel))
        await bridge.start()
        await asyncio.wait_for(channel.drained.wait(), 2)
        await bridge.wait_idle()

        assert len(await ledger.list_present(open_session.id)) == 1
        assert bridge.state == ConnectionState.CONNECTED
        await bridge.stop()

    async def test_repeat_reads_are_debounced(self, make_bridge, ana, open_session):
        channel = FakeChannel([card_line("card-A")] * 5)
        bridge = make_bridge(ChannelSequence(channel), dedup_window=60)
        await bridge.start()
        await asyncio.wait_for(channel.drained.wait(), 2)
        await bridge.wait_idle()

        assert bridge.status().scans_processed == 1
        await bridge.stop()

    async def test_frame_split_across_reads(self, make_bridge, ledger, ana, open_session):
        """A read timeout mid-frame must not turn one card event into two text lines."""
        frame = card_line("card-A")
        channel = FakeChannel([frame[:30], b"", frame[30:]])
        bridge = make_bridge(ChannelSequence(channel))
        await bridge.start()
        await asyncio.wait_for(channel.drained.wait(), 2)
        await bridge.wait_idle()

        assert [p.reg_number for p in await ledger.list_present(open_session.id)] == [1001]
        assert bridge.status().scans_processed == 1
        await bridge.stop()

    async def test_several_frames_in_one_read(self, make_bridge, directory, ledger, ana, open_session):
        await directory.register_attendee(1002, "Bruno", "Law", "card-B")
        second = card_line("card-B")
        channel = FakeChannel([card_line("card-A") + second[:12], second[12:]])
        bridge = make_bridge(ChannelSequence(channel))
        await bridge.start()
        await asyncio.wait_for(channel.drained.wait(), 2)
        await bridge.wait_idle()

        assert sorted(p.reg_number for p in await ledger.list_present(open_session.id)) == [1001, 1002]
        await bridge.stop()

    async def test_scan_before_gate_opens_is_not_debounced(self, make_bridge, registry, ledger, ana, clock):
        """A card dropped for lack of an open gate can be scanned again right away."""
        session = await registry.create_session("Intro", "", clock.now, clock.now + timedelta(hours=1))
        bridge = make_bridge(ChannelSequence(), dedup_window=60)

        bridge.handle_line(card_line("card-A").decode())
        await bridge.wait_idle()
        await registry.set_gate(session.id, True)
        bridge.handle_line(card_line("card-A").decode())
        await bridge.wait_idle()

        assert [p.reg_number for p in await ledger.list_present(session.id)] == [1001]
        assert bridge.status().scans_processed == 2

    async def test_repeat_after_checkin_stays_debounced(self, make_bridge, ana, open_session):
        bridge = make_bridge(ChannelSequence(), dedup_window=60)
        bridge.handle_line(card_line("card-A").decode())
        await bridge.wait_idle()
        bridge.handle_line(card_line("card-A").decode())
        await bridge.wait_idle()

        assert bridge.status().scans_processed == 1

    async def test_slow_checkin_does_not_block_next_event(self, make_bridge, directory, ledger, ana, open_session):
        await directory.register_attendee(1002, "Bruno", "Law", "card-B")
        release = asyncio.Event()

        class SlowForAna:
            async def checkin(self, attendee_id, session_id):
                if attendee_id == ana.reg_number:
                    await release.wait()
                return await ledger.checkin(attendee_id, session_id)

        channel = FakeChannel([card_line("card-A"), card_line("card-B")])
        bridge = make_bridge(ChannelSequence(channel), ledger_override=SlowForAna())
        await bridge.start()

        async def bruno_present():
            while not await ledger.list_present(open_session.id):
                await asyncio.sleep(0.005)
        await asyncio.wait_for(bruno_present(), 2)
        assert [p.name for p in await ledger.list_present(open_session.id)] == ["Bruno"]

        release.set()
        await bridge.wait_idle()
        assert [p.name for p in await ledger.list_present(open_session.id)] == ["Bruno", "Ana"]
        await bridge.stop()


class TestConnectionState:
    """Tests for the connection state machine and reconnects."""

    async def test_starts_disconnected(self, make_bridge):
        bridge = make_bridge(ChannelSequence())
        status = bridge.status()
        assert status.state == ConnectionState.DISCONNECTED
        assert status.connected is False
        assert status.channel_id is None

    async def test_connects_and_reports_channel(self, make_bridge):
        bridge = make_bridge(ChannelSequence())
        await bridge.start()
        await wait_until(lambda: bridge.state == ConnectionState.CONNECTED)
        status = bridge.status()
        assert status.connected is True
        assert status.channel_id == "/dev/ttyFAKE0"
        assert status.speed == 115200
        await bridge.stop()
        assert bridge.state == ConnectionState.DISCONNECTED

    async def test_stop_closes_channel(self, make_bridge):
        channels = ChannelSequence()
        bridge = make_bridge(channels)
        await bridge.start()
        await wait_until(lambda: bridge.state == ConnectionState.CONNECTED)
        await bridge.stop()
        assert channels.handed_out[0].closed.is_set()
        assert bridge.running is False

    async def test_device_error_then_recovery(self, make_bridge):
        channel = FakeChannel([b'{"error": "antenna fault"}\n'])
        bridge = make_bridge(ChannelSequence(channel))
        await bridge.start()
        await asyncio.wait_for(channel.drained.wait(), 2)
        assert bridge.state == ConnectionState.ERROR
        assert bridge.status().last_error == "antenna fault"

        bridge.handle_line('{"status": "ready"}')
        assert bridge.state == ConnectionState.CONNECTED
        await bridge.stop()

    async def test_open_failure_retries_with_backoff(self, make_bridge):
        channels = ChannelSequence(FakeChannel(fail_open=True), FakeChannel(fail_open=True))
        bridge = make_bridge(channels)
        await bridge.start()
        await wait_until(lambda: bridge.state == ConnectionState.CONNECTED)
        assert len(channels.handed_out) == 3
        assert bridge.status().last_error == "no such device"
        await bridge.stop()

    async def test_read_failure_disconnects_and_reconnects(self, make_bridge):
        failing = FakeChannel([ChannelFailureError("/dev/ttyFAKE0", "device unplugged")])
        channels = ChannelSequence(failing)
        bridge = make_bridge(channels)
        await bridge.start()
        await wait_until(lambda: len(channels.handed_out) == 2)
        assert failing.closed.is_set()
        await wait_until(lambda: bridge.state == ConnectionState.CONNECTED)
        assert bridge.status().last_error == "device unplugged"
        await bridge.stop()

    async def test_end_of_stream_reconnects(self, make_bridge):
        channels = ChannelSequence(FakeChannel(end_of_stream=True))
        bridge = make_bridge(channels)
        await bridge.start()
        await wait_until(lambda: len(channels.handed_out) == 2)
        await bridge.stop()

    async def test_gives_up_after_max_retries(self, make_bridge):
        channels = ChannelSequence(*(FakeChannel(fail_open=True) for _ in range(5)))
        bridge = make_bridge(channels, max_retries=2)
        await bridge.start()
        await wait_until(lambda: not bridge.running)
        assert len(channels.handed_out) == 3
        assert bridge.state == ConnectionState.DISCONNECTED
        await bridge.stop()
