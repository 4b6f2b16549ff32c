"""Byte channels the bridge reads reader lines from."""

import asyncio
import contextlib
import logging
from abc import ABC, abstractmethod

import serial

from checkin_service.core.errors import ChannelFailureError

logger = logging.getLogger(__name__)


class Channel(ABC):
    """Line-oriented channel to a card reader."""

    @property
    @abstractmethod
    def channel_id(self) -> str:
        ...

    @property
    @abstractmethod
    def speed(self) -> int | None:
        ...

    @abstractmethod
    async def open(self) -> None:
        """Open the channel.

        Raises:
            ChannelFailureError: If the device cannot be opened.
        """
        ...

    @abstractmethod
    async def readline(self) -> bytes | None:
        """Return the next chunk of reader bytes, b'' on an idle tick, None once the channel closed.

        A chunk normally ends in a line break but may stop mid-frame when a
        read times out; the caller joins chunks back into lines.

        Raises:
            ChannelFailureError: If the device fails while reading.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        ...


class SerialChannel(Channel):
    """USB/serial reader. Blocking pyserial calls run in a worker thread."""

    def __init__(self, port: str, baudrate: int, read_timeout: float = 0.25) -> None:
        self._port = port
        self._baudrate = baudrate
        self._read_timeout = read_timeout
        self._serial: serial.Serial | None = None

    @property
    def channel_id(self) -> str:
        return self._port

    @property
    def speed(self) -> int | None:
        return self._baudrate

    async def open(self) -> None:
        logger.info(f"Opening serial port {self._port} at {self._baudrate} baud")
        try:
            self._serial = await asyncio.to_thread(
                serial.Serial,
                self._port,
                self._baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=self._read_timeout,  # readline() returns b'' on timeout
            )
        except (serial.SerialException, OSError) as e:
            raise ChannelFailureError(self._port, str(e)) from e

    async def readline(self) -> bytes | None:
        port = self._serial
        if port is None or not port.is_open:
            return None
        try:
            return await asyncio.to_thread(port.readline)
        except (serial.SerialException, OSError) as e:
            raise ChannelFailureError(self._port, str(e)) from e

    async def close(self) -> None:
        port, self._serial = self._serial, None
        if port is not None:
            with contextlib.suppress(serial.SerialException, OSError):
                await asyncio.to_thread(port.close)
            logger.info(f"Serial port {self._port} closed")
