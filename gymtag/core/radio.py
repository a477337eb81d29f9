"""Radio capability supplied by the host, plus an in-memory tag for development."""
import asyncio
import logging
from typing import List, Optional, Protocol

from gymtag.config import NFC_SUPPORTED
from gymtag.core.errors import RadioError
from gymtag.core.ndef import NdefRecord, parse_message

logger = logging.getLogger(__name__)

NDEF_TECH = "Ndef"


class Radio(Protocol):
    """What the host NFC stack must provide. Every call may suspend."""

    async def is_supported(self) -> bool: ...

    async def start(self) -> None: ...

    async def request_exclusive_access(self, technology: str) -> None: ...

    async def read_message(self) -> Optional[List[NdefRecord]]: ...

    async def write_message(self, data: bytes) -> None: ...

    async def cancel(self) -> None: ...

    async def release(self) -> None: ...


class SimulatedRadio:
    """Single in-memory tag. Access requests wait until a tag is placed.

    Use place_tag(raw_bytes) / remove_tag() to simulate a tap, the way the
    hardware-less NFC mode lets a developer set the tag under the reader.
    """

    def __init__(self, supported: bool = NFC_SUPPORTED) -> None:
        self._supported = supported
        self._started = False
        self._tag: Optional[bytes] = None
        self._tag_present = asyncio.Event()
        self._aborted = asyncio.Event()
        self._claimed = False

    @property
    def tag_bytes(self) -> Optional[bytes]:
        return self._tag

    def place_tag(self, data: bytes = b"") -> None:
        """Put a tag holding raw NDEF message bytes (may be blank) in the field."""
        self._tag = bytes(data)
        self._tag_present.set()

    def remove_tag(self) -> None:
        self._tag = None
        self._tag_present.clear()

    async def is_supported(self) -> bool:
        return self._supported

    async def start(self) -> None:
        if not self._supported:
            raise RadioError("NFC is not supported on this device")
        self._started = True

    async def request_exclusive_access(self, technology: str) -> None:
        if not self._started:
            raise RadioError("radio not started")
        if technology != NDEF_TECH:
            raise RadioError(f"unsupported technology {technology!r}")
        if self._claimed:
            raise RadioError("radio already claimed")
        self._aborted.clear()
        self._claimed = True
        await self._wait_for_tag()

    async def read_message(self) -> Optional[List[NdefRecord]]:
        tag = self._require_tag()
        if not tag:
            return None
        return parse_message(tag)

    async def write_message(self, data: bytes) -> None:
        self._require_tag()
        self._tag = bytes(data)
        logger.debug("Simulated tag written (%d bytes)", len(data))

    async def cancel(self) -> None:
        self._aborted.set()

    async def release(self) -> None:
        self._claimed = False

    async def _wait_for_tag(self) -> None:
        present = asyncio.ensure_future(self._tag_present.wait())
        aborted = asyncio.ensure_future(self._aborted.wait())
        try:
            await asyncio.wait({present, aborted}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            present.cancel()
            aborted.cancel()
        if self._aborted.is_set():
            raise RadioError("technology request cancelled")

    def _require_tag(self) -> bytes:
        if not self._claimed:
            raise RadioError("radio access not granted")
        if self._tag is None:
            raise RadioError("tag was removed from the field")
        return self._tag
