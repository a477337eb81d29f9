import asyncio
from collections import Counter
from datetime import datetime
import random

import pytest

from gymtag.core.ndef import encode_message, text_record
from gymtag.core.radio import SimulatedRadio
from gymtag.core.record_codec import encode
from gymtag.core.scan_controller import ScanController
from gymtag.core.tag_session import RadioArbiter, SessionState
from gymtag.core.write_controller import WriteController
from gymtag.models.record import EquipmentRecord, EquipmentStatus


class RecordingRadio(SimulatedRadio):
    """SimulatedRadio that counts every capability call."""

    def __init__(self, supported: bool = True) -> None:
        super().__init__(supported=supported)
        self.calls = Counter()
        self.fail_read = None
        self.fail_release = None

    async def is_supported(self) -> bool:
        self.calls["is_supported"] += 1
        return await super().is_supported()

    async def start(self) -> None:
        self.calls["start"] += 1
        await super().start()

    async def request_exclusive_access(self, technology: str) -> None:
        self.calls["request_exclusive_access"] += 1
        await super().request_exclusive_access(technology)

    async def read_message(self):
        self.calls["read_message"] += 1
        if self.fail_read is not None:
            raise self.fail_read
        return await super().read_message()

    async def write_message(self, data: bytes) -> None:
        self.calls["write_message"] += 1
        await super().write_message(data)

    async def cancel(self) -> None:
        self.calls["cancel"] += 1
        await super().cancel()

    async def release(self) -> None:
        self.calls["release"] += 1
        await super().release()
        if self.fail_release is not None:
            raise self.fail_release


def tag_bytes(record: EquipmentRecord) -> bytes:
    return encode_message([text_record(encode(record))])


async def wait_for_state(arbiter: RadioArbiter, state: SessionState) -> None:
    for _ in range(200):
        if arbiter.current_state is state:
            return
        await asyncio.sleep(0)
    raise AssertionError(f"session never reached {state.value}")


@pytest.fixture
def rower() -> EquipmentRecord:
    return EquipmentRecord(
        equipmentId="42",
        name="Rower",
        time="2024-01-01 09:00",
        status=EquipmentStatus.ACTIVE,
    )


@pytest.fixture
def radio() -> RecordingRadio:
    return RecordingRadio()


@pytest.fixture
def arbiter(radio) -> RadioArbiter:
    return RadioArbiter(radio, timeout=0)


@pytest.fixture
def scanner(arbiter) -> ScanController:
    return ScanController(arbiter)


@pytest.fixture
def writer(arbiter) -> WriteController:
    return WriteController(
        arbiter,
        now=lambda: datetime(2025, 3, 7, 6, 5, 59),
        rng=random.Random(1234),
    )
