import random
import re
from datetime import datetime

import pytest

from conftest import RecordingRadio, tag_bytes
from gymtag.core.errors import EmptyName, ErrorKind
from gymtag.core.ndef import parse_message
from gymtag.core.record_codec import decode_message
from gymtag.core.tag_session import RadioArbiter
from gymtag.core.write_controller import WriteController, derive_record
from gymtag.models.record import EquipmentStatus, Fresh, Preserving

_TIME = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}$")


def test_derive_fresh_record():
    record = derive_record("Treadmill", Fresh(), now=lambda: datetime(2024, 5, 3, 7, 4, 30))
    assert record.name == "Treadmill"
    assert record.status is EquipmentStatus.ACTIVE
    assert 1 <= int(record.equipment_id) <= 1000
    assert record.time == "2024-05-03 07:04"


def test_derive_fresh_uses_wall_clock_by_default():
    record = derive_record("Bench")
    assert _TIME.match(record.time)


def test_derive_fresh_id_range_covers_bounds():
    rng = random.Random(7)
    ids = {int(derive_record("Bike", rng=rng).equipment_id) for _ in range(20000)}
    assert min(ids) == 1
    assert max(ids) == 1000


def test_derive_preserving_keeps_id_and_time(rower):
    record = derive_record("Rower 2", Preserving(rower))
    assert record.equipment_id == rower.equipment_id
    assert record.time == rower.time
    assert record.name == "Rower 2"
    assert record.status is EquipmentStatus.ACTIVE


def test_derive_preserving_reactivates_inactive(rower):
    inactive = rower.model_copy(update={"status": EquipmentStatus.INACTIVE})
    assert derive_record("Rower", Preserving(inactive)).status is EquipmentStatus.ACTIVE


@pytest.mark.parametrize("name", ["", "   ", "\t\n"])
def test_derive_rejects_empty_name(name):
    with pytest.raises(EmptyName):
        derive_record(name)


async def test_write_puts_record_on_tag(radio, writer):
    radio.place_tag(b"")
    result = await writer.write_once("Treadmill")
    assert result.ok
    record = result.record
    assert record.name == "Treadmill"
    assert record.status is EquipmentStatus.ACTIVE
    assert 1 <= int(record.equipment_id) <= 1000
    assert record.time == "2025-03-07 06:05"
    assert decode_message(parse_message(radio.tag_bytes)) == record
    assert writer.last_written == record
    assert radio.calls["write_message"] == 1
    assert radio.calls["release"] == 1


async def test_write_preserving(radio, writer, rower):
    radio.place_tag(tag_bytes(rower))
    result = await writer.write_once("Treadmill2", Preserving(rower))
    assert result.ok
    assert result.record.equipment_id == "42"
    assert result.record.time == "2024-01-01 09:00"
    assert result.record.name == "Treadmill2"


async def test_empty_name_never_touches_radio(radio, writer, rower):
    result = await writer.write_once("   ", Preserving(rower))
    assert result.error is ErrorKind.EMPTY_NAME
    assert radio.calls["request_exclusive_access"] == 0
    assert sum(radio.calls.values()) == 0


async def test_write_not_supported():
    radio = RecordingRadio(supported=False)
    writer = WriteController(RadioArbiter(radio, timeout=0))
    result = await writer.write_once("Treadmill")
    assert result.error is ErrorKind.NOT_SUPPORTED
    assert radio.calls["request_exclusive_access"] == 0


async def test_write_radio_error_when_no_tag_presented():
    radio = RecordingRadio()
    writer = WriteController(RadioArbiter(radio, timeout=0.05))
    result = await writer.write_once("Treadmill")
    assert result.error is ErrorKind.RADIO_ERROR
    assert writer.last_written is None
    assert radio.calls["release"] == 1


def test_preview_does_not_touch_radio(radio, writer, rower):
    result = writer.preview("Rower 3", Preserving(rower))
    assert result.ok
    assert result.record.equipment_id == "42"
    assert writer.preview("").error is ErrorKind.EMPTY_NAME
    assert sum(radio.calls.values()) == 0
