"""Write one tag: derive the record, encode it, write it in one session."""
import logging
import random
from datetime import datetime
from typing import Callable, Optional

from gymtag.core.errors import EmptyName, TagError
from gymtag.core.ndef import encode_message, text_record
from gymtag.core.radio import Radio
from gymtag.core.record_codec import encode
from gymtag.core.result import TagResult
from gymtag.core.tag_session import RadioArbiter
from gymtag.models.record import (
    EquipmentRecord,
    EquipmentStatus,
    Fresh,
    Preserving,
    WriteIntent,
    format_timestamp,
)

logger = logging.getLogger(__name__)

MIN_EQUIPMENT_ID = 1
MAX_EQUIPMENT_ID = 1000


def derive_record(
    proposed_name: str,
    intent: WriteIntent = Fresh(),
    *,
    now: Optional[Callable[[], datetime]] = None,
    rng: Optional[random.Random] = None,
) -> EquipmentRecord:
    """Build the record a write will put on the tag.

    Fresh: random id in [1, 1000] and the current local minute.
    Preserving: id and time of the previous record. Status is always active
    and the name is always the caller's.
    """
    if not proposed_name.strip():
        raise EmptyName("equipment name is empty")
    if isinstance(intent, Preserving):
        equipment_id = intent.previous.equipment_id
        time = intent.previous.time
    else:
        equipment_id = str((rng or random).randint(MIN_EQUIPMENT_ID, MAX_EQUIPMENT_ID))
        time = format_timestamp((now or datetime.now)())
    return EquipmentRecord(
        equipmentId=equipment_id,
        name=proposed_name,
        time=time,
        status=EquipmentStatus.ACTIVE,
    )


class WriteController:
    """write_once() for the host. Never raises for tag or radio failures."""

    def __init__(
        self,
        arbiter: RadioArbiter,
        now: Optional[Callable[[], datetime]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._arbiter = arbiter
        self._now = now
        self._rng = rng
        self.last_written: Optional[EquipmentRecord] = None

    def preview(self, proposed_name: str, intent: WriteIntent = Fresh()) -> TagResult:
        """The record a write would produce right now, without touching the radio."""
        try:
            record = derive_record(proposed_name, intent, now=self._now, rng=self._rng)
        except TagError as e:
            return TagResult.failure(e)
        return TagResult.success(record)

    async def write_once(self, proposed_name: str, intent: WriteIntent = Fresh()) -> TagResult:
        """Write a single-record message to the next tag presented; return what was written."""
        try:
            record = derive_record(proposed_name, intent, now=self._now, rng=self._rng)
            await self._arbiter.ensure_supported()
            message = encode_message([text_record(encode(record))])

            async def _write(radio: Radio) -> None:
                await radio.write_message(message)

            await self._arbiter.run(_write)
        except TagError as e:
            logger.info("Write failed (%s): %s", e.kind.value, e)
            return TagResult.failure(e)
        self.last_written = record
        logger.info("Wrote equipment %s (%s) to tag", record.equipment_id, record.name)
        return TagResult.success(record)
