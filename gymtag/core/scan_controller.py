"""Read one tag: open a session, read its message, decode the first record."""
import logging
from typing import Optional

from gymtag.config import STRICT_LANGUAGE
from gymtag.core.errors import TagError
from gymtag.core.radio import Radio
from gymtag.core.record_codec import decode_message
from gymtag.core.result import TagResult
from gymtag.core.tag_session import RadioArbiter
from gymtag.models.record import EquipmentRecord

logger = logging.getLogger(__name__)


class ScanController:
    """scan_once() for the host. Never raises for tag or radio failures."""

    def __init__(self, arbiter: RadioArbiter, strict_language: bool = STRICT_LANGUAGE) -> None:
        self._arbiter = arbiter
        self._strict_language = strict_language
        self.last_record: Optional[EquipmentRecord] = None

    async def scan_once(self) -> TagResult:
        """Read one tag. A scan still in flight is cancelled and reports `cancelled`."""
        try:
            await self._arbiter.ensure_supported()
            record = await self._arbiter.run(self._read_and_decode)
        except TagError as e:
            logger.info("Scan failed (%s): %s", e.kind.value, e)
            return TagResult.failure(e)
        self.last_record = record
        logger.info("Scanned equipment %s (%s)", record.equipment_id, record.name)
        return TagResult.success(record)

    async def cancel(self) -> bool:
        return await self._arbiter.cancel_current()

    async def _read_and_decode(self, radio: Radio) -> EquipmentRecord:
        message = await radio.read_message()
        return decode_message(message, strict_language=self._strict_language)
