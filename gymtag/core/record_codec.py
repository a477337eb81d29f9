"""EquipmentRecord <-> NDEF text record payload.

Payload layout: one status byte (bit 7 = UTF-16, bits 5..0 = language code
length), the language code, then the record as compact UTF-8 JSON. The write
path always produces a two-character code ("en"), so a strict decode expects
exactly that; the length is still read from the status byte rather than
assumed, which lets non-strict decoding accept tags from other writers.
"""
import json
from typing import Optional, Sequence

from pydantic import ValidationError

from gymtag.config import STRICT_LANGUAGE
from gymtag.core.errors import EmptyMessage, EncodingError, SchemaError
from gymtag.core.ndef import NdefRecord
from gymtag.models.record import EquipmentRecord

LANGUAGE_CODE = b"en"

_UTF16_FLAG = 0x80
_LANG_LEN_MASK = 0x3F


def encode(record: EquipmentRecord) -> bytes:
    """Text record payload for a valid record. No fields are generated here."""
    body = json.dumps(record.to_wire(), separators=(",", ":"), ensure_ascii=False)
    return bytes([len(LANGUAGE_CODE)]) + LANGUAGE_CODE + body.encode("utf-8")


def decode(payload: bytes, strict_language: bool = STRICT_LANGUAGE) -> EquipmentRecord:
    """Parse and validate a text record payload. All or nothing."""
    if not payload:
        raise EncodingError("text record payload is empty")
    status = payload[0]
    if status & _UTF16_FLAG:
        raise EncodingError("UTF-16 text records are not supported")
    lang_len = status & _LANG_LEN_MASK
    if strict_language and lang_len != len(LANGUAGE_CODE):
        raise EncodingError(f"expected a {len(LANGUAGE_CODE)}-character language code, got {lang_len}")
    if 1 + lang_len > len(payload):
        raise EncodingError("language code runs past the end of the payload")
    try:
        payload[1:1 + lang_len].decode("ascii")
        text = payload[1 + lang_len:].decode("utf-8")
    except UnicodeDecodeError as e:
        raise EncodingError(f"payload is not valid text: {e}") from e
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise EncodingError(f"payload is not JSON: {e.msg}") from e
    except RecursionError as e:
        raise EncodingError("payload JSON is nested too deeply") from e
    if not isinstance(data, dict):
        raise SchemaError("record must be a JSON object")
    try:
        return EquipmentRecord.model_validate(data)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) or "record" for err in e.errors())
        raise SchemaError(f"invalid record fields: {fields}") from e


def decode_message(
    message: Optional[Sequence[NdefRecord]],
    strict_language: bool = STRICT_LANGUAGE,
) -> EquipmentRecord:
    """Decode the first record of a message read off a tag."""
    records = list(message or [])
    if all(r.is_empty for r in records):
        raise EmptyMessage("no NDEF records on tag")
    first = records[0]
    if not first.is_text:
        raise EncodingError(f"first record is not a text record (tnf={first.tnf}, type={first.type!r})")
    return decode(first.payload, strict_language=strict_language)
