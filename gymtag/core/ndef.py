"""NDEF message framing: record headers around a text payload.

Only what a single well-known text record needs is supported. Chunked records
are rejected; long (4-byte length) records are read and written so a payload
over 255 bytes still round-trips.
"""
from dataclasses import dataclass
from typing import Iterable, List

from gymtag.core.errors import EncodingError

# Header flag bits
MB = 0x80  # message begin
ME = 0x40  # message end
CF = 0x20  # chunk flag
SR = 0x10  # short record
IL = 0x08  # id length present
TNF_MASK = 0x07

TNF_EMPTY = 0x00
TNF_WELL_KNOWN = 0x01

RTD_TEXT = b"T"


@dataclass(frozen=True)
class NdefRecord:
    """One record as it sits on a tag."""
    tnf: int
    type: bytes
    payload: bytes
    id: bytes = b""

    @property
    def is_text(self) -> bool:
        return self.tnf == TNF_WELL_KNOWN and self.type == RTD_TEXT

    @property
    def is_empty(self) -> bool:
        return self.tnf == TNF_EMPTY


def text_record(payload: bytes) -> NdefRecord:
    """Well-known text record around an already encoded text payload."""
    return NdefRecord(tnf=TNF_WELL_KNOWN, type=RTD_TEXT, payload=payload)


def encode_message(records: Iterable[NdefRecord]) -> bytes:
    """Serialize records into one NDEF message."""
    records = list(records)
    out = bytearray()
    for i, rec in enumerate(records):
        header = rec.tnf & TNF_MASK
        if i == 0:
            header |= MB
        if i == len(records) - 1:
            header |= ME
        short = len(rec.payload) <= 0xFF
        if short:
            header |= SR
        if rec.id:
            header |= IL
        out.append(header)
        out.append(len(rec.type))
        if short:
            out.append(len(rec.payload))
        else:
            out += len(rec.payload).to_bytes(4, "big")
        if rec.id:
            out.append(len(rec.id))
        out += rec.type
        out += rec.id
        out += rec.payload
    return bytes(out)


def parse_message(data: bytes) -> List[NdefRecord]:
    """Split raw NDEF message bytes into records. Empty input is an empty message."""
    records: List[NdefRecord] = []
    pos = 0
    end = len(data)

    def take(n: int) -> bytes:
        nonlocal pos
        if pos + n > end:
            raise EncodingError("NDEF message truncated")
        chunk = data[pos:pos + n]
        pos += n
        return chunk

    while pos < end:
        header = take(1)[0]
        if not records and not header & MB:
            raise EncodingError("first NDEF record lacks the message-begin flag")
        if records and header & MB:
            raise EncodingError("message-begin flag set on a later NDEF record")
        if header & CF:
            raise EncodingError("chunked NDEF records are not supported")
        type_len = take(1)[0]
        if header & SR:
            payload_len = take(1)[0]
        else:
            payload_len = int.from_bytes(take(4), "big")
        id_len = take(1)[0] if header & IL else 0
        rec_type = take(type_len)
        rec_id = take(id_len)
        payload = take(payload_len)
        records.append(NdefRecord(tnf=header & TNF_MASK, type=rec_type, payload=payload, id=rec_id))
        if header & ME:
            break
    else:
        if records:
            raise EncodingError("NDEF message has no message-end record")
    return records
