"""Outcome of one scan or write, as handed to the host."""
from dataclasses import dataclass
from typing import Optional

from gymtag.core.errors import ErrorKind, TagError
from gymtag.models.record import EquipmentRecord


@dataclass(frozen=True)
class TagResult:
    """Either the record read/written, or the kind of failure plus a detail message."""
    record: Optional[EquipmentRecord] = None
    error: Optional[ErrorKind] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, record: EquipmentRecord) -> "TagResult":
        return cls(record=record)

    @classmethod
    def failure(cls, err: TagError) -> "TagResult":
        return cls(error=err.kind, detail=str(err))

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "record": self.record.to_wire() if self.record else None,
            "error": self.error.value if self.error else None,
            "detail": self.detail,
        }
