"""Equipment record stored on a tag, and how a write derives it."""
import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator

TIME_FORMAT = "%Y-%m-%d %H:%M"
_TIME_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2} [0-9]{2}:[0-9]{2}")


class EquipmentStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class EquipmentRecord(BaseModel):
    """Immutable record carried by one tag.

    Only the wire key `equipmentId` is accepted for the id, on construction too.
    """

    model_config = ConfigDict(frozen=True)

    equipment_id: StrictStr = Field(..., alias="equipmentId", pattern=r"^[0-9]+$")
    name: StrictStr = Field(..., min_length=1)
    time: StrictStr
    status: EquipmentStatus

    @field_validator("equipment_id")
    @classmethod
    def _positive_id(cls, v: str) -> str:
        if int(v) <= 0:
            raise ValueError("equipmentId must be a positive integer")
        return v

    @field_validator("time")
    @classmethod
    def _minute_timestamp(cls, v: str) -> str:
        # strptime alone accepts unpadded fields, so check the shape first
        if not _TIME_PATTERN.fullmatch(v):
            raise ValueError("time must look like YYYY-MM-DD HH:MM")
        datetime.strptime(v, TIME_FORMAT)
        return v

    def to_wire(self) -> dict:
        """Dict with the four wire keys in tag order."""
        return self.model_dump(mode="json", by_alias=True)


def format_timestamp(moment: datetime) -> str:
    """Local minute-precision timestamp as written on tags."""
    return moment.strftime(TIME_FORMAT)


@dataclass(frozen=True)
class Fresh:
    """Write a brand new record: new id, current time."""


@dataclass(frozen=True)
class Preserving:
    """Rename a record already known to the caller, keeping its id and time."""
    previous: EquipmentRecord


WriteIntent = Union[Fresh, Preserving]
