"""Data models for equipment records and write intents."""
from gymtag.models.record import (
    EquipmentRecord,
    EquipmentStatus,
    Fresh,
    Preserving,
    WriteIntent,
)

__all__ = [
    "EquipmentRecord",
    "EquipmentStatus",
    "Fresh",
    "Preserving",
    "WriteIntent",
]
