"""Error kinds for tag operations and the exceptions that carry them."""
from enum import Enum


class ErrorKind(str, Enum):
    """Every failure a scan or write can report to the host."""
    NOT_SUPPORTED = "not_supported"
    RADIO_ERROR = "radio_error"
    ENCODING_ERROR = "encoding_error"
    SCHEMA_ERROR = "schema_error"
    EMPTY_MESSAGE = "empty_message"
    CANCELLED = "cancelled"
    EMPTY_NAME = "empty_name"


class TagError(Exception):
    """Base for classified tag failures. Subclasses set `kind`."""
    kind: ErrorKind = ErrorKind.RADIO_ERROR


class DecodeError(TagError):
    """Tag content could not be turned into an EquipmentRecord."""


class EncodingError(DecodeError):
    kind = ErrorKind.ENCODING_ERROR


class SchemaError(DecodeError):
    kind = ErrorKind.SCHEMA_ERROR


class EmptyMessage(DecodeError):
    kind = ErrorKind.EMPTY_MESSAGE


class RadioError(TagError):
    """Host radio stack failure (tag moved away, no response, ...)."""
    kind = ErrorKind.RADIO_ERROR


class NotSupported(TagError):
    kind = ErrorKind.NOT_SUPPORTED


class SessionCancelled(TagError):
    """The operation was superseded or stopped before it finished."""
    kind = ErrorKind.CANCELLED


class EmptyName(TagError):
    kind = ErrorKind.EMPTY_NAME
