"""Core: record codec, radio sessions, scan/write controllers."""
from gymtag.core.radio import Radio, SimulatedRadio
from gymtag.core.result import TagResult
from gymtag.core.scan_controller import ScanController
from gymtag.core.tag_session import RadioArbiter, SessionState, TagSession
from gymtag.core.write_controller import WriteController

__all__ = [
    "Radio",
    "RadioArbiter",
    "ScanController",
    "SessionState",
    "SimulatedRadio",
    "TagResult",
    "TagSession",
    "WriteController",
]
