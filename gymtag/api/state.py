"""Shared application state (injected into routes)."""
from typing import Optional

from gymtag.config import SIMULATE_HARDWARE
from gymtag.core.radio import Radio, SimulatedRadio
from gymtag.core.scan_controller import ScanController
from gymtag.core.tag_session import RadioArbiter
from gymtag.core.write_controller import WriteController


class AppState:
    def __init__(self, radio: Optional[Radio] = None) -> None:
        # Host integrations pass their own radio; otherwise fall back to the in-memory tag
        self._radio = radio
        self._arbiter: RadioArbiter | None = None
        self._scan: ScanController | None = None
        self._write: WriteController | None = None

    @property
    def radio(self) -> Radio:
        if self._radio is None:
            if not SIMULATE_HARDWARE:
                raise RuntimeError("No host radio configured; set GYMTAG_SIMULATE_HARDWARE=1")
            self._radio = SimulatedRadio()
        return self._radio

    @property
    def simulated_radio(self) -> SimulatedRadio | None:
        radio = self.radio
        return radio if isinstance(radio, SimulatedRadio) else None

    @property
    def arbiter(self) -> RadioArbiter:
        if self._arbiter is None:
            self._arbiter = RadioArbiter(self.radio)
        return self._arbiter

    @property
    def scan_controller(self) -> ScanController:
        if self._scan is None:
            self._scan = ScanController(self.arbiter)
        return self._scan

    @property
    def write_controller(self) -> WriteController:
        if self._write is None:
            self._write = WriteController(self.arbiter)
        return self._write

    async def shutdown(self) -> None:
        """Make sure no session keeps the radio when the app stops."""
        if self._arbiter is not None:
            await self._arbiter.cancel_current()


_state = AppState()


def get_state() -> AppState:
    return _state
