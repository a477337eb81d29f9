"""NFC scan/write endpoints and the simulated tag."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from gymtag.api.state import AppState, get_state
from gymtag.core.errors import ErrorKind
from gymtag.core.ndef import encode_message, text_record
from gymtag.core.record_codec import encode
from gymtag.core.result import TagResult
from gymtag.models.record import EquipmentRecord, Fresh, Preserving, WriteIntent

router = APIRouter()

_HTTP_STATUS = {
    ErrorKind.EMPTY_NAME: 400,
    ErrorKind.ENCODING_ERROR: 422,
    ErrorKind.SCHEMA_ERROR: 422,
    ErrorKind.EMPTY_MESSAGE: 422,
    ErrorKind.CANCELLED: 409,
    ErrorKind.RADIO_ERROR: 502,
    ErrorKind.NOT_SUPPORTED: 503,
}


class WriteBody(BaseModel):
    name: str
    preserve: bool = False
    previous: Optional[EquipmentRecord] = None


class SimulateBody(BaseModel):
    record: Optional[EquipmentRecord] = None
    raw_hex: Optional[str] = None
    remove: bool = False


def result_response(result: TagResult) -> JSONResponse:
    status_code = 200 if result.ok else _HTTP_STATUS[result.error]
    return JSONResponse(status_code=status_code, content=result.to_dict())


def write_intent(body: WriteBody, state: AppState) -> WriteIntent:
    """Preserving intent keeps id/time of `previous` (or of the last record written here)."""
    if not body.preserve:
        return Fresh()
    previous = body.previous or state.write_controller.last_written
    if previous is None:
        raise HTTPException(status_code=400, detail="Nothing to preserve: provide previous record")
    return Preserving(previous)


@router.get("/status")
def get_status(state: AppState = Depends(get_state)):
    """NFC support (null until first checked), radio started flag, current session state."""
    return {
        "supported": state.arbiter.supported,
        "started": state.arbiter.started,
        "session": state.arbiter.current_state.value,
        "simulated": state.simulated_radio is not None,
    }


@router.post("/scan")
async def scan_once(state: AppState = Depends(get_state)):
    """Read one tag; waits until a tag is presented."""
    return result_response(await state.scan_controller.scan_once())


@router.post("/write")
async def write_once(body: WriteBody, state: AppState = Depends(get_state)):
    """Write one tag; returns the record now on it."""
    intent = write_intent(body, state)
    return result_response(await state.write_controller.write_once(body.name, intent))


@router.post("/cancel")
async def cancel(state: AppState = Depends(get_state)):
    """Stop the scan or write in flight, if any."""
    return {"ok": True, "cancelled": await state.arbiter.cancel_current()}


@router.get("/simulate")
def get_simulated_tag(state: AppState = Depends(get_state)):
    """For development: raw bytes on the simulated tag (hex), or null if none present."""
    radio = state.simulated_radio
    if radio is None:
        raise HTTPException(status_code=404, detail="Hardware is not simulated")
    data = radio.tag_bytes
    return {"present": data is not None, "raw_hex": data.hex() if data is not None else None}


@router.post("/simulate")
async def simulate_tag(body: SimulateBody, state: AppState = Depends(get_state)):
    """For development: place a tag (record, raw bytes, or blank) or remove it."""
    radio = state.simulated_radio
    if radio is None:
        raise HTTPException(status_code=404, detail="Hardware is not simulated")
    if body.remove:
        radio.remove_tag()
        return {"ok": True, "present": False}
    if body.record is not None:
        data = encode_message([text_record(encode(body.record))])
    elif body.raw_hex is not None:
        try:
            data = bytes.fromhex(body.raw_hex)
        except ValueError:
            raise HTTPException(status_code=400, detail="raw_hex is not valid hex")
    else:
        data = b""
    radio.place_tag(data)
    return {"ok": True, "present": True, "raw_hex": data.hex()}
