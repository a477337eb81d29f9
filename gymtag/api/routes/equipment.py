"""Equipment record preview: what a write would put on the tag."""
from fastapi import APIRouter, Depends

from gymtag.api.routes.nfc import WriteBody, result_response, write_intent
from gymtag.api.state import AppState, get_state

router = APIRouter()


@router.post("/preview")
def preview_record(body: WriteBody, state: AppState = Depends(get_state)):
    """Derive the record for `name` without touching the radio. Fresh previews get a new id each call."""
    intent = write_intent(body, state)
    return result_response(state.write_controller.preview(body.name, intent))
