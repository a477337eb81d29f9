"""FastAPI app, CORS, and route registration."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Configure logging in the worker process (so session/controller INFO logs are visible with uvicorn --reload)
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(name)s: %(message)s",
)

from gymtag.api.state import AppState, get_state
from gymtag.config import RADIO_TIMEOUT_SEC, SIMULATE_HARDWARE

# Import routes after state to avoid circular imports
from gymtag.api.routes import equipment, nfc

__all__ = ["app", "AppState", "get_state"]

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "GymTag API starting (simulated radio: %s, radio timeout: %s)",
        SIMULATE_HARDWARE,
        f"{RADIO_TIMEOUT_SEC:.1f}s" if RADIO_TIMEOUT_SEC > 0 else "none",
    )

    yield

    await get_state().shutdown()


app = FastAPI(
    title="GymTag API",
    description="Local API for reading and writing gym equipment NFC tags",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(equipment.router, prefix="/api/equipment", tags=["equipment"])
app.include_router(nfc.router, prefix="/api/nfc", tags=["nfc"])
