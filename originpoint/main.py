"""OriginPoint — FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, UploadFile, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from originpoint.backends.gemini import GeminiBackend
from originpoint.client import GroundedQueryClient
from originpoint.config import settings
from originpoint.errors import ControllerStateError
from originpoint.models.module import ActiveModule
from originpoint.orchestrator.controller import InteractionController

logger = logging.getLogger(__name__)

logging.basicConfig(level=settings.log_level.upper())


def build_controller() -> InteractionController:
    client = GroundedQueryClient(GeminiBackend())
    logger.info("Using prompt profile %r", client.profile.name)
    return InteractionController(client)


controller = build_controller()

# Active WS connections watching controller state
_ws_connections: list[WebSocket] = []


async def _broadcast(ctrl: InteractionController) -> None:
    """Send the latest snapshot to every connected client."""
    snapshot = ctrl.snapshot()
    for ws in list(_ws_connections):
        try:
            await ws.send_json(snapshot)
        except Exception as exc:
            logger.debug("Dropping WebSocket after failed send: %s", exc)
            _ws_connections.remove(ws)


@asynccontextmanager
async def lifespan(app: FastAPI):
    controller.subscribe(_broadcast)
    yield
    controller.unsubscribe(_broadcast)


app = FastAPI(
    title="OriginPoint",
    description="Grounded genealogy and property-record intelligence",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Request models ---


class ModuleRequest(BaseModel):
    module: ActiveModule


class QueryRequest(BaseModel):
    query: str


class EvidenceRequest(BaseModel):
    evidence: str


# --- Routes ---


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/api/state")
async def get_state():
    return controller.snapshot()


@app.post("/api/module")
async def select_module(req: ModuleRequest):
    if not await controller.select_module(req.module):
        raise HTTPException(status_code=409, detail="A request is already in flight")
    return controller.snapshot()


@app.post("/api/query")
async def submit_query(req: QueryRequest):
    """Run the active module for a query and return the resulting state.

    Failures are reported through the snapshot's ``notice`` field.
    """
    if controller.loading:
        raise HTTPException(status_code=409, detail="A request is already in flight")
    try:
        await controller.submit(req.query)
    except ControllerStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return controller.snapshot()


@app.post("/api/scan")
async def scan_document(file: UploadFile):
    if controller.loading:
        raise HTTPException(status_code=409, detail="A request is already in flight")
    image = await file.read()
    try:
        await controller.submit_document(image, file.content_type or "image/jpeg")
    except ControllerStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return controller.snapshot()


@app.post("/api/conflicts/{conflict_id}/challenge")
async def start_challenge(conflict_id: str):
    if controller.loading:
        raise HTTPException(status_code=409, detail="A request is already in flight")
    try:
        await controller.select_conflict(conflict_id)
    except ControllerStateError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return controller.snapshot()


@app.post("/api/challenge/evidence")
async def submit_evidence(req: EvidenceRequest):
    if controller.loading:
        raise HTTPException(status_code=409, detail="A request is already in flight")
    try:
        await controller.submit_evidence(req.evidence)
    except ControllerStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return controller.snapshot()


@app.post("/api/challenge/cancel")
async def cancel_challenge():
    await controller.cancel_challenge()
    return controller.snapshot()


# --- WebSocket ---


@app.websocket("/ws/state")
async def state_ws(websocket: WebSocket):
    """Stream controller snapshots as they change."""
    await websocket.accept()
    _ws_connections.append(websocket)
    await websocket.send_json(controller.snapshot())
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        if websocket in _ws_connections:
            _ws_connections.remove(websocket)


def run() -> None:
    import uvicorn

    uvicorn.run("originpoint.main:app", host=settings.host, port=settings.port)
