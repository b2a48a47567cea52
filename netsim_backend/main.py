"""
FastAPI Backend — NetSim Builder Simulation Engine
Exposes REST endpoints for building a LAN, sending traffic and checking missions.
"""
from __future__ import annotations

from typing import List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from .missions import MISSION_SETS
from .models import (
    AddConnectionRequest, AddDeviceRequest, CreateSessionRequest,
    MissionAdvanceResponse, MissionCheckResponse, MissionSet,
    MoveDeviceRequest, PingRequest, SessionView, TickRequest, UpdateDeviceRequest,
)
from .session import SessionRegistry, SimulationSession


# ─────────────────────────────────────────────────────────────────────────────
# FastAPI App
# ─────────────────────────────────────────────────────────────────────────────

app = FastAPI(
    title="NetSim Builder API",
    description="Python backend that powers the LAN builder, packet animation and mission checks.",
    version="1.0.0",
)

# Allow all origins for local development (Vite runs on port 5173)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

sessions = SessionRegistry()


def _get_session(session_id: str) -> SimulationSession:
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}")
    return session


def _view(session: SimulationSession) -> SessionView:
    return SessionView(**session.view())


# ─────────────────────────────────────────────────────────────────────────────
# Health Check / Catalogue
# ─────────────────────────────────────────────────────────────────────────────

@app.get("/")
def root():
    return {"status": "ok", "message": "NetSim Builder API is running"}


@app.get("/api/missions", response_model=List[MissionSet])
def list_mission_sets():
    """Returns every course with its missions."""
    return MISSION_SETS


# ─────────────────────────────────────────────────────────────────────────────
# Session Endpoints
# ─────────────────────────────────────────────────────────────────────────────

@app.post("/api/sessions", response_model=SessionView, status_code=201)
def create_session(req: CreateSessionRequest):
    """Starts free build mode, or a mission course when mode is 'mission'."""
    if req.mode == "mission":
        if not req.missionSetId:
            raise HTTPException(status_code=422, detail="missionSetId is required in mission mode")
        session = sessions.create(req.missionSetId)
        if session is None:
            raise HTTPException(status_code=404, detail=f"Unknown mission set: {req.missionSetId}")
    else:
        session = sessions.create()
    return _view(session)


@app.get("/api/sessions/{session_id}", response_model=SessionView)
def get_session(session_id: str):
    return _view(_get_session(session_id))


@app.delete("/api/sessions/{session_id}", status_code=204)
def delete_session(session_id: str):
    if not sessions.delete(session_id):
        raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}")


@app.post("/api/sessions/{session_id}/reset", response_model=SessionView)
def reset_session(session_id: str):
    session = _get_session(session_id)
    session.reset()
    return _view(session)


# ─────────────────────────────────────────────────────────────────────────────
# Topology Endpoints
# ─────────────────────────────────────────────────────────────────────────────

@app.post("/api/sessions/{session_id}/devices", response_model=SessionView)
def place_device(session_id: str, req: AddDeviceRequest):
    session = _get_session(session_id)
    session.place_device(req.type, req.x, req.y)
    return _view(session)


@app.patch("/api/sessions/{session_id}/devices/{device_id}", response_model=SessionView)
def edit_device(session_id: str, device_id: str, req: UpdateDeviceRequest):
    """Merges the given fields into the device; unknown ids are ignored."""
    session = _get_session(session_id)
    session.edit_device(device_id, req.model_dump(exclude_none=True))
    return _view(session)


@app.post("/api/sessions/{session_id}/devices/{device_id}/move", response_model=SessionView)
def move_device(session_id: str, device_id: str, req: MoveDeviceRequest):
    session = _get_session(session_id)
    session.move_device(device_id, req.x, req.y)
    return _view(session)


@app.delete("/api/sessions/{session_id}/devices/{device_id}", response_model=SessionView)
def delete_device(session_id: str, device_id: str):
    session = _get_session(session_id)
    session.delete_device(device_id)
    return _view(session)


@app.post("/api/sessions/{session_id}/devices/{device_id}/click", response_model=SessionView)
def click_device(session_id: str, device_id: str):
    """Selection, or one step of the cable protocol while cable mode is on."""
    session = _get_session(session_id)
    session.click_device(device_id)
    return _view(session)


@app.post("/api/sessions/{session_id}/connection-mode", response_model=SessionView)
def start_connection_mode(session_id: str):
    session = _get_session(session_id)
    session.start_connection_mode()
    return _view(session)


@app.post("/api/sessions/{session_id}/connections", response_model=SessionView)
def add_connection(session_id: str, req: AddConnectionRequest):
    session = _get_session(session_id)
    session.connect(req.sourceId, req.targetId)
    return _view(session)


@app.delete("/api/sessions/{session_id}/connections/{connection_id}", response_model=SessionView)
def delete_connection(session_id: str, connection_id: str):
    session = _get_session(session_id)
    session.delete_connection(connection_id)
    return _view(session)


# ─────────────────────────────────────────────────────────────────────────────
# Traffic Endpoints
# ─────────────────────────────────────────────────────────────────────────────

@app.post("/api/sessions/{session_id}/ping", response_model=SessionView)
def request_ping(session_id: str, req: PingRequest):
    session = _get_session(session_id)
    session.request_ping(req.fromId, req.toId)
    return _view(session)


@app.post("/api/sessions/{session_id}/encryption/toggle", response_model=SessionView)
def toggle_encryption(session_id: str):
    session = _get_session(session_id)
    session.toggle_encryption()
    return _view(session)


@app.post("/api/sessions/{session_id}/tick", response_model=SessionView)
def simulation_tick(session_id: str, req: TickRequest):
    """Advances the packet simulation by one or more ticks."""
    session = _get_session(session_id)
    session.tick(req.count)
    return _view(session)


# ─────────────────────────────────────────────────────────────────────────────
# Mission Endpoints
# ─────────────────────────────────────────────────────────────────────────────

@app.post("/api/sessions/{session_id}/mission/check", response_model=MissionCheckResponse)
def check_mission(session_id: str):
    session = _get_session(session_id)
    passed = session.check_mission()
    return MissionCheckResponse(passed=passed, missionError=session.mission_error)


@app.post("/api/sessions/{session_id}/mission/advance", response_model=MissionAdvanceResponse)
def advance_mission(session_id: str):
    session = _get_session(session_id)
    advanced = session.advance_mission()
    progress = session.progress
    return MissionAdvanceResponse(
        advanced=advanced,
        missionIndex=progress.index if progress else 0,
        courseComplete=progress.is_complete if progress else False,
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)
