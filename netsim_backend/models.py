"""
Pydantic models for the NetSim Builder engine: topology entities, packets,
mission metadata, the evaluation snapshot and the API request/response schemas.
"""
from __future__ import annotations
from typing import List, Optional, Dict, Any, Literal
from pydantic import BaseModel, ConfigDict, Field


# ── Shared ──────────────────────────────────────────────────────────────────

DeviceType = Literal['PC', 'SWITCH', 'ROUTER', 'SERVER', 'PRINTER', 'ONU', 'HUB']
PacketKind = Literal['PING', 'KEY_EXCHANGE']
PacketStatus = Literal['ACTIVE', 'ARRIVED']
HandshakePhase = Literal['HANDSHAKE_SENT', 'HANDSHAKE_ACKED']
LogType = Literal['info', 'success', 'error']
SessionMode = Literal['free', 'mission']


class Position(BaseModel):
    x: float
    y: float


# ── Topology ────────────────────────────────────────────────────────────────

class Device(BaseModel):
    id: str
    type: str
    position: Position
    ip: str = ''
    subnetMask: str = '255.255.255.0'
    name: str


class Connection(BaseModel):
    id: str
    sourceId: str
    targetId: str


# ── Simulation ──────────────────────────────────────────────────────────────

class Packet(BaseModel):
    id: str
    sourceDeviceId: str
    destDeviceId: str
    path: List[str]
    hopIndex: int = 0
    hopProgress: float = 0
    kind: PacketKind
    status: PacketStatus = 'ACTIVE'


class Handshake(BaseModel):
    id: str
    initiatorId: str
    responderId: str
    phase: HandshakePhase
    ticksUntilReply: int


class MissionFlags(BaseModel):
    pingSuccess: bool = False
    encryptedSuccess: bool = False


class LogEntry(BaseModel):
    id: str
    tick: int
    message: str
    type: LogType = 'info'


# ── Missions ────────────────────────────────────────────────────────────────

class Mission(BaseModel):
    id: int
    title: str
    description: str
    hint: str
    explanation: str
    kind: str


class MissionSet(BaseModel):
    id: str
    title: str
    description: str
    level: str
    missions: List[Mission]


class Snapshot(BaseModel):
    """Read-only view handed to mission evaluators."""
    model_config = ConfigDict(frozen=True)

    devices: List[Dict[str, Any]]
    connections: List[Dict[str, Any]]
    packets: List[Dict[str, Any]]
    flags: MissionFlags


# ── API Request / Response schemas ───────────────────────────────────────────

class CreateSessionRequest(BaseModel):
    mode: SessionMode = 'free'
    missionSetId: Optional[str] = None


class AddDeviceRequest(BaseModel):
    type: DeviceType
    x: float = 0.0
    y: float = 0.0


class UpdateDeviceRequest(BaseModel):
    name: Optional[str] = None
    ip: Optional[str] = None
    subnetMask: Optional[str] = None


class MoveDeviceRequest(BaseModel):
    x: float
    y: float


class AddConnectionRequest(BaseModel):
    sourceId: str
    targetId: str


class PingRequest(BaseModel):
    fromId: str
    toId: str


class TickRequest(BaseModel):
    count: int = Field(default=1, ge=1, le=10_000)


class MissionCheckResponse(BaseModel):
    passed: bool
    missionError: Optional[str] = None


class MissionAdvanceResponse(BaseModel):
    advanced: bool
    missionIndex: int
    courseComplete: bool


class SessionView(BaseModel):
    id: str
    mode: SessionMode
    tickCounter: int
    devices: List[Device]
    connections: List[Connection]
    packets: List[Packet]
    handshakes: List[Handshake]
    flags: MissionFlags
    logs: List[LogEntry]
    isEncrypted: bool
    selectedDeviceId: Optional[str] = None
    connectionMode: Dict[str, Any]
    missionSetId: Optional[str] = None
    missionIndex: int = 0
    currentMission: Optional[Mission] = None
    courseComplete: bool = False
    missionError: Optional[str] = None
