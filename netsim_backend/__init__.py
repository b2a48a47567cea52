"""
NetSim Builder Backend Package
==============================
Simulation engine for the NetSim Builder LAN playground.

Modules:
    - addressing        : IPv4 syntax, private ranges and subnet checks
    - topology          : Device / connection store with cascading deletes
    - paths             : Adjacency tests and BFS path resolution
    - packet_simulation : Fixed-timestep packet motion and key exchange
    - missions          : Mission courses and rule evaluation
    - session           : Per-learner session state and registry
    - models            : Shared Pydantic models
    - main              : FastAPI application
"""

# --- Addressing ---
from .addressing import (
    is_valid_ip,
    is_private_ip,
    is_in_same_subnet,
    is_valid_subnet_mask,
)

# --- Topology / Paths ---
from .topology import TopologyStore, create_device
from .paths import (
    is_connected,
    get_neighbors,
    find_path,
    get_reachable,
)

# --- Simulation ---
from .packet_simulation import (
    advance_tick,
    create_packet,
    start_handshake,
    run_clock,
)

# --- Missions ---
from .missions import (
    MissionKind,
    MissionProgress,
    MISSION_EVALUATORS,
    MISSION_SETS,
    evaluate_mission,
    get_mission_set,
)

# --- Session ---
from .session import SimulationSession, SessionRegistry

# --- Models ---
from .models import (
    Device,
    Connection,
    Packet,
    Handshake,
    MissionFlags,
    LogEntry,
    Mission,
    MissionSet,
    Snapshot,
)

__all__ = [
    # Addressing
    "is_valid_ip",
    "is_private_ip",
    "is_in_same_subnet",
    "is_valid_subnet_mask",
    # Topology / Paths
    "TopologyStore",
    "create_device",
    "is_connected",
    "get_neighbors",
    "find_path",
    "get_reachable",
    # Simulation
    "advance_tick",
    "create_packet",
    "start_handshake",
    "run_clock",
    # Missions
    "MissionKind",
    "MissionProgress",
    "MISSION_EVALUATORS",
    "MISSION_SETS",
    "evaluate_mission",
    "get_mission_set",
    # Session
    "SimulationSession",
    "SessionRegistry",
    # Models
    "Device",
    "Connection",
    "Packet",
    "Handshake",
    "MissionFlags",
    "LogEntry",
    "Mission",
    "MissionSet",
    "Snapshot",
]
