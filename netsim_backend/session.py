"""
Simulation session: one learner's workspace.

Holds the independent state containers (topology, packets and handshakes,
evidence flags, mission progress, log stream) plus the small amount of view
state the canvas needs (selection, cable mode, encryption toggle). Each
container is only replaced through its owner: the topology store, ``tick`` and
``advance_mission`` respectively.
"""
from __future__ import annotations
import copy
import uuid
from typing import Dict, List, Optional

from .addressing import is_valid_ip
from .missions import MISSION_NOT_MET, MissionProgress, get_mission_set
from .models import MissionFlags, MissionSet, Snapshot
from .packet_simulation import (
    PING,
    advance_tick,
    create_packet,
    initial_flags,
    make_log_entry,
    start_handshake,
)
from .paths import find_path
from .topology import TopologyStore


MAX_LOG_ENTRIES = 50


class SimulationSession:

    def __init__(self, mission_set: Optional[MissionSet] = None, session_id: Optional[str] = None):
        self.id = session_id or str(uuid.uuid4())
        self.mode = "mission" if mission_set is not None else "free"
        self.progress = MissionProgress(mission_set) if mission_set is not None else None
        self.logs: List[dict] = []
        self.tick_counter = 0
        self.topology = TopologyStore(log=self.log)
        self._clear_simulation_state()
        if mission_set is not None:
            self.log(f"Started course: {mission_set.title}")
        else:
            self.log("Started free build mode")

    def _clear_simulation_state(self) -> None:
        self.topology.clear()
        self.packets: List[dict] = []
        self.handshakes: List[dict] = []
        self.flags: Dict[str, bool] = initial_flags()
        self.is_encrypted = False
        self.selected_device_id: Optional[str] = None
        self.connection_mode = {"active": False, "sourceId": None}
        self.mission_error: Optional[str] = None

    # ── Log stream ──

    def _push_log(self, entry: dict) -> None:
        self.logs = ([entry] + self.logs)[:MAX_LOG_ENTRIES]

    def log(self, message: str, log_type: str = "info") -> None:
        self._push_log(make_log_entry(self.tick_counter, message, log_type))

    # ── Topology editing ──

    def place_device(self, device_type: str, x: float, y: float) -> dict:
        return self.topology.add_device(device_type, x, y)

    def edit_device(self, device_id: str, updates: Dict) -> Optional[dict]:
        return self.topology.update_device(device_id, updates)

    def move_device(self, device_id: str, x: float, y: float) -> Optional[dict]:
        return self.topology.move_device(device_id, x, y)

    def delete_device(self, device_id: str) -> bool:
        if not self.topology.delete_device(device_id):
            return False
        if self.selected_device_id == device_id:
            self.selected_device_id = None
        if self.connection_mode["sourceId"] == device_id:
            self.connection_mode = {"active": False, "sourceId": None}
        return True

    def connect(self, source_id: str, target_id: str) -> Optional[dict]:
        return self.topology.add_connection(source_id, target_id)

    def delete_connection(self, connection_id: str) -> bool:
        return self.topology.delete_connection(connection_id)

    def start_connection_mode(self) -> None:
        self.connection_mode = {"active": True, "sourceId": None}
        self.log("Cable mode: click the source device.")

    def cancel_connection_mode(self) -> None:
        self.connection_mode = {"active": False, "sourceId": None}

    def click_device(self, device_id: str) -> Optional[dict]:
        """
        Selects a device, or in cable mode picks the source and then the
        target of a new connection. Returns the connection made, if any.
        """
        if self.topology.get_device(device_id) is None:
            return None

        if not self.connection_mode["active"]:
            self.selected_device_id = device_id
            return None

        source_id = self.connection_mode["sourceId"]
        if source_id is None:
            self.connection_mode = {"active": True, "sourceId": device_id}
            self.log("Source selected. Click the target device.")
            return None

        self.cancel_connection_mode()
        if source_id == device_id:
            return None
        return self.topology.add_connection(source_id, device_id)

    # ── Traffic ──

    def request_ping(self, from_id: str, to_id: str) -> Optional[dict]:
        """Resolves a route once and launches a PING packet along it."""
        from_device = self.topology.get_device(from_id)
        to_device = self.topology.get_device(to_id)
        if from_device is None or to_device is None:
            return None

        if not is_valid_ip(from_device["ip"]) or not is_valid_ip(to_device["ip"]):
            self.log("Error: IP address settings are invalid.", "error")
            return None

        path = find_path(self.topology.connections, from_id, to_id)
        if path is None:
            self.log("Ping failed: no route found. Check the cables.", "error")
            return None

        self.log(f"Ping sent: {from_device['ip']} -> {to_device['ip']}")
        packet = create_packet(from_id, to_id, path, PING)
        self.packets = self.packets + [packet]
        return packet

    def toggle_encryption(self) -> bool:
        """
        Flips the encryption toggle. Turning it on starts a key exchange over
        the first connection and needs at least one cable; turning it off
        always works.
        """
        if not self.is_encrypted and not self.topology.connections:
            self.log("No connected devices.", "error")
            return self.is_encrypted

        self.is_encrypted = not self.is_encrypted
        if self.is_encrypted:
            self.log("Encryption ON. Starting handshake...")
            conn = self.topology.connections[0]
            handshake, packet = start_handshake(conn["sourceId"], conn["targetId"])
            self.handshakes = self.handshakes + [handshake]
            self.packets = self.packets + [packet]
        else:
            self.log("Encryption OFF.")
        return self.is_encrypted

    def tick(self, count: int = 1) -> List[dict]:
        """Runs ``count`` clock ticks. Returns the packets that arrived."""
        arrivals: List[dict] = []
        for _ in range(count):
            result = advance_tick(
                self.packets, self.handshakes, self.flags,
                self.topology.devices, self.is_encrypted, self.tick_counter,
            )
            self.packets = result["activePackets"]
            self.handshakes = result["handshakes"]
            self.flags = result["flags"]
            self.tick_counter = result["tickCounter"]
            for entry in result["logs"]:
                self._push_log(entry)
            arrivals.extend(result["arrivals"])
        return arrivals

    # ── Missions ──

    def snapshot(self) -> Snapshot:
        return Snapshot(
            devices=copy.deepcopy(self.topology.devices),
            connections=copy.deepcopy(self.topology.connections),
            packets=copy.deepcopy(self.packets),
            flags=MissionFlags(**self.flags),
        )

    def check_mission(self) -> bool:
        if self.progress is None or self.progress.current_mission is None:
            return False
        passed = self.progress.check_current(self.snapshot())
        self.mission_error = None if passed else MISSION_NOT_MET
        return passed

    def advance_mission(self) -> bool:
        """Moves to the next mission if the current one passes; resets flags."""
        if self.progress is None:
            return False
        if not self.progress.advance(self.snapshot()):
            return False
        self.flags = initial_flags()
        self.mission_error = None
        if self.progress.is_complete:
            self.log("Course complete!", "success")
        else:
            self.log(f"Next mission: {self.progress.current_mission.title}")
        return True

    def reset(self) -> None:
        """Discards the canvas, traffic and log and restarts the course."""
        self.logs = []
        self.tick_counter = 0
        if self.progress is not None:
            self.progress = MissionProgress(self.progress.mission_set)
        self._clear_simulation_state()
        self.log("Simulation reset")

    # ── View ──

    def view(self) -> dict:
        progress = self.progress
        return {
            "id": self.id,
            "mode": self.mode,
            "tickCounter": self.tick_counter,
            "devices": self.topology.devices,
            "connections": self.topology.connections,
            "packets": self.packets,
            "handshakes": self.handshakes,
            "flags": self.flags,
            "logs": self.logs,
            "isEncrypted": self.is_encrypted,
            "selectedDeviceId": self.selected_device_id,
            "connectionMode": self.connection_mode,
            "missionSetId": progress.mission_set.id if progress else None,
            "missionIndex": progress.index if progress else 0,
            "currentMission": progress.current_mission if progress else None,
            "courseComplete": progress.is_complete if progress else False,
            "missionError": self.mission_error,
        }


# ─── Registry ────────────────────────────────────────────────────────────────

class SessionRegistry:
    """In-memory map of live sessions; nothing outlives the process."""

    def __init__(self):
        self._sessions: Dict[str, SimulationSession] = {}

    def create(self, mission_set_id: Optional[str] = None) -> Optional[SimulationSession]:
        mission_set = None
        if mission_set_id is not None:
            mission_set = get_mission_set(mission_set_id)
            if mission_set is None:
                return None
        session = SimulationSession(mission_set)
        self._sessions[session.id] = session
        return session

    def get(self, session_id: str) -> Optional[SimulationSession]:
        return self._sessions.get(session_id)

    def delete(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        return len(self._sessions)
