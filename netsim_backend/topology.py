"""
Topology store: the device and connection collections and their CRUD.

Unknown ids are ignored rather than raised on; the caller gets ``None`` (or
``False``) back and the topology is left as it was.
"""
from __future__ import annotations
import uuid
from typing import Callable, Dict, List, Optional

from .addressing import DEFAULT_SUBNET_MASK
from .paths import find_link_between


# ─── Constants ───────────────────────────────────────────────────────────────

TYPE_LABELS = {
    'PC': 'PC',
    'SWITCH': 'SW',
    'ROUTER': 'Router',
    'SERVER': 'Server',
    'PRINTER': 'Printer',
    'ONU': 'ONU',
    'HUB': 'Hub',
}

LogSink = Callable[[str, str], None]


def generate_id() -> str:
    return str(uuid.uuid4())


# ─── Node Factory ─────────────────────────────────────────────────────────────

def create_device(device_type: str, x: float, y: float, existing_devices: List[dict]) -> dict:
    """
    Creates a new device dict named "<TypeLabel>-<n>", where n is the number
    of devices of the same type already placed plus one.
    """
    count = sum(1 for d in existing_devices if d["type"] == device_type) + 1
    label = TYPE_LABELS.get(device_type, 'Dev')
    return {
        "id": generate_id(),
        "type": device_type,
        "position": {"x": x, "y": y},
        "ip": "",
        "subnetMask": DEFAULT_SUBNET_MASK,
        "name": f"{label}-{count}",
    }


# ─── Store ───────────────────────────────────────────────────────────────────

class TopologyStore:
    """
    Owns the ``devices`` and ``connections`` lists.

    Every mutation swaps in a new list, so a list handed out earlier is never
    changed underneath its holder. ``log`` is an optional ``(message, type)``
    sink.
    """

    def __init__(self, log: Optional[LogSink] = None):
        self.devices: List[dict] = []
        self.connections: List[dict] = []
        self._log = log

    def _emit(self, message: str, log_type: str = "info") -> None:
        if self._log is not None:
            self._log(message, log_type)

    # ── Lookups ──

    def get_device(self, device_id: str) -> Optional[dict]:
        return next((d for d in self.devices if d["id"] == device_id), None)

    def get_connection(self, connection_id: str) -> Optional[dict]:
        return next((c for c in self.connections if c["id"] == connection_id), None)

    def connections_of(self, device_id: str) -> List[dict]:
        return [c for c in self.connections
                if c["sourceId"] == device_id or c["targetId"] == device_id]

    # ── Devices ──

    def add_device(self, device_type: str, x: float, y: float) -> dict:
        device = create_device(device_type, x, y, self.devices)
        self.devices = self.devices + [device]
        self._emit(f"Added device: {device['name']}")
        return device

    def update_device(self, device_id: str, updates: Dict) -> Optional[dict]:
        """Merges ``updates`` into the device. ``x``/``y`` keys move it."""
        device = self.get_device(device_id)
        if device is None:
            return None

        updates = {k: v for k, v in updates.items() if k != "id"}
        position = dict(device["position"])
        if "x" in updates:
            position["x"] = updates.pop("x")
        if "y" in updates:
            position["y"] = updates.pop("y")
        if "position" in updates:
            position.update(updates.pop("position"))

        updated = {**device, **updates, "position": position}
        self.devices = [updated if d["id"] == device_id else d for d in self.devices]
        changed = ", ".join(f"{k}={v}" for k, v in updates.items())
        if changed:
            self._emit(f"Updated {updated['name']}: {changed}")
        return updated

    def move_device(self, device_id: str, x: float, y: float) -> Optional[dict]:
        device = self.get_device(device_id)
        if device is None:
            return None
        moved = {**device, "position": {"x": x, "y": y}}
        self.devices = [moved if d["id"] == device_id else d for d in self.devices]
        self._emit(f"Moved {device['name']} to ({x}, {y})")
        return moved

    def delete_device(self, device_id: str) -> bool:
        """Removes the device and every connection referencing it."""
        device = self.get_device(device_id)
        if device is None:
            return False
        self.devices = [d for d in self.devices if d["id"] != device_id]
        self.connections = [c for c in self.connections
                            if c["sourceId"] != device_id and c["targetId"] != device_id]
        self._emit(f"Deleted device: {device['name']}")
        return True

    # ── Connections ──

    def add_connection(self, source_id: str, target_id: str) -> Optional[dict]:
        """
        Links two live devices. Self-links and unknown ids are rejected with
        None; linking an already linked pair returns the existing connection.
        """
        if source_id == target_id:
            return None
        source = self.get_device(source_id)
        target = self.get_device(target_id)
        if source is None or target is None:
            return None

        existing = find_link_between(source_id, target_id, self.connections)
        if existing is not None:
            self._emit(f"{source['name']} and {target['name']} are already connected.")
            return existing

        connection = {"id": generate_id(), "sourceId": source_id, "targetId": target_id}
        self.connections = self.connections + [connection]
        self._emit(f"Connected {source['name']} ↔ {target['name']}", "success")
        return connection

    def delete_connection(self, connection_id: str) -> bool:
        if self.get_connection(connection_id) is None:
            return False
        self.connections = [c for c in self.connections if c["id"] != connection_id]
        self._emit("Cable disconnected")
        return True

    def clear(self) -> None:
        self.devices = []
        self.connections = []
