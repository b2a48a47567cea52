"""
Packet motion simulation.

``advance_tick`` is the single step function: it takes the current packets,
pending handshakes and flags and returns fresh collections for the next tick.
Nothing passed in is modified, so a caller still holding the previous lists
keeps a stable view.
"""
from __future__ import annotations
import asyncio
import uuid
from typing import Dict, List, Optional, Tuple


# ─── Constants ───────────────────────────────────────────────────────────────

TICK_INTERVAL = 1 / 60          # seconds per tick when driven by run_clock
HOP_PROGRESS_STEP = 2           # progress gained per tick on the current hop
SEGMENT_COMPLETE = 100          # progress at which a hop is finished
HANDSHAKE_REPLY_DELAY_TICKS = 60

ACTIVE = "ACTIVE"
ARRIVED = "ARRIVED"
PING = "PING"
KEY_EXCHANGE = "KEY_EXCHANGE"
HANDSHAKE_SENT = "HANDSHAKE_SENT"
HANDSHAKE_ACKED = "HANDSHAKE_ACKED"


def initial_flags() -> Dict[str, bool]:
    return {"pingSuccess": False, "encryptedSuccess": False}


def make_log_entry(tick: int, message: str, log_type: str = "info") -> dict:
    return {"id": str(uuid.uuid4()), "tick": tick, "message": message, "type": log_type}


# ─── Packet Factory ───────────────────────────────────────────────────────────

def create_packet(source_id: str, dest_id: str, path: List[str], kind: str = PING) -> dict:
    return {
        "id": str(uuid.uuid4()),
        "sourceDeviceId": source_id,
        "destDeviceId": dest_id,
        "path": list(path),
        "hopIndex": 0,
        "hopProgress": 0,
        "kind": kind,
        "status": ACTIVE,
    }


def start_handshake(initiator_id: str, responder_id: str) -> Tuple[dict, dict]:
    """
    Opens a key exchange across a direct link.
    Returns (handshake, first_packet); the reply leaves after
    HANDSHAKE_REPLY_DELAY_TICKS ticks.
    """
    handshake = {
        "id": str(uuid.uuid4()),
        "initiatorId": initiator_id,
        "responderId": responder_id,
        "phase": HANDSHAKE_SENT,
        "ticksUntilReply": HANDSHAKE_REPLY_DELAY_TICKS,
    }
    packet = create_packet(initiator_id, responder_id, [initiator_id, responder_id], KEY_EXCHANGE)
    return handshake, packet


# ─── Tick ─────────────────────────────────────────────────────────────────────

def _complete_packet(
    pkt: dict,
    flags: Dict[str, bool],
    device_map: Dict[str, dict],
    is_encrypted: bool,
    tick_counter: int,
) -> List[dict]:
    """Applies a packet's arrival effect to ``flags``. Returns new log entries."""
    logs = []
    if pkt["kind"] == PING:
        target = device_map.get(pkt["destDeviceId"])
        target_ip = target["ip"] if target and target.get("ip") else "unknown"
        logs.append(make_log_entry(
            tick_counter, f"Reply from {target_ip}: bytes=32 time=10ms", "success"))
        flags["pingSuccess"] = True
        if is_encrypted:
            flags["encryptedSuccess"] = True
    elif pkt["kind"] == KEY_EXCHANGE:
        target = device_map.get(pkt["destDeviceId"])
        name = target["name"] if target else pkt["destDeviceId"]
        logs.append(make_log_entry(tick_counter, f"Key exchange: {name} received the key", "success"))
        flags["encryptedSuccess"] = True
    return logs


def advance_tick(
    active_packets: List[dict],
    handshakes: List[dict],
    flags: Dict[str, bool],
    devices: List[dict],
    is_encrypted: bool,
    tick_counter: int,
) -> dict:
    """
    Advances every ACTIVE packet by one progress step and every pending
    handshake by one tick.

    A packet on hop i of an n-device path moves to hop i+1 when its progress
    reaches SEGMENT_COMPLETE; on the last hop it is marked ARRIVED, its
    completion effect fires and it leaves the active set. Packets already
    ARRIVED are discarded without firing again. A single-device path arrives
    on its first tick.

    Returns dict with the next state.
    """
    new_flags = dict(flags)
    new_logs: List[dict] = []
    arrivals: List[dict] = []
    surviving_packets: List[dict] = []
    new_packets: List[dict] = []
    device_map = {d["id"]: d for d in devices}

    for pkt in active_packets:
        if pkt["status"] != ACTIVE:
            continue
        pkt = {**pkt, "path": list(pkt["path"])}
        last_hop = len(pkt["path"]) - 1

        arrived = last_hop <= 0
        if not arrived:
            new_progress = pkt["hopProgress"] + HOP_PROGRESS_STEP
            if new_progress >= SEGMENT_COMPLETE:
                next_index = pkt["hopIndex"] + 1
                if next_index >= last_hop:
                    arrived = True
                else:
                    pkt["hopIndex"] = next_index
                    pkt["hopProgress"] = 0
            else:
                pkt["hopProgress"] = new_progress

        if arrived:
            pkt["status"] = ARRIVED
            arrivals.append(pkt)
            new_logs.extend(_complete_packet(pkt, new_flags, device_map, is_encrypted, tick_counter))
        else:
            surviving_packets.append(pkt)

    pending_handshakes: List[dict] = []
    for hs in handshakes:
        if hs["phase"] != HANDSHAKE_SENT:
            continue
        hs = dict(hs)
        hs["ticksUntilReply"] -= 1
        if hs["ticksUntilReply"] > 0:
            pending_handshakes.append(hs)
            continue
        hs["phase"] = HANDSHAKE_ACKED
        new_packets.append(create_packet(
            hs["responderId"], hs["initiatorId"],
            [hs["responderId"], hs["initiatorId"]], KEY_EXCHANGE,
        ))

    return {
        "activePackets": surviving_packets + new_packets,
        "handshakes": pending_handshakes,
        "flags": new_flags,
        "arrivals": arrivals,
        "logs": new_logs,
        "tickCounter": tick_counter + 1,
    }


# ─── Driver ───────────────────────────────────────────────────────────────────

async def run_clock(session, ticks: Optional[int] = None, interval: float = TICK_INTERVAL) -> int:
    """
    Drives ``session.tick()`` at a fixed timestep, yielding to the event loop
    between ticks. Runs ``ticks`` times, or until cancelled when None.
    Returns the number of ticks performed.
    """
    done = 0
    while ticks is None or done < ticks:
        session.tick()
        done += 1
        await asyncio.sleep(interval)
    return done
