import pytest
from fastapi.testclient import TestClient

from netsim_backend import main
from netsim_backend.models import MissionFlags, Snapshot
from netsim_backend.session import SessionRegistry, SimulationSession
from netsim_backend.topology import TopologyStore


def make_device(device_id, device_type, ip="", mask="255.255.255.0"):
    return {
        "id": device_id,
        "type": device_type,
        "position": {"x": 0, "y": 0},
        "ip": ip,
        "subnetMask": mask,
        "name": device_id,
    }


def make_link(a, b, link_id=None):
    return {"id": link_id or f"{a}-{b}", "sourceId": a, "targetId": b}


def make_snapshot(devices, links=(), ping=False, encrypted=False):
    return Snapshot(
        devices=list(devices),
        connections=list(links),
        packets=[],
        flags=MissionFlags(pingSuccess=ping, encryptedSuccess=encrypted),
    )


@pytest.fixture()
def store():
    """Store that records every log line it emits."""
    lines = []
    topo = TopologyStore(log=lambda message, log_type: lines.append((message, log_type)))
    topo.lines = lines
    return topo


@pytest.fixture()
def session():
    return SimulationSession()


@pytest.fixture()
def lan(session):
    """PC(192.168.1.2) - SW - ROUTER(192.168.1.1) wired through the switch."""
    pc = session.place_device("PC", 10, 10)
    sw = session.place_device("SWITCH", 50, 10)
    router = session.place_device("ROUTER", 90, 10)
    session.edit_device(pc["id"], {"ip": "192.168.1.2"})
    session.edit_device(router["id"], {"ip": "192.168.1.1"})
    session.connect(pc["id"], sw["id"])
    session.connect(sw["id"], router["id"])
    return {"session": session, "pc": pc["id"], "sw": sw["id"], "router": router["id"]}


@pytest.fixture()
def client_ctx(monkeypatch):
    """API client with an isolated session registry."""
    registry = SessionRegistry()
    monkeypatch.setattr(main, "sessions", registry)
    return {"client": TestClient(main.app), "sessions": registry}
