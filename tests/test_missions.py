import pytest
from pydantic import ValidationError

from conftest import make_device, make_link, make_snapshot

from netsim_backend.missions import (
    MISSION_EVALUATORS,
    MISSION_SETS,
    MissionKind,
    MissionProgress,
    evaluate_mission,
    get_mission_set,
)


def _check(kind, snapshot):
    return MISSION_EVALUATORS[kind](snapshot)


def test_every_kind_has_an_evaluator():
    assert set(MISSION_EVALUATORS) == set(MissionKind)


def test_every_mission_references_a_known_kind():
    for mission_set in MISSION_SETS:
        assert mission_set.missions
        for mission in mission_set.missions:
            assert MissionKind(mission.kind) in MISSION_EVALUATORS
            assert mission.title and mission.hint and mission.explanation


def test_get_mission_set():
    assert get_mission_set("basic_course").title == "Networking Basics"
    assert get_mission_set("nope") is None


def test_place_pc_and_router():
    assert not _check(MissionKind.PLACE_PC_AND_ROUTER, make_snapshot([make_device("pc", "PC")]))
    assert _check(MissionKind.PLACE_PC_AND_ROUTER,
                  make_snapshot([make_device("pc", "PC"), make_device("r", "ROUTER")]))


def test_switch_between_rejects_direct_cable():
    devices = [make_device("pc", "PC"), make_device("sw", "SWITCH"), make_device("r", "ROUTER")]
    links = [make_link("pc", "sw"), make_link("sw", "r")]
    assert _check(MissionKind.SWITCH_BETWEEN_PC_AND_ROUTER, make_snapshot(devices, links))
    links.append(make_link("pc", "r"))
    assert not _check(MissionKind.SWITCH_BETWEEN_PC_AND_ROUTER, make_snapshot(devices, links))


def test_addressing_requires_valid_distinct_ips():
    same = [make_device("pc", "PC", "192.168.1.1"), make_device("r", "ROUTER", "192.168.1.1")]
    bad = [make_device("pc", "PC", "192.168.1.300"), make_device("r", "ROUTER", "192.168.1.1")]
    good = [make_device("pc", "PC", "192.168.1.2"), make_device("r", "ROUTER", "192.168.1.1")]
    assert not _check(MissionKind.PC_AND_ROUTER_ADDRESSED, make_snapshot(same))
    assert not _check(MissionKind.PC_AND_ROUTER_ADDRESSED, make_snapshot(bad))
    assert _check(MissionKind.PC_AND_ROUTER_ADDRESSED, make_snapshot(good))


def test_ping_mission_needs_evidence_not_just_configuration():
    devices = [make_device("pc", "PC", "192.168.1.2"), make_device("sw", "SWITCH"),
               make_device("r", "ROUTER", "192.168.1.1")]
    links = [make_link("pc", "sw"), make_link("sw", "r")]
    assert not _check(MissionKind.PING_SUCCESS, make_snapshot(devices, links))
    assert _check(MissionKind.PING_SUCCESS, make_snapshot(devices, links, ping=True))


def test_encryption_mission_needs_flag():
    assert not _check(MissionKind.ENCRYPTED_TRAFFIC, make_snapshot([], ping=True))
    assert _check(MissionKind.ENCRYPTED_TRAFFIC, make_snapshot([], encrypted=True))


def test_private_lan_and_global_server():
    devices = [make_device("pc", "PC", "192.168.1.10"), make_device("r", "ROUTER", "192.168.1.1")]
    assert not _check(MissionKind.PRIVATE_LAN, make_snapshot(devices))
    assert _check(MissionKind.PRIVATE_LAN, make_snapshot(devices, [make_link("pc", "r")]))

    assert _check(MissionKind.GLOBAL_SERVER, make_snapshot([make_device("s", "SERVER", "8.8.8.8")]))
    assert not _check(MissionKind.GLOBAL_SERVER, make_snapshot([make_device("s", "SERVER", "10.0.0.1")]))
    assert not _check(MissionKind.GLOBAL_SERVER, make_snapshot([make_device("s", "SERVER", "")]))


def test_routed_to_global_requires_router_on_path():
    devices = [make_device("pc", "PC", "192.168.1.10"), make_device("sw", "SWITCH"),
               make_device("r", "ROUTER", "192.168.1.1"), make_device("s", "SERVER", "8.8.8.8")]
    via_router = [make_link("pc", "sw"), make_link("sw", "r"), make_link("r", "s")]
    bypass = [make_link("pc", "sw"), make_link("sw", "s"), make_link("sw", "r")]
    assert _check(MissionKind.ROUTED_TO_GLOBAL, make_snapshot(devices, via_router))
    assert not _check(MissionKind.ROUTED_TO_GLOBAL, make_snapshot(devices, bypass))


def test_star_lan():
    devices = [make_device("pc1", "PC"), make_device("pc2", "PC"),
               make_device("pr", "PRINTER"), make_device("sw", "SWITCH")]
    links = [make_link("pc1", "sw"), make_link("pc2", "sw")]
    assert not _check(MissionKind.STAR_LAN, make_snapshot(devices, links))
    links.append(make_link("sw", "pr"))
    assert _check(MissionKind.STAR_LAN, make_snapshot(devices, links))


def test_same_subnet_lan_is_a_static_check():
    devices = [make_device("pc1", "PC", "192.168.1.10"), make_device("pc2", "PC", "192.168.1.11"),
               make_device("pr", "PRINTER", "192.168.1.20"), make_device("sw", "SWITCH")]
    links = [make_link("pc1", "sw"), make_link("pc2", "sw"), make_link("pr", "sw")]
    assert _check(MissionKind.SAME_SUBNET_LAN, make_snapshot(devices, links))
    assert not _check(MissionKind.SAME_SUBNET_LAN, make_snapshot(devices, links[:2], ping=True))

    devices[2] = make_device("pr", "PRINTER", "192.168.2.20")
    assert not _check(MissionKind.SAME_SUBNET_LAN, make_snapshot(devices, links, ping=True))


def test_router_and_onu_uplink():
    devices = [make_device("sw", "SWITCH"), make_device("r", "ROUTER"), make_device("onu", "ONU")]
    chain = [make_link("sw", "r"), make_link("r", "onu")]
    assert _check(MissionKind.ROUTER_AND_ONU_UPLINK, make_snapshot(devices, chain))
    assert not _check(MissionKind.ROUTER_AND_ONU_UPLINK,
                      make_snapshot(devices, chain + [make_link("sw", "onu")]))


def test_default_gateway():
    devices = [make_device("pc", "PC", "192.168.1.10"), make_device("r", "ROUTER", "192.168.1.254")]
    links = [make_link("pc", "r")]
    assert _check(MissionKind.DEFAULT_GATEWAY, make_snapshot(devices, links))
    assert not _check(MissionKind.DEFAULT_GATEWAY, make_snapshot(devices, [], ping=True))

    other_net = [make_device("pc", "PC", "192.168.1.10"), make_device("r", "ROUTER", "192.168.5.254")]
    assert not _check(MissionKind.DEFAULT_GATEWAY, make_snapshot(other_net, links, ping=True))


def test_default_gateway_uses_device_mask():
    devices = [make_device("pc", "PC", "10.1.2.3", mask="255.0.0.0"),
               make_device("r", "ROUTER", "10.200.0.1")]
    assert _check(MissionKind.DEFAULT_GATEWAY, make_snapshot(devices, [make_link("pc", "r")], ping=True))


def test_server_missions():
    assert _check(MissionKind.SERVER_STATIC_IP, make_snapshot([make_device("s", "SERVER", "10.0.0.1")]))
    assert not _check(MissionKind.SERVER_STATIC_IP, make_snapshot([]))

    devices = [make_device("pc", "PC", "10.0.0.2"), make_device("sw", "SWITCH"),
               make_device("s", "SERVER", "10.0.0.1")]
    links = [make_link("pc", "sw"), make_link("sw", "s")]
    assert _check(MissionKind.CLIENT_VIA_SWITCH, make_snapshot(devices, links))
    assert not _check(MissionKind.CLIENT_VIA_SWITCH, make_snapshot(devices, links + [make_link("pc", "s")]))

    assert not _check(MissionKind.MULTIPLE_CLIENTS, make_snapshot(devices, links))
    devices.append(make_device("pc2", "PC", "10.0.0.3"))
    assert not _check(MissionKind.MULTIPLE_CLIENTS, make_snapshot(devices, links))
    links.append(make_link("pc2", "sw"))
    assert _check(MissionKind.MULTIPLE_CLIENTS, make_snapshot(devices, links))


def test_snapshot_is_frozen():
    snapshot = make_snapshot([make_device("pc", "PC")])
    with pytest.raises(ValidationError):
        snapshot.flags = None


def test_progress_advance_requires_pass():
    progress = MissionProgress(get_mission_set("basic_course"))
    empty = make_snapshot([])
    assert progress.check_current(empty) is False
    assert progress.advance(empty) is False
    assert progress.index == 0

    placed = make_snapshot([make_device("pc", "PC"), make_device("r", "ROUTER")])
    assert progress.advance(placed) is True
    assert progress.index == 1
    assert progress.current_mission.kind == MissionKind.SWITCH_BETWEEN_PC_AND_ROUTER.value


def test_progress_caps_at_course_length():
    progress = MissionProgress(get_mission_set("server_course"))
    devices = [make_device("pc", "PC", "10.0.0.2"), make_device("pc2", "PC", "10.0.0.3"),
               make_device("sw", "SWITCH"), make_device("s", "SERVER", "10.0.0.1")]
    links = [make_link("pc", "sw"), make_link("pc2", "sw"), make_link("sw", "s")]
    snapshot = make_snapshot(devices, links)

    for _ in range(3):
        assert progress.advance(snapshot) is True
    assert progress.is_complete
    assert progress.current_mission is None
    assert progress.index == 3
    assert progress.advance(snapshot) is False
    assert progress.index == 3


def test_evaluate_mission_dispatches_on_kind():
    mission = get_mission_set("ip_master_course").missions[1]
    assert evaluate_mission(mission, make_snapshot([make_device("s", "SERVER", "1.1.1.1")]))
