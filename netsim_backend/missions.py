"""
Mission rule engine.

Each mission names a ``MissionKind``; ``MISSION_EVALUATORS`` maps every kind to
a pure function over a ``Snapshot``. Evaluators check static topology
(existence, types, addressing, connectivity) and, where a mission asks the
learner to actually send traffic, the evidence flags set by the packet clock.
Correct configuration alone never satisfies a flag-gated mission.
"""
from __future__ import annotations
from enum import Enum
from typing import Callable, Dict, List, Optional

from .addressing import DEFAULT_SUBNET_MASK, is_in_same_subnet, is_private_ip, is_valid_ip
from .models import Mission, MissionSet, Snapshot
from .paths import find_path, is_connected


class MissionKind(str, Enum):
    PLACE_PC_AND_ROUTER = "PLACE_PC_AND_ROUTER"
    SWITCH_BETWEEN_PC_AND_ROUTER = "SWITCH_BETWEEN_PC_AND_ROUTER"
    PC_AND_ROUTER_ADDRESSED = "PC_AND_ROUTER_ADDRESSED"
    PING_SUCCESS = "PING_SUCCESS"
    ENCRYPTED_TRAFFIC = "ENCRYPTED_TRAFFIC"
    PRIVATE_LAN = "PRIVATE_LAN"
    GLOBAL_SERVER = "GLOBAL_SERVER"
    ROUTED_TO_GLOBAL = "ROUTED_TO_GLOBAL"
    STAR_LAN = "STAR_LAN"
    SAME_SUBNET_LAN = "SAME_SUBNET_LAN"
    ROUTER_AND_ONU_UPLINK = "ROUTER_AND_ONU_UPLINK"
    DEFAULT_GATEWAY = "DEFAULT_GATEWAY"
    SERVER_STATIC_IP = "SERVER_STATIC_IP"
    CLIENT_VIA_SWITCH = "CLIENT_VIA_SWITCH"
    MULTIPLE_CLIENTS = "MULTIPLE_CLIENTS"


Evaluator = Callable[[Snapshot], bool]

MISSION_NOT_MET = "The conditions are not met yet. Check the hint."


# ─── Snapshot Helpers ─────────────────────────────────────────────────────────

def _first(snapshot: Snapshot, device_type: str, where=None) -> Optional[dict]:
    return next((d for d in snapshot.devices
                 if d["type"] == device_type and (where is None or where(d))), None)


def _all(snapshot: Snapshot, device_type: str) -> List[dict]:
    return [d for d in snapshot.devices if d["type"] == device_type]


def _linked(snapshot: Snapshot, a: dict, b: dict) -> bool:
    return is_connected(snapshot.connections, a["id"], b["id"])


def _path(snapshot: Snapshot, a: dict, b: dict) -> Optional[List[str]]:
    return find_path(snapshot.connections, a["id"], b["id"])


def _same_subnet(a: dict, b: dict) -> bool:
    return is_in_same_subnet(a["ip"], b["ip"], a.get("subnetMask") or DEFAULT_SUBNET_MASK)


# ─── Evaluators ───────────────────────────────────────────────────────────────

def place_pc_and_router(snapshot: Snapshot) -> bool:
    return _first(snapshot, "PC") is not None and _first(snapshot, "ROUTER") is not None


def switch_between_pc_and_router(snapshot: Snapshot) -> bool:
    sw = _first(snapshot, "SWITCH")
    pc = _first(snapshot, "PC")
    router = _first(snapshot, "ROUTER")
    if not sw or not pc or not router:
        return False
    # a direct PC-router cable defeats the purpose of the switch
    if _linked(snapshot, pc, router):
        return False
    return _linked(snapshot, pc, sw) and _linked(snapshot, router, sw)


def pc_and_router_addressed(snapshot: Snapshot) -> bool:
    pc = _first(snapshot, "PC")
    router = _first(snapshot, "ROUTER")
    if not pc or not router:
        return False
    return is_valid_ip(pc["ip"]) and is_valid_ip(router["ip"]) and pc["ip"] != router["ip"]


def ping_success(snapshot: Snapshot) -> bool:
    return pc_and_router_addressed(snapshot) and snapshot.flags.pingSuccess


def encrypted_traffic(snapshot: Snapshot) -> bool:
    return snapshot.flags.encryptedSuccess


def private_lan(snapshot: Snapshot) -> bool:
    pc = _first(snapshot, "PC")
    router = _first(snapshot, "ROUTER")
    if not pc or not router:
        return False
    return (_path(snapshot, pc, router) is not None
            and is_private_ip(pc["ip"]) and is_private_ip(router["ip"]))


def global_server(snapshot: Snapshot) -> bool:
    server = _first(snapshot, "SERVER")
    if not server:
        return False
    return is_valid_ip(server["ip"]) and not is_private_ip(server["ip"])


def routed_to_global(snapshot: Snapshot) -> bool:
    pc = _first(snapshot, "PC", lambda d: is_private_ip(d["ip"]))
    server = _first(snapshot, "SERVER", lambda d: is_valid_ip(d["ip"]) and not is_private_ip(d["ip"]))
    router = _first(snapshot, "ROUTER")
    if not pc or not server or not router:
        return False
    path = _path(snapshot, pc, server)
    return path is not None and router["id"] in path


def star_lan(snapshot: Snapshot) -> bool:
    pcs = _all(snapshot, "PC")
    printers = _all(snapshot, "PRINTER")
    switches = _all(snapshot, "SWITCH")
    if len(pcs) < 2 or not printers or not switches:
        return False
    sw = switches[0]
    return all(_linked(snapshot, dev, sw) for dev in pcs + printers)


def same_subnet_lan(snapshot: Snapshot) -> bool:
    pcs = _all(snapshot, "PC")
    printers = _all(snapshot, "PRINTER")
    if not pcs or not printers:
        return False
    members = pcs + printers
    if not all(is_valid_ip(d["ip"]) for d in members):
        return False
    base = pcs[0]
    if not all(_same_subnet(base, d) for d in members):
        return False
    return _path(snapshot, base, printers[0]) is not None


def router_and_onu_uplink(snapshot: Snapshot) -> bool:
    router = _first(snapshot, "ROUTER")
    onu = _first(snapshot, "ONU")
    sw = _first(snapshot, "SWITCH")
    if not router or not onu or not sw:
        return False
    if _linked(snapshot, sw, onu):
        return False
    return _linked(snapshot, sw, router) and _linked(snapshot, router, onu)


def default_gateway(snapshot: Snapshot) -> bool:
    router = _first(snapshot, "ROUTER")
    pc = _first(snapshot, "PC")
    if not router or not pc:
        return False
    if not is_valid_ip(router["ip"]) or not _same_subnet(pc, router):
        return False
    return _path(snapshot, pc, router) is not None


def server_static_ip(snapshot: Snapshot) -> bool:
    server = _first(snapshot, "SERVER")
    return server is not None and is_valid_ip(server["ip"])


def client_via_switch(snapshot: Snapshot) -> bool:
    pc = _first(snapshot, "PC")
    server = _first(snapshot, "SERVER")
    sw = _first(snapshot, "SWITCH")
    if not pc or not server or not sw:
        return False
    if _linked(snapshot, pc, server):
        return False
    valid_ips = is_valid_ip(pc["ip"]) and is_valid_ip(server["ip"]) and _same_subnet(pc, server)
    return valid_ips and _path(snapshot, pc, server) is not None


def multiple_clients(snapshot: Snapshot) -> bool:
    pcs = _all(snapshot, "PC")
    server = _first(snapshot, "SERVER")
    if len(pcs) < 2 or not server:
        return False
    return all(
        is_valid_ip(pc["ip"]) and _same_subnet(pc, server) and _path(snapshot, pc, server) is not None
        for pc in pcs
    )


MISSION_EVALUATORS: Dict[MissionKind, Evaluator] = {
    MissionKind.PLACE_PC_AND_ROUTER: place_pc_and_router,
    MissionKind.SWITCH_BETWEEN_PC_AND_ROUTER: switch_between_pc_and_router,
    MissionKind.PC_AND_ROUTER_ADDRESSED: pc_and_router_addressed,
    MissionKind.PING_SUCCESS: ping_success,
    MissionKind.ENCRYPTED_TRAFFIC: encrypted_traffic,
    MissionKind.PRIVATE_LAN: private_lan,
    MissionKind.GLOBAL_SERVER: global_server,
    MissionKind.ROUTED_TO_GLOBAL: routed_to_global,
    MissionKind.STAR_LAN: star_lan,
    MissionKind.SAME_SUBNET_LAN: same_subnet_lan,
    MissionKind.ROUTER_AND_ONU_UPLINK: router_and_onu_uplink,
    MissionKind.DEFAULT_GATEWAY: default_gateway,
    MissionKind.SERVER_STATIC_IP: server_static_ip,
    MissionKind.CLIENT_VIA_SWITCH: client_via_switch,
    MissionKind.MULTIPLE_CLIENTS: multiple_clients,
}


def evaluate_mission(mission: Mission, snapshot: Snapshot) -> bool:
    return bool(MISSION_EVALUATORS[MissionKind(mission.kind)](snapshot))


# ─── Courses ──────────────────────────────────────────────────────────────────

def _mission(mission_id: int, kind: MissionKind, title: str, description: str,
             hint: str, explanation: str) -> Mission:
    return Mission(id=mission_id, kind=kind.value, title=title, description=description,
                   hint=hint, explanation=explanation)


MISSION_SETS: List[MissionSet] = [
    MissionSet(
        id="basic_course",
        title="Networking Basics",
        description="Learn device roles, IP addressing, ping and encryption step by step.",
        level="★☆☆",
        missions=[
            _mission(
                1, MissionKind.PLACE_PC_AND_ROUTER,
                "Place your first devices",
                "Place one PC and one router on the canvas.",
                "Drag the icons from the device list. These two are all you need for now.",
                "A network is made of end hosts (PCs) and network equipment. A router joins "
                "different networks together.",
            ),
            _mission(
                2, MissionKind.SWITCH_BETWEEN_PC_AND_ROUTER,
                "Connect through a switch",
                "Add a switch and connect the PC and the router through it.",
                "Layout: [PC] - [Switch] - [Router]. Do not cable the PC straight to the router; "
                "if you did, remove that cable from the connection list.",
                "PCs normally plug into a switch rather than the router. The switch adds LAN "
                "ports and forwards frames efficiently.",
            ),
            _mission(
                3, MissionKind.PC_AND_ROUTER_ADDRESSED,
                "Assign IP addresses",
                "Give the PC and the router valid, distinct IP addresses.",
                "Select a device and enter its IP in the inspector, e.g. router 192.168.1.1, "
                "PC 192.168.1.2.",
                "An IP address is a device's address on the network. Devices on the same LAN "
                "share the network part (e.g. 192.168.1).",
            ),
            _mission(
                4, MissionKind.PING_SUCCESS,
                "Connectivity test (ping)",
                "Send a ping from the PC to the router and let it get through.",
                "Configuration alone is not enough. Select the PC, enter the router's IP in the "
                "ping box, press run and watch the packet travel.",
                "Ping is the basic reachability check. A correct configuration can still fail "
                "because of firewalls or broken cables, so engineers confirm traffic really flows.",
            ),
            _mission(
                5, MissionKind.ENCRYPTED_TRAFFIC,
                "Encrypted communication",
                "Turn encryption on, then ping again or watch the key exchange.",
                "Flipping the switch is not enough. With encryption on, send traffic and watch "
                "the key exchange happen.",
                "Data crossing public networks can be intercepted. Encrypting it, for example "
                "with TLS, keeps its content secret.",
            ),
        ],
    ),
    MissionSet(
        id="ip_master_course",
        title="IP Address Master",
        description="Understand private and global addresses and how traffic reaches the internet.",
        level="★★★",
        missions=[
            _mission(
                1, MissionKind.PRIVATE_LAN,
                "The private address world",
                "Place a PC and a router, give both addresses starting with 192.168 and connect them.",
                "For example PC 192.168.1.10 and router 192.168.1.1, ideally with a switch in between.",
                "Private ranges such as 192.168.x.x are free to use inside homes and schools. They "
                "are reused everywhere but never leave the LAN.",
            ),
            _mission(
                2, MissionKind.GLOBAL_SERVER,
                "The global address world",
                "Place a server and give it a non-private address such as 8.8.8.8.",
                "Use anything outside 10.x.x.x, 172.16-31.x.x and 192.168.x.x.",
                "Global addresses are unique worldwide. Servers and websites on the internet "
                "always have one.",
            ),
            _mission(
                3, MissionKind.ROUTED_TO_GLOBAL,
                "Relaying through a router",
                "Connect the private PC to the global server so that the route passes the router.",
                "Layout: PC (private) - switch - router - server (global).",
                "A PC with a private address reaches the internet through the router's NAT, "
                "which rewrites addresses on the way out.",
            ),
        ],
    ),
    MissionSet(
        id="soho_course",
        title="Small Office Network",
        description="Build an office LAN with several hosts and a printer, then connect it to the internet.",
        level="★★☆",
        missions=[
            _mission(
                1, MissionKind.STAR_LAN,
                "Office cabling (star topology)",
                "Place two PCs, one printer and one switch, and connect everything to the switch.",
                "Do not cable devices to each other; gather every cable at the switch.",
                "Modern LANs are star shaped around a switch. One broken cable only affects "
                "one device.",
            ),
            _mission(
                2, MissionKind.SAME_SUBNET_LAN,
                "One subnet for everyone",
                "Give every device an address in the same network (e.g. 192.168.1.x) and ping "
                "the printer from a PC.",
                "Keep the first three octets identical: 192.168.1.10, 192.168.1.11, 192.168.1.20.",
                "Without a router only devices in the same subnet can talk. Departments usually "
                "get a subnet each.",
            ),
            _mission(
                3, MissionKind.ROUTER_AND_ONU_UPLINK,
                "Internet uplink equipment",
                "Add a router and an ONU and connect them in the order switch - router - ONU.",
                "The ONU terminates the fibre line. Chain [Switch] - [Router] - [ONU].",
                "The ONU converts optical signals to electrical ones and the router decides the "
                "route to the internet. You need both.",
            ),
            _mission(
                4, MissionKind.DEFAULT_GATEWAY,
                "The default gateway",
                "Give the router an address and ping it from a PC.",
                "Put the router in the PC's subnet (e.g. 192.168.1.254). It becomes the PC's "
                "way out.",
                "When a PC talks to another network it sends the traffic to its default gateway, "
                "normally the router's LAN address.",
            ),
        ],
    ),
    MissionSet(
        id="server_course",
        title="Intro to Servers",
        description="Build the relationship between a server that provides a service and its clients.",
        level="★★☆",
        missions=[
            _mission(
                1, MissionKind.SERVER_STATIC_IP,
                "Set up the server",
                "Place a server and give it a fixed IP address (e.g. 10.0.0.1).",
                "Servers are configured by hand so that their address never changes.",
                "Clients have to find the server, so it gets a static address instead of a "
                "changing one.",
            ),
            _mission(
                2, MissionKind.CLIENT_VIA_SWITCH,
                "Client connection",
                "Add a switch and a PC and connect them as PC - switch - server.",
                "Do not cable the PC straight to the server; go through the switch.",
                "Clients send requests and servers send responses. A switch in between leaves "
                "room for more clients.",
            ),
            _mission(
                3, MissionKind.MULTIPLE_CLIENTS,
                "More clients",
                "Add another PC so that both PCs have a route to the server.",
                "Plug it into a free switch port and avoid duplicate IP addresses.",
                "A switch lets you add devices as long as ports remain, and one server can "
                "serve many clients.",
            ),
        ],
    ),
]


def get_mission_set(set_id: str) -> Optional[MissionSet]:
    return next((s for s in MISSION_SETS if s.id == set_id), None)


# ─── Progress ─────────────────────────────────────────────────────────────────

class MissionProgress:
    """Tracks the current position within one MissionSet."""

    def __init__(self, mission_set: MissionSet):
        self.mission_set = mission_set
        self.index = 0

    @property
    def is_complete(self) -> bool:
        return self.index >= len(self.mission_set.missions)

    @property
    def current_mission(self) -> Optional[Mission]:
        if self.is_complete:
            return None
        return self.mission_set.missions[self.index]

    def check_current(self, snapshot: Snapshot) -> bool:
        mission = self.current_mission
        if mission is None:
            return False
        return evaluate_mission(mission, snapshot)

    def advance(self, snapshot: Snapshot) -> bool:
        """
        Moves to the next mission if the current one passes against
        ``snapshot``. The index never exceeds the number of missions.
        """
        if not self.check_current(snapshot):
            return False
        self.index = min(self.index + 1, len(self.mission_set.missions))
        return True
