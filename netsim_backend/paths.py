"""
Connectivity and path resolution over the topology graph.

Connections are undirected; ``sourceId``/``targetId`` only record which end
was clicked first. Neighbour order always follows connection insertion order,
so every search below is deterministic for a given topology history.
"""
from __future__ import annotations
from collections import deque
from typing import Dict, List, Optional


# ─── Adjacency Helpers ───────────────────────────────────────────────────────

def find_link_between(a: str, b: str, links: List[dict]) -> Optional[dict]:
    """Returns the link between nodes a and b, or None if not found."""
    for link in links:
        if (link["sourceId"] == a and link["targetId"] == b) or \
           (link["sourceId"] == b and link["targetId"] == a):
            return link
    return None


def is_connected(links: List[dict], a: str, b: str) -> bool:
    """True iff a direct link exists between a and b."""
    return find_link_between(a, b, links) is not None


def get_neighbors(links: List[dict], node_id: str) -> List[str]:
    """Returns the ids directly linked to node_id, in link insertion order."""
    result = []
    for link in links:
        if link["sourceId"] == node_id:
            result.append(link["targetId"])
        elif link["targetId"] == node_id:
            result.append(link["sourceId"])
    return result


def build_adjacency(links: List[dict]) -> Dict[str, List[str]]:
    """Builds an adjacency list in a single pass over links."""
    adjacency: Dict[str, List[str]] = {}
    for link in links:
        a, b = link["sourceId"], link["targetId"]
        adjacency.setdefault(a, []).append(b)
        adjacency.setdefault(b, []).append(a)
    return adjacency


# ─── BFS ─────────────────────────────────────────────────────────────────────

def find_path(links: List[dict], start_id: str, end_id: str) -> Optional[List[str]]:
    """
    BFS shortest path between two nodes.

    Returns the ordered list of node ids from start_id to end_id inclusive,
    ``[start_id]`` when both are the same, or None when end_id is unreachable.
    """
    if start_id == end_id:
        return [start_id]

    adjacency = build_adjacency(links)
    parents: Dict[str, Optional[str]] = {start_id: None}
    queue = deque([start_id])
    while queue:
        current = queue.popleft()
        for neighbor in adjacency.get(current, []):
            if neighbor in parents:
                continue
            parents[neighbor] = current
            if neighbor == end_id:
                path = [neighbor]
                while parents[path[-1]] is not None:
                    path.append(parents[path[-1]])
                path.reverse()
                return path
            queue.append(neighbor)
    return None


def get_reachable(links: List[dict], source_id: str) -> List[str]:
    """Returns every id reachable from source_id (excluding itself), in BFS order."""
    adjacency = build_adjacency(links)
    visited = {source_id}
    queue = deque([source_id])
    reachable_ids = []
    while queue:
        current = queue.popleft()
        for neighbor in adjacency.get(current, []):
            if neighbor not in visited:
                visited.add(neighbor)
                reachable_ids.append(neighbor)
                queue.append(neighbor)
    return reachable_ids
