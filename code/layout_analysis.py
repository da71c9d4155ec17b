"""Graph views of a finished layout, used by the CLI report and the benchmark."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

import networkx as nx

from level_layout import LevelLayout


def build_room_graph(layout: LevelLayout) -> nx.Graph:
    """Rooms as nodes, connected exit pairs as edges."""
    graph = nx.Graph()
    for room in layout.rooms:
        graph.add_node(room.index, template=room.template.name, kind=room.kind.value)

    for room in layout.rooms:
        for link in room.connections.values():
            graph.add_edge(room.index, link.room_index)
    return graph


@dataclass
class ConnectivitySummary:
    room_count: int
    component_count: int
    largest_component_fraction: float
    cycle_count: int
    cycle_lengths: List[int]
    graph_diameter: int
    essentials_connected: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "room_count": self.room_count,
            "component_count": self.component_count,
            "largest_component_fraction": self.largest_component_fraction,
            "cycle_count": self.cycle_count,
            "cycle_lengths": list(self.cycle_lengths),
            "graph_diameter": self.graph_diameter,
            "essentials_connected": self.essentials_connected,
        }


def summarize_connectivity(layout: LevelLayout) -> ConnectivitySummary:
    graph = build_room_graph(layout)
    room_count = graph.number_of_nodes()
    if room_count == 0:
        return ConnectivitySummary(0, 0, 0.0, 0, [], 0, True)

    components = list(nx.connected_components(graph))
    largest = max(components, key=len)
    cycle_lengths = [len(cycle) for cycle in nx.cycle_basis(graph)]

    graph_diameter = 0
    if len(largest) >= 2:
        graph_diameter = int(nx.diameter(graph.subgraph(largest)))

    essential_nodes = {room.index for room in layout.rooms if room.is_essential}
    essentials_connected = any(essential_nodes <= component for component in components) or not essential_nodes

    return ConnectivitySummary(
        room_count=room_count,
        component_count=len(components),
        largest_component_fraction=len(largest) / room_count,
        cycle_count=len(cycle_lengths),
        cycle_lengths=cycle_lengths,
        graph_diameter=graph_diameter,
        essentials_connected=essentials_connected,
    )
