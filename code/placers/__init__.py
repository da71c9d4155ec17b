from .essential_rooms import run_essential_room_placer
from .frontier_growth import run_frontier_growth_placer
from .corridor_fill import run_corridor_fill_placer

__all__ = [
    "run_essential_room_placer",
    "run_frontier_growth_placer",
    "run_corridor_fill_placer",
]
