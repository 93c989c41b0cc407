"""
Invasion - a simulation of mobile invaders roaming a directed city graph.
"""

from invasion.core import (
    City,
    CityDestroyed,
    DestructionCause,
    Direction,
    InvaderMoved,
    InvaderOverflow,
    InvaderPlaced,
    InvaderRetired,
    Invader,
    InvasionEngine,
    InvasionError,
    MalformedMapLine,
    World,
)
from invasion.mapio import dump_cities, format_city, load_map, load_map_from_file

__all__ = [
    "City",
    "CityDestroyed",
    "DestructionCause",
    "Direction",
    "Invader",
    "InvaderMoved",
    "InvaderOverflow",
    "InvaderPlaced",
    "InvaderRetired",
    "InvasionEngine",
    "InvasionError",
    "MalformedMapLine",
    "World",
    "dump_cities",
    "format_city",
    "load_map",
    "load_map_from_file",
]
