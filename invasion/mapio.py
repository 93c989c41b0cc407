"""
Map description loading and formatting.

A map is one line per city:

    foo north=bar west=baz south=qu-ux
    bar south=foo west=bee

Formatting a world produces the same format, so the surviving cities of a
run can be loaded again as a fresh map.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, TextIO, Tuple, Union

from invasion.config import MapConfig
from invasion.core import City, Direction, MalformedMapLine, World

logger = logging.getLogger(__name__)


def parse_map_line(line: str, line_number: int = 0) -> Tuple[str, Dict[Direction, str]]:
    """
    Parse a single map line.

    Args:
        line: A line such as "foo north=bar east=baz"
        line_number: 1-based position of the line, used in error messages

    Returns:
        Tuple of (city name, destination per direction)

    Raises:
        MalformedMapLine: If the line has fewer than two tokens, an empty token
                          from a doubled or trailing space, a road token
                          is not "direction=destination", the direction is not
                          one of north/east/south/west or is repeated
    """
    tokens = line.split(MapConfig.TOKEN_SEPARATOR)
    if len(tokens) < MapConfig.MIN_TOKENS:
        raise MalformedMapLine("not enough data: define a city name and at least one road",
                               line_number, line)
    if not all(tokens):
        raise MalformedMapLine("empty token: separate names and roads with single spaces",
                               line_number, line)

    name, road_tokens = tokens[0], tokens[1:]
    if MapConfig.ROAD_SEPARATOR in name or any(c.isspace() for c in name):
        raise MalformedMapLine("invalid city name", line_number, line)

    roads: Dict[Direction, str] = {}
    for token in road_tokens:
        parts = token.split(MapConfig.ROAD_SEPARATOR)
        if len(parts) != 2 or not parts[1] or any(c.isspace() for c in parts[1]):
            raise MalformedMapLine(f"invalid road {token!r}: expected direction=city",
                                   line_number, line)

        try:
            direction = Direction(parts[0])
        except ValueError:
            raise MalformedMapLine("invalid direction: must use either north, west, south, or east",
                                   line_number, line) from None

        if direction in roads:
            raise MalformedMapLine(f"direction {direction.value} used more than once",
                                   line_number, line)
        roads[direction] = parts[1]

    return name, roads


def load_map(lines: Iterable[str]) -> World:
    """
    Build a world from map lines.

    Destinations that are never declared on a line of their own become
    cities without roads.

    Args:
        lines: Map lines, with or without trailing newlines. Blank lines are malformed.

    Returns:
        The loaded world, without invaders

    Raises:
        MalformedMapLine: If a line cannot be parsed or a city is declared twice
    """
    declared: List[Tuple[str, Dict[Direction, str]]] = []
    seen = set()
    for line_number, raw in enumerate(lines, start=1):
        line = raw.rstrip("\r\n")
        name, roads = parse_map_line(line, line_number)
        if name in seen:
            raise MalformedMapLine(f"city {name} is declared more than once", line_number, line)
        seen.add(name)
        declared.append((name, roads))

    world = World()
    for name, _ in declared:
        world.add_city(name)

    # Create implicit cities first so every road has an existing destination
    for name, roads in declared:
        for to_city in roads.values():
            if to_city not in world.cities:
                logger.debug(f"City {to_city} is only reachable from {name}, adding it without roads")
                world.add_city(to_city)

    for name, roads in declared:
        for direction, to_city in roads.items():
            world.add_road(name, direction, to_city)

    logger.info(f"Loaded {len(world.cities)} cities ({len(declared)} declared)")
    return world


def load_map_from_file(path: Union[str, Path]) -> World:
    """
    Load a world from a map file.

    Raises:
        OSError: If the file cannot be read
        MalformedMapLine: If the file contents cannot be parsed
    """
    with open(path, "r", encoding="utf-8") as f:
        return load_map(f)


def format_city(city: City) -> str:
    """Format a city as a map line, with roads in north, east, south, west order."""
    parts = [city.name]
    for direction in Direction:
        if direction in city.roads:
            parts.append(f"{direction.value}{MapConfig.ROAD_SEPARATOR}{city.roads[direction]}")
    return MapConfig.TOKEN_SEPARATOR.join(parts)


def dump_cities(world: World, stream: TextIO) -> None:
    """Write every city of the world to a stream, one map line each."""
    for city in world.cities.values():
        stream.write(format_city(city) + "\n")
