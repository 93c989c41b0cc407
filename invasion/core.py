"""
Invasion - Core Data Structures and Simulation Engine

This module contains the entity model (cities, invaders and the world that owns
them) and the engine that places invaders, moves them along one-way roads and
resolves battles on a directed graph of named cities.
"""

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Set, Tuple, TypeVar, Union

from invasion.config import SimulationDefaults

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Direction(Enum):
    """Enumeration for the four road directions, in rendering order."""
    NORTH = "north"
    EAST = "east"
    SOUTH = "south"
    WEST = "west"


class DestructionCause(Enum):
    """Enumeration for the reasons a city gets destroyed."""
    BATTLE = "battle"
    DEAD_END = "dead_end"


class InvasionError(ValueError):
    """Base class for recoverable simulation errors."""


class MalformedMapLine(InvasionError):
    """
    Raised when a line of a map description cannot be parsed.

    Attributes:
        line_number: 1-based number of the offending line
        line: The offending line, without its trailing newline
    """

    def __init__(self, message: str, line_number: int = 0, line: str = ""):
        if line_number:
            message = f"line {line_number}: {message}: {line!r}"
        super().__init__(message)
        self.line_number = line_number
        self.line = line


class InvaderOverflow(InvasionError):
    """
    Raised when more invaders are requested than the cities can hold.

    Attributes:
        requested: Number of invaders that was asked for
        capacity: Number of invaders that could still be placed
    """

    def __init__(self, requested: int, capacity: int):
        super().__init__(f"too many invaders requested: {requested} "
                         f"(at most {capacity} can be placed)")
        self.requested = requested
        self.capacity = capacity


@dataclass
class Invader:
    """
    Represents a mobile invader.

    Attributes:
        name: Unique identifier for the invader
        location: Name of the city the invader currently stands in
        moves: Number of successful relocations so far
    """
    name: str
    location: str
    moves: int = 0

    def __post_init__(self):
        """Validate invader data after initialization."""
        if not self.name:
            raise ValueError("Invader name cannot be empty")
        if self.moves < 0:
            raise ValueError("Move count cannot be negative")


@dataclass
class City:
    """
    Represents a city in the invasion graph.

    Attributes:
        name: Unique identifier for the city
        roads: Destination city name for each outgoing direction
        invaders: Invaders currently located in the city, keyed by name
    """
    name: str
    roads: Dict[Direction, str] = field(default_factory=dict)
    invaders: Dict[str, Invader] = field(default_factory=dict)

    def __post_init__(self):
        """Validate city data after initialization."""
        if not self.name or any(c.isspace() for c in self.name):
            raise ValueError(f"Invalid city name {self.name!r}")

    @property
    def is_dead_end(self) -> bool:
        """Check if the city has no outgoing roads."""
        return not self.roads


# ===== EVENTS =====

@dataclass(frozen=True)
class InvaderPlaced:
    invader: str
    city: str


@dataclass(frozen=True)
class InvaderMoved:
    invader: str
    from_city: str
    to_city: str
    direction: Direction
    moves: int


@dataclass(frozen=True)
class InvaderRetired:
    invader: str
    city: str
    moves: int


@dataclass(frozen=True)
class CityDestroyed:
    city: str
    casualties: Tuple[str, ...]
    cause: DestructionCause


Event = Union[InvaderPlaced, InvaderMoved, InvaderRetired, CityDestroyed]


class World:
    """
    Owns the cities and invaders of one simulation run.

    Every invader listed in a city's invader map is also in the world's invader
    map with a matching location, and every road points at an existing city.
    """

    def __init__(self):
        """Initialize an empty world."""
        self.cities: Dict[str, City] = {}
        self.invaders: Dict[str, Invader] = {}
        # Reverse index: destination name -> {(source name, direction)}
        self._incoming: Dict[str, Set[Tuple[str, Direction]]] = {}

    def add_city(self, name: str) -> City:
        """
        Add a city without roads to the world.

        Args:
            name: Name of the new city

        Returns:
            The created city

        Raises:
            ValueError: If a city with this name already exists
        """
        if name in self.cities:
            raise ValueError(f"City {name} already exists")

        city = City(name)
        self.cities[name] = city
        self._incoming[name] = set()
        return city

    def get_city(self, name: str) -> City:
        if name not in self.cities:
            raise ValueError(f"City {name} doesn't exist")
        return self.cities[name]

    def get_invader(self, name: str) -> Invader:
        if name not in self.invaders:
            raise ValueError(f"Invader {name} doesn't exist")
        return self.invaders[name]

    def add_road(self, from_city: str, direction: Direction, to_city: str) -> None:
        """
        Add a one-way road between two cities.

        Args:
            from_city: Source city name
            direction: Direction of the road as seen from the source
            to_city: Destination city name

        Raises:
            ValueError: If either city doesn't exist or the direction is taken
        """
        source = self.get_city(from_city)
        if to_city not in self.cities:
            raise ValueError(f"Destination city {to_city} doesn't exist")
        if direction in source.roads:
            raise ValueError(f"City {from_city} already has a road {direction.value}")

        source.roads[direction] = to_city
        self._incoming[to_city].add((from_city, direction))

    def remove_road(self, from_city: str, direction: Direction) -> None:
        """
        Remove a one-way road.

        Raises:
            ValueError: If the road doesn't exist
        """
        source = self.get_city(from_city)
        if direction not in source.roads:
            raise ValueError(f"City {from_city} has no road {direction.value}")

        to_city = source.roads.pop(direction)
        self._incoming[to_city].discard((from_city, direction))

    def roads_into(self, name: str) -> List[Tuple[str, Direction]]:
        """Get the (source city, direction) pairs of all roads leading into a city."""
        self.get_city(name)
        return sorted(self._incoming[name], key=lambda road: (road[0], road[1].value))

    def add_invader(self, name: str, city_name: str) -> Invader:
        """
        Create an invader standing in the given city.

        Raises:
            ValueError: If the invader already exists or the city doesn't
        """
        if name in self.invaders:
            raise ValueError(f"Invader {name} already exists")
        city = self.get_city(city_name)

        invader = Invader(name, city_name)
        self.invaders[name] = invader
        city.invaders[name] = invader
        return invader

    def remove_invader(self, name: str) -> Invader:
        """Remove an invader from its city and from the world."""
        invader = self.get_invader(name)
        del self.cities[invader.location].invaders[name]
        del self.invaders[name]
        return invader

    def relocate_invader(self, name: str, to_city: str) -> Invader:
        """
        Move an invader to another city and count the move.

        Args:
            name: Name of the invader to move
            to_city: Name of the destination city

        Returns:
            The relocated invader

        Raises:
            ValueError: If the invader or the destination doesn't exist
        """
        invader = self.get_invader(name)
        destination = self.get_city(to_city)

        del self.cities[invader.location].invaders[name]
        invader.location = to_city
        destination.invaders[name] = invader
        invader.moves += 1
        return invader

    def destroy_city(self, name: str) -> List[Invader]:
        """
        Remove a city, kill the invaders inside it and sever every road into it.

        Args:
            name: Name of the city to destroy

        Returns:
            The invaders that were killed

        Raises:
            ValueError: If the city doesn't exist
        """
        city = self.get_city(name)

        casualties = list(city.invaders.values())
        for invader in casualties:
            del self.invaders[invader.name]
        city.invaders.clear()

        # Drop the city's own roads from the reverse index
        for direction in list(city.roads):
            self.remove_road(name, direction)

        # Sever incoming roads so nothing dangles
        for from_city, direction in self.roads_into(name):
            self.cities[from_city].roads.pop(direction, None)

        del self.cities[name]
        del self._incoming[name]
        return casualties

    def free_slots(self) -> int:
        """Get how many more invaders the cities can hold in total."""
        return sum(max(0, SimulationDefaults.MAX_OCCUPANCY - len(city.invaders))
                   for city in self.cities.values())

    def validate(self) -> None:
        """
        Check the bidirectional consistency of cities, roads and invaders.

        Raises:
            ValueError: On the first inconsistency found
        """
        for city in self.cities.values():
            for direction, to_city in city.roads.items():
                if to_city not in self.cities:
                    raise ValueError(f"Road {city.name} {direction.value}={to_city} dangles")
                if (city.name, direction) not in self._incoming[to_city]:
                    raise ValueError(f"Road {city.name} {direction.value}={to_city} is not indexed")
            for name, invader in city.invaders.items():
                if self.invaders.get(name) is not invader or invader.location != city.name:
                    raise ValueError(f"Invader {name} in {city.name} is out of sync")

        for name, invader in self.invaders.items():
            city = self.cities.get(invader.location)
            if city is None or city.invaders.get(name) is not invader:
                raise ValueError(f"Invader {name} is not in city {invader.location}")


class InvasionEngine:
    """
    Drives placement, movement and battles on a world.
    """

    def __init__(self, world: World, rng: Optional[random.Random] = None,
                 listener: Optional[Callable[[Event], None]] = None):
        """
        Initialize the engine.

        Args:
            world: The world to mutate
            rng: Random generator used to shuffle invaders, cities and roads.
                 If None, everything is visited in insertion order.
            listener: Optional callable receiving every event
        """
        self.world = world
        self.rng = rng
        self.listener = listener
        self._next_invader_id = 1

    def _emit(self, event: Event) -> None:
        if self.listener is not None:
            self.listener(event)

    def _ordered(self, items: List[T]) -> List[T]:
        if self.rng is not None:
            self.rng.shuffle(items)
        return items

    def _new_invader_name(self) -> str:
        while True:
            name = f"{SimulationDefaults.INVADER_NAME_PREFIX}-{self._next_invader_id}"
            self._next_invader_id += 1
            if name not in self.world.invaders:
                return name

    def seed_invaders(self, count: int) -> List[Invader]:
        """
        Place invaders in cities, at most two per city.

        Cities are visited in passes; each pass puts one invader in every city
        that still has room, until the requested count is reached.

        Args:
            count: Number of invaders to place

        Returns:
            The placed invaders, in placement order

        Raises:
            ValueError: If count is negative
            InvaderOverflow: If count exceeds 2 * number of cities, or the
                             free room left in the cities
        """
        if count < 0:
            raise ValueError("Invader count cannot be negative")

        capacity = SimulationDefaults.MAX_OCCUPANCY * len(self.world.cities)
        if count >= capacity + 1:
            raise InvaderOverflow(count, capacity)
        free = self.world.free_slots()
        if count > free:
            raise InvaderOverflow(count, free)

        placed: List[Invader] = []
        while len(placed) < count:
            for city in self._ordered(list(self.world.cities.values())):
                if len(city.invaders) >= SimulationDefaults.MAX_OCCUPANCY:
                    continue

                invader = self.world.add_invader(self._new_invader_name(), city.name)
                placed.append(invader)
                self._emit(InvaderPlaced(invader.name, city.name))
                if len(placed) >= count:
                    break

        logger.info(f"Placed {len(placed)} invaders in {len(self.world.cities)} cities")
        return placed

    def check_battles(self) -> List[str]:
        """
        Resolve a battle in every city that already holds two invaders.

        Returns:
            Names of the destroyed cities
        """
        destroyed = []
        for city in list(self.world.cities.values()):
            if city.name not in self.world.cities:
                continue
            if len(city.invaders) < SimulationDefaults.MAX_OCCUPANCY:
                continue
            if self.resolve_battle(city.name):
                destroyed.append(city.name)
        return destroyed

    def resolve_battle(self, city_name: str) -> bool:
        """
        Destroy a city if exactly two invaders meet there.

        Returns:
            True if the city was destroyed
        """
        city = self.world.get_city(city_name)
        occupants = len(city.invaders)
        if occupants == SimulationDefaults.MAX_OCCUPANCY:
            self.cleanup(city_name, DestructionCause.BATTLE)
            return True
        if occupants > SimulationDefaults.MAX_OCCUPANCY:
            logger.warning(f"City {city_name} holds {occupants} invaders, no battle resolved")
        return False

    def cleanup(self, city_name: str, cause: DestructionCause) -> CityDestroyed:
        """
        Destroy a city together with its invaders and every road leading into it.

        Args:
            city_name: Name of the city to destroy
            cause: Why the city is destroyed

        Returns:
            The emitted destruction event
        """
        casualties = self.world.destroy_city(city_name)
        event = CityDestroyed(city_name, tuple(i.name for i in casualties), cause)

        logger.info(f"City {city_name} destroyed ({cause.value}), "
                    f"casualties: {', '.join(event.casualties) or 'none'}")
        self._emit(event)
        return event

    def retire(self, invader_name: str) -> InvaderRetired:
        """Remove an invader that has used up its moves."""
        invader = self.world.remove_invader(invader_name)
        event = InvaderRetired(invader.name, invader.location, invader.moves)

        logger.info(f"Invader {invader.name} retired in {invader.location} after {invader.moves} moves")
        self._emit(event)
        return event

    def move_invader(self) -> bool:
        """
        Move a single invader along one road.

        Only one invader moves per call, so that two invaders cannot keep
        swapping places between two neighbouring cities. Invaders met on the
        way that are out of moves get retired, and invaders standing in a
        dead end get destroyed with their city; neither counts as a move.

        Returns:
            True if an invader moved, False otherwise
        """
        for invader in self._ordered(list(self.world.invaders.values())):
            # Killed earlier in this call
            if invader.name not in self.world.invaders:
                continue

            if invader.moves >= SimulationDefaults.MAX_MOVES:
                self.retire(invader.name)
                continue

            city = self.world.cities[invader.location]
            if city.is_dead_end:
                self.cleanup(city.name, DestructionCause.DEAD_END)
                continue

            for direction, to_city in self._ordered(list(city.roads.items())):
                destination = self.world.cities[to_city]
                if len(destination.invaders) >= SimulationDefaults.MAX_OCCUPANCY:
                    continue

                self.world.relocate_invader(invader.name, to_city)
                logger.debug(f"Invader {invader.name} moved {direction.value} "
                             f"from {city.name} to {to_city}")
                self._emit(InvaderMoved(invader.name, city.name, to_city, direction, invader.moves))

                if len(destination.invaders) >= SimulationDefaults.MAX_OCCUPANCY:
                    self.resolve_battle(to_city)
                return True

        return False
