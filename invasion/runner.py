"""
Simulation driver and command line entry point for Invasion.
"""

import argparse
import logging
import random
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, TextIO

from invasion.config import LogConfig, SimulationDefaults
from invasion.core import (CityDestroyed, Event, InvaderPlaced, InvaderRetired,
                           InvasionEngine, World)
from invasion.mapio import dump_cities, load_map_from_file

logger = logging.getLogger(__name__)


class TextRenderer:
    """Writes the human-readable account of a run to a text stream."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream if stream is not None else sys.stdout

    def __call__(self, event: Event) -> None:
        if isinstance(event, InvaderPlaced):
            self.stream.write(f"{event.invader} has invaded {event.city}!\n")
        elif isinstance(event, CityDestroyed):
            names = "".join(f"{name} " for name in event.casualties)
            self.stream.write(f"{names}are dead. {event.city} is destroyed!\n")

    def announce_end(self, world: World) -> None:
        """Report that nobody can move anymore and dump the surviving cities."""
        self.stream.write("nobody moved! exiting...\n")
        dump_cities(world, self.stream)


@dataclass
class SimulationSummary:
    """
    Outcome of a simulation run.

    Attributes:
        moves: Number of successful invader moves
        destroyed: Names of destroyed cities, in destruction order
        retired: Names of invaders retired at the move cap
        survivors: Names of the cities left standing
    """
    moves: int = 0
    destroyed: List[str] = field(default_factory=list)
    retired: List[str] = field(default_factory=list)
    survivors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "moves": self.moves,
            "destroyed": list(self.destroyed),
            "retired": list(self.retired),
            "survivors": list(self.survivors),
        }


class Simulation:
    """
    Owns a world for the duration of one run and drives the engine over it.
    """

    def __init__(self, world: World, renderer: Optional[TextRenderer] = None,
                 rng: Optional[random.Random] = None):
        """
        Initialize the simulation.

        Args:
            world: The world to invade
            renderer: Where placement, destruction and the final map are written
            rng: Random generator for selection order, None for insertion order
        """
        self.world = world
        self.renderer = renderer or TextRenderer()
        self.summary = SimulationSummary()
        self.engine = InvasionEngine(world, rng=rng, listener=self._on_event)

    def _on_event(self, event: Event) -> None:
        if isinstance(event, CityDestroyed):
            self.summary.destroyed.append(event.city)
        elif isinstance(event, InvaderRetired):
            self.summary.retired.append(event.invader)
        self.renderer(event)

    def seed(self, count: int) -> None:
        self.engine.seed_invaders(count)

    def run(self) -> SimulationSummary:
        """
        Run until no invader moves, then report the surviving cities.

        Returns:
            Summary of the run

        Raises:
            ValueError: If the world is out of sync before the run starts
        """
        self.world.validate()
        self.engine.check_battles()

        while self.engine.move_invader():
            self.summary.moves += 1

        self.renderer.announce_end(self.world)
        self.summary.survivors = list(self.world.cities)

        logger.info(f"Simulation ended: {self.summary.to_dict()}")
        return self.summary


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Simulate an invasion of a city map")
    parser.add_argument(
        "-n", "--invaders", type=int, default=SimulationDefaults.INVADER_COUNT,
        help="number of invaders to place",
    )
    parser.add_argument(
        "-map", "--map", dest="map_file", default=SimulationDefaults.MAP_FILE,
        help="file to use for the map definition",
    )
    parser.add_argument(
        "--seed", type=int, default=None,
        help="seed for the random selection order",
    )
    parser.add_argument(
        "--log-level", default=LogConfig.LEVEL, choices=LogConfig.LEVELS,
        help="logging level for diagnostics on stderr",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format=LogConfig.FORMAT)

    try:
        world = load_map_from_file(args.map_file)
        simulation = Simulation(world, rng=random.Random(args.seed))
        simulation.seed(args.invaders)
    except (OSError, ValueError) as e:
        logger.error(f"Cannot start invasion: {e}")
        return 1

    simulation.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
