# ===== SIMULATION DEFAULTS =====
class SimulationDefaults:
    """Default settings for a simulation run."""

    # CLI defaults
    INVADER_COUNT = 3
    MAP_FILE = "map.txt"

    # An invader is retired once it has made this many moves
    MAX_MOVES = 10_000

    # Two invaders in one city start a battle
    MAX_OCCUPANCY = 2

    # Invaders are named "<prefix>-<k>"
    INVADER_NAME_PREFIX = "invader"


# ===== MAP FORMAT =====
class MapConfig:
    """Map description format settings."""

    # "<city> <direction>=<destination> ..."
    TOKEN_SEPARATOR = " "
    ROAD_SEPARATOR = "="
    MIN_TOKENS = 2


# ===== LOGGING =====
class LogConfig:
    """Logging settings used by the command line entry point."""

    FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
    LEVEL = "WARNING"
    LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]
