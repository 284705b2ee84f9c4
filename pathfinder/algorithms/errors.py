"""Exceptions raised by the terrain and search code."""


class PathfinderError(Exception):
    """Base class for every error raised by the pathfinder package."""


class ConfigurationError(PathfinderError, ValueError):
    """Start or goal missing (or outside the grid) when a search is run."""


class OutOfBoundsError(PathfinderError, IndexError):
    """A coordinate outside the grid reached the status map."""


class InvalidTransitionError(PathfinderError, RuntimeError):
    """A cell status change that the search never performs."""


class ReentrantSearchError(PathfinderError, RuntimeError):
    """compute_path() was called while the same engine was still searching."""


class TerrainError(PathfinderError, ValueError):
    """Malformed terrain input (empty or non-square height map, bad cost)."""
