"""Exception types raised by the simulation core."""


class AOCError(Exception):
    """Base class for all py-aoc errors."""


class GenerationConfigError(AOCError):
    """World generation cannot satisfy its configuration.

    Raised, for example, when no region contains a habitable tile for a
    faction capital. Generation builds into a fresh state, so nothing is
    left half-built when this is raised.
    """


class SnapshotLoadError(AOCError):
    """A saved snapshot could not be parsed or is internally inconsistent."""
