"""Error taxonomy shared by the terrain core."""
from __future__ import annotations

from typing import Optional


class TerrainError(Exception):
    """Base class for every error raised or recorded by the terrain core."""


class InvalidConfiguration(TerrainError, ValueError):
    """Raised when tuning constants cannot produce a valid world.

    These are fatal at startup; nothing in the per-chunk path recovers from them.
    """


class GenerationFailure(TerrainError):
    """Wraps an exception raised while building a single chunk.

    The assembler never raises this to its caller. It is attached to the flat
    fallback grid so downstream collaborators can inspect what went wrong.
    """

    def __init__(self, coord: object, cause: BaseException) -> None:
        super().__init__(f"terrain generation failed for chunk {coord}: {cause!r}")
        self.coord = coord
        self.cause = cause


class CacheInconsistency(TerrainError):
    """Describes a cached border value that disagrees with newly resolved data.

    The cached value always wins; instances are logged and collected rather
    than raised, since overwriting could break an already built neighbour.
    """

    def __init__(
        self,
        coord: object,
        slot: str,
        cached: float,
        incoming: float,
        index: Optional[int] = None,
    ) -> None:
        location = slot if index is None else f"{slot}[{index}]"
        super().__init__(
            f"chunk {coord} {location}: cached {cached!r} disagrees with {incoming!r}"
        )
        self.coord = coord
        self.slot = slot
        self.cached = cached
        self.incoming = incoming
        self.index = index

    @property
    def delta(self) -> float:
        return abs(self.cached - self.incoming)


__all__ = [
    "TerrainError",
    "InvalidConfiguration",
    "GenerationFailure",
    "CacheInconsistency",
]
