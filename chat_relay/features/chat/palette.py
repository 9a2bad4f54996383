"""Fixed display color palette."""

from __future__ import annotations

import random
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence

DEFAULT_COLORS: tuple[str, ...] = (
    "#FF5733",  # coral red
    "#33FF57",  # bright green
    "#3357FF",  # electric blue
    "#FF33F5",  # magenta
    "#33FFF5",  # cyan
    "#FFD700",  # gold
    "#FF6B35",  # orange
    "#9B59B6",  # purple
    "#1ABC9C",  # turquoise
    "#E74C3C",  # red
)


class RandomSource(Protocol):
    """Anything that can pick one element of a sequence (e.g. ``random.Random``)."""

    def choice(self, seq: Sequence[str], /) -> str: ...


class ColorPalette:
    """Ordered, immutable set of display colors with uniform random selection.

    Two users may be given the same color; no distinctness is attempted.

    Args:
        rng: Source of randomness. Defaults to a fresh ``random.Random``;
            pass a seeded generator (or any object with ``choice``) for
            reproducible picks.
        colors: Palette entries. Defaults to the ten standard colors.
    """

    def __init__(
        self,
        rng: RandomSource | None = None,
        colors: Sequence[str] = DEFAULT_COLORS,
    ) -> None:
        if not colors:
            raise ValueError("palette needs at least one color")
        self._colors = tuple(colors)
        self._rng = rng or random.Random()

    @property
    def colors(self) -> tuple[str, ...]:
        return self._colors

    def pick(self) -> str:
        """Return one palette entry chosen uniformly at random."""
        return self._rng.choice(self._colors)

    def __len__(self) -> int:
        return len(self._colors)

    def __contains__(self, color: object) -> bool:
        return color in self._colors
