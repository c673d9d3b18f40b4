"""Hex grid topology for Steam Tycoon.

The board uses an "odd-r" offset layout: pointy-top hexes where every odd
row is shoved half a hex to the right. Edges are numbered clockwise from
east.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Iterator


class HexEdge(IntEnum):
    """The six directions out of a hex, clockwise from east."""

    EAST = 0
    SOUTHEAST = 1
    SOUTHWEST = 2
    WEST = 3
    NORTHWEST = 4
    NORTHEAST = 5


EDGE_COUNT = 6

# (dcol, drow) per edge, indexed by row parity
EVEN_ROW_OFFSETS = ((1, 0), (0, 1), (-1, 1), (-1, 0), (-1, -1), (0, -1))
ODD_ROW_OFFSETS = ((1, 0), (1, 1), (0, 1), (-1, 0), (0, -1), (1, -1))


@dataclass(frozen=True, order=True)
class HexCoord:
    """Offset coordinate of a hex.

    Attributes:
        col: Column index.
        row: Row index.
    """

    col: int
    row: int

    @property
    def key(self) -> str:
        """Stable string key, e.g. ``"3,2"``."""
        return f"{self.col},{self.row}"

    @classmethod
    def from_key(cls, key: str) -> "HexCoord":
        """Parse a ``"col,row"`` key."""
        col, row = key.split(",")
        return cls(int(col), int(row))

    def __str__(self) -> str:
        return f"({self.col},{self.row})"


def as_coord(value: Any) -> HexCoord:
    """Coerce a coordinate-like value into a HexCoord.

    Accepts a HexCoord, a ``(col, row)`` pair, a ``{"col", "row"}`` mapping
    or a ``"col,row"`` string.

    Raises:
        ValueError: If the value cannot be read as a coordinate.
    """
    if isinstance(value, HexCoord):
        return value
    if isinstance(value, str):
        try:
            return HexCoord.from_key(value)
        except ValueError as e:
            raise ValueError(f"Invalid coordinate key: {value!r}") from e
    if isinstance(value, dict):
        try:
            return HexCoord(int(value["col"]), int(value["row"]))
        except (KeyError, TypeError) as e:
            raise ValueError(f"Invalid coordinate mapping: {value!r}") from e
    if isinstance(value, (tuple, list)) and len(value) == 2:
        try:
            return HexCoord(int(value[0]), int(value[1]))
        except TypeError as e:
            raise ValueError(f"Invalid coordinate pair: {value!r}") from e
    raise ValueError(f"Cannot interpret {value!r} as a hex coordinate")


def is_valid_edge(edge: int) -> bool:
    """Check whether a value names one of the six directions."""
    return isinstance(edge, int) and not isinstance(edge, bool) and 0 <= edge < EDGE_COUNT


def _check_edge(edge: int) -> None:
    if not is_valid_edge(edge):
        raise ValueError(f"Edge must be in 0..{EDGE_COUNT - 1}, got {edge!r}")


def opposite(edge: int) -> int:
    """Get the direction pointing back across an edge."""
    _check_edge(edge)
    return (edge + 3) % EDGE_COUNT


def neighbor(coord: HexCoord, edge: int) -> HexCoord:
    """Get the hex on the other side of an edge.

    Args:
        coord: Starting hex.
        edge: Direction 0-5.

    Returns:
        The adjacent coordinate (which may lie off the map).
    """
    _check_edge(edge)
    offsets = ODD_ROW_OFFSETS if coord.row % 2 else EVEN_ROW_OFFSETS
    dcol, drow = offsets[edge]
    return HexCoord(coord.col + dcol, coord.row + drow)


def neighbors(coord: HexCoord) -> Iterator[tuple[int, HexCoord]]:
    """Iterate ``(edge, neighbor)`` pairs in ascending edge order."""
    for edge in range(EDGE_COUNT):
        yield edge, neighbor(coord, edge)


def edge_between(a: HexCoord, b: HexCoord) -> int | None:
    """Get the edge of ``a`` that faces ``b``, or None if not adjacent."""
    for edge, other in neighbors(a):
        if other == b:
            return edge
    return None


def equal(a: HexCoord, b: HexCoord) -> bool:
    """Value equality of two coordinates."""
    return a.col == b.col and a.row == b.row
