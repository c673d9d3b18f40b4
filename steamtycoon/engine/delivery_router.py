"""Delivery path finding for Steam Tycoon.

Goods travel from the city their display column feeds, along track segments,
to a city of the cube's color. A link is one hex-to-hex traversal.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from steamtycoon.models.tile import Board

from steamtycoon.errors import Rejection, RejectionReason
from steamtycoon.models.hex import HexCoord, neighbor, opposite
from steamtycoon.models.map_descriptor import CubeColor

ALL_EDGES = tuple(range(6))


@dataclass(frozen=True)
class DeliveryPath:
    """A route a cube can take.

    Attributes:
        hexes: Every hex visited, origin city first, destination city last.
        link_owners: Owner credited for each link, in travel order.
        destination: Name of the receiving city.
        player_id: Player the path was found for.
    """

    hexes: tuple[HexCoord, ...]
    link_owners: tuple[str | None, ...]
    destination: str
    player_id: str

    @property
    def link_count(self) -> int:
        return len(self.hexes) - 1

    @property
    def own_links(self) -> int:
        return sum(1 for owner in self.link_owners if owner == self.player_id)

    @property
    def foreign_links(self) -> int:
        return self.link_count - self.own_links

    def to_dict(self) -> dict:
        return {
            "hexes": [coord.key for coord in self.hexes],
            "link_owners": list(self.link_owners),
            "destination": self.destination,
            "links": self.link_count,
            "foreign_links": self.foreign_links,
        }


def find_delivery_paths(
    origin: HexCoord,
    cube_color: CubeColor,
    board: "Board",
    player_id: str,
    max_links: int,
    allow_foreign: bool = False,
) -> Iterator[DeliveryPath]:
    """Enumerate every simple delivery path for a cube.

    Exploration is depth first in ascending edge order, so the first path
    yielded is the default choice. Cities on the way are passed through;
    the first city of the cube's color ends the path, so a cube never passes
    a city that would accept it.

    Args:
        origin: City the cube leaves from.
        cube_color: Color of the cube.
        board: The board.
        player_id: Player making the delivery.
        max_links: Most links the delivery may use.
        allow_foreign: Whether rival or unowned track may be used.

    Yields:
        DeliveryPath objects, never revisiting a hex, never over max_links.
    """
    if not board.is_city(origin) or max_links <= 0:
        return

    hexes: list[HexCoord] = [origin]
    owners: list[str | None] = []
    visited = {origin}

    def usable(owner: str | None) -> bool:
        return owner == player_id or allow_foreign

    def extend(current: HexCoord, exits: tuple[int, ...], exit_owner: str | None) -> Iterator[DeliveryPath]:
        if len(owners) >= max_links:
            return
        for edge in exits:
            adjacent = neighbor(current, edge)
            if adjacent in visited:
                continue
            city = board.city_at(adjacent)
            if city is not None:
                # cities only meet through track; the link is credited to
                # the segment being left
                if board.is_city(current):
                    continue
                hexes.append(adjacent)
                owners.append(exit_owner)
                if city.color == cube_color:
                    yield DeliveryPath(tuple(hexes), tuple(owners), city.name, player_id)
                else:
                    visited.add(adjacent)
                    yield from extend(adjacent, ALL_EDGES, None)
                    visited.discard(adjacent)
                hexes.pop()
                owners.pop()
                continue

            tile = board.tracks.get(adjacent)
            if tile is None:
                continue
            entry = opposite(edge)
            segment = tile.segment_with_edge(entry)
            if segment is None or not usable(segment.owner):
                continue
            hexes.append(adjacent)
            owners.append(segment.owner)
            visited.add(adjacent)
            yield from extend(adjacent, (segment.other_edge(entry),), segment.owner)
            visited.discard(adjacent)
            hexes.pop()
            owners.pop()

    yield from extend(origin, ALL_EDGES, None)


def first_delivery_path(
    origin: HexCoord,
    cube_color: CubeColor,
    board: "Board",
    player_id: str,
    max_links: int,
    allow_foreign: bool = False,
) -> DeliveryPath | None:
    """The default path: the first one found, or None if there is no route."""
    return next(
        find_delivery_paths(origin, cube_color, board, player_id, max_links, allow_foreign),
        None,
    )


def match_requested_path(
    requested: list[HexCoord],
    origin: HexCoord,
    cube_color: CubeColor,
    board: "Board",
    player_id: str,
    max_links: int,
    allow_foreign: bool = False,
) -> tuple[DeliveryPath | None, Rejection | None]:
    """Resolve a path chosen by the player.

    Args:
        requested: Hexes of the chosen path, origin first.

    Returns:
        Tuple of (matching path, rejection). A path that revisits a hex,
        exceeds max_links or starts elsewhere is malformed; a well-formed
        path the network does not support is no route.
    """
    if len(requested) < 2 or requested[0] != origin:
        return None, (RejectionReason.INVALID_ARGUMENT, f"Path must start at {origin} and leave it")
    if len(set(requested)) != len(requested):
        return None, (RejectionReason.INVALID_ARGUMENT, "Path revisits a hex")
    if len(requested) - 1 > max_links:
        return None, (
            RejectionReason.INVALID_ARGUMENT,
            f"Path uses {len(requested) - 1} links, limit is {max_links}",
        )
    target = tuple(requested)
    for path in find_delivery_paths(origin, cube_color, board, player_id, max_links, allow_foreign):
        if path.hexes == target:
            return path, None
    return None, (RejectionReason.NO_ROUTE, "Path does not follow deliverable track")
