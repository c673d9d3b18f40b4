"""Track building rules for Steam Tycoon.

Connectivity is strictly per owner: a tile connects to a neighbor only when
the neighbor is a city, or holds a segment owned by the same player whose
edges include the opposite direction. Segments sharing a hex never connect
to each other.
"""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from steamtycoon.models.player import PlayerState
    from steamtycoon.models.tile import Board
    from .rules import Ruleset

from steamtycoon.errors import Rejection, RejectionReason
from steamtycoon.models.hex import HexCoord, is_valid_edge, neighbor, opposite
from steamtycoon.models.map_descriptor import Terrain
from steamtycoon.models.tile import TrackForm, TrackSegment, TrackTile

ALL_EDGES = list(range(6))


def player_has_track(board: "Board", player_id: str) -> bool:
    """Check whether a player owns any track segment."""
    return any(tile.is_owned_by(player_id) for tile in board.tracks)


def is_valid_connection_point(coord: HexCoord, board: "Board", player_id: str) -> bool:
    """A city, or a hex holding track owned by the player."""
    if board.is_city(coord):
        return True
    tile = board.tracks.get(coord)
    return tile is not None and tile.is_owned_by(player_id)


def validate_first_track_rule(
    target: HexCoord, edges: tuple[int, int], board: "Board"
) -> tuple[bool, str]:
    """A player's first tile must point at a city on at least one edge.

    Args:
        target: Hex being built on.
        edges: Edges of the new segment.
        board: The board.

    Returns:
        Tuple of (is_valid, error_message).
    """
    for edge in edges:
        if board.is_city(neighbor(target, edge)):
            return True, ""
    return False, f"First track must connect to a city, none next to {target}"


def validate_track_connection(
    target: HexCoord, edges: tuple[int, int], board: "Board", player_id: str
) -> tuple[bool, str]:
    """A tile must point at a city or meet the player's own track.

    Meeting means the neighbor holds a segment owned by ``player_id`` that
    ends on the opposite edge. Rival track never satisfies the rule.

    Returns:
        Tuple of (is_valid, error_message).
    """
    for edge in edges:
        adjacent = neighbor(target, edge)
        if board.is_city(adjacent):
            return True, ""
        tile = board.tracks.get(adjacent)
        if tile is None:
            continue
        segment = tile.segment_with_edge(opposite(edge))
        if segment is not None and segment.owner == player_id:
            return True, ""
    return False, f"Track at {target} does not connect to a city or your own track"


def get_open_edges(coord: HexCoord, board: "Board", player_id: str) -> list[int]:
    """Edges a player may build out from.

    Every direction for a city, the tile's edges (all segments) for a hex
    the player has track on, nothing otherwise.
    """
    if board.is_city(coord):
        return list(ALL_EDGES)
    tile = board.tracks.get(coord)
    if tile is not None and tile.is_owned_by(player_id):
        return tile.edges
    return []


def segments_cross(first: tuple[int, int], second: tuple[int, int]) -> bool:
    """Whether two disjoint segments cross when drawn through a hex.

    They cross when exactly one end of ``second`` lies on the arc strictly
    between the ends of ``first``.
    """
    low, high = sorted(first)
    return (low < second[0] < high) != (low < second[1] < high)


def _walk_to_stop(board: "Board", coord: HexCoord, edge: int) -> bool:
    """Follow track out of ``coord`` through ``edge`` to a stop or a dead end."""
    seen: set[tuple[HexCoord, int]] = set()
    current, out_edge = coord, edge
    while (current, out_edge) not in seen:
        seen.add((current, out_edge))
        adjacent = neighbor(current, out_edge)
        if board.is_stop(adjacent):
            return True
        tile = board.tracks.get(adjacent)
        if tile is None:
            return False
        entry = opposite(out_edge)
        segment = tile.segment_with_edge(entry)
        if segment is None:
            return False
        current, out_edge = adjacent, segment.other_edge(entry)
    return False


def segment_completes_link(board: "Board", coord: HexCoord, segment: TrackSegment) -> bool:
    """Whether a segment lies on track joining two stops."""
    return all(_walk_to_stop(board, coord, edge) for edge in segment.edges)


def is_completed_link(coord: HexCoord, board: "Board") -> bool:
    """Whether any segment on a hex belongs to a completed link."""
    tile = board.tracks.get(coord)
    if tile is None:
        return False
    return any(segment_completes_link(board, coord, s) for s in tile.segments)


def completed_link_segments(board: "Board", player_id: str) -> list[tuple[HexCoord, TrackSegment]]:
    """Segments owned by a player that are part of completed links."""
    return [
        (tile.coord, segment)
        for tile in board.tracks
        for segment in tile.segments
        if segment.owner == player_id and segment_completes_link(board, tile.coord, segment)
    ]


def _edge_is_connected(board: "Board", coord: HexCoord, edge: int) -> bool:
    adjacent = neighbor(coord, edge)
    if board.is_stop(adjacent):
        return True
    tile = board.tracks.get(adjacent)
    return tile is not None and tile.segment_with_edge(opposite(edge)) is not None


def connected_edges(board: "Board", tile: TrackTile) -> list[int]:
    """Edges of a tile that meet a stop or matching track."""
    return [edge for edge in tile.edges if _edge_is_connected(board, tile.coord, edge)]


def redirect_candidates(coord: HexCoord, board: "Board") -> list[int]:
    """Edges the open end of an unfinished tile may be turned to.

    Excludes the connected edge and the current open edge, directions off
    the map, into lakes or into cities, and directions meeting any owned
    track head-on.
    """
    tile = board.tracks.get(coord)
    if tile is None or tile.is_complex:
        return []
    connected = connected_edges(board, tile)
    if len(connected) != 1:
        return []
    candidates = []
    for edge in ALL_EDGES:
        if edge in tile.edges:
            continue
        adjacent = neighbor(coord, edge)
        terrain = board.terrain_at(adjacent)
        if terrain is None or terrain == Terrain.LAKE:
            continue
        if board.is_city(adjacent):
            continue
        other = board.tracks.get(adjacent)
        if other is not None:
            segment = other.segment_with_edge(opposite(edge))
            if segment is not None and segment.owner is not None:
                continue
        candidates.append(edge)
    return candidates


def normalize_edges(edges: Any) -> tuple[int, int] | None:
    """Read a pair of distinct directions, or None if malformed."""
    try:
        first, second = edges
    except (TypeError, ValueError):
        return None
    if not (is_valid_edge(first) and is_valid_edge(second)) or first == second:
        return None
    return int(first), int(second)


class TrackValidator:
    """Checks build, complex build and redirect commands without mutating.

    Each ``check_*`` method returns ``(cost, None)`` when the command is
    legal and ``(None, (reason, message))`` when it is not.

    Attributes:
        board: The board being built on.
        ruleset: Costs and limits.
    """

    def __init__(self, board: "Board", ruleset: "Ruleset") -> None:
        """Initialize validator.

        Args:
            board: The board.
            ruleset: Rule values.
        """
        self.board = board
        self.ruleset = ruleset

    def _check_exits(self, coord: HexCoord, edges: tuple[int, int]) -> Rejection | None:
        for edge in edges:
            terrain = self.board.terrain_at(neighbor(coord, edge))
            if terrain is None:
                return RejectionReason.INVALID_PLACEMENT, f"Edge {edge} of {coord} leads off the map"
            if terrain == Terrain.LAKE:
                return RejectionReason.INVALID_PLACEMENT, f"Edge {edge} of {coord} leads into a lake"
        return None

    def _check_connection(
        self, player_id: str, coord: HexCoord, edges: tuple[int, int]
    ) -> Rejection | None:
        if player_has_track(self.board, player_id):
            ok, message = validate_track_connection(coord, edges, self.board, player_id)
        else:
            ok, message = validate_first_track_rule(coord, edges, self.board)
        if not ok:
            return RejectionReason.INVALID_PLACEMENT, message
        return None

    def check_build(
        self, player: "PlayerState", coord: HexCoord, edges: Any
    ) -> tuple[int | None, Rejection | None]:
        """Check a new simple tile.

        Args:
            player: Player building.
            coord: Target hex.
            edges: The two edges of the tile.

        Returns:
            Tuple of (cost, rejection).
        """
        pair = normalize_edges(edges)
        if pair is None:
            return None, (RejectionReason.INVALID_PLACEMENT, f"Invalid edges: {edges!r}")

        terrain = self.board.terrain_at(coord)
        if terrain is None:
            return None, (RejectionReason.INVALID_PLACEMENT, f"{coord} is not on the map")
        if self.board.is_city(coord):
            return None, (RejectionReason.INVALID_PLACEMENT, f"Cannot build on city at {coord}")
        if coord in self.board.tracks:
            return None, (RejectionReason.INVALID_PLACEMENT, f"{coord} already holds track")
        cost = self.ruleset.track_cost(terrain)
        if cost is None:
            return None, (RejectionReason.INVALID_PLACEMENT, f"Cannot build on {terrain.value} at {coord}")

        rejection = self._check_exits(coord, pair) or self._check_connection(
            player.id, coord, pair
        )
        if rejection:
            return None, rejection

        if not player.can_afford(cost):
            return None, (RejectionReason.INSUFFICIENT_FUNDS, f"Track costs ${cost}, you have ${player.cash}")
        return cost, None

    def check_complex_build(
        self, player: "PlayerState", coord: HexCoord, edges: Any, form: TrackForm
    ) -> tuple[int | None, Rejection | None]:
        """Check adding a second, independent segment to an existing tile.

        Returns:
            Tuple of (cost, rejection).
        """
        if form not in (TrackForm.CROSSING, TrackForm.COEXIST):
            return None, (RejectionReason.INVALID_ARGUMENT, f"Complex track must be crossing or coexist, got {form.value}")
        pair = normalize_edges(edges)
        if pair is None:
            return None, (RejectionReason.INVALID_PLACEMENT, f"Invalid edges: {edges!r}")

        tile = self.board.tracks.get(coord)
        if tile is None:
            return None, (RejectionReason.INVALID_PLACEMENT, f"No track at {coord} to extend")
        if tile.is_complex:
            return None, (RejectionReason.INVALID_PLACEMENT, f"{coord} already holds two segments")
        existing = tile.segments[0].edges
        if set(pair) & set(existing):
            return None, (RejectionReason.INVALID_PLACEMENT, f"Edges {pair} overlap existing track {existing}")

        crosses = segments_cross(existing, pair)
        if form == TrackForm.CROSSING and not crosses:
            return None, (RejectionReason.INVALID_PLACEMENT, f"Edges {pair} do not cross {existing}")
        if form == TrackForm.COEXIST and crosses:
            return None, (RejectionReason.INVALID_PLACEMENT, f"Edges {pair} cross {existing}, build a crossing")

        rejection = self._check_exits(coord, pair) or self._check_connection(
            player.id, coord, pair
        )
        if rejection:
            return None, rejection

        cost = self.ruleset.complex_cost(form)
        if not player.can_afford(cost):
            return None, (RejectionReason.INSUFFICIENT_FUNDS, f"Complex track costs ${cost}, you have ${player.cash}")
        return cost, None

    def check_redirect_target(
        self, player: "PlayerState", coord: HexCoord
    ) -> tuple[list[int] | None, Rejection | None]:
        """Check that a tile may be redirected and list its candidate edges.

        Returns:
            Tuple of (candidate edges, rejection).
        """
        tile = self.board.tracks.get(coord)
        if tile is None:
            return None, (RejectionReason.INVALID_PLACEMENT, f"No track at {coord}")
        if tile.is_complex:
            return None, (RejectionReason.INVALID_PLACEMENT, "Only simple track can be redirected")
        if tile.owner not in (None, player.id):
            return None, (RejectionReason.NOT_ENTITLED, f"Track at {coord} belongs to {tile.owner}")
        if segment_completes_link(self.board, coord, tile.segments[0]):
            return None, (RejectionReason.INVALID_PLACEMENT, f"Track at {coord} is part of a completed link")
        if len(connected_edges(self.board, tile)) != 1:
            return None, (RejectionReason.INVALID_PLACEMENT, f"Track at {coord} is not an unfinished end")
        candidates = redirect_candidates(coord, self.board)
        if not candidates:
            return None, (RejectionReason.INVALID_PLACEMENT, f"Track at {coord} has nowhere to turn")
        return candidates, None

    def check_redirect(
        self, player: "PlayerState", coord: HexCoord, new_edge: Any
    ) -> tuple[int | None, Rejection | None]:
        """Check swapping the open end of an unfinished tile.

        Returns:
            Tuple of (cost, rejection).
        """
        candidates, rejection = self.check_redirect_target(player, coord)
        if rejection:
            return None, rejection
        if new_edge not in candidates:
            return None, (RejectionReason.INVALID_PLACEMENT, f"Edge {new_edge} is not a redirect option {candidates}")
        cost = self.ruleset.redirect_cost
        if not player.can_afford(cost):
            return None, (RejectionReason.INSUFFICIENT_FUNDS, f"Redirect costs ${cost}, you have ${player.cash}")
        return cost, None
