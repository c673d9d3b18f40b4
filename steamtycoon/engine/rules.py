"""Rule constants for Steam Tycoon."""

from dataclasses import dataclass, field

from steamtycoon.models.map_descriptor import Terrain
from steamtycoon.models.tile import TrackForm

STARTING_CASH = 10
STARTING_SHARES = 2
STARTING_LOCOMOTIVE = 1
STARTING_INCOME = 0

SHARE_VALUE = 5
MAX_SHARES = 15
MAX_LOCOMOTIVE = 6
MAX_INCOME = 50
MIN_INCOME = -10

NORMAL_BUILD_LIMIT = 3
ENGINEER_BUILD_LIMIT = 4
MOVE_GOODS_ROUNDS = 2
PRODUCTION_CUBE_COUNT = 2

MIN_PLAYERS = 2
MAX_PLAYERS = 6

PLAYER_COLORS = ["orange", "blue", "green", "pink", "gray", "yellow"]

# Cost of a new simple tile by terrain; lakes take no track
TRACK_BUILD_COSTS = {
    Terrain.PLAIN: 2,
    Terrain.RIVER: 3,
    Terrain.MOUNTAIN: 4,
}

# Cost of adding a second segment to an existing tile
COMPLEX_TRACK_COSTS = {
    TrackForm.CROSSING: 3,
    TrackForm.COEXIST: 2,
}

REDIRECT_COST = 2

# (lowest income, reduction); first match wins
INCOME_REDUCTION = [
    (50, 10),
    (41, 8),
    (31, 6),
    (21, 4),
    (11, 2),
]

TURNS_BY_PLAYER_COUNT = {
    2: 8,
    3: 7,
    4: 6,
    5: 7,
    6: 6,
}

# Income gained by the deliverer, indexed by links on own track
DELIVERY_PAYOUT = (0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11, 12)

# Links are counted per hex-to-hex step. The shortest stop-to-stop run is
# two steps (stop, track hex, stop), so one locomotive level covers one run.
LINKS_PER_LOCOMOTIVE_LEVEL = 2
FOREIGN_LINK_FEE = 1

# Goods growth rolls one die per active player; each face names a column
GROWTH_DIE_FACES = 6


@dataclass(frozen=True)
class Ruleset:
    """Tunable rule values handed to the engine.

    Attributes:
        track_build_costs: Simple tile cost by terrain.
        complex_track_costs: Second segment cost by form.
        redirect_cost: Cost to redirect an unfinished tile.
        build_limit: Builds per turn without Engineer.
        engineer_build_limit: Builds per turn with Engineer.
        share_value: Cash raised per issued share.
        max_shares: Most shares a player may issue.
        max_locomotive: Highest locomotive level.
        max_income: Highest income.
        min_income: Lowest income before bankruptcy.
        move_goods_rounds: Rounds in the Move Goods phase.
        links_per_locomotive_level: Links allowed per locomotive level.
        delivery_payout: Deliverer income by own-link count.
        allow_foreign_links: Whether deliveries may ride rival track.
        foreign_link_fee: Cash paid per foreign link.
        turns_by_player_count: Turn cap by player count.
        growth_die_faces: Faces on each goods growth die.
    """

    track_build_costs: dict[Terrain, int] = field(
        default_factory=lambda: dict(TRACK_BUILD_COSTS)
    )
    complex_track_costs: dict[TrackForm, int] = field(
        default_factory=lambda: dict(COMPLEX_TRACK_COSTS)
    )
    redirect_cost: int = REDIRECT_COST
    build_limit: int = NORMAL_BUILD_LIMIT
    engineer_build_limit: int = ENGINEER_BUILD_LIMIT
    share_value: int = SHARE_VALUE
    max_shares: int = MAX_SHARES
    max_locomotive: int = MAX_LOCOMOTIVE
    max_income: int = MAX_INCOME
    min_income: int = MIN_INCOME
    move_goods_rounds: int = MOVE_GOODS_ROUNDS
    links_per_locomotive_level: int = LINKS_PER_LOCOMOTIVE_LEVEL
    delivery_payout: tuple[int, ...] = DELIVERY_PAYOUT
    allow_foreign_links: bool = False
    foreign_link_fee: int = FOREIGN_LINK_FEE
    growth_die_faces: int = GROWTH_DIE_FACES
    turns_by_player_count: dict[int, int] = field(
        default_factory=lambda: dict(TURNS_BY_PLAYER_COUNT)
    )

    def track_cost(self, terrain: Terrain) -> int | None:
        """Cost of a simple tile on a terrain, or None if unbuildable."""
        return self.track_build_costs.get(terrain)

    def complex_cost(self, form: TrackForm) -> int:
        return self.complex_track_costs[form]

    def build_allowance(self, is_engineer: bool) -> int:
        return self.engineer_build_limit if is_engineer else self.build_limit

    def max_links(self, locomotive: int) -> int:
        """Longest delivery, in hex-to-hex links, for a locomotive level.

        Level 1 reaches a stop one track hex away; each further level adds
        two steps.
        """
        return locomotive * self.links_per_locomotive_level

    def payout(self, links: int) -> int:
        """Income gained for a delivery over ``links`` own links."""
        if links <= 0:
            return 0
        return self.delivery_payout[min(links, len(self.delivery_payout) - 1)]

    def income_reduction(self, income: int) -> int:
        """End-of-turn income loss for an income level."""
        for threshold, reduction in INCOME_REDUCTION:
            if income >= threshold:
                return reduction
        return 0

    def clamp_income(self, income: int) -> int:
        return max(self.min_income, min(self.max_income, income))

    def turn_cap(self, player_count: int, map_cap: int | None = None) -> int:
        """Number of turns for a game.

        Raises:
            ValueError: If the player count is unsupported.
        """
        if player_count not in self.turns_by_player_count:
            raise ValueError(f"Invalid player count: {player_count}")
        turns = self.turns_by_player_count[player_count]
        if map_cap is not None:
            turns = min(turns, map_cap)
        return turns
