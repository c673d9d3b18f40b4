"""Game state model for Steam Tycoon."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from .hex import HexCoord
from .map_descriptor import CubeColor
from .player import PlayerState
from .tile import Board


class GamePhase(Enum):
    """Phases of a game turn."""

    SETUP = "setup"
    ISSUE_SHARES = "issue_shares"
    DETERMINE_PLAYER_ORDER = "determine_player_order"
    SELECT_ACTIONS = "select_actions"
    BUILD_TRACK = "build_track"
    MOVE_GOODS = "move_goods"
    COLLECT_INCOME = "collect_income"
    PAY_EXPENSES = "pay_expenses"
    INCOME_REDUCTION = "income_reduction"
    GOODS_GROWTH = "goods_growth"
    ADVANCE_TURN = "advance_turn"
    GAME_OVER = "game_over"


# The ten phases of a turn, in order
TURN_PHASES = [
    GamePhase.ISSUE_SHARES,
    GamePhase.DETERMINE_PLAYER_ORDER,
    GamePhase.SELECT_ACTIONS,
    GamePhase.BUILD_TRACK,
    GamePhase.MOVE_GOODS,
    GamePhase.COLLECT_INCOME,
    GamePhase.PAY_EXPENSES,
    GamePhase.INCOME_REDUCTION,
    GamePhase.GOODS_GROWTH,
    GamePhase.ADVANCE_TURN,
]

PLAYER_PHASES = frozenset(TURN_PHASES[:5])
COMPUTED_PHASES = frozenset(TURN_PHASES[5:])


def next_phase(phase: GamePhase) -> GamePhase:
    """Phase following ``phase`` in the turn cycle."""
    if phase == GamePhase.SETUP:
        return GamePhase.ISSUE_SHARES
    if phase == GamePhase.GAME_OVER:
        return GamePhase.GAME_OVER
    index = TURN_PHASES.index(phase)
    return TURN_PHASES[(index + 1) % len(TURN_PHASES)]


@dataclass(frozen=True)
class NoPending:
    """No interaction is open."""

    kind: str = "none"


@dataclass
class PendingProduction:
    """Two cubes drawn for Production, awaiting their slots.

    Attributes:
        player_id: Player resolving the draw.
        cubes: Cubes that will be placed, in draw order.
        selected_slots: Empty slots chosen so far.
    """

    player_id: str
    cubes: list[CubeColor]
    selected_slots: list[int] = field(default_factory=list)
    kind: str = "production"

    @property
    def is_complete(self) -> bool:
        return len(self.selected_slots) == len(self.cubes)


@dataclass
class PendingRedirect:
    """A track tile selected for redirection."""

    player_id: str
    coord: HexCoord
    candidates: list[int]
    kind: str = "redirect"


@dataclass
class PendingUrbanization:
    """A new-city tile picked, awaiting its town."""

    player_id: str
    tile_id: str
    kind: str = "urbanization"


PendingInteraction = Union[NoPending, PendingProduction, PendingRedirect, PendingUrbanization]

NO_PENDING = NoPending()


@dataclass
class AuctionState:
    """Bidding for player order.

    Attributes:
        bidders: Players still bidding, in seat order.
        bids: Highest bid per player.
        dropouts: Players who dropped out, in order.
        current_index: Index into ``bidders`` of the player to act.
        high_bidder: Player holding the high bid.
        turn_order_pass_used: Whether the Turn Order free pass was spent.
        resolved: Whether payments and the new order have been applied.
    """

    bidders: list[str]
    bids: dict[str, int] = field(default_factory=dict)
    dropouts: list[str] = field(default_factory=list)
    current_index: int = 0
    high_bidder: str | None = None
    turn_order_pass_used: bool = False
    resolved: bool = False

    @property
    def high_bid(self) -> int:
        if self.high_bidder is None:
            return 0
        return self.bids.get(self.high_bidder, 0)

    @property
    def current_bidder(self) -> str | None:
        if self.resolved or not self.bidders:
            return None
        return self.bidders[self.current_index % len(self.bidders)]


@dataclass
class PhaseState:
    """Scratch data scoped to the current phase or turn.

    Attributes:
        step_order: Players acting in this phase, in order.
        step_index: Index of the acting player.
        move_round: Current Move Goods round.
        builds_used: Builds spent per player this turn.
        has_built: Players who placed track this turn.
        production_used: Whether Production was carried out this turn.
        urbanization_used: Whether Urbanization was carried out this turn.
    """

    step_order: list[str] = field(default_factory=list)
    step_index: int = 0
    move_round: int = 1
    builds_used: dict[str, int] = field(default_factory=dict)
    has_built: set[str] = field(default_factory=set)
    production_used: bool = False
    urbanization_used: bool = False

    @property
    def current_player_id(self) -> str | None:
        if self.step_index >= len(self.step_order):
            return None
        return self.step_order[self.step_index]

    @property
    def steps_complete(self) -> bool:
        return self.step_index >= len(self.step_order)


@dataclass
class GameState:
    """Complete game state for Steam Tycoon.

    This class holds all state needed to fully represent a game in progress.

    Attributes:
        id: Unique game identifier.
        board: The game board, track and goods display.
        players: Dictionary of player_id to PlayerState.
        play_order: Player IDs in turn order, set by the auction.
        current_turn: Turn number, starting at 1.
        max_turns: Turn cap for this game.
        current_phase: Current game phase.
        phase_state: Scratch data for the running phase.
        auction: Auction bookkeeping while order is being determined.
        turn_order_holder: Player who took Turn Order last turn and may pass
            once in this turn's auction without dropping out.
        pending: The single open interaction, if any.
        game_log: Log of game events.
    """

    id: str
    board: Board
    players: dict[str, PlayerState] = field(default_factory=dict)
    play_order: list[str] = field(default_factory=list)
    current_turn: int = 1
    max_turns: int = 0
    current_phase: GamePhase = GamePhase.SETUP
    phase_state: PhaseState = field(default_factory=PhaseState)
    auction: AuctionState | None = None
    turn_order_holder: str | None = None
    pending: PendingInteraction = NO_PENDING
    game_log: list[dict[str, Any]] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Post-initialization setup."""
        self.logger = logging.getLogger(__name__)

    @property
    def current_player_id(self) -> str | None:
        """Player expected to act now, or None in computed phases."""
        if self.current_phase == GamePhase.DETERMINE_PLAYER_ORDER and self.auction:
            return self.auction.current_bidder
        if self.current_phase in PLAYER_PHASES:
            return self.phase_state.current_player_id
        return None

    @property
    def current_player(self) -> PlayerState | None:
        player_id = self.current_player_id
        return self.players.get(player_id) if player_id else None

    @property
    def is_over(self) -> bool:
        return self.current_phase == GamePhase.GAME_OVER

    @property
    def has_pending(self) -> bool:
        return not isinstance(self.pending, NoPending)

    def add_player(self, player: PlayerState) -> None:
        """Add a player to the game."""
        self.players[player.id] = player
        self.play_order.append(player.id)
        self.logger.info(f"Player {player.name} ({player.id}) added to game {self.id}")

    def active_player_ids(self) -> list[str]:
        """Players still in the game, in play order."""
        return [pid for pid in self.play_order if not self.players[pid].eliminated]

    def clear_pending(self) -> None:
        self.pending = NO_PENDING

    def log_event(self, event_type: str, data: dict[str, Any]) -> None:
        """Log a game event."""
        self.game_log.append(
            {
                "type": event_type,
                "data": data,
                "turn": self.current_turn,
                "phase": self.current_phase.value,
            }
        )

    def to_dict(self) -> dict[str, Any]:
        """Plain-data snapshot of the whole state."""
        pending: dict[str, Any] = {"kind": self.pending.kind}
        if isinstance(self.pending, PendingProduction):
            pending.update(
                player_id=self.pending.player_id,
                cubes=[cube.value for cube in self.pending.cubes],
                selected_slots=list(self.pending.selected_slots),
            )
        elif isinstance(self.pending, PendingRedirect):
            pending.update(
                player_id=self.pending.player_id,
                coord=self.pending.coord.key,
                candidates=list(self.pending.candidates),
            )
        elif isinstance(self.pending, PendingUrbanization):
            pending.update(player_id=self.pending.player_id, tile_id=self.pending.tile_id)

        return {
            "id": self.id,
            "turn": self.current_turn,
            "max_turns": self.max_turns,
            "phase": self.current_phase.value,
            "current_player": self.current_player_id,
            "play_order": list(self.play_order),
            "turn_order_holder": self.turn_order_holder,
            "players": {pid: p.to_dict() for pid, p in self.players.items()},
            "board": self.board.to_dict(),
            "pending": pending,
            "auction": (
                {
                    "bidders": list(self.auction.bidders),
                    "bids": dict(self.auction.bids),
                    "dropouts": list(self.auction.dropouts),
                    "high_bidder": self.auction.high_bidder,
                }
                if self.auction
                else None
            ),
        }
