"""Game engine for Steam Tycoon."""

from __future__ import annotations

import logging
import random
from typing import Any

from steamtycoon.errors import InvariantViolation, RejectionReason, rejected, succeeded
from steamtycoon.models.game_state import (
    COMPUTED_PHASES,
    PLAYER_PHASES,
    GamePhase,
    GameState,
    PendingProduction,
    PendingRedirect,
    PendingUrbanization,
    next_phase,
)
from steamtycoon.models.hex import HexCoord, as_coord
from steamtycoon.models.map_descriptor import MapDescriptor, tutorial_map
from steamtycoon.models.player import PlayerState, SpecialAction
from steamtycoon.models.tile import Board, City, TrackForm, TrackSegment, TrackTile
from steamtycoon.turn_manager.action_validator import ActionValidator
from steamtycoon.turn_manager.turn_manager import TurnManager

from .auction import AuctionRound
from .delivery_router import (
    DeliveryPath,
    find_delivery_paths,
    first_delivery_path,
    match_requested_path,
)
from .economy import EconomyManager
from .rules import (
    MAX_PLAYERS,
    MIN_PLAYERS,
    PLAYER_COLORS,
    PRODUCTION_CUBE_COUNT,
    STARTING_CASH,
    STARTING_INCOME,
    STARTING_LOCOMOTIVE,
    STARTING_SHARES,
    Ruleset,
)
from .track_validator import (
    TrackValidator,
    connected_edges,
    get_open_edges,
    normalize_edges,
)


class GameEngine:
    """Main game engine orchestrating game flow.

    The engine is the only code that mutates the game state. Every command
    validates fully before touching anything, so a rejected command leaves
    the state exactly as it was.

    Attributes:
        state: The current game state.
        ruleset: Rule values in force.
        rng: Random source for shuffles and draws.
        logger: Logger the engine reports through.
    """

    def __init__(
        self,
        game_id: str,
        descriptor: MapDescriptor | None = None,
        ruleset: Ruleset | None = None,
        rng: random.Random | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize a new game engine.

        Args:
            game_id: Unique identifier for this game.
            descriptor: Map to play on, the tutorial map by default.
            ruleset: Rule values, the standard rules by default.
            rng: Random source; pass a seeded one for reproducible games.
            logger: Logger to report through.
        """
        self.descriptor = descriptor or tutorial_map()
        self.descriptor.validate()
        self.ruleset = ruleset or Ruleset()
        self.rng = rng or random.Random()
        self.logger = logger or logging.getLogger(__name__)

        self.state = GameState(id=game_id, board=Board(self.descriptor, self.logger))
        self.state.logger = self.logger
        self.turn_manager = TurnManager(self.state, self.ruleset, self.logger)
        self.validator = ActionValidator(self.state)
        self.track_validator = TrackValidator(self.state.board, self.ruleset)
        self.auction = AuctionRound(self.state)
        self.economy = EconomyManager(self.state, self.ruleset, self.logger)

    @property
    def board(self) -> Board:
        return self.state.board

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def add_player(self, player_id: str, name: str) -> PlayerState:
        """Add a player to the game.

        Args:
            player_id: Unique identifier for the player.
            name: Display name of the player.

        Returns:
            The created PlayerState.
        """
        if self.state.current_phase != GamePhase.SETUP:
            raise ValueError("Cannot add players after the game has started")
        if player_id in self.state.players:
            raise ValueError(f"Duplicate player id: {player_id}")
        if len(self.state.players) >= MAX_PLAYERS:
            raise ValueError(f"Maximum {MAX_PLAYERS} players allowed")

        player = PlayerState(
            id=player_id,
            name=name,
            color=PLAYER_COLORS[len(self.state.players)],
        )
        self.state.add_player(player)
        return player

    def start_game(self) -> None:
        """Start the game after all players have joined."""
        if self.state.current_phase != GamePhase.SETUP:
            raise ValueError("Game already started")
        player_count = len(self.state.players)
        if player_count < MIN_PLAYERS:
            raise ValueError(f"Need at least {MIN_PLAYERS} players to start")
        if player_count not in self.descriptor.supported_players:
            raise ValueError(
                f"{self.descriptor.name} is played by {list(self.descriptor.supported_players)} "
                f"players, not {player_count}"
            )

        self.state.max_turns = self.ruleset.turn_cap(player_count, self.descriptor.max_turns)
        self.board.goods.initialize(self.descriptor.starting_bag, self.rng)
        for player in self.state.players.values():
            player.cash = STARTING_CASH
            player.shares = STARTING_SHARES
            player.locomotive = STARTING_LOCOMOTIVE
            player.income = STARTING_INCOME

        self.state.log_event(
            "game_start",
            {
                "player_count": player_count,
                "map": self.descriptor.id,
                "max_turns": self.state.max_turns,
            },
        )
        self.logger.info(
            f"Game {self.state.id} started on {self.descriptor.name} with "
            f"{player_count} players, {self.state.max_turns} turns"
        )
        self.turn_manager.begin_phase(GamePhase.ISSUE_SHARES)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def execute_action(
        self, action_type: str, player_id: str | None = None, **kwargs: Any
    ) -> dict[str, Any]:
        """Execute a player action.

        Args:
            action_type: Type of action to execute.
            player_id: Acting player, the current player by default.
            **kwargs: Action-specific parameters.

        Returns:
            Result dictionary with success status and details.
        """
        if action_type == "advance_phase":
            return self.advance_phase()

        handlers = {
            "issue_shares": self.issue_shares,
            "pass_shares": self.pass_shares,
            "place_bid": self.place_bid,
            "pass_auction": self.pass_auction,
            "select_action": self.select_action,
            "build_track": self.build_track,
            "build_complex_track": self.build_complex_track,
            "begin_redirect": self.begin_redirect,
            "redirect_track": self.redirect_track,
            "select_new_city_tile": self.select_new_city_tile,
            "urbanize_town": self.urbanize_town,
            "start_production": self.start_production,
            "select_production_slot": self.select_production_slot,
            "confirm_production": self.confirm_production,
            "cancel_production": self.cancel_production,
            "cancel_pending": self.cancel_pending,
            "end_build": self.end_build,
            "move_goods": self.move_goods,
            "upgrade_locomotive": self.upgrade_locomotive,
            "pass_move": self.pass_move,
        }
        handler = handlers.get(action_type)
        if handler is None:
            return rejected(RejectionReason.UNKNOWN_ACTION, f"Unknown action: {action_type}")

        if player_id is None:
            player_id = self.state.current_player_id
        if player_id is None:
            return rejected(RejectionReason.ILLEGAL_PHASE, "No player is due to act")
        return handler(player_id, **kwargs)

    def _guard(self, player_id: str, action_type: str) -> dict[str, Any] | None:
        reason, error = self.validator.validate_action(player_id, action_type)
        if reason is not None:
            self.logger.debug(f"Rejected {action_type} by {player_id}: {error}")
            return rejected(reason, error)
        return None

    # ------------------------------------------------------------------
    # Phase I: issue shares
    # ------------------------------------------------------------------

    def issue_shares(self, player_id: str, count: int = 1) -> dict[str, Any]:
        """Issue shares for cash, ending the player's step."""
        if failure := self._guard(player_id, "issue_shares"):
            return failure
        if not isinstance(count, int) or isinstance(count, bool) or count < 0:
            return rejected(RejectionReason.INVALID_ARGUMENT, f"Share count must not be negative, got {count!r}")
        if count == 0:
            return self.pass_shares(player_id)

        player = self.state.players[player_id]
        if player.shares + count > self.ruleset.max_shares:
            return rejected(
                RejectionReason.RESOURCE_EXHAUSTED,
                f"Cannot hold more than {self.ruleset.max_shares} shares",
            )

        raised = count * self.ruleset.share_value
        player.shares += count
        player.add_cash(raised)
        self.state.log_event("issue_shares", {"player": player_id, "count": count, "cash": raised})
        self.turn_manager.advance_step()
        return succeeded(f"{player.name} issued {count} shares for ${raised}", cash=player.cash)

    def pass_shares(self, player_id: str) -> dict[str, Any]:
        """Decline to issue shares this turn."""
        if failure := self._guard(player_id, "pass_shares"):
            return failure
        player = self.state.players[player_id]
        self.state.log_event("pass_shares", {"player": player_id})
        self.turn_manager.advance_step()
        return succeeded(f"{player.name} issued no shares")

    # ------------------------------------------------------------------
    # Phase II: determine player order
    # ------------------------------------------------------------------

    def place_bid(self, player_id: str, amount: int) -> dict[str, Any]:
        """Bid for first place in the play order."""
        if failure := self._guard(player_id, "place_bid"):
            return failure
        if rejection := self.auction.check_bid(player_id, amount):
            return rejected(*rejection)

        self.auction.place_bid(player_id, amount)
        return succeeded(f"{self.state.players[player_id].name} bid ${amount}")

    def pass_auction(self, player_id: str) -> dict[str, Any]:
        """Pass in the auction, dropping out unless a free pass applies."""
        if failure := self._guard(player_id, "pass_auction"):
            return failure

        name = self.state.players[player_id].name
        dropped = self.auction.pass_turn(player_id)
        if not self.auction.is_complete:
            verb = "dropped out" if dropped else "used the Turn Order pass"
            return succeeded(f"{name} {verb}")

        payments = self.auction.resolve()
        return succeeded(
            f"{name} dropped out, auction closed",
            play_order=list(self.state.play_order),
            payments={p.player_id: p.paid for p in payments},
        )

    # ------------------------------------------------------------------
    # Phase III: select actions
    # ------------------------------------------------------------------

    def select_action(self, player_id: str, action: SpecialAction | str) -> dict[str, Any]:
        """Claim a special action for this turn."""
        if failure := self._guard(player_id, "select_action"):
            return failure
        try:
            special = action if isinstance(action, SpecialAction) else SpecialAction(action)
        except ValueError:
            return rejected(RejectionReason.INVALID_ARGUMENT, f"Unknown special action: {action!r}")

        holder = self._action_holder(special)
        if holder is not None:
            return rejected(
                RejectionReason.RESOURCE_EXHAUSTED,
                f"{special.value} already taken by {self.state.players[holder].name}",
            )

        player = self.state.players[player_id]
        player.selected_action = special
        if special == SpecialAction.LOCOMOTIVE:
            player.locomotive = min(player.locomotive + 1, self.ruleset.max_locomotive)

        self.state.log_event("select_action", {"player": player_id, "action": special.value})
        self.turn_manager.advance_step()
        return succeeded(f"{player.name} took {special.value}", locomotive=player.locomotive)

    def _action_holder(self, action: SpecialAction) -> str | None:
        for player in self.state.players.values():
            if player.selected_action == action and not player.eliminated:
                return player.id
        return None

    def available_special_actions(self) -> list[SpecialAction]:
        """Special actions nobody has claimed this turn, in table order."""
        return [a for a in SpecialAction if self._action_holder(a) is None]

    # ------------------------------------------------------------------
    # Phase IV: build track
    # ------------------------------------------------------------------

    def builds_remaining(self, player_id: str) -> int:
        """Builds left for a player this turn."""
        player = self.state.players[player_id]
        used = self.state.phase_state.builds_used.get(player_id, 0)
        return self.ruleset.build_allowance(player.is_engineer) - used

    def _check_allowance(self, player_id: str) -> dict[str, Any] | None:
        if self.builds_remaining(player_id) <= 0:
            return rejected(RejectionReason.RESOURCE_EXHAUSTED, "No builds left this turn")
        return None

    def _record_build(self, player: PlayerState, cost: int) -> None:
        player.remove_cash(cost)
        phase_state = self.state.phase_state
        phase_state.builds_used[player.id] = phase_state.builds_used.get(player.id, 0) + 1
        phase_state.has_built.add(player.id)

    def build_track(self, player_id: str, coord: Any, edges: Any) -> dict[str, Any]:
        """Build a simple tile.

        Args:
            player_id: Player building.
            coord: Target hex.
            edges: The tile's two edges.
        """
        if failure := self._guard(player_id, "build_track"):
            return failure
        try:
            target = as_coord(coord)
        except ValueError as e:
            return rejected(RejectionReason.INVALID_ARGUMENT, str(e))
        if failure := self._check_allowance(player_id):
            return failure

        player = self.state.players[player_id]
        cost, rejection = self.track_validator.check_build(player, target, edges)
        if rejection:
            return rejected(*rejection)

        pair = normalize_edges(edges)
        self.board.tracks.add(
            TrackTile(coord=target, form=TrackForm.SIMPLE, segments=[TrackSegment(pair, player_id)])
        )
        self._record_build(player, cost)
        self.state.log_event(
            "build_track",
            {"player": player_id, "coord": target.key, "edges": list(pair), "cost": cost},
        )
        return succeeded(
            f"{player.name} built track at {target} for ${cost}",
            cost=cost,
            builds_remaining=self.builds_remaining(player_id),
        )

    def build_complex_track(
        self, player_id: str, coord: Any, edges: Any, mode: TrackForm | str
    ) -> dict[str, Any]:
        """Add a crossing or coexisting segment to an existing tile."""
        if failure := self._guard(player_id, "build_complex_track"):
            return failure
        try:
            target = as_coord(coord)
            form = mode if isinstance(mode, TrackForm) else TrackForm(mode)
        except ValueError as e:
            return rejected(RejectionReason.INVALID_ARGUMENT, str(e))
        if failure := self._check_allowance(player_id):
            return failure

        player = self.state.players[player_id]
        cost, rejection = self.track_validator.check_complex_build(player, target, edges, form)
        if rejection:
            return rejected(*rejection)

        pair = normalize_edges(edges)
        tile = self.board.tracks.get(target)
        tile.form = form
        tile.segments.append(TrackSegment(pair, player_id))
        self._record_build(player, cost)
        self.state.log_event(
            "build_complex_track",
            {
                "player": player_id,
                "coord": target.key,
                "edges": list(pair),
                "form": form.value,
                "cost": cost,
            },
        )
        return succeeded(
            f"{player.name} built {form.value} track at {target} for ${cost}",
            cost=cost,
            builds_remaining=self.builds_remaining(player_id),
        )

    def begin_redirect(self, player_id: str, coord: Any) -> dict[str, Any]:
        """Select an unfinished tile to redirect and list its options."""
        if failure := self._guard(player_id, "begin_redirect"):
            return failure
        try:
            target = as_coord(coord)
        except ValueError as e:
            return rejected(RejectionReason.INVALID_ARGUMENT, str(e))
        if failure := self._check_allowance(player_id):
            return failure

        player = self.state.players[player_id]
        candidates, rejection = self.track_validator.check_redirect_target(player, target)
        if rejection:
            return rejected(*rejection)
        if not player.can_afford(self.ruleset.redirect_cost):
            return rejected(
                RejectionReason.INSUFFICIENT_FUNDS,
                f"Redirect costs ${self.ruleset.redirect_cost}, you have ${player.cash}",
            )

        self.state.pending = PendingRedirect(player_id=player_id, coord=target, candidates=candidates)
        return succeeded(f"Choose a new edge for {target}", candidates=list(candidates))

    def redirect_track(self, player_id: str, coord: Any, new_edge: int) -> dict[str, Any]:
        """Turn the open end of an unfinished tile to a new edge."""
        if failure := self._guard(player_id, "redirect_track"):
            return failure
        try:
            target = as_coord(coord)
        except ValueError as e:
            return rejected(RejectionReason.INVALID_ARGUMENT, str(e))
        pending = self.state.pending
        if isinstance(pending, PendingRedirect) and pending.coord != target:
            return rejected(
                RejectionReason.INVALID_ARGUMENT,
                f"Redirect of {pending.coord} is open, not {target}",
            )
        if failure := self._check_allowance(player_id):
            return failure

        player = self.state.players[player_id]
        cost, rejection = self.track_validator.check_redirect(player, target, new_edge)
        if rejection:
            return rejected(*rejection)

        tile = self.board.tracks.get(target)
        segment = tile.segments[0]
        anchor = connected_edges(self.board, tile)[0]
        old_edges = segment.edges
        segment.edges = (anchor, int(new_edge))
        segment.owner = player_id
        self._record_build(player, cost)
        self.state.clear_pending()
        self.state.log_event(
            "redirect_track",
            {
                "player": player_id,
                "coord": target.key,
                "from": list(old_edges),
                "to": list(segment.edges),
                "cost": cost,
            },
        )
        return succeeded(f"{player.name} redirected track at {target} for ${cost}", cost=cost)

    def select_new_city_tile(self, player_id: str, tile_id: str) -> dict[str, Any]:
        """Pick the new-city tile to place with Urbanization."""
        if failure := self._guard(player_id, "select_new_city_tile"):
            return failure
        if failure := self._check_urbanization(player_id, tile_id):
            return failure
        if not any(not town.urbanized for town in self.board.towns.values()):
            return rejected(RejectionReason.RESOURCE_EXHAUSTED, "No towns left to urbanize")

        self.state.pending = PendingUrbanization(player_id=player_id, tile_id=tile_id)
        return succeeded(f"Tile {tile_id} selected, choose a town")

    def _check_urbanization(self, player_id: str, tile_id: Any) -> dict[str, Any] | None:
        phase_state = self.state.phase_state
        if phase_state.urbanization_used:
            return rejected(RejectionReason.RESOURCE_EXHAUSTED, "Urbanization already used this turn")
        if player_id in phase_state.has_built:
            return rejected(RejectionReason.NOT_ENTITLED, "Urbanize before building track")
        tile = self.board.new_city_tiles.get(tile_id)
        if tile is None:
            return rejected(RejectionReason.INVALID_ARGUMENT, f"Unknown new-city tile: {tile_id!r}")
        if tile.used:
            return rejected(RejectionReason.RESOURCE_EXHAUSTED, f"New-city tile {tile_id} is already placed")
        return None

    def urbanize_town(self, player_id: str, coord: Any, tile_id: str | None = None) -> dict[str, Any]:
        """Turn a town into a city using a new-city tile.

        Args:
            player_id: Urbanization holder.
            coord: Town hex.
            tile_id: New-city tile, defaults to the one already selected.
        """
        if failure := self._guard(player_id, "urbanize_town"):
            return failure
        pending = self.state.pending
        if isinstance(pending, PendingUrbanization):
            if tile_id is not None and tile_id != pending.tile_id:
                return rejected(
                    RejectionReason.INVALID_ARGUMENT,
                    f"Tile {pending.tile_id} is selected, not {tile_id}",
                )
            tile_id = pending.tile_id
        if tile_id is None:
            return rejected(RejectionReason.INVALID_ARGUMENT, "Choose a new-city tile first")
        try:
            target = as_coord(coord)
        except ValueError as e:
            return rejected(RejectionReason.INVALID_ARGUMENT, str(e))
        if failure := self._check_urbanization(player_id, tile_id):
            return failure

        town = self.board.towns.get(target)
        if town is None or town.urbanized:
            return rejected(RejectionReason.INVALID_PLACEMENT, f"No town to urbanize at {target}")
        if target in self.board.tracks:
            return rejected(RejectionReason.INVALID_PLACEMENT, f"Town at {target} already holds track")

        tile = self.board.new_city_tiles[tile_id]
        name = town.name or f"City {tile_id}"
        column = self.board.goods.activate_column(tile_id, name)
        town.urbanized = True
        tile.used = True
        self.board.cities[target] = City(
            coord=target,
            name=name,
            color=tile.color,
            columns=[column.id] if column else [],
            urbanized_from=tile_id,
        )
        self.state.phase_state.urbanization_used = True
        self.state.clear_pending()
        self.state.log_event(
            "urbanize",
            {"player": player_id, "coord": target.key, "tile": tile_id, "color": tile.color.value},
        )
        return succeeded(f"{name} is now a {tile.color.value} city")

    def start_production(self, player_id: str) -> dict[str, Any]:
        """Draw two cubes for Production; they wait until slots are chosen."""
        if failure := self._guard(player_id, "start_production"):
            return failure
        goods = self.board.goods
        if self.state.phase_state.production_used:
            return rejected(RejectionReason.RESOURCE_EXHAUSTED, "Production already used this turn")
        if len(goods.bag) < PRODUCTION_CUBE_COUNT:
            return rejected(RejectionReason.RESOURCE_EXHAUSTED, "Not enough cubes in the bag")
        if len(goods.get_empty_slots()) < PRODUCTION_CUBE_COUNT:
            return rejected(RejectionReason.RESOURCE_EXHAUSTED, "Not enough empty display slots")

        cubes = goods.peek(PRODUCTION_CUBE_COUNT)
        self.state.pending = PendingProduction(player_id=player_id, cubes=cubes)
        return succeeded(
            f"Drew {', '.join(cube.value for cube in cubes)}",
            cubes=[cube.value for cube in cubes],
            empty_slots=goods.get_empty_slots(),
        )

    def _open_production(self) -> PendingProduction | None:
        pending = self.state.pending
        return pending if isinstance(pending, PendingProduction) else None

    def select_production_slot(self, player_id: str, slot_index: int) -> dict[str, Any]:
        """Choose an empty slot for the next drawn cube."""
        if failure := self._guard(player_id, "select_production_slot"):
            return failure
        pending = self._open_production()
        if pending is None:
            return rejected(RejectionReason.ILLEGAL_PHASE, "No production draw is open")
        goods = self.board.goods
        if not goods.is_valid_slot(slot_index):
            return rejected(RejectionReason.INVALID_ARGUMENT, f"No slot {slot_index!r}")
        if pending.is_complete:
            return rejected(RejectionReason.INVALID_ARGUMENT, "Both slots already chosen")
        if goods.slots[slot_index] is not None or slot_index in pending.selected_slots:
            return rejected(RejectionReason.INVALID_PLACEMENT, f"Slot {slot_index} is not empty")

        pending.selected_slots.append(slot_index)
        return succeeded(f"Slot {slot_index} chosen", selected_slots=list(pending.selected_slots))

    def confirm_production(self, player_id: str) -> dict[str, Any]:
        """Place both drawn cubes in their chosen slots."""
        if failure := self._guard(player_id, "confirm_production"):
            return failure
        pending = self._open_production()
        if pending is None:
            return rejected(RejectionReason.ILLEGAL_PHASE, "No production draw is open")
        if not pending.is_complete:
            return rejected(
                RejectionReason.INVALID_ARGUMENT,
                f"Choose {len(pending.cubes)} slots before confirming",
            )

        goods = self.board.goods
        cubes = goods.draw(len(pending.cubes))
        if cubes != pending.cubes:
            raise InvariantViolation("Bag changed while a production draw was open")
        for slot_index, cube in zip(pending.selected_slots, cubes):
            goods.place(slot_index, cube)
        self.state.phase_state.production_used = True
        self.state.clear_pending()
        self.state.log_event(
            "production",
            {
                "player": player_id,
                "slots": {str(i): c.value for i, c in zip(pending.selected_slots, cubes)},
            },
        )
        return succeeded("Production placed", slots=list(pending.selected_slots))

    def cancel_production(self, player_id: str) -> dict[str, Any]:
        """Abandon an open production draw."""
        if failure := self._guard(player_id, "cancel_production"):
            return failure
        if self._open_production() is None:
            return rejected(RejectionReason.ILLEGAL_PHASE, "No production draw is open")
        self.state.clear_pending()
        return succeeded("Production cancelled")

    def cancel_pending(self, player_id: str) -> dict[str, Any]:
        """Abandon whatever interaction is open."""
        if failure := self._guard(player_id, "cancel_pending"):
            return failure
        if not self.state.has_pending:
            return rejected(RejectionReason.INVALID_ARGUMENT, "Nothing to cancel")
        kind = self.state.pending.kind
        self.state.clear_pending()
        return succeeded(f"Cancelled {kind}")

    def end_build(self, player_id: str) -> dict[str, Any]:
        """Finish building for this turn."""
        if failure := self._guard(player_id, "end_build"):
            return failure
        self.state.log_event(
            "end_build",
            {"player": player_id, "builds": self.state.phase_state.builds_used.get(player_id, 0)},
        )
        self.turn_manager.advance_step()
        return succeeded(f"{self.state.players[player_id].name} finished building")

    # ------------------------------------------------------------------
    # Phase V: move goods
    # ------------------------------------------------------------------

    def _delivery_origin(self, slot_index: Any) -> tuple[HexCoord | None, dict[str, Any] | None]:
        goods = self.board.goods
        if not goods.is_valid_slot(slot_index):
            return None, rejected(RejectionReason.INVALID_ARGUMENT, f"No slot {slot_index!r}")
        if goods.slots[slot_index] is None:
            return None, rejected(RejectionReason.INVALID_ARGUMENT, f"Slot {slot_index} is empty")
        column = goods.column_of(slot_index)
        city = self.board.city_by_name(column.city_ref) if column.city_ref else None
        if city is None:
            return None, rejected(RejectionReason.NO_ROUTE, f"Column {column.id} has no city yet")
        return city.coord, None

    def find_delivery_paths(self, slot_index: int, player_id: str | None = None) -> list[DeliveryPath]:
        """List every delivery path for the cube in a slot."""
        player_id = player_id or self.state.current_player_id
        origin, failure = self._delivery_origin(slot_index)
        if failure or player_id not in self.state.players:
            return []
        player = self.state.players[player_id]
        return list(
            find_delivery_paths(
                origin,
                self.board.goods.slots[slot_index],
                self.board,
                player_id,
                self.ruleset.max_links(player.locomotive),
                self.ruleset.allow_foreign_links,
            )
        )

    def move_goods(self, player_id: str, slot_index: int, path: list[Any] | None = None) -> dict[str, Any]:
        """Deliver the cube in a slot.

        Args:
            player_id: Player delivering.
            slot_index: Display slot holding the cube.
            path: Hexes of the chosen route; the first route found if omitted.
        """
        if failure := self._guard(player_id, "move_goods"):
            return failure
        origin, failure = self._delivery_origin(slot_index)
        if failure:
            return failure

        player = self.state.players[player_id]
        cube = self.board.goods.slots[slot_index]
        max_links = self.ruleset.max_links(player.locomotive)
        allow_foreign = self.ruleset.allow_foreign_links
        if path is None:
            route = first_delivery_path(origin, cube, self.board, player_id, max_links, allow_foreign)
            if route is None:
                return rejected(RejectionReason.NO_ROUTE, f"No route for {cube.value} cube from {origin}")
        else:
            try:
                requested = [as_coord(step) for step in path]
            except ValueError as e:
                return rejected(RejectionReason.INVALID_ARGUMENT, str(e))
            route, rejection = match_requested_path(
                requested, origin, cube, self.board, player_id, max_links, allow_foreign
            )
            if rejection:
                return rejected(*rejection)

        fee = route.foreign_links * self.ruleset.foreign_link_fee
        if not player.can_afford(fee):
            return rejected(RejectionReason.INSUFFICIENT_FUNDS, f"Foreign links cost ${fee}, you have ${player.cash}")

        self.board.goods.take_cube(slot_index)
        gained = self.ruleset.payout(route.own_links)
        player.income = self.ruleset.clamp_income(player.income + gained)
        player.remove_cash(fee)
        credited: dict[str, int] = {}
        for owner in route.link_owners:
            if owner is None or owner == player_id:
                continue
            other = self.state.players.get(owner)
            if other is not None and not other.eliminated:
                other.income = self.ruleset.clamp_income(other.income + 1)
                credited[owner] = credited.get(owner, 0) + 1

        self.state.log_event(
            "move_goods",
            {
                "player": player_id,
                "cube": cube.value,
                "slot": slot_index,
                "path": [coord.key for coord in route.hexes],
                "destination": route.destination,
                "links": route.link_count,
                "income": gained,
                "foreign": credited,
            },
        )
        self.turn_manager.advance_step()
        return succeeded(
            f"{player.name} delivered {cube.value} to {route.destination} over {route.link_count} links",
            income_gained=gained,
            path=route.to_dict(),
        )

    def upgrade_locomotive(self, player_id: str) -> dict[str, Any]:
        """Spend the move on a locomotive upgrade."""
        if failure := self._guard(player_id, "upgrade_locomotive"):
            return failure
        player = self.state.players[player_id]
        if player.locomotive >= self.ruleset.max_locomotive:
            return rejected(RejectionReason.RESOURCE_EXHAUSTED, "Locomotive is already at its maximum")

        player.locomotive += 1
        self.state.log_event("upgrade_locomotive", {"player": player_id, "level": player.locomotive})
        self.turn_manager.advance_step()
        return succeeded(f"{player.name} upgraded to locomotive {player.locomotive}")

    def pass_move(self, player_id: str) -> dict[str, Any]:
        """Skip this move round."""
        if failure := self._guard(player_id, "pass_move"):
            return failure
        self.state.log_event("pass_move", {"player": player_id})
        self.turn_manager.advance_step()
        return succeeded(f"{self.state.players[player_id].name} passed")

    # ------------------------------------------------------------------
    # Phase flow
    # ------------------------------------------------------------------

    def advance_phase(self) -> dict[str, Any]:
        """Leave the current phase for the next one.

        Player phases must be complete first. Computed phases apply their
        effect as they are left.

        Returns:
            Result dictionary with the new phase.
        """
        phase = self.state.current_phase
        if phase == GamePhase.SETUP:
            return rejected(RejectionReason.ILLEGAL_PHASE, "Game has not started")
        if phase == GamePhase.GAME_OVER:
            return rejected(RejectionReason.ILLEGAL_PHASE, "Game has ended")
        if phase in PLAYER_PHASES and not self.turn_manager.is_phase_complete():
            return rejected(
                RejectionReason.ILLEGAL_PHASE,
                f"Waiting for {self.state.current_player_id} to act in {phase.value}",
            )

        effects: Any = None
        if phase == GamePhase.COLLECT_INCOME:
            effects = self.economy.collect_income()
        elif phase == GamePhase.PAY_EXPENSES:
            effects = self.economy.pay_expenses()
            if len(self.state.active_player_ids()) <= 1:
                return self._end_game("only one player remains solvent")
        elif phase == GamePhase.INCOME_REDUCTION:
            effects = self.economy.apply_income_reduction()
        elif phase == GamePhase.GOODS_GROWTH:
            rolls = self.economy.roll_growth_dice(self.rng)
            report = self.economy.grow_goods(rolls)
            effects = {
                "rolls": rolls,
                "placed": len(report.placed),
                "discarded": list(report.discarded),
            }
        elif phase == GamePhase.ADVANCE_TURN:
            if self.turn_manager.is_last_turn():
                return self._end_game(f"turn {self.state.current_turn} was the last")
            self.turn_manager.start_new_turn()

        upcoming = next_phase(phase)
        self.turn_manager.begin_phase(upcoming)
        if upcoming == GamePhase.DETERMINE_PLAYER_ORDER:
            self.auction.open()
            if self.auction.is_complete:
                self.auction.resolve()
        return succeeded(f"Entered {upcoming.value}", phase=upcoming.value, effects=effects)

    def run_computed_phases(self) -> list[dict[str, Any]]:
        """Advance through consecutive computed phases.

        Returns:
            Result of each advance.
        """
        results = []
        while self.state.current_phase in COMPUTED_PHASES:
            results.append(self.advance_phase())
        return results

    def _end_game(self, why: str) -> dict[str, Any]:
        self.turn_manager.begin_phase(GamePhase.GAME_OVER)
        scores = self.get_player_scores()
        winner = self.get_winner()
        self.state.log_event(
            "game_over",
            {"reason": why, "scores": scores, "winner": winner.id if winner else None},
        )
        self.logger.info(f"Game {self.state.id} over: {why}")
        return succeeded(f"Game over: {why}", phase=GamePhase.GAME_OVER.value, scores=scores)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_open_edges(self, coord: Any, player_id: str) -> list[int]:
        """Edges a player may build out from at a hex."""
        return get_open_edges(as_coord(coord), self.board, player_id)

    def get_turn_info(self) -> dict[str, Any]:
        return self.turn_manager.get_turn_info()

    def snapshot(self) -> dict[str, Any]:
        """Read-only plain-data view of the whole game."""
        return self.state.to_dict()

    def get_player_scores(self) -> dict[str, int]:
        """Victory points for every player."""
        return self.economy.get_player_scores()

    def get_winner(self) -> PlayerState | None:
        """Get the winning player once the game is over."""
        if not self.state.is_over:
            return None
        scores = self.get_player_scores()
        contenders = self.state.active_player_ids() or list(self.state.players)
        if not contenders:
            return None
        winner_id = max(contenders, key=lambda pid: scores[pid])
        return self.state.players[winner_id]

    def get_available_actions(self) -> list[dict[str, Any]]:
        """Get list of available actions for the current player.

        Returns:
            List of action dictionaries with type and parameters.
        """
        phase = self.state.current_phase
        if phase in COMPUTED_PHASES:
            return [{"type": "advance_phase", "description": f"Resolve {phase.value}"}]
        if phase in PLAYER_PHASES and self.turn_manager.is_phase_complete():
            return [{"type": "advance_phase", "description": f"Finish {phase.value}"}]

        player = self.state.current_player
        if player is None:
            return []

        if phase == GamePhase.ISSUE_SHARES:
            return self._get_share_actions(player)
        if phase == GamePhase.DETERMINE_PLAYER_ORDER:
            return self.auction.get_valid_actions(player.id)
        if phase == GamePhase.SELECT_ACTIONS:
            return [
                {"type": "select_action", "action": action.value, "description": f"Take {action.value}"}
                for action in self.available_special_actions()
            ]
        if phase == GamePhase.BUILD_TRACK:
            return self._get_build_actions(player)
        if phase == GamePhase.MOVE_GOODS:
            return self._get_move_actions(player)
        return []

    def _get_share_actions(self, player: PlayerState) -> list[dict[str, Any]]:
        actions = []
        room = self.ruleset.max_shares - player.shares
        if room > 0:
            actions.append(
                {
                    "type": "issue_shares",
                    "max_count": room,
                    "description": f"Issue up to {room} shares at ${self.ruleset.share_value}",
                }
            )
        actions.append({"type": "pass_shares", "description": "Issue no shares"})
        return actions

    def _get_build_actions(self, player: PlayerState) -> list[dict[str, Any]]:
        pending = self.state.pending
        if isinstance(pending, PendingProduction):
            if pending.is_complete:
                return [{"type": "confirm_production"}, {"type": "cancel_production"}]
            return [
                {"type": "select_production_slot", "slots": self.board.goods.get_empty_slots()},
                {"type": "cancel_production"},
            ]
        if isinstance(pending, PendingRedirect):
            return [
                {"type": "redirect_track", "coord": pending.coord.key, "candidates": list(pending.candidates)},
                {"type": "cancel_pending"},
            ]
        if isinstance(pending, PendingUrbanization):
            towns = [t.coord.key for t in self.board.towns.values() if not t.urbanized]
            return [{"type": "urbanize_town", "towns": towns}, {"type": "cancel_pending"}]

        actions = []
        remaining = self.builds_remaining(player.id)
        if remaining > 0:
            actions.append({"type": "build_track", "description": f"Build track ({remaining} left)"})
            actions.append({"type": "build_complex_track", "description": "Build crossing or coexisting track"})
            actions.append({"type": "begin_redirect", "description": "Redirect an unfinished track end"})
        phase_state = self.state.phase_state
        if (
            player.holds(SpecialAction.URBANIZATION)
            and not phase_state.urbanization_used
            and player.id not in phase_state.has_built
        ):
            tiles = [t.id for t in self.board.new_city_tiles.values() if not t.used]
            actions.append({"type": "select_new_city_tile", "tiles": tiles})
        if player.holds(SpecialAction.PRODUCTION) and not phase_state.production_used:
            actions.append({"type": "start_production"})
        actions.append({"type": "end_build", "description": "Finish building"})
        return actions

    def _get_move_actions(self, player: PlayerState) -> list[dict[str, Any]]:
        actions = []
        goods = self.board.goods
        for slot_index, cube in enumerate(goods.slots):
            if cube is None:
                continue
            paths = self.find_delivery_paths(slot_index, player.id)
            if paths:
                actions.append(
                    {
                        "type": "move_goods",
                        "slot_index": slot_index,
                        "cube": cube.value,
                        "paths": [path.to_dict() for path in paths],
                    }
                )
        if player.locomotive < self.ruleset.max_locomotive:
            actions.append({"type": "upgrade_locomotive", "level": player.locomotive + 1})
        actions.append({"type": "pass_move"})
        return actions
