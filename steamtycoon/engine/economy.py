"""Computed end-of-turn phases for Steam Tycoon.

None of these take player input, and none can be rejected. A failed
consistency check raises InvariantViolation.
"""

import logging
import random
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from steamtycoon.models.game_state import GameState
    from .rules import Ruleset

from steamtycoon.errors import InvariantViolation
from steamtycoon.models.goods import GrowthReport

from .track_validator import completed_link_segments, segment_completes_link


class EconomyManager:
    """Applies income, expenses, income reduction and goods growth.

    Attributes:
        state: Reference to game state.
        ruleset: Rule values.
        logger: Logger for phase results.
    """

    def __init__(
        self, state: "GameState", ruleset: "Ruleset", logger: logging.Logger | None = None
    ) -> None:
        """Initialize economy manager.

        Args:
            state: The game state.
            ruleset: Rule values.
            logger: Logger to report through.
        """
        self.state = state
        self.ruleset = ruleset
        self.logger = logger or logging.getLogger(__name__)

    def _active_players(self):
        for player_id in self.state.active_player_ids():
            player = self.state.players.get(player_id)
            if player is None:
                raise InvariantViolation(f"Play order names unknown player {player_id}")
            yield player

    def collect_income(self) -> dict[str, int]:
        """Pay each player their positive income.

        Returns:
            Cash collected per player.
        """
        collected = {}
        for player in self._active_players():
            amount = max(0, player.income)
            player.add_cash(amount)
            collected[player.id] = amount
        self.state.log_event("collect_income", collected)
        self.logger.debug(f"Income collected: {collected}")
        return collected

    def pay_expenses(self) -> dict[str, Any]:
        """Charge shares plus locomotive level to every player.

        A player short of cash loses the shortfall from income instead. One
        whose income would fall below the minimum goes bankrupt: cash 0,
        income at the minimum, and their unfinished track becomes unowned.

        Returns:
            Summary with ``paid``, ``income_lost`` and ``bankrupt`` entries.
        """
        paid: dict[str, int] = {}
        income_lost: dict[str, int] = {}
        bankrupt: list[str] = []

        for player in list(self._active_players()):
            expense = player.expenses
            if player.can_afford(expense):
                player.remove_cash(expense)
                paid[player.id] = expense
                continue

            shortfall = expense - player.cash
            paid[player.id] = player.cash
            player.cash = 0
            new_income = player.income - shortfall
            if new_income < self.ruleset.min_income:
                player.income = self.ruleset.min_income
                player.eliminated = True
                bankrupt.append(player.id)
                self.logger.info(f"Player {player.name} is bankrupt")
            else:
                player.income = new_income
                income_lost[player.id] = shortfall

        if bankrupt:
            self._release_track(bankrupt)

        for player in self.state.players.values():
            if player.cash < 0:
                raise InvariantViolation(f"Player {player.id} has negative cash {player.cash}")

        summary = {"paid": paid, "income_lost": income_lost, "bankrupt": bankrupt}
        self.state.log_event("pay_expenses", summary)
        return summary

    def _release_track(self, player_ids: list[str]) -> None:
        released = 0
        for tile in self.state.board.tracks:
            for segment in tile.segments:
                if segment.owner not in player_ids:
                    continue
                if not segment_completes_link(self.state.board, tile.coord, segment):
                    segment.owner = None
                    released += 1
        self.state.log_event("track_released", {"players": player_ids, "segments": released})

    def apply_income_reduction(self) -> dict[str, int]:
        """Lower high incomes by the reduction table.

        Returns:
            Reduction applied per player.
        """
        reductions = {}
        for player in self._active_players():
            reduction = self.ruleset.income_reduction(player.income)
            if reduction:
                player.income = max(player.income - reduction, self.ruleset.min_income)
                reductions[player.id] = reduction
        self.state.log_event("income_reduction", reductions)
        return reductions

    def roll_growth_dice(self, rng: random.Random) -> list[int]:
        """Roll one goods growth die per active player."""
        faces = self.ruleset.growth_die_faces
        return [rng.randint(1, faces) for _ in self.state.active_player_ids()]

    def grow_goods(self, rolls: list[int]) -> GrowthReport:
        """Grow the columns named by the dice, checking no cube appears or vanishes.

        Args:
            rolls: Die faces; face ``n`` grows column ``"n"``.

        Returns:
            What was placed and discarded.
        """
        goods = self.state.board.goods
        before = goods.total_cubes()
        report = goods.grow([str(face) for face in rolls])
        report.rolls = list(rolls)
        after = goods.total_cubes()
        if before != after:
            raise InvariantViolation(f"Goods growth changed cube total from {before} to {after}")
        self.state.log_event(
            "goods_growth",
            {
                "rolls": list(rolls),
                "placed": [[column, cube.value] for column, cube in report.placed],
                "discarded": list(report.discarded),
                "idle": list(report.idle),
                "bag_exhausted": report.bag_exhausted,
            },
        )
        if report.discarded:
            self.logger.debug(f"Full columns skipped growth: {report.discarded}")
        return report

    def victory_points(self, player_id: str) -> int:
        """Income x 3, plus track in completed links, minus shares x 3."""
        player = self.state.players[player_id]
        track = len(completed_link_segments(self.state.board, player_id))
        return player.income * 3 + track - player.shares * 3

    def get_player_scores(self) -> dict[str, int]:
        """Victory points for every player."""
        return {player_id: self.victory_points(player_id) for player_id in self.state.players}
