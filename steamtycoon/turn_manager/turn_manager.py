"""Turn manager for Steam Tycoon game flow control."""

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from steamtycoon.engine.rules import Ruleset
    from steamtycoon.models.game_state import GameState

from steamtycoon.models.game_state import (
    PLAYER_PHASES,
    GamePhase,
    PhaseState,
)
from steamtycoon.models.player import SpecialAction


class TurnManager:
    """Manages play order, the acting player and phase transitions.

    Attributes:
        state: Reference to game state.
        ruleset: Rule values.
        logger: Logger for phase changes.
    """

    def __init__(
        self, state: "GameState", ruleset: "Ruleset", logger: logging.Logger | None = None
    ) -> None:
        """Initialize turn manager.

        Args:
            state: The game state to manage.
            ruleset: Rule values.
            logger: Logger to report through.
        """
        self.state = state
        self.ruleset = ruleset
        self.logger = logger or logging.getLogger(__name__)

    def get_current_player_id(self) -> str | None:
        """Get the ID of the player expected to act.

        Returns:
            Current player ID or None in computed phases.
        """
        return self.state.current_player_id

    def is_player_turn(self, player_id: str) -> bool:
        """Check if it's a specific player's turn."""
        return self.get_current_player_id() == player_id

    def get_player_order(self) -> list[str]:
        """Get current player order, eliminated players excluded."""
        return self.state.active_player_ids()

    def _holder_first(self, action: SpecialAction) -> list[str]:
        order = self.get_player_order()
        holder = next(
            (pid for pid in order if self.state.players[pid].holds(action)), None
        )
        if holder is None:
            return order
        return [holder] + [pid for pid in order if pid != holder]

    def build_order(self) -> list[str]:
        """First Build holder first, then play order."""
        return self._holder_first(SpecialAction.FIRST_BUILD)

    def move_order(self) -> list[str]:
        """First Move holder first, then play order."""
        return self._holder_first(SpecialAction.FIRST_MOVE)

    def begin_phase(self, phase: GamePhase) -> None:
        """Enter a phase and set up who acts in it.

        Args:
            phase: Phase to enter.
        """
        previous = self.state.current_phase
        self.state.current_phase = phase
        phase_state = self.state.phase_state
        phase_state.step_index = 0

        if phase == GamePhase.BUILD_TRACK:
            phase_state.step_order = self.build_order()
        elif phase == GamePhase.MOVE_GOODS:
            phase_state.step_order = self.move_order()
            phase_state.move_round = 1
        elif phase in PLAYER_PHASES:
            phase_state.step_order = self.get_player_order()
        else:
            phase_state.step_order = []

        self.state.log_event(
            "phase_change", {"from": previous.value, "to": phase.value}
        )
        self.logger.debug(f"Turn {self.state.current_turn}: {previous.value} -> {phase.value}")

    def advance_step(self) -> str | None:
        """Move to the next acting player of the phase.

        Move Goods runs its step order once per round.

        Returns:
            ID of the new acting player, or None if the phase's steps are done.
        """
        phase_state = self.state.phase_state
        phase_state.step_index += 1
        if (
            self.state.current_phase == GamePhase.MOVE_GOODS
            and phase_state.steps_complete
            and phase_state.move_round < self.ruleset.move_goods_rounds
        ):
            phase_state.move_round += 1
            phase_state.step_index = 0
        return phase_state.current_player_id

    def is_phase_complete(self) -> bool:
        """Check the completion guard of the current player phase."""
        phase = self.state.current_phase
        if phase == GamePhase.DETERMINE_PLAYER_ORDER:
            return self.state.auction is not None and self.state.auction.resolved
        if phase in PLAYER_PHASES:
            return self.state.phase_state.steps_complete
        return True

    def start_new_turn(self) -> None:
        """Reset per-turn bookkeeping and bump the turn counter."""
        self.state.current_turn += 1
        self.state.turn_order_holder = next(
            (p.id for p in self.state.players.values() if p.holds(SpecialAction.TURN_ORDER)),
            None,
        )
        for player in self.state.players.values():
            player.selected_action = None
        self.state.phase_state = PhaseState()
        self.state.auction = None
        self.state.clear_pending()
        self.state.log_event("turn_start", {"turn": self.state.current_turn})
        self.logger.info(f"Game {self.state.id}: turn {self.state.current_turn} begins")

    def is_last_turn(self) -> bool:
        return self.state.current_turn >= self.state.max_turns

    def get_turn_info(self) -> dict[str, Any]:
        """Get information about the current turn.

        Returns:
            Dictionary with turn information.
        """
        current_player = self.state.current_player
        return {
            "turn": self.state.current_turn,
            "max_turns": self.state.max_turns,
            "phase": self.state.current_phase.value,
            "current_player": {
                "id": current_player.id if current_player else None,
                "name": current_player.name if current_player else None,
            },
            "play_order": self.get_player_order(),
            "move_round": self.state.phase_state.move_round,
            "phase_complete": self.is_phase_complete(),
        }
