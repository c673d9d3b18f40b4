"""Action validator for Steam Tycoon.

Checks the entry guard of every player command: the game is running, the
command belongs to the current phase, the player exists and is the one
expected to act, and any open interaction is being resolved first.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from steamtycoon.models.game_state import GameState

from steamtycoon.errors import RejectionReason
from steamtycoon.models.game_state import (
    GamePhase,
    PendingProduction,
    PendingRedirect,
    PendingUrbanization,
)
from steamtycoon.models.player import SpecialAction

# Phase in which each player command is legal
COMMAND_PHASES = {
    "issue_shares": GamePhase.ISSUE_SHARES,
    "pass_shares": GamePhase.ISSUE_SHARES,
    "place_bid": GamePhase.DETERMINE_PLAYER_ORDER,
    "pass_auction": GamePhase.DETERMINE_PLAYER_ORDER,
    "select_action": GamePhase.SELECT_ACTIONS,
    "build_track": GamePhase.BUILD_TRACK,
    "build_complex_track": GamePhase.BUILD_TRACK,
    "begin_redirect": GamePhase.BUILD_TRACK,
    "redirect_track": GamePhase.BUILD_TRACK,
    "select_new_city_tile": GamePhase.BUILD_TRACK,
    "urbanize_town": GamePhase.BUILD_TRACK,
    "start_production": GamePhase.BUILD_TRACK,
    "select_production_slot": GamePhase.BUILD_TRACK,
    "confirm_production": GamePhase.BUILD_TRACK,
    "cancel_production": GamePhase.BUILD_TRACK,
    "cancel_pending": GamePhase.BUILD_TRACK,
    "end_build": GamePhase.BUILD_TRACK,
    "move_goods": GamePhase.MOVE_GOODS,
    "upgrade_locomotive": GamePhase.MOVE_GOODS,
    "pass_move": GamePhase.MOVE_GOODS,
}

# Commands still allowed while an interaction of each kind is open
PENDING_COMMANDS = {
    PendingProduction: {"select_production_slot", "confirm_production", "cancel_production", "cancel_pending"},
    PendingRedirect: {"redirect_track", "cancel_pending"},
    PendingUrbanization: {"urbanize_town", "cancel_pending"},
}

# Commands reserved for the holder of a special action
ACTION_REQUIREMENTS = {
    "start_production": SpecialAction.PRODUCTION,
    "select_new_city_tile": SpecialAction.URBANIZATION,
    "urbanize_town": SpecialAction.URBANIZATION,
}


class ActionValidator:
    """Validates player commands for legality.

    Attributes:
        state: Reference to game state.
    """

    def __init__(self, state: "GameState") -> None:
        """Initialize action validator.

        Args:
            state: The game state to validate against.
        """
        self.state = state

    def validate_action(
        self, player_id: str, action_type: str
    ) -> tuple[RejectionReason | None, str]:
        """Validate that a player may issue a command now.

        Args:
            player_id: Player attempting the action.
            action_type: Command name.

        Returns:
            Tuple of (rejection reason or None, error_message).
        """
        phase = COMMAND_PHASES.get(action_type)
        if phase is None:
            return RejectionReason.UNKNOWN_ACTION, f"Unknown action type: {action_type}"

        if self.state.current_phase == GamePhase.SETUP:
            return RejectionReason.ILLEGAL_PHASE, "Game has not started"
        if self.state.current_phase == GamePhase.GAME_OVER:
            return RejectionReason.ILLEGAL_PHASE, "Game has ended"
        if self.state.current_phase != phase:
            return (
                RejectionReason.ILLEGAL_PHASE,
                f"{action_type} is a {phase.value} action, current phase is {self.state.current_phase.value}",
            )

        player = self.state.players.get(player_id)
        if player is None:
            return RejectionReason.UNKNOWN_PLAYER, f"Player not found: {player_id}"
        if player.eliminated:
            return RejectionReason.NOT_ENTITLED, f"{player.name} is bankrupt"

        current = self.state.current_player_id
        if current != player_id:
            return RejectionReason.NOT_ENTITLED, f"Not your turn, waiting for {current}"

        pending = self.state.pending
        if self.state.has_pending:
            allowed = PENDING_COMMANDS.get(type(pending), set())
            if action_type not in allowed:
                return (
                    RejectionReason.NOT_ENTITLED,
                    f"Finish or cancel the open {pending.kind} first",
                )

        required = ACTION_REQUIREMENTS.get(action_type)
        if required is not None and not player.holds(required):
            return RejectionReason.NOT_ENTITLED, f"{action_type} requires the {required.value} action"

        return None, ""
