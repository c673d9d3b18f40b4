"""Main entry point for Steam Tycoon."""

import logging
import os
import random
import sys

from dotenv import load_dotenv

from steamtycoon.engine.game_engine import GameEngine
from steamtycoon.models.game_state import GamePhase
from steamtycoon.models.map_descriptor import get_map

DEMO_NAMES = ["Alice", "Bob", "Charlie", "Dana", "Eve", "Frank"]


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the application."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )


def play_scripted_turn(engine: GameEngine) -> dict:
    """Drive one player decision with a simple fixed policy.

    Shares and bids are always passed, the first free special action is
    taken, nobody builds, and a delivery is made whenever one exists.
    """
    phase = engine.state.current_phase
    player_id = engine.state.current_player_id

    if phase == GamePhase.ISSUE_SHARES:
        return engine.execute_action("pass_shares", player_id)
    elif phase == GamePhase.DETERMINE_PLAYER_ORDER:
        return engine.execute_action("pass_auction", player_id)
    elif phase == GamePhase.SELECT_ACTIONS:
        action = engine.available_special_actions()[0]
        return engine.execute_action("select_action", player_id, action=action)
    elif phase == GamePhase.BUILD_TRACK:
        return engine.execute_action("end_build", player_id)
    elif phase == GamePhase.MOVE_GOODS:
        moves = [a for a in engine.get_available_actions() if a["type"] == "move_goods"]
        if moves:
            return engine.execute_action("move_goods", player_id, slot_index=moves[0]["slot_index"])
        else:
            return engine.execute_action("pass_move", player_id)
    return engine.advance_phase()


def run_demo() -> None:
    """Run a scripted demo game and log the result."""
    logger = logging.getLogger(__name__)

    map_id = os.getenv("STEAMTYCOON_MAP", "tutorial")
    seed = os.getenv("STEAMTYCOON_SEED")
    descriptor = get_map(map_id)
    player_count = int(os.getenv("STEAMTYCOON_PLAYERS", min(descriptor.supported_players)))

    logger.info("🚂 Steam Tycoon Demo 🚂")
    engine = GameEngine(
        "demo_game",
        descriptor=descriptor,
        rng=random.Random(int(seed)) if seed is not None else None,
    )
    for index in range(player_count):
        engine.add_player(f"p{index + 1}", DEMO_NAMES[index])
    engine.start_game()

    while not engine.state.is_over:
        if engine.turn_manager.is_phase_complete():
            result = engine.advance_phase()
            if not result["success"]:
                logger.error(f"Could not advance: {result['error']}")
                sys.exit(1)
        else:
            result = play_scripted_turn(engine)
            if not result["success"]:
                logger.error(f"Scripted move rejected: {result['error']}")
                sys.exit(1)

    for player_id, score in engine.get_player_scores().items():
        player = engine.state.players[player_id]
        logger.info(
            f"{player.name}: {score} VP (income {player.income}, cash ${player.cash}, "
            f"shares {player.shares})"
        )
    winner = engine.get_winner()
    logger.info(f"Winner: {winner.name if winner else 'nobody'}")


def main() -> None:
    """Run the Steam Tycoon demo."""
    # Load environment variables
    load_dotenv()

    # Setup logging
    setup_logging(os.getenv("STEAMTYCOON_LOG_LEVEL", "INFO"))
    logger = logging.getLogger(__name__)

    try:
        run_demo()
    except ValueError as e:
        logger.error(f"Invalid demo configuration: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
