"""Turn management for Steam Tycoon."""

from .turn_manager import TurnManager
from .action_validator import ActionValidator

__all__ = [
    "TurnManager",
    "ActionValidator",
]
