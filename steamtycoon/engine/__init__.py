"""Game engine for Steam Tycoon."""

from .game_engine import GameEngine
from .auction import AuctionRound
from .economy import EconomyManager
from .track_validator import TrackValidator
from .delivery_router import DeliveryPath, find_delivery_paths
from .rules import Ruleset

__all__ = [
    "GameEngine",
    "AuctionRound",
    "EconomyManager",
    "TrackValidator",
    "DeliveryPath",
    "find_delivery_paths",
    "Ruleset",
]
