"""Game models for Steam Tycoon."""

from .hex import HexCoord, HexEdge, neighbor, opposite
from .map_descriptor import CubeColor, MapDescriptor, Terrain, get_map, tutorial_map
from .goods import GoodsColumn, GoodsDisplay, GrowthReport
from .tile import Board, City, NewCityTile, Town, TrackForm, TrackIndex, TrackSegment, TrackTile
from .player import PlayerState, SpecialAction
from .game_state import (
    GamePhase,
    GameState,
    NoPending,
    PendingProduction,
    PendingRedirect,
    PendingUrbanization,
)

__all__ = [
    "HexCoord",
    "HexEdge",
    "neighbor",
    "opposite",
    "CubeColor",
    "MapDescriptor",
    "Terrain",
    "get_map",
    "tutorial_map",
    "GoodsColumn",
    "GoodsDisplay",
    "GrowthReport",
    "Board",
    "City",
    "NewCityTile",
    "Town",
    "TrackForm",
    "TrackIndex",
    "TrackSegment",
    "TrackTile",
    "PlayerState",
    "SpecialAction",
    "GamePhase",
    "GameState",
    "NoPending",
    "PendingProduction",
    "PendingRedirect",
    "PendingUrbanization",
]
