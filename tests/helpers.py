"""Shared builders for Steam Tycoon tests."""

import random

from steamtycoon.engine.game_engine import GameEngine
from steamtycoon.engine.rules import Ruleset
from steamtycoon.models.game_state import GamePhase
from steamtycoon.models.hex import HexCoord, as_coord
from steamtycoon.models.map_descriptor import (
    CityDef,
    CubeColor,
    HexDef,
    MapDescriptor,
    Terrain,
    TownDef,
    standard_goods_columns,
    standard_new_city_tiles,
    standard_starting_bag,
)
from steamtycoon.models.player import SpecialAction
from steamtycoon.models.tile import Board, TrackForm, TrackSegment, TrackTile

PLAYER_NAMES = ["Alice", "Bob", "Charlie", "Dana", "Eve", "Frank"]

# Terrain that differs from plain on the test map
SPECIAL_TERRAIN = {
    HexCoord(0, 1): Terrain.MOUNTAIN,
    HexCoord(2, 4): Terrain.RIVER,
    HexCoord(5, 4): Terrain.LAKE,
}


def build_test_map() -> MapDescriptor:
    """A 6x5 map with three cities and two towns.

    Alpha (0,0) red, Beta (3,2) blue and Delta (5,2) yellow; towns
    Millbrook (1,4) and Ashford (5,0); a lake at (5,4).
    """
    hexes = [
        HexDef(HexCoord(col, row), SPECIAL_TERRAIN.get(HexCoord(col, row), Terrain.PLAIN))
        for row in range(5)
        for col in range(6)
    ]
    descriptor = MapDescriptor(
        id="test",
        name="Test Valley",
        cities=[
            CityDef(HexCoord(0, 0), "Alpha", CubeColor.RED, ["1", "2"]),
            CityDef(HexCoord(3, 2), "Beta", CubeColor.BLUE, ["3", "4"]),
            CityDef(HexCoord(5, 2), "Delta", CubeColor.YELLOW, ["5", "6"]),
        ],
        towns=[
            TownDef(HexCoord(1, 4), "Millbrook"),
            TownDef(HexCoord(5, 0), "Ashford"),
        ],
        hexes=hexes,
        goods_columns=standard_goods_columns(
            {"1": "Alpha", "2": "Alpha", "3": "Beta", "4": "Beta", "5": "Delta", "6": "Delta"}
        ),
        starting_bag=standard_starting_bag(),
        new_city_tiles=standard_new_city_tiles(),
    )
    descriptor.validate()
    return descriptor


def make_engine(
    player_count: int = 2,
    ruleset: Ruleset | None = None,
    descriptor: MapDescriptor | None = None,
    seed: int = 7,
) -> GameEngine:
    """Create and start an engine with players p1..pN."""
    engine = GameEngine(
        "test_game",
        descriptor=descriptor or build_test_map(),
        ruleset=ruleset,
        rng=random.Random(seed),
    )
    for index in range(player_count):
        engine.add_player(f"p{index + 1}", PLAYER_NAMES[index])
    engine.start_game()
    return engine


def place_track(board: Board, coord, edges, owner: str | None, form: TrackForm = TrackForm.SIMPLE) -> TrackTile:
    """Put a segment straight onto the board, bypassing the rules."""
    target = as_coord(coord)
    tile = board.tracks.get(target)
    segment = TrackSegment(tuple(edges), owner)
    if tile is None:
        tile = TrackTile(coord=target, form=form, segments=[segment])
        board.tracks.add(tile)
    else:
        tile.segments.append(segment)
        tile.form = form
    return tile


def column_slot(engine: GameEngine, column_id: str, row: int = 0) -> int:
    """Global slot index of a row in a display column."""
    return engine.board.goods.columns[column_id].start_index + row


def set_cube(engine: GameEngine, slot_index: int, color: CubeColor) -> None:
    """Swap a cube of ``color`` from the bag into a slot, keeping totals."""
    goods = engine.board.goods
    previous = goods.slots[slot_index]
    if previous == color:
        return
    if color in goods.bag:
        goods.bag.remove(color)
        if previous is not None:
            goods.bag.append(previous)
    else:
        donor = next(i for i, cube in enumerate(goods.slots) if cube == color)
        goods.slots[donor] = previous
    goods.slots[slot_index] = color


def pass_shares(engine: GameEngine) -> None:
    while engine.state.current_phase == GamePhase.ISSUE_SHARES and not engine.turn_manager.is_phase_complete():
        result = engine.execute_action("pass_shares")
        assert result["success"], result
    assert engine.advance_phase()["success"]


def pass_auction(engine: GameEngine) -> None:
    while not engine.turn_manager.is_phase_complete():
        result = engine.execute_action("pass_auction")
        assert result["success"], result
    assert engine.advance_phase()["success"]


def select_actions(engine: GameEngine, wanted: dict[str, SpecialAction] | None = None) -> None:
    """Let every player pick; players not in ``wanted`` take the first free action."""
    wanted = wanted or {}
    reserved = set(wanted.values())
    while not engine.turn_manager.is_phase_complete():
        player_id = engine.state.current_player_id
        action = wanted.get(player_id)
        if action is None:
            action = next(a for a in engine.available_special_actions() if a not in reserved)
        result = engine.select_action(player_id, action)
        assert result["success"], result
    assert engine.advance_phase()["success"]


def advance_to_build(engine: GameEngine, wanted: dict[str, SpecialAction] | None = None) -> None:
    """From IssueShares, pass shares and auction, then select actions."""
    pass_shares(engine)
    pass_auction(engine)
    select_actions(engine, wanted)
    assert engine.state.current_phase == GamePhase.BUILD_TRACK


def finish_build(engine: GameEngine) -> None:
    while not engine.turn_manager.is_phase_complete():
        result = engine.execute_action("end_build")
        assert result["success"], result
    assert engine.advance_phase()["success"]


def finish_moves(engine: GameEngine) -> None:
    while not engine.turn_manager.is_phase_complete():
        result = engine.execute_action("pass_move")
        assert result["success"], result
    assert engine.advance_phase()["success"]
