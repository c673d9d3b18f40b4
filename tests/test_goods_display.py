"""Tests for the goods display, bag, growth and Production."""

import logging
import random

import pytest

from helpers import advance_to_build, build_test_map, column_slot
from steamtycoon.engine.game_engine import GameEngine
from steamtycoon.errors import RejectionReason
from steamtycoon.models.goods import GoodsDisplay
from steamtycoon.models.map_descriptor import CubeColor, standard_starting_bag
from steamtycoon.models.player import SpecialAction


def make_display(seed: int = 3) -> GoodsDisplay:
    display = GoodsDisplay(build_test_map().goods_columns)
    display.initialize(standard_starting_bag(), random.Random(seed))
    return display


def column_slot_of(display: GoodsDisplay, column_id: str, row: int = 0) -> int:
    return display.columns[column_id].indices[row]


def test_initialize_fills_every_slot():
    display = make_display()
    assert display.slot_count == 52
    assert display.get_empty_slots() == []
    assert len(display.bag) == 44
    assert display.total_cubes() == 96


def test_initialize_is_reproducible():
    assert make_display(11).slots == make_display(11).slots


def test_initialize_needs_enough_cubes():
    display = GoodsDisplay(build_test_map().goods_columns)
    with pytest.raises(ValueError):
        display.initialize([CubeColor.RED] * 10, random.Random(1))


def test_peek_does_not_draw():
    display = make_display()
    expected = [display.bag[-1], display.bag[-2]]
    assert display.peek(2) == expected
    assert len(display.bag) == 44
    assert display.draw(2) == expected
    assert len(display.bag) == 42


def test_take_and_place():
    display = make_display()
    cube = display.take_cube(0)
    assert display.slots[0] is None
    assert display.delivered == [cube]
    with pytest.raises(ValueError):
        display.take_cube(0)
    display.place(0, CubeColor.BLACK)
    with pytest.raises(ValueError):
        display.place(0, CubeColor.RED)


def test_growth_skips_full_columns():
    display = make_display()
    bag_before = list(display.bag)

    report = display.grow(["1", "2", "6", "2"])

    assert report.placed == []
    assert report.discarded == ["1", "2", "6", "2"]
    assert display.bag == bag_before, "Full columns leave the cube in the bag"
    assert display.total_cubes() == 96


def test_growth_compacts_then_fills_bottom():
    display = make_display()
    below = display.cubes_in("1")[1:]
    display.take_cube(0)
    next_cube = display.bag[-1]

    report = display.grow(["1"])

    assert report.placed == [("1", next_cube)]
    assert display.cubes_in("1") == below + [next_cube]
    assert report.discarded == []
    assert display.total_cubes() == 96


def test_growth_only_touches_rolled_columns():
    display = make_display()
    display.take_cube(column_slot_of(display, "1"))
    display.take_cube(column_slot_of(display, "3"))

    report = display.grow(["3"])

    assert [column for column, _ in report.placed] == ["3"]
    assert None in display.cubes_in("1")
    assert None not in display.cubes_in("3")


def test_column_rolled_twice_grows_twice():
    display = make_display()
    display.take_cube(column_slot_of(display, "4"))
    display.take_cube(column_slot_of(display, "4", 1))
    expected = [display.bag[-1], display.bag[-2]]

    report = display.grow(["4", "4", "4"])

    assert report.placed == [("4", expected[0]), ("4", expected[1])]
    assert report.discarded == ["4"], "The third roll finds the column full"
    assert display.cubes_in("4")[-2:] == expected


def test_growth_ignores_inactive_columns():
    display = make_display()
    for index in display.columns["A"].indices:
        display.take_cube(index)
    report = display.grow(["A", "9"])
    assert report.idle == ["A", "9"]
    assert display.cubes_in("A") == [None] * 4

    display.activate_column("A", "Millbrook")
    report = display.grow(["A"])
    assert [column for column, _ in report.placed] == ["A"]
    assert display.cubes_in("A")[0] is not None


def test_growth_stops_on_empty_bag():
    display = make_display()
    display.take_cube(0)
    display.bag = []
    report = display.grow(["1"])
    assert report.bag_exhausted
    assert display.slots[5] is None


def test_growth_dice_follow_the_seed(engine):
    first = engine.economy.roll_growth_dice(random.Random(42))
    second = engine.economy.roll_growth_dice(random.Random(42))

    assert first == second
    assert len(first) == 2, "One die per active player"
    assert all(1 <= face <= 6 for face in first)


def test_growth_phase_grows_the_rolled_columns(engine, monkeypatch):
    goods = engine.board.goods
    goods.take_cube(column_slot(engine, "2"))
    goods.take_cube(column_slot(engine, "5"))
    goods.take_cube(column_slot(engine, "5", 1))
    faces = iter([5, 5])
    monkeypatch.setattr(engine.rng, "randint", lambda low, high: next(faces))

    report = engine.economy.grow_goods(engine.economy.roll_growth_dice(engine.rng))

    assert report.rolls == [5, 5]
    assert [column for column, _ in report.placed] == ["5", "5"]
    assert None in goods.cubes_in("2"), "Column 2 was not rolled"
    assert None not in goods.cubes_in("5")
    assert goods.total_cubes() == 96
    assert engine.state.game_log[-1]["type"] == "goods_growth"


def open_production(engine):
    advance_to_build(engine, {"p1": SpecialAction.PRODUCTION, "p2": SpecialAction.FIRST_BUILD})
    assert engine.execute_action("end_build")["success"]
    assert engine.state.current_player_id == "p1"
    goods = engine.board.goods
    goods.take_cube(column_slot(engine, "1", 0))
    goods.take_cube(column_slot(engine, "3", 2))


def test_production_confirm_places_drawn_cubes(engine):
    open_production(engine)
    goods = engine.board.goods
    bag_size = len(goods.bag)
    expected = goods.peek(2)

    result = engine.start_production("p1")
    assert result["success"], result
    assert len(goods.bag) == bag_size, "Drawn cubes stay in the bag until confirmed"

    assert engine.select_production_slot("p1", 14)["success"]
    result = engine.select_production_slot("p1", 14)
    assert result["reason"] == RejectionReason.INVALID_PLACEMENT
    result = engine.select_production_slot("p1", 1)
    assert result["reason"] == RejectionReason.INVALID_PLACEMENT, "Slot 1 is occupied"

    result = engine.confirm_production("p1")
    assert result["reason"] == RejectionReason.INVALID_ARGUMENT, "Only one slot chosen"

    assert engine.select_production_slot("p1", 0)["success"]
    result = engine.confirm_production("p1")
    assert result["success"], result

    assert goods.slots[14] == expected[0]
    assert goods.slots[0] == expected[1]
    assert len(goods.bag) == bag_size - 2
    assert goods.total_cubes() == 96
    assert not engine.state.has_pending

    result = engine.start_production("p1")
    assert result["reason"] == RejectionReason.RESOURCE_EXHAUSTED, "Production is once per turn"


def test_production_cancel_restores_everything(engine):
    open_production(engine)
    goods = engine.board.goods
    bag_before = list(goods.bag)
    slots_before = list(goods.slots)

    assert engine.start_production("p1")["success"]
    assert engine.select_production_slot("p1", 0)["success"]

    result = engine.end_build("p1")
    assert result["reason"] == RejectionReason.NOT_ENTITLED, "Open draw blocks end_build"

    assert engine.cancel_production("p1")["success"]
    assert goods.bag == bag_before
    assert goods.slots == slots_before
    assert not engine.state.has_pending
    assert engine.start_production("p1")["success"], "Cancelled production may be retried"


def test_production_needs_the_action(engine):
    advance_to_build(engine, {"p1": SpecialAction.FIRST_BUILD})
    result = engine.start_production("p1")
    assert result["reason"] == RejectionReason.NOT_ENTITLED

    result = engine.select_production_slot("p1", 0)
    assert result["reason"] == RejectionReason.ILLEGAL_PHASE, "No draw is open"


def test_production_needs_empty_slots(engine):
    advance_to_build(engine, {"p1": SpecialAction.PRODUCTION, "p2": SpecialAction.FIRST_BUILD})
    engine.execute_action("end_build")
    result = engine.start_production("p1")
    assert result["reason"] == RejectionReason.RESOURCE_EXHAUSTED
    assert not engine.state.has_pending


def test_display_logs_through_the_engine_logger():
    table_logger = logging.getLogger("steamtycoon.table")
    engine = GameEngine("logged", descriptor=build_test_map(), logger=table_logger)
    assert engine.board.goods.logger is table_logger
