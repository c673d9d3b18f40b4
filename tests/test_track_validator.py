"""Tests for track building, complex track and redirection."""

from dataclasses import replace

from helpers import advance_to_build, build_test_map, make_engine, place_track
from steamtycoon.engine.rules import Ruleset
from steamtycoon.engine.track_validator import (
    TrackValidator,
    get_open_edges,
    is_completed_link,
    redirect_candidates,
    segments_cross,
)
from steamtycoon.errors import RejectionReason
from steamtycoon.models.hex import HexCoord
from steamtycoon.models.player import PlayerState, SpecialAction
from steamtycoon.models.tile import Board, TrackForm


def make_validator(ruleset: Ruleset | None = None) -> tuple[Board, TrackValidator]:
    board = Board(build_test_map())
    return board, TrackValidator(board, ruleset or Ruleset())


def test_first_track_must_touch_a_city():
    board, validator = make_validator()
    alice = PlayerState(id="p1", name="Alice", cash=10)

    cost, rejection = validator.check_build(alice, HexCoord(1, 0), (3, 0))
    assert rejection is None, rejection
    assert cost == 2

    cost, rejection = validator.check_build(alice, HexCoord(3, 0), (3, 0))
    assert cost is None
    assert rejection[0] == RejectionReason.INVALID_PLACEMENT


def test_build_accept_then_disconnected_reject(engine):
    advance_to_build(engine, {"p1": SpecialAction.FIRST_BUILD})
    assert engine.state.current_player_id == "p1"

    result = engine.build_track("p1", (1, 0), (3, 0))
    assert result["success"], result
    assert engine.state.players["p1"].cash == 8
    assert engine.board.tracks.get(HexCoord(1, 0)).owner == "p1"

    result = engine.build_track("p1", (3, 0), (3, 0))
    assert not result["success"]
    assert result["reason"] == RejectionReason.INVALID_PLACEMENT
    assert engine.state.players["p1"].cash == 8, "Rejected build must not charge"
    assert len(engine.board.tracks) == 1


def test_connection_follows_own_track_only():
    board, validator = make_validator()
    bob = PlayerState(id="p2", name="Bob", cash=10)
    place_track(board, (1, 0), (3, 0), "p1")
    place_track(board, (3, 1), (3, 0), "p2")

    # Alice's (1,0) points at (2,0) but Bob may not hang track off it
    _, rejection = validator.check_build(bob, HexCoord(2, 0), (3, 1))
    assert rejection[0] == RejectionReason.INVALID_PLACEMENT

    # Bob's own track at (3,1) meets (4,1) on its west edge
    cost, rejection = validator.check_build(bob, HexCoord(4, 1), (3, 0))
    assert rejection is None, rejection
    assert cost == 2


def test_terrain_costs_and_unbuildable_hexes():
    board, validator = make_validator()
    alice = PlayerState(id="p1", name="Alice", cash=10)

    cost, rejection = validator.check_build(alice, HexCoord(0, 1), (4, 1))
    assert rejection is None, rejection
    assert cost == 4, "Mountain track costs 4"

    _, rejection = validator.check_build(alice, HexCoord(5, 4), (3, 4))
    assert rejection[0] == RejectionReason.INVALID_PLACEMENT, "Lakes take no track"

    _, rejection = validator.check_build(alice, HexCoord(3, 2), (0, 3))
    assert rejection[0] == RejectionReason.INVALID_PLACEMENT, "Cities take no track"

    _, rejection = validator.check_build(alice, HexCoord(1, 0), (3, 5))
    assert rejection[0] == RejectionReason.INVALID_PLACEMENT, "Edge 5 leads off the map"

    _, rejection = validator.check_build(alice, HexCoord(1, 0), (3, 3))
    assert rejection[0] == RejectionReason.INVALID_PLACEMENT


def test_build_rejected_without_cash():
    board, validator = make_validator()
    alice = PlayerState(id="p1", name="Alice", cash=3)
    _, rejection = validator.check_build(alice, HexCoord(0, 1), (4, 1))
    assert rejection[0] == RejectionReason.INSUFFICIENT_FUNDS


def test_segments_cross():
    assert segments_cross((1, 4), (0, 3))
    assert segments_cross((0, 3), (1, 4))
    assert not segments_cross((1, 4), (0, 5))
    assert not segments_cross((1, 4), (2, 3))


def test_crossing_over_rival_track():
    board, validator = make_validator()
    bob = PlayerState(id="p2", name="Bob", cash=10)
    place_track(board, (2, 2), (1, 4), "p1")

    cost, rejection = validator.check_complex_build(bob, HexCoord(2, 2), (0, 3), TrackForm.CROSSING)
    assert rejection is None, rejection
    assert cost == 3

    _, rejection = validator.check_complex_build(bob, HexCoord(2, 2), (0, 3), TrackForm.COEXIST)
    assert rejection[0] == RejectionReason.INVALID_PLACEMENT, "Crossing geometry is not a coexist"

    _, rejection = validator.check_complex_build(bob, HexCoord(2, 2), (0, 5), TrackForm.CROSSING)
    assert rejection[0] == RejectionReason.INVALID_PLACEMENT, "(0,5) does not cross (1,4)"

    _, rejection = validator.check_complex_build(bob, HexCoord(2, 2), (0, 4), TrackForm.CROSSING)
    assert rejection[0] == RejectionReason.INVALID_PLACEMENT, "Shared edges are not allowed"

    _, rejection = validator.check_complex_build(bob, HexCoord(2, 2), (0, 3), TrackForm.SIMPLE)
    assert rejection[0] == RejectionReason.INVALID_ARGUMENT


def test_complex_track_through_engine(engine):
    place_track(engine.board, (2, 2), (1, 4), "p2")
    advance_to_build(engine, {"p1": SpecialAction.FIRST_BUILD})

    result = engine.build_complex_track("p1", (2, 2), (0, 3), "crossing")
    assert result["success"], result
    tile = engine.board.tracks.get(HexCoord(2, 2))
    assert tile.form == TrackForm.CROSSING
    assert [s.owner for s in tile.segments] == ["p2", "p1"]
    assert engine.state.players["p1"].cash == 7

    result = engine.build_complex_track("p1", (2, 2), (2, 5), "coexist")
    assert result["reason"] == RejectionReason.INVALID_PLACEMENT, "A tile holds at most two segments"


def test_open_edges_cover_every_segment():
    board, _ = make_validator()
    place_track(board, (2, 2), (1, 4), "p1")
    place_track(board, (2, 2), (0, 3), "p2", form=TrackForm.CROSSING)

    assert get_open_edges(HexCoord(2, 2), board, "p1") == [0, 1, 3, 4]
    assert get_open_edges(HexCoord(3, 2), board, "p1") == [0, 1, 2, 3, 4, 5]
    assert get_open_edges(HexCoord(4, 4), board, "p1") == []


def test_completed_link_detection():
    board, _ = make_validator()
    # Alpha (0,0) east along row 0 to Ashford (5,0)
    for col in range(1, 5):
        place_track(board, (col, 0), (3, 0), "p1")
    assert is_completed_link(HexCoord(2, 0), board)

    loose = Board(build_test_map())
    place_track(loose, (1, 0), (3, 0), "p1")
    assert not is_completed_link(HexCoord(1, 0), loose)


def test_redirect_candidates_and_cost():
    ruleset = replace(Ruleset(), redirect_cost=15)
    board, validator = make_validator(ruleset)
    alice = PlayerState(id="p1", name="Alice", cash=10)
    place_track(board, (1, 0), (3, 0), "p1")

    assert redirect_candidates(HexCoord(1, 0), board) == [1, 2]

    candidates, rejection = validator.check_redirect_target(alice, HexCoord(1, 0))
    assert rejection is None
    assert candidates == [1, 2]

    cost, rejection = validator.check_redirect(alice, HexCoord(1, 0), 1)
    assert cost is None
    assert rejection[0] == RejectionReason.INSUFFICIENT_FUNDS

    _, rejection = validator.check_redirect(alice, HexCoord(1, 0), 5)
    assert rejection[0] == RejectionReason.INVALID_PLACEMENT


def test_redirect_never_faces_rival_track():
    board, _ = make_validator()
    place_track(board, (1, 0), (3, 0), "p1")
    # Bob's segment at (1,1) ends on the edge facing (1,0)
    place_track(board, (1, 1), (4, 1), "p2")

    assert redirect_candidates(HexCoord(1, 0), board) == [2]


def test_redirect_into_rival_track_rejected(engine):
    place_track(engine.board, (1, 0), (3, 0), "p1")
    place_track(engine.board, (1, 1), (4, 1), "p2")
    advance_to_build(engine, {"p1": SpecialAction.FIRST_BUILD})

    result = engine.redirect_track("p1", (1, 0), 1)
    assert result["reason"] == RejectionReason.INVALID_PLACEMENT
    assert engine.board.tracks.get(HexCoord(1, 0)).segments[0].edges == (3, 0)
    assert engine.board.tracks.get(HexCoord(1, 1)).segments[0].owner == "p2"


def test_unaffordable_redirect_changes_nothing():
    engine = make_engine(ruleset=replace(Ruleset(), redirect_cost=15))
    place_track(engine.board, (1, 0), (3, 0), "p1")
    advance_to_build(engine, {"p1": SpecialAction.FIRST_BUILD})
    assert engine.state.players["p1"].cash == 10

    result = engine.begin_redirect("p1", (1, 0))
    assert result["reason"] == RejectionReason.INSUFFICIENT_FUNDS
    assert not engine.state.has_pending

    result = engine.redirect_track("p1", (1, 0), 1)
    assert result["reason"] == RejectionReason.INSUFFICIENT_FUNDS
    assert engine.state.players["p1"].cash == 10
    assert engine.board.tracks.get(HexCoord(1, 0)).segments[0].edges == (3, 0)
    assert not engine.state.has_pending
    assert engine.builds_remaining("p1") == 3


def test_redirect_through_engine(engine):
    place_track(engine.board, (1, 0), (3, 0), "p1")
    advance_to_build(engine, {"p1": SpecialAction.FIRST_BUILD})

    result = engine.begin_redirect("p1", (1, 0))
    assert result["success"], result
    assert result["candidates"] == [1, 2]
    assert engine.state.pending.kind == "redirect"

    result = engine.build_track("p1", (0, 1), (4, 1))
    assert result["reason"] == RejectionReason.NOT_ENTITLED, "Open redirect blocks other commands"

    result = engine.redirect_track("p1", (1, 0), 1)
    assert result["success"], result
    tile = engine.board.tracks.get(HexCoord(1, 0))
    assert tile.segments[0].edges == (3, 1)
    assert engine.state.players["p1"].cash == 8
    assert not engine.state.has_pending


def test_redirect_rejected_for_rival_or_finished_track(engine):
    place_track(engine.board, (1, 0), (3, 0), "p2")
    place_track(engine.board, (4, 2), (3, 0), "p1")
    advance_to_build(engine, {"p1": SpecialAction.FIRST_BUILD})

    result = engine.begin_redirect("p1", (1, 0))
    assert result["reason"] == RejectionReason.NOT_ENTITLED

    # (4,2) lies between Beta and Delta
    result = engine.begin_redirect("p1", (4, 2))
    assert result["reason"] == RejectionReason.INVALID_PLACEMENT
    assert not engine.state.has_pending


def test_build_allowance(engine):
    advance_to_build(engine, {"p1": SpecialAction.FIRST_BUILD})
    for col in range(1, 4):
        assert engine.build_track("p1", (col, 0), (3, 0))["success"]
    result = engine.build_track("p1", (4, 0), (3, 0))
    assert result["reason"] == RejectionReason.RESOURCE_EXHAUSTED


def test_engineer_builds_four():
    engine = make_engine()
    advance_to_build(engine, {"p1": SpecialAction.ENGINEER, "p2": SpecialAction.FIRST_BUILD})
    assert engine.execute_action("end_build")["success"], "Bob builds first and passes"

    for col in range(1, 5):
        result = engine.build_track("p1", (col, 0), (3, 0))
        assert result["success"], result
    assert engine.state.players["p1"].cash == 2
    result = engine.build_track("p1", (1, 1), (4, 1))
    assert result["reason"] == RejectionReason.RESOURCE_EXHAUSTED
