"""Unit tests for the core board, fleet and attack resolution logic."""

from __future__ import annotations

import pytest

from fleetops.battleship import AttackOutcome, Board, Cell, CellState, Fleet, Ship, resolve_attack
from fleetops.placement import Orientation, place

ROSTER = [("Carrier", 2, 7), ("Patrol", 1, 2)]


@pytest.fixture
def fleet() -> Fleet:
    return Fleet.from_roster(ROSTER)


@pytest.fixture
def board(fleet) -> Board:
    b = Board.empty(15)
    b = place(b, 5, 2, 2, 7, Orientation.HORIZONTAL, 1)
    b = place(b, 0, 0, 1, 2, Orientation.VERTICAL, 2)
    return b


def test_fleet_from_roster_assigns_ids_and_sizes(fleet) -> None:
    assert [s.id for s in fleet] == [1, 2]
    carrier = fleet.get(1)
    assert carrier.name == "Carrier"
    assert carrier.size == 14
    assert (carrier.hits, carrier.sunk) == (0, False)


def test_board_is_copy_on_write() -> None:
    b = Board.empty(4)
    b2 = b.with_cells({(1, 1): Cell(CellState.SHIP, 3)})
    assert b.cell(1, 1).state is CellState.EMPTY
    assert b2.cell(1, 1) == Cell(CellState.SHIP, 3)
    assert b2.cells_of(3) == [(1, 1)]


def test_board_out_of_bounds_lookup_raises() -> None:
    with pytest.raises(IndexError):
        Board.empty(3).cell(3, 0)


def test_hit_marks_cell_and_damages_ship(board, fleet) -> None:
    res = resolve_attack(board, fleet, 5, 2)
    assert res.outcome is AttackOutcome.HIT
    assert res.board.cell(5, 2) == Cell(CellState.HIT, 1)
    assert res.fleet.get(1).hits == 1
    assert not res.sunk
    assert not res.fleet_destroyed
    # Inputs untouched
    assert board.cell(5, 2).state is CellState.SHIP
    assert fleet.get(1).hits == 0


def test_miss_marks_empty_cell(board, fleet) -> None:
    res = resolve_attack(board, fleet, 10, 10)
    assert res.outcome is AttackOutcome.MISS
    assert res.board.cell(10, 10).state is CellState.MISS
    assert res.fleet == fleet


@pytest.mark.parametrize("rc", [(5, 2), (10, 10)])
def test_second_shot_on_same_cell_is_rejected(board, fleet, rc) -> None:
    first = resolve_attack(board, fleet, *rc)
    second = resolve_attack(first.board, first.fleet, *rc)
    assert first.outcome.accepted
    assert second.outcome is AttackOutcome.ALREADY_RESOLVED
    assert second.board == first.board
    assert second.fleet == first.fleet


def test_repeat_hit_does_not_increment_hits(board, fleet) -> None:
    first = resolve_attack(board, fleet, 6, 8)
    second = resolve_attack(first.board, first.fleet, 6, 8)
    assert second.outcome is AttackOutcome.ALREADY_RESOLVED
    assert second.fleet.get(1).hits == 1
    assert second.board.cell(6, 8) == Cell(CellState.HIT, 1)


def test_out_of_bounds_shot_is_invalid(board, fleet) -> None:
    res = resolve_attack(board, fleet, 15, 0)
    assert res.outcome is AttackOutcome.INVALID
    assert res.board is board


def test_sunk_iff_hits_equal_size(board, fleet) -> None:
    b, f = board, fleet
    res = resolve_attack(b, f, 0, 0)
    assert res.fleet.get(2).hits == 1 and not res.fleet.get(2).sunk
    res = resolve_attack(res.board, res.fleet, 1, 0)
    patrol = res.fleet.get(2)
    assert patrol.hits == patrol.size == 2
    assert patrol.sunk and res.sunk
    assert not res.fleet_destroyed


def test_fleet_destroyed_after_every_ship_cell_hit(board, fleet) -> None:
    b, f = board, fleet
    res = None
    for r, c in board.coords():
        if b.cell(r, c).state is CellState.SHIP:
            res = resolve_attack(b, f, r, c)
            b, f = res.board, res.fleet
    assert res is not None and res.fleet_destroyed
    assert f.all_sunk()
    assert all(s.hits == s.size for s in f)


def test_ship_hits_never_exceed_size() -> None:
    ship = Ship(1, "Patrol", 1, 2)
    for _ in range(5):
        ship = ship.damaged()
    assert ship.hits == 2 and ship.sunk


def test_rows_hide_ships_unless_revealed(board, fleet) -> None:
    res = resolve_attack(board, fleet, 0, 0)
    hidden = res.board.rows()
    shown = res.board.rows(reveal=True)
    assert hidden[0].split()[0] == "X"
    assert "S" not in "".join(hidden)
    assert shown[1].split()[0] == "S"
