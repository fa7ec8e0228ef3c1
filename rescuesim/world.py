"""Board representation shared by the rescue robot and the grid server."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Optional, Sequence, Tuple


class Cell(IntEnum):
    """Contents of a single board square."""

    VISITED = -1
    EMPTY = 0
    SUB = 1
    HOSTILE = 2
    SURVIVOR = 3


SUB_START_X = 0
SUB_START_Y = 0

BOARD_H = 8
BOARD_W = 8

SUB_CAP = 2
SURVIVOR_COUNT = 5
HOSTILE_COUNT = 8

HOSTILE_DETECTION_RANGE = 2
SURVIVOR_DETECTION_RANGE = 1

Board = List[List[int]]


@dataclass
class Dimension:
    """One dimension of a flattened multi-dimensional array."""

    label: str
    size: int
    stride: int


@dataclass
class GridMessage:
    """A board flattened row by row, with the layout needed to rebuild it."""

    dims: List[Dimension] = field(default_factory=list)
    data_offset: int = 0
    data: List[int] = field(default_factory=list)


def new_board(fill: int = Cell.EMPTY) -> Board:
    """Return a BOARD_H x BOARD_W board with every square set to ``fill``."""
    return [[int(fill)] * BOARD_W for _ in range(BOARD_H)]


def _place_randomly(world: Board, value: int, count: int, rng: random.Random) -> None:
    placed = 0
    while placed < count:
        row = rng.randint(0, BOARD_H - 1)
        col = rng.randint(0, BOARD_W - 1)
        if world[row][col] == Cell.EMPTY:
            world[row][col] = int(value)
            placed += 1


def generate_world(rng: Optional[random.Random] = None) -> Board:
    """Build a random world with the sub at home, survivors and hostiles."""
    rng = rng if rng is not None else random.Random()
    world = new_board(Cell.EMPTY)
    world[SUB_START_X][SUB_START_Y] = int(Cell.SUB)
    _place_randomly(world, Cell.SURVIVOR, SURVIVOR_COUNT, rng)
    _place_randomly(world, Cell.HOSTILE, HOSTILE_COUNT, rng)
    return world


def translate_world(world: Sequence[Sequence[int]]) -> List[int]:
    """Flatten a board row by row."""
    return [int(world[i][j]) for i in range(BOARD_H) for j in range(BOARD_W)]


def create_grid(world: Sequence[Sequence[int]]) -> GridMessage:
    """Wrap a board in a message carrying its layout."""
    return GridMessage(
        dims=[
            Dimension("height", BOARD_H, BOARD_H * BOARD_W),
            Dimension("width", BOARD_W, BOARD_W),
        ],
        data_offset=0,
        data=translate_world(world),
    )


def execute_move(
    current_world: Board,
    true_world: Board,
    sub_x: int,
    sub_y: int,
    new_coords: Tuple[int, int],
) -> None:
    """Record a move of the sub in both the known and the true world."""
    new_x, new_y = new_coords
    current_world[new_x][new_y] = int(Cell.VISITED)
    true_world[sub_x][sub_y] = int(Cell.VISITED)
    true_world[new_x][new_y] = int(Cell.SUB)