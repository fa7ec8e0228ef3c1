"""The rescue robot: senses its surroundings, follows planned moves and ferries survivors home."""

from __future__ import annotations

import argparse
import logging
import random
import sys
import time
from collections import deque
from typing import Callable, Deque, List, Optional, Sequence, TextIO, Tuple

from rescuesim.grid_server import GridServer, SensorReading, SimulatorError
from rescuesim.planner import PatConfig, PatPlanner, PathMode, PlannerError
from rescuesim.world import (
    BOARD_H,
    BOARD_W,
    HOSTILE_DETECTION_RANGE,
    SUB_START_X,
    SUB_START_Y,
    SURVIVOR_COUNT,
    SURVIVOR_DETECTION_RANGE,
    Board,
    Cell,
    create_grid,
    execute_move,
    generate_world,
    new_board,
)

log = logging.getLogger(__name__)

SIMULATION_RATE = 3  # moves processed per second

# (flag attribute, radar attribute, row step, column step)
_DIRECTIONS = (
    ("object_east", "east_radar", 0, 1, "east"),
    ("object_west", "west_radar", 0, -1, "west"),
    ("object_north", "north_radar", -1, 0, "north"),
    ("object_south", "south_radar", 1, 0, "south"),
)

_MOVES = {
    "moveRight": (0, 1),
    "moveLeft": (0, -1),
    "moveUp": (-1, 0),
    "moveDown": (1, 0),
}


class MissionError(Exception):
    """Raised when the mission cannot continue."""


def _detections(reading: SensorReading, sub_x: int, sub_y: int):
    for flag, radar, dx, dy, name in _DIRECTIONS:
        if not getattr(reading, flag):
            continue
        for distance, hit in enumerate(getattr(reading, radar), start=1):
            if hit:
                yield sub_x + dx * distance, sub_y + dy * distance, name


def detect_hostiles(reading: SensorReading, world: Board, sub_x: int, sub_y: int) -> None:
    """Mark every hostile reported by the sensor in the robot's world."""
    for x, y, name in _detections(reading, sub_x, sub_y):
        world[x][y] = int(Cell.HOSTILE)
        log.info("Robot has detected a hostile %s!", name)


def detect_survivors(reading: SensorReading, world: Board, sub_x: int, sub_y: int) -> int:
    """Mark reported survivors in the robot's world and return how many are new."""
    new = 0
    for x, y, name in _detections(reading, sub_x, sub_y):
        if world[x][y] != Cell.SURVIVOR:
            new += 1
            world[x][y] = int(Cell.SURVIVOR)
            log.info("Robot has detected a survivor %s!", name)
    return new


def update_position(move: str, x: int, y: int) -> Tuple[int, int]:
    """Return the square reached from (x, y) by ``move``; unknown moves stay put."""
    try:
        dx, dy = _MOVES[move]
    except KeyError:
        log.error("update_position found invalid move: %s", move)
        return x, y
    return x + dx, y + dy


def _format_board(world: Sequence[Sequence[int]]) -> str:
    lines = []
    for row in world:
        lines.append("".join(("" if v == Cell.VISITED else " ") + f"{int(v)} " for v in row))
    return "\n".join(lines) + "\n"


class Mission:
    """One search-and-rescue run against a grid server and a route planner."""

    def __init__(
        self,
        server: Optional[GridServer] = None,
        planner=None,
        true_world: Optional[Board] = None,
        rng: Optional[random.Random] = None,
        rate: float = SIMULATION_RATE,
        sleep: Callable[[float], None] = time.sleep,
        out: Optional[TextIO] = None,
    ) -> None:
        self.server = server if server is not None else GridServer()
        self.planner = planner if planner is not None else PatPlanner()
        self.true_world: Board = (
            [list(row) for row in true_world] if true_world is not None else generate_world(rng)
        )
        self.current_world: Board = new_board(Cell.EMPTY)
        self.current_world[SUB_START_X][SUB_START_Y] = int(Cell.VISITED)
        self.sub_x = SUB_START_X
        self.sub_y = SUB_START_Y
        self.on_board = 0
        self.survivors_saved = 0
        self.survivors_seen = 0
        self.mode = PathMode.SURVEY_AREA
        self.moves: Deque[str] = deque()
        self.rate = rate
        self.done = False
        self._sleep = sleep
        self._out = out
        self._started = False

    def _say(self, text: str) -> None:
        print(text, file=self._out if self._out is not None else sys.stdout)

    def _is_home(self) -> bool:
        return self.sub_x == SUB_START_X and self.sub_y == SUB_START_Y

    def _replan(self) -> None:
        moves = self.planner.regenerate(
            self.current_world, self.sub_x, self.sub_y, self.on_board, self.mode
        )
        self.moves = deque(moves)

    def _sense(self) -> int:
        hostiles = self.server.hostile_sensor(HOSTILE_DETECTION_RANGE)
        survivors = self.server.survivor_sensor(SURVIVOR_DETECTION_RANGE)
        detect_hostiles(hostiles, self.current_world, self.sub_x, self.sub_y)
        return detect_survivors(survivors, self.current_world, self.sub_x, self.sub_y)

    def _sense_and_react(self) -> bool:
        new = self._sense()
        if new:
            log.info("New survivor(s) detected!")
            self.survivors_seen += new
            self.mode = PathMode.COLLECT_SURVIVORS
        return bool(new)

    def _start(self) -> None:
        self._started = True
        self.server.update_grid(create_grid(self.true_world))
        self._sense_and_react()
        self._replan()

    def step(self) -> bool:
        """Run one move cycle; return True once the mission is complete."""
        if not self._started:
            self._start()
        if self.done:
            return True
        log.info("-- Start of move cycle --")

        if self._is_home() and self.on_board:
            self.survivors_saved += self.on_board
            self._say(
                f"Saved {self.on_board} survivors. "
                f"Total survivors now saved: {self.survivors_saved}"
            )
            self.on_board = 0

        if not self.moves:
            if self.survivors_saved + self.on_board == SURVIVOR_COUNT:
                if self._is_home():
                    log.info("Mission successful!")
                    self._say("Final internal representation of environment:")
                    self._say(_format_board(self.current_world).rstrip("\n"))
                    self.done = True
                    return True
                self.mode = PathMode.GO_HOME
            else:
                log.info("We've run out of moves, but there's still people left to be saved!")
                if self.survivors_seen > self.survivors_saved + self.on_board:
                    self.mode = PathMode.COLLECT_SURVIVORS
                else:
                    self.mode = PathMode.SURVEY_AREA
            self._replan()

        if not self.moves:
            raise MissionError("planner returned no moves")
        move = self.moves.popleft()
        log.info("Next move is: %s", move)

        new_x, new_y = update_position(move, self.sub_x, self.sub_y)
        if not (0 <= new_x < BOARD_H and 0 <= new_y < BOARD_W):
            raise MissionError(f"move {move!r} leaves the board at ({new_x}, {new_y})")

        if self.current_world[new_x][new_y] == Cell.HOSTILE:
            log.info("About to move into hostile, recalculating PAT directions")
            self._replan()
            return False

        if self.current_world[new_x][new_y] == Cell.SURVIVOR:
            log.info("About to pick up a survivor :) Hooray!")
            self.on_board += 1
            self._say(f"Now have {self.on_board} survivors onboard")

        execute_move(self.current_world, self.true_world, self.sub_x, self.sub_y, (new_x, new_y))
        self.server.update_grid(create_grid(self.true_world))
        self.sub_x, self.sub_y = new_x, new_y

        if self._sense_and_react():
            self._replan()

        log.info("-- End of move cycle --")
        return False

    def run(self) -> int:
        """Step until the mission is complete and return the number of survivors saved."""
        interval = 1.0 / self.rate if self.rate > 0 else 0.0
        while not self.step():
            self._sleep(interval)
        return self.survivors_saved


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Run a simulated search-and-rescue mission.")
    parser.add_argument("--seed", type=int, default=None, help="seed for world generation")
    parser.add_argument("--model-dir", default=None, help="directory holding the model files")
    parser.add_argument("--home", default=None, help="base directory of the planner layout")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    mission = Mission(
        server=GridServer(model_dir=args.model_dir),
        planner=PatPlanner(PatConfig.from_home(args.home)),
        rng=random.Random(args.seed),
    )
    try:
        mission.run()
    except KeyboardInterrupt:
        return 0
    except (MissionError, PlannerError, SimulatorError) as exc:
        log.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())