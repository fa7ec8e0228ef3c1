"""Route planning through the external PAT model checker."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Union

from rescuesim.world import (
    BOARD_H,
    BOARD_W,
    SUB_CAP,
    SUB_START_X,
    SUB_START_Y,
    Cell,
)

log = logging.getLogger(__name__)

MAX_BFS_TIME = 10

PathLike = Union[str, Path]
Runner = Callable[[List[str], Optional[float]], int]


class PlannerError(Exception):
    """Raised when a route cannot be obtained from the planner."""


class PathMode(IntEnum):
    """Which kind of route is being planned."""

    SURVEY_AREA = 0
    COLLECT_SURVIVORS = 1
    GO_HOME = 2


@dataclass(frozen=True)
class PatConfig:
    """Locations of the PAT executable and the files it reads and writes."""

    pat_exe: Path
    explore_csp: Path
    home_csp: Path
    collect_csp: Path
    output: Path
    world: Path
    bfs_timeout: float = MAX_BFS_TIME

    @classmethod
    def from_home(cls, home: Optional[PathLike] = None) -> "PatConfig":
        """Build the default layout below a home directory."""
        base = Path(home) if home is not None else Path.home()
        pat_dir = base / "catkin_ws" / "src" / "3806ict_assignment_3" / "pat"
        return cls(
            pat_exe=base / "Desktop" / "MONO-PAT-v3.6.0" / "PAT3.Console.exe",
            explore_csp=pat_dir / "explore.csp",
            home_csp=pat_dir / "return_home.csp",
            collect_csp=pat_dir / "collect_survivors.csp",
            output=pat_dir / "pat_output.txt",
            world=pat_dir / "world.csp",
        )


def parse_moves(lines: Iterable[str]) -> List[str]:
    """Extract the move sequence from the first trace line of PAT output."""
    for line in lines:
        if not line.startswith("<"):
            continue
        tokens = line.split()
        # tokens: "<init", "->", move, "->", move, ..., "lastMove>"
        moves = tokens[2::2]
        if moves:
            moves[-1] = moves[-1][:-1]
        return moves
    return []


def render_known_world(world: Sequence[Sequence[int]], sub_x: int, sub_y: int, on_board: int) -> str:
    """Render the robot's view of the board as a PAT model fragment."""
    parts = [
        f"#define Visited {int(Cell.VISITED)};\n",
        f"#define Unvisited {int(Cell.EMPTY)};\n",
        f"#define Sub {int(Cell.SUB)};\n",
        f"#define Hostile {int(Cell.HOSTILE)};\n",
        f"#define Survivor {int(Cell.SURVIVOR)};\n\n",
        f"#define SUB_HOME_X {SUB_START_X};\n",
        f"#define SUB_HOME_Y {SUB_START_Y};\n",
        f"#define Rows {BOARD_H};\n",
        f"#define Cols {BOARD_W};\n",
        f"#define maxCapacity {SUB_CAP};\n",
        "\nvar world[Rows][Cols]:{Visited..Survivor} = [\n",
    ]
    for i in range(BOARD_H):
        row = ", ".join(str(int(world[i][j])) for j in range(BOARD_W))
        trailer = "" if i == BOARD_H - 1 else ", "
        parts.append(f"{row}{trailer}\n")
    parts.append("];\n\n")
    parts.append("// Position of sub\n")
    parts.append(f"var xpos:{{0..Rows-1}} = {sub_x};\n")
    parts.append(f"var ypos:{{0..Cols-1}} = {sub_y};\n")
    parts.append(f"var onBoard:{{0..maxCapacity}} = {on_board};\n")
    return "".join(parts)


def write_known_world(
    path: PathLike, world: Sequence[Sequence[int]], sub_x: int, sub_y: int, on_board: int
) -> None:
    """Write the robot's view of the board to the PAT world file."""
    log.info("Writing robot's current interpretation to world file.")
    try:
        Path(path).write_text(render_known_world(world, sub_x, sub_y, on_board))
    except OSError as exc:
        raise PlannerError(f"failed to save the current world to {path}") from exc


def _run_subprocess(args: List[str], timeout: Optional[float]) -> int:
    return subprocess.run(args, timeout=timeout, check=False).returncode


class PatPlanner:
    """Asks PAT for a move sequence that suits the current mission phase."""

    def __init__(self, config: Optional[PatConfig] = None, runner: Optional[Runner] = None) -> None:
        self.config = config if config is not None else PatConfig.from_home()
        self.runner: Runner = runner if runner is not None else _run_subprocess

    def _command(self, csp: Path, engine: bool) -> List[str]:
        args = ["mono", str(self.config.pat_exe)]
        if engine:
            args += ["-engine", "1"]
        return args + [str(csp), str(self.config.output)]

    def _call(self, args: List[str], timeout: Optional[float] = None) -> int:
        try:
            return self.runner(args, timeout)
        except subprocess.TimeoutExpired:
            raise
        except OSError as exc:
            raise PlannerError(f"there has been a fatal error: {exc}") from exc

    def _bfs_then_dfs(self, csp: Path, dfs_engine: bool, what: str) -> None:
        try:
            status = self._call(self._command(csp, engine=True), self.config.bfs_timeout)
        except subprocess.TimeoutExpired:
            log.info("BFS path calculation for %s took too long, now calculating DFS path.", what)
            self._call(self._command(csp, engine=dfs_engine))
            return
        if status < 0:
            raise PlannerError("PAT call was killed")

    def read_directions(self) -> List[str]:
        """Read the move sequence from PAT's output file."""
        try:
            with open(self.config.output, encoding="utf-8") as handle:
                return parse_moves(handle)
        except OSError as exc:
            raise PlannerError("failed to open PAT output file") from exc

    def regenerate(
        self,
        world: Sequence[Sequence[int]],
        sub_x: int,
        sub_y: int,
        on_board: int,
        mode: Union[PathMode, int],
    ) -> List[str]:
        """Write the known world, run PAT for ``mode`` and return the new moves."""
        try:
            mode = PathMode(mode)
        except ValueError:
            raise PlannerError(f"received unknown path command {mode!r}") from None
        write_known_world(self.config.world, world, sub_x, sub_y, on_board)
        if mode is PathMode.SURVEY_AREA:
            log.info("Calculating a path to survey remaining area")
            self._call(self._command(self.config.explore_csp, engine=False))
        elif mode is PathMode.COLLECT_SURVIVORS:
            log.info("Calculating a path to collect remaining survivors")
            self._bfs_then_dfs(self.config.collect_csp, dfs_engine=False, what="survivor collection")
        else:
            log.info("Calculating a path to go home")
            self._bfs_then_dfs(self.config.home_csp, dfs_engine=True, what="going home")
        return self.read_directions()