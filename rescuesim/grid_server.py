"""Scene manager that mirrors the board into a simulator and emulates sensors."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from rescuesim.world import BOARD_H, BOARD_W, Cell, GridMessage

log = logging.getLogger(__name__)

GRID_WIDTH = 1.0
SUBMARINE = "submarine"
DEFAULT_MODEL_DIR = Path.home() / "catkin_ws" / "src" / "3806ict_assignment_3" / "models"


class SimulatorError(Exception):
    """Raised when the simulator cannot carry out a request."""


@dataclass(frozen=True)
class Point:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


@dataclass
class SpawnRequest:
    model_name: str
    model_xml: str
    position: Point


@dataclass
class SensorReading:
    """Directional detections; radar index i means distance i + 1."""

    object_north: bool = False
    object_south: bool = False
    object_east: bool = False
    object_west: bool = False
    object_detected: bool = False
    north_radar: List[int] = field(default_factory=list)
    south_radar: List[int] = field(default_factory=list)
    east_radar: List[int] = field(default_factory=list)
    west_radar: List[int] = field(default_factory=list)


class _Scene:
    """In-memory simulator holding named models and their positions."""

    def __init__(self) -> None:
        self.models: Dict[str, Point] = {}
        self.xml: Dict[str, str] = {}

    def spawn(self, request: SpawnRequest) -> None:
        self.models[request.model_name] = request.position
        self.xml[request.model_name] = request.model_xml

    def delete(self, name: str) -> None:
        self.models.pop(name, None)
        self.xml.pop(name, None)

    def set_position(self, name: str, position: Point) -> None:
        self.models[name] = position

    def position(self, name: str) -> Point:
        try:
            return self.models[name]
        except KeyError:
            raise SimulatorError(f"no model named {name!r}") from None


_MODELS = {
    Cell.SURVIVOR: ("bowl", "bowl/model.sdf"),
    Cell.HOSTILE: ("cardboard_box", "cardboard_box/model.sdf"),
    Cell.SUB: (SUBMARINE, "turtlebot3_burger/model.sdf"),
}


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


class GridServer:
    """Keeps the simulator in step with the board and answers sensor queries."""

    def __init__(self, model_dir: Union[str, Path, None] = None, simulator=None) -> None:
        self.model_dir = Path(model_dir) if model_dir is not None else DEFAULT_MODEL_DIR
        self.simulator = simulator if simulator is not None else _Scene()
        self.current_grid: List[List[int]] = [[int(Cell.EMPTY)] * BOARD_W for _ in range(BOARD_H)]
        self.coordinates: List[List[Point]] = [
            [Point(i * GRID_WIDTH, j * GRID_WIDTH, 0.0) for j in range(BOARD_W)]
            for i in range(BOARD_H)
        ]
        self.object_positions: Dict[Point, str] = {}
        self.num_survivors = 0
        self.num_hostiles = 0
        self.submarine_spawned = False

    def create_spawn_request(self, model_type: int, position: Point) -> SpawnRequest:
        """Build a spawn request for a survivor, hostile or the sub."""
        try:
            kind = Cell(model_type)
            base, relative = _MODELS[kind]
        except (ValueError, KeyError):
            raise SimulatorError(f"no model for cell type {model_type}") from None
        if kind == Cell.SURVIVOR:
            name = f"{base}{self.num_survivors}"
            self.num_survivors += 1
        elif kind == Cell.HOSTILE:
            name = f"{base}{self.num_hostiles}"
            self.num_hostiles += 1
        else:
            name = base
        model_path = self.model_dir / relative
        try:
            xml = model_path.read_text()
        except OSError as exc:
            raise SimulatorError(f"could not open model file: {model_path}") from exc
        return SpawnRequest(model_name=name, model_xml=xml, position=position)

    def _spawn(self, model_type: int, point: Point) -> None:
        request = self.create_spawn_request(model_type, point)
        self.object_positions[point] = request.model_name
        self.simulator.spawn(request)

    def update_grid(self, grid: Union[GridMessage, Sequence[int]]):
        """Apply a new board to the simulator and return it unchanged."""
        data = list(grid.data) if isinstance(grid, GridMessage) else list(grid)
        if len(data) < BOARD_H * BOARD_W:
            raise ValueError(f"grid holds {len(data)} cells, expected {BOARD_H * BOARD_W}")
        for i in range(BOARD_H):
            for j in range(BOARD_W):
                old = self.current_grid[i][j]
                new = int(data[i * BOARD_W + j])
                if old == new:
                    continue
                point = self.coordinates[i][j]
                if old == Cell.EMPTY and new == Cell.SURVIVOR:
                    self._spawn(Cell.SURVIVOR, point)
                if old == Cell.SURVIVOR and new == Cell.SUB:
                    self.simulator.delete(self.object_positions.pop(point, ""))
                    self.simulator.set_position(SUBMARINE, point)
                if old == Cell.EMPTY and new == Cell.HOSTILE:
                    self._spawn(Cell.HOSTILE, point)
                if old in (Cell.EMPTY, Cell.VISITED) and new == Cell.SUB:
                    if self.submarine_spawned:
                        log.info("Moving sub to pos: (%.0f, %.0f)", point.x, point.y)
                        self.simulator.set_position(SUBMARINE, point)
                    else:
                        self._spawn(Cell.SUB, point)
                        self.submarine_spawned = True
                self.current_grid[i][j] = new
        return grid

    def bot_location(self) -> Tuple[int, int]:
        """Return the sub's board square as reported by the simulator."""
        position = self.simulator.position(SUBMARINE)
        return _round_half_away(position.x), _round_half_away(position.y)

    def _scan(self, sensor_range: int, target: Cell) -> SensorReading:
        if sensor_range < 0:
            raise ValueError("sensor range must not be negative")
        x, y = self.bot_location()
        reading = SensorReading(
            north_radar=[0] * sensor_range,
            south_radar=[0] * sensor_range,
            east_radar=[0] * sensor_range,
            west_radar=[0] * sensor_range,
        )
        grid = self.current_grid
        for i in range(1, sensor_range + 1):
            if x - i >= 0 and grid[x - i][y] == target:
                reading.object_north = True
                reading.north_radar[i - 1] = 1
            if x + i < BOARD_H and grid[x + i][y] == target:
                reading.object_south = True
                reading.south_radar[i - 1] = 1
            if y - i >= 0 and grid[x][y - i] == target:
                reading.object_west = True
                reading.west_radar[i - 1] = 1
            if y + i < BOARD_W and grid[x][y + i] == target:
                reading.object_east = True
                reading.east_radar[i - 1] = 1
        reading.object_detected = (
            reading.object_north or reading.object_east or reading.object_south or reading.object_west
        )
        return reading

    def hostile_sensor(self, sensor_range: int) -> SensorReading:
        """Report hostiles within range along the four directions."""
        return self._scan(sensor_range, Cell.HOSTILE)

    def survivor_sensor(self, sensor_range: int) -> SensorReading:
        """Report survivors within range along the four directions."""
        return self._scan(sensor_range, Cell.SURVIVOR)