import io

import pytest

from rescuesim.grid_server import GridServer, SensorReading
from rescuesim.mission import (
    Mission,
    MissionError,
    detect_hostiles,
    detect_survivors,
    main,
    update_position,
)
from rescuesim.planner import PathMode
from rescuesim.world import Cell, new_board


class ScriptedPlanner:
    def __init__(self, responses):
        self.responses = [list(r) for r in responses]
        self.calls = []

    def regenerate(self, world, sub_x, sub_y, on_board, mode):
        self.calls.append((PathMode(mode), sub_x, sub_y, on_board))
        return self.responses.pop(0) if self.responses else []


@pytest.fixture
def model_dir(tmp_path):
    for rel in ("bowl", "cardboard_box", "turtlebot3_burger"):
        (tmp_path / rel).mkdir()
        (tmp_path / rel / "model.sdf").write_text(f"<sdf>{rel}</sdf>")
    return tmp_path


def _world(survivors=(), hostiles=()):
    world = new_board(Cell.EMPTY)
    world[0][0] = int(Cell.SUB)
    for x, y in survivors:
        world[x][y] = int(Cell.SURVIVOR)
    for x, y in hostiles:
        world[x][y] = int(Cell.HOSTILE)
    return world


@pytest.mark.parametrize(
    "move, expected",
    [
        ("moveRight", (3, 4)),
        ("moveLeft", (3, 2)),
        ("moveUp", (2, 3)),
        ("moveDown", (4, 3)),
        ("jump", (3, 3)),
    ],
)
def test_update_position(move, expected):
    assert update_position(move, 3, 3) == expected


def test_detect_hostiles_marks_by_distance():
    world = new_board(Cell.EMPTY)
    reading = SensorReading(
        object_east=True,
        object_north=True,
        east_radar=[0, 1],
        north_radar=[1, 0],
        west_radar=[1, 1],
        south_radar=[0, 0],
    )
    detect_hostiles(reading, world, 3, 3)
    assert world[3][5] == Cell.HOSTILE
    assert world[2][3] == Cell.HOSTILE
    assert world[3][4] == Cell.EMPTY
    # west flag not raised, so its radar is ignored
    assert world[3][2] == Cell.EMPTY
    assert sum(v == Cell.HOSTILE for row in world for v in row) == 2


def test_detect_survivors_counts_only_new():
    world = new_board(Cell.EMPTY)
    reading = SensorReading(
        object_south=True,
        object_west=True,
        south_radar=[1],
        west_radar=[1],
        north_radar=[0],
        east_radar=[0],
    )
    assert detect_survivors(reading, world, 2, 2) == 2
    assert world[3][2] == Cell.SURVIVOR
    assert world[2][1] == Cell.SURVIVOR
    assert detect_survivors(reading, world, 2, 2) == 0


def test_full_run_saves_every_survivor(model_dir):
    server = GridServer(model_dir=model_dir)
    planner = ScriptedPlanner(
        [
            ["moveRight"],
            ["moveRight"],
            ["moveLeft", "moveLeft"],
            ["moveRight"] * 3,
            ["moveRight"] * 2,
            ["moveLeft"] * 4,
            ["moveRight"] * 5,
            ["moveLeft"] * 5,
        ]
    )
    out = io.StringIO()
    sleeps = []
    mission = Mission(
        server=server,
        planner=planner,
        true_world=_world(survivors=[(0, 1), (0, 2), (0, 3), (0, 4), (0, 5)]),
        sleep=sleeps.append,
        out=out,
    )
    assert mission.run() == 5
    assert mission.done
    assert (mission.sub_x, mission.sub_y) == (0, 0)
    assert mission.on_board == 0
    assert mission.survivors_seen == 5

    modes = [call[0] for call in planner.calls]
    assert modes == [PathMode.COLLECT_SURVIVORS] * 7 + [PathMode.GO_HOME]
    assert planner.calls[3] == (PathMode.COLLECT_SURVIVORS, 0, 0, 0)
    assert planner.calls[-1] == (PathMode.GO_HOME, 0, 5, 1)
    assert len(sleeps) == 22

    assert set(server.simulator.models) == {"submarine"}
    assert server.current_grid[0][0] == Cell.SUB
    assert all(v == Cell.VISITED for v in server.current_grid[0][1:6])

    lines = out.getvalue().splitlines()
    assert "Final internal representation of environment:" in lines
    board_lines = lines[-8:]
    assert board_lines[0].split() == ["-1"] * 6 + ["0", "0"]
    assert all(line.split() == ["0"] * 8 for line in board_lines[1:])
    assert "Total survivors now saved: 5" in out.getvalue()


def test_step_after_completion_is_idempotent(model_dir):
    planner = ScriptedPlanner([["moveRight", "moveLeft"]])
    world = _world(survivors=[(0, 1)])
    mission = Mission(
        server=GridServer(model_dir=model_dir),
        planner=planner,
        true_world=world,
        sleep=lambda s: None,
        out=io.StringIO(),
    )
    mission.survivors_saved = 4
    assert mission.run() == 5
    calls = len(planner.calls)
    assert mission.step() is True
    assert len(planner.calls) == calls


def test_hostile_ahead_triggers_replan_without_moving(model_dir):
    planner = ScriptedPlanner([["moveRight", "moveRight"], ["moveDown"]])
    mission = Mission(
        server=GridServer(model_dir=model_dir),
        planner=planner,
        true_world=_world(survivors=[(7, 7)], hostiles=[(0, 1)]),
        out=io.StringIO(),
    )
    assert mission.step() is False
    assert (mission.sub_x, mission.sub_y) == (0, 0)
    assert mission.current_world[0][1] == Cell.HOSTILE
    assert [c[0] for c in planner.calls] == [PathMode.SURVEY_AREA, PathMode.SURVEY_AREA]
    assert list(mission.moves) == ["moveDown"]

    assert mission.step() is False
    assert (mission.sub_x, mission.sub_y) == (1, 0)
    assert mission.current_world[1][0] == Cell.VISITED
    assert mission.true_world[0][0] == Cell.VISITED
    assert mission.true_world[1][0] == Cell.SUB


def test_empty_plan_raises(model_dir):
    mission = Mission(
        server=GridServer(model_dir=model_dir),
        planner=ScriptedPlanner([]),
        true_world=_world(survivors=[(7, 7)]),
        out=io.StringIO(),
    )
    with pytest.raises(MissionError):
        mission.step()


def test_move_off_board_raises(model_dir):
    mission = Mission(
        server=GridServer(model_dir=model_dir),
        planner=ScriptedPlanner([["moveUp"]]),
        true_world=_world(survivors=[(7, 7)]),
        out=io.StringIO(),
    )
    with pytest.raises(MissionError):
        mission.step()


def test_main_fails_without_model_files(tmp_path):
    assert main(["--model-dir", str(tmp_path), "--home", str(tmp_path), "--seed", "1"]) == 1