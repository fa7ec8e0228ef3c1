# rescuesim

A grid-world search-and-rescue simulation. A submarine starts at the home
corner (0, 0) of an 8×8 board. The board holds 5 survivors and 8 hostiles,
placed at random. At each step the submarine senses its surroundings and
updates its own map of what it has learned. Hostiles are detected up to 2
squares away and survivors 1 square away, along the four compass directions.
It asks the PAT model checker for a move sequence and follows it move by
move. It picks up survivors and brings them home, where they count as saved.
The planner model allows at most 2 on board at a time. The mission ends once
every survivor is saved and the submarine is back home.

## Installation

```
pip install .
```

For the test suite:

```
pip install ".[test]"
pytest
```

## Requirements at run time

Plans come from the PAT console (`PAT3.Console.exe`), which runs under `mono`.
`PatConfig.from_home(home)` gives the default layout below a home directory,
which defaults to the user's:

- `Desktop/MONO-PAT-v3.6.0/PAT3.Console.exe`: the PAT console.
- `catkin_ws/src/3806ict_assignment_3/pat/` holds:
  - `explore.csp`, `collect_survivors.csp` and `return_home.csp`: the models.
  - `world.csp`: the submarine's known world. It is rewritten before every
    planning call.
  - `pat_output.txt`: the file PAT writes its answer to.

Surveying runs PAT once. Collecting survivors and going home first run PAT
with `-engine 1`, limited to `PatConfig.bfs_timeout` seconds (10 by
default). If that limit runs out, PAT is run again with no time limit.

`GridServer` reads the model files `bowl/model.sdf`,
`cardboard_box/model.sdf` and `turtlebot3_burger/model.sdf` from its model
directory. By default that directory is
`~/catkin_ws/src/3806ict_assignment_3/models`.

## Running a mission

```
rescuesim [--seed N] [--model-dir DIR] [--home DIR]
```

- `--seed`: seeds the world generation.
- `--model-dir`: sets where `GridServer` looks for model files.
- `--home`: sets the base directory for `PatConfig.from_home`.

The command generates a world and runs a `Mission` at 3 moves per second
until it completes. It then prints the submarine's final picture of the
board. The exit status is 0 on success or interruption. It is 1 when the
mission, the planner or the simulator reports an error.

## Library use

- `rescuesim.world`
  - `Cell`: the cell values (`VISITED`, `EMPTY`, `SUB`, `HOSTILE`,
    `SURVIVOR`).
  - `new_board`, `generate_world`: create boards.
  - `translate_world`, `create_grid`: flatten a board into a `GridMessage`
    with its `Dimension` layout.
  - `execute_move`: applies one move to the known world and the true world.
- `rescuesim.grid_server`
  - `GridServer.update_grid`: applies a new board to the scene. It spawns,
    moves and deletes models as squares change.
  - `GridServer.hostile_sensor`, `GridServer.survivor_sensor`: return a
    `SensorReading` for the four directions.
  - `GridServer.bot_location`: the submarine's square.
  - Failures raise `SimulatorError`.
- `rescuesim.planner`
  - `parse_moves`: extracts the move list from PAT output.
  - `render_known_world`, `write_known_world`: produce the world file.
  - `PatPlanner.regenerate(world, sub_x, sub_y, on_board, mode)`: runs PAT
    for a `PathMode` (`SURVEY_AREA`, `COLLECT_SURVIVORS`, `GO_HOME`) and
    returns the moves.
  - `PatPlanner` accepts a custom runner in place of `subprocess`.
  - Failures raise `PlannerError`.
- `rescuesim.mission`
  - `detect_hostiles`, `detect_survivors`, `update_position`: the parts of
    the move cycle.
  - `Mission.step`: runs one cycle and returns `True` when the mission is
    complete.
  - `Mission.run`: steps until done and returns the number of survivors
    saved.
  - Failures raise `MissionError`.

## What it does not do

The scene that `GridServer` keeps is an in-memory record of model names,
positions and model text. Nothing is rendered or simulated physically.
The grid server and the mission run in one process and call each other
directly; they are not separate networked services. Route planning is
entirely up to the external PAT console and the CSP models, which are not
included.