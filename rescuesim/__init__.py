"""Grid-world search-and-rescue simulation: world model, in-memory grid server with sensors, PAT route planner and mission loop."""

__version__ = "0.1.0"