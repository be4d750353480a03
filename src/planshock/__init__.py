"""PlanShock: a task tracker that nags harder as deadlines get closer."""

__version__ = "0.3.0"
